from carbooking.models.bookings import Booking, BookingStatus
from carbooking.models.drivers import Driver
from carbooking.models.reports import BookingReport


def booking_received(booking: Booking) -> str:
    return (
        f"Your booking for the {booking.vehicle_info.label} has been received. "
        "An admin is reviewing it and will assign a driver shortly."
    )


def new_booking_for_admin(booking: Booking) -> str:
    return (
        "🔔 New booking!\n\n"
        f"*Customer:* {booking.customer_info.name}\n"
        f"*Vehicle:* {booking.vehicle_info.label}\n"
        f"*Pickup:* {booking.pickup.display_name}\n"
        f"*Time:* {booking.start:%Y-%m-%d %H:%M} UTC\n"
        f"*Price:* {booking.payment_info.total_price:,.2f}"
    )


def cancelled_by_customer(booking: Booking) -> str:
    return (
        "🚫 Booking cancelled by customer\n\n"
        f"*Customer:* {booking.customer_info.name}\n"
        f"*Booking ID:* {booking.short_ref}"
    )


def cancelled_by_admin(booking: Booking, reason: str) -> str:
    return (
        f"Sorry, your booking (ID: {booking.short_ref}) was cancelled: \"{reason}\"\n\n"
        "Please contact an admin for more information."
    )


def job_cancelled_for_driver(booking: Booking, reason: str) -> str:
    return (
        f"Job #{booking.short_ref} was cancelled by an admin.\n"
        f"Reason: \"{reason}\"\n\n"
        "Your status is now \"available\"."
    )


def job_assigned_for_driver(booking: Booking) -> str:
    return (
        f"New job #{booking.short_ref}\n"
        f"Pickup: {booking.pickup.display_name} at {booking.start:%Y-%m-%d %H:%M} UTC\n"
        f"Drop-off: {booking.dropoff.address}\n"
        f"Customer: {booking.customer_info.name} ({booking.customer_info.phone})"
    )


def driver_assigned(booking: Booking, driver: Driver) -> str:
    return f"Driver {driver.name} has been assigned to your booking {booking.short_ref}."


def review_request(review_url: str) -> str:
    return (
        "Please take a moment to review your trip so we can keep improving.\n"
        f"{review_url}"
    )


def trip_status_update(status: BookingStatus) -> str:
    return {
        BookingStatus.STB: "Your driver has arrived at the pickup point. Please get ready.",
        BookingStatus.PICKUP: "You have been picked up. Have a safe trip!",
        BookingStatus.COMPLETED: "You have arrived at your destination. Thank you for riding with us!",
        BookingStatus.NOSHOW: (
            "Your driver could not find you at the pickup point at the scheduled time. "
            "Please contact an admin if you have any questions."
        ),
    }.get(status, "")


def invoice(booking: Booking, payment_url: str) -> str:
    return (
        f"Dear {booking.customer_info.name},\n\n"
        "Here is the invoice for your trip.\n"
        f"Amount due: {booking.payment_info.total_price:,.2f}\n\n"
        f"Please pay using this link:\n{payment_url}"
    )


def daily_report(report: BookingReport) -> str:
    return (
        f"📊 Daily report for {report.start:%Y-%m-%d}\n\n"
        f"- New bookings: {report.total_bookings}\n"
        f"- Revenue (paid): {report.paid_revenue:,.2f}"
    )
