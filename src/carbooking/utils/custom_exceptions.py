class BookingError(Exception):
    kind = "booking_error"
    status_code = 400


class InvalidRequest(BookingError):
    kind = "validation_error"
    status_code = 400


class BookingConflict(BookingError):
    kind = "conflict"
    status_code = 409

    def __init__(self, message: str = "vehicle already booked for the requested window"):
        super().__init__(message)


class NotFoundException(BookingError):
    kind = "not_found"

    def __init__(self, resource: str, identifier: str, status_code: int = 404):
        super().__init__(resource, identifier)
        self.resource = resource
        self.identifier = identifier
        self.status_code = status_code

    def __str__(self):
        return f"{self.resource} '{self.identifier}' not found"


class PermissionDenied(BookingError):
    kind = "permission_denied"
    status_code = 403


class InvalidTransition(BookingError):
    kind = "invalid_state"
    status_code = 409


class TransientStoreError(BookingError):
    kind = "transient_store_error"
    status_code = 503


class ReviewNotAllowed(BookingError):
    status_code = 409


class BookingNotCompleted(ReviewNotAllowed):
    kind = "not_completed"

    def __init__(self, message: str = "Cannot request review for an incomplete booking"):
        super().__init__(message)


class AlreadyReviewed(ReviewNotAllowed):
    kind = "already_reviewed"

    def __init__(self, message: str = "This booking has already been reviewed"):
        super().__init__(message)


class MissingCustomerIdentity(ReviewNotAllowed):
    kind = "missing_identity"
    status_code = 422

    def __init__(self, message: str = "Customer identity not found for booking"):
        super().__init__(message)
