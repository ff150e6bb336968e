import logging
import os
from boto3 import resource

from carbooking.repository.booking_repo import BookingRepository
from carbooking.services.payment_service import PaymentService
from carbooking.models.users import ActorRole
from carbooking.utils.constants import DEFAULT_REGION
from carbooking.utils.custom_response import send_custom_response, send_error_response
from carbooking.utils.custom_exceptions import BookingError
from carbooking.utils.request_context import get_actor, get_path_param

logger = logging.getLogger()
logger.setLevel(logging.INFO)

TABLE_NAME = os.environ.get("TABLE_NAME")
REGION = os.environ.get("AWS_REGION", DEFAULT_REGION)

dynamodb = resource("dynamodb", region_name=REGION)
table = dynamodb.Table(TABLE_NAME)

payment_service = PaymentService(booking_repo=BookingRepository(table))


def confirm_payment(event, context):
    actor = get_actor(event)
    if actor is None:
        return send_custom_response(401, "Unauthorized")
    if actor.role != ActorRole.ADMIN:
        return send_custom_response(403, "Only admins can confirm payments")

    booking_id = get_path_param(event, "booking_id")
    if not booking_id:
        return send_custom_response(400, "booking_id is required in the path")

    try:
        payment_service.confirm_payment(booking_id)
        return send_custom_response(200, "Payment confirmed", {"booking_id": booking_id})

    except BookingError as err:
        return send_error_response(err)

    except Exception:
        logger.exception(f"Unhandled error confirming payment for booking {booking_id}")
        return send_custom_response(500, "Internal server error")
