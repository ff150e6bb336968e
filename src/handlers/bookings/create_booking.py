import json
import logging
import os
from boto3 import resource

from carbooking.repository.booking_repo import BookingRepository
from carbooking.services.booking_service import BookingService
from carbooking.services.notification_service import NotificationDispatcher
from carbooking.schemas.bookings import BookingRequest
from carbooking.utils.constants import DEFAULT_REGION
from carbooking.utils.custom_response import send_custom_response, send_error_response
from carbooking.utils.custom_exceptions import BookingError
from carbooking.utils.request_context import get_actor
from carbooking.models.users import ActorRole
from pydantic import ValidationError

logger = logging.getLogger()
logger.setLevel(logging.INFO)

TABLE_NAME = os.environ.get("TABLE_NAME")
REGION = os.environ.get("AWS_REGION", DEFAULT_REGION)
NOTIFICATION_QUEUE_URL = os.environ.get("NOTIFICATION_QUEUE_URL")

dynamodb = resource("dynamodb", region_name=REGION)
table = dynamodb.Table(TABLE_NAME)

booking_repo = BookingRepository(table)
notifier = NotificationDispatcher(NOTIFICATION_QUEUE_URL, region=REGION)

booking_service = BookingService(booking_repo=booking_repo, notifier=notifier)


def create_booking(event, context):
    if not event.get("body"):
        return send_custom_response(400, "Request body is required")

    actor = get_actor(event)
    if actor is None:
        return send_custom_response(401, "Unauthorized")
    if actor.role != ActorRole.CUSTOMER:
        return send_custom_response(403, "Only customers can create bookings")

    try:
        body = json.loads(event["body"])
        request_body = BookingRequest.model_validate({**body, "user_id": actor.actor_id})
    except ValidationError as e:
        formatted = "; ".join(f"{err['msg']}" for err in e.errors())
        return send_custom_response(400, formatted, {"error": "validation_error"})
    except (ValueError, TypeError) as e:
        return send_custom_response(400, str(e) or "Invalid JSON body", {"error": "validation_error"})

    try:
        result = booking_service.add_booking(request_body)

        return send_custom_response(
            201,
            "Booking created successfully",
            {"booking_id": result.booking_id, "warnings": result.warnings},
        )

    except BookingError as err:
        return send_error_response(err)

    except Exception:
        logger.exception("Unhandled error creating booking")
        return send_custom_response(500, "Internal server error")
