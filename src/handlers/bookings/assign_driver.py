import logging
import os
from boto3 import resource

from carbooking.repository.booking_repo import BookingRepository
from carbooking.repository.driver_repo import DriverRepository
from carbooking.services.lifecycle_service import LifecycleService
from carbooking.services.notification_service import NotificationDispatcher
from carbooking.schemas.bookings import AssignDriverRequest
from carbooking.models.users import ActorRole
from carbooking.utils.constants import DEFAULT_REGION
from carbooking.utils.custom_response import send_custom_response, send_error_response
from carbooking.utils.custom_exceptions import BookingError
from carbooking.utils.request_context import get_actor, get_json_body, get_path_param
from pydantic import ValidationError

logger = logging.getLogger()
logger.setLevel(logging.INFO)

TABLE_NAME = os.environ.get("TABLE_NAME")
REGION = os.environ.get("AWS_REGION", DEFAULT_REGION)
NOTIFICATION_QUEUE_URL = os.environ.get("NOTIFICATION_QUEUE_URL")

dynamodb = resource("dynamodb", region_name=REGION)
table = dynamodb.Table(TABLE_NAME)

lifecycle_service = LifecycleService(
    booking_repo=BookingRepository(table),
    driver_repo=DriverRepository(table),
    notifier=NotificationDispatcher(NOTIFICATION_QUEUE_URL, region=REGION),
)


def assign_driver(event, context):
    actor = get_actor(event)
    if actor is None:
        return send_custom_response(401, "Unauthorized")
    if actor.role != ActorRole.ADMIN:
        return send_custom_response(403, "Only admins can assign drivers")

    booking_id = get_path_param(event, "booking_id")
    if not booking_id:
        return send_custom_response(400, "booking_id is required in the path")

    try:
        request_body = AssignDriverRequest.model_validate(get_json_body(event))
    except ValidationError as e:
        formatted = "; ".join(f"{err['msg']}" for err in e.errors())
        return send_custom_response(400, formatted, {"error": "validation_error"})
    except ValueError as e:
        return send_custom_response(400, str(e), {"error": "validation_error"})

    try:
        result = lifecycle_service.assign_driver(
            booking_id=booking_id, actor=actor, driver_id=request_body.driver_id
        )
        return send_custom_response(
            200,
            "Driver assigned successfully",
            {
                "booking_id": booking_id,
                "driver_id": request_body.driver_id,
                "warnings": result.warnings,
            },
        )

    except BookingError as err:
        return send_error_response(err)

    except Exception:
        logger.exception(f"Unhandled error assigning driver to booking {booking_id}")
        return send_custom_response(500, "Internal server error")
