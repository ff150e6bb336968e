import logging
import os
from boto3 import resource

from carbooking.repository.booking_repo import BookingRepository
from carbooking.services.notification_service import NotificationDispatcher
from carbooking.services.review_service import ReviewService
from carbooking.models.users import ActorRole
from carbooking.utils.constants import DEFAULT_REGION
from carbooking.utils.custom_response import send_custom_response, send_error_response
from carbooking.utils.custom_exceptions import BookingError
from carbooking.utils.request_context import get_actor, get_path_param

logger = logging.getLogger()
logger.setLevel(logging.INFO)

TABLE_NAME = os.environ.get("TABLE_NAME")
REGION = os.environ.get("AWS_REGION", DEFAULT_REGION)
NOTIFICATION_QUEUE_URL = os.environ.get("NOTIFICATION_QUEUE_URL")
REVIEW_LINK_BASE = os.environ.get("REVIEW_LINK_BASE", "")

dynamodb = resource("dynamodb", region_name=REGION)
table = dynamodb.Table(TABLE_NAME)

review_service = ReviewService(
    booking_repo=BookingRepository(table),
    notifier=NotificationDispatcher(NOTIFICATION_QUEUE_URL, region=REGION),
    review_link_base=REVIEW_LINK_BASE,
)


def request_review(event, context):
    actor = get_actor(event)
    if actor is None:
        return send_custom_response(401, "Unauthorized")
    if actor.role != ActorRole.ADMIN:
        return send_custom_response(403, "Only admins can request reviews")

    booking_id = get_path_param(event, "booking_id")
    if not booking_id:
        return send_custom_response(400, "booking_id is required in the path")

    try:
        result = review_service.request_review(booking_id)
        return send_custom_response(
            200,
            "Review request sent",
            {"booking_id": booking_id, "warnings": result.warnings},
        )

    except BookingError as err:
        return send_error_response(err)

    except Exception:
        logger.exception(f"Unhandled error requesting review for booking {booking_id}")
        return send_custom_response(500, "Internal server error")
