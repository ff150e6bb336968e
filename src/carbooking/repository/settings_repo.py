from botocore.exceptions import ClientError
import logging
from typing import Optional
from carbooking.models.reports import ReportSettings
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types_boto3_dynamodb.service_resource import Table
else:
    Table = object


logger = logging.getLogger(__name__)

SETTINGS_KEY = {"pk": "SETTINGS", "sk": "NOTIFICATIONS"}


class SettingsRepository:
    def __init__(self, table: Table):
        self.table = table

    def get_report_settings(self) -> Optional[ReportSettings]:
        try:
            response = self.table.get_item(Key=SETTINGS_KEY)
        except ClientError as err:
            logger.error(f"Error retrieving notification settings: {err}")
            raise

        item = response.get("Item")
        if not item:
            return None

        return ReportSettings(
            report_hour=int(item.get("report_hour", 0)),
            recipients=list(item.get("report_recipients", [])),
            last_report_sent_date=item.get("last_report_sent_date", ""),
        )

    def mark_report_sent(self, report_date: str):
        try:
            self.table.update_item(
                Key=SETTINGS_KEY,
                UpdateExpression="SET #attribute = :value",
                ExpressionAttributeNames={"#attribute": "last_report_sent_date"},
                ExpressionAttributeValues={":value": report_date},
                ConditionExpression="attribute_exists(pk)",
            )
        except ClientError as err:
            logger.error(f"Error recording report date {report_date}: {err}")
            raise
