from botocore.exceptions import ClientError
import logging
from typing import Optional
from carbooking.models.drivers import Driver, DriverStatus
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types_boto3_dynamodb.service_resource import Table
else:
    Table = object


logger = logging.getLogger(__name__)


class DriverRepository:
    def __init__(self, table: Table):
        self.table = table

    @staticmethod
    def key(driver_id: str) -> dict:
        return {"pk": f"DRIVER#{driver_id}", "sk": "DETAILS"}

    @classmethod
    def status_update(cls, table_name: str, driver_id: str, status: DriverStatus) -> dict:
        return {
            "Update": {
                "TableName": table_name,
                "Key": cls.key(driver_id),
                "UpdateExpression": "SET #driver_status = :new_value",
                "ExpressionAttributeNames": {"#driver_status": "driver_status"},
                "ExpressionAttributeValues": {":new_value": status.value},
                "ConditionExpression": "attribute_exists(pk)",
            }
        }

    def get_driver(self, driver_id: str) -> Optional[Driver]:
        try:
            response = self.table.get_item(Key=self.key(driver_id))
        except ClientError as err:
            logger.error(f"Error retrieving driver {driver_id}: {err}")
            raise

        item = response.get("Item")
        if not item:
            return None

        return Driver(
            driver_id=driver_id,
            name=item.get("name", ""),
            status=DriverStatus(item["driver_status"]),
            line_user_id=item.get("line_user_id"),
        )
