from carbooking.models.customers import Customer
from carbooking.utils.datetime_normaliser import to_iso_string

MERGE_FIELDS = (
    "name",
    "email",
    "phone",
    "display_name",
    "picture_url",
    "last_activity",
)


class CustomerRepository:
    """Customer records are only written as part of booking admission."""

    @staticmethod
    def key(user_id: str) -> dict:
        return {"pk": f"CUSTOMER#{user_id}", "sk": "DETAILS"}

    @classmethod
    def merge_update(cls, table_name: str, customer: Customer) -> dict:
        """Transaction item that creates the customer or overwrites only the supplied fields."""
        names = {"#user_id": "user_id"}
        values = {":user_id": customer.user_id}
        clauses = ["#user_id = :user_id"]

        for attr in MERGE_FIELDS:
            value = getattr(customer, attr)
            if value is None:
                continue
            if attr == "last_activity":
                value = to_iso_string(value)
            names[f"#{attr}"] = attr
            values[f":{attr}"] = value
            clauses.append(f"#{attr} = :{attr}")

        return {
            "Update": {
                "TableName": table_name,
                "Key": cls.key(customer.user_id),
                "UpdateExpression": "SET " + ", ".join(clauses),
                "ExpressionAttributeNames": names,
                "ExpressionAttributeValues": values,
            }
        }
