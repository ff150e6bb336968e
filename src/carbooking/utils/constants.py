TRANSACTION_MAX_ATTEMPTS = 3
MAX_RENTAL_HOURS = 24 * 14
CREATED_DAY_INDEX = "created_day-created_at-index"
DEFAULT_REGION = "ap-southeast-1"
DEFAULT_REPORT_TIMEZONE = "Asia/Bangkok"
CUSTOMER_CANCEL_REASON = "Cancelled by customer."
