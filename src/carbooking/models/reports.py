from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List


@dataclass
class BookingReport:
    start: datetime
    end: datetime
    total_bookings: int = 0
    paid_revenue: float = 0.0
    outstanding_amount: float = 0.0
    jobs_per_driver: Dict[str, int] = field(default_factory=dict)
    pickup_counts: Dict[str, int] = field(default_factory=dict)


@dataclass
class ReportSettings:
    report_hour: int
    recipients: List[str]
    last_report_sent_date: str = ""
