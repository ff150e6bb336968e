from enum import Enum
from dataclasses import dataclass
from typing import Optional


class DriverStatus(str, Enum):
    AVAILABLE = "available"
    BUSY = "busy"
    OFFLINE = "offline"


@dataclass
class Driver:
    driver_id: str
    name: str
    status: DriverStatus = DriverStatus.AVAILABLE
    line_user_id: Optional[str] = None
