from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Customer:
    user_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    display_name: Optional[str] = None
    picture_url: Optional[str] = None
    last_activity: Optional[datetime] = None
