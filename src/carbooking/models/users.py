from enum import Enum
from dataclasses import dataclass


class ActorRole(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"
    DRIVER = "driver"


@dataclass(frozen=True)
class Actor:
    actor_id: str
    role: ActorRole
