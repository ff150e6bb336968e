from dataclasses import dataclass, field
from typing import List


@dataclass
class OperationResult:
    """Outcome of a committed booking operation.

    ``warnings`` carries post-commit notification failures; they never
    change the fact that the state change succeeded.
    """

    booking_id: str
    warnings: List[str] = field(default_factory=list)
