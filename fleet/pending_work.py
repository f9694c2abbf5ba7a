"""PendingWork class for open defect and repair requests."""

from dataclasses import dataclass
from typing import Optional

from .status import Priority, WorkStatus


@dataclass
class PendingWork:
    """An ad-hoc repair request for a vehicle."""

    id: str
    vehicle_id: str
    description: str
    priority: Priority = Priority.MEDIUM
    created_date: str = ""
    vehicle_number: str = ""
    due_date: Optional[str] = None
    status: WorkStatus = WorkStatus.PENDING
    job_card_id: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.status != WorkStatus.COMPLETED
