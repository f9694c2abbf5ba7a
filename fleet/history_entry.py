"""ServiceHistoryEntry class for completed service records."""

from dataclasses import dataclass, field
from typing import List, Optional

from .job_card import JobCardPart


@dataclass
class ServiceHistoryEntry:
    """A record of one service performed, generated from a job card."""

    id: str
    vehicle_id: str
    service_type: str
    service_date: str
    work_done: str = ""
    parts_used: List[JobCardPart] = field(default_factory=list)
    cost: float = 0
    job_card_id: Optional[str] = None
