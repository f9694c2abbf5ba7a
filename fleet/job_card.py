"""JobCard class for maintenance visits."""

from dataclasses import dataclass, field
from typing import List

from .status import JobStatus


@dataclass(frozen=True)
class JobCardPart:
    """Snapshot of a consumed part, priced at the time of the job."""

    item_id: str
    quantity: int
    unit_price: float
    line_total: float
    item_name: str = ""
    sku: str = ""


@dataclass
class JobCard:
    """One maintenance visit for a vehicle.

    Everything except ``status`` is fixed at creation. ``total_cost`` is the
    sum of the part line totals at that moment and is never recomputed.
    """

    id: str
    vehicle_id: str
    job_date: str
    created_at: str
    vehicle_number: str = ""
    start_time: str = ""
    end_time: str = ""
    total_km: int = 0
    total_hours: int = 0
    workers: List[str] = field(default_factory=list)
    parts_used: List[JobCardPart] = field(default_factory=list)
    services_done: List[str] = field(default_factory=list)
    remarks: str = ""
    photo_proofs: List[str] = field(default_factory=list)
    documents: List[str] = field(default_factory=list)
    total_cost: float = 0
    status: JobStatus = JobStatus.COMPLETED
