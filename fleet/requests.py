"""Request objects accepted by FleetStore.execute()."""

from dataclasses import dataclass, field
from typing import List, Optional

from .job_card import JobCardPart
from .status import JobStatus


@dataclass
class RecordJobCardRequest:
    """A maintenance event to record. Parts arrive already priced."""

    vehicle_id: str
    job_date: str
    start_time: str = ""
    end_time: str = ""
    total_km: int = 0
    total_hours: int = 0
    worker_ids: List[str] = field(default_factory=list)
    parts_used: List[JobCardPart] = field(default_factory=list)
    services_done: List[str] = field(default_factory=list)
    remarks: str = ""
    photo_refs: List[str] = field(default_factory=list)
    document_refs: List[str] = field(default_factory=list)
    status: JobStatus = JobStatus.COMPLETED


@dataclass
class AdjustStockRequest:
    item_id: str
    delta: int


@dataclass
class RecordPurchaseRequest:
    """A stock receipt for one item."""

    item_id: str
    quantity: int
    unit_price: float
    purchase_date: str
    supplier: str = ""
    branch: str = ""
    sub_branch: str = ""
    invoice_url: Optional[str] = None


@dataclass
class ReassignDriverRequest:
    """Assign ``new_driver_id`` to a vehicle, or unassign with None."""

    vehicle_id: str
    new_driver_id: Optional[str]
    reason: Optional[str] = None
    actor: Optional[str] = None


@dataclass
class UpdateJobCardStatusRequest:
    job_card_id: str
    status: JobStatus
