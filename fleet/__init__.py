"""
Fleet maintenance state-transition engine.

This package keeps vehicle readings, stock levels, service history,
scheduled maintenance and pending work consistent as job cards are recorded:
- Status enums: vehicle, rule, job, work, priority and document states
- Entities: Vehicle, Driver, Worker, InventoryItem, PurchaseRecord, JobCard,
  ServiceHistoryEntry, ScheduledService, PendingWork, Document, DriverAssignment
- Ledger: stock adjustments and purchase receipts (weighted-average pricing)
- Scheduling: next-due projection and rule status evaluation
- Job cards: the cascading record_job_card operation
- Assignments: driver-to-vehicle timeline
- Queries: read-only views, notifications and reports
- FleetStore: single-writer store with transactional commits
"""

from .status import (
    DocumentStatus,
    JobStatus,
    Priority,
    RuleStatus,
    TriggerType,
    VehicleStatus,
    WorkStatus,
)
from .vehicle import Vehicle, Driver, Worker
from .inventory import InventoryItem, PurchaseRecord
from .job_card import JobCard, JobCardPart
from .history_entry import ServiceHistoryEntry
from .rule import ScheduledService
from .pending_work import PendingWork
from .document import Document
from .assignment import DriverAssignment
from .config import Policy
from .errors import FleetError, NotFoundError, InsufficientStockError, InvalidTransitionError
from .calculations import weighted_average_price, check_rule_status, calc_document_status
from .ledger import adjust_stock, record_purchase
from .scheduling import ServiceEvent, project_next_due, evaluate_status, threshold_reached
from .job_cards import record_job_card
from .assignments import reassign_driver, driver_at
from .requests import (
    RecordJobCardRequest,
    AdjustStockRequest,
    RecordPurchaseRequest,
    ReassignDriverRequest,
    UpdateJobCardStatusRequest,
)
from .store import FleetState, FleetStore
from .queries import driver_history, due_services, notification_set
from .loader import load_fleet, save_fleet

__all__ = [
    "DocumentStatus",
    "JobStatus",
    "Priority",
    "RuleStatus",
    "TriggerType",
    "VehicleStatus",
    "WorkStatus",
    "Vehicle",
    "Driver",
    "Worker",
    "InventoryItem",
    "PurchaseRecord",
    "JobCard",
    "JobCardPart",
    "ServiceHistoryEntry",
    "ScheduledService",
    "PendingWork",
    "Document",
    "DriverAssignment",
    "Policy",
    "FleetError",
    "NotFoundError",
    "InsufficientStockError",
    "InvalidTransitionError",
    "weighted_average_price",
    "check_rule_status",
    "calc_document_status",
    "adjust_stock",
    "record_purchase",
    "ServiceEvent",
    "project_next_due",
    "evaluate_status",
    "threshold_reached",
    "record_job_card",
    "reassign_driver",
    "driver_at",
    "RecordJobCardRequest",
    "AdjustStockRequest",
    "RecordPurchaseRequest",
    "ReassignDriverRequest",
    "UpdateJobCardStatusRequest",
    "FleetState",
    "FleetStore",
    "driver_history",
    "due_services",
    "notification_set",
    "load_fleet",
    "save_fleet",
]
