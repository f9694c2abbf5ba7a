"""
Entity store and the single-writer fleet store.

FleetState holds every entity collection keyed by id. FleetStore owns the
authoritative FleetState and applies mutations through transactions: each
transaction works on a deep copy and swaps it in only when the whole
operation succeeds, so readers never see a partially applied cascade and
a failed operation leaves nothing behind.
"""

import copy
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field, fields
from datetime import date, datetime
from types import MappingProxyType
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from .assignment import DriverAssignment
from .assignments import reassign_driver
from .config import Policy
from .document import Document
from .documents import add_document, refresh_document_statuses
from .errors import NotFoundError
from .history_entry import ServiceHistoryEntry
from .inventory import InventoryItem
from .job_card import JobCard
from .job_cards import record_job_card, update_job_card_status
from .ledger import add_inventory_item, adjust_item_stock, receive_purchase
from .pending import add_pending_work, update_pending_work_status
from .pending_work import PendingWork
from .requests import (
    AdjustStockRequest,
    ReassignDriverRequest,
    RecordJobCardRequest,
    RecordPurchaseRequest,
    UpdateJobCardStatusRequest,
)
from .rule import ScheduledService
from .scheduling import complete_scheduled_service
from .status import DocumentStatus, JobStatus, Priority, WorkStatus
from .vehicle import Driver, Vehicle, Worker

logger = logging.getLogger(__name__)


def _next_id(prefix: str, existing: Iterator[str]) -> str:
    """Next sequential id for ``prefix`` (e.g. JC013), above any existing one."""
    highest = 0
    for key in existing:
        suffix = key[len(prefix):]
        if key.startswith(prefix) and suffix.isdigit():
            highest = max(highest, int(suffix))
    return f"{prefix}{highest + 1:03d}"


@dataclass
class FleetState:
    """All fleet entity collections, keyed by id in insertion order."""

    vehicles: Dict[str, Vehicle] = field(default_factory=dict)
    drivers: Dict[str, Driver] = field(default_factory=dict)
    workers: Dict[str, Worker] = field(default_factory=dict)
    inventory: Dict[str, InventoryItem] = field(default_factory=dict)
    job_cards: Dict[str, JobCard] = field(default_factory=dict)
    service_history: Dict[str, ServiceHistoryEntry] = field(default_factory=dict)
    pending_work: Dict[str, PendingWork] = field(default_factory=dict)
    scheduled_services: Dict[str, ScheduledService] = field(default_factory=dict)
    documents: Dict[str, Document] = field(default_factory=dict)
    assignments: Dict[str, DriverAssignment] = field(default_factory=dict)

    @classmethod
    def from_lists(cls, **collections) -> "FleetState":
        """Build a state from lists of entities, e.g. vehicles=[...]."""
        state = cls()
        for name, items in collections.items():
            target = getattr(state, name)
            for item in items or []:
                target[item.id] = item
        return state

    # Lookups

    def get_vehicle(self, vehicle_id: str) -> Optional[Vehicle]:
        return self.vehicles.get(vehicle_id)

    def get_vehicle_by_number(self, number: str) -> Optional[Vehicle]:
        for vehicle in self.vehicles.values():
            if vehicle.vehicle_number == number:
                return vehicle
        return None

    def get_driver(self, driver_id: str) -> Optional[Driver]:
        return self.drivers.get(driver_id)

    def get_worker(self, worker_id: str) -> Optional[Worker]:
        return self.workers.get(worker_id)

    def get_item(self, item_id: str) -> Optional[InventoryItem]:
        return self.inventory.get(item_id)

    def get_job_card(self, job_card_id: str) -> Optional[JobCard]:
        return self.job_cards.get(job_card_id)

    def require_vehicle(self, vehicle_id: str, step: Optional[str] = None) -> Vehicle:
        vehicle = self.vehicles.get(vehicle_id)
        if vehicle is None:
            raise NotFoundError("Vehicle", vehicle_id, step)
        return vehicle

    def require_driver(self, driver_id: str, step: Optional[str] = None) -> Driver:
        driver = self.drivers.get(driver_id)
        if driver is None:
            raise NotFoundError("Driver", driver_id, step)
        return driver

    def require_item(self, item_id: str, step: Optional[str] = None) -> InventoryItem:
        item = self.inventory.get(item_id)
        if item is None:
            raise NotFoundError("InventoryItem", item_id, step)
        return item

    def require_job_card(self, job_card_id: str, step: Optional[str] = None) -> JobCard:
        job_card = self.job_cards.get(job_card_id)
        if job_card is None:
            raise NotFoundError("JobCard", job_card_id, step)
        return job_card

    def require_rule(self, rule_id: str, step: Optional[str] = None) -> ScheduledService:
        rule = self.scheduled_services.get(rule_id)
        if rule is None:
            raise NotFoundError("ScheduledService", rule_id, step)
        return rule

    def require_pending_work(self, work_id: str, step: Optional[str] = None) -> PendingWork:
        work = self.pending_work.get(work_id)
        if work is None:
            raise NotFoundError("PendingWork", work_id, step)
        return work

    def rules_for_vehicle(self, vehicle_id: str) -> List[ScheduledService]:
        return [r for r in self.scheduled_services.values() if r.vehicle_id == vehicle_id]

    # Identifiers

    def next_job_card_id(self) -> str:
        return _next_id("JC", iter(self.job_cards))

    def next_history_id(self) -> str:
        return _next_id("SH", iter(self.service_history))

    def next_pending_work_id(self) -> str:
        return _next_id("PW", iter(self.pending_work))

    def next_document_id(self) -> str:
        return _next_id("DOC", iter(self.documents))

    def next_assignment_id(self) -> str:
        return _next_id("DAH", iter(self.assignments))

    def next_purchase_id(self) -> str:
        return _next_id(
            "P",
            (p.id for item in self.inventory.values() for p in item.purchase_history),
        )


def _read_only(state: FleetState) -> FleetState:
    """A view of ``state`` whose collections cannot be modified."""
    return FleetState(**{f.name: MappingProxyType(getattr(state, f.name)) for f in fields(state)})


def _writable(state: FleetState) -> FleetState:
    return FleetState(**{f.name: dict(getattr(state, f.name)) for f in fields(state)})


class FleetStore:
    """
    Single authoritative fleet state with serialized writes.

    Args:
        state: Initial state (empty when omitted)
        policy: Engine policy
        on_commit: Called with the new state before it is published;
            raising aborts the commit
        clock: Returns the current datetime (for timestamps and "today")
    """

    def __init__(
        self,
        state: Optional[FleetState] = None,
        policy: Optional[Policy] = None,
        on_commit: Optional[Callable[[FleetState], None]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._state = _writable(state) if state is not None else FleetState()
        self._view = _read_only(self._state)
        self.policy = policy or Policy()
        self._on_commit = on_commit
        self._clock = clock or datetime.now
        self._lock = threading.RLock()

    def now(self) -> datetime:
        return self._clock()

    def today(self) -> date:
        return self._clock().date()

    def snapshot(self) -> FleetState:
        """
        The current committed state, as read-only collections.

        The same view is returned until the next commit. Entities inside it
        are shared with the store and must not be modified; change them
        through the store's operations.
        """
        with self._lock:
            return self._view

    @property
    def state(self) -> FleetState:
        return self.snapshot()

    @contextmanager
    def transaction(self) -> Iterator[FleetState]:
        """Yield a working copy; publish it only if the block succeeds."""
        with self._lock:
            working = copy.deepcopy(self._state)
            try:
                yield working
            except Exception as e:
                logger.info("Transaction rolled back: %s", e)
                raise
            if self._on_commit is not None:
                self._on_commit(working)
            self._state = working
            self._view = _read_only(working)

    # Commands

    def execute(self, request):
        """Apply a request object and return the operation's result."""
        if isinstance(request, RecordJobCardRequest):
            return self.record_job_card(request)
        if isinstance(request, AdjustStockRequest):
            return self.adjust_stock(request.item_id, request.delta)
        if isinstance(request, RecordPurchaseRequest):
            return self.record_purchase(request)
        if isinstance(request, ReassignDriverRequest):
            return self.reassign_driver(
                request.vehicle_id, request.new_driver_id, request.reason, request.actor
            )
        if isinstance(request, UpdateJobCardStatusRequest):
            return self.update_job_card_status(request.job_card_id, request.status)
        raise TypeError(f"Unsupported request type: {type(request).__name__}")

    def record_job_card(self, request: RecordJobCardRequest) -> JobCard:
        with self.transaction() as state:
            return record_job_card(state, request, self.policy, self.now())

    def update_job_card_status(self, job_card_id: str, status: JobStatus) -> JobCard:
        with self.transaction() as state:
            return update_job_card_status(state, job_card_id, status)

    def adjust_stock(self, item_id: str, delta: int) -> InventoryItem:
        with self.transaction() as state:
            return adjust_item_stock(state, item_id, delta, self.policy)

    def record_purchase(self, request: RecordPurchaseRequest) -> InventoryItem:
        with self.transaction() as state:
            return receive_purchase(state, request)

    def add_inventory_item(self, item: InventoryItem) -> InventoryItem:
        with self.transaction() as state:
            return add_inventory_item(state, item)

    def reassign_driver(
        self,
        vehicle_id: str,
        new_driver_id: Optional[str],
        reason: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> Tuple[Vehicle, List[DriverAssignment]]:
        with self.transaction() as state:
            return reassign_driver(
                state, vehicle_id, new_driver_id, self.now(), reason=reason, actor=actor
            )

    def complete_scheduled_service(self, rule_id: str) -> ScheduledService:
        with self.transaction() as state:
            return complete_scheduled_service(state, rule_id, self.policy, self.today())

    def add_pending_work(
        self,
        vehicle_id: str,
        description: str,
        priority: Priority = Priority.MEDIUM,
        due_date: Optional[str] = None,
    ) -> PendingWork:
        with self.transaction() as state:
            return add_pending_work(
                state, vehicle_id, description, priority, self.today(), due_date
            )

    def update_pending_work_status(self, work_id: str, status: WorkStatus) -> PendingWork:
        with self.transaction() as state:
            return update_pending_work_status(state, work_id, status)

    def add_document(
        self,
        document_type: str,
        document_number: str,
        expiry_date: str,
        vehicle_id: Optional[str] = None,
        driver_id: Optional[str] = None,
        issue_date: str = "",
        file_url: str = "",
    ) -> Document:
        with self.transaction() as state:
            return add_document(
                state,
                document_type,
                document_number,
                expiry_date,
                self.policy,
                self.today(),
                vehicle_id=vehicle_id,
                driver_id=driver_id,
                issue_date=issue_date,
                file_url=file_url,
            )

    def refresh_document_statuses(self) -> Dict[str, DocumentStatus]:
        with self.transaction() as state:
            return refresh_document_statuses(state, self.policy, self.today())
