"""
Read-only views over a fleet state.

Nothing here mutates; pass a FleetStore.snapshot() so the view is built
from one consistent state.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import TYPE_CHECKING, Dict, List, Optional

from .assignment import DriverAssignment
from .config import Policy
from .document import Document
from .history_entry import ServiceHistoryEntry
from .job_card import JobCard
from .pending_work import PendingWork
from .rule import ScheduledService
from .scheduling import threshold_reached
from .status import DocumentStatus, Priority, RuleStatus, VehicleStatus

if TYPE_CHECKING:
    from .store import FleetState


@dataclass
class DriverHistory:
    """A driver's vehicles and the work done on them."""

    assignments: List[DriverAssignment] = field(default_factory=list)
    job_cards: List[JobCard] = field(default_factory=list)
    service_history: List[ServiceHistoryEntry] = field(default_factory=list)

    @property
    def vehicle_ids(self) -> List[str]:
        seen: List[str] = []
        for record in self.assignments:
            if record.vehicle_id not in seen:
                seen.append(record.vehicle_id)
        return seen


@dataclass
class Notification:
    """An alert for the notifications panel."""

    id: str
    type: str
    title: str
    message: str
    priority: Priority
    timestamp: str
    action_url: Optional[str] = None


def in_window(value: str, start: Optional[str] = None, end: Optional[str] = None) -> bool:
    """Check an ISO date against an inclusive [start, end] window."""
    day = value[:10]
    if start and day < start:
        return False
    if end and day > end:
        return False
    return True


# =============================================================================
# Per-vehicle and per-driver views
# =============================================================================


def vehicle_service_history(state: "FleetState", vehicle_id: str) -> List[ServiceHistoryEntry]:
    """Service history for a vehicle, newest first."""
    entries = [h for h in state.service_history.values() if h.vehicle_id == vehicle_id]
    return sorted(entries, key=lambda h: h.service_date, reverse=True)


def vehicle_pending_work(state: "FleetState", vehicle_id: str) -> List[PendingWork]:
    """Open pending work for a vehicle."""
    return [w for w in state.pending_work.values() if w.vehicle_id == vehicle_id and w.is_open]


def vehicle_scheduled_services(state: "FleetState", vehicle_id: str) -> List[ScheduledService]:
    return state.rules_for_vehicle(vehicle_id)


def vehicle_documents(state: "FleetState", vehicle_id: str) -> List[Document]:
    return [d for d in state.documents.values() if d.vehicle_id == vehicle_id]


def driver_documents(state: "FleetState", driver_id: str) -> List[Document]:
    return [d for d in state.documents.values() if d.driver_id == driver_id]


def last_job_card(state: "FleetState", vehicle_id: str) -> Optional[JobCard]:
    """Most recently created job card for a vehicle."""
    cards = [jc for jc in state.job_cards.values() if jc.vehicle_id == vehicle_id]
    if not cards:
        return None
    return max(cards, key=lambda jc: jc.created_at)


def driver_history(state: "FleetState", driver_id: str) -> DriverHistory:
    """
    Every vehicle a driver has been assigned to, with the job cards and
    service history of those vehicles. All lists newest first.
    """
    assignments = sorted(
        (a for a in state.assignments.values() if a.driver_id == driver_id),
        key=lambda a: a.assigned_at,
        reverse=True,
    )
    vehicle_ids = {a.vehicle_id for a in assignments}
    job_cards = sorted(
        (jc for jc in state.job_cards.values() if jc.vehicle_id in vehicle_ids),
        key=lambda jc: jc.created_at,
        reverse=True,
    )
    history = sorted(
        (h for h in state.service_history.values() if h.vehicle_id in vehicle_ids),
        key=lambda h: h.service_date,
        reverse=True,
    )
    return DriverHistory(assignments=assignments, job_cards=job_cards, service_history=history)


def due_services(
    state: "FleetState", vehicle_id: str, current_km: int, total_hours: int
) -> List[ScheduledService]:
    """
    Rules of a vehicle whose threshold the supplied readings have reached.

    Completed rules are included once their projected due point is passed.
    """
    vehicle = state.require_vehicle(vehicle_id, step="due_services")
    readings = replace(vehicle, current_km=current_km, total_hours=total_hours)
    return [
        rule for rule in state.rules_for_vehicle(vehicle_id)
        if threshold_reached(rule, readings)
    ]


# =============================================================================
# Notifications
# =============================================================================


def notification_set(
    state: "FleetState",
    policy: Optional[Policy] = None,
    now: Optional[datetime] = None,
) -> List[Notification]:
    """
    Due services, expiring or expired documents, low stock and open
    high-priority pending work, sorted by priority then most recent first.
    """
    policy = policy or Policy()
    stamp = (now or datetime.now()).isoformat(timespec="seconds")
    notifications = []

    def number(vehicle_id: Optional[str]) -> str:
        vehicle = state.vehicles.get(vehicle_id) if vehicle_id else None
        return vehicle.vehicle_number if vehicle else "Vehicle"

    for rule in state.scheduled_services.values():
        if rule.status != RuleStatus.DUE:
            continue
        notifications.append(Notification(
            id=f"notif-service-{rule.id}",
            type="service_due",
            title="Service Due",
            message=f"{number(rule.vehicle_id)} - {rule.service_type} is due",
            priority=Priority.HIGH,
            timestamp=stamp,
            action_url="/scheduled-services",
        ))

    for doc in state.documents.values():
        if doc.status == DocumentStatus.VALID:
            continue
        expired = doc.status == DocumentStatus.EXPIRED
        owner = number(doc.vehicle_id) if doc.vehicle_id else (doc.driver_id or "Driver")
        notifications.append(Notification(
            id=f"notif-doc-{doc.id}",
            type="document_expiring",
            title="Document Expired" if expired else "Document Expiring Soon",
            message=(
                f"{doc.document_type} for {owner} "
                f"{'has expired' if expired else 'expires on ' + doc.expiry_date}"
            ),
            priority=Priority.HIGH if expired else Priority.MEDIUM,
            timestamp=stamp,
            action_url="/documents",
        ))

    for item in state.inventory.values():
        if not 0 < item.stock_available < policy.low_stock_threshold:
            continue
        notifications.append(Notification(
            id=f"notif-stock-{item.id}",
            type="low_stock",
            title="Low Stock Alert",
            message=f"{item.name} - Only {item.stock_available} units remaining",
            priority=(
                Priority.HIGH
                if item.stock_available < policy.critical_stock_threshold
                else Priority.MEDIUM
            ),
            timestamp=stamp,
            action_url="/inventory",
        ))

    for work in state.pending_work.values():
        if work.priority != Priority.HIGH or not work.is_open:
            continue
        notifications.append(Notification(
            id=f"notif-work-{work.id}",
            type="pending_work",
            title="High Priority Pending Work",
            message=f"{work.vehicle_number or number(work.vehicle_id)} - {work.description}",
            priority=Priority.HIGH,
            timestamp=work.created_date or stamp,
            action_url="/pending-work",
        ))

    notifications.sort(key=lambda n: n.timestamp, reverse=True)
    notifications.sort(key=lambda n: n.priority.rank)
    return notifications


# =============================================================================
# Reports
# =============================================================================


def _job_cards_in(state: "FleetState", start: Optional[str], end: Optional[str]) -> List[JobCard]:
    return [jc for jc in state.job_cards.values() if in_window(jc.job_date, start, end)]


def job_card_summary(
    state: "FleetState", start: Optional[str] = None, end: Optional[str] = None
) -> List[Dict]:
    """Job card count and cost per month, oldest month first."""
    summary: Dict[str, Dict] = {}
    for jc in _job_cards_in(state, start, end):
        month = jc.job_date[:7]
        row = summary.setdefault(month, {"month": month, "count": 0, "cost": 0})
        row["count"] += 1
        row["cost"] += jc.total_cost
    return sorted(summary.values(), key=lambda r: r["month"])


def parts_consumption(
    state: "FleetState",
    start: Optional[str] = None,
    end: Optional[str] = None,
    limit: int = 10,
) -> List[Dict]:
    """Quantity and cost consumed per item, most expensive first."""
    consumption: Dict[str, Dict] = {}
    for jc in _job_cards_in(state, start, end):
        for part in jc.parts_used:
            row = consumption.setdefault(
                part.item_id,
                {"item_id": part.item_id, "name": part.item_name, "quantity": 0, "cost": 0},
            )
            row["quantity"] += part.quantity
            row["cost"] += part.line_total
    return sorted(consumption.values(), key=lambda r: r["cost"], reverse=True)[:limit]


def stock_valuation(state: "FleetState", limit: int = 10) -> List[Dict]:
    """Stock value (stock x average price) per item, highest first."""
    rows = [
        {"item_id": i.id, "name": i.name, "stock": i.stock_available, "value": i.stock_value}
        for i in state.inventory.values()
    ]
    return sorted(rows, key=lambda r: r["value"], reverse=True)[:limit]


def service_cost_analysis(
    state: "FleetState", start: Optional[str] = None, end: Optional[str] = None
) -> List[Dict]:
    """Count and total cost per service type, highest cost first."""
    analysis: Dict[str, Dict] = {}
    for entry in state.service_history.values():
        if not in_window(entry.service_date, start, end):
            continue
        row = analysis.setdefault(
            entry.service_type, {"type": entry.service_type, "count": 0, "total_cost": 0}
        )
        row["count"] += 1
        row["total_cost"] += entry.cost
    return sorted(analysis.values(), key=lambda r: r["total_cost"], reverse=True)


def worker_productivity(
    state: "FleetState", start: Optional[str] = None, end: Optional[str] = None
) -> List[Dict]:
    """Job cards per known worker, busiest first."""
    productivity: Dict[str, Dict] = {}
    for jc in _job_cards_in(state, start, end):
        for worker_id in jc.workers:
            worker = state.get_worker(worker_id)
            if worker is None:
                continue
            row = productivity.setdefault(
                worker_id, {"worker_id": worker_id, "name": worker.name, "job_cards": 0}
            )
            row["job_cards"] += 1
    return sorted(productivity.values(), key=lambda r: r["job_cards"], reverse=True)


def purchase_summary(
    state: "FleetState", start: Optional[str] = None, end: Optional[str] = None
) -> List[Dict]:
    """Purchase totals per month, oldest month first."""
    summary: Dict[str, Dict] = {}
    for item in state.inventory.values():
        for purchase in item.purchase_history:
            if not in_window(purchase.purchase_date, start, end):
                continue
            month = purchase.purchase_date[:7]
            row = summary.setdefault(month, {"month": month, "total": 0, "count": 0})
            row["total"] += purchase.total
            row["count"] += 1
    return sorted(summary.values(), key=lambda r: r["month"])


def fleet_totals(
    state: "FleetState", start: Optional[str] = None, end: Optional[str] = None
) -> Dict:
    job_cards = _job_cards_in(state, start, end)
    return {
        "total_job_cards": len(job_cards),
        "total_service_cost": sum(jc.total_cost for jc in job_cards),
        "total_inventory_value": sum(i.stock_value for i in state.inventory.values()),
        "active_vehicles": sum(
            1 for v in state.vehicles.values() if v.status == VehicleStatus.ACTIVE
        ),
    }
