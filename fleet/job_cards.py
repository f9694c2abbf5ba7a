"""
Job card orchestrator.

Recording a job card cascades across six collections:

1. Create the job card (total cost = sum of part line totals)
2. Deduct consumed parts from stock
3. Generate service history (one entry per service, cost split evenly;
   a single "General Maintenance" entry when no service was named but
   parts or remarks were given)
4. Project matching scheduled service rules
5. Update the vehicle's readings and next-service thresholds, then
   re-evaluate its open rules
6. Close the vehicle's open pending work, linked to the new job card

All references are validated before the first mutation. Callers run this
inside a FleetStore transaction so a failure leaves the state untouched.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from .config import Policy
from .errors import InvalidTransitionError
from .history_entry import ServiceHistoryEntry
from .job_card import JobCard, JobCardPart
from .ledger import adjust_stock, check_stock
from .pending_work import PendingWork
from .requests import RecordJobCardRequest
from .scheduling import ServiceEvent, project_rules, refresh_rule_statuses
from .status import JobStatus, TriggerType, WorkStatus

if TYPE_CHECKING:
    from .store import FleetState

logger = logging.getLogger(__name__)

GENERAL_MAINTENANCE = "General Maintenance"


def _snapshot_parts(state: "FleetState", parts: List[JobCardPart]) -> List[JobCardPart]:
    """Fill in item name and SKU so the job card keeps them if the item changes."""
    snapshots = []
    for part in parts:
        item = state.require_item(part.item_id, step="validate_parts")
        snapshots.append(
            replace(
                part,
                item_name=part.item_name or item.name,
                sku=part.sku or item.sku,
            )
        )
    return snapshots


def _history_entries(state: "FleetState", job_card: JobCard) -> List[ServiceHistoryEntry]:
    entries = []
    if job_card.services_done:
        share = job_card.total_cost / len(job_card.services_done)
        for service_type in job_card.services_done:
            entry = ServiceHistoryEntry(
                id=state.next_history_id(),
                vehicle_id=job_card.vehicle_id,
                service_type=service_type,
                service_date=job_card.job_date,
                work_done=job_card.remarks or f"Service completed: {service_type}",
                parts_used=list(job_card.parts_used),
                cost=share,
                job_card_id=job_card.id,
            )
            state.service_history[entry.id] = entry
            entries.append(entry)
    elif job_card.parts_used or job_card.remarks:
        entry = ServiceHistoryEntry(
            id=state.next_history_id(),
            vehicle_id=job_card.vehicle_id,
            service_type=GENERAL_MAINTENANCE,
            service_date=job_card.job_date,
            work_done=job_card.remarks or "General maintenance work completed",
            parts_used=list(job_card.parts_used),
            cost=job_card.total_cost,
            job_card_id=job_card.id,
        )
        state.service_history[entry.id] = entry
        entries.append(entry)
    return entries


def _update_vehicle(state: "FleetState", job_card: JobCard) -> None:
    vehicle = state.vehicles[job_card.vehicle_id]
    rules = state.rules_for_vehicle(vehicle.id)

    km_thresholds = [
        r.next_due_km for r in rules
        if r.trigger_type == TriggerType.KM and r.next_due_km
    ]
    hours_thresholds = [
        job_card.total_hours + r.numeric_trigger for r in rules
        if r.trigger_type == TriggerType.HOURS and r.numeric_trigger is not None
    ]

    state.vehicles[vehicle.id] = replace(
        vehicle,
        current_km=job_card.total_km,
        total_hours=job_card.total_hours,
        next_service_km=min(km_thresholds) if km_thresholds else vehicle.next_service_km,
        next_service_hours=(
            int(min(hours_thresholds)) if hours_thresholds else vehicle.next_service_hours
        ),
    )


def _matches_services(work: PendingWork, services: List[str]) -> bool:
    description = work.description.lower()
    return any(service.lower() in description for service in services)


def _close_pending_work(
    state: "FleetState", job_card: JobCard, policy: Policy
) -> List[PendingWork]:
    closed = []
    for work in list(state.pending_work.values()):
        if work.vehicle_id != job_card.vehicle_id or not work.is_open:
            continue
        if not policy.close_all_pending_work_on_any_service and not _matches_services(
            work, job_card.services_done
        ):
            continue
        updated = replace(work, status=WorkStatus.COMPLETED, job_card_id=job_card.id)
        state.pending_work[work.id] = updated
        closed.append(updated)
    return closed


def record_job_card(
    state: "FleetState",
    request: RecordJobCardRequest,
    policy: Optional[Policy] = None,
    now: Optional[datetime] = None,
) -> JobCard:
    """
    Record a maintenance event and apply its cascade to ``state``.

    Args:
        state: Working state to mutate
        request: The event to record
        policy: Engine policy (defaults when omitted)
        now: Creation timestamp; its date is "today" for projections

    Returns:
        The created JobCard

    Raises:
        NotFoundError: If the vehicle or a consumed item does not exist
        InsufficientStockError: If the policy is strict and stock is short
    """
    policy = policy or Policy()
    now = now or datetime.now()

    # Validate everything before the first mutation
    vehicle = state.require_vehicle(request.vehicle_id, step="validate_vehicle")
    check_stock(state, request.parts_used, policy)
    parts = _snapshot_parts(state, request.parts_used)

    job_card = JobCard(
        id=state.next_job_card_id(),
        vehicle_id=vehicle.id,
        vehicle_number=vehicle.vehicle_number,
        job_date=request.job_date,
        start_time=request.start_time,
        end_time=request.end_time,
        total_km=request.total_km,
        total_hours=request.total_hours,
        workers=list(request.worker_ids),
        parts_used=parts,
        services_done=list(request.services_done),
        remarks=request.remarks,
        photo_proofs=list(request.photo_refs),
        documents=list(request.document_refs),
        total_cost=sum(p.line_total for p in parts),
        status=request.status,
        created_at=now.isoformat(timespec="seconds"),
    )
    state.job_cards[job_card.id] = job_card
    logger.debug("Created job card %s for %s", job_card.id, vehicle.id)

    for part in parts:
        item = state.inventory[part.item_id]
        state.inventory[item.id] = adjust_stock(item, -part.quantity)
    logger.debug("Deducted %d part lines", len(parts))

    entries = _history_entries(state, job_card)
    logger.debug("Generated %d service history entries", len(entries))

    projected = project_rules(
        state, vehicle.id, ServiceEvent.from_job_card(job_card), policy, now.date()
    )
    logger.debug("Projected %d scheduled services", len(projected))

    _update_vehicle(state, job_card)
    refresh_rule_statuses(state, vehicle.id)

    closed = _close_pending_work(state, job_card, policy)

    logger.info(
        "Recorded job card %s for %s: cost %s, %d history entries, "
        "%d rules projected, %d pending items closed",
        job_card.id, vehicle.vehicle_number, job_card.total_cost,
        len(entries), len(projected), len(closed),
    )
    return job_card


def update_job_card_status(
    state: "FleetState", job_card_id: str, status: JobStatus
) -> JobCard:
    """
    Move a job card forward in its lifecycle.

    Raises:
        NotFoundError: If the job card does not exist
        InvalidTransitionError: If ``status`` is behind the current status
    """
    job_card = state.require_job_card(job_card_id, step="update_job_card_status")
    if status.order < job_card.status.order:
        raise InvalidTransitionError(
            "JobCard", job_card_id, job_card.status.value, status.value
        )
    updated = replace(job_card, status=status)
    state.job_cards[job_card_id] = updated
    return updated
