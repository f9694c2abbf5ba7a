"""Pending work operations."""

import logging
from dataclasses import replace
from datetime import date
from typing import TYPE_CHECKING, Optional

from .errors import InvalidTransitionError
from .pending_work import PendingWork
from .status import Priority, WorkStatus

if TYPE_CHECKING:
    from .store import FleetState

logger = logging.getLogger(__name__)


def add_pending_work(
    state: "FleetState",
    vehicle_id: str,
    description: str,
    priority: Priority,
    today: date,
    due_date: Optional[str] = None,
) -> PendingWork:
    """Open a repair request for a vehicle."""
    vehicle = state.require_vehicle(vehicle_id, step="add_pending_work")
    work = PendingWork(
        id=state.next_pending_work_id(),
        vehicle_id=vehicle_id,
        vehicle_number=vehicle.vehicle_number,
        description=description,
        priority=priority,
        created_date=today.isoformat(),
        due_date=due_date,
    )
    state.pending_work[work.id] = work
    logger.info("Added pending work %s for %s (%s)", work.id, vehicle_id, priority.value)
    return work


def update_pending_work_status(
    state: "FleetState", work_id: str, status: WorkStatus
) -> PendingWork:
    """Move a pending work item forward (Pending -> In Progress -> Completed)."""
    work = state.require_pending_work(work_id, step="update_pending_work_status")
    if status.order < work.status.order:
        raise InvalidTransitionError("PendingWork", work_id, work.status.value, status.value)
    updated = replace(work, status=status)
    state.pending_work[work_id] = updated
    return updated
