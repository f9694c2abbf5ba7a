"""
Driver assignment tracker.

Keeps a timeline of driver-to-vehicle intervals so "who was driving at
time X" can be answered later. For any vehicle at most one interval is
open (has no ``unassigned_at``) at a time.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional, Tuple

from .assignment import DriverAssignment
from .vehicle import Vehicle

if TYPE_CHECKING:
    from .store import FleetState

logger = logging.getLogger(__name__)

DEFAULT_ACTOR = "System Admin"


def _timestamp(when: datetime) -> str:
    return when.isoformat(timespec="seconds")


def open_assignment(state: "FleetState", vehicle_id: str) -> Optional[DriverAssignment]:
    """The currently open assignment for a vehicle, if any."""
    for record in state.assignments.values():
        if record.vehicle_id == vehicle_id and record.is_open:
            return record
    return None


def reassign_driver(
    state: "FleetState",
    vehicle_id: str,
    new_driver_id: Optional[str],
    now: Optional[datetime] = None,
    reason: Optional[str] = None,
    actor: Optional[str] = None,
) -> Tuple[Vehicle, List[DriverAssignment]]:
    """
    Change the driver assigned to a vehicle.

    Closes the vehicle's open interval (stamping ``unassigned_at``) and,
    when ``new_driver_id`` is given, opens a new one. Assigning the
    driver the vehicle already has changes nothing.

    Returns:
        The updated vehicle and the assignment records that were touched

    Raises:
        NotFoundError: If the vehicle or the new driver does not exist
    """
    vehicle = state.require_vehicle(vehicle_id, step="reassign_driver")
    if new_driver_id is not None:
        state.require_driver(new_driver_id, step="reassign_driver")

    old_driver_id = vehicle.driver_id
    if new_driver_id == old_driver_id:
        return vehicle, []

    stamp = _timestamp(now or datetime.now())
    touched = []

    for record in list(state.assignments.values()):
        if record.vehicle_id == vehicle_id and record.is_open:
            closed = replace(record, unassigned_at=stamp)
            state.assignments[record.id] = closed
            touched.append(closed)

    if new_driver_id is not None:
        record = DriverAssignment(
            id=state.next_assignment_id(),
            driver_id=new_driver_id,
            vehicle_id=vehicle_id,
            vehicle_number=vehicle.vehicle_number,
            assigned_at=stamp,
            assigned_by=actor or DEFAULT_ACTOR,
            reason=reason,
        )
        state.assignments[record.id] = record
        touched.append(record)

    updated = replace(vehicle, driver_id=new_driver_id)
    state.vehicles[vehicle_id] = updated
    logger.info(
        "Vehicle %s driver changed from %s to %s",
        vehicle.vehicle_number, old_driver_id, new_driver_id,
    )
    return updated, touched


def seed_assignments(state: "FleetState", now: Optional[datetime] = None) -> List[DriverAssignment]:
    """Open an interval for each vehicle whose current driver has none."""
    stamp = _timestamp(now or datetime.now())
    created = []
    for vehicle in state.vehicles.values():
        if not vehicle.driver_id or open_assignment(state, vehicle.id):
            continue
        record = DriverAssignment(
            id=state.next_assignment_id(),
            driver_id=vehicle.driver_id,
            vehicle_id=vehicle.id,
            vehicle_number=vehicle.vehicle_number,
            assigned_at=stamp,
            assigned_by="System",
        )
        state.assignments[record.id] = record
        created.append(record)
    return created


def driver_at(state: "FleetState", vehicle_id: str, when: str) -> Optional[str]:
    """Driver id assigned to a vehicle at ISO timestamp ``when``, if any."""
    for record in state.assignments.values():
        if record.vehicle_id == vehicle_id and record.covers(when):
            return record.driver_id
    return None
