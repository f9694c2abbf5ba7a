"""
Scheduling projector for recurring maintenance rules.

A rule matched by a service event is stamped with the event's readings,
projected to its next due point and marked COMPLETED:

- KM rules: next due at the event odometer + interval
- Hours rules: no hours threshold is kept on the rule; the interval is
  converted to calendar days at ``hours_per_operating_day`` from today
- Date rules: previous due date (or today) + the policy's rollover months
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import TYPE_CHECKING, List, Optional

from .calculations import (
    calc_date_due_date,
    calc_hours_due_date,
    calc_next_due_km,
    check_rule_status,
)
from .config import Policy
from .job_card import JobCard
from .rule import ScheduledService
from .status import RuleStatus, TriggerType
from .vehicle import Vehicle

if TYPE_CHECKING:
    from .store import FleetState

logger = logging.getLogger(__name__)


@dataclass
class ServiceEvent:
    """Readings and services of a completed maintenance event."""

    job_date: str
    total_km: int
    total_hours: int
    services_done: List[str] = field(default_factory=list)

    @classmethod
    def from_job_card(cls, job_card: JobCard) -> "ServiceEvent":
        return cls(
            job_date=job_card.job_date,
            total_km=job_card.total_km,
            total_hours=job_card.total_hours,
            services_done=list(job_card.services_done),
        )


def _date_rule_months(rule: ScheduledService, policy: Policy) -> int:
    interval = rule.numeric_trigger
    if policy.use_rule_interval_for_date_rules and interval:
        return int(interval)
    return policy.date_rule_interval_months


def project_next_due(
    rule: ScheduledService,
    event: ServiceEvent,
    policy: Optional[Policy] = None,
    today: Optional[date] = None,
) -> ScheduledService:
    """
    Project a rule past a service event.

    Rules that are already COMPLETED, or whose service type was not
    performed in the event, are returned unchanged.
    """
    if rule.is_completed or rule.service_type not in event.services_done:
        return rule
    policy = policy or Policy()
    today = today or date.today()
    interval = rule.numeric_trigger

    next_due_km = None
    next_due_date = None
    if rule.trigger_type == TriggerType.KM and interval is not None:
        next_due_km = calc_next_due_km(event.total_km, interval)
    elif rule.trigger_type == TriggerType.HOURS and interval is not None:
        next_due_date = calc_hours_due_date(
            interval, today, policy.hours_per_operating_day
        ).isoformat()
    elif rule.trigger_type == TriggerType.DATE:
        last_due = date.fromisoformat(rule.next_due_date) if rule.next_due_date else None
        next_due_date = calc_date_due_date(
            last_due, today, _date_rule_months(rule, policy)
        ).isoformat()

    logger.debug(
        "Projected %s: next due km=%s date=%s", rule.key, next_due_km, next_due_date
    )
    return replace(
        rule,
        status=RuleStatus.COMPLETED,
        last_service_date=event.job_date,
        last_service_km=event.total_km,
        next_due_km=next_due_km,
        next_due_date=next_due_date,
    )


def threshold_reached(rule: ScheduledService, vehicle: Vehicle) -> bool:
    """
    True when the vehicle's readings have reached the rule's due point.

    KM rules compare the odometer with ``next_due_km``. Hours rules need a
    numeric interval and compare total hours with the vehicle's next
    service hours. Date rules never trigger on readings. The rule's
    status is not consulted.
    """
    if rule.trigger_type == TriggerType.KM:
        status = check_rule_status(vehicle.current_km, rule.next_due_km)
    elif rule.trigger_type == TriggerType.HOURS and rule.numeric_trigger is not None:
        status = check_rule_status(vehicle.total_hours, vehicle.next_service_hours)
    else:
        return False
    return status == RuleStatus.DUE


def evaluate_status(rule: ScheduledService, vehicle: Vehicle) -> RuleStatus:
    """
    Status of a rule against a vehicle's current readings.

    COMPLETED rules stay COMPLETED. Otherwise DUE once the threshold is
    reached (see threshold_reached), UPCOMING in every other case.
    """
    if rule.is_completed:
        return RuleStatus.COMPLETED
    if threshold_reached(rule, vehicle):
        return RuleStatus.DUE
    return RuleStatus.UPCOMING


def refresh_rule_statuses(state: "FleetState", vehicle_id: str) -> None:
    """Re-evaluate the open rules of a vehicle after its readings change."""
    vehicle = state.require_vehicle(vehicle_id, step="refresh_rules")
    for rule in state.rules_for_vehicle(vehicle_id):
        status = evaluate_status(rule, vehicle)
        if status != rule.status:
            state.scheduled_services[rule.id] = replace(rule, status=status)


def project_rules(
    state: "FleetState",
    vehicle_id: str,
    event: ServiceEvent,
    policy: Policy,
    today: date,
) -> List[ScheduledService]:
    """Project every rule of a vehicle matched by the event. Returns the projected rules."""
    projected = []
    for rule in state.rules_for_vehicle(vehicle_id):
        updated = project_next_due(rule, event, policy, today)
        if updated is not rule:
            state.scheduled_services[rule.id] = updated
            projected.append(updated)
    return projected


def complete_scheduled_service(
    state: "FleetState", rule_id: str, policy: Policy, today: date
) -> ScheduledService:
    """
    Manually mark a rule as done today at the vehicle's current readings.

    Already completed rules are returned unchanged.
    """
    rule = state.require_rule(rule_id, step="complete_scheduled_service")
    vehicle = state.require_vehicle(rule.vehicle_id, step="complete_scheduled_service")
    event = ServiceEvent(
        job_date=today.isoformat(),
        total_km=vehicle.current_km,
        total_hours=vehicle.total_hours,
        services_done=[rule.service_type],
    )
    updated = project_next_due(rule, event, policy, today)
    state.scheduled_services[rule.id] = updated
    if updated is not rule:
        logger.info("Scheduled service %s marked completed", rule.id)
    return updated
