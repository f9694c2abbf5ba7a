"""YAML loading and saving utilities for fleet snapshots."""

from dataclasses import fields, is_dataclass
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple, Type, Union

import yaml

from .assignment import DriverAssignment
from .assignments import seed_assignments
from .config import Policy, camel_case, policy_from_dict, policy_to_dict
from .document import Document
from .history_entry import ServiceHistoryEntry
from .inventory import InventoryItem, PurchaseRecord
from .job_card import JobCard, JobCardPart
from .pending_work import PendingWork
from .rule import ScheduledService
from .status import (
    DocumentStatus,
    JobStatus,
    Priority,
    RuleStatus,
    TriggerType,
    VehicleStatus,
    WorkStatus,
)
from .store import FleetState
from .vehicle import Driver, Vehicle, Worker

# Kilometre fields keep the upper-case KM used in fleet files
_KEY_OVERRIDES = {
    "current_km": "currentKM",
    "next_service_km": "nextServiceKM",
    "total_km": "totalKM",
    "last_service_km": "lastServiceKM",
    "next_due_km": "nextDueKM",
}

# Collection name in FleetState -> (YAML key, entity class)
COLLECTIONS: Dict[str, Tuple[str, Type]] = {
    "vehicles": ("vehicles", Vehicle),
    "drivers": ("drivers", Driver),
    "workers": ("workers", Worker),
    "inventory": ("inventory", InventoryItem),
    "job_cards": ("jobCards", JobCard),
    "service_history": ("serviceHistory", ServiceHistoryEntry),
    "pending_work": ("pendingWork", PendingWork),
    "scheduled_services": ("scheduledServices", ScheduledService),
    "documents": ("documents", Document),
    "assignments": ("driverAssignments", DriverAssignment),
}


def _key(name: str) -> str:
    return _KEY_OVERRIDES.get(name, camel_case(name))


def _parse_parts(items) -> list:
    return [entity_from_dict(JobCardPart, p) for p in items or []]


def _parse_purchases(items) -> list:
    return [entity_from_dict(PurchaseRecord, p) for p in items or []]


# Field converters applied on load, per entity class
_CONVERTERS: Dict[Type, Dict[str, Callable[[Any], Any]]] = {
    Vehicle: {"status": VehicleStatus},
    InventoryItem: {"purchase_history": _parse_purchases},
    JobCard: {"parts_used": _parse_parts, "status": JobStatus},
    ServiceHistoryEntry: {"parts_used": _parse_parts},
    PendingWork: {"priority": Priority, "status": WorkStatus},
    ScheduledService: {"trigger_type": TriggerType, "status": RuleStatus},
    Document: {"status": DocumentStatus},
}


def entity_from_dict(cls: Type, dct: Dict[str, Any]):
    """Build a dataclass instance from a camelCase dict."""
    converters = _CONVERTERS.get(cls, {})
    kwargs = {}
    for f in fields(cls):
        key = _key(f.name)
        if key not in dct:
            continue
        value = dct[key]
        if isinstance(value, (date, datetime)):
            # Unquoted YAML dates load as date objects
            value = value.isoformat()
        if f.name in converters and value is not None:
            value = converters[f.name](value)
        kwargs[f.name] = value
    return cls(**kwargs)


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value):
        return entity_to_dict(value)
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def entity_to_dict(obj: Any) -> Dict[str, Any]:
    """Serialize a dataclass to the YAML dict format, omitting None values."""
    d: Dict[str, Any] = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if value is None:
            continue
        d[_key(f.name)] = _plain(value)
    return d


def fleet_from_dict(
    data: Optional[Dict[str, Any]], now: Optional[datetime] = None
) -> Tuple[FleetState, Policy]:
    """
    Parse a raw fleet snapshot dict into state and policy.

    When the snapshot has no driver assignment history, an open interval is
    seeded for every vehicle that currently has a driver.
    """
    data = data or {}
    state = FleetState()
    for name, (key, cls) in COLLECTIONS.items():
        target = getattr(state, name)
        for dct in data.get(key) or []:
            entity = entity_from_dict(cls, dct)
            target[entity.id] = entity
    if "driverAssignments" not in data:
        seed_assignments(state, now)
    return state, policy_from_dict(data.get("policy"))


def fleet_to_dict(state: FleetState, policy: Optional[Policy] = None) -> Dict[str, Any]:
    """Serialize state (and any non-default policy) to a snapshot dict."""
    data: Dict[str, Any] = {}
    if policy is not None:
        policy_dict = policy_to_dict(policy)
        if policy_dict:
            data["policy"] = policy_dict
    for name, (key, _cls) in COLLECTIONS.items():
        data[key] = [entity_to_dict(e) for e in getattr(state, name).values()]
    return data


def load_fleet(filename: Union[str, Path]) -> Tuple[FleetState, Policy]:
    """Load a fleet snapshot from a YAML file."""
    with open(filename, "r") as fp:
        data = yaml.load(fp, Loader=yaml.SafeLoader)
    return fleet_from_dict(data)


def save_fleet(
    filename: Union[str, Path], state: FleetState, policy: Optional[Policy] = None
) -> None:
    """Write a fleet snapshot to a YAML file."""
    with open(filename, "w") as fp:
        yaml.dump(
            fleet_to_dict(state, policy),
            fp,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
            width=120,
        )


def yaml_writer(
    filename: Union[str, Path], policy: Optional[Policy] = None
) -> Callable[[FleetState], None]:
    """An on_commit callback that saves every committed state to ``filename``."""

    def write(state: FleetState) -> None:
        save_fleet(filename, state, policy)

    return write
