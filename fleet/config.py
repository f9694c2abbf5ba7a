"""Policy settings for the fleet engine."""

import os
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class Policy:
    """Tunables for the state-transition rules.

    Defaults reproduce the reference fleet behaviour.
    """

    close_all_pending_work_on_any_service: bool = True
    hours_per_operating_day: int = 8
    date_rule_interval_months: int = 6
    use_rule_interval_for_date_rules: bool = False
    strict_stock: bool = False
    low_stock_threshold: int = 10
    critical_stock_threshold: int = 5
    expiring_soon_days: int = 30


def camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _coerce(value: Any, default: Any) -> Any:
    """Convert a raw (possibly string) value to the type of ``default``."""
    if isinstance(default, bool):
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)
    if isinstance(default, int):
        return int(value)
    return value


def policy_from_dict(dct: Optional[Mapping[str, Any]]) -> Policy:
    """Build a Policy from a camelCase mapping (unknown keys are ignored)."""
    dct = dct or {}
    base = Policy()
    values: Dict[str, Any] = {}
    for f in fields(Policy):
        key = camel_case(f.name)
        if key in dct:
            values[f.name] = _coerce(dct[key], getattr(base, f.name))
    return replace(base, **values)


def policy_to_dict(policy: Policy) -> Dict[str, Any]:
    """Serialize only the fields that differ from the defaults."""
    base = Policy()
    return {
        camel_case(f.name): getattr(policy, f.name)
        for f in fields(Policy)
        if getattr(policy, f.name) != getattr(base, f.name)
    }


def apply_env_overrides(policy: Policy, environ: Optional[Mapping[str, str]] = None) -> Policy:
    """Override policy fields from FLEET_<FIELD_NAME> environment variables."""
    environ = os.environ if environ is None else environ
    values: Dict[str, Any] = {}
    for f in fields(Policy):
        env_key = f"FLEET_{f.name.upper()}"
        if env_key in environ:
            values[f.name] = _coerce(environ[env_key], getattr(policy, f.name))
    return replace(policy, **values)
