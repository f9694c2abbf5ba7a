"""Helper functions for pricing, due-date and status calculations."""

import math
from datetime import date, timedelta
from typing import Iterable, Optional

from dateutil.relativedelta import relativedelta

from .inventory import PurchaseRecord
from .status import DocumentStatus, RuleStatus


def round_half_up(value: float) -> int:
    """Round to the nearest whole unit, halves away from zero for positives."""
    return math.floor(value + 0.5)


def weighted_average_price(purchases: Iterable[PurchaseRecord]) -> Optional[int]:
    """
    Weighted-average unit cost of a purchase history.

    round(sum(qty * price) / sum(qty)) to the nearest whole currency unit.
    Returns None when the total quantity is zero.
    """
    total_qty = 0
    total_value = 0.0
    for purchase in purchases:
        total_qty += purchase.quantity
        total_value += purchase.quantity * purchase.unit_price
    if total_qty == 0:
        return None
    return round_half_up(total_value / total_qty)


def calc_next_due_km(service_km: int, interval_km: float) -> int:
    """Next due odometer reading: reading at service + interval."""
    return int(service_km + interval_km)


def calc_hours_due_date(
    interval_hours: float, today: date, hours_per_day: int = 8
) -> date:
    """Approximate calendar due date for an engine-hours interval."""
    days = math.ceil(interval_hours / hours_per_day)
    return today + timedelta(days=days)


def calc_date_due_date(
    last_due: Optional[date], today: date, interval_months: int = 6
) -> date:
    """Roll a calendar rule forward from its previous due date (or today)."""
    return (last_due or today) + relativedelta(months=interval_months)


def check_rule_status(current: float, due: Optional[float]) -> RuleStatus:
    """DUE once the current reading reaches the threshold, else UPCOMING."""
    if due is not None and current >= due:
        return RuleStatus.DUE
    return RuleStatus.UPCOMING


def calc_document_status(
    expiry: date, today: date, soon_days: int = 30
) -> DocumentStatus:
    """Expiry status: EXPIRED when past, EXPIRING_SOON inside the window."""
    days_left = (expiry - today).days
    if days_left < 0:
        return DocumentStatus.EXPIRED
    if days_left < soon_days:
        return DocumentStatus.EXPIRING_SOON
    return DocumentStatus.VALID
