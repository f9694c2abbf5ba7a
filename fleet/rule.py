"""ScheduledService class for recurring maintenance rules."""

from dataclasses import dataclass
from typing import Optional, Union

from .status import RuleStatus, TriggerType


@dataclass
class ScheduledService:
    """A per-vehicle recurring maintenance requirement.

    ``trigger_value`` is kilometres, engine hours or months depending on
    ``trigger_type``. Date rules may carry a non-numeric label.
    """

    id: str
    vehicle_id: str
    service_type: str
    trigger_type: TriggerType
    trigger_value: Union[int, float, str]
    last_service_date: Optional[str] = None
    last_service_km: Optional[int] = None
    next_due_km: Optional[int] = None
    next_due_date: Optional[str] = None
    status: RuleStatus = RuleStatus.UPCOMING

    @property
    def key(self) -> str:
        """Natural key from vehicle/service type."""
        return f"{self.vehicle_id}/{self.service_type}"

    @property
    def numeric_trigger(self) -> Optional[float]:
        """Trigger value when it is a number, else None."""
        if isinstance(self.trigger_value, bool):
            return None
        if isinstance(self.trigger_value, (int, float)):
            return self.trigger_value
        return None

    @property
    def is_completed(self) -> bool:
        return self.status == RuleStatus.COMPLETED
