"""DriverAssignment class for the who-drove-what timeline."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class DriverAssignment:
    """An assignment interval. Open while ``unassigned_at`` is None."""

    id: str
    driver_id: str
    vehicle_id: str
    assigned_at: str
    vehicle_number: str = ""
    unassigned_at: Optional[str] = None
    assigned_by: Optional[str] = None
    reason: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.unassigned_at is None

    def covers(self, when: str) -> bool:
        """Check if this interval includes the ISO timestamp ``when``."""
        if when < self.assigned_at:
            return False
        return self.unassigned_at is None or when < self.unassigned_at
