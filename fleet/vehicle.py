"""Vehicle, Driver and Worker records."""

from dataclasses import dataclass
from typing import Optional

from .status import VehicleStatus


@dataclass
class Vehicle:
    """A fleet vehicle with its odometer, engine hours and service thresholds."""

    id: str
    vehicle_number: str
    model: str = ""
    type: str = "Truck"
    branch: str = ""
    sub_branch: str = ""
    driver_id: Optional[str] = None
    current_km: int = 0
    next_service_km: Optional[int] = None
    next_service_date: Optional[str] = None
    total_hours: int = 0
    next_service_hours: Optional[int] = None
    status: VehicleStatus = VehicleStatus.ACTIVE

    @property
    def name(self) -> str:
        """Human-readable vehicle name."""
        return f"{self.vehicle_number} ({self.model})" if self.model else self.vehicle_number


@dataclass
class Driver:
    """Driver reference data."""

    id: str
    name: str
    phone: str = ""
    license_number: str = ""
    branch: str = ""
    sub_branch: str = ""


@dataclass
class Worker:
    """Workshop worker reference data."""

    id: str
    name: str
    role: str = ""
    branch: str = ""
    sub_branch: str = ""
    phone: str = ""
