"""Status enums for fleet entities."""

from enum import Enum


class VehicleStatus(Enum):
    """Operational status of a vehicle."""

    ACTIVE = "Active"
    IN_SERVICE = "In Service"
    IDLE = "Idle"


class TriggerType(Enum):
    """What drives a scheduled service rule."""

    KM = "KM"
    HOURS = "Hours"
    DATE = "Date"


class RuleStatus(Enum):
    """Scheduled service status. Lower order = more urgent."""

    DUE = "Due"
    UPCOMING = "Upcoming"
    COMPLETED = "Completed"


class JobStatus(Enum):
    """Job card lifecycle. Moves forward only."""

    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"

    @property
    def order(self) -> int:
        return list(JobStatus).index(self)


class WorkStatus(Enum):
    """Pending work lifecycle."""

    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"

    @property
    def order(self) -> int:
        return list(WorkStatus).index(self)


class Priority(Enum):
    """Priority for pending work and notifications."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @property
    def rank(self) -> int:
        return list(Priority).index(self)


class DocumentStatus(Enum):
    """Compliance document expiry status."""

    VALID = "Valid"
    EXPIRING_SOON = "Expiring Soon"
    EXPIRED = "Expired"
