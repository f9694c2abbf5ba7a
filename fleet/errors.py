"""
Fleet engine exceptions.

Every error carries a machine-readable code and a details dict naming the
step and entity that failed, so a caller can build an actionable message.
"""

from typing import Any, Dict, Optional


class FleetError(Exception):
    """Base exception for fleet engine errors."""

    def __init__(
        self,
        message: str,
        code: str = "FLEET_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(FleetError):
    """Raised when a referenced vehicle, item, driver or record does not exist."""

    def __init__(self, entity: str, entity_id: Optional[str], step: Optional[str] = None):
        details: Dict[str, Any] = {"entity": entity, "entity_id": entity_id}
        if step:
            details["step"] = step
        super().__init__(
            message=f"{entity} not found: {entity_id}",
            code="NOT_FOUND",
            details=details,
        )
        self.entity = entity
        self.entity_id = entity_id


class InsufficientStockError(FleetError):
    """Raised when a consumption exceeds stock on hand and the policy is strict."""

    def __init__(self, item_id: str, requested: int, available: int, step: str = "deduct_stock"):
        super().__init__(
            message=(
                f"Insufficient stock for {item_id}: "
                f"requested {requested}, available {available}"
            ),
            code="INSUFFICIENT_STOCK",
            details={
                "step": step,
                "entity": "InventoryItem",
                "entity_id": item_id,
                "requested": requested,
                "available": available,
            },
        )
        self.item_id = item_id
        self.requested = requested
        self.available = available


class InvalidTransitionError(FleetError):
    """Raised when a status change would move a record backwards."""

    def __init__(self, entity: str, entity_id: str, current: str, target: str):
        super().__init__(
            message=f"Cannot move {entity} {entity_id} from {current} to {target}",
            code="INVALID_TRANSITION",
            details={
                "entity": entity,
                "entity_id": entity_id,
                "current_state": current,
                "target_state": target,
            },
        )
