"""Inventory items and their purchase history."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class PurchaseRecord:
    """A single stock receipt. Immutable once appended to an item."""

    id: str
    purchase_date: str
    quantity: int
    unit_price: float
    supplier: str = ""
    branch: str = ""
    sub_branch: str = ""
    invoice_url: Optional[str] = None

    @property
    def total(self) -> float:
        return self.quantity * self.unit_price


@dataclass
class InventoryItem:
    """A spare part held in stock.

    ``stock_available`` and ``average_price`` are derived fields maintained
    by the stock ledger; ``purchase_history`` is append-only.
    """

    id: str
    sku: str
    name: str
    category: str = ""
    sub_category: str = ""
    branch: str = ""
    sub_branch: str = ""
    stock_available: int = 0
    last_purchase_price: float = 0
    average_price: float = 0
    purchase_history: List[PurchaseRecord] = field(default_factory=list)

    @property
    def stock_value(self) -> float:
        """Valuation at weighted-average cost."""
        return self.stock_available * self.average_price
