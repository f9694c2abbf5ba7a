"""
Stock ledger: stock-level adjustments and purchase receipts.

Stock never goes below zero. Under the default policy an over-consumption
is clamped silently at zero; a strict policy raises InsufficientStockError
instead.
"""

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Dict, Iterable

from .calculations import weighted_average_price
from .config import Policy
from .errors import FleetError, InsufficientStockError
from .inventory import InventoryItem, PurchaseRecord
from .job_card import JobCardPart
from .requests import RecordPurchaseRequest

if TYPE_CHECKING:
    from .store import FleetState

logger = logging.getLogger(__name__)


def adjust_stock(item: InventoryItem, delta: int, strict: bool = False) -> InventoryItem:
    """
    Apply a signed quantity change to an item.

    Negative deltas consume stock, positive deltas receive it. The result
    is floored at zero.

    Raises:
        InsufficientStockError: If ``strict`` and the deduction exceeds stock
    """
    new_stock = item.stock_available + delta
    if new_stock < 0:
        if strict:
            raise InsufficientStockError(item.id, -delta, item.stock_available)
        logger.warning(
            "Stock for %s clamped at zero (had %d, delta %d)",
            item.id, item.stock_available, delta,
        )
    return replace(item, stock_available=max(0, new_stock))


def record_purchase(item: InventoryItem, purchase: PurchaseRecord) -> InventoryItem:
    """
    Append a purchase to an item and recompute its derived fields.

    Stock increases by the purchased quantity, the last purchase price is
    taken from the receipt and the average price is recomputed over the
    whole extended history.
    """
    history = list(item.purchase_history) + [purchase]
    average = weighted_average_price(history)
    return replace(
        item,
        purchase_history=history,
        stock_available=item.stock_available + purchase.quantity,
        last_purchase_price=purchase.unit_price,
        average_price=average if average is not None else item.average_price,
    )


def consumption_by_item(parts: Iterable[JobCardPart]) -> Dict[str, int]:
    """Total quantity consumed per item id, in first-seen order."""
    totals: Dict[str, int] = {}
    for part in parts:
        totals[part.item_id] = totals.get(part.item_id, 0) + part.quantity
    return totals


def check_stock(state: "FleetState", parts: Iterable[JobCardPart], policy: Policy) -> None:
    """
    Verify every consumed item exists (and, when strict, is in stock).

    Raises:
        NotFoundError: If an item id is unknown
        InsufficientStockError: If strict and a total exceeds stock on hand
    """
    for item_id, quantity in consumption_by_item(parts).items():
        item = state.require_item(item_id, step="validate_parts")
        if policy.strict_stock and quantity > item.stock_available:
            raise InsufficientStockError(
                item_id, quantity, item.stock_available, step="validate_parts"
            )


def adjust_item_stock(
    state: "FleetState", item_id: str, delta: int, policy: Policy
) -> InventoryItem:
    """Adjust the stock of an item held in ``state``."""
    item = state.require_item(item_id, step="adjust_stock")
    updated = adjust_stock(item, delta, strict=policy.strict_stock)
    state.inventory[item_id] = updated
    logger.info(
        "Adjusted stock for %s by %d: %d -> %d",
        item_id, delta, item.stock_available, updated.stock_available,
    )
    return updated


def receive_purchase(state: "FleetState", request: RecordPurchaseRequest) -> InventoryItem:
    """Record a purchase receipt against an item held in ``state``."""
    item = state.require_item(request.item_id, step="record_purchase")
    purchase = PurchaseRecord(
        id=state.next_purchase_id(),
        purchase_date=request.purchase_date,
        quantity=request.quantity,
        unit_price=request.unit_price,
        supplier=request.supplier,
        branch=request.branch,
        sub_branch=request.sub_branch,
        invoice_url=request.invoice_url,
    )
    updated = record_purchase(item, purchase)
    state.inventory[item.id] = updated
    logger.info(
        "Recorded purchase %s for %s: %d @ %s (avg %s -> %s)",
        purchase.id, item.id, purchase.quantity, purchase.unit_price,
        item.average_price, updated.average_price,
    )
    return updated


def add_inventory_item(state: "FleetState", item: InventoryItem) -> InventoryItem:
    """Add a new item to the inventory."""
    if item.id in state.inventory:
        raise FleetError(
            f"Inventory item already exists: {item.id}",
            code="DUPLICATE",
            details={"entity": "InventoryItem", "entity_id": item.id},
        )
    if item.purchase_history and not item.average_price:
        item = replace(item, average_price=weighted_average_price(item.purchase_history) or 0)
    state.inventory[item.id] = item
    logger.info("Added inventory item %s (%s)", item.id, item.sku)
    return item
