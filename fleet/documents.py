"""Compliance document operations."""

import logging
from dataclasses import replace
from datetime import date
from typing import TYPE_CHECKING, Dict, Optional

from .calculations import calc_document_status
from .config import Policy
from .document import Document
from .status import DocumentStatus

if TYPE_CHECKING:
    from .store import FleetState

logger = logging.getLogger(__name__)


def add_document(
    state: "FleetState",
    document_type: str,
    document_number: str,
    expiry_date: str,
    policy: Policy,
    today: date,
    vehicle_id: Optional[str] = None,
    driver_id: Optional[str] = None,
    issue_date: str = "",
    file_url: str = "",
) -> Document:
    """Register a document for a vehicle or driver with its expiry status."""
    if vehicle_id is not None:
        state.require_vehicle(vehicle_id, step="add_document")
    if driver_id is not None:
        state.require_driver(driver_id, step="add_document")
    document = Document(
        id=state.next_document_id(),
        document_type=document_type,
        document_number=document_number,
        expiry_date=expiry_date,
        vehicle_id=vehicle_id,
        driver_id=driver_id,
        issue_date=issue_date,
        file_url=file_url,
        status=calc_document_status(
            date.fromisoformat(expiry_date), today, policy.expiring_soon_days
        ),
    )
    state.documents[document.id] = document
    logger.info("Added %s %s (%s)", document_type, document.id, document.status.value)
    return document


def refresh_document_statuses(
    state: "FleetState", policy: Policy, today: date
) -> Dict[str, DocumentStatus]:
    """Recompute every document's status as of ``today``. Returns the changes."""
    changed = {}
    for document in list(state.documents.values()):
        status = calc_document_status(
            date.fromisoformat(document.expiry_date), today, policy.expiring_soon_days
        )
        if status != document.status:
            state.documents[document.id] = replace(document, status=status)
            changed[document.id] = status
    return changed
