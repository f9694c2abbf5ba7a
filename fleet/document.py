"""Document class for vehicle and driver compliance papers."""

from dataclasses import dataclass
from typing import Optional

from .status import DocumentStatus


@dataclass
class Document:
    """A compliance document. ``file_url`` is an opaque reference."""

    id: str
    document_type: str
    document_number: str
    expiry_date: str
    vehicle_id: Optional[str] = None
    driver_id: Optional[str] = None
    issue_date: str = ""
    file_url: str = ""
    status: DocumentStatus = DocumentStatus.VALID
