"""Letter field extraction services."""

from lettertrack.services.extraction.fields import (
    determine_urgency,
    extract_contact,
    extract_date,
    extract_recipient,
    extract_sender,
    extract_title,
)
from lettertrack.services.extraction.models import FORM_FIELDS, ExtractionResult
from lettertrack.services.extraction.service import FieldExtractor, extract_fields

__all__ = [
    "ExtractionResult",
    "FORM_FIELDS",
    "FieldExtractor",
    "determine_urgency",
    "extract_contact",
    "extract_date",
    "extract_fields",
    "extract_recipient",
    "extract_sender",
    "extract_title",
]
