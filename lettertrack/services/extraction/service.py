"""Letter field extraction from recognized text."""

import logging

from lettertrack.services.extraction.fields import (
    determine_urgency,
    extract_contact,
    extract_date,
    extract_recipient,
    extract_sender,
    extract_title,
)
from lettertrack.services.extraction.models import ExtractionResult

logger = logging.getLogger(__name__)


def extract_fields(text: str, day_first: bool = False) -> ExtractionResult:
    """
    Deduce letter metadata from the recognized text of one page.

    Pure and never raises: each field is extracted independently and comes
    back empty when nothing matched, so the caller always gets a complete
    result to pre-fill the letter form with.
    """
    return ExtractionResult(
        date=extract_date(text, day_first=day_first),
        title=extract_title(text),
        sender=extract_sender(text),
        recipient=extract_recipient(text),
        contact=extract_contact(text),
        urgency=determine_urgency(text),
    )


class FieldExtractor:
    """Field extraction bound to a date-reading convention."""

    def __init__(self, day_first: bool = False):
        self.day_first = day_first

    def extract(self, text: str) -> ExtractionResult:
        result = extract_fields(text, day_first=self.day_first)
        found = [name for name, value in result.to_dict().items() if value and name != "urgency"]
        logger.info(f"Extracted fields {found or 'none'} with urgency {result.urgency}")
        return result
