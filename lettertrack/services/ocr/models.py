"""Data models for text recognition."""

from dataclasses import dataclass


@dataclass
class RecognizedPage:
    """Plain text recognized from one page of a scanned document."""

    text: str
    page_count: int
    mime_type: str
