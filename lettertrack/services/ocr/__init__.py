"""Text recognition services."""

from lettertrack.services.ocr.mistral import MistralOCR
from lettertrack.services.ocr.models import RecognizedPage
from lettertrack.services.ocr.service import RecognitionService

__all__ = [
    "MistralOCR",
    "RecognitionService",
    "RecognizedPage",
]
