"""Recognition service for scanned letters."""

from lettertrack.config import settings
from lettertrack.exceptions import DocumentTooLargeError, UnsupportedDocumentError
from lettertrack.services.ocr.mistral import MistralOCR
from lettertrack.services.ocr.models import RecognizedPage


class RecognitionService:
    """Validates uploads and routes them to the OCR engine."""

    PDF_MIMETYPES = {
        "application/pdf",
    }

    IMAGE_MIMETYPES = {
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/bmp",
        "image/webp",
        "image/tiff",
    }

    def __init__(self, ocr: MistralOCR | None = None, max_size: int | None = None):
        self.ocr = ocr or MistralOCR()
        self.max_size = max_size or settings.max_upload_size_bytes

    async def recognize(self, content: bytes, mime_type: str) -> RecognizedPage:
        """
        Recognize the text of the first page of an uploaded letter.

        Raises:
            UnsupportedDocumentError: If the file is not a PDF or supported image
            DocumentTooLargeError: If the file exceeds the upload limit
            RecognitionError: If OCR fails
        """
        mime_type = self.normalize_mime_type(mime_type)
        if not self.is_supported(mime_type):
            raise UnsupportedDocumentError(mime_type)
        if len(content) > self.max_size:
            raise DocumentTooLargeError(len(content), self.max_size)
        return await self.ocr.recognize(content, mime_type)

    def normalize_mime_type(self, mime_type: str | None) -> str:
        mime_type = (mime_type or "").split(";")[0].strip().lower()
        if mime_type == "image/jpg":
            return "image/jpeg"
        return mime_type

    def is_pdf(self, mime_type: str) -> bool:
        """Check if mime type is a PDF."""
        return mime_type in self.PDF_MIMETYPES

    def is_image(self, mime_type: str) -> bool:
        """Check if mime type is a scannable image."""
        return mime_type in self.IMAGE_MIMETYPES

    def is_supported(self, mime_type: str) -> bool:
        """Check if the mime type can be scanned."""
        return self.is_pdf(mime_type) or self.is_image(mime_type)
