"""Text recognition using Mistral OCR."""

import base64
import logging

from mistralai import Mistral
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from lettertrack.config import settings
from lettertrack.exceptions import RecognitionError
from lettertrack.services.ocr.models import RecognizedPage

logger = logging.getLogger(__name__)


class MistralOCR:
    """Recognize the text of scanned letters (PDF or image) via the Mistral SDK."""

    def __init__(self, api_key: str | None = None, model: str | None = None):
        self.api_key = api_key if api_key is not None else settings.mistral_api_key
        self.model = model or settings.ocr_model

    async def recognize(self, content: bytes, mime_type: str) -> RecognizedPage:
        """
        Recognize the first page of a document.

        Args:
            content: Raw file bytes
            mime_type: 'application/pdf' or an image type

        Returns:
            RecognizedPage with the first page's text and the total page count

        Raises:
            RecognitionError: If OCR is not configured or the API call fails
        """
        if not self.api_key:
            raise RecognitionError("MISTRAL_API_KEY is not configured")

        document = self._build_document(content, mime_type)

        try:
            pages = await self._call_mistral_ocr(document)
        except Exception as e:
            logger.error(f"OCR failed for {mime_type} document: {e}")
            raise RecognitionError(f"OCR failed: {e}") from e

        return self._first_page(pages, mime_type)

    def _build_document(self, content: bytes, mime_type: str) -> dict:
        encoded = base64.standard_b64encode(content).decode("utf-8")
        data_url = f"data:{mime_type};base64,{encoded}"
        if mime_type == "application/pdf":
            return {"type": "document_url", "document_url": data_url}
        return {"type": "image_url", "image_url": data_url}

    @retry(
        retry=retry_if_exception_type(Exception),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    async def _call_mistral_ocr(self, document: dict) -> list[str]:
        """Call Mistral OCR API using the official SDK."""
        async with Mistral(api_key=self.api_key) as client:
            ocr_response = await client.ocr.process_async(
                model=self.model,
                document=document,
                include_image_base64=False,
            )
            return [page.markdown or "" for page in ocr_response.pages]

    def _first_page(self, pages: list[str], mime_type: str) -> RecognizedPage:
        # Only the first page feeds the letter form
        text = pages[0].strip() if pages else ""
        logger.info(f"Recognized {len(text)} chars from page 1 of {len(pages)} ({mime_type})")
        return RecognizedPage(text=text, page_count=len(pages), mime_type=mime_type)
