"""Tests for scan recognition."""

import base64
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from tenacity import wait_none

from lettertrack.exceptions import (
    DocumentTooLargeError,
    RecognitionError,
    UnsupportedDocumentError,
)
from lettertrack.services.ocr import MistralOCR, RecognitionService, RecognizedPage


@pytest.fixture
def ocr():
    engine = MagicMock()
    engine.recognize = AsyncMock(
        return_value=RecognizedPage(text="Subject: Test", page_count=1, mime_type="image/png")
    )
    return engine


@pytest.fixture
def no_retry_wait(monkeypatch):
    """Skip tenacity backoff between OCR attempts."""
    monkeypatch.setattr(MistralOCR._call_mistral_ocr.retry, "wait", wait_none())


class TestRecognitionService:
    """Tests for upload validation and routing."""

    async def test_recognizes_supported_image(self, ocr):
        service = RecognitionService(ocr=ocr, max_size=1024)

        page = await service.recognize(b"png-bytes", "image/png")

        assert page.text == "Subject: Test"
        ocr.recognize.assert_awaited_once_with(b"png-bytes", "image/png")

    async def test_normalizes_mime_type(self, ocr):
        """Parameters and case are dropped, image/jpg becomes image/jpeg."""
        service = RecognitionService(ocr=ocr, max_size=1024)

        await service.recognize(b"jpg", "IMAGE/JPG; charset=binary")

        ocr.recognize.assert_awaited_once_with(b"jpg", "image/jpeg")

    async def test_accepts_pdf(self, ocr):
        service = RecognitionService(ocr=ocr, max_size=1024)
        await service.recognize(b"%PDF-1.4", "application/pdf")
        ocr.recognize.assert_awaited_once()

    @pytest.mark.parametrize("mime_type", ["text/plain", "application/zip", "", None])
    async def test_rejects_unsupported_types(self, ocr, mime_type):
        service = RecognitionService(ocr=ocr, max_size=1024)

        with pytest.raises(UnsupportedDocumentError):
            await service.recognize(b"data", mime_type)
        ocr.recognize.assert_not_awaited()

    async def test_rejects_oversized_upload(self, ocr):
        service = RecognitionService(ocr=ocr, max_size=10)

        with pytest.raises(DocumentTooLargeError) as exc_info:
            await service.recognize(b"x" * 11, "image/png")

        assert exc_info.value.size == 11
        assert exc_info.value.max_size == 10
        ocr.recognize.assert_not_awaited()

    async def test_upload_at_limit_is_accepted(self, ocr):
        service = RecognitionService(ocr=ocr, max_size=10)
        await service.recognize(b"x" * 10, "image/png")
        ocr.recognize.assert_awaited_once()

    def test_type_checks(self, ocr):
        service = RecognitionService(ocr=ocr)
        assert service.is_pdf("application/pdf")
        assert service.is_image("image/webp")
        assert not service.is_supported("image/svg+xml")


class TestMistralOCR:
    """Tests for the Mistral OCR client wrapper."""

    async def test_missing_api_key(self):
        engine = MistralOCR(api_key="")

        with pytest.raises(RecognitionError, match="MISTRAL_API_KEY"):
            await engine.recognize(b"data", "image/png")

    def test_image_document_is_data_url(self):
        engine = MistralOCR(api_key="key")

        document = engine._build_document(b"abc", "image/png")

        encoded = base64.standard_b64encode(b"abc").decode()
        assert document == {"type": "image_url", "image_url": f"data:image/png;base64,{encoded}"}

    def test_pdf_document_is_document_url(self):
        engine = MistralOCR(api_key="key")

        document = engine._build_document(b"%PDF", "application/pdf")

        assert document["type"] == "document_url"
        assert document["document_url"].startswith("data:application/pdf;base64,")

    async def test_returns_first_page_only(self, monkeypatch):
        engine = MistralOCR(api_key="key")
        monkeypatch.setattr(
            engine,
            "_call_mistral_ocr",
            AsyncMock(return_value=["  First page text \n", "Second page"]),
        )

        page = await engine.recognize(b"%PDF", "application/pdf")

        assert page.text == "First page text"
        assert page.page_count == 2
        assert page.mime_type == "application/pdf"

    async def test_no_pages(self, monkeypatch):
        engine = MistralOCR(api_key="key")
        monkeypatch.setattr(engine, "_call_mistral_ocr", AsyncMock(return_value=[]))

        page = await engine.recognize(b"img", "image/png")

        assert page.text == ""
        assert page.page_count == 0

    async def test_calls_sdk_and_reads_markdown(self, monkeypatch):
        """The SDK response's page markdown becomes the page text."""
        response = SimpleNamespace(
            pages=[SimpleNamespace(markdown="Dear Sir,"), SimpleNamespace(markdown=None)]
        )
        client = MagicMock()
        client.ocr.process_async = AsyncMock(return_value=response)
        client.__aenter__ = AsyncMock(return_value=client)
        client.__aexit__ = AsyncMock(return_value=None)
        monkeypatch.setattr(
            "lettertrack.services.ocr.mistral.Mistral", MagicMock(return_value=client)
        )
        engine = MistralOCR(api_key="key", model="ocr-model")

        page = await engine.recognize(b"img", "image/png")

        assert page.text == "Dear Sir,"
        assert page.page_count == 2
        kwargs = client.ocr.process_async.await_args.kwargs
        assert kwargs["model"] == "ocr-model"
        assert kwargs["document"]["type"] == "image_url"

    async def test_api_failure_is_wrapped_after_retries(self, monkeypatch, no_retry_wait):
        client = MagicMock()
        client.ocr.process_async = AsyncMock(side_effect=RuntimeError("service down"))
        client.__aenter__ = AsyncMock(return_value=client)
        client.__aexit__ = AsyncMock(return_value=None)
        monkeypatch.setattr(
            "lettertrack.services.ocr.mistral.Mistral", MagicMock(return_value=client)
        )
        engine = MistralOCR(api_key="key")

        with pytest.raises(RecognitionError, match="service down"):
            await engine.recognize(b"img", "image/png")

        assert client.ocr.process_async.await_count == 3
