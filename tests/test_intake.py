"""Integration tests for letter intake (field extraction and scanning)."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient

from lettertrack.dependencies import get_field_extractor
from lettertrack.exceptions import RecognitionError
from lettertrack.services.extraction import FieldExtractor
from lettertrack.services.ocr import RecognizedPage
from main import app

SAMPLE_LETTER_TEXT = """Ministry of Works
Plot 12, Kampala Road
Date: August 15, 2025
To: The Permanent Secretary
Subject: Request for Road Maintenance Funds
Dear Sir,
This is an urgent request for priority attention to the damaged roads.
Contact us at works@example.org or +256 700 123 456.
Yours Faithfully, Jane Okello
"""

EXPECTED_FIELDS = {
    "date": "2025-08-15",
    "title": "Request for Road Maintenance Funds",
    "sender": "Jane Okello",
    "recipient": "The Permanent Secretary",
    "contact": "works@example.org",
    "urgency": "urgent",
}


class TestExtract:
    """Tests for extracting fields from already-recognized text."""

    @pytest.mark.asyncio
    async def test_extract_fields(self, client: AsyncClient):
        response = await client.post("/api/intake/extract", json={"text": SAMPLE_LETTER_TEXT})

        assert response.status_code == 200
        data = response.json()
        assert data["fields"] == EXPECTED_FIELDS
        assert data["form"] == {
            "date_received": "2025-08-15",
            "title": "Request for Road Maintenance Funds",
            "sender_name": "Jane Okello",
            "recipient_name": "The Permanent Secretary",
            "sender_email": "works@example.org",
            "priority": "urgent",
        }

    @pytest.mark.asyncio
    async def test_keeps_form_values_for_missing_fields(self, client: AsyncClient):
        """Test that only fields found in the text overwrite the form."""
        response = await client.post(
            "/api/intake/extract",
            json={
                "text": "Subject: Water Supply\nPlease review",
                "form": {"sender_name": "Typed Sender", "title": "Typed Title"},
            },
        )

        form = response.json()["form"]
        assert form["title"] == "Water Supply"
        assert form["sender_name"] == "Typed Sender"
        assert form["priority"] == "medium"

    @pytest.mark.asyncio
    async def test_empty_text(self, client: AsyncClient):
        response = await client.post("/api/intake/extract", json={})

        assert response.status_code == 200
        data = response.json()
        assert data["fields"]["title"] == ""
        assert data["fields"]["urgency"] == "low"
        assert data["form"] == {"priority": "low"}

    @pytest.mark.asyncio
    async def test_day_first_setting(self, client: AsyncClient):
        app.dependency_overrides[get_field_extractor] = lambda: FieldExtractor(day_first=True)

        response = await client.post("/api/intake/extract", json={"text": "Dated 12/08/2025"})

        assert response.json()["fields"]["date"] == "2025-08-12"


class TestScan:
    """Tests for scanning an uploaded letter."""

    @pytest.mark.asyncio
    async def test_scan_image(self, client: AsyncClient, mock_ocr: MagicMock):
        response = await client.post(
            "/api/intake/scan",
            files={"file": ("letter.png", b"fake-png-bytes", "image/png")},
            data={"form": json.dumps({"received_by": "Registry Clerk"})},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["fields"] == EXPECTED_FIELDS
        assert data["page_count"] == 1
        assert data["message"] is None
        assert data["form"]["received_by"] == "Registry Clerk"
        assert data["form"]["content"] == SAMPLE_LETTER_TEXT.strip()
        assert data["form"]["extracted_from_image"] is True
        mock_ocr.recognize.assert_awaited_once_with(b"fake-png-bytes", "image/png")

    @pytest.mark.asyncio
    async def test_scan_pdf(self, client: AsyncClient, mock_ocr: MagicMock):
        response = await client.post(
            "/api/intake/scan",
            files={"file": ("letter.pdf", b"%PDF-1.4", "application/pdf")},
        )

        assert response.status_code == 200
        mock_ocr.recognize.assert_awaited_once_with(b"%PDF-1.4", "application/pdf")

    @pytest.mark.asyncio
    async def test_no_text_found(self, client: AsyncClient, mock_ocr: MagicMock):
        mock_ocr.recognize = AsyncMock(
            return_value=RecognizedPage(text="", page_count=1, mime_type="image/png")
        )

        response = await client.post(
            "/api/intake/scan",
            files={"file": ("blank.png", b"blank", "image/png")},
            data={"form": json.dumps({"title": "Typed Title"})},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"].startswith("No text could be extracted")
        assert data["form"]["title"] == "Typed Title"
        assert "content" not in data["form"]

    @pytest.mark.asyncio
    async def test_unsupported_type(self, client: AsyncClient, mock_ocr: MagicMock):
        response = await client.post(
            "/api/intake/scan",
            files={"file": ("notes.txt", b"hello", "text/plain")},
        )

        assert response.status_code == 415
        assert "valid image file" in response.json()["detail"]
        mock_ocr.recognize.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_too_large(self, client: AsyncClient, mock_ocr: MagicMock):
        response = await client.post(
            "/api/intake/scan",
            files={"file": ("big.png", b"x" * (1024 * 1024 + 1), "image/png")},
        )

        assert response.status_code == 413
        mock_ocr.recognize.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_ocr_failure(self, client: AsyncClient, mock_ocr: MagicMock):
        mock_ocr.recognize = AsyncMock(side_effect=RecognitionError("OCR failed: timeout"))

        response = await client.post(
            "/api/intake/scan",
            files={"file": ("letter.png", b"png", "image/png")},
        )

        assert response.status_code == 502
        assert "enter the information manually" in response.json()["detail"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("form", ["not json", "[1, 2]"])
    async def test_bad_form_json(self, client: AsyncClient, mock_ocr: MagicMock, form):
        response = await client.post(
            "/api/intake/scan",
            files={"file": ("letter.png", b"png", "image/png")},
            data={"form": form},
        )

        assert response.status_code == 422
