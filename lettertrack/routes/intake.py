"""Letter intake: pre-fill the letter form from pasted or scanned text."""

import json
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import BaseModel

from lettertrack.dependencies import get_field_extractor, get_recognition_service
from lettertrack.exceptions import (
    DocumentTooLargeError,
    RecognitionError,
    UnsupportedDocumentError,
)
from lettertrack.services.extraction import FieldExtractor
from lettertrack.services.ocr import RecognitionService

logger = logging.getLogger(__name__)

router = APIRouter()

NO_TEXT_MESSAGE = (
    "No text could be extracted from the document. "
    "Please try a clearer image or enter the information manually."
)


class ExtractRequest(BaseModel):
    text: str | None = None
    form: dict | None = None


class ExtractedFields(BaseModel):
    date: str
    title: str
    sender: str
    recipient: str
    contact: str
    urgency: str


class ExtractResponse(BaseModel):
    fields: ExtractedFields
    form: dict


class ScanResponse(ExtractResponse):
    text: str
    page_count: int
    message: str | None = None


@router.post("/extract", response_model=ExtractResponse)
async def extract(
    request: ExtractRequest,
    extractor: FieldExtractor = Depends(get_field_extractor),
):
    """Extract letter fields from already-recognized text and merge them into the form."""
    result = extractor.extract(request.text or "")
    return ExtractResponse(
        fields=ExtractedFields(**result.to_dict()),
        form=result.merge_into(request.form),
    )


@router.post("/scan", response_model=ScanResponse)
async def scan(
    file: UploadFile = File(...),
    form: str | None = Form(default=None),
    extractor: FieldExtractor = Depends(get_field_extractor),
    recognition: RecognitionService = Depends(get_recognition_service),
):
    """
    Recognize the first page of an uploaded scan and pre-fill the letter form.

    ``form`` is an optional JSON object with the form's current values; only
    fields found in the scan overwrite it. The recognized text is also put in
    the form's ``content``.
    """
    current_form = _parse_form(form)
    content = await file.read()

    try:
        page = await recognition.recognize(content, file.content_type or "")
    except UnsupportedDocumentError as e:
        raise HTTPException(
            status_code=415,
            detail="Please select a valid image file (JPEG, PNG, GIF, BMP) or PDF",
        ) from e
    except DocumentTooLargeError as e:
        raise HTTPException(status_code=413, detail=str(e)) from e
    except RecognitionError as e:
        logger.error(f"Scan of {file.filename} failed: {e}")
        raise HTTPException(
            status_code=502,
            detail=(
                "Failed to extract text from the document. "
                "Please try again or enter the information manually."
            ),
        ) from e

    result = extractor.extract(page.text)
    merged = result.merge_into(current_form)
    message = None
    if page.text:
        merged["content"] = page.text
        merged["extracted_from_image"] = True
    else:
        message = NO_TEXT_MESSAGE

    return ScanResponse(
        text=page.text,
        page_count=page.page_count,
        fields=ExtractedFields(**result.to_dict()),
        form=merged,
        message=message,
    )


def _parse_form(raw: str | None) -> dict:
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        raise HTTPException(status_code=422, detail="form must be a JSON object") from None
    if not isinstance(parsed, dict):
        raise HTTPException(status_code=422, detail="form must be a JSON object")
    return parsed
