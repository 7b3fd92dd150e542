import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from lettertrack.database import get_db
from lettertrack.dependencies import get_mail_relay
from lettertrack.enums import LetterStatus, Urgency
from lettertrack.exceptions import InvalidRecipientsError, MailNotConfiguredError
from lettertrack.models import Letter, LetterDispatch
from lettertrack.services.dispatch import send_letter
from lettertrack.services.mail import MailRelay
from lettertrack.utils import is_valid_email, validate_uuid

logger = logging.getLogger(__name__)

router = APIRouter()

# Letter columns a PATCH may change but never clear
NON_NULLABLE_FIELDS = frozenset(
    {"title", "sender_name", "content", "priority", "category", "status", "date_received"}
)


def _optional_email(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    value = value.strip()
    if not is_valid_email(value):
        raise ValueError("Invalid email address")
    return value


class LetterCreate(BaseModel):
    title: str = Field(min_length=1)
    sender_name: str = Field(min_length=1)
    content: str = Field(min_length=1)
    sender_address: str | None = None
    sender_email: str | None = None
    sender_phone: str | None = None
    recipient_name: str | None = None
    receiver_email: str | None = None
    priority: Urgency = Urgency.LOW
    category: str = "general"
    status: LetterStatus = LetterStatus.RECEIVED
    date_received: date | None = None
    received_by: str | None = None
    extracted_from_image: bool = False
    attachment_url: str | None = None

    @field_validator("title", "sender_name", "content")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Field is required")
        return v.strip()

    @field_validator("sender_email", "receiver_email")
    @classmethod
    def valid_email(cls, v: str | None) -> str | None:
        return _optional_email(v)


class LetterUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1)
    sender_name: str | None = Field(default=None, min_length=1)
    content: str | None = Field(default=None, min_length=1)
    sender_address: str | None = None
    sender_email: str | None = None
    sender_phone: str | None = None
    recipient_name: str | None = None
    receiver_email: str | None = None
    priority: Urgency | None = None
    category: str | None = None
    status: LetterStatus | None = None
    date_received: date | None = None
    received_by: str | None = None
    attachment_url: str | None = None

    @field_validator("sender_email", "receiver_email")
    @classmethod
    def valid_email(cls, v: str | None) -> str | None:
        return _optional_email(v)


class LetterResponse(BaseModel):
    id: str
    title: str
    sender_name: str
    sender_address: str | None
    sender_email: str | None
    sender_phone: str | None
    recipient_name: str | None
    receiver_email: str | None
    content: str
    priority: str
    category: str
    status: str
    date_received: str
    received_by: str | None
    extracted_from_image: bool
    attachment_url: str | None
    has_attachment: bool
    created_at: str | None = None
    updated_at: str | None = None


class LetterListResponse(BaseModel):
    letters: list[LetterResponse]


class SendRequest(BaseModel):
    bureau_id: str | None = None
    recipients: list[str] | None = None
    subject: str | None = None
    message: str | None = None
    sent_by: str | None = None


class DispatchResponse(BaseModel):
    id: str
    recipient_email: str
    subject: str
    status: str
    bureau_id: str | None
    relay_message_id: str | None
    error_message: str | None
    sent_by: str | None
    created_at: str | None = None


class SendResponse(BaseModel):
    letter_status: str
    sent: int
    failed: int
    dispatches: list[DispatchResponse]


class DispatchListResponse(BaseModel):
    dispatches: list[DispatchResponse]


def _letter_response(letter: Letter) -> LetterResponse:
    return LetterResponse(
        id=str(letter.id),
        title=letter.title,
        sender_name=letter.sender_name,
        sender_address=letter.sender_address,
        sender_email=letter.sender_email,
        sender_phone=letter.sender_phone,
        recipient_name=letter.recipient_name,
        receiver_email=letter.receiver_email,
        content=letter.content,
        priority=letter.priority,
        category=letter.category,
        status=letter.status,
        date_received=letter.date_received.isoformat(),
        received_by=letter.received_by,
        extracted_from_image=letter.extracted_from_image,
        attachment_url=letter.attachment_url,
        has_attachment=letter.has_attachment,
        created_at=letter.created_at.isoformat() if letter.created_at else None,
        updated_at=letter.updated_at.isoformat() if letter.updated_at else None,
    )


def _dispatch_response(dispatch: LetterDispatch) -> DispatchResponse:
    return DispatchResponse(
        id=str(dispatch.id),
        recipient_email=dispatch.recipient_email,
        subject=dispatch.subject,
        status=dispatch.status,
        bureau_id=str(dispatch.bureau_id) if dispatch.bureau_id else None,
        relay_message_id=dispatch.relay_message_id,
        error_message=dispatch.error_message,
        sent_by=dispatch.sent_by,
        created_at=dispatch.created_at.isoformat() if dispatch.created_at else None,
    )


async def _get_letter(db: AsyncSession, letter_id: str) -> Letter:
    letter_uuid = validate_uuid(letter_id, "letter ID")
    result = await db.execute(select(Letter).where(Letter.id == letter_uuid))
    letter = result.scalar_one_or_none()
    if not letter:
        raise HTTPException(status_code=404, detail="Letter not found")
    return letter


@router.post("", response_model=LetterResponse, status_code=201)
async def create_letter(letter: LetterCreate, db: AsyncSession = Depends(get_db)):
    """Log a new letter."""
    data = letter.model_dump()
    data["date_received"] = data["date_received"] or date.today()
    new_letter = Letter(**data)
    db.add(new_letter)
    await db.flush()
    await db.refresh(new_letter)

    logger.info(f"Letter {new_letter.id} logged (priority {new_letter.priority})")
    return _letter_response(new_letter)


@router.get("", response_model=LetterListResponse)
async def list_letters(
    status: LetterStatus | None = None,
    priority: Urgency | None = None,
    db: AsyncSession = Depends(get_db),
):
    """List letters, newest first."""
    query = select(Letter).order_by(Letter.created_at.desc())
    if status:
        query = query.where(Letter.status == status)
    if priority:
        query = query.where(Letter.priority == priority)

    result = await db.execute(query)
    letters = result.scalars().all()
    return LetterListResponse(letters=[_letter_response(letter) for letter in letters])


@router.get("/search", response_model=LetterListResponse)
async def search_letters(
    q: str = Query(min_length=1),
    db: AsyncSession = Depends(get_db),
):
    """Case-insensitive search over title, content, sender and receiving user."""
    term = q.strip()
    result = await db.execute(
        select(Letter)
        .where(
            or_(
                Letter.title.icontains(term, autoescape=True),
                Letter.content.icontains(term, autoescape=True),
                Letter.sender_name.icontains(term, autoescape=True),
                Letter.received_by.icontains(term, autoescape=True),
            )
        )
        .order_by(Letter.created_at.desc())
    )
    letters = result.scalars().all()
    return LetterListResponse(letters=[_letter_response(letter) for letter in letters])


@router.get("/{letter_id}", response_model=LetterResponse)
async def get_letter(letter_id: str, db: AsyncSession = Depends(get_db)):
    """Get a single letter."""
    letter = await _get_letter(db, letter_id)
    return _letter_response(letter)


@router.patch("/{letter_id}", response_model=LetterResponse)
async def update_letter(
    letter_id: str,
    updates: LetterUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Apply a partial update to a letter."""
    letter = await _get_letter(db, letter_id)

    for field_name, value in updates.model_dump(exclude_unset=True).items():
        if value is None and field_name in NON_NULLABLE_FIELDS:
            raise HTTPException(status_code=422, detail=f"{field_name} cannot be cleared")
        setattr(letter, field_name, value)

    await db.flush()
    await db.refresh(letter)
    return _letter_response(letter)


@router.delete("/{letter_id}", status_code=204)
async def delete_letter(letter_id: str, db: AsyncSession = Depends(get_db)):
    """Delete a letter and its send history."""
    letter = await _get_letter(db, letter_id)
    await db.delete(letter)
    await db.flush()
    logger.info(f"Letter {letter_id} deleted")


@router.post("/{letter_id}/send", response_model=SendResponse)
async def send(
    letter_id: str,
    request: SendRequest,
    db: AsyncSession = Depends(get_db),
    relay: MailRelay = Depends(get_mail_relay),
):
    """Email a letter to a bureau's members, selected members, or explicit addresses."""
    letter = await _get_letter(db, letter_id)
    bureau_uuid = validate_uuid(request.bureau_id, "bureau ID") if request.bureau_id else None

    try:
        outcome = await send_letter(
            db,
            letter,
            relay,
            bureau_id=bureau_uuid,
            recipients=request.recipients,
            subject=request.subject,
            message=request.message,
            sent_by=request.sent_by,
        )
    except InvalidRecipientsError as e:
        raise HTTPException(status_code=422, detail=str(e)) from None
    except MailNotConfiguredError as e:
        raise HTTPException(status_code=503, detail=str(e)) from None

    body = SendResponse(
        letter_status=outcome.letter_status,
        sent=len(outcome.sent),
        failed=len(outcome.failed),
        dispatches=[_dispatch_response(d) for d in outcome.dispatches],
    )
    if not outcome.sent:
        # Return instead of raising so the failed attempts are still committed
        return JSONResponse(status_code=502, content=body.model_dump(mode="json"))
    return body


@router.get("/{letter_id}/dispatches", response_model=DispatchListResponse)
async def list_dispatches(letter_id: str, db: AsyncSession = Depends(get_db)):
    """Send history for a letter, newest first."""
    letter = await _get_letter(db, letter_id)
    result = await db.execute(
        select(LetterDispatch)
        .where(LetterDispatch.letter_id == letter.id)
        .order_by(LetterDispatch.created_at.desc())
    )
    return DispatchListResponse(
        dispatches=[_dispatch_response(d) for d in result.scalars().all()]
    )
