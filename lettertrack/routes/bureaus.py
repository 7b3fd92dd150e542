import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lettertrack.database import get_db
from lettertrack.models import Bureau
from lettertrack.utils import is_valid_email, normalize_email, validate_uuid

logger = logging.getLogger(__name__)

router = APIRouter()


def _clean_email(value: str) -> str:
    value = normalize_email(value)
    if not is_valid_email(value):
        raise ValueError(f"Invalid email address: {value}")
    return value


class BureauCreate(BaseModel):
    name: str = Field(min_length=1)
    members: list[str] = []

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Bureau name is required")
        return v.strip()

    @field_validator("members")
    @classmethod
    def valid_members(cls, v: list[str]) -> list[str]:
        return list(dict.fromkeys(_clean_email(email) for email in v))


class MemberAdd(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def valid_email(cls, v: str) -> str:
        return _clean_email(v)


class MembersRemove(BaseModel):
    emails: list[str] = Field(min_length=1)


class BureauResponse(BaseModel):
    id: str
    name: str
    members: list[str]
    created_at: str | None = None


class BureauListResponse(BaseModel):
    bureaus: list[BureauResponse]


def _bureau_response(bureau: Bureau) -> BureauResponse:
    return BureauResponse(
        id=str(bureau.id),
        name=bureau.name,
        members=list(bureau.members or []),
        created_at=bureau.created_at.isoformat() if bureau.created_at else None,
    )


async def _get_bureau(db: AsyncSession, bureau_id: str) -> Bureau:
    bureau_uuid = validate_uuid(bureau_id, "bureau ID")
    result = await db.execute(select(Bureau).where(Bureau.id == bureau_uuid))
    bureau = result.scalar_one_or_none()
    if not bureau:
        raise HTTPException(status_code=404, detail="Bureau not found")
    return bureau


@router.post("", response_model=BureauResponse, status_code=201)
async def create_bureau(bureau: BureauCreate, db: AsyncSession = Depends(get_db)):
    """Create a bureau with an optional initial member list."""
    new_bureau = Bureau(name=bureau.name, members=bureau.members)
    db.add(new_bureau)
    try:
        await db.flush()
    except IntegrityError:
        raise HTTPException(
            status_code=409,
            detail="A bureau with this name already exists",
        ) from None

    logger.info(f"Bureau {new_bureau.name} created with {len(new_bureau.members)} members")
    return _bureau_response(new_bureau)


@router.get("", response_model=BureauListResponse)
async def list_bureaus(db: AsyncSession = Depends(get_db)):
    """List all bureaus by name."""
    result = await db.execute(select(Bureau).order_by(Bureau.name))
    return BureauListResponse(bureaus=[_bureau_response(b) for b in result.scalars().all()])


@router.get("/{bureau_id}", response_model=BureauResponse)
async def get_bureau(bureau_id: str, db: AsyncSession = Depends(get_db)):
    """Get a single bureau."""
    bureau = await _get_bureau(db, bureau_id)
    return _bureau_response(bureau)


@router.delete("/{bureau_id}", status_code=204)
async def delete_bureau(bureau_id: str, db: AsyncSession = Depends(get_db)):
    """Delete a bureau. Send history keeps its rows without the bureau link."""
    bureau = await _get_bureau(db, bureau_id)
    await db.delete(bureau)
    await db.flush()
    logger.info(f"Bureau {bureau_id} deleted")


@router.post("/{bureau_id}/members", response_model=BureauResponse)
async def add_member(
    bureau_id: str,
    member: MemberAdd,
    db: AsyncSession = Depends(get_db),
):
    """Add one member; adding an existing member is a no-op."""
    bureau = await _get_bureau(db, bureau_id)
    members = list(bureau.members or [])
    if member.email not in members:
        bureau.members = [*members, member.email]
        await db.flush()
    return _bureau_response(bureau)


@router.post("/{bureau_id}/members/remove", response_model=BureauResponse)
async def remove_members(
    bureau_id: str,
    request: MembersRemove,
    db: AsyncSession = Depends(get_db),
):
    """Remove a batch of members. Addresses that are not members are ignored."""
    bureau = await _get_bureau(db, bureau_id)
    to_remove = {normalize_email(email) for email in request.emails}
    bureau.members = [m for m in (bureau.members or []) if m not in to_remove]
    await db.flush()
    return _bureau_response(bureau)
