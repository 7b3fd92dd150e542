"""Shared utilities used across the application."""

import re
import uuid
from datetime import UTC, datetime

from fastapi import HTTPException

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def utcnow() -> datetime:
    """Timezone-aware current time, used as the default for timestamp columns."""
    return datetime.now(UTC)


def validate_uuid(value: str, name: str = "ID") -> uuid.UUID:
    """Validate and convert a string to UUID.

    Args:
        value: String to validate as UUID
        name: Human-readable name for error messages

    Returns:
        Validated UUID

    Raises:
        HTTPException: 400 if the string is not a valid UUID
    """
    try:
        return uuid.UUID(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {name}") from None


def is_valid_email(value: str) -> bool:
    """Loose email shape check: something@something.tld, no whitespace."""
    return bool(EMAIL_RE.match(value or ""))


def normalize_email(value: str) -> str:
    return value.strip().lower()
