"""Enums for status values used throughout the application."""

from enum import StrEnum


class Urgency(StrEnum):
    """Priority level attached to a letter, lowest first."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class LetterStatus(StrEnum):
    """Where a letter is in its lifecycle."""

    RECEIVED = "received"
    DRAFT = "draft"
    PENDING = "pending"
    SENT = "sent"


class DispatchStatus(StrEnum):
    """Outcome of sending a letter to one recipient."""

    SENT = "sent"
    FAILED = "failed"
