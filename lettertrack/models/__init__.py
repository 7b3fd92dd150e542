"""Models package - re-exports all models for convenient imports."""

from lettertrack.models.bureau import Bureau
from lettertrack.models.dispatch import LetterDispatch
from lettertrack.models.letter import Letter

__all__ = [
    "Bureau",
    "Letter",
    "LetterDispatch",
]
