"""Bureau model."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from lettertrack.database import Base
from lettertrack.utils import utcnow


class Bureau(Base):
    """An organisational group that letters can be routed to.

    ``members`` is a plain list of email addresses. Always assign a new list
    when changing it so the JSON column is flagged dirty.
    """

    __tablename__ = "bureaus"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    members: Mapped[list[str]] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
