"""Letter model."""

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Date, DateTime, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lettertrack.database import Base
from lettertrack.enums import LetterStatus, Urgency
from lettertrack.utils import utcnow

if TYPE_CHECKING:
    from lettertrack.models.dispatch import LetterDispatch


class Letter(Base):
    """One piece of logged correspondence.

    Only user-confirmed values are stored here; raw OCR extraction output
    is never persisted.
    """

    __tablename__ = "letters"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    sender_name: Mapped[str] = mapped_column(Text, nullable=False)
    sender_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    sender_email: Mapped[str | None] = mapped_column(Text, nullable=True)
    sender_phone: Mapped[str | None] = mapped_column(Text, nullable=True)
    recipient_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    receiver_email: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[str] = mapped_column(Text, default=Urgency.LOW)
    category: Mapped[str] = mapped_column(Text, default="general")
    status: Mapped[str] = mapped_column(Text, default=LetterStatus.RECEIVED)
    date_received: Mapped[date] = mapped_column(Date, default=date.today)
    received_by: Mapped[str | None] = mapped_column(Text, nullable=True)
    extracted_from_image: Mapped[bool] = mapped_column(Boolean, default=False)
    attachment_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    dispatches: Mapped[list["LetterDispatch"]] = relationship(
        back_populates="letter", cascade="all, delete-orphan"
    )

    @property
    def has_attachment(self) -> bool:
        return bool(self.attachment_url)
