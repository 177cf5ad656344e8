"""Meeting persistence models.

Two SQLAlchemy models:
- MeetingModel: One row per meeting. Soft-deleted via the ``deleted`` flag,
  never physically removed. Reminders stored as JSON for schema flexibility.
- MeetingParticipantModel: The participant set, one row per (meeting, user)
  with its position so participant order survives a round trip.

User references (create_by, assigned_to, modified_by, participants) carry no
foreign key constraints: users are owned elsewhere and referential integrity
is application-level, like the related-entity reference.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.app.core.database import Base


class MeetingModel(Base):
    """A scheduled meeting tied to a CRM entity."""

    __tablename__ = "meetings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    location: Mapped[str | None] = mapped_column(String(500), nullable=True)
    meeting_type: Mapped[str] = mapped_column(String(20), default="in-person", nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="scheduled", nullable=False)
    related_to: Mapped[str] = mapped_column(String(20), default="contact", nullable=False)
    related_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    assigned_to: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True, index=True)
    create_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True, index=True)
    modified_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    reminders_data: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    participant_links: Mapped[list[MeetingParticipantModel]] = relationship(
        back_populates="meeting",
        cascade="all, delete-orphan",
        order_by="MeetingParticipantModel.position",
        lazy="selectin",
    )

    @property
    def participant_ids(self) -> list[uuid.UUID]:
        return [link.user_id for link in self.participant_links]


class MeetingParticipantModel(Base):
    """Membership of a user in a meeting's participant set."""

    __tablename__ = "meeting_participants"

    # Surrogate key: replacing the participant set inserts new rows before
    # the orphaned ones are deleted within the same flush
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    meeting_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("meetings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    meeting: Mapped[MeetingModel] = relationship(back_populates="participant_links")
