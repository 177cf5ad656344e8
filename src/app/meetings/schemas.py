"""Pydantic v2 schemas for the meeting domain.

Defines the wire contract for meetings: enums, reminders, the polymorphic
related-entity reference, create/update payloads, list filters, and the read
models returned by the API (plain, enriched with user display names, and the
detail view with participant names).

Wire field names are camelCase (``startDate``, ``createBy``); the record id
travels as ``_id``. Python code uses the snake_case attribute names.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# ── Enums ────────────────────────────────────────────────────────────────────


class MeetingType(str, Enum):
    """How the meeting takes place."""

    IN_PERSON = "in-person"
    VIRTUAL = "virtual"
    PHONE = "phone"


class MeetingStatus(str, Enum):
    """Lifecycle status of a meeting."""

    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    POSTPONED = "postponed"


class RelatedTo(str, Enum):
    """Kind of CRM entity a meeting is attached to."""

    CONTACT = "contact"
    LEAD = "lead"
    OPPORTUNITY = "opportunity"
    ACCOUNT = "account"


# Table owning each kind of related entity
RELATED_TABLES: dict[RelatedTo, str] = {
    RelatedTo.CONTACT: "contacts",
    RelatedTo.LEAD: "leads",
    RelatedTo.OPPORTUNITY: "opportunities",
    RelatedTo.ACCOUNT: "accounts",
}


# ── Base ─────────────────────────────────────────────────────────────────────


class CamelModel(BaseModel):
    """Base model exposing camelCase aliases while accepting field names too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _dedupe(values: list[uuid.UUID] | None) -> list[uuid.UUID] | None:
    """Drop repeated ids, keeping the first occurrence order."""
    if values is None:
        return None
    return list(dict.fromkeys(values))


# ── Supporting Models ────────────────────────────────────────────────────────


class Reminder(CamelModel):
    """A reminder for the meeting; ``sent`` flips once it has fired."""

    time: datetime | None = None
    sent: bool = False


class RelatedRef(BaseModel):
    """Tagged reference to the CRM entity a meeting belongs to."""

    kind: RelatedTo
    id: uuid.UUID

    @property
    def table(self) -> str:
        return RELATED_TABLES[self.kind]


class ParticipantName(CamelModel):
    """Participant id with its display name (detail view only)."""

    id: uuid.UUID = Field(alias="_id")
    name: str


# ── Write Models ─────────────────────────────────────────────────────────────


class MeetingFields(CamelModel):
    """Client-writable meeting fields with their defaults."""

    title: str = Field(min_length=1)
    description: str | None = None
    start_date: datetime
    end_date: datetime
    location: str | None = None
    meeting_type: MeetingType = MeetingType.IN_PERSON
    status: MeetingStatus = MeetingStatus.SCHEDULED
    related_to: RelatedTo = RelatedTo.CONTACT
    related_id: uuid.UUID | None = None
    participants: list[uuid.UUID] = Field(default_factory=list)
    assigned_to: uuid.UUID | None = None
    notes: str | None = None
    reminders: list[Reminder] = Field(default_factory=list)

    @field_validator("participants")
    @classmethod
    def _unique_participants(cls, value: list[uuid.UUID]) -> list[uuid.UUID]:
        return _dedupe(value) or []

    @property
    def related(self) -> RelatedRef | None:
        """The related entity reference, or None when no id is set."""
        if self.related_id is None:
            return None
        return RelatedRef(kind=self.related_to, id=self.related_id)


class MeetingCreate(MeetingFields):
    """Create payload. Notification fields drive the invitation side-channel
    and are never persisted."""

    send_notifications: bool = False
    participant_emails: list[str] = Field(default_factory=list)


class MeetingUpdate(CamelModel):
    """Partial update payload. Only fields present in the request are applied,
    explicit nulls included."""

    title: str | None = Field(None, min_length=1)
    description: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    location: str | None = None
    meeting_type: MeetingType | None = None
    status: MeetingStatus | None = None
    related_to: RelatedTo | None = None
    related_id: uuid.UUID | None = None
    participants: list[uuid.UUID] | None = None
    assigned_to: uuid.UUID | None = None
    notes: str | None = None
    reminders: list[Reminder] | None = None

    @field_validator("participants")
    @classmethod
    def _unique_participants(cls, value: list[uuid.UUID] | None) -> list[uuid.UUID] | None:
        return _dedupe(value)

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class MeetingFilter(CamelModel):
    """Equality filters accepted by the list endpoint."""

    status: MeetingStatus | None = None
    meeting_type: MeetingType | None = None
    related_to: RelatedTo | None = None
    related_id: uuid.UUID | None = None
    assigned_to: uuid.UUID | None = None
    create_by: uuid.UUID | None = None


# ── Read Models ──────────────────────────────────────────────────────────────


class Meeting(MeetingFields):
    """A persisted meeting as stored."""

    id: uuid.UUID = Field(alias="_id")
    create_by: uuid.UUID | None = None
    modified_by: uuid.UUID | None = None
    deleted: bool = False
    created_at: datetime
    updated_at: datetime


class EnrichedMeeting(Meeting):
    """Meeting with display names of its creator, assignee and last modifier.

    A name is null when the referenced user does not exist.
    """

    created_by_name: str | None = None
    assigned_to_name: str | None = None
    modified_by_name: str | None = None


class MeetingDetail(EnrichedMeeting):
    """Single-meeting view, adding participant display names."""

    participant_names: list[ParticipantName] = Field(default_factory=list)


class SoftDeleteResult(CamelModel):
    """Outcome counts of a bulk soft-delete."""

    matched_count: int
    modified_count: int
