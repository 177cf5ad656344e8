"""Meeting repository -- async CRUD over the meetings table.

Provides MeetingRepository with the session_factory callable pattern: each
method opens one session, performs one store operation, and converts ORM rows
into the Pydantic read models from ``src.app.meetings.schemas``.

Reads always exclude soft-deleted meetings. List and detail views left-join
the users table to attach display names; a missing user yields a null name
and the users table is never written.

Timestamps (created_at, updated_at) are set here explicitly on every
mutation rather than by database defaults or ORM hooks.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator, Callable, Sequence
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import structlog
from sqlalchemy import Select, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from src.app.meetings.access import scope_filters
from src.app.meetings.models import MeetingModel, MeetingParticipantModel
from src.app.meetings.schemas import (
    EnrichedMeeting,
    Meeting,
    MeetingDetail,
    MeetingFields,
    MeetingFilter,
    MeetingUpdate,
    ParticipantName,
    Reminder,
    SoftDeleteResult,
)
from src.app.models.user import User

logger = structlog.get_logger(__name__)

# Filter field -> column it matches by equality
_FILTER_COLUMNS = {
    "status": MeetingModel.status,
    "meeting_type": MeetingModel.meeting_type,
    "related_to": MeetingModel.related_to,
    "related_id": MeetingModel.related_id,
    "assigned_to": MeetingModel.assigned_to,
    "create_by": MeetingModel.create_by,
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ── Serialization Helpers ───────────────────────────────────────────────────


def _display_name(user: User | None) -> str | None:
    return user.display_name if user is not None else None


def _participant_links(user_ids: Sequence[uuid.UUID]) -> list[MeetingParticipantModel]:
    return [
        MeetingParticipantModel(id=uuid.uuid4(), user_id=user_id, position=position)
        for position, user_id in enumerate(user_ids)
    ]


def _reminders_data(reminders: Sequence[Reminder] | None) -> list[dict]:
    return [r.model_dump(mode="json") for r in (reminders or [])]


def _related_log_fields(data: MeetingFields) -> dict[str, str | None]:
    """Table and id of the CRM entity a meeting is attached to, for log events."""
    related = data.related
    if related is None:
        return {"related_table": None, "related_id": None}
    return {"related_table": related.table, "related_id": str(related.id)}


def _fields_to_model(data: MeetingFields, user_id: uuid.UUID, now: datetime) -> MeetingModel:
    """Build a new MeetingModel stamped as created by user_id."""
    return MeetingModel(
        id=uuid.uuid4(),
        title=data.title,
        description=data.description,
        start_date=data.start_date,
        end_date=data.end_date,
        location=data.location,
        meeting_type=data.meeting_type.value,
        status=data.status.value,
        related_to=data.related_to.value,
        related_id=data.related_id,
        assigned_to=data.assigned_to,
        notes=data.notes,
        reminders_data=_reminders_data(data.reminders),
        participant_links=_participant_links(data.participants),
        create_by=user_id,
        modified_by=None,
        deleted=False,
        created_at=now,
        updated_at=now,
    )


def _model_to_meeting(model: MeetingModel) -> Meeting:
    """Convert MeetingModel to Meeting schema."""
    return Meeting(
        id=model.id,
        title=model.title,
        description=model.description,
        start_date=model.start_date,
        end_date=model.end_date,
        location=model.location,
        meeting_type=model.meeting_type,
        status=model.status,
        related_to=model.related_to,
        related_id=model.related_id,
        participants=model.participant_ids,
        assigned_to=model.assigned_to,
        create_by=model.create_by,
        modified_by=model.modified_by,
        notes=model.notes,
        reminders=[Reminder.model_validate(r) for r in (model.reminders_data or [])],
        deleted=model.deleted,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _enrich(
    model: MeetingModel,
    creator: User | None,
    assignee: User | None,
    modifier: User | None,
) -> EnrichedMeeting:
    return EnrichedMeeting(
        **_model_to_meeting(model).model_dump(),
        created_by_name=_display_name(creator),
        assigned_to_name=_display_name(assignee),
        modified_by_name=_display_name(modifier),
    )


# ── Repository ──────────────────────────────────────────────────────────────


class MeetingRepository:
    """Async store operations for meetings.

    Args:
        session_factory: Async callable that yields AsyncSession instances.
    """

    def __init__(
        self, session_factory: Callable[..., AsyncGenerator[AsyncSession, None]]
    ) -> None:
        self._session_factory = session_factory

    @staticmethod
    def _enriched_select() -> tuple[Select, Any]:
        """Undeleted meetings left-joined with creator, assignee and modifier."""
        creator = aliased(User, name="creator")
        assignee = aliased(User, name="assignee")
        modifier = aliased(User, name="modifier")
        stmt = (
            select(MeetingModel, creator, assignee, modifier)
            .outerjoin(creator, creator.id == MeetingModel.create_by)
            .outerjoin(assignee, assignee.id == MeetingModel.assigned_to)
            .outerjoin(modifier, modifier.id == MeetingModel.modified_by)
            .where(MeetingModel.deleted == False)  # noqa: E712
        )
        return stmt, creator

    # ── Reads ────────────────────────────────────────────────────────────

    async def list_meetings(
        self,
        filters: MeetingFilter,
        user_id: uuid.UUID,
        role: str | None,
    ) -> list[EnrichedMeeting]:
        """List undeleted meetings visible to the caller, with display names.

        Meetings whose creator has been soft-deleted are left out; meetings
        whose creator no longer exists are kept with a null creator name.

        Args:
            filters: Equality filters from the request.
            user_id: Caller's user id.
            role: Caller's role, deciding visibility.

        Returns:
            EnrichedMeeting list in store order.
        """
        filters, visibility = scope_filters(filters, user_id, role)
        stmt, creator = self._enriched_select()
        stmt = stmt.where(or_(creator.id.is_(None), creator.deleted == False))  # noqa: E712

        for field, value in filters.model_dump(exclude_none=True).items():
            if isinstance(value, Enum):
                value = value.value
            stmt = stmt.where(_FILTER_COLUMNS[field] == value)
        if visibility is not None:
            stmt = stmt.where(visibility)

        async for session in self._session_factory():
            result = await session.execute(stmt)
            return [_enrich(*row) for row in result.all()]

    async def get_meeting_detail(self, meeting_id: uuid.UUID) -> MeetingDetail | None:
        """Get one undeleted meeting with display names and participant names.

        Participants whose user record does not exist are omitted from
        participant_names but remain in participants.
        """
        stmt, _ = self._enriched_select()
        stmt = stmt.where(MeetingModel.id == meeting_id)

        async for session in self._session_factory():
            row = (await session.execute(stmt)).first()
            if row is None:
                return None
            model = row[0]
            participant_ids = model.participant_ids

            names_by_id: dict[uuid.UUID, str] = {}
            if participant_ids:
                users = await session.execute(
                    select(User).where(User.id.in_(participant_ids))
                )
                names_by_id = {u.id: u.display_name for u in users.scalars()}

            return MeetingDetail(
                **_enrich(*row).model_dump(),
                participant_names=[
                    ParticipantName(id=pid, name=names_by_id[pid])
                    for pid in participant_ids
                    if pid in names_by_id
                ],
            )

    # ── Writes ───────────────────────────────────────────────────────────

    async def create_meeting(self, data: MeetingFields, user_id: uuid.UUID) -> Meeting:
        """Persist a new meeting created by user_id."""
        async for session in self._session_factory():
            model = _fields_to_model(data, user_id, _now())
            session.add(model)
            await session.commit()
            logger.info(
                "meetings.created",
                meeting_id=str(model.id),
                user_id=str(user_id),
                **_related_log_fields(data),
            )
            return _model_to_meeting(model)

    async def create_many(
        self, items: Sequence[MeetingFields], user_id: uuid.UUID
    ) -> list[Meeting]:
        """Persist a batch of meetings in one transaction (all or nothing)."""
        async for session in self._session_factory():
            now = _now()
            models = [_fields_to_model(item, user_id, now) for item in items]
            session.add_all(models)
            await session.commit()
            logger.info("meetings.created_many", count=len(models), user_id=str(user_id))
            return [_model_to_meeting(m) for m in models]

    async def update_meeting(
        self, meeting_id: uuid.UUID, data: MeetingUpdate, user_id: uuid.UUID
    ) -> Meeting | None:
        """Overwrite the supplied fields of an undeleted meeting.

        Returns:
            The updated Meeting, or None if no undeleted meeting has this id.
        """
        async for session in self._session_factory():
            result = await session.execute(
                select(MeetingModel).where(
                    MeetingModel.id == meeting_id,
                    MeetingModel.deleted == False,  # noqa: E712
                )
            )
            model = result.scalar_one_or_none()
            if model is None:
                return None

            for field, value in data.changes().items():
                if field == "participants":
                    model.participant_links = _participant_links(value or [])
                elif field == "reminders":
                    model.reminders_data = _reminders_data(data.reminders)
                elif isinstance(value, Enum):
                    setattr(model, field, value.value)
                else:
                    setattr(model, field, value)

            model.modified_by = user_id
            model.updated_at = _now()
            await session.commit()
            logger.info("meetings.updated", meeting_id=str(meeting_id), user_id=str(user_id))
            return _model_to_meeting(model)

    async def soft_delete(self, meeting_id: uuid.UUID, user_id: uuid.UUID) -> Meeting | None:
        """Mark a meeting deleted, whatever its current deleted state.

        Returns:
            The deleted Meeting, or None if the id does not exist at all.
        """
        async for session in self._session_factory():
            model = await session.get(MeetingModel, meeting_id)
            if model is None:
                return None
            model.deleted = True
            model.modified_by = user_id
            model.updated_at = _now()
            await session.commit()
            logger.info("meetings.deleted", meeting_id=str(meeting_id), user_id=str(user_id))
            return _model_to_meeting(model)

    async def soft_delete_many(
        self, meeting_ids: Sequence[uuid.UUID], user_id: uuid.UUID
    ) -> SoftDeleteResult:
        """Mark all listed, currently undeleted meetings deleted in one statement."""
        if not meeting_ids:
            return SoftDeleteResult(matched_count=0, modified_count=0)

        stmt = (
            update(MeetingModel)
            .where(
                MeetingModel.id.in_(list(meeting_ids)),
                MeetingModel.deleted == False,  # noqa: E712
            )
            .values(deleted=True, modified_by=user_id, updated_at=_now())
            .execution_options(synchronize_session=False)
        )
        async for session in self._session_factory():
            result = await session.execute(stmt)
            await session.commit()
            count = result.rowcount or 0
            logger.info("meetings.deleted_many", requested=len(meeting_ids), modified=count)
            return SoftDeleteResult(matched_count=count, modified_count=count)
