"""Role-based visibility for meeting listings.

A superadmin sees every undeleted meeting and may filter by creator. Anyone
else sees only meetings they created, are assigned to, or participate in;
a creator filter they send is discarded in favour of that rule.
"""

from __future__ import annotations

import uuid

from sqlalchemy import ColumnElement, exists, or_

from src.app.config import get_settings
from src.app.meetings.models import MeetingModel, MeetingParticipantModel
from src.app.meetings.schemas import MeetingFilter


def is_superadmin(role: str | None) -> bool:
    return role == get_settings().SUPERADMIN_ROLE


def involvement_clause(user_id: uuid.UUID) -> ColumnElement[bool]:
    """Meetings the user created, is assigned to, or participates in."""
    is_participant = exists().where(
        MeetingParticipantModel.meeting_id == MeetingModel.id,
        MeetingParticipantModel.user_id == user_id,
    )
    return or_(
        MeetingModel.create_by == user_id,
        MeetingModel.assigned_to == user_id,
        is_participant,
    )


def scope_filters(
    filters: MeetingFilter, user_id: uuid.UUID, role: str | None
) -> tuple[MeetingFilter, ColumnElement[bool] | None]:
    """Apply the caller's visibility to the requested filters.

    Returns:
        The filters to apply (creator filter dropped for non-superadmins) and
        an extra visibility clause, or None when the caller sees everything.
    """
    if is_superadmin(role):
        return filters, None
    return filters.model_copy(update={"create_by": None}), involvement_clause(user_id)
