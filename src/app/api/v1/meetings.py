"""REST API endpoints for meeting records.

Seven handlers under ``/meeting``: list, view, add, edit, delete, deleteMany
and addMany. All require an authenticated caller. Each performs one store
operation through the MeetingRepository on ``app.state``; store errors are
converted into the MeetingError taxonomy, which ``src.app.main`` renders as
``{error}`` or ``{message}`` bodies.
"""

from __future__ import annotations

import uuid
from typing import Any

import structlog
from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, status
from sqlalchemy.exc import SQLAlchemyError

from src.app.api.deps import get_current_user
from src.app.meetings.errors import InternalFailure, NotFound, NothingDeleted, ValidationFailure
from src.app.meetings.notifications import NotificationSender, dispatch_invitations
from src.app.meetings.repository import MeetingRepository
from src.app.meetings.schemas import (
    EnrichedMeeting,
    Meeting,
    MeetingCreate,
    MeetingDetail,
    MeetingFields,
    MeetingFilter,
    MeetingStatus,
    MeetingType,
    MeetingUpdate,
    RelatedTo,
)
from src.app.models.user import User

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/meeting", tags=["meeting"])


# ── Dependency Injection Helpers ─────────────────────────────────────────────


def _get_meeting_repository(request: Request) -> MeetingRepository:
    """Retrieve MeetingRepository from app.state, 503 if not available."""
    repo = getattr(request.app.state, "meeting_repository", None)
    if repo is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Meeting store not initialized",
        )
    return repo


def _get_notification_sender(request: Request) -> NotificationSender | None:
    return getattr(request.app.state, "notification_sender", None)


def _parse_ids(raw_ids: list[Any]) -> list[uuid.UUID]:
    """Keep the ids that parse as UUIDs; anything else cannot match a record."""
    ids: list[uuid.UUID] = []
    for raw in raw_ids:
        try:
            ids.append(uuid.UUID(str(raw)))
        except ValueError:
            continue
    return ids


# ── Reads ────────────────────────────────────────────────────────────────────


@router.get("/", response_model=list[EnrichedMeeting])
async def list_meetings(
    request: Request,
    status_filter: MeetingStatus | None = Query(None, alias="status"),
    meeting_type: MeetingType | None = Query(None, alias="meetingType"),
    related_to: RelatedTo | None = Query(None, alias="relatedTo"),
    related_id: uuid.UUID | None = Query(None, alias="relatedId"),
    assigned_to: uuid.UUID | None = Query(None, alias="assignedTo"),
    create_by: uuid.UUID | None = Query(None, alias="createBy"),
    user: User = Depends(get_current_user),
) -> list[EnrichedMeeting]:
    """List undeleted meetings visible to the caller, with display names."""
    repo = _get_meeting_repository(request)
    filters = MeetingFilter(
        status=status_filter,
        meeting_type=meeting_type,
        related_to=related_to,
        related_id=related_id,
        assigned_to=assigned_to,
        create_by=create_by,
    )
    try:
        return await repo.list_meetings(filters, user.id, user.role)
    except SQLAlchemyError as exc:
        logger.error("meetings.list_failed", error=str(exc))
        raise InternalFailure("Internal Server Error") from exc


@router.get("/view/{meeting_id}", response_model=MeetingDetail)
async def view_meeting(
    meeting_id: uuid.UUID,
    request: Request,
    user: User = Depends(get_current_user),
) -> MeetingDetail:
    """Get one undeleted meeting with participant names."""
    repo = _get_meeting_repository(request)
    try:
        meeting = await repo.get_meeting_detail(meeting_id)
    except SQLAlchemyError as exc:
        logger.error("meetings.view_failed", meeting_id=str(meeting_id), error=str(exc))
        raise InternalFailure("Error retrieving meeting") from exc
    if meeting is None:
        raise NotFound("Meeting not found.")
    return meeting


# ── Writes ───────────────────────────────────────────────────────────────────


@router.post("/add", response_model=Meeting, status_code=status.HTTP_201_CREATED)
async def add_meeting(
    body: MeetingCreate,
    request: Request,
    user: User = Depends(get_current_user),
) -> Meeting:
    """Create a meeting; optionally email invitations to participantEmails."""
    repo = _get_meeting_repository(request)
    try:
        meeting = await repo.create_meeting(body, user.id)
    except SQLAlchemyError as exc:
        logger.error("meetings.create_failed", error=str(exc))
        raise ValidationFailure("Failed to create meeting") from exc

    sender = _get_notification_sender(request)
    if body.send_notifications and body.participant_emails and sender is not None:
        await dispatch_invitations(sender, meeting, body.participant_emails)

    return meeting


@router.put("/edit/{meeting_id}", response_model=Meeting)
async def edit_meeting(
    meeting_id: uuid.UUID,
    body: MeetingUpdate,
    request: Request,
    user: User = Depends(get_current_user),
) -> Meeting:
    """Overwrite the supplied fields of an undeleted meeting."""
    repo = _get_meeting_repository(request)
    try:
        meeting = await repo.update_meeting(meeting_id, body, user.id)
    except SQLAlchemyError as exc:
        logger.error("meetings.update_failed", meeting_id=str(meeting_id), error=str(exc))
        raise ValidationFailure("Failed to update meeting") from exc
    if meeting is None:
        raise NotFound("Meeting not found or already deleted")
    return meeting


@router.delete("/delete/{meeting_id}")
async def delete_meeting(
    meeting_id: uuid.UUID,
    request: Request,
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    """Soft-delete one meeting."""
    repo = _get_meeting_repository(request)
    try:
        meeting = await repo.soft_delete(meeting_id, user.id)
    except SQLAlchemyError as exc:
        logger.error("meetings.delete_failed", meeting_id=str(meeting_id), error=str(exc))
        raise InternalFailure("Error deleting meeting", body_key="message") from exc
    if meeting is None:
        raise NotFound("Meeting not found")
    return {
        "message": "Meeting removed successfully",
        "result": meeting.model_dump(mode="json", by_alias=True),
    }


@router.post("/deleteMany")
async def delete_many_meetings(
    request: Request,
    meeting_ids: list[Any] = Body(...),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    """Soft-delete every listed meeting that is not already deleted."""
    repo = _get_meeting_repository(request)
    try:
        result = await repo.soft_delete_many(_parse_ids(meeting_ids), user.id)
    except SQLAlchemyError as exc:
        logger.error("meetings.delete_many_failed", error=str(exc))
        raise InternalFailure("Error deleting meetings", body_key="message") from exc
    if result.modified_count == 0:
        raise NothingDeleted("No meetings found or deleted")
    return {
        "message": f"{result.modified_count} meetings removed successfully",
        "result": result.model_dump(by_alias=True),
    }


@router.post("/addMany", response_model=list[Meeting], status_code=status.HTTP_201_CREATED)
async def add_many_meetings(
    request: Request,
    body: list[MeetingFields] = Body(...),
    user: User = Depends(get_current_user),
) -> list[Meeting]:
    """Insert a batch of meetings in one transaction."""
    repo = _get_meeting_repository(request)
    try:
        return await repo.create_many(body, user.id)
    except SQLAlchemyError as exc:
        logger.error("meetings.create_many_failed", count=len(body), error=str(exc))
        raise ValidationFailure("Failed to create meetings") from exc
