"""Shared builders for meeting tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from src.app.core.security import create_access_token
from src.app.meetings.schemas import MeetingFields
from src.app.models.user import User


class RecordingSender:
    """NotificationSender double that records sends and fails for chosen addresses."""

    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.sent: list[dict] = []
        self.attempted: list[str] = []

    async def send(self, to: str, subject: str, text: str, html: str) -> None:
        self.attempted.append(to)
        if to in self.failing:
            raise RuntimeError(f"mailbox unavailable: {to}")
        self.sent.append({"to": to, "subject": subject, "text": text, "html": html})


def make_fields(**overrides) -> MeetingFields:
    """Valid meeting fields starting tomorrow, overridable per test."""
    start = datetime.now(timezone.utc) + timedelta(days=1)
    values = {
        "title": "Quarterly review",
        "start_date": start,
        "end_date": start + timedelta(hours=1),
    }
    values.update(overrides)
    return MeetingFields(**values)


def meeting_payload(**overrides) -> dict:
    """Wire-format (camelCase) create payload."""
    start = datetime(2026, 11, 3, 15, 0, tzinfo=timezone.utc)
    payload = {
        "title": "Discovery call",
        "startDate": start.isoformat(),
        "endDate": (start + timedelta(minutes=45)).isoformat(),
    }
    payload.update(overrides)
    return payload


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}
