"""Invitation emails sent to participants when a meeting is created.

Dispatch is best-effort: every address is attempted once, a failure is logged
and counted, and the meeting write is never affected. The sender is chosen at
startup (Gmail when service-account settings are present, otherwise a no-op)
and stored on ``app.state``.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Protocol

import structlog

from src.app.config import Settings
from src.app.core.monitoring import meeting_notifications_total
from src.app.meetings.schemas import Meeting
from src.app.services.gsuite import EmailMessage, GmailService, GSuiteAuthManager

logger = structlog.get_logger(__name__)


class NotificationSender(Protocol):
    """Delivers one email. Raising signals a failed delivery."""

    async def send(self, to: str, subject: str, text: str, html: str) -> None: ...


class NoopNotificationSender:
    """Sender used when no mail backend is configured."""

    async def send(self, to: str, subject: str, text: str, html: str) -> None:
        logger.info("meetings.notification_skipped", to=to, reason="email disabled")


class GmailNotificationSender:
    """Sends invitations through the Gmail API."""

    def __init__(self, gmail: GmailService) -> None:
        self._gmail = gmail

    async def send(self, to: str, subject: str, text: str, html: str) -> None:
        await self._gmail.send_email(
            EmailMessage(to=to, subject=subject, body_text=text, body_html=html)
        )


def build_notification_sender(settings: Settings) -> NotificationSender:
    """Pick the sender the settings allow."""
    service_account_path = settings.get_service_account_path()
    if not service_account_path or not settings.GOOGLE_DELEGATED_USER_EMAIL:
        logger.info("meetings.notifications_disabled")
        return NoopNotificationSender()

    auth = GSuiteAuthManager(
        service_account_file=service_account_path,
        delegated_user_email=settings.GOOGLE_DELEGATED_USER_EMAIL,
    )
    logger.info("meetings.notifications_enabled", sender=settings.GOOGLE_DELEGATED_USER_EMAIL)
    return GmailNotificationSender(GmailService(auth))


def _format_date(value: datetime) -> str:
    """Server-local time in en-US rendering, e.g. "3/14/2026, 9:30:00 AM"."""
    value = value.astimezone()
    hour = value.hour % 12 or 12
    return f"{value.month}/{value.day}/{value.year}, {hour}:{value:%M:%S %p}"


def build_invitation(meeting: Meeting) -> tuple[str, str, str]:
    """Return (subject, text, html) for a meeting invitation."""
    subject = f"Meeting Invitation: {meeting.title}"
    text = "\n".join(
        [
            f"You have been invited to a meeting: {meeting.title}",
            f"Date: {_format_date(meeting.start_date)} - {_format_date(meeting.end_date)}",
            f"Location: {meeting.location or 'Not specified'}",
            f"Description: {meeting.description or 'No description provided'}",
        ]
    )
    return subject, text, text.replace("\n", "<br>")


async def dispatch_invitations(
    sender: NotificationSender,
    meeting: Meeting,
    emails: Iterable[str],
) -> int:
    """Send the invitation to each address once.

    Returns:
        Number of addresses the sender accepted.
    """
    subject, text, html = build_invitation(meeting)
    delivered = 0
    for email in emails:
        try:
            await sender.send(email, subject, text, html)
        except Exception as exc:
            meeting_notifications_total.labels(status="failed").inc()
            logger.warning(
                "meetings.notification_failed",
                meeting_id=str(meeting.id),
                to=email,
                error=str(exc),
            )
            continue
        meeting_notifications_total.labels(status="sent").inc()
        delivered += 1
    logger.info("meetings.notifications_dispatched", meeting_id=str(meeting.id), delivered=delivered)
    return delivered
