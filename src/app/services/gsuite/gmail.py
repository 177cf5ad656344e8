"""Async Gmail sender.

The Google client library is synchronous, so each send runs in a worker
thread via asyncio.to_thread() to keep the event loop free.
"""

from __future__ import annotations

import asyncio
import base64
from email.message import EmailMessage as MimeMessage

import structlog

from src.app.services.gsuite.auth import GSuiteAuthManager
from src.app.services.gsuite.models import EmailMessage, SentEmailResult

logger = structlog.get_logger(__name__)


def build_raw_message(email: EmailMessage, sender: str) -> str:
    """Encode an EmailMessage as the base64url RFC 2822 payload Gmail expects."""
    mime = MimeMessage()
    mime["From"] = sender
    mime["To"] = email.to
    mime["Subject"] = email.subject
    mime.set_content(email.body_text)
    if email.body_html:
        mime.add_alternative(email.body_html, subtype="html")
    return base64.urlsafe_b64encode(mime.as_bytes()).decode()


class GmailService:
    """Sends mail from the delegated mailbox."""

    def __init__(self, auth_manager: GSuiteAuthManager) -> None:
        self._auth = auth_manager

    async def send_email(self, email: EmailMessage) -> SentEmailResult:
        """Send one message. Google API errors propagate to the caller.

        Args:
            email: Message to send.

        Returns:
            SentEmailResult with Gmail's message and thread ids.
        """
        sender = self._auth.delegated_user_email
        service = self._auth.get_gmail_service(sender)
        body = {"raw": build_raw_message(email, sender)}

        def _send() -> dict:
            return service.users().messages().send(userId="me", body=body).execute()

        logger.info("gsuite.email_sending", to=email.to, subject=email.subject)
        result = await asyncio.to_thread(_send)

        return SentEmailResult(
            message_id=result.get("id", ""),
            thread_id=result.get("threadId", ""),
            label_ids=result.get("labelIds", []),
        )
