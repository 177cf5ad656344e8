"""Service-account credentials for the Gmail send API.

The sender mailbox is impersonated through domain-wide delegation. The Gmail
resource is built once per mailbox and reused for every invitation.
"""

from __future__ import annotations

from typing import Any

import structlog
from google.oauth2 import service_account
from googleapiclient.discovery import build

logger = structlog.get_logger(__name__)

# Invitations are only ever sent, never read
GMAIL_SEND_SCOPES = ["https://www.googleapis.com/auth/gmail.send"]


class GSuiteAuthManager:
    """Builds and caches delegated Gmail resources.

    Args:
        service_account_file: Path to the service account JSON key.
        delegated_user_email: Mailbox impersonated when none is given.
    """

    def __init__(self, service_account_file: str, delegated_user_email: str) -> None:
        self._service_account_file = service_account_file
        self._delegated_user_email = delegated_user_email
        self._services: dict[str, Any] = {}

    @property
    def delegated_user_email(self) -> str:
        return self._delegated_user_email

    def _credentials_for(self, mailbox: str) -> service_account.Credentials:
        credentials = service_account.Credentials.from_service_account_file(
            self._service_account_file,
            scopes=GMAIL_SEND_SCOPES,
        )
        return credentials.with_subject(mailbox)

    def get_gmail_service(self, mailbox: str | None = None) -> Any:
        """Return the Gmail v1 resource acting as ``mailbox``.

        Args:
            mailbox: Address to impersonate. Defaults to the delegated user.
        """
        mailbox = mailbox or self._delegated_user_email
        if mailbox not in self._services:
            logger.info("gsuite.gmail_service_built", mailbox=mailbox)
            self._services[mailbox] = build(
                "gmail",
                "v1",
                credentials=self._credentials_for(mailbox),
                cache_discovery=False,
            )
        return self._services[mailbox]
