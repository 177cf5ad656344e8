"""Google Workspace integration used to deliver meeting invitations.

Service-account authentication with domain-wide delegation and an
async-wrapped Gmail sender.
"""

from src.app.services.gsuite.auth import GSuiteAuthManager
from src.app.services.gsuite.gmail import GmailService
from src.app.services.gsuite.models import EmailMessage, SentEmailResult

__all__ = [
    "EmailMessage",
    "GmailService",
    "GSuiteAuthManager",
    "SentEmailResult",
]
