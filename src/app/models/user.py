"""User model -- the people meetings are created by, assigned to, and attended by.

Users are owned by the account-management side of the platform. This service
only reads them: to authenticate the caller, to decide visibility, and to
attach display names to meetings. Nothing on a request path writes here.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.app.core.database import Base


class User(Base):
    """A platform user. Soft-deleted users keep their row with deleted=True."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    role: Mapped[str] = mapped_column(String(50), default="user", nullable=False)
    deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
