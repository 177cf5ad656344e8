"""Pydantic schemas for outgoing Gmail messages."""

from __future__ import annotations

from pydantic import BaseModel, Field


class EmailMessage(BaseModel):
    """A single-recipient email with a plain-text part and an HTML alternative."""

    to: str
    subject: str
    body_text: str
    body_html: str | None = None


class SentEmailResult(BaseModel):
    """Identifiers Gmail assigned to a sent message."""

    message_id: str
    thread_id: str = ""
    label_ids: list[str] = Field(default_factory=list)
