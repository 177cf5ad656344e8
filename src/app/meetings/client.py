"""Async HTTP client for the meeting API.

MeetingClient mirrors the server handlers one call each. The bearer token is
read from local session storage on every call, so a token refreshed on disk is
picked up without rebuilding the client. Errors are logged and re-raised
unchanged; there is no retry.
"""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import Any, Protocol

import httpx
import structlog

from src.app.config import get_settings

logger = structlog.get_logger(__name__)


class TokenStore(Protocol):
    def get_token(self) -> str | None: ...


class FileTokenStore:
    """Token kept in a local file, written by whatever performed the login."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()

    def get_token(self) -> str | None:
        try:
            token = self._path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        return token or None

    def set_token(self, token: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(token, encoding="utf-8")

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)


def _clean_params(filters: dict[str, Any] | None) -> dict[str, str]:
    """Drop None and empty-string filters; stringify the rest."""
    return {
        key: str(value.value if hasattr(value, "value") else value)
        for key, value in (filters or {}).items()
        if value is not None and value != ""
    }


class MeetingClient:
    """Async client for the /meeting endpoints.

    Args:
        base_url: API root, e.g. ``http://localhost:5001/api``. Defaults to
            MEETING_API_URL.
        token_store: Source of the bearer token. Defaults to a FileTokenStore
            on MEETING_TOKEN_FILE.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (used to run against an
            in-process app or a mock).
    """

    TIMEOUT = 10.0

    def __init__(
        self,
        base_url: str | None = None,
        token_store: TokenStore | None = None,
        timeout: float = TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self._base_url = (base_url or settings.MEETING_API_URL).rstrip("/")
        self._token_store = token_store or FileTokenStore(settings.MEETING_TOKEN_FILE)
        self._timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        token = self._token_store.get_token()
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{self._base_url}/meeting",
            headers=self._headers(),
            timeout=self._timeout,
            transport=self._transport,
        )

    async def _request(self, event: str, method: str, path: str, **kwargs: Any) -> Any:
        async with self._client() as client:
            try:
                response = await client.request(method, path, **kwargs)
                response.raise_for_status()
            except httpx.HTTPError as exc:
                logger.error(f"meeting_client.{event}_failed", path=path, error=str(exc))
                raise
            return response.json()

    async def get_all_meetings(self, filters: dict[str, Any] | None = None) -> list[dict]:
        """GET /meeting/ with optional equality filters (camelCase keys)."""
        return await self._request("list", "GET", "/", params=_clean_params(filters))

    async def get_meeting_by_id(self, meeting_id: uuid.UUID | str) -> dict:
        return await self._request("view", "GET", f"/view/{meeting_id}")

    async def create_meeting(self, meeting: dict[str, Any]) -> dict:
        """POST /meeting/add. Returns the created record."""
        return await self._request("create", "POST", "/add", json=meeting)

    async def update_meeting(self, meeting_id: uuid.UUID | str, changes: dict[str, Any]) -> dict:
        return await self._request("update", "PUT", f"/edit/{meeting_id}", json=changes)

    async def delete_meeting(self, meeting_id: uuid.UUID | str) -> dict:
        return await self._request("delete", "DELETE", f"/delete/{meeting_id}")

    async def delete_multiple_meetings(self, meeting_ids: list[uuid.UUID | str]) -> dict:
        """POST /meeting/deleteMany with a bare JSON array of ids."""
        return await self._request(
            "delete_many", "POST", "/deleteMany", json=[str(i) for i in meeting_ids]
        )

    async def add_multiple_meetings(self, meetings: list[dict[str, Any]]) -> list[dict]:
        return await self._request("create_many", "POST", "/addMany", json=meetings)
