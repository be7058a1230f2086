"""Resolve the user behind the caller's active session."""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

logger = logging.getLogger(__name__)


class SessionError(RuntimeError):
    """Raised when the session provider cannot be reached or answers oddly."""


class UnauthorizedError(PermissionError):
    """The acting identity does not own the resource it is trying to mutate."""

    def __init__(self, message: str = "Authorization failed. Please sign in again.") -> None:
        super().__init__(message)


class SessionProvider(Protocol):
    """Returns the user id of the active session, or ``None`` when signed out."""

    async def current_user_id(self) -> str | None:
        ...


class SupabaseSessionProvider:
    """Looks the access token up against the Supabase auth API."""

    def __init__(
        self,
        *,
        http: httpx.AsyncClient,
        supabase_url: str,
        anon_key: str,
        access_token: str | None,
    ) -> None:
        self._http = http
        self._url = f"{supabase_url.rstrip('/')}/auth/v1/user"
        self._anon_key = anon_key
        self._access_token = access_token

    async def current_user_id(self) -> str | None:
        if not self._access_token:
            return None

        try:
            response = await self._http.get(
                self._url,
                headers={
                    "apikey": self._anon_key,
                    "Authorization": f"Bearer {self._access_token}",
                },
            )
        except httpx.TransportError as exc:
            raise SessionError(f"Session lookup failed: {exc}") from exc

        if response.status_code in (401, 403):
            return None
        if response.status_code != 200:
            raise SessionError(f"Session lookup returned HTTP {response.status_code}")

        try:
            user_id = response.json().get("id")
        except (ValueError, AttributeError) as exc:
            raise SessionError("Session lookup returned an unexpected body.") from exc
        return str(user_id) if user_id else None


class StaticSessionProvider:
    """Fake provider with a fixed signed-in user (or none)."""

    def __init__(self, user_id: str | None) -> None:
        self._user_id = user_id

    async def current_user_id(self) -> str | None:
        return self._user_id


async def ensure_session_owner(session: SessionProvider, user_id: str) -> None:
    """Raise :class:`UnauthorizedError` unless ``user_id`` owns the active session."""

    try:
        current = await session.current_user_id()
    except SessionError as exc:
        logger.warning("Session validation failed: %s", exc)
        raise UnauthorizedError() from exc

    if current is None or current != user_id:
        raise UnauthorizedError()
