"""Signed table sessions kept in process memory."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any
from uuid import uuid4

from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired

from config import config


class SessionSigner:
    """Sign and verify table session tokens using itsdangerous."""

    def __init__(self, secret_key: str | None = None) -> None:
        self._serializer = URLSafeTimedSerializer(
            secret_key or config.security.secret_key,
            salt="table-session",
        )

    def sign(self, table_id: str) -> str:
        return self._serializer.dumps(table_id)

    def unsign(self, token: str, max_age: int | None = None) -> str | None:
        """
        Recover the table id from a token.

        Args:
            token: Token handed out by ``sign``
            max_age: Maximum age in seconds (defaults to session_ttl)

        Returns:
            The table id, or None for a forged or stale token
        """
        try:
            return self._serializer.loads(token, max_age=max_age or config.session_ttl)
        except (BadSignature, SignatureExpired):
            return None


_session_signer: SessionSigner | None = None


def get_session_signer() -> SessionSigner:
    global _session_signer
    if _session_signer is None:
        _session_signer = SessionSigner()
    return _session_signer


@dataclass
class _Entry:
    data: dict[str, Any]
    expires_at: datetime

    def expired(self, now: datetime) -> bool:
        return self.expires_at < now


class InMemorySessionStore:
    """
    Table snapshots keyed by session token.

    Every write pushes the expiry out by the TTL, so a table lives as long
    as somebody keeps playing at it.
    """

    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {}

    async def get(self, session_id: str) -> dict[str, Any] | None:
        """Get session data; an expired session is dropped on read."""
        entry = self._entries.get(session_id)
        if entry is None:
            return None
        if entry.expired(datetime.now()):
            del self._entries[session_id]
            return None
        return entry.data

    async def set(
        self,
        session_id: str,
        data: dict[str, Any],
        ttl: int | None = None,
    ) -> None:
        ttl = config.session_ttl if ttl is None else ttl
        self._entries[session_id] = _Entry(data, datetime.now() + timedelta(seconds=ttl))

    async def delete(self, session_id: str) -> None:
        self._entries.pop(session_id, None)

    async def cleanup_expired(self) -> list[str]:
        """Drop expired sessions and return their ids."""
        now = datetime.now()
        expired = [sid for sid, entry in self._entries.items() if entry.expired(now)]
        for sid in expired:
            del self._entries[sid]
        return expired


_session_store: InMemorySessionStore | None = None


def get_session_store() -> InMemorySessionStore:
    global _session_store
    if _session_store is None:
        _session_store = InMemorySessionStore()
    return _session_store


async def create_session(data: dict[str, Any] | None = None) -> str:
    """Open a session and return its signed token."""
    session_id = get_session_signer().sign(str(uuid4()))
    await get_session_store().set(session_id, data or {})
    return session_id


def extract_session_id(token: str) -> str | None:
    """Return the raw table id behind a signed token, or None."""
    return get_session_signer().unsign(token)
