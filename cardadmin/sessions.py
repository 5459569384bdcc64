"""
Server-side sessions and the shared-password check.

Sessions live in the server process. The client only holds a signed,
opaque session id in an HTTP-only cookie, so logging out removes the
session itself rather than relying on the browser to drop the cookie.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol

from cardadmin.config import SESSION_TTL_SECONDS
from cardadmin.errors import AuthenticationError, ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionState:
    """Immutable snapshot of a session as seen by one request."""

    session_id: Optional[str]
    authenticated: bool
    expires_at: Optional[float] = None

    @classmethod
    def anonymous(cls) -> "SessionState":
        return cls(session_id=None, authenticated=False)


class SessionStore(Protocol):
    def create(self, *, authenticated: bool = True) -> SessionState:
        ...

    def get(self, session_id: str) -> Optional[SessionState]:
        ...

    def destroy(self, session_id: str) -> None:
        ...

    def prune_expired(self) -> int:
        ...


@dataclass
class _SessionRecord:
    authenticated: bool
    expires_at: float


class InMemorySessionStore:
    """Process-local session store with a fixed time-to-live."""

    def __init__(
        self,
        ttl_seconds: int = SESSION_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions: Dict[str, _SessionRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, *, authenticated: bool = True) -> SessionState:
        session_id = secrets.token_urlsafe(32)
        record = _SessionRecord(
            authenticated=authenticated,
            expires_at=self._clock() + self.ttl_seconds,
        )
        with self._lock:
            self._sessions[session_id] = record
        return SessionState(session_id, record.authenticated, record.expires_at)

    def get(self, session_id: str) -> Optional[SessionState]:
        with self._lock:
            record = self._sessions.get(session_id)
            if record is None:
                return None
            if record.expires_at <= self._clock():
                del self._sessions[session_id]
                return None
        return SessionState(session_id, record.authenticated, record.expires_at)

    def destroy(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def prune_expired(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [
                sid for sid, record in self._sessions.items() if record.expires_at <= now
            ]
            for sid in expired:
                del self._sessions[sid]
        if expired:
            logger.info("Pruned %d expired sessions", len(expired))
        return len(expired)

    def reset(self) -> None:
        """Drop every session (useful in tests)."""
        with self._lock:
            self._sessions.clear()


class SessionSigner:
    """Signs session ids so a forged cookie is rejected before any lookup."""

    def __init__(self, secret: str):
        if not secret:
            raise ConfigurationError("Session secret is required")
        self._key = secret.encode("utf-8")

    def _signature(self, session_id: str) -> str:
        return hmac.new(
            self._key, session_id.encode("utf-8"), hashlib.sha256
        ).hexdigest()

    def sign(self, session_id: str) -> str:
        return f"{session_id}.{self._signature(session_id)}"

    def unsign(self, token: str) -> Optional[str]:
        session_id, sep, signature = token.rpartition(".")
        if not sep or not session_id:
            return None
        if not hmac.compare_digest(signature, self._signature(session_id)):
            return None
        return session_id


def check_password(configured: Optional[str], submitted: Optional[str]) -> None:
    """
    Compare a submitted password with the configured admin password.

    Raises:
        ConfigurationError: when no admin password is configured.
        AuthenticationError: when the passwords differ.
    """
    if not configured:
        raise ConfigurationError("Server configuration error")
    if not isinstance(submitted, str) or not hmac.compare_digest(
        submitted.encode("utf-8"), configured.encode("utf-8")
    ):
        raise AuthenticationError("Invalid password")
