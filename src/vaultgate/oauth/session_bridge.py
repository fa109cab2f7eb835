"""In-memory, one-time-use sessions bridging the two OAuth legs.

The authorize leg stores the client's parameters under a random key and
sends that key to the identity provider as ``state``. The callback leg
presents the key once to get the parameters back.
"""

from __future__ import annotations

import logging
import secrets
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from vaultgate.errors import CapacityExceededError, SessionNotFoundError

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL = 600  # seconds
DEFAULT_MAX_SESSIONS = 1000


@dataclass(frozen=True, slots=True)
class OAuthSession:
    """Parameters of a pending upstream authorization request."""

    client_id: str
    redirect_uri: str
    state: str
    code_challenge: str
    code_challenge_method: str
    created_at: float


def key_prefix(key: str) -> str:
    """Loggable prefix of a session key."""
    return key[:8] + "..."


class SessionBridge:
    """Time-bounded correlation store keyed by unguessable tokens."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_SESSION_TTL,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions
        self._clock = clock
        self._sessions: dict[str, OAuthSession] = {}
        self._lock = threading.Lock()

    def create(
        self,
        *,
        client_id: str,
        redirect_uri: str,
        state: str,
        code_challenge: str,
        code_challenge_method: str,
    ) -> str:
        """Store a session and return its key.

        Expired sessions are swept first. Raises CapacityExceededError when
        the store is still full; existing sessions are never evicted.
        """
        with self._lock:
            self._sweep()
            if len(self._sessions) >= self.max_sessions:
                logger.warning("Session store full (%d); refusing new session", self.max_sessions)
                raise CapacityExceededError(self.max_sessions)
            key = secrets.token_urlsafe(32)
            self._sessions[key] = OAuthSession(
                client_id=client_id,
                redirect_uri=redirect_uri,
                state=state,
                code_challenge=code_challenge,
                code_challenge_method=code_challenge_method,
                created_at=self._clock(),
            )
        logger.debug("OAuth session %s created for client %s", key_prefix(key), client_id)
        return key

    def consume(self, key: str) -> OAuthSession:
        """Remove and return the session for *key*.

        The entry is deleted before its age is checked, so a key works at
        most once. Absent, consumed and expired keys all raise
        SessionNotFoundError.
        """
        with self._lock:
            session = self._sessions.pop(key, None)
        if session is None:
            raise SessionNotFoundError
        if self._clock() - session.created_at > self.ttl_seconds:
            logger.debug("OAuth session %s presented after expiry", key_prefix(key))
            raise SessionNotFoundError
        return session

    def cleanup(self) -> int:
        """Drop expired sessions; returns how many were removed."""
        with self._lock:
            return self._sweep()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _sweep(self) -> int:
        now = self._clock()
        expired = [
            key
            for key, session in self._sessions.items()
            if now - session.created_at > self.ttl_seconds
        ]
        for key in expired:
            del self._sessions[key]
        if expired:
            logger.debug("Swept %d expired OAuth sessions", len(expired))
        return len(expired)
