"""
In-process session registry.

Opaque tokens (256 bits, hex) map to Session records with a fixed TTL.
Expired sessions are dropped lazily the first time they are read; there is
no background sweep. Sessions live only as long as the process: a restart
signs everybody out.
"""

from __future__ import annotations

import secrets
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from ..utils.logger import get_logger
from .models import Session

logger = get_logger(__name__)

SESSION_COOKIE_NAME = "session_token"
SESSION_EXPIRY_DAYS = 7


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionRegistry:
    """Owns every session. Thread-safe; endpoints run in a thread pool."""

    def __init__(
        self,
        ttl: timedelta = timedelta(days=SESSION_EXPIRY_DAYS),
        cookie_name: str = SESSION_COOKIE_NAME,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.ttl = ttl
        self.cookie_name = cookie_name
        self._clock = clock
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def init(self) -> None:
        with self._lock:
            self._sessions.clear()
        logger.info("Session registry started", ttl_seconds=int(self.ttl.total_seconds()))

    def shutdown(self) -> None:
        with self._lock:
            count = len(self._sessions)
            self._sessions.clear()
        logger.info("Session registry stopped", dropped_sessions=count)

    def create(self, user_id: int, email: str) -> str:
        """Create a new session and return its opaque token."""
        token = secrets.token_hex(32)
        now = self._clock()
        session = Session(
            token=token,
            user_id=user_id,
            email=email,
            created_at=now,
            expires_at=now + self.ttl,
        )
        with self._lock:
            self._sessions[token] = session
        return token

    def validate(self, token: Optional[str]) -> Optional[Session]:
        """Return the live session for token, or None. Expired records are deleted."""
        if not token:
            return None
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                return None
            if self._clock() > session.expires_at:
                del self._sessions[token]
                return None
            return session

    def resolve_user_id(self, request: Any) -> Optional[int]:
        """Extract the session cookie from a request and return the caller's user id."""
        token = request.cookies.get(self.cookie_name)
        session = self.validate(token)
        return session.user_id if session else None

    def destroy(self, token: Optional[str]) -> None:
        """Invalidate a session token (idempotent)."""
        if not token:
            return
        with self._lock:
            self._sessions.pop(token, None)

    def destroy_user(self, user_id: int) -> int:
        """Invalidate every session belonging to user_id. Returns how many were dropped."""
        with self._lock:
            tokens = [t for t, s in self._sessions.items() if s.user_id == user_id]
            for token in tokens:
                del self._sessions[token]
        if tokens:
            logger.info("Sessions revoked", user_id=user_id, count=len(tokens))
        return len(tokens)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
