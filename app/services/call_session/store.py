"""In-memory call session store with idle expiry."""
import logging
import time
from collections import OrderedDict
from typing import Callable, Optional, Tuple

from app.core.config import settings
from app.services.call_session.models import CallSession

logger = logging.getLogger(__name__)


class SessionStore:
    """Process-local sessions keyed by CallSid.

    Sessions idle for longer than ``ttl_seconds`` are dropped on the next
    access, and the least recently touched session is evicted once
    ``max_sessions`` is reached (0 means no cap). Not shared between server
    processes.
    """

    def __init__(
        self,
        ttl_seconds: float,
        max_sessions: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions
        self.clock = clock
        # Ordered by last touch, oldest first
        self._sessions: "OrderedDict[str, CallSession]" = OrderedDict()

    def __len__(self) -> int:
        self.purge_expired()
        return len(self._sessions)

    def __contains__(self, call_sid: str) -> bool:
        return self.get(call_sid) is not None

    def purge_expired(self) -> int:
        """Drop idle sessions; returns how many were removed."""
        if self.ttl_seconds <= 0:
            return 0
        cutoff = self.clock() - self.ttl_seconds
        expired = []
        for call_sid, session in self._sessions.items():
            if session.updated_at > cutoff:
                break
            expired.append(call_sid)
        for call_sid in expired:
            del self._sessions[call_sid]
        if expired:
            logger.info(f"[SESSION STORE] Expired {len(expired)} idle session(s)")
        return len(expired)

    def get(self, call_sid: str) -> Optional[CallSession]:
        """Get a live session without touching it."""
        self.purge_expired()
        return self._sessions.get(call_sid)

    def get_or_create(self, call_sid: str) -> Tuple[CallSession, bool]:
        """Get the session for a call, creating it if needed; marks it used."""
        self.purge_expired()
        now = self.clock()
        session = self._sessions.get(call_sid)
        created = session is None
        if created:
            if 0 < self.max_sessions <= len(self._sessions):
                evicted_sid, _ = self._sessions.popitem(last=False)
                logger.warning(
                    f"[SESSION STORE] At capacity ({self.max_sessions}), evicted CallSid: {evicted_sid}"
                )
            session = CallSession(call_sid=call_sid, created_at=now)
            self._sessions[call_sid] = session
        session.updated_at = now
        self._sessions.move_to_end(call_sid)
        return session, created

    def remove(self, call_sid: str) -> Optional[CallSession]:
        """Remove and return a session."""
        return self._sessions.pop(call_sid, None)

    def clear(self) -> None:
        self._sessions.clear()


session_store = SessionStore(
    ttl_seconds=settings.ivr_session_ttl_seconds,
    max_sessions=settings.ivr_max_sessions,
)
