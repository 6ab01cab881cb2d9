"""In-process storage for goal-creation flows in progress.

Flows are ephemeral: they live only until the goal they produce is saved,
the user abandons them or they sit idle past the time-to-live, and they
are lost on restart.
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, TypeVar

from lifegoals.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FlowSessions:
    """Flow objects keyed by session ID, each owned by one user."""

    def __init__(self, ttl: timedelta = timedelta(hours=1), max_per_user: int = 10):
        self.ttl = ttl
        self.max_per_user = max_per_user
        self._sessions: dict[str, tuple[str, object, datetime]] = {}

    def start(self, user_id: str, flow: object, now: Optional[datetime] = None) -> str:
        """
        Register a new flow and return its session ID.

        Expired flows are dropped first. A user already at the limit loses
        their least recently used flow.
        """
        now = now or _utcnow()
        self.purge_expired(now)

        owned = sorted(
            (touched, session_id)
            for session_id, (owner, _, touched) in self._sessions.items()
            if owner == user_id
        )
        for _, session_id in owned[: max(len(owned) - self.max_per_user + 1, 0)]:
            del self._sessions[session_id]
            logger.info("Evicted flow session %s for user %s", session_id, user_id)

        session_id = uuid.uuid4().hex
        self._sessions[session_id] = (user_id, flow, now)
        return session_id

    def get(
        self,
        user_id: str,
        session_id: str,
        kind: type[T],
        now: Optional[datetime] = None,
    ) -> T:
        """
        Look up a user's flow and mark it as used.

        Raises:
            ValueError: If no live flow of that kind exists for this user
        """
        now = now or _utcnow()
        owner, flow, touched = self._sessions.get(session_id, (None, None, None))
        if owner != user_id or not isinstance(flow, kind):
            raise ValueError("Session not found")
        if now - touched > self.ttl:
            del self._sessions[session_id]
            raise ValueError("Session not found")
        self._sessions[session_id] = (owner, flow, now)
        return flow

    def end(self, user_id: str, session_id: str) -> None:
        """
        Forget a user's flow.

        Raises:
            ValueError: If the session does not exist for this user
        """
        owner, _, _ = self._sessions.get(session_id, (None, None, None))
        if owner != user_id:
            raise ValueError("Session not found")
        del self._sessions[session_id]

    def restore(
        self,
        user_id: str,
        session_id: str,
        flow: object,
        now: Optional[datetime] = None,
    ) -> None:
        """Put back a flow that was ended, under its original session ID."""
        self._sessions[session_id] = (user_id, flow, now or _utcnow())

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Drop every flow idle for longer than the time-to-live."""
        cutoff = (now or _utcnow()) - self.ttl
        expired = [
            session_id
            for session_id, (_, _, touched) in self._sessions.items()
            if touched < cutoff
        ]
        for session_id in expired:
            del self._sessions[session_id]
        if expired:
            logger.info("Purged %d expired flow sessions", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)


flow_sessions = FlowSessions(
    ttl=timedelta(minutes=settings.session_ttl_minutes),
    max_per_user=settings.max_sessions_per_user,
)


def get_flow_sessions() -> FlowSessions:
    """Dependency to get the flow session registry."""
    return flow_sessions
