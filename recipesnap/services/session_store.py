"""In-memory registry of per-page SnapControllers."""
import logging
import secrets
import time
from collections import OrderedDict
from typing import Callable, Optional

from recipesnap.config import settings
from recipesnap.services.snap_controller import SnapController

logger = logging.getLogger(__name__)


class SessionRegistry:
    """
    Maps opaque session ids to SnapControllers.

    Sessions live only as long as the process; nothing is persisted. A
    session idle for longer than `idle_timeout` seconds is torn down, and
    creating a session beyond `max_sessions` tears down the least recently
    used one.
    """

    def __init__(
        self,
        controller_factory: Callable[[], SnapController],
        idle_timeout: Optional[float] = None,
        max_sessions: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._controller_factory = controller_factory
        self.idle_timeout = idle_timeout or settings.session_idle_timeout
        self.max_sessions = max_sessions or settings.max_sessions
        self._clock = clock
        # session_id -> (controller, last access); least recently used first
        self._sessions: OrderedDict[str, tuple[SnapController, float]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def create(self) -> tuple[str, SnapController]:
        """Start a new session, evicting idle or excess sessions first."""
        self.evict_idle()
        while len(self._sessions) >= self.max_sessions:
            oldest = next(iter(self._sessions))
            logger.info("Session limit reached, evicting least recently used session")
            self.discard(oldest)

        session_id = secrets.token_urlsafe(24)
        controller = self._controller_factory()
        self._sessions[session_id] = (controller, self._clock())
        logger.info("Created snap session (%d active)", len(self._sessions))
        return session_id, controller

    def get(self, session_id: str) -> Optional[SnapController]:
        """
        Look up a live session and mark it as used.

        Returns:
            The session's controller, or None for unknown or expired ids
        """
        self.evict_idle()
        entry = self._sessions.get(session_id)
        if entry is None:
            return None

        controller, _ = entry
        self._sessions[session_id] = (controller, self._clock())
        self._sessions.move_to_end(session_id)
        return controller

    def evict_idle(self) -> int:
        """
        Tear down sessions idle for longer than idle_timeout.

        Returns:
            Number of sessions removed
        """
        cutoff = self._clock() - self.idle_timeout
        expired = [
            session_id
            for session_id, (_, last_seen) in self._sessions.items()
            if last_seen < cutoff
        ]
        for session_id in expired:
            self.discard(session_id)
        if expired:
            logger.info("Evicted %d idle snap sessions", len(expired))
        return len(expired)

    def discard(self, session_id: str) -> bool:
        """
        Tear down and forget a session.

        Returns:
            True if the session existed
        """
        entry = self._sessions.pop(session_id, None)
        if entry is None:
            return False
        controller, _ = entry
        controller.teardown()
        return True

    def close(self):
        """Tear down every session (application shutdown)."""
        for session_id in list(self._sessions):
            self.discard(session_id)
