"""
Browser session registry.

Tracks every live browser session so that all of them can be closed, whether
by the request that owns one or by an administrative "close everything" call.
"""

import logging
import threading
from contextlib import asynccontextmanager
from typing import AsyncIterator, List

from .exceptions import SessionCloseFailure
from .ports import BrowserSessionFactory, BrowserSessionPort

logger = logging.getLogger(__name__)


class SessionRegistry:
    """
    Thread-safe membership set of live browser sessions.

    Each session has exactly one owner. Owners use ``release()`` for their own
    cleanup; ``close_all()`` is the separate administrative path and may run
    concurrently with registrations from in-flight requests.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._sessions: set = set()

    def register(self, session: BrowserSessionPort) -> None:
        with self._lock:
            self._sessions.add(session)
        logger.debug("Registered session %s (%d active)", _session_id(session), len(self))

    def unregister(self, session: BrowserSessionPort) -> None:
        with self._lock:
            self._sessions.discard(session)
        logger.debug("Unregistered session %s (%d active)", _session_id(session), len(self))

    def active_sessions(self) -> List[BrowserSessionPort]:
        """Snapshot of the current members"""
        with self._lock:
            return list(self._sessions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session: object) -> bool:
        with self._lock:
            return session in self._sessions

    async def release(self, session: BrowserSessionPort) -> bool:
        """
        Unregister and close one session. Never raises.

        Returns:
            True if the session closed cleanly, False if closing failed
        """
        self.unregister(session)
        return await _close_quietly(session)

    async def close_all(self) -> int:
        """
        Close every registered session.

        Each close is attempted independently; a failure is logged and does not
        stop the rest. Every attempted session leaves the set whether or not it
        closed. Sessions registered while closes are awaited are picked up by
        the next sweep, so the set is empty when this returns.

        Returns:
            Number of sessions that closed cleanly
        """
        closed = 0
        attempted = 0
        while True:
            with self._lock:
                snapshot = list(self._sessions)
            if not snapshot:
                break

            try:
                for session in snapshot:
                    attempted += 1
                    if await _close_quietly(session):
                        closed += 1
            finally:
                with self._lock:
                    self._sessions.difference_update(snapshot)

        logger.info("Closed %d of %d browser sessions", closed, attempted)
        return closed

    @asynccontextmanager
    async def managed(self, factory: BrowserSessionFactory) -> AsyncIterator[BrowserSessionPort]:
        """
        Create, register and always release a session.

        Usage:
            async with registry.managed(factory) as session:
                await session.open(url)
        """
        session = await factory()
        self.register(session)
        try:
            yield session
        finally:
            await self.release(session)


async def _close_quietly(session: BrowserSessionPort) -> bool:
    try:
        await session.close()
        return True
    except Exception as e:
        failure = SessionCloseFailure(f"Failed to close session: {e}", session_id=_session_id(session))
        logger.warning("%s", failure, exc_info=True)
        return False


def _session_id(session: object) -> str:
    return str(getattr(session, 'session_id', id(session)))
