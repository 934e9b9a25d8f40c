"""
Session Observer

Mirrors the backend's auth state into one normalized signal, {user, ready},
for the rest of the storefront.

Two paths feed the signal:
    1. The auth-change listener registered on activate()
    2. One immediate get_current_session() fetch, for a session that existed
       before the listener attached

Whichever result lands first makes the signal ready; ready never reverts.
The user value is simply the latest write. After deactivate() every late
write is dropped.

Version: 1.0.0
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from storefront.services.backend.base import (
    AuthChangeEvent,
    AuthSession,
    AuthSubscription,
    BaseBackendService,
    UserRecord,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionSignal:
    """Normalized auth state: who is signed in, and whether we know yet."""
    user: Optional[UserRecord] = None
    ready: bool = False


SignalListener = Callable[[SessionSignal], None]


class SessionObserver:
    """
    Subscribes to backend auth changes and exposes a SessionSignal.

    Example:
        >>> observer = SessionObserver(backend)
        >>> observer.activate()          # inside a running event loop
        >>> await observer.wait_until_ready()
        >>> observer.user
        UserRecord(id='...', email='a@b.com')
        >>> observer.deactivate()
    """

    def __init__(self, backend: BaseBackendService):
        self._backend = backend
        self._signal = SessionSignal()
        self._subscription: Optional[AuthSubscription] = None
        self._initial_fetch: Optional[asyncio.Task] = None
        self._listeners: list[SignalListener] = []
        self._active = False
        self._activated = False

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def signal(self) -> SessionSignal:
        return self._signal

    @property
    def user(self) -> Optional[UserRecord]:
        return self._signal.user

    @property
    def ready(self) -> bool:
        return self._signal.ready

    @property
    def active(self) -> bool:
        return self._active

    def add_listener(self, listener: SignalListener) -> Callable[[], None]:
        """
        Call listener with the new signal after every change.

        Returns:
            Function that removes the listener again
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def activate(self) -> None:
        """
        Register the auth listener and schedule the one-shot session fetch.

        Must be called from within a running event loop.

        Raises:
            RuntimeError: If the observer was already activated
        """
        if self._activated:
            raise RuntimeError("SessionObserver can only be activated once")
        self._activated = True
        self._active = True

        self._subscription = self._backend.subscribe_auth_changes(self._on_auth_change)
        self._initial_fetch = asyncio.get_running_loop().create_task(self.refresh())
        logger.debug(f"Session observer activated ({self._backend.provider_name})")

    def deactivate(self) -> None:
        """
        Release the auth subscription. Safe to call more than once.

        The initial fetch is not cancelled; its late result is ignored.
        """
        if not self._active:
            return
        self._active = False

        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.unsubscribe()
        self._listeners.clear()
        logger.debug("Session observer deactivated")

    async def wait_until_ready(self) -> SessionSignal:
        """Wait for the scheduled initial fetch to settle."""
        if self._initial_fetch is not None:
            await asyncio.shield(self._initial_fetch)
        return self._signal

    # =========================================================================
    # WRITERS
    # =========================================================================

    async def refresh(self) -> None:
        """
        Fetch the current session once and write it into the signal.

        Any failure fails open: the visitor is treated as signed out.
        """
        try:
            session = await self._backend.get_current_session()
        except Exception as e:
            logger.warning(f"Session fetch failed, continuing signed out: {e}")
            session = None
        self._write(session.user if session else None, source="fetch")

    def _on_auth_change(self, event: AuthChangeEvent, session: Optional[AuthSession]) -> None:
        logger.info(f"Auth event: {event.value}")
        self._write(session.user if session else None, source=event.value)

    def _write(self, user: Optional[UserRecord], source: str) -> None:
        if not self._active:
            logger.debug(f"Dropped late session write from {source}")
            return

        updated = SessionSignal(user=user, ready=True)
        if updated == self._signal:
            return
        self._signal = updated

        for listener in list(self._listeners):
            listener(updated)
