"""
Storefront Context

Composition root for one visitor: builds the backend client, the session
observer and the view router, wires them together and tears them down.
Nothing here is a module-level singleton; the FastAPI app owns a
ContextRegistry and every request finds its visitor's context in it.

Version: 1.0.0
"""

import logging
import time
import uuid
from collections import OrderedDict
from typing import Callable, Optional

from storefront.core.config import Settings, get_settings
from storefront.routing.router import ViewRouter
from storefront.services.backend import create_backend
from storefront.services.backend.base import AuthResult, BaseBackendService
from storefront.session.observer import SessionObserver

logger = logging.getLogger(__name__)

BackendFactory = Callable[[Settings], BaseBackendService]


class StorefrontContext:
    """
    Observer + router + backend for one visitor.

    Example:
        >>> context = StorefrontContext(MockBackendService())
        >>> await context.start()
        >>> context.router.render().screen
        <Screen.AUTH: 'auth'>
        >>> await context.close()
    """

    def __init__(self, backend: BaseBackendService, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.backend = backend
        self.observer = SessionObserver(backend)
        self.router = ViewRouter(self.observer, backend, brand=settings.brand_name)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def start(self) -> None:
        """Activate the observer and wait for the first session answer."""
        self.observer.activate()
        await self.observer.wait_until_ready()

    async def sign_in(self, email: str, password: str) -> AuthResult:
        """Sign in through the backend and leave the auth page on success."""
        result = await self.backend.sign_in_with_password(email, password)
        if result.success:
            self.router.on_auth_success()
        else:
            logger.info(f"Sign-in rejected: {result.error_code}")
        return result

    async def close(self) -> None:
        """Detach the router, release the auth listener and the backend client."""
        if self._closed:
            return
        self._closed = True
        self.router.detach()
        self.observer.deactivate()
        await self.backend.close()


class ContextRegistry:
    """
    Visitor id -> StorefrontContext, least recently seen first.

    Contexts idle for longer than settings.session_idle_timeout are closed
    on the next lookup, and starting a context beyond settings.max_sessions
    closes the least recently seen one.

    Args:
        settings: Settings every new context is built with
        backend_factory: Builds one backend per context (create_backend by default)
        clock: Monotonic time source for last-seen stamps
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        backend_factory: Optional[BackendFactory] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._settings = settings or get_settings()
        self._backend_factory = backend_factory or create_backend
        self._clock = clock
        self._contexts: OrderedDict[str, StorefrontContext] = OrderedDict()
        self._last_seen: dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._contexts)

    def __contains__(self, visitor_id: str) -> bool:
        return visitor_id in self._contexts

    def new_backend(self) -> BaseBackendService:
        return self._backend_factory(self._settings)

    def get(self, visitor_id: Optional[str]) -> Optional[StorefrontContext]:
        if not visitor_id:
            return None
        return self._contexts.get(visitor_id)

    def _touch(self, visitor_id: str) -> None:
        self._last_seen[visitor_id] = self._clock()
        self._contexts.move_to_end(visitor_id)

    async def get_or_create(self, visitor_id: Optional[str]) -> tuple[str, StorefrontContext]:
        """
        Return the visitor's context, starting a new one if needed.

        Returns:
            (visitor_id, context); the id is freshly generated when the
            given one is missing, unknown or expired
        """
        await self.evict_idle()

        context = self.get(visitor_id)
        if context is not None:
            self._touch(visitor_id)
            return visitor_id, context

        while len(self._contexts) >= self._settings.max_sessions:
            oldest = next(iter(self._contexts))
            logger.info(f"Session limit {self._settings.max_sessions} reached, evicting {oldest[:8]}")
            await self.discard(oldest)

        visitor_id = uuid.uuid4().hex
        context = StorefrontContext(self.new_backend(), self._settings)
        self._contexts[visitor_id] = context
        self._touch(visitor_id)
        await context.start()
        logger.info(f"Started storefront context {visitor_id[:8]} ({context.backend.provider_name})")
        return visitor_id, context

    async def evict_idle(self) -> int:
        """
        Close every context not seen within the idle timeout.

        Returns:
            Number of contexts closed
        """
        cutoff = self._clock() - self._settings.session_idle_timeout
        expired = []
        for visitor_id in self._contexts:
            if self._last_seen.get(visitor_id, cutoff) >= cutoff:
                break
            expired.append(visitor_id)

        for visitor_id in expired:
            logger.info(f"Evicting idle storefront context {visitor_id[:8]}")
            await self.discard(visitor_id)
        return len(expired)

    async def discard(self, visitor_id: str) -> bool:
        context = self._contexts.pop(visitor_id, None)
        self._last_seen.pop(visitor_id, None)
        if context is None:
            return False
        await context.close()
        logger.info(f"Closed storefront context {visitor_id[:8]}")
        return True

    async def close_all(self) -> None:
        for visitor_id in list(self._contexts):
            await self.discard(visitor_id)
