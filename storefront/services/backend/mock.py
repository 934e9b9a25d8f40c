"""
Mock Backend Service Implementation

Simulates the hosted backend's auth surface without any network calls.
Used in development mode (ENV_MODE=development) and by the test suite to:
    - Exercise the session observer and router end to end
    - Simulate auth changes from "another tab" via notify()
    - Simulate rejected sign-outs and unreachable session fetches

Behavior:
    - Configurable latency (0 by default, so tests stay deterministic)
    - Accounts come from a plain email -> password mapping
    - Generates Supabase-like UUID user ids

Version: 1.0.0
"""

import asyncio
import random
import uuid
import logging
from typing import Optional

from storefront.services.backend.base import (
    AuthChangeCallback,
    AuthChangeEvent,
    AuthResult,
    AuthSession,
    BackendError,
    BaseBackendService,
    UserRecord,
)

logger = logging.getLogger(__name__)


class MockSubscription:
    """Listener handle; unsubscribing twice is harmless."""

    def __init__(self, backend: "MockBackendService", callback: AuthChangeCallback):
        self._backend = backend
        self.callback = callback
        self.id = uuid.uuid4().hex
        self.unsubscribe_calls = 0

    def unsubscribe(self) -> None:
        self.unsubscribe_calls += 1
        self._backend._listeners.pop(self.id, None)


class MockBackendService(BaseBackendService):
    """
    Mock implementation of the backend service.

    Attributes:
        accounts: email -> password pairs that sign_in_with_password accepts
        sign_out_failure_rate: Probability that sign_out() raises BackendError
        min_latency: Minimum simulated response time in seconds
        max_latency: Maximum simulated response time in seconds

    Example:
        >>> backend = MockBackendService(accounts={"a@b.com": "pw"})
        >>> result = await backend.sign_in_with_password("a@b.com", "pw")
        >>> result.success
        True
    """

    def __init__(
        self,
        accounts: Optional[dict[str, str]] = None,
        sign_out_failure_rate: float = 0.0,
        min_latency: float = 0.0,
        max_latency: float = 0.0,
        session: Optional[AuthSession] = None,
    ):
        self.accounts = {email.lower(): pw for email, pw in (accounts or {}).items()}
        self.sign_out_failure_rate = sign_out_failure_rate
        self.min_latency = min_latency
        self.max_latency = max_latency

        self._session = session
        self._user_ids: dict[str, str] = {}
        self._listeners: dict[str, MockSubscription] = {}

        # Failure switches for tests
        self.fail_session_fetch = False
        self.fail_next_sign_out = False
        self.closed = False

        logger.info(
            f"MockBackendService initialized "
            f"(accounts={len(self.accounts)}, "
            f"sign_out_failure_rate={sign_out_failure_rate:.0%})"
        )

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "mock"

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    @property
    def current_session(self) -> Optional[AuthSession]:
        return self._session

    async def _simulate_latency(self) -> None:
        if self.max_latency <= 0:
            # Still yield so callers observe a real suspension point
            await asyncio.sleep(0)
            return
        await asyncio.sleep(random.uniform(self.min_latency, self.max_latency))

    def _user_for(self, email: str) -> UserRecord:
        user_id = self._user_ids.setdefault(email, str(uuid.uuid4()))
        return UserRecord(id=user_id, email=email)

    def notify(self, event: AuthChangeEvent, session: Optional[AuthSession]) -> None:
        """
        Push an auth transition to every listener.

        Also used by tests to simulate sign-in/out happening in another tab.
        """
        self._session = session
        logger.debug(f"Mock: {event.value} -> {len(self._listeners)} listener(s)")
        for subscription in list(self._listeners.values()):
            subscription.callback(event, session)

    def subscribe_auth_changes(self, callback: AuthChangeCallback) -> MockSubscription:
        subscription = MockSubscription(self, callback)
        self._listeners[subscription.id] = subscription
        return subscription

    async def get_current_session(self) -> Optional[AuthSession]:
        await self._simulate_latency()
        if self.fail_session_fetch:
            raise BackendError("Session lookup failed (simulated)", code="network_error")
        return self._session

    async def sign_in_with_password(self, email: str, password: str) -> AuthResult:
        await self._simulate_latency()

        email = (email or "").strip().lower()
        if self.accounts.get(email) != password or not email:
            logger.debug(f"Mock: Rejected credentials for {email or '<blank>'}")
            return AuthResult(
                success=False,
                error_message="Invalid login credentials",
                error_code="invalid_credentials",
            )

        session = AuthSession(
            user=self._user_for(email),
            access_token=f"mock_{uuid.uuid4().hex}",
        )
        logger.info(f"Mock: Signed in {email}")
        self.notify(AuthChangeEvent.SIGNED_IN, session)
        return AuthResult(success=True, session=session)

    async def sign_out(self) -> None:
        await self._simulate_latency()

        if self.fail_next_sign_out or random.random() < self.sign_out_failure_rate:
            self.fail_next_sign_out = False
            raise BackendError("Sign-out failed (simulated)", code="sign_out_failed")

        logger.info("Mock: Signed out")
        self.notify(AuthChangeEvent.SIGNED_OUT, None)

    async def close(self) -> None:
        """Nothing to release; only records that teardown happened."""
        self.closed = True

    async def health_check(self) -> bool:
        """Mock health check always returns True."""
        return True
