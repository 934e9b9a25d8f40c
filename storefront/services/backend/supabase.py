"""
Supabase Backend Service Implementation

Production implementation using the official Supabase Python SDK (async
client). Used when ENV_MODE=production or ENV_MODE=staging.

Requirements:
    - SUPABASE_URL and SUPABASE_ANON_KEY should be set in environment

Missing configuration never stops the process: the service still builds
with placeholder values, logs the problem once, and every call then fails
at the boundary with BackendError.

Version: 1.0.0
"""

import logging
from typing import Any, Optional

from supabase import AsyncClient

from storefront.core.config import Settings, get_settings
from storefront.services.backend.base import (
    AuthChangeCallback,
    AuthChangeEvent,
    AuthResult,
    AuthSession,
    AuthSubscription,
    BackendError,
    BaseBackendService,
    UserRecord,
)

logger = logging.getLogger(__name__)

PLACEHOLDER_URL = "http://missing-url.com"
PLACEHOLDER_KEY = "missing-key"


class _InertSubscription:
    """Returned when no client could be built; nothing to release."""

    def unsubscribe(self) -> None:
        return None


def to_user_record(user: Any) -> Optional[UserRecord]:
    """Normalize an SDK user object into a UserRecord."""
    if user is None or not getattr(user, "id", None):
        return None
    return UserRecord(id=str(user.id), email=getattr(user, "email", None) or None)


def to_auth_session(session: Any) -> Optional[AuthSession]:
    """Normalize an SDK session object into an AuthSession."""
    if session is None:
        return None
    return AuthSession(
        user=to_user_record(getattr(session, "user", None)),
        access_token=getattr(session, "access_token", None),
        expires_at=getattr(session, "expires_at", None),
    )


class SupabaseBackendService(BaseBackendService):
    """
    Production Supabase backend implementation.

    One instance wraps one SDK client, and an SDK client carries one auth
    session, so every storefront visitor gets their own instance.

    Example:
        >>> backend = SupabaseBackendService()
        >>> subscription = backend.subscribe_auth_changes(on_change)
        >>> session = await backend.get_current_session()
    """

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()

        missing = settings.validate_backend_config()
        if missing:
            logger.error(
                "Supabase environment variables are missing: "
                f"{', '.join(missing)}. Set them in .env or the environment; "
                "every backend call will fail until they are configured."
            )

        self._url = settings.supabase_url or PLACEHOLDER_URL
        self._key = settings.supabase_anon_key or PLACEHOLDER_KEY
        self._client: Optional[AsyncClient] = None

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "supabase"

    def _get_client(self) -> AsyncClient:
        """Build the SDK client on first use."""
        if self._client is None:
            try:
                self._client = AsyncClient(self._url, self._key)
            except Exception as e:
                raise BackendError(f"Could not create Supabase client: {e}", code="configuration_error") from e
        return self._client

    def subscribe_auth_changes(self, callback: AuthChangeCallback) -> AuthSubscription:
        try:
            client = self._get_client()
        except BackendError as e:
            logger.error(f"Supabase: Auth listener not registered - {e}")
            return _InertSubscription()

        def _on_change(event: Any, session: Any) -> None:
            try:
                parsed = AuthChangeEvent.parse(event)
            except ValueError:
                logger.warning(f"Supabase: Unknown auth event {event!r}, treating as USER_UPDATED")
                parsed = AuthChangeEvent.USER_UPDATED
            callback(parsed, to_auth_session(session))

        return client.auth.on_auth_state_change(_on_change)

    async def get_current_session(self) -> Optional[AuthSession]:
        client = self._get_client()
        try:
            session = await client.auth.get_session()
        except Exception as e:
            raise BackendError(f"Session lookup failed: {e}", code="session_error") from e
        return to_auth_session(session)

    async def sign_in_with_password(self, email: str, password: str) -> AuthResult:
        try:
            client = self._get_client()
            response = await client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except BackendError as e:
            return AuthResult(success=False, error_message=e.message, error_code=e.code)
        except Exception as e:
            logger.warning(f"Supabase: Sign-in rejected - {e}")
            return AuthResult(
                success=False,
                error_message=str(e) or "Sign-in failed",
                error_code=getattr(e, "code", None) or "sign_in_failed",
            )

        session = to_auth_session(getattr(response, "session", None))
        if session is None or session.user is None:
            return AuthResult(
                success=False,
                error_message="No session returned",
                error_code="no_session",
            )

        logger.info(f"Supabase: Signed in user {session.user.id}")
        return AuthResult(success=True, session=session)

    async def sign_out(self) -> None:
        client = self._get_client()
        try:
            await client.auth.sign_out()
        except Exception as e:
            raise BackendError(f"Sign-out failed: {e}", code="sign_out_failed") from e

    async def close(self) -> None:
        """Close the SDK client's HTTP session, if one was ever built."""
        client, self._client = self._client, None
        if client is None:
            return
        try:
            await client.auth.close()
        except Exception as e:
            logger.warning(f"Supabase: Error while closing client - {e}")

    async def health_check(self) -> bool:
        """
        Verify Supabase connectivity.

        A session lookup is the lightest authenticated call available.
        """
        try:
            await self.get_current_session()
            return True
        except BackendError as e:
            logger.error(f"Supabase: Health check failed - {e}")
            return False
