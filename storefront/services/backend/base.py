"""
Backend Service Abstract Base Class

Defines the interface contract for the hosted backend the storefront talks
to. Both MockBackendService and SupabaseBackendService must implement these
methods, so the session observer and the router behave identically
regardless of which backend is active.

Only the authentication surface is consumed by the storefront core:
    - subscribe_auth_changes: push notifications of auth transitions
    - get_current_session: one-shot query for an existing session
    - sign_out / sign_in_with_password

Design Pattern: Strategy Pattern
    - The backend is chosen per ENV_MODE by create_backend()
    - Tests inject the mock directly

Version: 1.0.0
"""

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional, Protocol


class AuthChangeEvent(str, enum.Enum):
    """Auth transitions reported by the backend."""
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    USER_DELETED = "USER_DELETED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"
    MFA_CHALLENGE_VERIFIED = "MFA_CHALLENGE_VERIFIED"

    @classmethod
    def parse(cls, value) -> "AuthChangeEvent":
        """Accept enum members or the provider's raw string values."""
        if isinstance(value, cls):
            return value
        return cls(str(value).upper())


@dataclass(frozen=True)
class UserRecord:
    """
    Identity record owned by the backend.

    The storefront never edits it; it only keeps a reference for display
    and for passing to screens.

    Attributes:
        id: Backend user id (UUID string for Supabase)
        email: Email address, when the account has one
    """
    id: str
    email: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {"id": self.id, "email": self.email}


@dataclass(frozen=True)
class AuthSession:
    """An authenticated session as reported by the backend."""
    user: Optional[UserRecord]
    access_token: Optional[str] = None
    expires_at: Optional[int] = None


@dataclass
class AuthResult:
    """
    Standardized result from a sign-in attempt.

    Attributes:
        success: Whether the credentials were accepted
        session: The new session on success
        error_message: Error description if sign-in failed
        error_code: Machine-readable error code
    """
    success: bool
    session: Optional[AuthSession] = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None

    @property
    def user(self) -> Optional[UserRecord]:
        return self.session.user if self.session else None


class BackendError(Exception):
    """Raised when a backend call fails at the boundary."""

    def __init__(self, message: str, code: str = "backend_error"):
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class AuthSubscription(Protocol):
    """Disposable handle returned by subscribe_auth_changes()."""

    def unsubscribe(self) -> None:
        ...


AuthChangeCallback = Callable[[AuthChangeEvent, Optional[AuthSession]], None]


class BaseBackendService(ABC):
    """
    Abstract base class for backend services.

    Example:
        >>> backend = create_backend(settings)
        >>> subscription = backend.subscribe_auth_changes(on_change)
        >>> session = await backend.get_current_session()
        >>> subscription.unsubscribe()
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the backend provider.

        Returns:
            str: Provider name (e.g., "mock", "supabase")
        """
        pass

    @abstractmethod
    def subscribe_auth_changes(self, callback: AuthChangeCallback) -> AuthSubscription:
        """
        Register a listener for auth state transitions.

        Args:
            callback: Invoked with (event, session) on every transition;
                session is None once signed out

        Returns:
            AuthSubscription: Call unsubscribe() to release the listener
        """
        pass

    @abstractmethod
    async def get_current_session(self) -> Optional[AuthSession]:
        """
        Query the session that exists right now, if any.

        Returns:
            AuthSession or None when nobody is signed in

        Raises:
            BackendError: If the backend cannot be reached
        """
        pass

    @abstractmethod
    async def sign_in_with_password(self, email: str, password: str) -> AuthResult:
        """
        Sign in with email and password.

        Listeners receive SIGNED_IN on success.

        Returns:
            AuthResult: Standardized result object
        """
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        """
        End the current session.

        Listeners receive SIGNED_OUT on success.

        Raises:
            BackendError: If the backend rejected or could not process the call
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """
        Release the client and any connections it holds.

        Called once when the owning storefront context is torn down.
        Must not raise.
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Verify connectivity to the backend.

        Returns:
            bool: True if the backend is reachable
        """
        pass
