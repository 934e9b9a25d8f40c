"""
Backend Service Factory

Provides a single entry point for building a backend client. The factory
keeps the session and routing code agnostic about which implementation is
in use.

Unlike the other service factories this one is not cached: an SDK client
carries one visitor's auth session, so each storefront context builds its
own.

Usage:
    from storefront.services.backend import create_backend

    # MockBackendService or SupabaseBackendService based on ENV_MODE
    backend = create_backend()

Environment Switching:
    - ENV_MODE=development → MockBackendService (no network)
    - ENV_MODE=staging → SupabaseBackendService (staging project)
    - ENV_MODE=production → SupabaseBackendService (live project)

Version: 1.0.0
"""

import logging
from typing import Optional

from storefront.core.config import Settings, get_settings
from storefront.services.backend.base import (
    AuthChangeEvent,
    AuthResult,
    AuthSession,
    AuthSubscription,
    BackendError,
    BaseBackendService,
    UserRecord,
)
from storefront.services.backend.mock import MockBackendService
from storefront.services.backend.supabase import SupabaseBackendService

logger = logging.getLogger(__name__)


def create_backend(settings: Optional[Settings] = None) -> BaseBackendService:
    """
    Build a backend service instance for one storefront context.

    Returns:
        BaseBackendService: MockBackendService in development,
        SupabaseBackendService otherwise
    """
    settings = settings or get_settings()

    if settings.is_development:
        logger.debug("Backend Service: Using MockBackendService (development mode)")
        return MockBackendService(
            accounts=settings.mock_accounts_map,
            sign_out_failure_rate=settings.mock_sign_out_failure_rate,
            min_latency=0.05,
            max_latency=0.2,
        )

    logger.debug(
        f"Backend Service: Using SupabaseBackendService "
        f"({settings.env_mode.value} mode)"
    )
    return SupabaseBackendService(settings)


__all__ = [
    "create_backend",
    "AuthChangeEvent",
    "AuthResult",
    "AuthSession",
    "AuthSubscription",
    "BackendError",
    "BaseBackendService",
    "UserRecord",
    "MockBackendService",
    "SupabaseBackendService",
]
