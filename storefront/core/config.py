"""
Application Configuration Module

Centralizes all configuration using environment variables with Pydantic Settings.
Supports two modes:
    - DEVELOPMENT: Uses the in-memory mock backend (no Supabase project needed)
    - PRODUCTION/STAGING: Uses the hosted Supabase backend

The ENV_MODE variable controls which backend client every storefront
context is built with, enabling switching between local testing and a
real Supabase project without touching the session or routing code.

Usage:
    from storefront.core.config import get_settings

    settings = get_settings()
    if settings.is_development:
        # Use the mock backend
    else:
        # Use Supabase

Version: 1.0.0
"""

import logging
import sys
from enum import Enum
from typing import Optional
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentMode(str, Enum):
    """
    Application environment modes.

    Attributes:
        DEVELOPMENT: Local testing with the mock backend
        PRODUCTION: Live environment against the Supabase project
        STAGING: Pre-production testing against a staging Supabase project
    """
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    STAGING = "staging"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    The Supabase anon key is a public key, but it still should not be
    committed alongside the code.

    Attributes:
        env_mode: Current environment (development/production/staging)
        debug: Enable verbose logging and error details

        # API Configuration
        api_host: Host to bind the API server
        api_port: Port for the API server

        # Backend (Supabase)
        supabase_url: Supabase project URL
        supabase_anon_key: Supabase anonymous (public) key

        # Storefront
        brand_name: Name shown in the storefront header
        session_cookie_name: Cookie identifying a visitor's storefront context
        session_idle_timeout: Seconds without a request before a context is closed
        max_sessions: Most storefront contexts kept open at once
        google_maps_api_key: Key handed to the order tracking map

        # Mock backend
        mock_accounts: Comma-separated email:password pairs accepted by the mock
        mock_sign_out_failure_rate: Probability of a simulated sign-out failure
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================

    env_mode: EnvironmentMode = Field(
        default=EnvironmentMode.DEVELOPMENT,
        description="Application environment mode"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging"
    )

    # ==========================================================================
    # APPLICATION
    # ==========================================================================

    app_name: str = Field(
        default="ILIGAN Food Storefront",
        description="Application display name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=8001,
        description="API server port"
    )

    # ==========================================================================
    # SUPABASE BACKEND
    # ==========================================================================

    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (https://<project>.supabase.co)"
    )
    supabase_anon_key: Optional[str] = Field(
        default=None,
        description="Supabase anonymous (public) API key"
    )

    # ==========================================================================
    # STOREFRONT
    # ==========================================================================

    brand_name: str = Field(
        default="ILIGAN Food",
        description="Brand shown in the storefront header"
    )
    session_cookie_name: str = Field(
        default="storefront_visitor",
        description="Cookie carrying the visitor id"
    )
    session_idle_timeout: float = Field(
        default=1800.0,
        gt=0,
        description="Idle seconds after which a visitor's context is closed"
    )
    max_sessions: int = Field(
        default=1000,
        ge=1,
        description="Upper bound on open storefront contexts"
    )
    google_maps_api_key: Optional[str] = Field(
        default=None,
        description="Google Maps key for the order tracking map"
    )

    # ==========================================================================
    # MOCK BACKEND
    # ==========================================================================

    mock_accounts: str = Field(
        default="demo@iligan.food:password123",
        description="Comma-separated email:password pairs for the mock backend"
    )
    mock_sign_out_failure_rate: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Probability that the mock backend rejects a sign-out"
    )

    # ==========================================================================
    # VALIDATORS
    # ==========================================================================

    @field_validator("env_mode", mode="before")
    @classmethod
    def validate_env_mode(cls, v: str) -> EnvironmentMode:
        """Convert string to EnvironmentMode enum."""
        if isinstance(v, EnvironmentMode):
            return v
        try:
            return EnvironmentMode(v.lower())
        except ValueError:
            valid = [e.value for e in EnvironmentMode]
            raise ValueError(f"Invalid env_mode. Must be one of: {valid}")

    @field_validator("supabase_url", "supabase_anon_key", mode="before")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat empty or whitespace-only values as unset."""
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env_mode == EnvironmentMode.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.env_mode == EnvironmentMode.PRODUCTION

    @property
    def use_real_services(self) -> bool:
        """Check if the hosted backend should be used."""
        return self.env_mode in (EnvironmentMode.PRODUCTION, EnvironmentMode.STAGING)

    @property
    def mock_accounts_map(self) -> dict[str, str]:
        """Get mock accounts as an email -> password mapping."""
        accounts = {}
        for pair in self.mock_accounts.split(","):
            email, sep, password = pair.strip().partition(":")
            if sep and email:
                accounts[email.strip().lower()] = password
        return accounts

    # ==========================================================================
    # VALIDATION METHODS
    # ==========================================================================

    def validate_backend_config(self) -> list[str]:
        """
        Validate that the hosted backend settings are configured.

        Missing values are reported, never raised: the backend client still
        gets built and fails at its first real call.

        Returns:
            List of missing configuration keys (empty if all present)
        """
        missing = []

        if not self.supabase_url:
            missing.append("SUPABASE_URL")
        if not self.supabase_anon_key:
            missing.append("SUPABASE_ANON_KEY")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are loaded only once and stay
    consistent across the application lifecycle.

    Returns:
        Settings: Configured application settings

    Example:
        >>> settings = get_settings()
        >>> print(settings.env_mode)
        EnvironmentMode.DEVELOPMENT
    """
    return Settings()


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured root logger
    """
    settings = get_settings()

    if settings.debug:
        level = logging.DEBUG

    log_format = "%(asctime)s │ %(levelname)-8s │ %(name)-25s │ %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return logging.getLogger("storefront")
