"""
Shared fixtures for the storefront test suite.

Everything runs against MockBackendService; nothing here needs a Supabase
project or network access.

Run with:
    pytest tests/ -v
"""

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from storefront.core.config import EnvironmentMode, Settings
from storefront.main import create_app
from storefront.services.backend.base import AuthSession, UserRecord
from storefront.services.backend.mock import MockBackendService
from storefront.session.context import StorefrontContext

EMAIL = "shopper@iligan.food"
PASSWORD = "secret-pass"
ACCOUNTS = {EMAIL: PASSWORD}


@pytest.fixture
def settings():
    """Development settings, isolated from any local .env file."""
    return Settings(
        _env_file=None,
        env_mode=EnvironmentMode.DEVELOPMENT,
        brand_name="ILIGAN Food",
        mock_accounts=f"{EMAIL}:{PASSWORD}",
    )


@pytest.fixture
def backend():
    """Mock backend with a single known account and no latency."""
    return MockBackendService(accounts=ACCOUNTS)


@pytest.fixture
def user():
    return UserRecord(id="9f1c2d3e-0000-4000-8000-000000000001", email=EMAIL)


@pytest.fixture
def session(user):
    return AuthSession(user=user, access_token="mock_token")


@pytest_asyncio.fixture
async def context(backend, settings):
    """Started, signed-out storefront context."""
    context = StorefrontContext(backend, settings)
    await context.start()
    yield context
    await context.close()


@pytest_asyncio.fixture
async def signed_in(context):
    """Storefront context after a successful sign-in."""
    result = await context.sign_in(EMAIL, PASSWORD)
    assert result.success
    return context


@pytest.fixture
def app(settings):
    """FastAPI app whose visitors all get a fresh mock backend."""
    return create_app(settings, backend_factory=lambda s: MockBackendService(accounts=ACCOUNTS))


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client
