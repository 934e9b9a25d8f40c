"""
Unit tests for SupabaseBackendService

The SDK client is patched out; these tests check how SDK objects and
failures are normalized at the boundary.

Run with:
    pytest tests/test_backend_supabase.py -v
"""

import logging
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from storefront.core.config import EnvironmentMode, Settings
from storefront.services.backend.base import AuthChangeEvent, BackendError
from storefront.services.backend.supabase import (
    PLACEHOLDER_KEY,
    PLACEHOLDER_URL,
    SupabaseBackendService,
    to_auth_session,
)

CLIENT_PATH = "storefront.services.backend.supabase.AsyncClient"


def sdk_session(user_id="u-1", email="shopper@iligan.food"):
    return SimpleNamespace(
        user=SimpleNamespace(id=user_id, email=email),
        access_token="jwt",
        expires_at=1700000000,
    )


@pytest.fixture
def production_settings():
    return Settings(
        _env_file=None,
        env_mode=EnvironmentMode.PRODUCTION,
        supabase_url="https://project.supabase.co",
        supabase_anon_key="anon-key",
    )


@pytest.fixture
def sdk_client():
    client = MagicMock()
    client.auth.get_session = AsyncMock(return_value=None)
    client.auth.sign_in_with_password = AsyncMock()
    client.auth.sign_out = AsyncMock()
    return client


@pytest.fixture
def service(production_settings, sdk_client):
    with patch(CLIENT_PATH, return_value=sdk_client) as client_cls:
        service = SupabaseBackendService(production_settings)
        service.client_cls = client_cls
        yield service


class TestConfiguration:

    def test_client_built_lazily(self, service):
        service.client_cls.assert_not_called()

        service._get_client()
        service._get_client()

        service.client_cls.assert_called_once_with("https://project.supabase.co", "anon-key")

    def test_missing_config_logs_and_uses_placeholders(self, caplog):
        settings = Settings(_env_file=None, env_mode=EnvironmentMode.PRODUCTION, supabase_url=" ")

        with caplog.at_level(logging.ERROR), patch(CLIENT_PATH) as client_cls:
            service = SupabaseBackendService(settings)
            service._get_client()

        assert "SUPABASE_URL" in caplog.text
        assert "SUPABASE_ANON_KEY" in caplog.text
        client_cls.assert_called_once_with(PLACEHOLDER_URL, PLACEHOLDER_KEY)

    @pytest.mark.asyncio
    async def test_client_failure_surfaces_at_first_call(self, production_settings):
        with patch(CLIENT_PATH, side_effect=Exception("Invalid URL")):
            service = SupabaseBackendService(production_settings)

            with pytest.raises(BackendError) as exc_info:
                await service.get_current_session()

        assert exc_info.value.code == "configuration_error"

    def test_subscribe_without_client_is_inert(self, production_settings):
        with patch(CLIENT_PATH, side_effect=Exception("Invalid URL")):
            subscription = SupabaseBackendService(production_settings).subscribe_auth_changes(MagicMock())

        subscription.unsubscribe()


class TestAuthChanges:

    def test_events_are_normalized(self, service, sdk_client):
        callback = MagicMock()
        sdk_subscription = MagicMock()
        sdk_client.auth.on_auth_state_change.return_value = sdk_subscription

        subscription = service.subscribe_auth_changes(callback)
        on_change = sdk_client.auth.on_auth_state_change.call_args.args[0]
        on_change("SIGNED_IN", sdk_session())

        assert subscription is sdk_subscription
        event, session = callback.call_args.args
        assert event == AuthChangeEvent.SIGNED_IN
        assert session.user.id == "u-1"
        assert session.access_token == "jwt"

    def test_signed_out_passes_none(self, service, sdk_client):
        callback = MagicMock()
        service.subscribe_auth_changes(callback)
        on_change = sdk_client.auth.on_auth_state_change.call_args.args[0]

        on_change("SIGNED_OUT", None)

        callback.assert_called_once_with(AuthChangeEvent.SIGNED_OUT, None)

    def test_unknown_event_treated_as_user_update(self, service, sdk_client):
        callback = MagicMock()
        service.subscribe_auth_changes(callback)
        on_change = sdk_client.auth.on_auth_state_change.call_args.args[0]

        on_change("SOMETHING_NEW", sdk_session())

        assert callback.call_args.args[0] == AuthChangeEvent.USER_UPDATED


class TestSession:

    @pytest.mark.asyncio
    async def test_current_session(self, service, sdk_client):
        sdk_client.auth.get_session.return_value = sdk_session(email=None)

        session = await service.get_current_session()

        assert session.user.id == "u-1"
        assert session.user.email is None

    @pytest.mark.asyncio
    async def test_no_session(self, service):
        assert await service.get_current_session() is None

    @pytest.mark.asyncio
    async def test_lookup_failure(self, service, sdk_client):
        sdk_client.auth.get_session.side_effect = ConnectionError("offline")

        with pytest.raises(BackendError) as exc_info:
            await service.get_current_session()
        assert exc_info.value.code == "session_error"

    @pytest.mark.asyncio
    async def test_health_check(self, service, sdk_client):
        assert await service.health_check() is True

        sdk_client.auth.get_session.side_effect = ConnectionError("offline")
        assert await service.health_check() is False

    def test_session_without_user_id(self):
        session = to_auth_session(SimpleNamespace(user=SimpleNamespace(id=None)))

        assert session.user is None


class TestSignInOut:

    @pytest.mark.asyncio
    async def test_sign_in(self, service, sdk_client):
        sdk_client.auth.sign_in_with_password.return_value = SimpleNamespace(session=sdk_session())

        result = await service.sign_in_with_password("shopper@iligan.food", "pw")

        assert result.success is True
        assert result.user.email == "shopper@iligan.food"
        sdk_client.auth.sign_in_with_password.assert_awaited_once_with(
            {"email": "shopper@iligan.food", "password": "pw"}
        )

    @pytest.mark.asyncio
    async def test_sign_in_rejected(self, service, sdk_client):
        sdk_client.auth.sign_in_with_password.side_effect = Exception("Invalid login credentials")

        result = await service.sign_in_with_password("shopper@iligan.food", "bad")

        assert result.success is False
        assert result.error_message == "Invalid login credentials"

    @pytest.mark.asyncio
    async def test_sign_in_without_session(self, service, sdk_client):
        sdk_client.auth.sign_in_with_password.return_value = SimpleNamespace(session=None)

        result = await service.sign_in_with_password("shopper@iligan.food", "pw")

        assert result.success is False
        assert result.error_code == "no_session"

    @pytest.mark.asyncio
    async def test_sign_out(self, service, sdk_client):
        await service.sign_out()

        sdk_client.auth.sign_out.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_sign_out_failure(self, service, sdk_client):
        sdk_client.auth.sign_out.side_effect = ConnectionError("offline")

        with pytest.raises(BackendError) as exc_info:
            await service.sign_out()
        assert exc_info.value.code == "sign_out_failed"


class TestClose:

    @pytest.mark.asyncio
    async def test_close_releases_client(self, service, sdk_client):
        sdk_client.auth.close = AsyncMock()
        await service.get_current_session()

        await service.close()
        await service.close()

        sdk_client.auth.close.assert_awaited_once_with()

    @pytest.mark.asyncio
    async def test_close_without_client_is_noop(self, service):
        await service.close()

        service.client_cls.assert_not_called()

    @pytest.mark.asyncio
    async def test_close_failure_is_logged(self, service, sdk_client, caplog):
        sdk_client.auth.close = AsyncMock(side_effect=RuntimeError("already closed"))
        service._get_client()

        with caplog.at_level(logging.WARNING):
            await service.close()

        assert "Error while closing client" in caplog.text
