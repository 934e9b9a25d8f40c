"""
Unit tests for MockBackendService

Run with:
    pytest tests/test_backend_mock.py -v
"""

from unittest.mock import MagicMock

import pytest

from storefront.services.backend.base import AuthChangeEvent, BackendError
from storefront.services.backend.mock import MockBackendService

from tests.conftest import EMAIL, PASSWORD


class TestSignIn:

    @pytest.mark.asyncio
    async def test_valid_credentials(self, backend):
        listener = MagicMock()
        backend.subscribe_auth_changes(listener)

        result = await backend.sign_in_with_password(EMAIL, PASSWORD)

        assert result.success is True
        assert result.user.email == EMAIL
        assert backend.current_session == result.session
        listener.assert_called_once_with(AuthChangeEvent.SIGNED_IN, result.session)

    @pytest.mark.asyncio
    async def test_email_is_case_insensitive(self, backend):
        result = await backend.sign_in_with_password(f"  {EMAIL.upper()} ", PASSWORD)

        assert result.success is True

    @pytest.mark.asyncio
    async def test_same_user_id_across_sign_ins(self, backend):
        first = await backend.sign_in_with_password(EMAIL, PASSWORD)
        second = await backend.sign_in_with_password(EMAIL, PASSWORD)

        assert first.user.id == second.user.id

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email,password", [
        (EMAIL, "wrong"),
        ("nobody@iligan.food", PASSWORD),
        ("", ""),
    ])
    async def test_rejected_credentials(self, backend, email, password):
        listener = MagicMock()
        backend.subscribe_auth_changes(listener)

        result = await backend.sign_in_with_password(email, password)

        assert result.success is False
        assert result.error_code == "invalid_credentials"
        assert result.session is None
        listener.assert_not_called()


class TestSession:

    @pytest.mark.asyncio
    async def test_no_session_by_default(self, backend):
        assert await backend.get_current_session() is None

    @pytest.mark.asyncio
    async def test_fetch_failure(self, backend):
        backend.fail_session_fetch = True

        with pytest.raises(BackendError) as exc_info:
            await backend.get_current_session()
        assert exc_info.value.code == "network_error"

    @pytest.mark.asyncio
    async def test_health_check(self, backend):
        assert await backend.health_check() is True
        assert backend.provider_name == "mock"


class TestSignOut:

    @pytest.mark.asyncio
    async def test_notifies_signed_out(self, backend):
        await backend.sign_in_with_password(EMAIL, PASSWORD)
        listener = MagicMock()
        backend.subscribe_auth_changes(listener)

        await backend.sign_out()

        listener.assert_called_once_with(AuthChangeEvent.SIGNED_OUT, None)
        assert backend.current_session is None

    @pytest.mark.asyncio
    async def test_fail_next_sign_out_is_one_shot(self, backend):
        backend.fail_next_sign_out = True

        with pytest.raises(BackendError) as exc_info:
            await backend.sign_out()
        assert exc_info.value.code == "sign_out_failed"
        assert str(exc_info.value).startswith("[sign_out_failed]")

        await backend.sign_out()

    @pytest.mark.asyncio
    async def test_failure_rate(self):
        backend = MockBackendService(sign_out_failure_rate=1.0)

        with pytest.raises(BackendError):
            await backend.sign_out()


class TestSubscriptions:

    def test_unsubscribe_is_idempotent(self, backend):
        subscription = backend.subscribe_auth_changes(MagicMock())
        assert backend.listener_count == 1

        subscription.unsubscribe()
        subscription.unsubscribe()

        assert backend.listener_count == 0
        assert subscription.unsubscribe_calls == 2

    def test_unsubscribed_listener_not_called(self, backend, session):
        listener = MagicMock()
        backend.subscribe_auth_changes(listener).unsubscribe()

        backend.notify(AuthChangeEvent.SIGNED_IN, session)

        listener.assert_not_called()

    @pytest.mark.asyncio
    async def test_close(self, backend):
        assert backend.closed is False

        await backend.close()

        assert backend.closed is True
