"""
Unit tests for ContextRegistry

Visitor contexts are looked up by id, closed after an idle timeout and
capped in number; every closed context releases its listener and backend.

Run with:
    pytest tests/test_context_registry.py -v
"""

import pytest

from storefront.core.config import Settings
from storefront.services.backend.mock import MockBackendService
from storefront.session.context import ContextRegistry

from tests.conftest import ACCOUNTS


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def backends():
    return []


def make_registry(backends, clock, **overrides):
    settings = Settings(_env_file=None, **overrides)

    def factory(s):
        backend = MockBackendService(accounts=ACCOUNTS)
        backends.append(backend)
        return backend

    return ContextRegistry(settings, backend_factory=factory, clock=clock)


class TestLookup:

    @pytest.mark.asyncio
    async def test_known_id_returns_same_context(self, backends, clock):
        registry = make_registry(backends, clock)
        visitor_id, context = await registry.get_or_create(None)

        again_id, again = await registry.get_or_create(visitor_id)

        assert again_id == visitor_id
        assert again is context
        assert len(registry) == 1
        await registry.close_all()

    @pytest.mark.asyncio
    async def test_unknown_id_starts_new_context(self, backends, clock):
        registry = make_registry(backends, clock)

        visitor_id, context = await registry.get_or_create("bogus")

        assert visitor_id != "bogus"
        assert visitor_id in registry
        assert context.observer.ready is True
        await registry.close_all()


class TestIdleEviction:

    @pytest.mark.asyncio
    async def test_idle_context_is_closed_on_next_lookup(self, backends, clock):
        registry = make_registry(backends, clock, session_idle_timeout=60)
        stale_id, stale = await registry.get_or_create(None)

        clock.now = 61
        await registry.get_or_create(None)

        assert stale_id not in registry
        assert stale.closed is True
        assert backends[0].listener_count == 0
        assert backends[0].closed is True
        assert len(registry) == 1
        await registry.close_all()

    @pytest.mark.asyncio
    async def test_activity_keeps_context_alive(self, backends, clock):
        registry = make_registry(backends, clock, session_idle_timeout=60)
        visitor_id, context = await registry.get_or_create(None)

        clock.now = 50
        await registry.get_or_create(visitor_id)
        clock.now = 100
        again_id, again = await registry.get_or_create(visitor_id)

        assert again_id == visitor_id
        assert again is context
        assert context.closed is False
        await registry.close_all()

    @pytest.mark.asyncio
    async def test_expired_visitor_gets_fresh_context(self, backends, clock):
        registry = make_registry(backends, clock, session_idle_timeout=60)
        visitor_id, _ = await registry.get_or_create(None)

        clock.now = 120
        new_id, _ = await registry.get_or_create(visitor_id)

        assert new_id != visitor_id
        assert len(registry) == 1
        await registry.close_all()

    @pytest.mark.asyncio
    async def test_evict_idle_reports_count(self, backends, clock):
        registry = make_registry(backends, clock, session_idle_timeout=60)
        await registry.get_or_create(None)
        await registry.get_or_create(None)
        clock.now = 30
        await registry.get_or_create(None)

        clock.now = 75
        assert await registry.evict_idle() == 2
        assert len(registry) == 1
        await registry.close_all()


class TestSessionLimit:

    @pytest.mark.asyncio
    async def test_least_recently_seen_is_evicted(self, backends, clock):
        registry = make_registry(backends, clock, max_sessions=2)
        first_id, first = await registry.get_or_create(None)
        second_id, _ = await registry.get_or_create(None)

        clock.now = 1
        await registry.get_or_create(first_id)
        third_id, _ = await registry.get_or_create(None)

        assert first_id in registry
        assert second_id not in registry
        assert third_id in registry
        assert backends[1].closed is True
        assert backends[1].listener_count == 0
        assert first.closed is False
        await registry.close_all()

    @pytest.mark.asyncio
    async def test_many_anonymous_visitors_stay_bounded(self, backends, clock):
        registry = make_registry(backends, clock, max_sessions=5)

        for _ in range(40):
            await registry.get_or_create(None)

        assert len(registry) == 5
        assert all(backend.closed for backend in backends[:-5])
        assert all(backend.listener_count == 0 for backend in backends[:-5])
        await registry.close_all()


class TestDiscard:

    @pytest.mark.asyncio
    async def test_discard_closes_context(self, backends, clock):
        registry = make_registry(backends, clock)
        visitor_id, context = await registry.get_or_create(None)

        assert await registry.discard(visitor_id) is True
        assert await registry.discard(visitor_id) is False
        assert context.closed is True
        assert backends[0].closed is True

    @pytest.mark.asyncio
    async def test_close_all(self, backends, clock):
        registry = make_registry(backends, clock)
        for _ in range(3):
            await registry.get_or_create(None)

        await registry.close_all()

        assert len(registry) == 0
        assert all(backend.closed for backend in backends)
