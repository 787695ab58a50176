"""Tests that timer mutations notify the owner's push channel exactly once."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from conftest import InMemoryTimerStore, make_user

from timersync.app import App
from timersync.errors import NotFoundError


@pytest.fixture
def user():
    return make_user("alice")


@pytest.fixture
def services(user):
    return SimpleNamespace(
        access=SimpleNamespace(ensure_authenticated=AsyncMock(return_value=user)),
        timer=InMemoryTimerStore(),
        realtime=MagicMock(),
    )


@pytest.fixture
def app(services):
    app = App.__new__(App)
    app._core = SimpleNamespace(services=services)
    return app


class TestMutations:
    async def test_create_notifies_once(self, app, services, user):
        view = await app.create_timer("tok1", "write spec")

        assert view.is_active is True
        services.realtime.notify.assert_called_once_with(user.id)

    async def test_stop_notifies_once(self, app, services, user):
        created = await app.create_timer("tok1", "write spec")
        services.realtime.notify.reset_mock()

        view = await app.stop_timer("tok1", created.id)

        assert view.is_active is False
        assert view.duration is not None
        services.realtime.notify.assert_called_once_with(user.id)

    async def test_failed_stop_does_not_notify(self, app, services):
        with pytest.raises(NotFoundError):
            await app.stop_timer("tok1", uuid4())
        services.realtime.notify.assert_not_called()

    async def test_reads_do_not_notify(self, app, services):
        await app.create_timer("tok1", "write spec")
        services.realtime.notify.reset_mock()

        assert len(await app.get_active_timers("tok1")) == 1
        assert await app.get_completed_timers("tok1") == []
        services.realtime.notify.assert_not_called()
