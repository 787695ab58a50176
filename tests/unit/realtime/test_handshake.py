"""Tests for the push channel handshake."""

from conftest import FakeChannel, make_user

from timersync.core.modules.realtime.models import ConnectionState


class TestRejected:
    async def test_missing_token(self, realtime):
        channel = FakeChannel()

        connection = await realtime.open_channel(None, channel)

        assert connection is None
        assert channel.sent == [{"error": "Unauthorized: No sessionId provided"}]
        assert channel.closed
        assert len(realtime.registry) == 0

    async def test_empty_token(self, realtime):
        channel = FakeChannel()

        connection = await realtime.open_channel("", channel)

        assert connection is None
        assert len(channel.sent) == 1
        assert "error" in channel.sent[0]
        assert channel.closed
        assert len(realtime.registry) == 0

    async def test_unknown_token(self, realtime, alice):
        channel = FakeChannel()

        connection = await realtime.open_channel("nope", channel)

        assert connection is None
        assert channel.sent == [{"error": "Unauthorized: Invalid sessionId"}]
        assert channel.closed
        assert realtime.registry.lookup(alice.id) is None

    async def test_session_store_failure_closes_without_registering(self, realtime, sessions, alice):
        sessions.broken = True
        channel = FakeChannel()

        connection = await realtime.open_channel("tok1", channel)

        assert connection is None
        assert channel.closed
        assert channel.sent == []
        assert len(realtime.registry) == 0

    async def test_error_frame_send_failure_still_closes(self, realtime):
        channel = FakeChannel(fail_send=True)

        assert await realtime.open_channel("", channel) is None
        assert channel.closed


class TestActive:
    async def test_valid_token_registers_and_sends_full_snapshot(self, realtime, timers, alice):
        await timers.create_timer(alice.id, "write spec")
        channel = FakeChannel()

        connection = await realtime.open_channel("tok1", channel)

        assert connection is not None
        assert connection.state == ConnectionState.ACTIVE
        assert connection.user_id == alice.id
        assert realtime.registry.lookup(alice.id) is channel
        assert len(channel.sent) == 1
        message = channel.sent[0]
        assert message["type"] == "all_timers"
        assert [t["description"] for t in message["data"]["activeTimers"]] == ["write spec"]
        assert message["data"]["completedTimers"] == []

    async def test_snapshot_read_failure_keeps_channel_registered(self, realtime, timers, alice):
        timers.failing_users.add(alice.id)
        channel = FakeChannel()

        connection = await realtime.open_channel("tok1", channel)

        assert connection is not None
        assert channel.sent == []
        assert realtime.registry.lookup(alice.id) is channel

    async def test_second_login_takes_over(self, realtime, sessions, alice):
        """U connects with tok1, logs in again as tok2 and connects: only tok2's channel is addressable."""
        sessions.add("tok2", alice)
        first, second = FakeChannel("first"), FakeChannel("second")

        first_connection = await realtime.open_channel("tok1", first)
        await realtime.open_channel("tok2", second)

        assert realtime.registry.lookup(alice.id) is second
        assert first.closed
        assert first_connection.state == ConnectionState.CLOSED

        # The replaced channel's close callback arrives late
        realtime.close_channel(first_connection)
        assert realtime.registry.lookup(alice.id) is second

        realtime.notify(alice.id)
        await realtime.wait_notifications()
        assert len(second.messages("all_timers")) == 2
        assert len(first.messages("all_timers")) == 1

    async def test_other_users_are_independent(self, realtime, sessions, alice):
        bob = make_user("bob")
        sessions.add("tok-bob", bob)
        alice_channel, bob_channel = FakeChannel(), FakeChannel()

        await realtime.open_channel("tok1", alice_channel)
        await realtime.open_channel("tok-bob", bob_channel)

        assert realtime.registry.lookup(alice.id) is alice_channel
        assert realtime.registry.lookup(bob.id) is bob_channel
        assert not alice_channel.closed


class TestClosed:
    async def test_close_unregisters(self, realtime, alice):
        channel = FakeChannel()
        connection = await realtime.open_channel("tok1", channel)

        realtime.close_channel(connection)

        assert connection.state == ConnectionState.CLOSED
        assert realtime.registry.lookup(alice.id) is None

    async def test_no_pushes_after_close(self, realtime, alice):
        channel = FakeChannel()
        connection = await realtime.open_channel("tok1", channel)
        realtime.close_channel(connection)

        realtime.notify(alice.id)
        await realtime.wait_notifications()
        await realtime.broadcast_active_timers()

        assert len(channel.sent) == 1

    async def test_close_is_idempotent(self, realtime, alice):
        connection = await realtime.open_channel("tok1", FakeChannel())

        realtime.close_channel(connection)
        realtime.close_channel(connection)

        assert len(realtime.registry) == 0


class TestConnectionState:
    def test_only_registered_connections_have_state(self):
        """Rejected handshakes return None, so only active and closed remain."""
        assert set(ConnectionState) == {ConnectionState.ACTIVE, ConnectionState.CLOSED}
