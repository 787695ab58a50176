import asyncio
import contextlib
from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from timersync.core.core import Service
from timersync.core.modules.realtime.channel import Channel
from timersync.core.modules.realtime.models import (
    ActiveTimersMessage,
    AllTimers,
    AllTimersMessage,
    Connection,
    ConnectionState,
    error_payload,
    to_payload,
)
from timersync.core.modules.realtime.registry import ConnectionRegistry
from timersync.core.modules.timer.models import ActiveTimerView, TimerView
from timersync.errors import AuthenticationError
from timersync.utils import now

logger = structlog.get_logger(__name__)


class RealtimeService(Service):
    """Keeps every connected client of a user in sync with their timers.

    Three paths push to the channels held by the registry:
    the handshake (full snapshot on connect), ``notify`` (full snapshot after a
    mutation) and the tick broadcaster (active timers with live durations).
    Push failures are logged and never propagate to the caller.
    """

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self.registry = ConnectionRegistry()
        self._notification_tasks: set[asyncio.Task[bool]] = set()
        self._broadcast_task: asyncio.Task[None] | None = None

    async def on_start(self) -> None:
        interval = self.core.config.tick_interval
        self._broadcast_task = asyncio.create_task(self._broadcast_loop(interval))
        logger.debug("realtime_service_started", tick_interval=interval)

    async def on_stop(self) -> None:
        """Stop the broadcaster, flush pending notifications, close all channels."""
        if self._broadcast_task is not None:
            self._broadcast_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._broadcast_task
            self._broadcast_task = None

        await self.wait_notifications()

        for connection in self.registry.clear():
            connection.state = ConnectionState.CLOSED
            await self._close_quietly(connection.channel)
        logger.debug("realtime_service_stopped")

    # === Handshake ===
    async def open_channel(self, auth_token: str | None, channel: Channel) -> Connection | None:
        """Authenticate and register a new push channel.

        Returns the active connection, or None if the attempt was rejected
        (an error frame has then been sent and the channel closed).
        """
        if not auth_token:
            await self._reject(channel, "Unauthorized: No sessionId provided")
            return None

        try:
            user = await self.core.services.session.get_authenticated_user(auth_token)
        except AuthenticationError:
            await self._reject(channel, "Unauthorized: Invalid sessionId")
            return None
        except Exception:
            logger.exception("handshake_failed")
            await self._close_quietly(channel)
            return None

        connection, replaced = self.registry.register(user.id, channel)
        if replaced is not None and replaced.channel is not channel:
            replaced.state = ConnectionState.CLOSED
            await self._close_quietly(replaced.channel)

        logger.info("channel_opened", user_id=user.id, replaced=replaced is not None)
        await self.push_all_timers(user.id)
        return connection

    def close_channel(self, connection: Connection) -> None:
        """Handle close or error on an active channel."""
        if connection.state == ConnectionState.CLOSED:
            return
        connection.state = ConnectionState.CLOSED
        removed = self.registry.unregister(connection.user_id, connection.channel)
        logger.info("channel_closed", user_id=connection.user_id, unregistered=removed)

    async def _reject(self, channel: Channel, message: str) -> None:
        logger.info("channel_rejected", reason=message)
        try:
            await channel.send_json(error_payload(message))
        except Exception:
            logger.warning("reject_frame_failed", exc_info=True)
        await self._close_quietly(channel)

    async def _close_quietly(self, channel: Channel) -> None:
        try:
            await channel.close()
        except Exception:
            logger.warning("channel_close_failed", exc_info=True)

    # === Mutation notifier ===
    def notify(self, user_id: UUID) -> None:
        """Push a full snapshot to the user's channel in the background.

        Must be called after the triggering write has completed, so the
        snapshot read happens after it.
        """
        if self.registry.lookup(user_id) is None:
            return
        task = asyncio.create_task(self.push_all_timers(user_id))
        self._notification_tasks.add(task)
        task.add_done_callback(self._notification_tasks.discard)

    async def wait_notifications(self) -> None:
        """Wait until all notifications scheduled so far have been sent or failed."""
        if self._notification_tasks:
            await asyncio.gather(*self._notification_tasks, return_exceptions=True)

    async def push_all_timers(self, user_id: UUID) -> bool:
        """Send a full snapshot to the user's channel if connected. Returns whether it was sent."""
        channel = self.registry.lookup(user_id)
        if channel is None or not channel.is_open:
            return False

        try:
            timer_service = self.core.services.timer
            active_timers = await timer_service.find_active_timers(user_id)
            completed_timers = await timer_service.find_completed_timers(user_id)
            message = AllTimersMessage(
                data=AllTimers(
                    active_timers=[TimerView.from_domain(t) for t in active_timers],
                    completed_timers=[TimerView.from_domain(t) for t in completed_timers],
                )
            )
            if not channel.is_open:
                return False
            await channel.send_json(to_payload(message))
        except Exception as e:
            logger.exception("all_timers_push_failed", user_id=user_id, error=str(e))
            return False
        return True

    # === Tick broadcaster ===
    async def broadcast_active_timers(self) -> int:
        """Push active timers with live durations to every connected user.

        Returns the number of users that were sent a snapshot.
        """
        connections = self.registry.connections()
        if not connections:
            return 0
        results = await asyncio.gather(*(self._push_active_timers(c) for c in connections))
        return sum(results)

    async def _push_active_timers(self, connection: Connection) -> bool:
        channel = connection.channel
        if not channel.is_open:
            return False

        try:
            active_timers = await self.core.services.timer.find_active_timers(connection.user_id)
            at = now()
            message = ActiveTimersMessage(data=[ActiveTimerView.from_timer(t, at) for t in active_timers])
            if not channel.is_open:
                return False
            await channel.send_json(to_payload(message))
        except Exception as e:
            logger.warning("active_timers_push_failed", user_id=connection.user_id, error=str(e), exc_info=True)
            return False
        return True

    async def _broadcast_loop(self, interval: float) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + interval
        while True:
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            next_tick += interval
            if next_tick < loop.time():
                # Skip missed ticks instead of firing them back to back
                next_tick = loop.time() + interval
            try:
                await self.broadcast_active_timers()
            except Exception:
                logger.exception("broadcast_failed")
