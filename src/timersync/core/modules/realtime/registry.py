from uuid import UUID

import structlog

from timersync.core.modules.realtime.channel import Channel
from timersync.core.modules.realtime.models import Connection

logger = structlog.get_logger(__name__)


class ConnectionRegistry:
    """Process-wide map from user ID to at most one addressable push channel.

    Last registered wins: ``register`` replaces any existing entry and returns it,
    the caller closes the replaced channel. ``unregister`` is identity-checked so a
    late close of a replaced channel cannot evict its successor.

    All operations are plain dict operations without awaits, so they are atomic
    with respect to each other on the event loop.
    """

    def __init__(self) -> None:
        self._connections: dict[UUID, Connection] = {}

    def register(self, user_id: UUID, channel: Channel) -> tuple[Connection, Connection | None]:
        """Register channel for user; return the new connection and the replaced one, if any."""
        connection = Connection(user_id=user_id, channel=channel)
        replaced = self._connections.get(user_id)
        self._connections[user_id] = connection
        logger.debug("channel_registered", user_id=user_id, replaced=replaced is not None)
        return connection, replaced

    def unregister(self, user_id: UUID, channel: Channel) -> bool:
        """Remove the user's entry only if it still points at this channel."""
        current = self._connections.get(user_id)
        if current is None or current.channel is not channel:
            return False
        del self._connections[user_id]
        logger.debug("channel_unregistered", user_id=user_id)
        return True

    def lookup(self, user_id: UUID) -> Channel | None:
        connection = self._connections.get(user_id)
        return connection.channel if connection else None

    def connections(self) -> list[Connection]:
        """Snapshot of current entries, safe to iterate across awaits."""
        return list(self._connections.values())

    def clear(self) -> list[Connection]:
        removed = self.connections()
        self._connections.clear()
        return removed

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._connections
