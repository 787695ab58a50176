"""Push channel abstraction over a server-side WebSocket."""

from typing import Any, Protocol

from fastapi.websockets import WebSocket, WebSocketState


class Channel(Protocol):
    """Message-framed connection used for server-to-client push."""

    @property
    def is_open(self) -> bool: ...

    async def send_json(self, payload: dict[str, Any]) -> None: ...

    async def close(self) -> None: ...


class WebSocketChannel:
    """Channel backed by an accepted Starlette WebSocket."""

    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket
        self._closed = False

    @property
    def is_open(self) -> bool:
        return (
            not self._closed
            and self._websocket.client_state == WebSocketState.CONNECTED
            and self._websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_json(self, payload: dict[str, Any]) -> None:
        await self._websocket.send_json(payload)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._websocket.application_state == WebSocketState.CONNECTED:
            await self._websocket.close()

    def mark_closed(self) -> None:
        """Record that the client side went away."""
        self._closed = True

    def __repr__(self) -> str:
        client = self._websocket.client
        return f"WebSocketChannel({client.host}:{client.port})" if client else "WebSocketChannel()"
