from typing import Annotated

from fastapi import APIRouter, Query, WebSocket

from timersync.core.modules.realtime.channel import WebSocketChannel
from timersync.web.deps import AppDep

router = APIRouter(tags=["push"])


@router.websocket("/")
@router.websocket("/ws")
async def push_channel(
    websocket: WebSocket,
    app: AppDep,
    session_id: Annotated[str | None, Query(alias="sessionId")] = None,
) -> None:
    """Push channel: authenticate by session token, then stream timer snapshots.

    Server-to-client only; inbound frames are ignored until the client disconnects.
    """
    await websocket.accept()
    channel = WebSocketChannel(websocket)
    connection = await app.open_channel(session_id, channel)
    if connection is None:
        return

    try:
        while channel.is_open:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                channel.mark_closed()
    finally:
        app.close_channel(connection)
