import asyncio
from contextlib import suppress

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from clipbridge.core.modules.broadcast.models import Connection
from clipbridge.web.deps import WsAppDep

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["realtime"])


async def drain_outbox(websocket: WebSocket, connection: Connection) -> None:
    """Write queued events to the socket in order until it closes."""
    try:
        while True:
            event = await connection.outbox.get()
            await websocket.send_text(event.model_dump_json())
    except (WebSocketDisconnect, RuntimeError, OSError) as e:
        logger.debug("outbox_writer_stopped", connection_id=connection.id, reason=str(e))


@router.websocket("/ws")
async def realtime_channel(websocket: WebSocket, app: WsAppDep) -> None:
    """Realtime channel: JSON frames {"event": ..., "data": {...}}."""
    await websocket.accept()
    connection = app.open_connection()
    writer = asyncio.create_task(drain_outbox(websocket, connection))
    logger.debug("connection_opened", connection_id=connection.id)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text") or message.get("bytes") or ""
            await app.handle_message(connection, raw)
    finally:
        await app.close_connection(connection)
        writer.cancel()
        with suppress(asyncio.CancelledError):
            await writer
