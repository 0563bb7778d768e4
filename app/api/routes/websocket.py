from fastapi import APIRouter, Depends, WebSocket

from app.core.config import settings
from app.core.deps import get_ws_relay
from app.services.connections import WebSocketConnection
from app.services.relay import Relay

router = APIRouter()

@router.websocket(settings.WS_PATH)
async def ws_endpoint(ws: WebSocket, relay: Relay = Depends(get_ws_relay)):
    await ws.accept()
    conn = WebSocketConnection(ws, queue_size=settings.SEND_QUEUE_SIZE)
    conn.start()
    relay.on_open(conn)
    try:
        while True:
            frame = await ws.receive()
            if frame["type"] == "websocket.disconnect":
                break
            data = frame.get("text")
            if data is None:
                data = frame.get("bytes")
            if data is not None:
                relay.on_message(conn, data)
    except Exception as e:
        relay.on_error(conn, e)
    finally:
        relay.on_close(conn)
        conn.detach()
