from fastapi import Request, WebSocket

from app.services.relay import Relay

def get_relay(request: Request) -> Relay:
    return request.app.state.relay

def get_ws_relay(ws: WebSocket) -> Relay:
    return ws.app.state.relay
