import logging

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from app.core.config import settings
from app.api.router import api
from app.api.routes import websocket
from app.services.connections import ConnectionPool
from app.services.registry import SessionRegistry
from app.services.relay import Relay

def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title=settings.APP_NAME)
    app.state.relay = Relay(SessionRegistry(), ConnectionPool(), default_color=settings.DEFAULT_COLOR)

    app.include_router(api)
    app.include_router(websocket.router, tags=["ws"])

    @app.get("/", response_class=PlainTextResponse)
    def index():
        return "WebSocket server running"

    @app.get("/health")
    def health():
        return {"ok": True}

    return app

app = create_app()
