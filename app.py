import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from constants import APP_ENV, KICK_SILENT_SECONDS, LOG_FILE, LOG_LEVEL, STATIC_DIR
from gateway import ChatGateway
from logging_config import get_logger, setup_logging
from room import ChatRoom
from routers.room import room_router

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


def create_app(
    kick_silent_seconds: float = KICK_SILENT_SECONDS,
    app_env: str = APP_ENV,
    static_dir: Optional[str] = STATIC_DIR,
) -> FastAPI:
    room = ChatRoom(kick_silent_seconds=kick_silent_seconds)
    gateway = ChatGateway(room)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Chat server starting ({app_env})")
        yield
        gateway.stop()
        logger.info("Chat server stopped")

    app = FastAPI(lifespan=lifespan)
    app.state.room = room
    app.state.gateway = gateway

    if app_env == "development":
        # Frontend dev server runs on its own origin
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(room_router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        await gateway.serve(websocket)

    if app_env == "production" and static_dir and os.path.isdir(static_dir):
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
        logger.info(f"Serving static assets from {static_dir}")

    logger.info("FastAPI application initialized")
    return app


app = create_app()
