"""FastAPI application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from snake_survival.config import GameConfig
from snake_survival.server.routes import router
from snake_survival.server.websocket import ws_router
from snake_survival.session import GameSession
from snake_survival.storage import GameStorage


def create_app(
    config: GameConfig | None = None,
    storage: GameStorage | None = None,
    seed: int | None = None,
) -> FastAPI:
    """Build and return the FastAPI application.

    The session is opened on startup, resuming a saved game if one was in
    progress, and closed on shutdown.
    """

    @asynccontextmanager
    async def _lifespan(app: FastAPI):
        app.state.session = await GameSession.open(config, storage, seed)
        yield
        await app.state.session.close()

    app = FastAPI(
        title="Snake Survival API", version="0.1.0", lifespan=_lifespan,
    )
    app.include_router(router)
    app.include_router(ws_router)
    return app
