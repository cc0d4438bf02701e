"""SoundRound API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map SoundRoundError → the {"success": false} envelope
    - Store client, upload storage and round locks created once in the lifespan
      and attached to app.state

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Page rendering and static assets are served elsewhere; this app is API only
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from soundround.api.error_handlers import register_error_handlers
from soundround.api.routes import files, health, rounds
from soundround.config import get_settings
from soundround.infrastructure.file_storage import UploadStorage
from soundround.infrastructure.observability import setup_logging
from soundround.infrastructure.redis_store import RedisKeyValueStore
from soundround.services.round_store import RoundLocks

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)

    storage = UploadStorage(settings.upload_dir)
    storage.root.mkdir(parents=True, exist_ok=True)
    store = RedisKeyValueStore.from_url(settings.redis_url)
    if not await store.ping():
        logger.error("Redis not reachable at startup; readiness will report not_ready")

    app.state.store = store
    app.state.upload_storage = storage
    app.state.round_locks = RoundLocks()
    logger.info("SoundRound API started")
    yield
    logger.info("SoundRound API shutting down")
    await store.close()


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="SoundRound API", version="1.0.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(rounds.router)
    app.include_router(files.router)

    register_error_handlers(app)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8080)
