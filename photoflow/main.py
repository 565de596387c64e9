"""PhotoFlow backend - FastAPI application."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from photoflow.api.v1.router import v1_router
from photoflow.config import Settings
from photoflow.engine.scheduler import SweepScheduler
from photoflow.engine.transitions import TransitionEngine
from photoflow.items.service import ItemService
from photoflow.logging_config import configure_logging
from photoflow.storage.memory_store import ItemStore

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the app with its own store, access layer, engine and sweep loop."""
    settings = settings or Settings()
    configure_logging(settings.log_level)

    store = ItemStore()
    service = ItemService(
        store,
        max_payload_bytes=settings.max_payload_bytes,
        max_batch_bytes=settings.max_batch_bytes,
    )
    engine = TransitionEngine(
        service,
        min_duration_ms=settings.min_processing_ms,
        max_extra_ms=settings.max_extra_processing_ms,
        failure_probability=settings.failure_probability,
        resample_required_duration=settings.resample_required_duration,
    )
    scheduler = SweepScheduler(engine.sweep, interval_ms=settings.sweep_interval_ms)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown logic."""
        logger.info(
            "Starting PhotoFlow backend: sweep every %dms, processing %d-%dms, failure p=%.2f",
            settings.sweep_interval_ms,
            settings.min_processing_ms,
            settings.min_processing_ms + settings.max_extra_processing_ms,
            settings.failure_probability,
        )
        await scheduler.start()

        yield

        logger.info("Shutting down PhotoFlow backend")
        await scheduler.stop()

    app = FastAPI(
        title="PhotoFlow",
        description="Photo upload workflow with simulated background processing",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.service = service
    app.state.engine = engine
    app.state.scheduler = scheduler

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(v1_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
