"""Record Store API: FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map RecordStoreError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Backend client and store initialized on startup via lifespan, closed on shutdown
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from recordstore.api.dependencies import close_store, init_store
from recordstore.api.error_handlers import register_error_handlers
from recordstore.api.routes import health, records
from recordstore.infrastructure.observability import setup_logging
from recordstore.config import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    init_store(settings)
    logger.info("Record store API started")
    yield
    await close_store()
    logger.info("Record store API shutting down")


app = FastAPI(
    title="Record Store API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(records.router)

register_error_handlers(app)
