"""Venue Tax Engine FastAPI Application.

Exposes the tax engine, its CSV/PDF exports and the periodic tax sync
scheduler over HTTP.
"""

import logging
import sys
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routers import tax
from .services.config import config_service, ConfigValidationException
from .services.logging_service import configure_from_config
from .services.runtime import build_engine, build_scheduler, default_options

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup: Validate configuration
    try:
        config_service.load_and_validate()
    except ConfigValidationException as e:
        print(f"FATAL: {e}")
        print("Server cannot start with invalid configuration.")
        sys.exit(1)

    configure_from_config(config_service)

    engine = build_engine(config_service)
    scheduler = build_scheduler(engine, config_service)

    app.state.tax_engine = engine
    app.state.tax_scheduler = scheduler
    app.state.default_options = default_options(config_service)

    if config_service.get("scheduler.enabled", True):
        await scheduler.start()

    yield

    # Shutdown
    await scheduler.stop()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Venue Tax Engine API",
    description="Cost-basis lots, realized gains and income from venue ledgers",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(tax.router, prefix="/api/tax", tags=["Tax"])


@app.get("/")
async def root():
    """Root endpoint redirect to docs."""
    return {"message": "Venue Tax Engine API", "docs": "/docs"}
