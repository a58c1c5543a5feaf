"""
Main FastAPI application.

Environmental data aggregation service: fans out to weather, ocean,
satellite and event providers and returns one fused, quality-scored
record per request.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from envfusion.api.v1 import aggregate
from envfusion.core.aggregator import Aggregator, get_aggregator, reset_aggregator
from envfusion.core.config import get_settings
from envfusion.core.models import Category
from envfusion.core.source_registry import SOURCE_REGISTRY

# Configure logging
logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Runs on startup and shutdown.
    """
    # Startup
    settings = get_settings()
    logger.info("Starting Environmental Data Aggregation Service")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Fetch timeout: {settings.fetch_timeout_seconds}s")
    logger.info(f"Default radius: {settings.default_radius_km} km")

    aggregator = get_aggregator()
    enabled = [s for s, c in aggregator.clients.items() if c.is_configured()]
    logger.info(f"Enabled sources ({len(enabled)}/{len(SOURCE_REGISTRY)}): {enabled}")

    yield

    # Shutdown
    logger.info("Shutting down")
    await aggregator.close()
    reset_aggregator()


# Create FastAPI app
app = FastAPI(
    title="Environmental Data Aggregation Service",
    description="Multi-source fusion of weather, ocean, satellite and event data",
    version="0.1.0",
    lifespan=lifespan
)

# CORS middleware (configure as needed)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(aggregate.router, prefix="/api/v1")


@app.get("/")
def root():
    """Root endpoint with service info."""
    return {
        "service": "Environmental Data Aggregation Service",
        "version": "0.1.0",
        "categories": [c.value for c in Category],
        "docs": "/docs"
    }


@app.get("/health")
def health_check(aggregator: Aggregator = Depends(get_aggregator)):
    """
    Health check endpoint.

    Reports which sources can currently be fanned out to.
    """
    enabled = sorted(s for s, c in aggregator.clients.items() if c.is_configured())
    return {
        "status": "healthy" if enabled else "degraded",
        "service": "running",
        "sources_enabled": enabled,
    }
