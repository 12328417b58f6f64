"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures the registry store, price feed and clock, and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from psycopg_pool import ConnectionPool

from registrar.adapters.clock import SystemClock
from registrar.adapters.oracle import HermesPriceFeed, StaticPriceFeed
from registrar.adapters.repository import (
    InMemoryRegistryStore,
    PostgresRegistryStore,
    run_migrations,
)
from registrar.api.v1 import router as v1_router
from registrar.config.settings import get_settings

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Domain Registrar API v1 - Register, renew, buy back and manage domains",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates the registry store (database pool + migrations, or in-memory)
    - Creates the price feed client
    - Closes both on shutdown
    """
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)

    logger.info("Starting application...")

    clock = SystemClock()
    pool = None
    if settings.storage_backend == "postgres":
        logger.info("Connecting to database...")
        # Create connection pool with explicit sizing
        pool = ConnectionPool(
            conninfo=settings.database_url,
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
        )
        logger.info("Running database migrations...")
        run_migrations(pool)
        store = PostgresRegistryStore(pool, settings.program_id)
    else:
        logger.warning("Using in-memory registry store, state is lost on shutdown")
        store = InMemoryRegistryStore()

    if settings.price_feed_backend == "hermes":
        price_feed = HermesPriceFeed(
            base_url=settings.price_feed_url,
            timeout=settings.price_feed_timeout_seconds,
        )
    else:
        logger.warning("Using static price feed: %s (expo %s)", settings.static_price, settings.static_exponent)
        price_feed = StaticPriceFeed(
            clock,
            price=settings.static_price,
            confidence=settings.static_confidence,
            exponent=settings.static_exponent,
        )

    # Store adapters in app state for dependency injection
    app.state.pool = pool
    app.state.store = store
    app.state.price_feed = price_feed
    app.state.clock = clock

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    if isinstance(price_feed, HermesPriceFeed):
        price_feed.close()
    if pool is not None:
        pool.close()
        logger.info("Database connection pool closed")


app = FastAPI(
    title="ca-registrar",
    description="Domain Registrar API - Replay-safe domain lifecycle with oracle-priced fees",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
async def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with database validation.

    Returns 200 OK if application and database are healthy.
    Raises exception if database connection fails.
    """
    pool = request.app.state.pool
    if pool is not None:
        with pool.connection() as conn:
            conn.execute("SELECT 1")

    return {"status": "healthy"}
