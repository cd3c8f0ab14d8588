"""
FastAPI application factory and configuration.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

# Load environment variables before importing config-dependent modules
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)

from choir_search.config import CORS_ORIGINS, LOG_LEVEL, get_database_settings
from choir_search.db import Database
from choir_search.errors import DatabaseError
from choir_search.logger import setup_logging

from .errors import register_error_handlers
from .routes import catalog, ingestion, search, songs, submissions
from .schemas.catalog import HealthResponse
from .services.ingestion_runner import ingestion_runner

logger = logging.getLogger(__name__)

ROUTERS = (
    (search.router, "search"),
    (songs.router, "songs"),
    (submissions.router, "submissions"),
    (catalog.router, "catalog"),
    (ingestion.router, "ingestion"),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the pool on startup; stop any ingestion run and close the pool on shutdown."""
    db: Database = app.state.db
    try:
        await run_in_threadpool(db.open)
    except DatabaseError as e:
        # Requests retry the connection; /health reports the outage
        logger.error(f"Database unavailable at startup: {e.message}")
    yield
    await ingestion_runner.cancel()
    await run_in_threadpool(db.close)


def create_app(db: Optional[Database] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        db: Database handle to serve from. Built from the environment when
            omitted; the pool itself opens in the lifespan handler.
    """
    app = FastAPI(
        title="Choir Music Search API",
        description="Full-text search over a choir sheet-music catalog",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.db = db if db is not None else Database(get_database_settings())

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials="*" not in CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # Served at the root and under /api; only the root copy is documented
    for prefix in ("", "/api"):
        for router, tag in ROUTERS:
            app.include_router(router, prefix=prefix, tags=[tag], include_in_schema=not prefix)

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    @app.get("/api/health", response_model=HealthResponse, include_in_schema=False)
    def health_check():
        """Liveness and database connectivity check."""
        if app.state.db.ping():
            return HealthResponse(status="healthy", database="connected")
        return JSONResponse(
            status_code=500,
            content={"status": "unhealthy", "database": "disconnected"},
        )

    return app


setup_logging(LOG_LEVEL)

# Create app instance for uvicorn
app = create_app()
