"""
Dependency injection for FastAPI routes.
"""

from typing import Annotated

from fastapi import Depends, Request

from choir_search.db import Database

from .services.ingestion_runner import IngestionRunner, ingestion_runner


def get_database(request: Request) -> Database:
    """Get the process-wide database handle created at startup."""
    return request.app.state.db


def get_ingestion_runner() -> IngestionRunner:
    """Get the ingestion runner."""
    return ingestion_runner


# Type aliases for dependency injection
DatabaseDep = Annotated[Database, Depends(get_database)]
IngestionRunnerDep = Annotated[IngestionRunner, Depends(get_ingestion_runner)]
