"""
Error responses for the HTTP layer.

Every error body is {"error": "<message>"}. This module is the only place
exceptions are mapped to status codes.
"""

import logging
from contextlib import contextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from choir_search.errors import (
    ChoirSearchError,
    ConflictError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """An error response with an explicit status code."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def status_for(error: ChoirSearchError) -> int:
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, ConflictError):
        return 409
    return 500


@contextmanager
def database_errors(message: str):
    """
    Turn database failures into a generic 500.

    The full error is logged server-side; the client only sees `message`.
    """
    try:
        yield
    except DatabaseError as e:
        logger.exception(f"{message}: {e.message}")
        raise ApiError(500, message) from e


def register_error_handlers(app: FastAPI) -> None:
    """Install JSON error handlers on the app."""

    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(ChoirSearchError)
    async def handle_service_error(request: Request, exc: ChoirSearchError):
        status_code = status_for(exc)
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
            return JSONResponse(status_code=status_code, content={"error": "Internal error"})
        return JSONResponse(status_code=status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        details = [
            {"field": ".".join(str(p) for p in err["loc"][1:]), "message": err["msg"]}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request", "details": details},
        )
