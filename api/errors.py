"""
Error envelope handlers for the HTTP boundary.

Every failure leaves the API as {"error": true, "message": ..., "code": ...}.

Responsibility: Map engine and framework exceptions to JSON responses
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging

from billsync.config import settings
from billsync.errors import SyncError

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": True, "message": message, "code": status_code},
    )


async def sync_error_handler(request: Request, exc: SyncError) -> JSONResponse:
    """Engine failures carry their own status code."""
    if exc.status_code >= 500:
        logger.error(f"{request.url.path} failed: {type(exc).__name__}: {exc.message}")
    else:
        logger.info(f"{request.url.path} rejected: {type(exc).__name__}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_envelope())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Missing or malformed query parameters."""
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "query")
        problems.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return error_response(400, "Invalid request: " + "; ".join(problems))


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler."""
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    message = str(exc) if settings.app.debug else "An unexpected error occurred"
    return error_response(500, message or "An unexpected error occurred")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SyncError, sync_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)
