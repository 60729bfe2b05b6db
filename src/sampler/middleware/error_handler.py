"""Global error handler: every failure is rendered as the JSON error envelope."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from sampler.errors import DomainError, ErrorKind

logger = structlog.get_logger()

_KIND_BY_STATUS: dict[int, ErrorKind] = {
    400: ErrorKind.VALIDATION,
    404: ErrorKind.NOT_FOUND,
    405: ErrorKind.NOT_FOUND,
    409: ErrorKind.CONFLICT,
    502: ErrorKind.UPSTREAM,
}


def validation_message(exc: RequestValidationError) -> str:
    """Client-facing text for the first validation error.

    Field validators raise ValueError with the exact message to show; pydantic's
    own errors fall back to its message, and missing fields to "<field> is required".
    """
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    if first.get("type") == "json_invalid":
        return "Request body must be valid JSON"
    cause = (first.get("ctx") or {}).get("error")
    if cause is not None:
        return str(cause)
    loc = [str(part) for part in first.get("loc", ()) if part != "body"]
    if first.get("type") == "missing":
        return f"{loc[-1]} is required" if loc else "Request body is required"
    return f"{loc[-1]}: {first.get('msg')}" if loc else str(first.get("msg"))


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Handle HTTP exceptions (unknown paths, wrong methods) with the envelope."""
        kind = _KIND_BY_STATUS.get(exc.status_code, ErrorKind.INTERNAL)
        error = DomainError(kind, str(exc.detail))
        return JSONResponse(status_code=exc.status_code, content=error.to_envelope())

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Handle validation errors: 400 with the first error's message."""
        error = DomainError.validation(validation_message(exc))
        logger.info("request_rejected", path=request.url.path, error=error.message)
        return JSONResponse(status_code=error.status, content=error.to_envelope())

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions; always returns JSON."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        error = DomainError.internal()
        return JSONResponse(status_code=error.status, content=error.to_envelope())
