"""JSON envelope responses: ``{"success": true, ...}`` or the error envelope."""

from typing import Any

from fastapi.responses import JSONResponse

from sampler.errors import DomainError


def success(status_code: int = 200, **payload: Any) -> JSONResponse:  # noqa: ANN401
    return JSONResponse(status_code=status_code, content={"success": True, **payload})


def failure(error: DomainError) -> JSONResponse:
    return JSONResponse(status_code=error.status, content=error.to_envelope())
