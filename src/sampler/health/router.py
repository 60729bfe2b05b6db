"""Health, readiness, version and ping endpoints."""

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from sampler.config import get_settings
from sampler.errors import UpstreamError
from sampler.store.base import DocumentStore, count_documents

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe: 200 while the process is alive."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(request: Request) -> dict[str, object]:
    """Readiness probe: checks that the document store answers."""
    checks: dict[str, object] = {}
    store: DocumentStore | None = getattr(request.app.state, "store", None)

    if store is None:
        checks["store"] = "error: not configured"
    else:
        try:
            await count_documents(store, get_settings().collections.events)
            checks["store"] = "ok"
        except UpstreamError as exc:
            checks["store"] = f"error: {exc.message}"

    all_ok = all(v == "ok" for v in checks.values())
    return {"status": "ready" if all_ok else "degraded", "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    """Return API version and environment."""
    settings = get_settings()
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }


@router.get("/ping", response_class=PlainTextResponse)
async def ping() -> str:
    return "Pong"
