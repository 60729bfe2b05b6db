"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from sampler.accounts.router import router as accounts_router
from sampler.accounts.service import AccountService
from sampler.appwrite import create_http_client
from sampler.config import Settings, get_settings
from sampler.events.router import router as events_router
from sampler.events.service import ProximityRanker
from sampler.health.router import router as health_router
from sampler.identity.appwrite import AppwriteIdentityProvider
from sampler.identity.base import IdentityProvider
from sampler.middleware import setup_middleware
from sampler.statistics.router import router as statistics_router
from sampler.statistics.service import AggregationEngine
from sampler.store.appwrite import AppwriteDocumentStore
from sampler.store.base import DocumentStore
from sampler.trivia.router import router as trivia_router
from sampler.trivia.service import TriviaManager

logger = structlog.get_logger()


def install_engines(app: FastAPI, store: DocumentStore, identity: IdentityProvider, settings: Settings) -> None:
    """Build every engine over the given collaborators and keep them on ``app.state``."""
    collections = settings.collections
    app.state.store = store
    app.state.identity = identity
    app.state.ranker = ProximityRanker(
        store,
        collections,
        candidate_limit=settings.event_candidate_limit,
        page_size=settings.scan_page_size,
    )
    app.state.trivia = TriviaManager(
        store,
        collections,
        question_limit=settings.trivia_fetch_limit,
        response_limit=settings.trivia_responses_fetch_limit,
    )
    app.state.aggregation = AggregationEngine(
        store,
        identity,
        collections,
        chunk_size=settings.filter_chunk_size,
        page_size=settings.scan_page_size,
    )
    app.state.accounts = AccountService(store, identity, collections)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    if getattr(app.state, "store", None) is not None:
        # Collaborators were injected by create_app
        yield
        return

    if not settings.appwrite_api_key:
        # Endpoints answer 500 until an API key is configured
        logger.error("api_key_missing")
        yield
        return

    http = create_http_client(settings)
    install_engines(
        app,
        AppwriteDocumentStore(http, settings.database_id),
        AppwriteIdentityProvider(http),
        settings,
    )
    logger.info("engines_ready", endpoint=settings.appwrite_endpoint, database_id=settings.database_id)

    try:
        yield
    finally:
        await http.aclose()


def create_app(store: DocumentStore | None = None, identity: IdentityProvider | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    ``store`` and ``identity`` replace the Appwrite clients built at startup.
    """
    settings = get_settings()

    app = FastAPI(
        title="Sampler Mobile API",
        description="Event discovery, trivia and statistics over the Sampler document store",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    if store is not None and identity is not None:
        install_engines(app, store, identity, settings)

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(events_router)
    app.include_router(trivia_router)
    app.include_router(statistics_router)
    app.include_router(accounts_router)

    return app


app = create_app()
