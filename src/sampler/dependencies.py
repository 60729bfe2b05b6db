"""Shared FastAPI dependencies: engines built at startup and kept on ``app.state``."""

from typing import Any

import structlog
from fastapi import HTTPException, Request

from sampler.accounts.service import AccountService
from sampler.events.service import ProximityRanker
from sampler.statistics.service import AggregationEngine
from sampler.trivia.service import TriviaManager

logger = structlog.get_logger()

MISSING_CREDENTIALS_MESSAGE = "Server configuration error: API key missing"


def _engine(request: Request, name: str) -> Any:  # noqa: ANN401
    engine = getattr(request.app.state, name, None)
    if engine is None:
        # Engines are only built when an API key is configured
        logger.error("api_key_missing", engine=name)
        raise HTTPException(status_code=500, detail=MISSING_CREDENTIALS_MESSAGE)
    return engine


def get_ranker(request: Request) -> ProximityRanker:
    return _engine(request, "ranker")


def get_trivia_manager(request: Request) -> TriviaManager:
    return _engine(request, "trivia")


def get_aggregation_engine(request: Request) -> AggregationEngine:
    return _engine(request, "aggregation")


def get_account_service(request: Request) -> AccountService:
    return _engine(request, "accounts")
