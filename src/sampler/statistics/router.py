"""Statistics, reporting and tier endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from sampler.dependencies import get_aggregation_engine
from sampler.errors import DomainError
from sampler.responses import failure, success
from sampler.statistics.schemas import ClientStatsRequest, StatisticsRequest, UpdateTierRequest, UserEmailsRequest
from sampler.statistics.service import AggregationEngine

router = APIRouter(tags=["Statistics"])


@router.post("/get-client-stats")
async def client_stats(
    body: ClientStatsRequest,
    engine: AggregationEngine = Depends(get_aggregation_engine),  # noqa: B008
) -> JSONResponse:
    """Per-client event, check-in, points and favorites counters."""
    result = await engine.client_stats(body.client_ids)
    if isinstance(result, DomainError):
        return failure(result)
    return success(stats=result)


@router.post("/get-user-report")
async def user_report(
    engine: AggregationEngine = Depends(get_aggregation_engine),  # noqa: B008
) -> JSONResponse:
    result = await engine.user_report()
    if isinstance(result, DomainError):
        return failure(result)
    return success(rows=result, count=len(result))


@router.post("/get-statistics")
async def statistics(
    body: StatisticsRequest,
    engine: AggregationEngine = Depends(get_aggregation_engine),  # noqa: B008
) -> JSONResponse:
    """Summary cards for one admin page."""
    result = await engine.page_statistics(body.page)
    if isinstance(result, DomainError):
        return failure(result)
    return success(page=body.page.value, statistics=result)


@router.post("/update-user-tier")
async def update_user_tier(
    body: UpdateTierRequest | None = None,
    engine: AggregationEngine = Depends(get_aggregation_engine),  # noqa: B008
) -> JSONResponse:
    """Recompute one profile's tier, or every profile's when no userId is given."""
    if body is not None and body.user_id:
        result = await engine.update_tier(body.user_id)
        if isinstance(result, DomainError):
            return failure(result)
        return success(**result)

    updated = await engine.update_all_tiers()
    if isinstance(updated, DomainError):
        return failure(updated)
    return success(updatedCount=updated)


@router.post("/get-user-emails")
async def user_emails(
    body: UserEmailsRequest,
    engine: AggregationEngine = Depends(get_aggregation_engine),  # noqa: B008
) -> JSONResponse:
    """Emails and last-login timestamps for identity ids; unknown ids are skipped."""
    result = await engine.identity_lookup(body.auth_ids)
    if isinstance(result, DomainError):
        return failure(result)
    return success(**result)
