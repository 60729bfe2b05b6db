"""Event discovery endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from sampler.dependencies import get_ranker
from sampler.errors import DomainError
from sampler.events.schemas import EventsByLocationRequest
from sampler.events.service import ProximityRanker
from sampler.responses import failure, success

router = APIRouter(tags=["Events"])


@router.post("/get-events-by-location")
async def events_by_location(
    body: EventsByLocationRequest,
    ranker: ProximityRanker = Depends(get_ranker),  # noqa: B008
) -> JSONResponse:
    """Upcoming events nearest to the given coordinate, paginated after sorting."""
    result = await ranker.rank(body.latitude, body.longitude, body.page, body.page_size)
    if isinstance(result, DomainError):
        return failure(result)
    return success(events=result.events, pagination=result.pagination.to_dict())
