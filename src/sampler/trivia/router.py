"""Trivia endpoints: list eligible questions, answer, dismiss."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from sampler.dependencies import get_trivia_manager
from sampler.errors import DomainError
from sampler.responses import failure, success
from sampler.trivia.schemas import ActiveTriviaRequest, DismissTriviaRequest, SubmitAnswerRequest
from sampler.trivia.service import TriviaManager

router = APIRouter(tags=["Trivia"])


@router.post("/get-active-trivia")
async def active_trivia(
    body: ActiveTriviaRequest,
    manager: TriviaManager = Depends(get_trivia_manager),  # noqa: B008
) -> JSONResponse:
    """Active questions the user has not answered or skipped, without answer keys."""
    result = await manager.list_eligible(body.user_id)
    if isinstance(result, DomainError):
        return failure(result)
    return success(trivia=result, count=len(result))


@router.post("/submit-answer")
async def submit_answer(
    body: SubmitAnswerRequest,
    manager: TriviaManager = Depends(get_trivia_manager),  # noqa: B008
) -> JSONResponse:
    result = await manager.submit_answer(body.user_id, body.trivia_id, body.answer_index)
    if isinstance(result, DomainError):
        return failure(result)
    return success(**result.to_dict())


@router.post("/dismiss-trivia")
async def dismiss_trivia(
    body: DismissTriviaRequest,
    manager: TriviaManager = Depends(get_trivia_manager),  # noqa: B008
) -> JSONResponse:
    """Idempotent skip: a repeated dismiss succeeds without writing."""
    result = await manager.dismiss(body.user_id, body.trivia_id)
    if isinstance(result, DomainError):
        return failure(result)
    return success()
