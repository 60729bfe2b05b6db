"""Trivia serving, answering and skipping.

Points, duplicate-answer and skip-set updates are read-then-write with no
conditional write underneath. Two concurrent requests for the same user can
lose a points update or record two responses; the store offers no
transaction to close that window.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

import structlog

from sampler.config import CollectionIds
from sampler.documents import Document, as_number, isoformat, ref_id
from sampler.errors import DomainError, Outcome, upstream_guard
from sampler.store.base import DocumentStore, find_document
from sampler.store.query import equal, greater_than_equal, less_than_equal
from sampler.trivia.lifecycle import (
    TriviaState,
    answer_count,
    can_transition,
    is_active,
    is_correct,
    is_valid_index,
    public_view,
    result_message,
    score,
    skipped_users,
    state_for,
)

logger = structlog.get_logger()

TRIVIA_NOT_FOUND = "Trivia question not found"
USER_NOT_FOUND = "User not found"


@dataclass
class AnswerResult:
    is_correct: bool
    points_awarded: int | float
    message: str

    def to_dict(self) -> dict[str, object]:
        return {
            "isCorrect": self.is_correct,
            "pointsAwarded": self.points_awarded,
            "message": self.message,
        }


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TriviaManager:
    """Per-user trivia lifecycle over the trivia, response and profile collections."""

    def __init__(
        self,
        store: DocumentStore,
        collections: CollectionIds,
        question_limit: int = 100,
        response_limit: int = 500,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._collections = collections
        self._question_limit = question_limit
        self._response_limit = response_limit
        self._clock = clock

    @upstream_guard("get_active_trivia")
    async def list_eligible(self, user_id: str) -> Outcome[list[Document]]:
        """Questions active now that the user has neither answered nor skipped."""
        now = isoformat(self._clock())
        questions, responses = await asyncio.gather(
            self._store.list_documents(
                self._collections.trivia,
                filters=[less_than_equal("startDate", now), greater_than_equal("endDate", now)],
                limit=self._question_limit,
            ),
            self._store.list_documents(
                self._collections.trivia_responses,
                filters=[equal("user", user_id)],
                limit=self._response_limit,
            ),
        )

        answered = {tid for tid in (ref_id(r.get("trivia")) for r in responses.documents) if tid}
        eligible = [
            public_view(question)
            for question in questions.documents
            if state_for(question, user_id, answered) is TriviaState.ELIGIBLE
        ]
        logger.info(
            "active_trivia_listed",
            user_id=user_id,
            active=questions.total,
            answered=len(answered),
            eligible=len(eligible),
        )
        return eligible

    async def _has_answered(self, user_id: str, trivia_id: str) -> bool:
        existing = await self._store.list_documents(
            self._collections.trivia_responses,
            filters=[equal("user", user_id), equal("trivia", trivia_id)],
            limit=1,
        )
        return existing.total > 0

    @upstream_guard("submit_answer")
    async def submit_answer(self, user_id: str, trivia_id: str, answer_index: int) -> Outcome[AnswerResult]:
        question = await find_document(self._store, self._collections.trivia, trivia_id)
        if question is None:
            return DomainError.not_found(TRIVIA_NOT_FOUND)

        if not is_active(question, self._clock()):
            return DomainError.precondition_failed("This trivia question is not currently active")

        profile = await find_document(self._store, self._collections.user_profiles, user_id)
        if profile is None:
            return DomainError.not_found(USER_NOT_FOUND)

        current = TriviaState.ANSWERED if await self._has_answered(user_id, trivia_id) else TriviaState.ELIGIBLE
        if not can_transition(current, TriviaState.ANSWERED):
            return DomainError.conflict("You have already answered this trivia question")

        if not is_valid_index(question, answer_index):
            return DomainError.validation(
                f"Invalid answer index. Must be between 0 and {answer_count(question) - 1}",
            )

        correct = is_correct(question, answer_index)
        await self._store.create_document(
            self._collections.trivia_responses,
            {
                "trivia": trivia_id,
                "user": user_id,
                "answer": question["answers"][answer_index],
                "answerIndex": answer_index,
            },
        )
        logger.info("trivia_response_created", user_id=user_id, trivia_id=trivia_id, is_correct=correct)

        points = score(question, answer_index)
        if correct:
            # Re-read the balance right before writing; last write wins under concurrency
            latest = await self._store.get_document(self._collections.user_profiles, user_id)
            balance = as_number(latest.get("totalPoints"))
            await self._store.update_document(
                self._collections.user_profiles, user_id, {"totalPoints": balance + points},
            )
            logger.info("trivia_points_awarded", user_id=user_id, points=points, balance=balance + points)

        return AnswerResult(is_correct=correct, points_awarded=points, message=result_message(points, correct))

    @upstream_guard("dismiss_trivia")
    async def dismiss(self, user_id: str, trivia_id: str) -> Outcome[None]:
        """Record a skip. Dismissing an already-skipped question writes nothing."""
        if await find_document(self._store, self._collections.user_profiles, user_id) is None:
            return DomainError.not_found(USER_NOT_FOUND)

        question = await find_document(self._store, self._collections.trivia, trivia_id)
        if question is None:
            return DomainError.not_found(TRIVIA_NOT_FOUND)

        skipped = skipped_users(question)
        if user_id in skipped:
            logger.info("trivia_already_skipped", user_id=user_id, trivia_id=trivia_id)
            return None

        update: dict[str, object] = {"skippedUsers": [*skipped, user_id]}
        skips = question.get("skips")
        if isinstance(skips, (int, float)) and not isinstance(skips, bool):
            update["skips"] = skips + 1
        await self._store.update_document(self._collections.trivia, trivia_id, update)
        logger.info("trivia_skipped", user_id=user_id, trivia_id=trivia_id)
        return None
