"""Tests for serving, answering and skipping trivia."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from fakes import InMemoryDocumentStore

from sampler.config import CollectionIds
from sampler.errors import DomainError, ErrorKind
from sampler.store.base import StoreError
from sampler.trivia.service import AnswerResult, TriviaManager

pytestmark = pytest.mark.asyncio

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def _question(trivia_id: str, **overrides):
    return {
        "$id": trivia_id,
        "question": "Which hop is citrusy?",
        "answers": ["Citra", "Fuggle", "Saaz", "Hallertau"],
        "correctOptionIndex": 0,
        "points": 50,
        "startDate": "2026-03-01T00:00:00.000+00:00",
        "endDate": "2026-03-31T23:59:59.000+00:00",
        "client": "client-1",
        "skippedUsers": [],
        "skips": 0,
        **overrides,
    }


@pytest.fixture
def manager(store: InMemoryDocumentStore, collections: CollectionIds) -> TriviaManager:
    return TriviaManager(store, collections, clock=lambda: NOW)


@pytest.fixture
def seeded(store: InMemoryDocumentStore) -> InMemoryDocumentStore:
    store.seed("user_profiles", {"$id": "u1", "totalPoints": 100}, {"$id": "u2", "totalPoints": 0})
    store.seed(
        "trivia",
        _question("q-active"),
        _question("q-second", points=10),
        _question("q-expired", startDate="2026-02-01T00:00:00.000+00:00", endDate="2026-02-28T00:00:00.000+00:00"),
        _question("q-future", startDate="2026-04-01T00:00:00.000+00:00", endDate="2026-04-30T00:00:00.000+00:00"),
    )
    return store


class TestListEligible:
    async def test_returns_active_questions_without_answer_key(self, manager, seeded):
        result = await manager.list_eligible("u1")

        assert sorted(q["$id"] for q in result) == ["q-active", "q-second"]
        for question in result:
            assert "correctOptionIndex" not in question
            assert "skippedUsers" not in question

    async def test_answered_and_skipped_are_excluded_for_that_user_only(self, manager, seeded):
        seeded.seed("trivia_responses", {"trivia": "q-active", "user": "u1", "answer": "Citra", "answerIndex": 0})
        seeded.data["trivia"]["q-second"]["skippedUsers"] = ["u1"]

        assert await manager.list_eligible("u1") == []
        assert sorted(q["$id"] for q in await manager.list_eligible("u2")) == ["q-active", "q-second"]

    async def test_embedded_trivia_relation_counts_as_answered(self, manager, seeded):
        seeded.seed("trivia_responses", {"trivia": {"$id": "q-active"}, "user": "u1", "answerIndex": 1})

        assert [q["$id"] for q in await manager.list_eligible("u1")] == ["q-second"]

    async def test_store_failure(self, manager, seeded):
        seeded.failures[("list", "trivia_responses")] = StoreError("timeout", 504)

        assert await manager.list_eligible("u1") == DomainError.upstream()


class TestSubmitAnswer:
    async def test_correct_answer_awards_points(self, manager, seeded):
        result = await manager.submit_answer("u1", "q-active", 0)

        assert result == AnswerResult(is_correct=True, points_awarded=50, message="Correct! You earned 50 points.")
        assert seeded.data["user_profiles"]["u1"]["totalPoints"] == 150
        (response,) = seeded.all("trivia_responses")
        assert {k: response[k] for k in ("trivia", "user", "answer", "answerIndex")} == {
            "trivia": "q-active",
            "user": "u1",
            "answer": "Citra",
            "answerIndex": 0,
        }

    async def test_incorrect_answer_records_without_points(self, manager, seeded):
        result = await manager.submit_answer("u1", "q-active", 2)

        assert result.to_dict() == {
            "isCorrect": False,
            "pointsAwarded": 0,
            "message": "Incorrect answer. Better luck next time!",
        }
        assert seeded.data["user_profiles"]["u1"]["totalPoints"] == 100
        assert len(seeded.all("trivia_responses")) == 1
        assert ("update", "user_profiles") not in seeded.writes()

    async def test_missing_balance_counts_as_zero(self, manager, seeded):
        seeded.seed("user_profiles", {"$id": "u3"})

        await manager.submit_answer("u3", "q-second", 0)

        assert seeded.data["user_profiles"]["u3"]["totalPoints"] == 10

    async def test_second_answer_is_a_conflict(self, manager, seeded):
        await manager.submit_answer("u1", "q-active", 0)

        result = await manager.submit_answer("u1", "q-active", 0)

        assert result == DomainError(ErrorKind.CONFLICT, "You have already answered this trivia question")
        assert len(seeded.all("trivia_responses")) == 1
        assert seeded.data["user_profiles"]["u1"]["totalPoints"] == 150

    @pytest.mark.parametrize("index", [4, 99])
    async def test_out_of_range_index(self, manager, seeded, index):
        result = await manager.submit_answer("u1", "q-active", index)

        assert result == DomainError.validation("Invalid answer index. Must be between 0 and 3")
        assert seeded.writes() == []

    async def test_unknown_question(self, manager, seeded):
        assert await manager.submit_answer("u1", "nope", 0) == DomainError.not_found("Trivia question not found")

    @pytest.mark.parametrize("trivia_id", ["q-expired", "q-future"])
    async def test_inactive_question(self, manager, seeded, trivia_id):
        result = await manager.submit_answer("u1", trivia_id, 0)

        assert result.kind is ErrorKind.PRECONDITION_FAILED
        assert result.message == "This trivia question is not currently active"
        assert seeded.writes() == []

    async def test_unknown_user(self, manager, seeded):
        assert await manager.submit_answer("ghost", "q-active", 0) == DomainError.not_found("User not found")

    async def test_write_failure_is_upstream(self, manager, seeded):
        seeded.failures[("create", "trivia_responses")] = StoreError("write refused", 500)

        result = await manager.submit_answer("u1", "q-active", 0)

        assert result == DomainError.upstream()
        assert seeded.data["user_profiles"]["u1"]["totalPoints"] == 100


class TestDismiss:
    async def test_records_skip_and_counter(self, manager, seeded):
        assert await manager.dismiss("u1", "q-active") is None

        question = seeded.data["trivia"]["q-active"]
        assert question["skippedUsers"] == ["u1"]
        assert question["skips"] == 1

    async def test_is_idempotent(self, manager, seeded):
        await manager.dismiss("u1", "q-active")
        writes_before = len(seeded.writes())

        assert await manager.dismiss("u1", "q-active") is None

        assert len(seeded.writes()) == writes_before
        assert seeded.data["trivia"]["q-active"]["skips"] == 1

    async def test_after_answering_records_skip_and_stays_answered(self, manager, seeded):
        await manager.submit_answer("u1", "q-active", 0)

        assert await manager.dismiss("u1", "q-active") is None

        assert seeded.data["trivia"]["q-active"]["skippedUsers"] == ["u1"]
        assert [q["$id"] for q in await manager.list_eligible("u1")] == ["q-second"]
        assert (await manager.submit_answer("u1", "q-active", 0)).kind is ErrorKind.CONFLICT
        assert seeded.data["user_profiles"]["u1"]["totalPoints"] == 150

    async def test_non_numeric_counter_left_alone(self, manager, seeded):
        seeded.data["trivia"]["q-second"]["skips"] = None

        await manager.dismiss("u2", "q-second")

        question = seeded.data["trivia"]["q-second"]
        assert question["skippedUsers"] == ["u2"]
        assert question["skips"] is None

    async def test_unknown_user_checked_first(self, manager, seeded):
        assert await manager.dismiss("ghost", "nope") == DomainError.not_found("User not found")

    async def test_unknown_question(self, manager, seeded):
        assert await manager.dismiss("u1", "nope") == DomainError.not_found("Trivia question not found")
