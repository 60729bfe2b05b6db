"""Trivia engagement state machine and pure scoring rules.

State per (user, question): eligible -> answered, or eligible -> skipped.
Both outcomes are terminal; nothing transitions back to eligible.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from sampler.documents import Document, as_number, parse_timestamp


class TriviaState(StrEnum):
    ELIGIBLE = "eligible"
    ANSWERED = "answered"
    SKIPPED = "skipped"


# Answering is gated on this table. Skips land in the question's skip set
# independently of it, so a dismiss after answering is recorded and the user stays answered.
VALID_TRANSITIONS: dict[TriviaState, list[TriviaState]] = {
    TriviaState.ELIGIBLE: [TriviaState.ANSWERED, TriviaState.SKIPPED],
    TriviaState.ANSWERED: [],
    TriviaState.SKIPPED: [],
}

# Fields a client may see before answering; correctOptionIndex is never among them
PUBLIC_FIELDS = ("$id", "question", "answers", "startDate", "endDate", "points", "client")


def can_transition(current: TriviaState, target: TriviaState) -> bool:
    return target in VALID_TRANSITIONS.get(current, [])


def skipped_users(question: Document) -> list[str]:
    value = question.get("skippedUsers")
    return list(value) if isinstance(value, list) else []


def state_for(question: Document, user_id: str, answered_ids: set[str]) -> TriviaState:
    """Derive a user's state for one question from responses and the skip set."""
    if question.get("$id") in answered_ids:
        return TriviaState.ANSWERED
    if user_id in skipped_users(question):
        return TriviaState.SKIPPED
    return TriviaState.ELIGIBLE


def is_active(question: Document, now: datetime) -> bool:
    """True when ``startDate <= now <= endDate``. A missing or malformed bound is inactive."""
    start = parse_timestamp(question.get("startDate"))
    end = parse_timestamp(question.get("endDate"))
    if start is None or end is None:
        return False
    return start <= now <= end


def answer_count(question: Document) -> int:
    answers = question.get("answers")
    return len(answers) if isinstance(answers, list) else 0


def is_valid_index(question: Document, answer_index: int) -> bool:
    return 0 <= answer_index < answer_count(question)


def is_correct(question: Document, answer_index: int) -> bool:
    correct = question.get("correctOptionIndex")
    return is_valid_index(question, answer_index) and as_number(correct, default=-1) == answer_index


def score(question: Document, answer_index: int) -> int | float:
    """Points awarded for an answer: the question's points when correct, else 0."""
    if not is_correct(question, answer_index):
        return 0
    return as_number(question.get("points"))


def public_view(question: Document) -> Document:
    """Strip everything a client must not see before answering."""
    return {key: question.get(key) for key in PUBLIC_FIELDS}


def result_message(points_awarded: int | float, correct: bool) -> str:
    if correct:
        return f"Correct! You earned {points_awarded} points."
    return "Incorrect answer. Better luck next time!"
