"""Trivia request schemas."""

from __future__ import annotations

from typing import Any

from pydantic import Field, ValidationInfo, field_validator

from sampler.schemas import CamelModel, is_finite_number, required_text


class ActiveTriviaRequest(CamelModel):
    user_id: str = Field(default=None, validate_default=True)

    @field_validator("user_id", mode="before")
    @classmethod
    def _user_id(cls, value: Any) -> str:  # noqa: ANN401
        return required_text(value, "userId")


class DismissTriviaRequest(CamelModel):
    user_id: str = Field(default=None, validate_default=True)
    trivia_id: str = Field(default=None, validate_default=True)

    @field_validator("user_id", "trivia_id", mode="before")
    @classmethod
    def _ids(cls, value: Any, info: ValidationInfo) -> str:  # noqa: ANN401
        return required_text(value, "userId" if info.field_name == "user_id" else "triviaId")


class SubmitAnswerRequest(DismissTriviaRequest):
    answer_index: int = Field(default=None, validate_default=True)

    @field_validator("answer_index", mode="before")
    @classmethod
    def _answer_index(cls, value: Any) -> int:  # noqa: ANN401
        if value is None:
            raise ValueError("answerIndex is required")
        if not is_finite_number(value) or value < 0:
            raise ValueError("answerIndex must be a non-negative number")
        if value != int(value):
            raise ValueError("answerIndex must be a whole number")
        return int(value)
