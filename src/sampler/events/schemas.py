"""Event discovery request/response schemas."""

from __future__ import annotations

from typing import Any

from pydantic import Field, ValidationInfo, field_validator

from sampler.config import get_settings
from sampler.schemas import CamelModel, is_finite_number, to_integer


class EventsByLocationRequest(CamelModel):
    """Body of POST /get-events-by-location."""

    latitude: float = Field(default=None, validate_default=True)
    longitude: float = Field(default=None, validate_default=True)
    page: int = 1
    page_size: int = Field(default_factory=lambda: get_settings().default_page_size)

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coordinate(cls, value: Any, info: ValidationInfo) -> float:  # noqa: ANN401
        if not is_finite_number(value):
            raise ValueError(f"{info.field_name} must be a valid number")
        bound = 90 if info.field_name == "latitude" else 180
        if value < -bound or value > bound:
            raise ValueError(f"{info.field_name} must be between -{bound} and {bound}")
        return float(value)

    @field_validator("page", mode="before")
    @classmethod
    def _page(cls, value: Any) -> int:  # noqa: ANN401
        page = to_integer(value)
        if page is None or page < 1:
            raise ValueError("page must be a positive integer")
        return page

    @field_validator("page_size", mode="before")
    @classmethod
    def _page_size(cls, value: Any) -> int:  # noqa: ANN401
        limit = get_settings().max_page_size
        size = to_integer(value)
        if size is None or size < 1 or size > limit:
            raise ValueError(f"pageSize must be a positive integer between 1 and {limit}")
        return size
