"""Statistics request schemas."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from sampler.schemas import CamelModel
from sampler.statistics.service import StatisticsPage

VALID_PAGES = ", ".join(page.value for page in StatisticsPage)


def _id_array(value: Any, field: str) -> list[str]:  # noqa: ANN401
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"{field} array is required")
    return value


class ClientStatsRequest(CamelModel):
    client_ids: list[str] = Field(default=None, validate_default=True)

    @field_validator("client_ids", mode="before")
    @classmethod
    def _client_ids(cls, value: Any) -> list[str]:  # noqa: ANN401
        return _id_array(value, "clientIds")


class StatisticsRequest(CamelModel):
    page: StatisticsPage = Field(default=None, validate_default=True)

    @field_validator("page", mode="before")
    @classmethod
    def _page(cls, value: Any) -> StatisticsPage:  # noqa: ANN401
        if not value:
            raise ValueError(f"page parameter is required. Valid values: {VALID_PAGES}")
        try:
            return StatisticsPage(value)
        except ValueError:
            raise ValueError(f"Invalid page parameter. Valid values: {VALID_PAGES}") from None


class UpdateTierRequest(CamelModel):
    """Omit ``userId`` to recompute every profile."""

    user_id: str | None = None


class UserEmailsRequest(CamelModel):
    auth_ids: list[str] = Field(default=None, alias="authIDs", validate_default=True)

    @field_validator("auth_ids", mode="before")
    @classmethod
    def _auth_ids(cls, value: Any) -> list[str]:  # noqa: ANN401
        return _id_array(value, "authIDs")
