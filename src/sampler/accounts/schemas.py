"""Account management request schemas."""

from __future__ import annotations

from typing import Any

from pydantic import model_validator

from sampler.accounts.service import MIN_PASSWORD_LENGTH, NewUser
from sampler.schemas import CamelModel


def _missing(*values: Any) -> bool:  # noqa: ANN401
    return any(not isinstance(value, str) or not value for value in values)


class CreateUserRequest(CamelModel):
    email: str
    password: str
    firstname: str | None = None
    lastname: str | None = None
    username: str | None = None
    phone_number: str | None = None
    role: str | None = None
    tier_level: str | None = None
    dob: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _credentials(cls, data: Any) -> Any:  # noqa: ANN401
        if not isinstance(data, dict) or _missing(data.get("email"), data.get("password")):
            raise ValueError("email and password are required")
        if len(data["password"]) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return data

    def to_new_user(self) -> NewUser:
        return NewUser(**self.model_dump(exclude_none=True))


class DeleteAccountRequest(CamelModel):
    user_id: str

    @model_validator(mode="before")
    @classmethod
    def _user_id(cls, data: Any) -> Any:  # noqa: ANN401
        if not isinstance(data, dict) or _missing(data.get("userId")):
            raise ValueError("userId is required")
        return data


class UpdateUserStatusRequest(CamelModel):
    user_id: str
    block: bool

    @model_validator(mode="before")
    @classmethod
    def _fields(cls, data: Any) -> Any:  # noqa: ANN401
        if not isinstance(data, dict) or _missing(data.get("userId")) or not isinstance(data.get("block"), bool):
            raise ValueError("userId and block (boolean) are required")
        return data


class UserByEmailRequest(CamelModel):
    email: str

    @model_validator(mode="before")
    @classmethod
    def _email(cls, data: Any) -> Any:  # noqa: ANN401
        if not isinstance(data, dict) or _missing(data.get("email")):
            raise ValueError("email is required")
        return data


class ResetPasswordRequest(CamelModel):
    """The one-time code is verified by the caller before this request is made."""

    user_id: str
    otp: str | None = None
    new_password: str

    @model_validator(mode="before")
    @classmethod
    def _fields(cls, data: Any) -> Any:  # noqa: ANN401
        if not isinstance(data, dict) or _missing(data.get("userId"), data.get("newPassword")):
            raise ValueError("userId and newPassword are required")
        return data
