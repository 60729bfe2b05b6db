"""Identity provider abstraction (account records, keyed by identity id)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from sampler.errors import UpstreamError
from sampler.store.query import Filters


class IdentityError(UpstreamError):
    """An identity provider call failed."""


class IdentityNotFoundError(IdentityError):
    """No identity exists with the given id."""


@dataclass(frozen=True)
class Identity:
    """An account identity. Its id is distinct from the profile document id."""

    id: str
    email: str | None = None
    name: str = ""
    phone: str | None = None
    enabled: bool = True
    email_verified: bool = False
    accessed_at: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Identity:
        """Build from an Appwrite user object."""
        return cls(
            id=payload["$id"],
            email=payload.get("email") or None,
            name=payload.get("name") or "",
            phone=payload.get("phone") or None,
            enabled=bool(payload.get("status", True)),
            email_verified=bool(payload.get("emailVerification", False)),
            accessed_at=payload.get("accessedAt") or None,
        )


class IdentityProvider(ABC):
    """get/list/create/update-status/update-password/delete for identities."""

    @abstractmethod
    async def get_identity(self, identity_id: str) -> Identity:
        """Raises IdentityNotFoundError if absent."""
        ...

    @abstractmethod
    async def list_identities(self, filters: Filters = ()) -> list[Identity]:
        ...

    @abstractmethod
    async def create_identity(
        self,
        identity_id: str,
        email: str,
        password: str,
        phone: str | None = None,
        name: str | None = None,
    ) -> Identity:
        ...

    @abstractmethod
    async def update_status(self, identity_id: str, enabled: bool) -> None:
        ...

    @abstractmethod
    async def update_password(self, identity_id: str, password: str) -> None:
        ...

    @abstractmethod
    async def delete_identity(self, identity_id: str) -> None:
        ...
