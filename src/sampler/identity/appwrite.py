"""Appwrite Users REST implementation of the identity provider."""

from __future__ import annotations

from typing import Any

import httpx

from sampler.appwrite import request_json
from sampler.identity.base import Identity, IdentityError, IdentityNotFoundError, IdentityProvider
from sampler.store.appwrite import encode_filter
from sampler.store.query import Filters


class AppwriteIdentityProvider(IdentityProvider):
    """Talks to ``/users``; requires an API key with the users scopes."""

    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http

    async def _call(
        self,
        method: str,
        path: str,
        params: list[tuple[str, str]] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:  # noqa: ANN401
        return await request_json(
            self._http,
            method,
            path,
            error_cls=IdentityError,
            not_found_cls=IdentityNotFoundError,
            params=params,
            body=body,
        )

    async def get_identity(self, identity_id: str) -> Identity:
        return Identity.from_payload(await self._call("GET", f"/users/{identity_id}"))

    async def list_identities(self, filters: Filters = ()) -> list[Identity]:
        payload = await self._call(
            "GET", "/users", params=[("queries[]", encode_filter(f)) for f in filters],
        )
        return [Identity.from_payload(u) for u in payload.get("users", [])]

    async def create_identity(
        self,
        identity_id: str,
        email: str,
        password: str,
        phone: str | None = None,
        name: str | None = None,
    ) -> Identity:
        body: dict[str, Any] = {"userId": identity_id, "email": email, "password": password}
        if phone:
            body["phone"] = phone
        if name:
            body["name"] = name
        return Identity.from_payload(await self._call("POST", "/users", body=body))

    async def update_status(self, identity_id: str, enabled: bool) -> None:
        await self._call("PATCH", f"/users/{identity_id}/status", body={"status": enabled})

    async def update_password(self, identity_id: str, password: str) -> None:
        await self._call("PATCH", f"/users/{identity_id}/password", body={"password": password})

    async def delete_identity(self, identity_id: str) -> None:
        await self._call("DELETE", f"/users/{identity_id}")
