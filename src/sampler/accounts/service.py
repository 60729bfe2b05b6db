"""Account management across the identity provider and the profile collection.

An identity and its profile are two records keyed differently: the
profile's ``authID`` holds the identity id. Flows that write both run as a
``Saga`` so a failed profile write undoes the identity change.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

import structlog

from sampler.accounts.saga import Saga
from sampler.config import CollectionIds
from sampler.documents import Document, new_id
from sampler.errors import DomainError, Outcome, UpstreamError, upstream_guard
from sampler.identity.base import Identity, IdentityNotFoundError, IdentityProvider
from sampler.store.base import DocumentNotFoundError, DocumentStore, StoreError, iterate_all
from sampler.store.query import equal

logger = structlog.get_logger()

MIN_PASSWORD_LENGTH = 8
IDENTITY_NOT_FOUND = "User not found in authentication system"


@dataclass
class NewUser:
    email: str
    password: str
    firstname: str = ""
    lastname: str = ""
    username: str = ""
    phone_number: str = ""
    role: str = "user"
    tier_level: str = ""
    dob: str = ""


def format_phone(phone_number: str) -> str:
    """Normalize to ``+1`` followed by the digits of the input."""
    return "+1" + re.sub(r"\D", "", phone_number)


def normalize_dob(dob: str) -> str:
    """A bare ``YYYY-MM-DD`` date becomes midnight UTC; anything else is kept as given."""
    dob = dob.strip()
    return f"{dob}T00:00:00.000Z" if len(dob) == 10 else dob


class AccountService:
    """Create, delete, block and recover user accounts."""

    def __init__(self, store: DocumentStore, identity: IdentityProvider, collections: CollectionIds) -> None:
        self._store = store
        self._identity = identity
        self._collections = collections

    async def _identity_exists(self, auth_id: str) -> Identity | None:
        try:
            return await self._identity.get_identity(auth_id)
        except IdentityNotFoundError:
            return None

    async def _profiles_for(self, auth_id: str) -> list[Document]:
        return [
            profile
            async for profile in iterate_all(
                self._store, self._collections.user_profiles, filters=[equal("authID", auth_id)],
            )
        ]

    async def _conflict_for(self, user: NewUser) -> DomainError | None:
        if await self._identity.list_identities([equal("email", user.email)]):
            return DomainError.conflict("A user with this email already exists. Please use a different email.")

        if user.phone_number.strip():
            phone = format_phone(user.phone_number)
            if len(phone) >= 12 and await self._identity.list_identities([equal("phone", phone)]):
                return DomainError.conflict(
                    "A user with this phone number already exists. Please use a different email or phone."
                )

        username = user.username.strip()
        if username:
            existing = await self._store.list_documents(
                self._collections.user_profiles, filters=[equal("username", username)], limit=1,
            )
            if existing.total > 0:
                return DomainError.conflict("Username already exists. Please choose a different username.")
        return None

    @upstream_guard("create_user")
    async def create_user(self, user: NewUser) -> Outcome[dict[str, str]]:
        conflict = await self._conflict_for(user)
        if conflict is not None:
            return conflict

        auth_id = new_id()
        name = " ".join(part for part in (user.firstname, user.lastname) if part).strip()
        profile: dict[str, Any] = {
            "authID": auth_id,
            "firstname": user.firstname,
            "lastname": user.lastname,
            "username": user.username,
            "phoneNumber": user.phone_number,
            "role": user.role or "user",
            "tierLevel": user.tier_level,
            "isBlocked": False,
            # Attribute name as defined in the collection schema
            "idAdult": True,
        }
        if user.dob.strip():
            profile["dob"] = normalize_dob(user.dob)

        saga = Saga("create_user")
        saga.step(
            "create_identity",
            lambda: self._identity.create_identity(
                auth_id,
                user.email,
                user.password,
                phone=format_phone(user.phone_number) if user.phone_number else None,
                name=name or None,
            ),
            lambda: self._identity.delete_identity(auth_id),
        )
        saga.step("create_profile", lambda: self._store.create_document(self._collections.user_profiles, profile))
        _, created = await saga.run()

        logger.info("user_created", auth_id=auth_id, profile_id=created["$id"])
        return {"userId": auth_id, "profileId": created["$id"]}

    @upstream_guard("delete_account")
    async def delete_account(self, auth_id: str) -> Outcome[str]:
        """Delete every profile of the identity, then the identity itself."""
        if await self._identity_exists(auth_id) is None:
            return DomainError.not_found(IDENTITY_NOT_FOUND)

        profiles = await self._profiles_for(auth_id)
        for profile in profiles:
            await self._store.delete_document(self._collections.user_profiles, profile["$id"])
        if not profiles:
            logger.info("account_profile_missing", auth_id=auth_id)

        await self._identity.delete_identity(auth_id)
        logger.info("account_deleted", auth_id=auth_id, profiles=len(profiles))
        return "Account successfully deleted"

    async def _set_profile_blocked(self, auth_id: str, block: bool) -> None:
        page = await self._store.list_documents(
            self._collections.user_profiles, filters=[equal("authID", auth_id)], limit=1,
        )
        if not page.documents:
            raise DocumentNotFoundError("User profile not found", status_code=404)
        await self._store.update_document(
            self._collections.user_profiles, page.documents[0]["$id"], {"isBlocked": block},
        )

    @upstream_guard("update_user_status")
    async def update_status(self, auth_id: str, block: bool) -> Outcome[str]:
        """Block or unblock both the identity and its profile.

        If the profile cannot be updated, the identity status is restored.
        """
        identity = await self._identity_exists(auth_id)
        if identity is None:
            return DomainError.not_found(IDENTITY_NOT_FOUND)

        saga = Saga("update_user_status")
        saga.step(
            "set_identity_status",
            lambda: self._identity.update_status(auth_id, not block),
            lambda: self._identity.update_status(auth_id, identity.enabled),
        )
        saga.step("set_profile_blocked", lambda: self._set_profile_blocked(auth_id, block))
        try:
            await saga.run()
        except StoreError as exc:
            return DomainError.upstream(f"Failed to update user profile: {exc.message}")

        logger.info("user_status_updated", auth_id=auth_id, blocked=block)
        return "User successfully blocked" if block else "User successfully unblocked"

    @upstream_guard("get_user_by_email")
    async def find_by_email(self, email: str) -> Outcome[dict[str, object]]:
        normalized = email.strip().lower()
        if not normalized:
            return DomainError.validation("Email is required")

        matches = await self._identity.list_identities([equal("email", normalized)])
        if not matches:
            return DomainError.not_found("User not found with this email address")
        found = matches[0]
        return {"userId": found.id, "name": found.name, "emailVerification": found.email_verified}

    async def reset_password(self, auth_id: str, new_password: str) -> Outcome[str]:
        """Set a new password after the caller has verified a one-time code.

        Upstream failures are reported as a generic validation failure.
        """
        if len(new_password) < MIN_PASSWORD_LENGTH:
            return DomainError.validation("Password must be at least 8 characters long")

        try:
            page = await self._store.list_documents(
                self._collections.user_profiles, filters=[equal("authID", auth_id)], limit=1,
            )
            username = (page.documents[0].get("username") or "") if page.documents else ""
            if username and new_password.strip().lower() == username.strip().lower():
                return DomainError.validation("Password Cannot be same as Username")
            await self._identity.update_password(auth_id, new_password)
        except UpstreamError as exc:
            logger.error("password_reset_failed", auth_id=auth_id, error=exc.message)
            return DomainError.validation("Failed to update password. Please try again.")

        logger.info("password_reset", auth_id=auth_id)
        return "Password reset successfully"
