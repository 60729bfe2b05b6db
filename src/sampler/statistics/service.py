"""Cross-collection statistics computed by in-memory hash joins.

The store has no aggregation and caps a single listing, so every count
that must match reality walks the full listing with ``iterate_all`` and
joins on document ids here. Only plain totals use the store's ``total``.
"""

from __future__ import annotations

import asyncio
from collections import Counter, defaultdict
from collections.abc import AsyncIterator, Callable
from datetime import datetime
from enum import StrEnum

import structlog

from sampler.config import CollectionIds
from sampler.documents import Document, as_number, isoformat, parse_id_list, ref_id
from sampler.errors import DomainError, Outcome, upstream_guard
from sampler.identity.base import Identity, IdentityError, IdentityProvider
from sampler.statistics.periods import month_range, percent_change, previous_month_range, round_half_up, week_range
from sampler.statistics.tiers import tier_for_points
from sampler.store.base import DocumentStore, StoreError, count_documents, find_document, iterate_all
from sampler.store.query import Filter, chunked, equal, greater_than, greater_than_equal, less_than, less_than_equal

logger = structlog.get_logger()


class StatisticsPage(StrEnum):
    DASHBOARD = "dashboard"
    CLIENTS = "clients"
    USERS = "users"
    TRIVIA = "trivia"


def _local_now() -> datetime:
    return datetime.now().astimezone()


class AggregationEngine:
    """Derived counters over events, reviews, check-ins, trivia and profiles."""

    def __init__(
        self,
        store: DocumentStore,
        identity: IdentityProvider,
        collections: CollectionIds,
        chunk_size: int = 100,
        page_size: int = 100,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        self._store = store
        self._identity = identity
        self._collections = collections
        self._chunk_size = chunk_size
        self._page_size = page_size
        self._clock = clock

    def _scan(self, collection: str, filters: list[Filter] | None = None) -> AsyncIterator[Document]:
        return iterate_all(self._store, collection, filters=filters or (), page_size=self._page_size)

    # --- Per-client stats ---

    async def _events_by_client(self, client_ids: list[str]) -> dict[str, str]:
        """Map event id -> owning client id for every event of the given clients."""
        owner: dict[str, str] = {}
        wanted = set(client_ids)
        for chunk in chunked(client_ids, self._chunk_size):
            async for event in self._scan(self._collections.events, [equal("client", chunk)]):
                client_id = ref_id(event.get("client"))
                if client_id in wanted and event.get("$id"):
                    owner[event["$id"]] = client_id
        return owner

    @upstream_guard("get_client_stats")
    async def client_stats(self, client_ids: list[str]) -> Outcome[dict[str, dict[str, float]]]:
        ids = list(dict.fromkeys(client_ids))
        if not ids:
            return {}

        owner = await self._events_by_client(ids)
        event_counts = Counter(owner.values())

        reviews_seen: dict[str, set[str]] = defaultdict(set)
        points: dict[str, float] = defaultdict(int)
        for chunk in chunked(list(owner), self._chunk_size):
            async for review in self._scan(self._collections.reviews, [equal("event", chunk)]):
                client_id = owner.get(ref_id(review.get("event")) or "")
                review_id = review.get("$id")
                if client_id is None or review_id in reviews_seen[client_id]:
                    continue
                reviews_seen[client_id].add(review_id)
                points[client_id] += as_number(review.get("pointsEarned"))

        # A favorite matches a client through any of its events or the client id itself
        targets: dict[str, set[str]] = {cid: {cid} for cid in ids}
        for event_id, client_id in owner.items():
            targets[client_id].add(event_id)

        favorites: Counter[str] = Counter()
        async for profile in self._scan(self._collections.user_profiles):
            favorite_ids = set(parse_id_list(profile.get("favoriteIds")))
            if not favorite_ids:
                continue
            for client_id in ids:
                if favorite_ids & targets[client_id]:
                    favorites[client_id] += 1

        logger.info("client_stats_computed", clients=len(ids), events=len(owner))
        return {
            client_id: {
                "totalEvents": event_counts[client_id],
                "totalCheckIns": len(reviews_seen[client_id]),
                "totalPoints": points[client_id],
                "totalFavorites": favorites[client_id],
            }
            for client_id in ids
        }

    # --- User report ---

    @upstream_guard("get_user_report")
    async def user_report(self) -> Outcome[list[dict[str, object]]]:
        """One row per profile, highest points balance first."""
        checkins: Counter[str] = Counter()
        review_points: dict[str, float] = defaultdict(int)
        async for review in self._scan(self._collections.reviews):
            user_id = ref_id(review.get("user"))
            if user_id:
                checkins[user_id] += 1
                review_points[user_id] += as_number(review.get("pointsEarned"))

        answered: Counter[str] = Counter()
        async for response in self._scan(self._collections.trivia_responses):
            user_id = ref_id(response.get("user"))
            if user_id:
                answered[user_id] += 1

        rows = []
        async for profile in self._scan(self._collections.user_profiles):
            profile_id = profile.get("$id", "")
            total_points = as_number(profile.get("totalPoints"))
            rows.append({
                "profileId": profile_id,
                "authId": profile.get("authID"),
                "firstname": profile.get("firstname") or "",
                "lastname": profile.get("lastname") or "",
                "username": profile.get("username") or "",
                "totalPoints": total_points,
                "tierLevel": profile.get("tierLevel") or tier_for_points(total_points).name,
                "checkIns": checkins[profile_id],
                "checkInReviewPoints": review_points[profile_id],
                "favorites": len(parse_id_list(profile.get("favoriteIds"))),
                "triviaAnswered": answered[profile_id],
            })

        rows.sort(key=lambda row: row["totalPoints"], reverse=True)
        logger.info("user_report_built", rows=len(rows))
        return rows

    # --- Statistics pages ---

    async def _points_awarded(self) -> float:
        """Sum of review points plus check-in points.

        A check-in without its own ``points`` is worth its event's
        ``checkInPoints``; events that cannot be read are skipped.
        """
        total: float = 0
        async for review in self._scan(self._collections.reviews):
            total += as_number(review.get("pointsEarned"))

        event_points: dict[str, float] = {}
        async for checkin in self._scan(self._collections.checkins):
            if "points" in checkin:
                total += as_number(checkin.get("points"))
                continue
            event_id = ref_id(checkin.get("event"))
            if not event_id:
                continue
            if event_id not in event_points:
                try:
                    event = await find_document(self._store, self._collections.events, event_id)
                except StoreError as exc:
                    logger.warning("checkin_event_unreadable", event_id=event_id, error=exc.message)
                    event = None
                event_points[event_id] = as_number(event.get("checkInPoints")) if event else 0
            total += event_points[event_id]
        return total

    async def _count(self, collection: str, *filters: Filter) -> int:
        return await count_documents(self._store, collection, list(filters))

    async def _dashboard(self, now: datetime) -> dict[str, object]:
        _, last_month_end = previous_month_range(now)
        cutoff = isoformat(last_month_end)
        c = self._collections
        clients, users, checkins, reviews, clients_before, users_before = await asyncio.gather(
            self._count(c.clients),
            self._count(c.user_profiles),
            self._count(c.checkins),
            self._count(c.reviews),
            self._count(c.clients, less_than_equal("$createdAt", cutoff)),
            self._count(c.user_profiles, less_than_equal("$createdAt", cutoff)),
        )
        points = await self._points_awarded()
        return {
            "totalClientsBrands": clients,
            "totalPointsAwarded": points,
            "totalUsers": users,
            "averagePPU": round_half_up(points / users) if users else 0,
            "totalCheckins": checkins,
            "reviews": reviews,
            "totalClientsBrandsChange": percent_change(clients, clients_before),
            "totalUsersChange": percent_change(users, users_before),
            # No dated history exists for these yet
            "totalPointsAwardedChange": 0,
            "averagePPUChange": 0,
            "totalCheckinsChange": 0,
            "reviewsChange": 0,
        }

    async def _clients(self, now: datetime) -> dict[str, object]:
        start, end = month_range(now)
        total, new = await asyncio.gather(
            self._count(self._collections.clients),
            self._count(
                self._collections.clients,
                greater_than_equal("$createdAt", isoformat(start)),
                less_than_equal("$createdAt", isoformat(end)),
            ),
        )
        return {"totalClients": total, "newThisMonth": new}

    async def _users(self, now: datetime) -> dict[str, object]:
        start, end = week_range(now)
        profiles = self._collections.user_profiles
        total, new, blocked = await asyncio.gather(
            self._count(profiles),
            self._count(
                profiles,
                greater_than_equal("$createdAt", isoformat(start)),
                less_than_equal("$createdAt", isoformat(end)),
            ),
            self._count(profiles, equal("isBlocked", True)),
        )
        points = await self._points_awarded()
        return {
            "totalUsers": total,
            "avgPoints": round_half_up(points / total) if total else 0,
            "newThisWeek": new,
            "usersInBlacklist": blocked,
        }

    async def _trivia(self, now: datetime) -> dict[str, object]:
        moment = isoformat(now)
        trivia = self._collections.trivia
        total, scheduled, active, completed = await asyncio.gather(
            self._count(trivia),
            self._count(trivia, greater_than("startDate", moment)),
            self._count(trivia, less_than_equal("startDate", moment), greater_than_equal("endDate", moment)),
            self._count(trivia, less_than("endDate", moment)),
        )
        return {"totalQuizzes": total, "scheduled": scheduled, "active": active, "completed": completed}

    @upstream_guard("get_statistics")
    async def page_statistics(self, page: StatisticsPage) -> Outcome[dict[str, object]]:
        builders = {
            StatisticsPage.DASHBOARD: self._dashboard,
            StatisticsPage.CLIENTS: self._clients,
            StatisticsPage.USERS: self._users,
            StatisticsPage.TRIVIA: self._trivia,
        }
        statistics = await builders[page](self._clock())
        logger.info("statistics_computed", page=str(page))
        return statistics

    # --- Tiers ---

    @upstream_guard("update_user_tier")
    async def update_tier(self, user_id: str) -> Outcome[dict[str, object]]:
        profile = await find_document(self._store, self._collections.user_profiles, user_id)
        if profile is None:
            return DomainError.not_found("User not found")
        total_points = as_number(profile.get("totalPoints"))
        tier = tier_for_points(total_points)
        await self._store.update_document(self._collections.user_profiles, user_id, {"tierLevel": tier.name})
        logger.info("user_tier_updated", user_id=user_id, tier=tier.name, total_points=total_points)
        return {
            "userId": user_id,
            "totalPoints": total_points,
            "tierLevel": tier.name,
            "tierNumber": tier.level,
        }

    @upstream_guard("update_all_user_tiers")
    async def update_all_tiers(self) -> Outcome[int]:
        """Recompute every profile's tier, writing only the ones that changed."""
        changed: list[tuple[str, str]] = []
        async for profile in self._scan(self._collections.user_profiles):
            tier = tier_for_points(as_number(profile.get("totalPoints")))
            if (profile.get("tierLevel") or "") != tier.name:
                changed.append((profile["$id"], tier.name))

        # Writes happen after the scan so offset paging sees a stable listing
        for profile_id, tier_name in changed:
            await self._store.update_document(
                self._collections.user_profiles, profile_id, {"tierLevel": tier_name},
            )
        logger.info("user_tiers_updated", updated=len(changed))
        return len(changed)

    # --- Identity lookups ---

    async def _lookup(self, auth_id: str) -> Identity | None:
        try:
            return await self._identity.get_identity(auth_id)
        except IdentityError as exc:
            logger.warning("identity_lookup_failed", auth_id=auth_id, error=exc.message)
            return None

    async def identity_lookup(self, auth_ids: list[str]) -> Outcome[dict[str, dict[str, str]]]:
        """Emails and last-access timestamps; unresolvable ids are left out."""
        ids = list(dict.fromkeys(auth_ids))
        identities = await asyncio.gather(*(self._lookup(auth_id) for auth_id in ids))
        emails: dict[str, str] = {}
        last_logins: dict[str, str] = {}
        for auth_id, identity in zip(ids, identities):
            if identity is None:
                continue
            if identity.email:
                emails[auth_id] = identity.email
            if identity.accessed_at:
                last_logins[auth_id] = identity.accessed_at
        logger.info("identities_resolved", requested=len(ids), emails=len(emails), last_logins=len(last_logins))
        return {"emails": emails, "lastLogins": last_logins}
