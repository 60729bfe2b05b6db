"""Tests for cross-collection statistics, tiers and identity lookups."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from fakes import FakeIdentityProvider, InMemoryDocumentStore

from sampler.config import CollectionIds
from sampler.errors import DomainError
from sampler.identity.base import IdentityError
from sampler.statistics.service import AggregationEngine, StatisticsPage
from sampler.store.base import StoreError

pytestmark = pytest.mark.asyncio

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
JANUARY = "2026-01-15T09:00:00.000+00:00"
FEBRUARY = "2026-02-10T09:00:00.000+00:00"
THIS_WEEK = "2026-03-09T09:00:00.000+00:00"
THIS_MONTH = "2026-03-05T09:00:00.000+00:00"


@pytest.fixture
def engine(store: InMemoryDocumentStore, identity: FakeIdentityProvider, collections: CollectionIds) -> AggregationEngine:
    return AggregationEngine(store, identity, collections, chunk_size=2, page_size=2, clock=lambda: NOW)


class TestClientStats:
    """Events, distinct reviews, review points and favoriting users per client."""

    @pytest.fixture
    def seeded(self, store: InMemoryDocumentStore) -> InMemoryDocumentStore:
        store.seed(
            "events",
            {"$id": "e1", "client": "c1"},
            {"$id": "e2", "client": "c1"},
            {"$id": "e3", "client": {"$id": "c2", "name": "Embedded"}},
            {"$id": "e4", "client": "c9"},
        )
        store.seed(
            "reviews",
            {"$id": "r1", "event": "e1", "pointsEarned": 10},
            {"$id": "r2", "event": "e2", "pointsEarned": 5},
            {"$id": "r3", "event": {"$id": "e3"}, "pointsEarned": 7},
            {"$id": "r4", "event": "e4", "pointsEarned": 100},
        )
        store.seed(
            "user_profiles",
            {"$id": "p1", "favoriteIds": '["e1","e2"]'},
            {"$id": "p2", "favoriteIds": ["c2"]},
            {"$id": "p3", "favoriteIds": ["e1", "c2"]},
            {"$id": "p4", "favoriteIds": "not json"},
            {"$id": "p5"},
        )
        return store

    async def test_counts_per_client(self, engine, seeded):
        stats = await engine.client_stats(["c1", "c2", "c3"])

        assert stats == {
            "c1": {"totalEvents": 2, "totalCheckIns": 2, "totalPoints": 15, "totalFavorites": 2},
            "c2": {"totalEvents": 1, "totalCheckIns": 1, "totalPoints": 7, "totalFavorites": 2},
            "c3": {"totalEvents": 0, "totalCheckIns": 0, "totalPoints": 0, "totalFavorites": 0},
        }

    async def test_duplicate_ids_collapse(self, engine, seeded):
        stats = await engine.client_stats(["c1", "c1"])

        assert list(stats) == ["c1"]
        assert stats["c1"]["totalFavorites"] == 2

    async def test_empty_request(self, engine, seeded):
        assert await engine.client_stats([]) == {}
        assert seeded.calls == []

    async def test_store_failure(self, engine, seeded):
        seeded.failures[("list", "reviews")] = StoreError("boom", 500)

        assert await engine.client_stats(["c1"]) == DomainError.upstream()


class TestUserReport:
    async def test_rows_sorted_by_points(self, engine, store):
        store.seed(
            "user_profiles",
            {"$id": "p1", "authID": "a1", "firstname": "Ada", "lastname": "L", "username": "ada",
             "totalPoints": 10, "tierLevel": "SampleFan"},
            {"$id": "p2", "authID": "a2", "username": "bo", "totalPoints": 500, "favoriteIds": '["e1"]'},
        )
        store.seed(
            "reviews",
            {"user": "p2", "pointsEarned": 5},
            {"user": {"$id": "p2"}, "pointsEarned": 7},
        )
        store.seed("trivia_responses", {"user": "p2", "trivia": "q1"})

        rows = await engine.user_report()

        assert [row["profileId"] for row in rows] == ["p2", "p1"]
        assert rows[0] == {
            "profileId": "p2",
            "authId": "a2",
            "firstname": "",
            "lastname": "",
            "username": "bo",
            "totalPoints": 500,
            "tierLevel": "NewbieSampler",
            "checkIns": 2,
            "checkInReviewPoints": 12,
            "favorites": 1,
            "triviaAnswered": 1,
        }
        assert rows[1]["tierLevel"] == "SampleFan"
        assert rows[1]["checkIns"] == 0


class TestPageStatistics:
    @pytest.fixture
    def seeded(self, store: InMemoryDocumentStore) -> InMemoryDocumentStore:
        store.seed(
            "clients",
            *({"$createdAt": JANUARY} for _ in range(3)),
            {"$createdAt": THIS_MONTH},
        )
        store.seed(
            "user_profiles",
            {"$createdAt": FEBRUARY, "isBlocked": False},
            {"$createdAt": FEBRUARY, "isBlocked": True},
            {"$createdAt": THIS_WEEK, "isBlocked": False},
            {"$createdAt": THIS_WEEK},
        )
        store.seed("events", {"$id": "e1", "checkInPoints": 20})
        store.seed("reviews", {"pointsEarned": 10}, {"pointsEarned": 5})
        store.seed(
            "checkins",
            {"points": 3, "event": "e1"},
            {"event": "e1"},
            {"event": {"$id": "e1"}},
            {"event": "gone"},
        )
        store.seed(
            "trivia",
            {"startDate": "2026-03-01T00:00:00.000+00:00", "endDate": "2026-03-31T00:00:00.000+00:00"},
            {"startDate": "2026-04-01T00:00:00.000+00:00", "endDate": "2026-04-30T00:00:00.000+00:00"},
            {"startDate": "2026-02-01T00:00:00.000+00:00", "endDate": "2026-02-28T00:00:00.000+00:00"},
        )
        return store

    async def test_dashboard(self, engine, seeded):
        stats = await engine.page_statistics(StatisticsPage.DASHBOARD)

        assert stats == {
            "totalClientsBrands": 4,
            "totalPointsAwarded": 58,
            "totalUsers": 4,
            "averagePPU": 15,
            "totalCheckins": 4,
            "reviews": 2,
            "totalClientsBrandsChange": 33,
            "totalUsersChange": 100,
            "totalPointsAwardedChange": 0,
            "averagePPUChange": 0,
            "totalCheckinsChange": 0,
            "reviewsChange": 0,
        }

    async def test_event_points_read_once_per_event(self, engine, seeded):
        await engine.page_statistics(StatisticsPage.DASHBOARD)

        assert seeded.calls.count(("get", "events")) == 2

    async def test_unreadable_event_counts_zero(self, engine, seeded):
        seeded.failing_ids.add("e1")

        stats = await engine.page_statistics(StatisticsPage.DASHBOARD)

        assert stats["totalPointsAwarded"] == 18

    async def test_clients(self, engine, seeded):
        assert await engine.page_statistics(StatisticsPage.CLIENTS) == {"totalClients": 4, "newThisMonth": 1}

    async def test_users(self, engine, seeded):
        assert await engine.page_statistics(StatisticsPage.USERS) == {
            "totalUsers": 4,
            "avgPoints": 15,
            "newThisWeek": 2,
            "usersInBlacklist": 1,
        }

    async def test_trivia(self, engine, seeded):
        assert await engine.page_statistics(StatisticsPage.TRIVIA) == {
            "totalQuizzes": 3,
            "scheduled": 1,
            "active": 1,
            "completed": 1,
        }

    async def test_empty_store(self, engine):
        stats = await engine.page_statistics(StatisticsPage.DASHBOARD)

        assert stats["averagePPU"] == 0
        assert stats["totalUsersChange"] == 0


class TestTiers:
    @pytest.fixture
    def seeded(self, store: InMemoryDocumentStore) -> InMemoryDocumentStore:
        store.seed(
            "user_profiles",
            {"$id": "p1", "totalPoints": 1500, "tierLevel": "NewbieSampler"},
            {"$id": "p2", "totalPoints": 0, "tierLevel": "NewbieSampler"},
            {"$id": "p3", "totalPoints": 30000},
        )
        return store

    async def test_single_user(self, engine, seeded):
        result = await engine.update_tier("p1")

        assert result == {"userId": "p1", "totalPoints": 1500, "tierLevel": "SampleFan", "tierNumber": 2}
        assert seeded.data["user_profiles"]["p1"]["tierLevel"] == "SampleFan"

    async def test_unknown_user(self, engine, seeded):
        assert await engine.update_tier("ghost") == DomainError.not_found("User not found")

    async def test_all_users_writes_only_changes(self, engine, seeded):
        assert await engine.update_all_tiers() == 2

        profiles = seeded.data["user_profiles"]
        assert profiles["p1"]["tierLevel"] == "SampleFan"
        assert profiles["p3"]["tierLevel"] == "VIS"
        assert seeded.writes().count(("update", "user_profiles")) == 2

    async def test_all_users_is_stable_on_rerun(self, engine, seeded):
        await engine.update_all_tiers()

        assert await engine.update_all_tiers() == 0


class TestIdentityLookup:
    async def test_resolves_and_skips_unknown(self, engine, identity):
        identity.add("a1", email="ada@example.com", accessed_at="2026-03-01T10:00:00.000+00:00")
        identity.add("a2", email="bo@example.com")

        result = await engine.identity_lookup(["a1", "a2", "a3", "a1"])

        assert result == {
            "emails": {"a1": "ada@example.com", "a2": "bo@example.com"},
            "lastLogins": {"a1": "2026-03-01T10:00:00.000+00:00"},
        }

    async def test_provider_failure_is_skipped(self, engine, identity):
        identity.add("a1", email="ada@example.com")
        identity.failures["get_identity"] = IdentityError("rate limited", 429)

        assert await engine.identity_lookup(["a1"]) == {"emails": {}, "lastLogins": {}}
