"""Proximity-ranked event discovery.

The store has no geospatial ranking, so distance is computed here over the
full pre-filtered candidate set and pagination happens after the sort. A
store-level offset would paginate the wrong ordering.
"""

from __future__ import annotations

import asyncio
import math
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

import structlog

from sampler.config import CollectionIds
from sampler.documents import Document, Embedded, Reference, decode_relation, isoformat
from sampler.errors import Outcome, upstream_guard
from sampler.events.geo import UNRESOLVABLE, Coordinates, distance_between
from sampler.store.base import DocumentStore, StoreError, iterate_all
from sampler.store.query import equal, greater_than_equal, order_asc

logger = structlog.get_logger()


@dataclass
class Pagination:
    page: int
    page_size: int
    total: int
    total_pages: int

    def to_dict(self) -> dict[str, int]:
        return {
            "page": self.page,
            "pageSize": self.page_size,
            "total": self.total,
            "totalPages": self.total_pages,
        }


@dataclass
class RankedEvents:
    """One page of events, nearest first, each carrying ``distance`` in meters."""

    events: list[Document] = field(default_factory=list)
    pagination: Pagination = field(default_factory=lambda: Pagination(1, 10, 0, 0))


def local_midnight(now: datetime) -> datetime:
    """Start of the current calendar day in the server's local timezone."""
    return now.astimezone().replace(hour=0, minute=0, second=0, microsecond=0)


def paginate(items: list[Document], page: int, page_size: int) -> tuple[list[Document], Pagination]:
    """Slice a fully sorted list. A page past the end yields an empty slice."""
    total = len(items)
    start = (page - 1) * page_size
    pagination = Pagination(
        page=page,
        page_size=page_size,
        total=total,
        total_pages=math.ceil(total / page_size),
    )
    return items[start:start + page_size], pagination


class ProximityRanker:
    """Ranks upcoming, visible events by great-circle distance from a user."""

    def __init__(
        self,
        store: DocumentStore,
        collections: CollectionIds,
        candidate_limit: int = 1000,
        page_size: int = 100,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._collections = collections
        self._candidate_limit = candidate_limit
        self._page_size = page_size
        self._clock = clock or datetime.now

    async def _candidates(self) -> list[Document]:
        midnight = local_midnight(self._clock())
        filters = [
            equal("isArchived", False),
            equal("isHidden", False),
            greater_than_equal("date", isoformat(midnight)),
        ]
        return [
            event
            async for event in iterate_all(
                self._store,
                self._collections.events,
                filters=filters,
                sort=[order_asc("date")],
                page_size=self._page_size,
                select=["*", "client.*"],
                max_documents=self._candidate_limit,
            )
        ]

    async def _fetch_client(self, client_id: str) -> Document | None:
        try:
            return await self._store.get_document(self._collections.clients, client_id)
        except StoreError as exc:
            logger.warning("client_resolution_failed", client_id=client_id, error=exc.message)
            return None

    async def _resolve_clients(self, events: list[Document]) -> list[Document]:
        """Replace each event's ``client`` with the client document or None.

        Bare references are fetched once per distinct id, concurrently.
        """
        relations = [decode_relation(event.get("client")) for event in events]
        pending = sorted({r.id for r in relations if isinstance(r, Reference)})
        fetched = await asyncio.gather(*(self._fetch_client(cid) for cid in pending))
        by_id = dict(zip(pending, fetched))

        resolved = []
        for event, relation in zip(events, relations):
            if isinstance(relation, Embedded):
                client = relation.document
            elif isinstance(relation, Reference):
                client = by_id.get(relation.id)
            else:
                client = None
            resolved.append({**event, "client": client})
        return resolved

    @upstream_guard("get_events_by_location")
    async def rank(
        self,
        latitude: float,
        longitude: float,
        page: int = 1,
        page_size: int = 10,
    ) -> Outcome[RankedEvents]:
        origin = Coordinates(latitude=latitude, longitude=longitude)
        candidates = await self._candidates()

        measured = []
        for event in candidates:
            distance = distance_between(origin, event.get("location"))
            if distance != UNRESOLVABLE:
                measured.append({**event, "distance": distance})

        # list.sort is stable, ties keep the store's date ordering
        measured.sort(key=lambda event: event["distance"])
        page_events, pagination = paginate(measured, page, page_size)

        logger.info(
            "events_ranked",
            candidates=len(candidates),
            rankable=pagination.total,
            page=page,
            page_size=page_size,
        )
        return RankedEvents(events=await self._resolve_clients(page_events), pagination=pagination)
