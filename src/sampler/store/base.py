"""Document store abstraction consumed by the engines."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

from sampler.documents import Document
from sampler.errors import UpstreamError
from sampler.store.query import Filters, Sorts


class StoreError(UpstreamError):
    """A document store call failed."""


class DocumentNotFoundError(StoreError):
    """The requested document does not exist."""


@dataclass
class DocumentPage:
    """One listing result: the matching total and the returned slice."""

    total: int
    documents: list[Document] = field(default_factory=list)


class DocumentStore(ABC):
    """Generic create/get/list/update/delete over named collections.

    Implementations are network-backed and fallible, and offer no
    multi-document transactions.
    """

    @abstractmethod
    async def create_document(
        self,
        collection: str,
        data: dict[str, Any],
        document_id: str | None = None,
    ) -> Document:
        """Create a document; the store assigns an id when none is given."""
        ...

    @abstractmethod
    async def get_document(self, collection: str, document_id: str) -> Document:
        """Fetch one document. Raises DocumentNotFoundError if absent."""
        ...

    @abstractmethod
    async def list_documents(
        self,
        collection: str,
        filters: Filters = (),
        sort: Sorts = (),
        limit: int | None = None,
        offset: int | None = None,
        select: list[str] | None = None,
    ) -> DocumentPage:
        """List documents matching every filter."""
        ...

    @abstractmethod
    async def update_document(
        self,
        collection: str,
        document_id: str,
        data: dict[str, Any],
    ) -> Document:
        """Patch the given fields of a document."""
        ...

    @abstractmethod
    async def delete_document(self, collection: str, document_id: str) -> None:
        """Delete a document."""
        ...


async def find_document(store: DocumentStore, collection: str, document_id: str) -> Document | None:
    """Fetch a document, returning None instead of raising when it is absent."""
    try:
        return await store.get_document(collection, document_id)
    except DocumentNotFoundError:
        return None


async def iterate_all(
    store: DocumentStore,
    collection: str,
    filters: Filters = (),
    sort: Sorts = (),
    page_size: int = 100,
    select: list[str] | None = None,
    max_documents: int | None = None,
) -> AsyncIterator[Document]:
    """Page through every document of a listing.

    The store caps a single listing, so totals computed from one call would
    undercount; this walks ``limit``/``offset`` pages until a short page.
    Iteration stops early once ``max_documents`` have been yielded.
    """
    offset = 0
    yielded = 0
    while True:
        page = await store.list_documents(
            collection, filters=filters, sort=sort, limit=page_size, offset=offset, select=select,
        )
        for document in page.documents:
            if max_documents is not None and yielded >= max_documents:
                return
            yielded += 1
            yield document
        if len(page.documents) < page_size:
            return
        offset += page_size


async def count_documents(store: DocumentStore, collection: str, filters: Filters = ()) -> int:
    """Return the total number of documents matching the filters."""
    page = await store.list_documents(collection, filters=filters, limit=1)
    return page.total
