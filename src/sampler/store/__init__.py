"""Document store client: query terms, abstract interface, Appwrite backend."""

from sampler.store.base import (
    DocumentNotFoundError,
    DocumentPage,
    DocumentStore,
    StoreError,
    count_documents,
    find_document,
    iterate_all,
)

__all__ = [
    "DocumentNotFoundError",
    "DocumentPage",
    "DocumentStore",
    "StoreError",
    "count_documents",
    "find_document",
    "iterate_all",
]
