"""Appwrite Databases REST implementation of the document store."""

from __future__ import annotations

from typing import Any

import httpx

from sampler.appwrite import encode_query, request_json
from sampler.documents import Document
from sampler.store.base import DocumentNotFoundError, DocumentPage, DocumentStore, StoreError
from sampler.store.query import Filter, Filters, Sort, Sorts


def encode_filter(term: Filter) -> str:
    return encode_query(term.operator.value, term.attribute, list(term.values))


def encode_sort(term: Sort) -> str:
    return encode_query("orderDesc" if term.descending else "orderAsc", term.attribute)


def build_queries(
    filters: Filters = (),
    sort: Sorts = (),
    limit: int | None = None,
    offset: int | None = None,
    select: list[str] | None = None,
) -> list[str]:
    """Translate a listing request into Appwrite query strings."""
    queries = [encode_filter(f) for f in filters]
    queries.extend(encode_sort(s) for s in sort)
    if limit is not None:
        queries.append(encode_query("limit", values=[limit]))
    if offset is not None:
        queries.append(encode_query("offset", values=[offset]))
    if select:
        queries.append(encode_query("select", values=select))
    return queries


class AppwriteDocumentStore(DocumentStore):
    """Talks to ``/databases/{database}/collections/{collection}/documents``."""

    def __init__(self, http: httpx.AsyncClient, database_id: str) -> None:
        self._http = http
        self.database_id = database_id

    def _documents_path(self, collection: str) -> str:
        return f"/databases/{self.database_id}/collections/{collection}/documents"

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
            error_cls=StoreError,
            not_found_cls=DocumentNotFoundError,
            params=params,
            body=body,
        )

    async def create_document(
        self,
        collection: str,
        data: dict[str, Any],
        document_id: str | None = None,
    ) -> Document:
        return await self._call(
            "POST",
            self._documents_path(collection),
            body={"documentId": document_id or "unique()", "data": data},
        )

    async def get_document(self, collection: str, document_id: str) -> Document:
        return await self._call("GET", f"{self._documents_path(collection)}/{document_id}")

    async def list_documents(
        self,
        collection: str,
        filters: Filters = (),
        sort: Sorts = (),
        limit: int | None = None,
        offset: int | None = None,
        select: list[str] | None = None,
    ) -> DocumentPage:
        queries = build_queries(filters, sort, limit, offset, select)
        payload = await self._call(
            "GET",
            self._documents_path(collection),
            params=[("queries[]", q) for q in queries],
        )
        return DocumentPage(total=int(payload.get("total", 0)), documents=list(payload.get("documents", [])))

    async def update_document(
        self,
        collection: str,
        document_id: str,
        data: dict[str, Any],
    ) -> Document:
        return await self._call(
            "PATCH",
            f"{self._documents_path(collection)}/{document_id}",
            body={"data": data},
        )

    async def delete_document(self, collection: str, document_id: str) -> None:
        await self._call("DELETE", f"{self._documents_path(collection)}/{document_id}")
