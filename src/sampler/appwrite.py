"""Shared HTTP plumbing for the Appwrite REST API."""

from __future__ import annotations

import json
from typing import Any

import httpx

from sampler.config import Settings
from sampler.errors import UpstreamError


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    """Build the process-wide client authenticated with the server API key."""
    return httpx.AsyncClient(
        base_url=settings.appwrite_endpoint.rstrip("/"),
        headers={
            "X-Appwrite-Project": settings.appwrite_project_id,
            "X-Appwrite-Key": settings.appwrite_api_key,
            "Content-Type": "application/json",
        },
        timeout=settings.store_timeout_seconds,
    )


def encode_query(method: str, attribute: str | None = None, values: list[Any] | None = None) -> str:
    """Encode one query term in Appwrite's JSON query syntax."""
    payload: dict[str, Any] = {"method": method}
    if attribute is not None:
        payload["attribute"] = attribute
    if values is not None:
        payload["values"] = values
    return json.dumps(payload, separators=(",", ":"))


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase


async def request_json(
    http: httpx.AsyncClient,
    method: str,
    path: str,
    *,
    error_cls: type[UpstreamError],
    not_found_cls: type[UpstreamError],
    params: list[tuple[str, str]] | None = None,
    body: dict[str, Any] | None = None,
) -> Any:  # noqa: ANN401
    """Send a request and return the decoded JSON body.

    Raises:
        not_found_cls: On HTTP 404.
        error_cls: On any other error status or transport failure.
    """
    try:
        response = await http.request(method, path, params=params, json=body)
    except httpx.HTTPError as e:
        msg = f"{method} {path} failed: {e}"
        raise error_cls(msg) from e

    if response.status_code == 404:
        raise not_found_cls(_error_message(response), 404)
    if response.is_error:
        raise error_cls(_error_message(response), response.status_code)
    if not response.content:
        return None
    return response.json()
