"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from fakes import FakeIdentityProvider, InMemoryDocumentStore
from sampler.config import CollectionIds
from sampler.main import create_app


@pytest.fixture
def collections() -> CollectionIds:
    return CollectionIds()


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def identity() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest_asyncio.fixture
async def client(store: InMemoryDocumentStore, identity: FakeIdentityProvider) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client over the app wired to the in-memory collaborators."""
    app = create_app(store=store, identity=identity)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def unconfigured_client() -> AsyncGenerator[AsyncClient, None]:
    """Client for an app started without an API key (no engines installed)."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
