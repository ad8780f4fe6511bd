"""Shared test constants, fixtures, and factory functions."""

from collections.abc import AsyncIterator
from datetime import datetime, timedelta, timezone
from typing import Any

import fakeredis
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from blog_api.config import Settings
from blog_api.main import create_app
from blog_api.models import BlogPost, PostCreate
from blog_api.post_store import MemoryPostStore, PostStore, RedisPostStore

# -- Constants --

REDIS_URL = "redis://localhost:6379/0"
SEED_COUNT = 10
UNKNOWN_ID = "0" * 32
MALFORMED_ID = "not-a-post-id"
NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)

FIRST_NAMES = ["Ada", "Grace", "Alan", "Edsger", "Barbara", "Donald", "Frances", "Ken"]
LAST_NAMES = ["Lovelace", "Hopper", "Turing", "Dijkstra", "Liskov", "Knuth", "Allen"]


# -- Factories --


def make_settings(**overrides: Any) -> Settings:
    """Create a Settings instance with test defaults. Override any field."""
    defaults: dict[str, Any] = {"database_url": "memory://"}
    return Settings(**(defaults | overrides))


def make_post_payload(n: int = 0, **overrides: Any) -> dict[str, Any]:
    """Create a POST /posts body. Varies names and dates by *n*."""
    payload: dict[str, Any] = {
        "author": {
            "firstName": FIRST_NAMES[n % len(FIRST_NAMES)],
            "lastName": LAST_NAMES[n % len(LAST_NAMES)],
        },
        "title": f"Post number {n}",
        "content": f"Paragraph one of post {n}.\n\nParagraph two of post {n}.",
        "created": (NOW - timedelta(days=n, minutes=n)).isoformat(),
    }
    return payload | overrides


async def seed_posts(store: PostStore, count: int = SEED_COUNT) -> list[BlogPost]:
    """Insert *count* generated posts in one batch."""
    items = [PostCreate.model_validate(make_post_payload(i)) for i in range(count)]
    return await store.insert_many(items)


# -- Fixtures --


@pytest.fixture
def fake_server() -> fakeredis.FakeServer:
    """Isolated fake Redis server per test."""
    return fakeredis.FakeServer()


@pytest.fixture
def fake_redis(fake_server: fakeredis.FakeServer) -> fakeredis.FakeAsyncRedis:
    return fakeredis.FakeAsyncRedis(server=fake_server)


@pytest.fixture(params=["memory", "redis"])
async def store(
    request: pytest.FixtureRequest,
    fake_server: fakeredis.FakeServer,
    fake_redis: fakeredis.FakeAsyncRedis,
) -> AsyncIterator[PostStore]:
    """Each test runs against both backends; the collection is dropped on teardown."""
    backend: PostStore
    if request.param == "memory":
        backend = MemoryPostStore()
    else:
        backend = RedisPostStore(fake_redis)
    yield backend
    fake_server.connected = True
    await backend.drop()
    await backend.aclose()


@pytest.fixture
def app(store: PostStore) -> FastAPI:
    return create_app(store=store, settings=make_settings())


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """AsyncClient wired to an app with an injected store."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def seeded(store: PostStore) -> list[BlogPost]:
    return await seed_posts(store)
