"""Blog post document storage — Protocol + Memory + Redis implementations."""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Protocol, runtime_checkable
from uuid import uuid4

import structlog
from redis.exceptions import RedisError

from blog_api.errors import StoreError
from blog_api.metrics import store_errors_total
from blog_api.models import BlogPost, PostCreate, PostUpdate

if TYPE_CHECKING:
    from redis.asyncio import Redis

log = structlog.get_logger()

_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")
_POST_PREFIX = "post:"
_INDEX_KEY = "posts:index"
_SEQ_KEY = "posts:seq"


@runtime_checkable
class PostStore(Protocol):
    """Protocol for blog post document stores."""

    async def list_posts(self) -> list[BlogPost]: ...

    async def get_post(self, post_id: str) -> BlogPost | None: ...

    async def create_post(self, data: PostCreate) -> BlogPost: ...

    async def insert_many(self, items: Iterable[PostCreate]) -> list[BlogPost]: ...

    async def update_post(self, post_id: str, update: PostUpdate) -> BlogPost | None: ...

    async def delete_post(self, post_id: str) -> bool: ...

    async def count(self) -> int: ...

    async def ping(self) -> None: ...

    async def drop(self) -> None: ...

    async def aclose(self) -> None: ...


def new_post_id() -> str:
    return uuid4().hex


def check_post_id(post_id: str) -> None:
    """Raise StoreError for ids the store could never have generated."""
    if not _ID_PATTERN.fullmatch(post_id):
        store_errors_total.add(1, {"operation": "cast_id"})
        raise StoreError(f"malformed post id '{post_id}'")


def _build_post(data: PostCreate) -> BlogPost:
    return BlogPost(
        id=new_post_id(),
        author=data.author,
        title=data.title,
        content=data.content,
        created=data.created,
    )


class MemoryPostStore:
    """In-process post store for local runs and testing. Preserves insertion order."""

    def __init__(self) -> None:
        self._posts: dict[str, BlogPost] = {}

    async def list_posts(self) -> list[BlogPost]:
        return list(self._posts.values())

    async def get_post(self, post_id: str) -> BlogPost | None:
        check_post_id(post_id)
        return self._posts.get(post_id)

    async def create_post(self, data: PostCreate) -> BlogPost:
        post = _build_post(data)
        self._posts[post.id] = post
        return post

    async def insert_many(self, items: Iterable[PostCreate]) -> list[BlogPost]:
        return [await self.create_post(data) for data in items]

    async def update_post(self, post_id: str, update: PostUpdate) -> BlogPost | None:
        check_post_id(post_id)
        post = self._posts.get(post_id)
        if post is None:
            return None
        updated = post.model_copy(update=update.changes())
        self._posts[post_id] = updated
        return updated

    async def delete_post(self, post_id: str) -> bool:
        check_post_id(post_id)
        return self._posts.pop(post_id, None) is not None

    async def count(self) -> int:
        return len(self._posts)

    async def ping(self) -> None:
        """No-op — the in-memory store is always reachable."""

    async def drop(self) -> None:
        self._posts.clear()

    async def aclose(self) -> None:
        self._posts.clear()


@contextmanager
def _translate_errors(operation: str) -> Iterator[None]:
    """Re-raise Redis and socket failures as StoreError."""
    try:
        yield
    except (RedisError, OSError) as exc:
        store_errors_total.add(1, {"operation": operation})
        log.warning("store_error", operation=operation, error=str(exc))
        raise StoreError(f"document store {operation} failed") from exc


class RedisPostStore:
    """Redis-backed post store.

    Each post is one JSON document under ``post:<id>``. A sorted set scored
    by a monotonic sequence keeps insertion order for listing.
    """

    def __init__(self, client: Redis) -> None:
        self._client: Redis = client

    def _key(self, post_id: str) -> str:
        return f"{_POST_PREFIX}{post_id}"

    async def list_posts(self) -> list[BlogPost]:
        with _translate_errors("list"):
            ids = await self._client.zrange(_INDEX_KEY, 0, -1)
            if not ids:
                return []
            keys = [self._key(i.decode() if isinstance(i, bytes) else str(i)) for i in ids]
            docs = await self._client.mget(keys)
        # Index entries can briefly outlive a concurrently deleted document
        return [BlogPost.model_validate_json(doc) for doc in docs if doc is not None]

    async def get_post(self, post_id: str) -> BlogPost | None:
        check_post_id(post_id)
        with _translate_errors("get"):
            doc = await self._client.get(self._key(post_id))
        if doc is None:
            return None
        return BlogPost.model_validate_json(doc)

    async def create_post(self, data: PostCreate) -> BlogPost:
        post = _build_post(data)
        with _translate_errors("create"):
            seq = await self._client.incr(_SEQ_KEY)
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.set(self._key(post.id), post.model_dump_json(by_alias=True))
                pipe.zadd(_INDEX_KEY, {post.id: seq})
                await pipe.execute()
        return post

    async def insert_many(self, items: Iterable[PostCreate]) -> list[BlogPost]:
        posts = [_build_post(data) for data in items]
        if not posts:
            return []
        with _translate_errors("insert_many"):
            last = await self._client.incrby(_SEQ_KEY, len(posts))
            first = last - len(posts) + 1
            async with self._client.pipeline(transaction=True) as pipe:
                for offset, post in enumerate(posts):
                    pipe.set(self._key(post.id), post.model_dump_json(by_alias=True))
                    pipe.zadd(_INDEX_KEY, {post.id: first + offset})
                await pipe.execute()
        return posts

    async def update_post(self, post_id: str, update: PostUpdate) -> BlogPost | None:
        post = await self.get_post(post_id)
        if post is None:
            return None
        updated = post.model_copy(update=update.changes())
        with _translate_errors("update"):
            # xx: do not resurrect a document deleted since the read
            written = await self._client.set(
                self._key(post_id), updated.model_dump_json(by_alias=True), xx=True
            )
        return updated if written else None

    async def delete_post(self, post_id: str) -> bool:
        check_post_id(post_id)
        with _translate_errors("delete"):
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.delete(self._key(post_id))
                pipe.zrem(_INDEX_KEY, post_id)
                deleted, _ = await pipe.execute()
        return bool(deleted)

    async def count(self) -> int:
        with _translate_errors("count"):
            return int(await self._client.zcard(_INDEX_KEY))

    async def ping(self) -> None:
        with _translate_errors("ping"):
            await self._client.ping()

    async def drop(self) -> None:
        """Delete every post document along with the index and sequence keys."""
        with _translate_errors("drop"):
            keys = [key async for key in self._client.scan_iter(match=f"{_POST_PREFIX}*")]
            await self._client.delete(_INDEX_KEY, _SEQ_KEY, *keys)

    async def aclose(self) -> None:
        """Close the underlying Redis connection."""
        await self._client.aclose()


def create_post_store(backend: str, database_url: str | None = None) -> PostStore:
    """Factory: create a PostStore for the given backend."""
    if backend == "redis":
        import redis.asyncio as aioredis

        if not database_url:
            msg = "database_url is required when backend='redis'"
            raise ValueError(msg)
        return RedisPostStore(aioredis.from_url(database_url))
    return MemoryPostStore()
