"""CRUD endpoints for blog posts."""

import structlog
from fastapi import APIRouter, Depends, Request, Response, status

from blog_api.errors import NotFound, ValidationError
from blog_api.metrics import posts_operations_total
from blog_api.models import PostCreate, PostUpdate, PostView
from blog_api.post_store import PostStore

log = structlog.get_logger()

router = APIRouter(prefix="/posts", tags=["posts"])


def get_store(request: Request) -> PostStore:
    """Dependency: the store opened by the app lifespan."""
    store: PostStore = request.app.state.store
    return store


@router.get("")
async def list_posts(store: PostStore = Depends(get_store)) -> list[PostView]:
    posts = await store.list_posts()
    posts_operations_total.add(1, {"operation": "list"})
    return [PostView.from_post(post) for post in posts]


@router.get("/{post_id}")
async def get_post(post_id: str, store: PostStore = Depends(get_store)) -> PostView:
    post = await store.get_post(post_id)
    if post is None:
        raise NotFound(post_id)
    posts_operations_total.add(1, {"operation": "get"})
    return PostView.from_post(post)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_post(
    body: PostCreate, response: Response, store: PostStore = Depends(get_store)
) -> PostView:
    post = await store.create_post(body)
    posts_operations_total.add(1, {"operation": "create"})
    await log.ainfo("post_created", post_id=post.id)
    response.headers["Location"] = f"{router.prefix}/{post.id}"
    return PostView.from_post(post)


@router.put("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_post(
    post_id: str, body: PostUpdate, store: PostStore = Depends(get_store)
) -> Response:
    if body.id is not None and body.id != post_id:
        raise ValidationError(f"path id '{post_id}' and body id '{body.id}' must match")
    updated = await store.update_post(post_id, body)
    if updated is None:
        raise NotFound(post_id)
    posts_operations_total.add(1, {"operation": "update"})
    await log.ainfo("post_updated", post_id=post_id, fields=sorted(body.changes()))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(post_id: str, store: PostStore = Depends(get_store)) -> Response:
    existed = await store.delete_post(post_id)
    posts_operations_total.add(1, {"operation": "delete"})
    await log.ainfo("post_deleted", post_id=post_id, existed=existed)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
