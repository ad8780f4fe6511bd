"""Pydantic models for blog post documents and their API representations."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class Author(BaseModel):
    """Structured author name. Serialized with camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)

    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")

    @property
    def display_name(self) -> str:
        if self.last_name == "":
            return self.first_name
        return f"{self.first_name} {self.last_name}"

    @classmethod
    def from_display_name(cls, name: str) -> Author:
        """Parse ``"First Last"`` into structured form; extra words go to the last name."""
        parts = name.strip().split(maxsplit=1)
        if not parts:
            raise ValueError("author must not be blank")
        return cls(first_name=parts[0], last_name=parts[1] if len(parts) > 1 else "")


class BlogPost(BaseModel):
    """Stored blog post document."""

    id: str = Field(description="Store-generated identifier")
    author: Author
    title: str
    content: str
    created: datetime


class PostCreate(BaseModel):
    """Request body for ``POST /posts``."""

    author: Author
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    created: datetime = Field(default_factory=_utcnow)

    @field_validator("author")
    @classmethod
    def _require_both_names(cls, v: Author) -> Author:
        if not v.first_name or not v.last_name:
            raise ValueError("author firstName and lastName must not be empty")
        return v


class PostUpdate(BaseModel):
    """Request body for ``PUT /posts/{id}``; every field is optional."""

    id: str | None = Field(default=None, description="Must match the path id when given")
    author: Author | None = None
    title: str | None = Field(default=None, min_length=1)
    content: str | None = Field(default=None, min_length=1)
    created: datetime | None = None

    @field_validator("author", mode="before")
    @classmethod
    def _parse_author_string(cls, v: Any) -> Any:
        if isinstance(v, str):
            return Author.from_display_name(v)
        return v

    def changes(self) -> dict[str, Any]:
        """Fields explicitly supplied with a value, excluding ``id``."""
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if name != "id" and getattr(self, name) is not None
        }


class PostView(BaseModel):
    """Client-facing projection of a post with the author flattened to a string."""

    id: str
    author: str
    title: str
    content: str
    created: datetime

    @classmethod
    def from_post(cls, post: BlogPost) -> PostView:
        return cls(
            id=post.id,
            author=post.author.display_name,
            title=post.title,
            content=post.content,
            created=post.created,
        )
