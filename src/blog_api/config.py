"""Application configuration via environment variables."""

from typing import Literal
from urllib.parse import urlparse

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

_REDIS_SCHEMES = frozenset({"redis", "rediss", "unix"})
_MEMORY_SCHEMES = frozenset({"memory"})


class Settings(BaseSettings):
    """Service configuration loaded from environment variables."""

    model_config = {"env_prefix": ""}

    # Document store
    database_url: str = Field(
        default="memory://",
        description="Document store connection string: redis://... or memory://",
    )

    # Server
    host: str = Field(default="0.0.0.0", description="Server bind host")
    port: int = Field(default=8080, description="Server bind port")
    log_level: str = Field(default="info", description="Log level")

    @property
    def store_backend(self) -> Literal["memory", "redis"]:
        """Store backend selected by the DATABASE_URL scheme."""
        if urlparse(self.database_url).scheme in _REDIS_SCHEMES:
            return "redis"
        return "memory"

    @field_validator("database_url")
    @classmethod
    def _validate_database_url(cls, v: str) -> str:
        scheme = urlparse(v).scheme
        if scheme not in _REDIS_SCHEMES | _MEMORY_SCHEMES:
            raise ValueError(
                f"DATABASE_URL scheme '{scheme}' is not supported; use redis:// or memory://"
            )
        return v
