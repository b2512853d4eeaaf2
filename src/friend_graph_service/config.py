"""
Configuration for the friend graph service.

Settings are grouped per concern and loaded from environment variables
through pydantic-settings. Each group has its own prefix:

    FRIENDS_FALKORDB_*  - graph backend connection
    FRIENDS_NOTIFY_*    - notification queue and inbox store
    FRIENDS_ENGINE_*    - relationship engine behaviour
    FRIENDS_HTTP_*      - HTTP boundary
"""

import logging

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class FalkorDBSettings(BaseSettings):
    """FalkorDB (Redis-protocol property graph) connection settings."""

    model_config = SettingsConfigDict(env_prefix="FRIENDS_FALKORDB_", extra="ignore")

    enabled: bool = Field(default=True, description="Connect to FalkorDB on startup")
    host: str = Field(default="localhost", description="FalkorDB host")
    port: int = Field(default=6379, ge=1, le=65535, description="FalkorDB port")
    password: SecretStr | None = Field(default=None, description="FalkorDB password")
    graph_name: str = Field(default="friend_graph", min_length=1, description="Graph key holding users and edges")
    max_connections: int = Field(default=16, ge=1, le=256, description="Connection pool size")


class NotificationSettings(BaseSettings):
    """Notification queue and per-recipient inbox settings."""

    model_config = SettingsConfigDict(env_prefix="FRIENDS_NOTIFY_", extra="ignore")

    enabled: bool = True
    queue_key: str = Field(default="friends:notify:queue", min_length=1)
    inbox_key_prefix: str = Field(default="friends:notify:inbox:", min_length=1)
    batch_size: int = Field(default=50, ge=1, le=500, description="Max events per consumer tick")
    poll_interval: float = Field(default=0.5, gt=0.0, description="Seconds to block on an empty queue")
    inbox_max_length: int = Field(default=1000, ge=1, description="Events retained per recipient inbox")


class EngineSettings(BaseSettings):
    """Friend relationship engine settings."""

    model_config = SettingsConfigDict(env_prefix="FRIENDS_ENGINE_", extra="ignore")

    operation_timeout: float = Field(
        default=10.0,
        gt=0.0,
        description="Deadline in seconds applied to an operation when the caller supplies none",
    )


class HTTPSettings(BaseSettings):
    """HTTP boundary settings."""

    model_config = SettingsConfigDict(env_prefix="FRIENDS_HTTP_", extra="ignore")

    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)
    log_level: str = "INFO"
    # Identity is authenticated upstream; this header carries the caller's user id.
    user_header: str = "X-User-Id"


class Settings(BaseSettings):
    """Aggregated service settings."""

    falkordb: FalkorDBSettings = Field(default_factory=FalkorDBSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    engine: EngineSettings = Field(default_factory=EngineSettings)
    http: HTTPSettings = Field(default_factory=HTTPSettings)


settings = Settings()
