"""Storage backend configuration models."""

from typing import Literal

from pydantic import BaseModel, Field

TableBackendType = Literal["inmemory", "redis"]


class TableConfig(BaseModel):
    """Configuration for the shared key-value table."""

    backend: TableBackendType = Field(
        default="inmemory",
        description="Table backend type",
    )
    connection_url: str | None = Field(
        default=None,
        description="Connection URL (from env var)",
    )
    key_prefix: str = Field(
        default="poker",
        description="Redis key prefix for item and partition index keys",
    )
    ttl_attribute: str = Field(
        default="ttlEpoch",
        description="Item attribute holding the expiry epoch (seconds)",
    )
    command_timeout: float = Field(
        default=5.0,
        gt=0,
        description="Socket timeout for a single store request (seconds)",
    )


class StorageConfig(BaseModel):
    """Configuration for the session store and its table."""

    table: TableConfig = Field(
        default_factory=TableConfig,
        description="Key-value table backend",
    )
    max_transaction_items: int = Field(
        default=25,
        ge=3,
        description="Maximum operations in one atomic transaction",
    )
    dedup_retention_seconds: int = Field(
        default=3600,  # 1 hour
        gt=0,
        description="How long inbound request ids are remembered",
    )
    session_lifetime_seconds: int = Field(
        default=86400,  # 24 hours
        ge=0,
        description="How long a session may stay ACTIVE before it can be expired (0 = never)",
    )
    transient_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for operations failing with transient store errors",
    )
    transient_retry_base_delay: float = Field(
        default=0.1,
        gt=0,
        description="Initial backoff in seconds between transient retries",
    )
