"""Job configuration models.

Configuration for background job infrastructure.
"""

from pydantic import BaseModel, Field, SecretStr


class HatchetConfig(BaseModel):
    """Hatchet background job orchestration configuration.

    Hatchet runs the scheduled stale-session expiry sweep.
    """

    enabled: bool = Field(default=False, description="Enable Hatchet integration")
    server_url: str = Field(
        default="http://localhost:7077",
        description="Hatchet engine server URL",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Hatchet API key (from HATCHET_API_KEY env var)",
    )
    cron_expire_sessions: str = Field(
        default="*/15 * * * *",
        description="Cron schedule for stale session expiry (every 15 min)",
    )
    retry_max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum retry attempts for failed jobs",
    )
    retry_backoff_seconds: int = Field(
        default=60,
        ge=10,
        description="Initial backoff in seconds between retries",
    )


class JobsConfig(BaseModel):
    """Top-level jobs configuration."""

    hatchet: HatchetConfig = Field(
        default_factory=HatchetConfig,
        description="Hatchet configuration",
    )
