"""Hatchet client wrapper.

Provides a centralized client for Hatchet job orchestration
with graceful degradation when Hatchet is unavailable.
"""

from typing import Any

from scrum_poker.config.models.jobs import HatchetConfig
from scrum_poker.observability.logging import get_logger

logger = get_logger(__name__)


class HatchetClient:
    """Lazily constructed Hatchet SDK client.

    Returns None instead of raising when Hatchet is disabled, not
    installed, or fails to initialize, so the session store keeps working
    without the expiry sweep.
    """

    def __init__(self, config: HatchetConfig) -> None:
        self._config = config
        self._client: Any | None = None

    def get_client(self) -> Any | None:
        """Get the Hatchet SDK instance, creating it on first use."""
        if self._client is not None:
            return self._client

        if not self._config.enabled:
            logger.info("hatchet_disabled", reason="config")
            return None

        try:
            from hatchet_sdk import Hatchet
        except ImportError:
            logger.warning("hatchet_sdk_not_installed")
            return None

        api_key = self._config.api_key.get_secret_value() if self._config.api_key else None
        try:
            self._client = Hatchet(server_url=self._config.server_url, api_key=api_key)
        except Exception as e:
            logger.error("hatchet_client_init_failed", error=str(e))
            return None

        logger.info("hatchet_client_initialized", server_url=self._config.server_url)
        return self._client

    @property
    def is_available(self) -> bool:
        """True once a client has been created successfully."""
        return self._client is not None

    @property
    def config(self) -> HatchetConfig:
        return self._config
