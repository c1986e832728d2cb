"""Configuration model exports.

    from scrum_poker.config.models import StorageConfig, TableConfig
"""

from scrum_poker.config.models.jobs import HatchetConfig, JobsConfig
from scrum_poker.config.models.observability import (
    LoggingConfig,
    MetricsConfig,
    ObservabilityConfig,
)
from scrum_poker.config.models.storage import StorageConfig, TableConfig

__all__ = [
    "HatchetConfig",
    "JobsConfig",
    "LoggingConfig",
    "MetricsConfig",
    "ObservabilityConfig",
    "StorageConfig",
    "TableConfig",
]
