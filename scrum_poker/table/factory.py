"""KeyValueTable factory for creating backend instances.

The Redis connection URL comes from the table configuration or, when that
is unset, from the REDIS_URL environment variable.
"""

import os

import redis.asyncio as redis

from scrum_poker.config.models.storage import TableConfig
from scrum_poker.observability.logging import get_logger
from scrum_poker.table.inmemory import InMemoryTable
from scrum_poker.table.interface import KeyValueTable
from scrum_poker.table.redis import RedisTable

logger = get_logger(__name__)


def create_table(
    config: TableConfig,
    client: redis.Redis | None = None,
) -> KeyValueTable:
    """Create a KeyValueTable instance based on configuration.

    Args:
        config: Table configuration from settings
        client: Pre-built Redis client (tests, shared pools)

    Raises:
        ValueError: If backend type is not supported
    """
    backend = config.backend

    if backend == "inmemory":
        logger.info("creating_table", backend="inmemory")
        return InMemoryTable(ttl_attribute=config.ttl_attribute)

    elif backend == "redis":
        if client is None:
            url = config.connection_url or os.environ.get(
                "REDIS_URL", "redis://localhost:6379/0"
            )
            client = redis.from_url(
                url,
                decode_responses=True,
                socket_timeout=config.command_timeout,
            )

        logger.info(
            "creating_table",
            backend="redis",
            prefix=config.key_prefix,
        )
        return RedisTable(
            client,
            key_prefix=config.key_prefix,
            ttl_attribute=config.ttl_attribute,
        )

    else:
        raise ValueError(f"Unsupported table backend: {backend}")
