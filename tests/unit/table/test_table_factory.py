"""Tests for the table factory."""

from unittest.mock import MagicMock

import pytest

from scrum_poker.config.models.storage import TableConfig
from scrum_poker.table.factory import create_table
from scrum_poker.table.inmemory import InMemoryTable
from scrum_poker.table.redis import RedisTable


class TestCreateTable:
    def test_inmemory_backend(self) -> None:
        table = create_table(TableConfig(backend="inmemory", ttl_attribute="exp"))
        assert isinstance(table, InMemoryTable)
        assert table.ttl_attribute == "exp"

    def test_redis_backend_with_client(self) -> None:
        client = MagicMock()
        table = create_table(TableConfig(backend="redis", key_prefix="p"), client=client)
        assert isinstance(table, RedisTable)
        assert client.register_script.call_count == 2

    def test_redis_backend_builds_client_from_url(self) -> None:
        table = create_table(
            TableConfig(backend="redis", connection_url="redis://localhost:6390/2")
        )
        assert isinstance(table, RedisTable)

    def test_unknown_backend_rejected(self) -> None:
        config = TableConfig.model_construct(backend="dynamodb")
        with pytest.raises(ValueError, match="Unsupported table backend"):
            create_table(config)
