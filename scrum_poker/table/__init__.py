"""Key-value table the session store is built on.

Single-item conditional put, get, partition range query, atomic
multi-item transactions and TTL expiry, behind one interface.
"""

from scrum_poker.table.factory import create_table
from scrum_poker.table.inmemory import InMemoryTable
from scrum_poker.table.interface import KeyValueTable
from scrum_poker.table.models import (
    Condition,
    ConditionType,
    Delete,
    Item,
    ItemKey,
    Operation,
    Put,
    Update,
)
from scrum_poker.table.redis import RedisTable

__all__ = [
    "KeyValueTable",
    "InMemoryTable",
    "RedisTable",
    "create_table",
    "Condition",
    "ConditionType",
    "Delete",
    "Item",
    "ItemKey",
    "Operation",
    "Put",
    "Update",
]
