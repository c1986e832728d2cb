"""In-memory implementation of KeyValueTable."""

import copy
from collections.abc import Callable, Sequence
from datetime import UTC, datetime

from scrum_poker.db.errors import ConditionalCheckFailedError, TransactionCanceledError
from scrum_poker.table.interface import KeyValueTable, validate_transaction
from scrum_poker.table.models import (
    CONDITION_FAILED,
    Condition,
    Delete,
    Item,
    ItemKey,
    Operation,
    Put,
    Update,
)


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class InMemoryTable(KeyValueTable):
    """In-memory implementation of KeyValueTable for testing and development.

    Partitions are dicts of sort key -> item. A transaction checks every
    condition and then applies every write without yielding to the event
    loop, so concurrent coroutines observe it as one atomic step.
    Not suitable for production use.
    """

    def __init__(
        self,
        ttl_attribute: str = "ttlEpoch",
        clock: Callable[[], datetime] = utc_now,
        max_transaction_items: int = 100,
    ) -> None:
        self._ttl_attribute = ttl_attribute
        self._clock = clock
        self._max_transaction_items = max_transaction_items
        self._partitions: dict[str, dict[str, Item]] = {}

    @property
    def ttl_attribute(self) -> str:
        return self._ttl_attribute

    def _is_expired(self, item: Item) -> bool:
        expires_at = item.get(self._ttl_attribute)
        if not isinstance(expires_at, int | float):
            return False
        return expires_at <= self._clock().timestamp()

    def _current(self, key: ItemKey) -> Item | None:
        """Live item at key, purging it if its TTL has passed."""
        partition = self._partitions.get(key.pk)
        if partition is None:
            return None
        item = partition.get(key.sk)
        if item is not None and self._is_expired(item):
            self._remove(key)
            return None
        return item

    def _store(self, item: Item) -> None:
        key = ItemKey.of(item)
        self._partitions.setdefault(key.pk, {})[key.sk] = copy.deepcopy(item)

    def _remove(self, key: ItemKey) -> None:
        partition = self._partitions.get(key.pk)
        if partition is None:
            return
        partition.pop(key.sk, None)
        if not partition:
            del self._partitions[key.pk]

    async def put_item(self, item: Item, condition: Condition | None = None) -> None:
        key = ItemKey.of(item)
        if condition is not None and not condition.evaluate(self._current(key)):
            raise ConditionalCheckFailedError(
                f"Condition {condition.type.value} failed for {key.pk}/{key.sk}"
            )
        self._store(item)

    async def get_item(self, key: ItemKey) -> Item | None:
        item = self._current(key)
        return copy.deepcopy(item) if item is not None else None

    async def query(self, pk: str, sk_prefix: str | None = None) -> list[Item]:
        results = []
        for sk in sorted(self._partitions.get(pk, {})):
            if sk_prefix is not None and not sk.startswith(sk_prefix):
                continue
            item = self._current(ItemKey(pk=pk, sk=sk))
            if item is not None:
                results.append(copy.deepcopy(item))
        return results

    async def transact_write(self, operations: Sequence[Operation]) -> None:
        validate_transaction(operations, self._max_transaction_items)

        reasons: list[str | None] = []
        for operation in operations:
            condition = operation.condition
            held = condition is None or condition.evaluate(self._current(operation.key))
            reasons.append(None if held else CONDITION_FAILED)
        if any(reasons):
            raise TransactionCanceledError(reasons)

        for operation in operations:
            self._apply(operation)

    def _apply(self, operation: Operation) -> None:
        if isinstance(operation, Put):
            self._store(operation.item)
        elif isinstance(operation, Update):
            current = self._current(operation.key) or operation.key.as_attributes()
            self._store({**current, **operation.attributes})
        elif isinstance(operation, Delete):
            self._remove(operation.key)

    def clear(self) -> None:
        """Drop every item (test utility)."""
        self._partitions.clear()
