"""KeyValueTable abstract interface."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from scrum_poker.db.errors import ValidationError
from scrum_poker.table.models import Condition, Item, ItemKey, Operation


class KeyValueTable(ABC):
    """Abstract interface for the single shared keyspace.

    Items are attribute dicts carrying ``PK`` and ``SK``. Implementations
    must evaluate every condition of a transaction atomically with its
    writes, and must hide items whose TTL attribute is in the past from
    reads and condition checks.
    """

    @property
    @abstractmethod
    def ttl_attribute(self) -> str:
        """Name of the item attribute holding the expiry epoch."""
        pass

    @abstractmethod
    async def put_item(self, item: Item, condition: Condition | None = None) -> None:
        """Write one item.

        Raises:
            ConditionalCheckFailedError: If the condition does not hold
        """
        pass

    @abstractmethod
    async def get_item(self, key: ItemKey) -> Item | None:
        """Read one item by key (strongly consistent)."""
        pass

    @abstractmethod
    async def query(self, pk: str, sk_prefix: str | None = None) -> list[Item]:
        """Read all items of a partition, optionally limited to a sort-key prefix.

        Results are ordered by sort key.
        """
        pass

    @abstractmethod
    async def transact_write(self, operations: Sequence[Operation]) -> None:
        """Apply all operations or none.

        Raises:
            TransactionCanceledError: If any condition does not hold
        """
        pass


def validate_transaction(operations: Sequence[Operation], max_items: int) -> None:
    """Reject transactions the backing store would refuse outright."""
    if not operations:
        raise ValidationError("Transaction must contain at least one operation")
    if len(operations) > max_items:
        raise ValidationError(
            f"Transaction has {len(operations)} operations, limit is {max_items}"
        )
    seen: set[ItemKey] = set()
    for operation in operations:
        key = operation.key
        if key in seen:
            raise ValidationError(
                f"Transaction touches item {key.pk}/{key.sk} more than once"
            )
        seen.add(key)
