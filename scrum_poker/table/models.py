"""Item keys, conditions and write operations for the key-value table."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

Item = dict[str, Any]

PK = "PK"
SK = "SK"


class ItemKey(BaseModel):
    """Composite identity of one item: partition key plus sort key."""

    model_config = ConfigDict(frozen=True)

    pk: str = Field(..., min_length=1, description="Partition key")
    sk: str = Field(..., min_length=1, description="Sort key")

    def as_attributes(self) -> Item:
        """Key as stored item attributes."""
        return {PK: self.pk, SK: self.sk}

    @classmethod
    def of(cls, item: Item) -> "ItemKey":
        """Extract the key of a stored item."""
        return cls(pk=item[PK], sk=item[SK])


class ConditionType(str, Enum):
    """Predicate kinds a conditional write may carry."""

    ITEM_NOT_EXISTS = "item_not_exists"
    ITEM_EXISTS = "item_exists"
    ATTRIBUTE_EQUALS = "attribute_equals"


class Condition(BaseModel):
    """Predicate over the current stored item, checked atomically with a write."""

    model_config = ConfigDict(frozen=True)

    type: ConditionType
    attribute: str | None = None
    value: Any = None

    @classmethod
    def item_not_exists(cls) -> "Condition":
        return cls(type=ConditionType.ITEM_NOT_EXISTS)

    @classmethod
    def item_exists(cls) -> "Condition":
        return cls(type=ConditionType.ITEM_EXISTS)

    @classmethod
    def attribute_equals(cls, attribute: str, value: Any) -> "Condition":
        return cls(type=ConditionType.ATTRIBUTE_EQUALS, attribute=attribute, value=value)

    def evaluate(self, current: Item | None) -> bool:
        """Check the predicate against the current item (None = absent)."""
        if self.type == ConditionType.ITEM_NOT_EXISTS:
            return current is None
        if self.type == ConditionType.ITEM_EXISTS:
            return current is not None
        if current is None or self.attribute is None:
            return False
        return current.get(self.attribute) == self.value


class Put(BaseModel):
    """Write a whole item, replacing any existing one."""

    item: Item
    condition: Condition | None = None

    @property
    def key(self) -> ItemKey:
        return ItemKey.of(self.item)


class Update(BaseModel):
    """Set attributes on an item, creating it when absent and unconditioned."""

    key: ItemKey
    attributes: Item = Field(default_factory=dict)
    condition: Condition | None = None


class Delete(BaseModel):
    """Remove an item; deleting an absent item is not an error."""

    key: ItemKey
    condition: Condition | None = None


Operation = Put | Update | Delete

CONDITION_FAILED = "ConditionalCheckFailed"
