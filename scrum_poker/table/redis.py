"""Redis implementation of KeyValueTable.

Each item is a JSON string under its own key; every partition keeps a
sorted-set index of its sort keys so a session bundle can be read with
one range lookup. Transactions run as a single Lua script, which Redis
executes atomically: all conditions are checked before any write.

Key structure:
- {prefix}:item:["<PK>","<SK>"] - item JSON (EXPIREAT from the TTL attribute)
- {prefix}:index:<PK>           - sorted set of sort keys in the partition,
                                  scored by item expiry (0 = never expires)
"""

import json
from collections.abc import Sequence
from typing import Any

import redis.asyncio as redis

from scrum_poker.db.errors import (
    ConditionalCheckFailedError,
    StoreError,
    TransactionCanceledError,
    TransientStoreError,
)
from scrum_poker.observability.logging import get_logger
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

logger = get_logger(__name__)

# KEYS: item key, index key per operation (2 per op, in order)
# ARGV[1]: JSON array of operation descriptors
TRANSACT_SCRIPT = """
local ops = cjson.decode(ARGV[1])

local function matches(cond, raw)
  if cond.type == 'item_not_exists' then
    return raw == false
  elseif cond.type == 'item_exists' then
    return raw ~= false
  elseif cond.type == 'attribute_equals' then
    if raw == false then
      return false
    end
    local item = cjson.decode(raw)
    return item[cond.attribute] == cond.value
  end
  return false
end

local reasons = {}
local failed = false
for i, op in ipairs(ops) do
  local reason = 'None'
  if op.condition then
    local raw = redis.call('GET', KEYS[2 * i - 1])
    if not matches(op.condition, raw) then
      reason = 'ConditionalCheckFailed'
      failed = true
    end
  end
  reasons[i] = reason
end
if failed then
  return reasons
end

local function index_member(index, sk, expire_at)
  local now = tonumber(redis.call('TIME')[1])
  local remaining = redis.call('TTL', index)
  redis.call('ZADD', index, expire_at or 0, sk)
  -- members whose items have expired; score 0 never matches
  redis.call('ZREMRANGEBYSCORE', index, 1, now)
  if expire_at then
    if remaining == -2 then
      redis.call('EXPIREAT', index, expire_at)
    elseif remaining >= 0 then
      if expire_at > now + remaining then
        redis.call('EXPIREAT', index, expire_at)
      end
    end
  else
    redis.call('PERSIST', index)
  end
end

for i, op in ipairs(ops) do
  local key = KEYS[2 * i - 1]
  local index = KEYS[2 * i]
  if op.action == 'put' then
    redis.call('SET', key, op.item)
    if op.expire_at then
      redis.call('EXPIREAT', key, op.expire_at)
    end
    index_member(index, op.sk, op.expire_at)
  elseif op.action == 'update' then
    local raw = redis.call('GET', key)
    local item
    if raw then
      item = cjson.decode(raw)
    else
      item = cjson.decode(op.base)
    end
    for name, value in pairs(cjson.decode(op.attributes)) do
      item[name] = value
    end
    if raw then
      redis.call('SET', key, cjson.encode(item), 'KEEPTTL')
      if op.expire_at then
        index_member(index, op.sk, op.expire_at)
      end
    else
      redis.call('SET', key, cjson.encode(item))
      index_member(index, op.sk, op.expire_at)
    end
    if op.expire_at then
      redis.call('EXPIREAT', key, op.expire_at)
    end
  elseif op.action == 'delete' then
    redis.call('DEL', key)
    redis.call('ZREM', index, op.sk)
  end
end
return {}
"""

# KEYS[1]: index key, KEYS[2..n]: item keys; ARGV: matching sort keys
PRUNE_SCRIPT = """
local removed = 0
for i = 2, #KEYS do
  if redis.call('EXISTS', KEYS[i]) == 0 then
    removed = removed + redis.call('ZREM', KEYS[1], ARGV[i - 1])
  end
end
return removed
"""


def _decode(value: Any) -> str:
    return value.decode() if isinstance(value, bytes) else value


class RedisTable(KeyValueTable):
    """Redis-backed KeyValueTable.

    Requires Redis 6.0+ (``SET ... KEEPTTL``). All keys of one transaction
    must live on the same node, so clustered deployments are not supported.
    """

    def __init__(
        self,
        client: redis.Redis,
        key_prefix: str = "poker",
        ttl_attribute: str = "ttlEpoch",
        max_transaction_items: int = 100,
    ) -> None:
        """Initialize Redis table.

        Args:
            client: Redis client instance
            key_prefix: Prefix for every key this table writes
            ttl_attribute: Item attribute holding the expiry epoch
            max_transaction_items: Largest accepted transaction
        """
        self._client = client
        self._prefix = key_prefix
        self._ttl_attribute = ttl_attribute
        self._max_transaction_items = max_transaction_items
        self._transact = client.register_script(TRANSACT_SCRIPT)
        self._prune = client.register_script(PRUNE_SCRIPT)

    @property
    def ttl_attribute(self) -> str:
        return self._ttl_attribute

    def _item_key(self, key: ItemKey) -> str:
        """Get item key; the JSON pair keeps distinct (PK, SK) pairs distinct."""
        return f"{self._prefix}:item:{json.dumps([key.pk, key.sk], separators=(',', ':'))}"

    def _index_key(self, pk: str) -> str:
        """Get partition index key."""
        return f"{self._prefix}:index:{pk}"

    def _expire_at(self, attributes: Item) -> int | None:
        value = attributes.get(self._ttl_attribute)
        return int(value) if isinstance(value, int | float) else None

    def _describe(self, operation: Operation) -> dict[str, Any]:
        """Operation descriptor consumed by the transaction script."""
        descriptor: dict[str, Any] = {"sk": operation.key.sk}
        if operation.condition is not None:
            descriptor["condition"] = self._describe_condition(operation.condition)

        if isinstance(operation, Put):
            descriptor["action"] = "put"
            descriptor["item"] = json.dumps(operation.item)
            expire_at = self._expire_at(operation.item)
        elif isinstance(operation, Update):
            descriptor["action"] = "update"
            descriptor["base"] = json.dumps(operation.key.as_attributes())
            descriptor["attributes"] = json.dumps(operation.attributes)
            expire_at = self._expire_at(operation.attributes)
        else:
            descriptor["action"] = "delete"
            expire_at = None

        if expire_at is not None:
            descriptor["expire_at"] = expire_at
        return descriptor

    def _describe_condition(self, condition: Condition) -> dict[str, Any]:
        described: dict[str, Any] = {"type": condition.type.value}
        if condition.attribute is not None:
            described["attribute"] = condition.attribute
            described["value"] = condition.value
        return described

    def _wrap_error(self, action: str, error: redis.RedisError) -> StoreError:
        logger.error("redis_table_error", action=action, error=str(error))
        if isinstance(error, redis.ConnectionError | redis.TimeoutError):
            return TransientStoreError(f"Redis {action} failed: {error}", cause=error)
        return StoreError(f"Redis {action} failed: {error}", cause=error)

    async def put_item(self, item: Item, condition: Condition | None = None) -> None:
        try:
            await self.transact_write([Put(item=item, condition=condition)])
        except TransactionCanceledError as e:
            key = ItemKey.of(item)
            raise ConditionalCheckFailedError(
                f"Condition {condition.type.value if condition else None} "
                f"failed for {key.pk}/{key.sk}",
                cause=e,
            ) from e

    async def get_item(self, key: ItemKey) -> Item | None:
        try:
            raw = await self._client.get(self._item_key(key))
        except redis.RedisError as e:
            raise self._wrap_error("get", e) from e
        return json.loads(_decode(raw)) if raw is not None else None

    async def query(self, pk: str, sk_prefix: str | None = None) -> list[Item]:
        index_key = self._index_key(pk)
        try:
            members = [_decode(m) for m in await self._client.zrange(index_key, 0, -1)]
            if sk_prefix is not None:
                members = [m for m in members if m.startswith(sk_prefix)]
            if not members:
                return []

            item_keys = [self._item_key(ItemKey(pk=pk, sk=sk)) for sk in members]
            values = await self._client.mget(item_keys)

            stale = [
                (item_key, sk)
                for item_key, sk, value in zip(item_keys, members, values, strict=True)
                if value is None
            ]
            if stale:
                removed = await self._prune(
                    keys=[index_key, *[item_key for item_key, _ in stale]],
                    args=[sk for _, sk in stale],
                )
                logger.debug("redis_index_pruned", pk=pk, removed=removed)
        except redis.RedisError as e:
            raise self._wrap_error("query", e) from e

        items = [json.loads(_decode(value)) for value in values if value is not None]
        return sorted(items, key=lambda item: item["SK"])

    async def transact_write(self, operations: Sequence[Operation]) -> None:
        validate_transaction(operations, self._max_transaction_items)

        keys: list[str] = []
        for operation in operations:
            keys.append(self._item_key(operation.key))
            keys.append(self._index_key(operation.key.pk))
        payload = json.dumps([self._describe(operation) for operation in operations])

        try:
            result = await self._transact(keys=keys, args=[payload])
        except redis.RedisError as e:
            raise self._wrap_error("transact_write", e) from e

        if result:
            reasons = [
                None if _decode(reason) == "None" else CONDITION_FAILED
                for reason in result
            ]
            logger.debug("redis_transaction_cancelled", reasons=reasons)
            raise TransactionCanceledError(reasons)

    async def close(self) -> None:
        """Close the underlying client."""
        await self._client.aclose()
