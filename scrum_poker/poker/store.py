"""Poker session store.

Owns every write to the five record kinds. Each write operation is one
atomic table transaction whose condition set is exactly the invariant it
protects:

- create: meta absent, channel pointer absent, each participant absent
- cast vote: participant present (no orphan votes)
- reveal / cancel / expire: meta status is ACTIVE; pointer deleted in the
  same transaction so "channel free" and "session closed" never diverge

No read-then-write sequences and no in-process locks are involved; two
racing requests are settled by the table.
"""

import time
from collections.abc import AsyncIterator, Callable, Sequence
from contextlib import asynccontextmanager
from datetime import datetime, timedelta

from scrum_poker.config.models.storage import StorageConfig
from scrum_poker.db.errors import (
    AlreadyActiveError,
    ConditionalCheckFailedError,
    ConflictError,
    NotActiveError,
    ParticipantNotFoundError,
    RosterTooLargeError,
    SessionNotFoundError,
    StoreError,
    TransactionCanceledError,
)
from scrum_poker.observability.logging import get_logger
from scrum_poker.observability.metrics import (
    DEDUP_HITS,
    SESSIONS_CLOSED,
    SESSIONS_CREATED,
    STORE_LATENCY,
    STORE_OPERATIONS,
    VOTES_CAST,
)
from scrum_poker.poker import keys
from scrum_poker.poker.models import (
    ActiveSessionPointer,
    DedupRecord,
    Participant,
    QuorumStatus,
    Scale,
    SessionBundle,
    SessionMeta,
    SessionStatus,
    Vote,
    to_timestamp,
    utc_now,
)
from scrum_poker.table.interface import KeyValueTable
from scrum_poker.table.models import Condition, Delete, Put, Update

logger = get_logger(__name__)

# Transaction positions in create_session
_META_INDEX = 0
_POINTER_INDEX = 1


@asynccontextmanager
async def _observed(operation: str) -> AsyncIterator[None]:
    """Record latency and outcome of one store operation."""
    start = time.perf_counter()
    outcome = "success"
    try:
        yield
    except StoreError as e:
        outcome = type(e).__name__
        raise
    finally:
        STORE_LATENCY.labels(operation=operation).observe(time.perf_counter() - start)
        STORE_OPERATIONS.labels(operation=operation, outcome=outcome).inc()


class PokerSessionStore:
    """Transactional repository for poker sessions, votes and request dedup.

    Args:
        table: Key-value table holding every record
        config: Storage settings, resolved once at startup
        clock: Wall-clock source (UTC)
    """

    def __init__(
        self,
        table: KeyValueTable,
        config: StorageConfig | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._table = table
        self._config = config or StorageConfig()
        self._clock = clock

    @property
    def max_roster_size(self) -> int:
        """Largest roster that fits next to meta and pointer in one transaction."""
        return self._config.max_transaction_items - 2

    # ------------------------------------------------------------------
    # Dedup
    # ------------------------------------------------------------------

    async def record_dedup(
        self,
        team_id: str,
        request_id: str,
        ttl_epoch: int | None = None,
    ) -> bool:
        """Remember an inbound request id.

        Returns True the first time a (team, request id) pair is seen and
        False for every later delivery until the record expires.
        """
        now = self._clock()
        if ttl_epoch is None:
            ttl_epoch = int(now.timestamp()) + self._config.dedup_retention_seconds
        record = DedupRecord(
            team_id=team_id,
            request_id=request_id,
            received_at=now,
            ttl_epoch=ttl_epoch,
        )

        async with _observed("record_dedup"):
            try:
                await self._table.put_item(
                    record.to_item(), condition=Condition.item_not_exists()
                )
            except ConditionalCheckFailedError:
                DEDUP_HITS.inc()
                logger.info("dedup_duplicate", team_id=team_id, request_id=request_id)
                return False

        logger.debug("dedup_recorded", team_id=team_id, request_id=request_id)
        return True

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def create_session(
        self,
        session_id: str,
        team_id: str,
        channel_id: str,
        created_by: str,
        scale: Scale,
        roster: Sequence[str],
        *,
        story_title: str = "",
        story_url: str | None = None,
        ttl_epoch: int | None = None,
    ) -> SessionMeta:
        """Create a session, claim the channel and write the roster atomically.

        Raises:
            AlreadyActiveError: The channel already has an active session
            ConflictError: The session id (or a participant record) exists
            RosterTooLargeError: The roster does not fit in one transaction
        """
        members = list(dict.fromkeys(roster))
        if len(members) > self.max_roster_size:
            raise RosterTooLargeError(len(members), self.max_roster_size)

        now = self._clock()
        lifetime = self._config.session_lifetime_seconds
        meta = SessionMeta(
            session_id=session_id,
            team_id=team_id,
            channel_id=channel_id,
            created_by=created_by,
            status=SessionStatus.ACTIVE,
            story_title=story_title,
            story_url=story_url,
            scale=scale,
            expires_at=now + timedelta(seconds=lifetime) if lifetime else None,
            ttl_epoch=ttl_epoch,
            created_at=now,
            updated_at=now,
        )
        pointer = ActiveSessionPointer(
            team_id=team_id,
            channel_id=channel_id,
            session_id=session_id,
            created_at=now,
        )
        participants = [
            Participant(session_id=session_id, user_id=user_id, invited_at=now)
            for user_id in members
        ]

        must_not_exist = Condition.item_not_exists()
        operations = [
            Put(item=meta.to_item(), condition=must_not_exist),
            Put(item=pointer.to_item(), condition=must_not_exist),
            *[Put(item=p.to_item(), condition=must_not_exist) for p in participants],
        ]

        async with _observed("create_session"):
            try:
                await self._table.transact_write(operations)
            except TransactionCanceledError as e:
                failed = e.failed_indexes()
                logger.info(
                    "session_create_conflict",
                    session_id=session_id,
                    team_id=team_id,
                    channel_id=channel_id,
                    failed_operations=failed,
                )
                if _POINTER_INDEX in failed:
                    raise AlreadyActiveError(team_id, channel_id, cause=e) from e
                if _META_INDEX in failed:
                    raise ConflictError(
                        f"Session id already in use: {session_id}", cause=e
                    ) from e
                raise ConflictError(
                    f"Participant records already exist for session {session_id}",
                    cause=e,
                ) from e

        SESSIONS_CREATED.inc()
        logger.info(
            "session_created",
            session_id=session_id,
            team_id=team_id,
            channel_id=channel_id,
            scale=scale.value,
            participant_count=len(participants),
        )
        return meta

    async def update_session_message(
        self,
        session_id: str,
        message_ts: str,
        message_channel: str,
    ) -> None:
        """Attach the chat message that renders this session.

        Raises:
            SessionNotFoundError: The session does not exist
        """
        stamp = to_timestamp(self._clock())
        operation = Update(
            key=keys.session_meta(session_id),
            attributes={
                "slackMessageTs": message_ts,
                "slackMessageChannel": message_channel,
                "updatedAt": stamp,
            },
            condition=Condition.item_exists(),
        )

        async with _observed("update_session_message"):
            try:
                await self._table.transact_write([operation])
            except TransactionCanceledError as e:
                raise SessionNotFoundError(session_id, cause=e) from e

        logger.debug(
            "session_message_updated",
            session_id=session_id,
            message_ts=message_ts,
        )

    # ------------------------------------------------------------------
    # Voting
    # ------------------------------------------------------------------

    async def cast_vote(self, session_id: str, user_id: str, value: str) -> Vote:
        """Record (or replace) a participant's vote.

        The caller checks that the session is ACTIVE beforehand; only
        roster membership is enforced here.

        Raises:
            ParticipantNotFoundError: The user is not on the roster
        """
        now = self._clock()
        vote = Vote(
            session_id=session_id,
            user_id=user_id,
            vote_value=value,
            created_at=now,
            updated_at=now,
        )
        operations = [
            Put(item=vote.to_item()),
            Update(
                key=keys.participant(session_id, user_id),
                attributes={"votedAt": to_timestamp(now)},
                condition=Condition.item_exists(),
            ),
        ]

        async with _observed("cast_vote"):
            try:
                await self._table.transact_write(operations)
            except TransactionCanceledError as e:
                logger.info(
                    "vote_rejected_not_participant",
                    session_id=session_id,
                    user_id=user_id,
                )
                raise ParticipantNotFoundError(session_id, user_id, cause=e) from e

        VOTES_CAST.inc()
        logger.info("vote_cast", session_id=session_id, user_id=user_id)
        return vote

    # ------------------------------------------------------------------
    # Terminal transitions
    # ------------------------------------------------------------------

    async def reveal(self, session_id: str, team_id: str, channel_id: str) -> None:
        """Move an ACTIVE session to REVEALED and free the channel.

        Raises:
            NotActiveError: The session was already revealed, cancelled or expired
            SessionNotFoundError: The session does not exist
        """
        await self._close(session_id, team_id, channel_id, SessionStatus.REVEALED)

    async def cancel(self, session_id: str, team_id: str, channel_id: str) -> None:
        """Move an ACTIVE session to CANCELLED and free the channel.

        Raises:
            NotActiveError: The session was already revealed, cancelled or expired
            SessionNotFoundError: The session does not exist
        """
        await self._close(session_id, team_id, channel_id, SessionStatus.CANCELLED)

    async def expire(self, session_id: str, team_id: str, channel_id: str) -> None:
        """Move an ACTIVE session to EXPIRED and free the channel.

        Raises:
            NotActiveError: The session was already revealed, cancelled or expired
            SessionNotFoundError: The session does not exist
        """
        await self._close(session_id, team_id, channel_id, SessionStatus.EXPIRED)

    async def _close(
        self,
        session_id: str,
        team_id: str,
        channel_id: str,
        status: SessionStatus,
    ) -> None:
        stamp = to_timestamp(self._clock())
        operations = [
            Update(
                key=keys.session_meta(session_id),
                attributes={
                    "status": status.value,
                    SessionMeta.CLOSED_AT[status]: stamp,
                    "updatedAt": stamp,
                },
                condition=Condition.attribute_equals(
                    "status", SessionStatus.ACTIVE.value
                ),
            ),
            Delete(key=keys.channel_active_session(team_id, channel_id)),
        ]
        operation_name = status.value.lower()

        async with _observed(operation_name):
            try:
                await self._table.transact_write(operations)
            except TransactionCanceledError as e:
                meta = await self.get_session_meta(session_id)
                if meta is None:
                    raise SessionNotFoundError(session_id, cause=e) from e
                logger.info(
                    "session_close_rejected",
                    session_id=session_id,
                    requested=status.value,
                    current=meta.status.value,
                )
                raise NotActiveError(session_id, meta.status, cause=e) from e

        SESSIONS_CLOSED.labels(status=status.value).inc()
        logger.info(
            "session_closed",
            session_id=session_id,
            team_id=team_id,
            channel_id=channel_id,
            status=status.value,
        )

    async def expire_stale_session(
        self,
        team_id: str,
        channel_id: str,
        now: datetime | None = None,
    ) -> str | None:
        """Expire the channel's active session if it outlived its lifetime.

        A pointer whose session meta has already been purged is released.
        Returns the id of the session that was expired or released, or None
        when the channel has nothing stale (including losing a race to a
        concurrent reveal or cancel).
        """
        now = now or self._clock()
        session_id = await self.get_active_session_id(team_id, channel_id)
        if session_id is None:
            return None

        meta = await self.get_session_meta(session_id)
        if meta is None:
            return await self._release_pointer(team_id, channel_id, session_id)
        if not meta.is_stale(now):
            return None

        try:
            await self.expire(session_id, team_id, channel_id)
        except NotActiveError:
            return None
        except SessionNotFoundError:
            return await self._release_pointer(team_id, channel_id, session_id)

        logger.info(
            "stale_session_expired",
            session_id=session_id,
            team_id=team_id,
            channel_id=channel_id,
        )
        return session_id

    async def _release_pointer(
        self, team_id: str, channel_id: str, session_id: str
    ) -> str | None:
        """Delete a pointer whose session no longer exists, if it still points there."""
        operation = Delete(
            key=keys.channel_active_session(team_id, channel_id),
            condition=Condition.attribute_equals("sessionId", session_id),
        )
        async with _observed("release_pointer"):
            try:
                await self._table.transact_write([operation])
            except TransactionCanceledError:
                return None

        logger.warning(
            "stale_pointer_released",
            session_id=session_id,
            team_id=team_id,
            channel_id=channel_id,
        )
        return session_id

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_active_session_id(self, team_id: str, channel_id: str) -> str | None:
        """Id of the channel's active session, if any."""
        async with _observed("get_active_session_id"):
            item = await self._table.get_item(
                keys.channel_active_session(team_id, channel_id)
            )
        if item is None:
            return None
        return ActiveSessionPointer.from_item(item).session_id

    async def get_session_meta(self, session_id: str) -> SessionMeta | None:
        """Session meta record, if the session exists."""
        async with _observed("get_session_meta"):
            item = await self._table.get_item(keys.session_meta(session_id))
        return SessionMeta.from_item(item) if item is not None else None

    async def get_session_bundle(self, session_id: str) -> SessionBundle | None:
        """Meta, roster and votes of a session from one partition read."""
        async with _observed("get_session_bundle"):
            items = await self._table.query(keys.session_partition(session_id))

        meta: SessionMeta | None = None
        participants: list[Participant] = []
        votes: list[Vote] = []
        for item in items:
            sort_key = item["SK"]
            if sort_key == keys.META_SK:
                meta = SessionMeta.from_item(item)
            elif sort_key.startswith(keys.PARTICIPANT_PREFIX):
                participants.append(Participant.from_item(item))
            elif sort_key.startswith(keys.VOTE_PREFIX):
                votes.append(Vote.from_item(item))

        if meta is None:
            return None
        return SessionBundle(session=meta, participants=participants, votes=votes)

    async def get_quorum(self, session_id: str) -> QuorumStatus:
        """How many invited participants have voted, computed from the roster.

        Raises:
            SessionNotFoundError: The session does not exist
        """
        bundle = await self.get_session_bundle(session_id)
        if bundle is None:
            raise SessionNotFoundError(session_id)
        return bundle.quorum

    async def list_participants(self, session_id: str) -> list[Participant]:
        """Roster of a session."""
        async with _observed("list_participants"):
            items = await self._table.query(
                keys.session_partition(session_id), sk_prefix=keys.PARTICIPANT_PREFIX
            )
        return [Participant.from_item(item) for item in items]

    async def list_votes(self, session_id: str) -> list[Vote]:
        """Current votes of a session."""
        async with _observed("list_votes"):
            items = await self._table.query(
                keys.session_partition(session_id), sk_prefix=keys.VOTE_PREFIX
            )
        return [Vote.from_item(item) for item in items]
