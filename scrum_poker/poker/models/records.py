"""Stored record models.

Each model maps one-to-one to an item in the shared keyspace. Field
aliases are the persisted attribute names and must not change without a
data migration.
"""

from datetime import UTC, datetime
from typing import ClassVar, Self
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from scrum_poker.poker import keys
from scrum_poker.poker.models.enums import Scale, SessionStatus
from scrum_poker.table.models import Item, ItemKey


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


_DATETIME = TypeAdapter(datetime)


def to_timestamp(value: datetime) -> str:
    """Serialize a datetime exactly as stored records do."""
    return _DATETIME.dump_python(value, mode="json")


def new_session_id() -> str:
    """Generate a collision-resistant session identifier."""
    return uuid4().hex


class Record(BaseModel):
    """Base for models persisted as table items."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def key(self) -> ItemKey:
        raise NotImplementedError

    def to_item(self) -> Item:
        """Serialize to a table item including its PK/SK."""
        return {
            **self.key.as_attributes(),
            **self.model_dump(mode="json", by_alias=True),
        }

    @classmethod
    def from_item(cls, item: Item) -> Self:
        """Parse a table item; key attributes are ignored."""
        return cls.model_validate(item)


class DedupRecord(Record):
    """Marker that an inbound request id has been seen for a team."""

    team_id: str = Field(..., description="Chat workspace")
    request_id: str = Field(
        ..., alias="slackRequestId", description="Inbound request identifier"
    )
    received_at: datetime = Field(default_factory=utc_now, description="First receipt")
    ttl_epoch: int = Field(..., description="Expiry (epoch seconds)")

    @property
    def key(self) -> ItemKey:
        return keys.dedup(self.team_id, self.request_id)


class ActiveSessionPointer(Record):
    """The channel's one active session; its existence is the invariant."""

    team_id: str = Field(..., description="Chat workspace")
    channel_id: str = Field(..., description="Channel")
    session_id: str = Field(..., description="Active session")
    created_at: datetime = Field(default_factory=utc_now, description="Creation time")

    @property
    def key(self) -> ItemKey:
        return keys.channel_active_session(self.team_id, self.channel_id)


class SessionMeta(Record):
    """Session header: who, where, what is estimated, and lifecycle status."""

    session_id: str = Field(..., description="Unique identifier")
    team_id: str = Field(..., description="Chat workspace")
    channel_id: str = Field(..., description="Channel hosting the session")
    created_by: str = Field(..., description="Facilitator user id")
    status: SessionStatus = Field(
        default=SessionStatus.ACTIVE, description="Current status"
    )
    story_title: str = Field(default="", description="Story being estimated")
    story_url: str | None = Field(default=None, description="Link to the story")
    scale: Scale = Field(default=Scale.FIBONACCI, description="Vote scale")
    message_ts: str | None = Field(
        default=None, alias="slackMessageTs", description="Session message timestamp"
    )
    message_channel: str | None = Field(
        default=None, alias="slackMessageChannel", description="Session message channel"
    )
    revealed_at: datetime | None = Field(default=None, description="Reveal time")
    cancelled_at: datetime | None = Field(default=None, description="Cancel time")
    expired_at: datetime | None = Field(default=None, description="Expiry time")
    expires_at: datetime | None = Field(
        default=None, description="When an ACTIVE session may be expired"
    )
    ttl_epoch: int | None = Field(
        default=None, description="Physical purge time (epoch seconds)"
    )
    created_at: datetime = Field(default_factory=utc_now, description="Creation time")
    updated_at: datetime = Field(default_factory=utc_now, description="Last change")

    # Timestamp attribute stamped by each terminal transition.
    CLOSED_AT: ClassVar[dict[SessionStatus, str]] = {
        SessionStatus.REVEALED: "revealedAt",
        SessionStatus.CANCELLED: "cancelledAt",
        SessionStatus.EXPIRED: "expiredAt",
    }

    @property
    def key(self) -> ItemKey:
        return keys.session_meta(self.session_id)

    def is_stale(self, now: datetime) -> bool:
        """Whether an ACTIVE session outlived its lifetime."""
        return (
            self.status == SessionStatus.ACTIVE
            and self.expires_at is not None
            and self.expires_at <= now
        )


class Participant(Record):
    """Roster entry; ``voted_at`` is set on first vote and refreshed on re-vote."""

    session_id: str
    user_id: str
    invited_at: datetime = Field(default_factory=utc_now)
    voted_at: datetime | None = None

    @property
    def key(self) -> ItemKey:
        return keys.participant(self.session_id, self.user_id)

    @property
    def has_voted(self) -> bool:
        return self.voted_at is not None


class Vote(Record):
    """A participant's current vote; re-voting overwrites it."""

    session_id: str
    user_id: str
    vote_value: str
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def key(self) -> ItemKey:
        return keys.vote(self.session_id, self.user_id)
