"""Key schema: logical entity identity -> (PK, SK).

Every record of one session shares the ``SESSION#<id>`` partition, so the
whole bundle (meta, participants, votes) comes back from one range query.
Identifier components are percent-encoded before joining, which keeps the
mapping injective for arbitrary strings; plain chat-platform IDs such as
``T024BE7LD`` are left unchanged.
"""

from urllib.parse import quote

from scrum_poker.db.errors import ValidationError
from scrum_poker.table.models import ItemKey

SEPARATOR = "#"

META_SK = "META"
ACTIVE_SESSION_SK = "ACTIVE_SESSION"
PARTICIPANT_PREFIX = "PARTICIPANT#"
VOTE_PREFIX = "VOTE#"


def _part(value: str) -> str:
    if not value:
        raise ValidationError("Key components must be non-empty")
    return quote(value, safe="")


def session_partition(session_id: str) -> str:
    return f"SESSION{SEPARATOR}{_part(session_id)}"


def channel_active_session(team_id: str, channel_id: str) -> ItemKey:
    return ItemKey(
        pk=f"CHANNEL{SEPARATOR}{_part(team_id)}{SEPARATOR}{_part(channel_id)}",
        sk=ACTIVE_SESSION_SK,
    )


def session_meta(session_id: str) -> ItemKey:
    return ItemKey(pk=session_partition(session_id), sk=META_SK)


def participant(session_id: str, user_id: str) -> ItemKey:
    return ItemKey(
        pk=session_partition(session_id),
        sk=f"{PARTICIPANT_PREFIX}{_part(user_id)}",
    )


def vote(session_id: str, user_id: str) -> ItemKey:
    return ItemKey(
        pk=session_partition(session_id),
        sk=f"{VOTE_PREFIX}{_part(user_id)}",
    )


def dedup(team_id: str, request_id: str) -> ItemKey:
    return ItemKey(
        pk=f"DEDUP{SEPARATOR}{_part(team_id)}",
        sk=f"REQ{SEPARATOR}{_part(request_id)}",
    )
