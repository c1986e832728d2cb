"""Poker session domain: key schema, records and the session store."""

from scrum_poker.poker.models import (
    QuorumStatus,
    Scale,
    SessionBundle,
    SessionStatus,
    new_session_id,
)
from scrum_poker.poker.retry import retry_transient
from scrum_poker.poker.store import PokerSessionStore

__all__ = [
    "PokerSessionStore",
    "QuorumStatus",
    "Scale",
    "SessionBundle",
    "SessionStatus",
    "new_session_id",
    "retry_transient",
]
