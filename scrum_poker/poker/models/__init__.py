"""Poker session domain models.

- Stored records: DedupRecord, ActiveSessionPointer, SessionMeta,
  Participant, Vote
- Read aggregates: SessionBundle, QuorumStatus
"""

from scrum_poker.poker.models.bundle import QuorumStatus, SessionBundle
from scrum_poker.poker.models.enums import Scale, SessionStatus
from scrum_poker.poker.models.records import (
    ActiveSessionPointer,
    DedupRecord,
    Participant,
    Record,
    SessionMeta,
    Vote,
    new_session_id,
    to_timestamp,
    utc_now,
)

__all__ = [
    # Enums
    "Scale",
    "SessionStatus",
    # Records
    "Record",
    "DedupRecord",
    "ActiveSessionPointer",
    "SessionMeta",
    "Participant",
    "Vote",
    # Aggregates
    "SessionBundle",
    "QuorumStatus",
    # Helpers
    "new_session_id",
    "to_timestamp",
    "utc_now",
]
