"""Store error hierarchy for Scrum Poker."""

from scrum_poker.db.errors import (
    AlreadyActiveError,
    ConditionalCheckFailedError,
    ConflictError,
    NotActiveError,
    NotFoundError,
    ParticipantNotFoundError,
    PreconditionFailedError,
    RosterTooLargeError,
    SessionNotFoundError,
    StoreError,
    TransactionCanceledError,
    TransientStoreError,
    ValidationError,
)

__all__ = [
    "StoreError",
    "TransientStoreError",
    "ConflictError",
    "AlreadyActiveError",
    "NotFoundError",
    "SessionNotFoundError",
    "ParticipantNotFoundError",
    "PreconditionFailedError",
    "NotActiveError",
    "ValidationError",
    "RosterTooLargeError",
    "ConditionalCheckFailedError",
    "TransactionCanceledError",
]
