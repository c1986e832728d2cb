"""Store error hierarchy.

Every failure the session store reports is one of these types. Only
``TransientStoreError`` is safe to retry; the others are definitive
outcomes of a conditional write.
"""

from typing import Any


class StoreError(Exception):
    """Base exception for all store errors.

    Backend-specific exceptions are wrapped in one of the subclasses and
    kept on ``cause``.
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class TransientStoreError(StoreError):
    """Raised when the backing store is unreachable or throttled.

    Examples:
        - Redis server unavailable
        - Socket timeout
        - Connection reset mid-request

    A write that failed this way may or may not have committed. Retrying
    is safe because every write is conditional.
    """

    pass


class ConflictError(StoreError):
    """Raised when a uniqueness condition is violated.

    Examples:
        - Session id already in use
        - Duplicate participant record
    """

    pass


class AlreadyActiveError(ConflictError):
    """Raised when the channel already has an active session."""

    def __init__(
        self,
        team_id: str,
        channel_id: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            f"Channel {channel_id} in team {team_id} already has an active session",
            cause=cause,
        )
        self.team_id = team_id
        self.channel_id = channel_id


class NotFoundError(StoreError):
    """Raised when a referenced entity does not exist at operation time."""

    pass


class SessionNotFoundError(NotFoundError):
    """Raised when a session id has no SessionMeta record."""

    def __init__(self, session_id: str, cause: Exception | None = None) -> None:
        super().__init__(f"Session not found: {session_id}", cause=cause)
        self.session_id = session_id


class ParticipantNotFoundError(NotFoundError):
    """Raised when a user is not on the session roster."""

    def __init__(
        self,
        session_id: str,
        user_id: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            f"User {user_id} is not a participant of session {session_id}",
            cause=cause,
        )
        self.session_id = session_id
        self.user_id = user_id


class PreconditionFailedError(StoreError):
    """Raised when a status-transition guard fails."""

    pass


class NotActiveError(PreconditionFailedError):
    """Raised when a session is no longer ACTIVE.

    ``status`` carries the status observed after the failed transition
    (REVEALED, CANCELLED or EXPIRED) so callers can say which.
    """

    def __init__(
        self,
        session_id: str,
        status: Any = None,
        cause: Exception | None = None,
    ) -> None:
        detail = f" (status: {getattr(status, 'value', status)})" if status else ""
        super().__init__(f"Session {session_id} is not active{detail}", cause=cause)
        self.session_id = session_id
        self.status = status


class ValidationError(StoreError):
    """Raised on input the store refuses to send.

    Examples:
        - Roster too large for one transaction
        - Empty identifier
    """

    pass


class RosterTooLargeError(ValidationError):
    """Raised when a roster does not fit in one creation transaction."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(
            f"Roster of {size} participants exceeds the limit of {limit} "
            "for a single session-creation transaction"
        )
        self.size = size
        self.limit = limit


class ConditionalCheckFailedError(StoreError):
    """Raised by the table when a single-item conditional put is rejected."""

    pass


class TransactionCanceledError(StoreError):
    """Raised by the table when a transaction is rejected as a whole.

    ``reasons[i]`` names why operation ``i`` failed its condition, or is
    ``None`` when that operation's condition held. Nothing was written.
    """

    def __init__(self, reasons: list[str | None]) -> None:
        super().__init__(f"Transaction cancelled, reasons: {reasons}")
        self.reasons = reasons

    def failed_indexes(self) -> list[int]:
        """Positions of the operations whose condition failed."""
        return [i for i, reason in enumerate(self.reasons) if reason is not None]
