"""Enums for the poker session domain."""

from enum import Enum


class SessionStatus(str, Enum):
    """Lifecycle status of a poker session.

    ACTIVE is the only non-terminal status; a session never returns to it.
    """

    ACTIVE = "ACTIVE"
    REVEALED = "REVEALED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"

    @property
    def is_terminal(self) -> bool:
        return self is not SessionStatus.ACTIVE


class Scale(str, Enum):
    """Vote scale offered to participants."""

    FIBONACCI = "FIBONACCI"
    TSHIRT = "TSHIRT"
    CUSTOM = "CUSTOM"
