"""Scrum Poker: transactional session store for chat planning-poker votes.

Sessions, participants and votes live in one shared key-value keyspace.
Every cross-entity invariant is enforced by a single atomic multi-item
transaction rather than by application-level locking.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
