"""Background job infrastructure.

Hatchet-based scheduling for the stale session expiry sweep.

Usage:
    from scrum_poker.bootstrap import bootstrap, register_jobs

    store = bootstrap()
    register_jobs(store)  # schedule and retries from settings.jobs.hatchet
"""

from scrum_poker.jobs.client import HatchetClient

__all__ = ["HatchetClient"]
