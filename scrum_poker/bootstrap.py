"""Process bootstrap for the session store.

Resolves configuration once, wires logging, metrics and the table backend,
and hands back a ready ``PokerSessionStore``. Callers (the ingress and
worker layers) build the store here and pass it around explicitly.

Example usage:

    from scrum_poker.bootstrap import bootstrap, register_jobs

    store = bootstrap()
    register_jobs(store)
    if await store.record_dedup(team_id, request_id):
        await store.create_session(...)
"""

from typing import Any

import redis.asyncio as redis

from scrum_poker.config import get_settings
from scrum_poker.config.settings import Settings
from scrum_poker.jobs.client import HatchetClient
from scrum_poker.jobs.workflows.session_expiry import register_workflow
from scrum_poker.observability.logging import configure_logging, get_logger
from scrum_poker.observability.metrics import start_metrics_server
from scrum_poker.poker.store import PokerSessionStore
from scrum_poker.table.factory import create_table

logger = get_logger(__name__)


def bootstrap(
    settings: Settings | None = None,
    *,
    redis_client: redis.Redis | None = None,
    serve_metrics: bool = False,
) -> PokerSessionStore:
    """Build a PokerSessionStore from configuration.

    Args:
        settings: Settings to use (default: loaded via get_settings())
        redis_client: Pre-built Redis client for the redis backend
        serve_metrics: Start the Prometheus exporter as well
    """
    settings = settings or get_settings()
    configure_logging(settings.observability.logging)

    if serve_metrics:
        start_metrics_server(settings.observability.metrics)

    table = create_table(settings.storage.table, client=redis_client)
    logger.info(
        "session_store_ready",
        app_name=settings.app_name,
        backend=settings.storage.table.backend,
        max_roster_size=settings.storage.max_transaction_items - 2,
    )
    return PokerSessionStore(table, config=settings.storage)


def register_jobs(
    store: PokerSessionStore,
    settings: Settings | None = None,
    client: HatchetClient | None = None,
) -> Any | None:
    """Register the stale-session expiry workflow with Hatchet.

    Schedule and step retries come from ``settings.jobs.hatchet``.
    Returns the registered workflow, or None when Hatchet is unavailable.
    """
    settings = settings or get_settings()
    hatchet_config = settings.jobs.hatchet
    client = client or HatchetClient(hatchet_config)

    hatchet = client.get_client()
    if hatchet is None:
        return None

    workflow = register_workflow(
        hatchet,
        store,
        settings.storage,
        cron=hatchet_config.cron_expire_sessions,
        retries=hatchet_config.retry_max_attempts,
        retry_delay_seconds=hatchet_config.retry_backoff_seconds,
    )
    logger.info(
        "expiry_workflow_registered",
        cron=hatchet_config.cron_expire_sessions,
    )
    return workflow
