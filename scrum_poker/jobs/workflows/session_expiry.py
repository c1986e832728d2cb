"""Stale session expiry workflow.

Scheduled job that moves ACTIVE sessions past their lifetime to EXPIRED
and frees their channels. Runs every 15 minutes by default.
"""

from dataclasses import dataclass, field
from typing import Any

from scrum_poker.config.models.storage import StorageConfig
from scrum_poker.db.errors import StoreError
from scrum_poker.observability.logging import get_logger
from scrum_poker.poker.retry import retry_transient
from scrum_poker.poker.store import PokerSessionStore

logger = get_logger(__name__)


@dataclass
class ExpireSessionsInput:
    """Input for expire stale sessions workflow."""

    team_id: str | None = None
    channel_ids: list[str] = field(default_factory=list)


@dataclass
class ExpireSessionsOutput:
    """Output from expire stale sessions workflow."""

    expired_session_ids: list[str]
    team_id: str | None
    success: bool
    error: str | None = None

    @property
    def expired_count(self) -> int:
        return len(self.expired_session_ids)


class ExpireStaleSessionsWorkflow:
    """Workflow to expire stale sessions in a team's channels.

    This workflow:
    1. Follows each channel's active-session pointer
    2. Expires the session when its lifetime has passed
    3. Logs results for observability

    Idempotent: the ACTIVE -> EXPIRED transition is conditional, so a
    rerun (or a concurrent reveal) turns into a no-op for that channel.
    """

    WORKFLOW_NAME = "expire-stale-sessions"
    CRON_SCHEDULE = "*/15 * * * *"

    def __init__(
        self,
        store: PokerSessionStore,
        config: StorageConfig | None = None,
    ) -> None:
        self._store = store
        self._config = config or StorageConfig()

    async def run(self, input_data: ExpireSessionsInput) -> ExpireSessionsOutput:
        """Execute the expiry workflow."""
        team_id = input_data.team_id
        if not team_id:
            logger.warning(
                "expire_stale_sessions_no_team",
                message="No team_id provided, skipping expiry",
            )
            return ExpireSessionsOutput(
                expired_session_ids=[],
                team_id=None,
                success=True,
                error="No team_id provided",
            )

        expired: list[str] = []
        try:
            for channel_id in dict.fromkeys(input_data.channel_ids):
                session_id = await retry_transient(
                    lambda channel_id=channel_id: self._store.expire_stale_session(
                        team_id, channel_id
                    ),
                    attempts=self._config.transient_retry_attempts,
                    base_delay_seconds=self._config.transient_retry_base_delay,
                    operation_name="expire_stale_session",
                )
                if session_id is not None:
                    expired.append(session_id)
        except StoreError as e:
            logger.error(
                "expire_stale_sessions_failed",
                team_id=team_id,
                expired_count=len(expired),
                error=str(e),
            )
            return ExpireSessionsOutput(
                expired_session_ids=expired,
                team_id=team_id,
                success=False,
                error=str(e),
            )

        logger.info(
            "stale_sessions_expired",
            team_id=team_id,
            channel_count=len(input_data.channel_ids),
            expired_count=len(expired),
        )
        return ExpireSessionsOutput(
            expired_session_ids=expired,
            team_id=team_id,
            success=True,
        )


def register_workflow(
    hatchet: Any,
    store: PokerSessionStore,
    config: StorageConfig | None = None,
    cron: str = ExpireStaleSessionsWorkflow.CRON_SCHEDULE,
    retries: int = 3,
    retry_delay_seconds: int = 60,
) -> Any:
    """Register the expire stale sessions workflow with Hatchet.

    Args:
        hatchet: Hatchet SDK instance
        store: Session store for expiry operations
        config: Storage settings (retry policy)
        cron: Cron schedule
        retries: Hatchet step retries after a failed run
        retry_delay_seconds: Delay between step retries
    """
    workflow_instance = ExpireStaleSessionsWorkflow(store, config)

    @hatchet.workflow(
        name=ExpireStaleSessionsWorkflow.WORKFLOW_NAME,
        on_crons=[cron],
    )
    class HatchetExpireStaleSessionsWorkflow:
        """Hatchet workflow wrapper for expire stale sessions."""

        @hatchet.step(retries=retries, retry_delay=f"{retry_delay_seconds}s")
        async def expire_sessions(self, context: Any) -> dict:
            input_data = context.workflow_input() or {}
            result = await workflow_instance.run(
                ExpireSessionsInput(
                    team_id=input_data.get("team_id"),
                    channel_ids=list(input_data.get("channel_ids") or []),
                )
            )
            return {
                "expired_session_ids": result.expired_session_ids,
                "team_id": result.team_id,
                "success": result.success,
                "error": result.error,
            }

    return HatchetExpireStaleSessionsWorkflow
