"""Unit tests for Hatchet workflows.

Tests workflow logic, idempotency, and error handling.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from scrum_poker.config.models.storage import StorageConfig
from scrum_poker.db.errors import StoreError, TransientStoreError
from scrum_poker.jobs.workflows import (
    ExpireSessionsInput,
    ExpireStaleSessionsWorkflow,
    register_workflow,
)
from scrum_poker.poker import PokerSessionStore, Scale, SessionStatus
from scrum_poker.table.inmemory import InMemoryTable


@pytest.fixture
def mock_session_store():
    """Create a mock session store."""
    store = AsyncMock()
    store.expire_stale_session = AsyncMock(side_effect=["s1", None, "s3"])
    return store


@pytest.fixture
def fast_retries() -> StorageConfig:
    return StorageConfig(transient_retry_attempts=2, transient_retry_base_delay=0.001)


class TestExpireStaleSessionsWorkflow:
    """Tests for ExpireStaleSessionsWorkflow."""

    def test_workflow_name(self):
        assert ExpireStaleSessionsWorkflow.WORKFLOW_NAME == "expire-stale-sessions"

    def test_workflow_cron_schedule(self):
        """Test workflow runs every 15 minutes."""
        assert ExpireStaleSessionsWorkflow.CRON_SCHEDULE == "*/15 * * * *"

    @pytest.mark.asyncio
    async def test_run_collects_expired_sessions(self, mock_session_store):
        workflow = ExpireStaleSessionsWorkflow(mock_session_store)

        result = await workflow.run(
            ExpireSessionsInput(team_id="T1", channel_ids=["C1", "C2", "C3"])
        )

        assert result.success is True
        assert result.expired_session_ids == ["s1", "s3"]
        assert result.expired_count == 2
        assert result.team_id == "T1"
        assert result.error is None
        assert mock_session_store.expire_stale_session.await_count == 3

    @pytest.mark.asyncio
    async def test_run_without_team(self, mock_session_store):
        workflow = ExpireStaleSessionsWorkflow(mock_session_store)

        result = await workflow.run(ExpireSessionsInput(team_id=None, channel_ids=["C1"]))

        assert result.success is True
        assert result.expired_count == 0
        assert result.error == "No team_id provided"
        mock_session_store.expire_stale_session.assert_not_called()

    @pytest.mark.asyncio
    async def test_duplicate_channels_swept_once(self, mock_session_store):
        workflow = ExpireStaleSessionsWorkflow(mock_session_store)

        await workflow.run(ExpireSessionsInput(team_id="T1", channel_ids=["C1", "C1"]))

        mock_session_store.expire_stale_session.assert_awaited_once_with("T1", "C1")

    @pytest.mark.asyncio
    async def test_transient_errors_retried(self, fast_retries):
        store = AsyncMock()
        store.expire_stale_session = AsyncMock(
            side_effect=[TransientStoreError("down"), "s1"]
        )
        workflow = ExpireStaleSessionsWorkflow(store, fast_retries)

        result = await workflow.run(ExpireSessionsInput(team_id="T1", channel_ids=["C1"]))

        assert result.success is True
        assert result.expired_session_ids == ["s1"]

    @pytest.mark.asyncio
    async def test_store_error_reported(self, fast_retries):
        store = AsyncMock()
        store.expire_stale_session = AsyncMock(side_effect=["s1", StoreError("boom")])
        workflow = ExpireStaleSessionsWorkflow(store, fast_retries)

        result = await workflow.run(
            ExpireSessionsInput(team_id="T1", channel_ids=["C1", "C2"])
        )

        assert result.success is False
        assert result.expired_session_ids == ["s1"]
        assert "boom" in result.error

    @pytest.mark.asyncio
    async def test_idempotent_against_real_store(self, clock):
        store = PokerSessionStore(
            InMemoryTable(clock=clock),
            config=StorageConfig(session_lifetime_seconds=60),
            clock=clock,
        )
        await store.create_session("s1", "T1", "C1", "U1", Scale.FIBONACCI, ["U1"])
        clock.advance(minutes=5)
        workflow = ExpireStaleSessionsWorkflow(store)
        request = ExpireSessionsInput(team_id="T1", channel_ids=["C1"])

        first = await workflow.run(request)
        second = await workflow.run(request)

        assert first.expired_session_ids == ["s1"]
        assert second.expired_session_ids == []
        assert (await store.get_session_meta("s1")).status == SessionStatus.EXPIRED


class TestRegisterWorkflow:
    def test_registers_with_cron(self, mock_session_store):
        hatchet = MagicMock()
        hatchet.workflow.return_value = lambda cls: cls
        hatchet.step.return_value = lambda fn: fn

        registered = register_workflow(hatchet, mock_session_store, cron="0 * * * *")

        hatchet.workflow.assert_called_once_with(
            name="expire-stale-sessions", on_crons=["0 * * * *"]
        )
        assert hasattr(registered, "expire_sessions")

    @pytest.mark.asyncio
    async def test_step_runs_workflow(self, mock_session_store):
        hatchet = MagicMock()
        hatchet.workflow.return_value = lambda cls: cls
        hatchet.step.return_value = lambda fn: fn
        registered = register_workflow(hatchet, mock_session_store)
        context = MagicMock()
        context.workflow_input.return_value = {"team_id": "T1", "channel_ids": ["C1"]}

        output = await registered().expire_sessions(context)

        assert output == {
            "expired_session_ids": ["s1"],
            "team_id": "T1",
            "success": True,
            "error": None,
        }


class TestHatchetClient:
    def test_disabled_returns_none(self):
        from scrum_poker.config.models.jobs import HatchetConfig
        from scrum_poker.jobs import HatchetClient

        client = HatchetClient(HatchetConfig(enabled=False))

        assert client.get_client() is None
        assert client.is_available is False

    def test_enabled_builds_sdk_client_once(self):
        from scrum_poker.config.models.jobs import HatchetConfig
        from scrum_poker.jobs import HatchetClient

        sdk = MagicMock()
        fake_module = MagicMock(Hatchet=sdk)
        client = HatchetClient(HatchetConfig(enabled=True, api_key="k"))

        with patch.dict("sys.modules", {"hatchet_sdk": fake_module}):
            first = client.get_client()
            second = client.get_client()

        assert first is second
        sdk.assert_called_once_with(server_url="http://localhost:7077", api_key="k")
        assert client.is_available is True

    def test_init_failure_returns_none(self):
        from scrum_poker.config.models.jobs import HatchetConfig
        from scrum_poker.jobs import HatchetClient

        fake_module = MagicMock()
        fake_module.Hatchet.side_effect = RuntimeError("no engine")
        client = HatchetClient(HatchetConfig(enabled=True))

        with patch.dict("sys.modules", {"hatchet_sdk": fake_module}):
            assert client.get_client() is None
