"""Tests for poker record models and read aggregates."""

from datetime import UTC, datetime, timedelta

from scrum_poker.poker.models import (
    ActiveSessionPointer,
    DedupRecord,
    Participant,
    QuorumStatus,
    Scale,
    SessionBundle,
    SessionMeta,
    SessionStatus,
    Vote,
    new_session_id,
    to_timestamp,
)

NOW = datetime(2024, 3, 1, 9, 0, tzinfo=UTC)


def _meta(**overrides) -> SessionMeta:
    values = {
        "session_id": "s1",
        "team_id": "T1",
        "channel_id": "C1",
        "created_by": "U1",
        "created_at": NOW,
        "updated_at": NOW,
    }
    values.update(overrides)
    return SessionMeta(**values)


class TestSessionStatus:
    def test_terminal_statuses(self) -> None:
        assert SessionStatus.ACTIVE.is_terminal is False
        assert all(
            status.is_terminal
            for status in (SessionStatus.REVEALED, SessionStatus.CANCELLED, SessionStatus.EXPIRED)
        )


class TestSerialization:
    """Items use the persisted attribute names."""

    def test_meta_item_attributes(self) -> None:
        item = _meta(message_ts="1700.01", scale=Scale.TSHIRT).to_item()

        assert item["PK"] == "SESSION#s1"
        assert item["SK"] == "META"
        assert item["sessionId"] == "s1"
        assert item["slackMessageTs"] == "1700.01"
        assert item["status"] == "ACTIVE"
        assert item["scale"] == "TSHIRT"
        assert item["createdAt"] == to_timestamp(NOW)

    def test_meta_from_item(self) -> None:
        meta = _meta(story_title="Login page")
        restored = SessionMeta.from_item(meta.to_item())
        assert restored == meta

    def test_dedup_item(self) -> None:
        item = DedupRecord(
            team_id="T1", request_id="r1", received_at=NOW, ttl_epoch=1700000000
        ).to_item()
        assert item["PK"] == "DEDUP#T1"
        assert item["slackRequestId"] == "r1"
        assert item["ttlEpoch"] == 1700000000

    def test_pointer_item(self) -> None:
        item = ActiveSessionPointer(
            team_id="T1", channel_id="C1", session_id="s1", created_at=NOW
        ).to_item()
        assert (item["PK"], item["SK"], item["sessionId"]) == (
            "CHANNEL#T1#C1",
            "ACTIVE_SESSION",
            "s1",
        )

    def test_vote_item(self) -> None:
        item = Vote(session_id="s1", user_id="U2", vote_value="5").to_item()
        assert item["SK"] == "VOTE#U2"
        assert item["voteValue"] == "5"

    def test_closed_at_attributes(self) -> None:
        assert SessionMeta.CLOSED_AT[SessionStatus.REVEALED] == "revealedAt"
        assert SessionMeta.CLOSED_AT[SessionStatus.CANCELLED] == "cancelledAt"
        assert SessionMeta.CLOSED_AT[SessionStatus.EXPIRED] == "expiredAt"
        assert SessionStatus.ACTIVE not in SessionMeta.CLOSED_AT


class TestSessionMeta:
    def test_stale_after_deadline(self) -> None:
        meta = _meta(expires_at=NOW + timedelta(hours=1))
        assert meta.is_stale(NOW) is False
        assert meta.is_stale(NOW + timedelta(hours=1)) is True

    def test_no_deadline_never_stale(self) -> None:
        assert _meta().is_stale(NOW + timedelta(days=365)) is False

    def test_closed_session_never_stale(self) -> None:
        meta = _meta(status=SessionStatus.REVEALED, expires_at=NOW)
        assert meta.is_stale(NOW + timedelta(days=1)) is False


class TestQuorum:
    """Tests for read-time quorum detection."""

    def test_empty_roster_never_reached(self) -> None:
        assert QuorumStatus(voted=0, total=0).reached is False

    def test_partial(self) -> None:
        assert QuorumStatus(voted=2, total=3).reached is False

    def test_all_voted(self) -> None:
        assert QuorumStatus(voted=3, total=3).reached is True

    def test_bundle_quorum_counts_participants(self) -> None:
        bundle = SessionBundle(
            session=_meta(),
            participants=[
                Participant(session_id="s1", user_id="U1", voted_at=NOW),
                Participant(session_id="s1", user_id="U2"),
            ],
            votes=[Vote(session_id="s1", user_id="U1", vote_value="8")],
        )

        assert bundle.quorum == QuorumStatus(voted=1, total=2)
        assert bundle.vote_for("U1").vote_value == "8"
        assert bundle.vote_for("U2") is None


class TestSessionIds:
    def test_unique(self) -> None:
        assert len({new_session_id() for _ in range(100)}) == 100
