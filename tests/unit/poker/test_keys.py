"""Tests for the key schema."""

import pytest

from scrum_poker.db.errors import ValidationError
from scrum_poker.poker import PokerSessionStore, keys
from scrum_poker.table.inmemory import InMemoryTable
from scrum_poker.table.models import ItemKey


class TestKeyLayout:
    def test_channel_active_session(self) -> None:
        assert keys.channel_active_session("T024BE7LD", "C1") == ItemKey(
            pk="CHANNEL#T024BE7LD#C1", sk="ACTIVE_SESSION"
        )

    def test_session_records_share_partition(self) -> None:
        meta = keys.session_meta("abc")
        participant = keys.participant("abc", "U1")
        vote = keys.vote("abc", "U1")

        assert meta == ItemKey(pk="SESSION#abc", sk="META")
        assert participant == ItemKey(pk="SESSION#abc", sk="PARTICIPANT#U1")
        assert vote == ItemKey(pk="SESSION#abc", sk="VOTE#U1")
        assert keys.session_partition("abc") == "SESSION#abc"

    def test_dedup(self) -> None:
        assert keys.dedup("T1", "req-1") == ItemKey(pk="DEDUP#T1", sk="REQ#req-1")


class TestInjectivity:
    """Distinct identities must never share a key."""

    def test_separator_in_components(self) -> None:
        assert keys.channel_active_session("a#b", "c") != keys.channel_active_session(
            "a", "b#c"
        )

    def test_participant_and_vote_never_collide(self) -> None:
        assert keys.participant("s", "x") != keys.vote("s", "x")
        assert not keys.vote("s", "x").sk.startswith(keys.PARTICIPANT_PREFIX)

    def test_percent_in_component(self) -> None:
        assert keys.vote("s", "%23") != keys.vote("s", "#")

    def test_empty_component_rejected(self) -> None:
        with pytest.raises(ValidationError):
            keys.session_meta("")

    @pytest.mark.asyncio
    async def test_store_rejects_empty_user_id(self) -> None:
        store = PokerSessionStore(InMemoryTable())
        with pytest.raises(ValidationError):
            await store.cast_vote("s1", "", "5")
