"""Read-side aggregates built from one session partition."""

from pydantic import BaseModel, Field

from scrum_poker.poker.models.records import Participant, SessionMeta, Vote


class QuorumStatus(BaseModel):
    """How many of the invited participants have voted."""

    voted: int = Field(..., ge=0)
    total: int = Field(..., ge=0)

    @property
    def reached(self) -> bool:
        """True once every invited participant has voted."""
        return self.total > 0 and self.voted == self.total


class SessionBundle(BaseModel):
    """A session's meta record with its full roster and current votes."""

    session: SessionMeta
    participants: list[Participant] = Field(default_factory=list)
    votes: list[Vote] = Field(default_factory=list)

    @property
    def quorum(self) -> QuorumStatus:
        voted = sum(1 for participant in self.participants if participant.has_voted)
        return QuorumStatus(voted=voted, total=len(self.participants))

    def vote_for(self, user_id: str) -> Vote | None:
        """The current vote of one participant, if any."""
        for vote in self.votes:
            if vote.user_id == user_id:
                return vote
        return None
