"""Day vote recording and tallying"""

import logging
from collections import Counter
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from mafia.errors.handler import (
    AuthorizationError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from mafia.types.game import GamePhase, RoomSnapshot, Vote, utcnow

logger = logging.getLogger(__name__)


class TallyResult(BaseModel):
    """Outcome of counting one day's votes"""
    eliminated_id: Optional[str] = None
    tie: bool = False
    counts: Dict[str, int] = Field(default_factory=dict)

    @property
    def inconclusive(self) -> bool:
        return self.eliminated_id is None and not self.tie


class VoteTally:
    """Per-day record of votes with last-write-wins upserts"""

    @staticmethod
    def cast_vote(snapshot: RoomSnapshot, voter_id: str, target_id: Optional[str]) -> Vote:
        """
        Record or replace the voter's vote for the current day.
        A None target is an abstention.
        """
        game = snapshot.game
        if game is None or game.phase != GamePhase.DAY_VOTING:
            raise PreconditionError("Voting only allowed during day voting phase", reason="wrong_phase")

        voter = snapshot.room.get_player(voter_id)
        if voter is None:
            raise NotFoundError("Player not in this room", reason="voter_not_found")
        if not voter.is_alive:
            raise AuthorizationError("Dead players cannot vote", reason="voter_dead")

        if target_id is not None:
            target = snapshot.room.get_player(target_id)
            if target is None:
                raise NotFoundError("Target not found", reason="target_not_found")
            if not target.is_alive:
                raise ValidationError("Cannot vote for dead players", reason="target_dead")

        for vote in snapshot.votes:
            if vote.voter_id == voter_id and vote.day_number == game.day_number:
                vote.target_id = target_id
                vote.created_at = utcnow()
                logger.info(f"Room {snapshot.room_id}: {voter_id} changed vote on day {game.day_number}")
                return vote

        vote = Vote(
            room_id=snapshot.room_id,
            voter_id=voter_id,
            day_number=game.day_number,
            target_id=target_id,
        )
        snapshot.votes.append(vote)
        logger.info(f"Room {snapshot.room_id}: {voter_id} voted on day {game.day_number}")
        return vote

    @staticmethod
    def count(votes: List[Vote], day_number: int) -> Dict[str, int]:
        """Votes per target for the day; abstentions are not counted."""
        return dict(Counter(
            v.target_id for v in votes
            if v.day_number == day_number and v.target_id is not None
        ))

    @staticmethod
    def tally(votes: List[Vote], day_number: int) -> TallyResult:
        """
        Find the plurality target for the day.
        Ties are never broken: a shared maximum eliminates nobody.
        """
        counts = VoteTally.count(votes, day_number)
        if not counts:
            return TallyResult(counts=counts)

        max_votes = max(counts.values())
        leaders = [target_id for target_id, n in counts.items() if n == max_votes]

        if len(leaders) > 1:
            return TallyResult(tie=True, counts=counts)
        return TallyResult(eliminated_id=leaders[0], counts=counts)

    @staticmethod
    def all_voted(snapshot: RoomSnapshot) -> bool:
        """Every living player has a vote row for the current day."""
        day = snapshot.game.day_number
        voters = {v.voter_id for v in snapshot.votes_for_day(day)}
        return all(p.id in voters for p in snapshot.room.alive_players())
