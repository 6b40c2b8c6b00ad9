"""Narrative events emitted by the engine for external fan-out"""

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union
from pydantic import BaseModel, Field
from datetime import datetime

from mafia.types.game import DetectiveResult, GamePhase, Role, Winner, utcnow


class Faction(str, Enum):
    """Faction revealed when a player dies"""
    MAFIA = "mafia"
    NOT_MAFIA = "not_mafia"


class NightOutcome(str, Enum):
    """How a night ended"""
    DEATH = "death"
    SAVED = "saved"
    PEACEFUL = "peaceful"


class BaseEvent(BaseModel):
    """Fields shared by every event"""
    room_id: str
    day_number: int = Field(1, ge=1)
    visibility: str = Field("public", description="'public' or the role allowed to see it")
    created_at: datetime = Field(default_factory=utcnow)


class GameStarted(BaseEvent):
    type: Literal["game_started"] = "game_started"
    player_count: int


class PhaseChanged(BaseEvent):
    type: Literal["phase_changed"] = "phase_changed"
    new_phase: GamePhase


class NightResolved(BaseEvent):
    type: Literal["night_resolved"] = "night_resolved"
    outcome: NightOutcome
    victim_id: Optional[str] = None
    revealed_faction: Optional[Faction] = None


class VoteResolved(BaseEvent):
    type: Literal["vote_resolved"] = "vote_resolved"
    eliminated_id: Optional[str] = None
    tie: bool = False
    revealed_faction: Optional[Faction] = None


class GameEnded(BaseEvent):
    type: Literal["game_ended"] = "game_ended"
    winner: Optional[Winner] = None
    forced: bool = Field(False, description="Ended by the host rather than by the rules")


class InvestigationCompleted(BaseEvent):
    """Private result for the detective who submitted the investigation"""
    type: Literal["investigation_completed"] = "investigation_completed"
    detective_id: str
    target_id: str
    result: DetectiveResult
    visibility: str = Role.DETECTIVE.value


class PlayerRemoved(BaseEvent):
    type: Literal["player_removed"] = "player_removed"
    player_id: str


class GameRestarted(BaseEvent):
    type: Literal["game_restarted"] = "game_restarted"


GameEvent = Annotated[
    Union[
        GameStarted,
        PhaseChanged,
        NightResolved,
        VoteResolved,
        GameEnded,
        InvestigationCompleted,
        PlayerRemoved,
        GameRestarted,
    ],
    Field(discriminator="type"),
]


def public_events(events: List[BaseEvent]) -> List[BaseEvent]:
    """Events safe to broadcast to every room member."""
    return [e for e in events if e.visibility == "public"]


def faction_of(role: Optional[Role]) -> Faction:
    return Faction.MAFIA if role == Role.MAFIA else Faction.NOT_MAFIA
