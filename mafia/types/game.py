"""Game state models for the Mafia room engine"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, model_validator
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Timezone-aware UTC now."""
    return datetime.now(timezone.utc)


class GamePhase(str, Enum):
    """Authoritative phases of a Mafia game"""
    LOBBY = "lobby"
    NIGHT = "night"
    DAY_VOTING = "day_voting"
    GAME_OVER = "game_over"


class RoomStatus(str, Enum):
    """Lifecycle of a room as seen by the lobby"""
    WAITING = "waiting"
    PLAYING = "playing"
    FINISHED = "finished"


class Role(str, Enum):
    """Secret roles handed out at game start"""
    MAFIA = "mafia"
    DOCTOR = "doctor"
    DETECTIVE = "detective"
    CIVILIAN = "civilian"


class Winner(str, Enum):
    """Winning faction"""
    MAFIA = "mafia"
    CIVILIANS = "civilians"


class DetectiveResult(str, Enum):
    """Outcome of a detective investigation"""
    MAFIA = "mafia"
    NOT_MAFIA = "not_mafia"


class NightMode(str, Enum):
    """How the external scheduler ends a night"""
    TIMED = "timed"
    ACTION_COMPLETE = "action_complete"


class RoomConfig(BaseModel):
    """Room configuration owned by the lobby, read-only to the engine"""
    mafia_count: int = Field(1, ge=1, description="Number of mafia")
    doctor_count: int = Field(1, ge=0, description="Number of doctors")
    detective_count: int = Field(1, ge=0, description="Number of detectives")
    min_players: int = Field(4, ge=2, description="Players required to start")
    max_players: int = Field(15, ge=2, description="Room capacity")
    night_mode: NightMode = Field(NightMode.ACTION_COMPLETE)
    night_duration: int = Field(30, gt=0, description="Night length in seconds (timed mode)")
    day_duration: int = Field(60, gt=0, description="Day length in seconds")
    voting_duration: Optional[int] = Field(None, gt=0, description="Voting timer override in seconds")
    reveal_roles_on_death: bool = Field(True, description="Reveal faction of eliminated players")
    show_vote_counts: bool = Field(True, description="Show per-target vote counts during voting")

    @model_validator(mode="after")
    def _check_bounds(self) -> "RoomConfig":
        if self.min_players > self.max_players:
            raise ValueError("min_players cannot exceed max_players")
        return self


class Player(BaseModel):
    """Roster entry for one member of a room"""
    id: str = Field(..., description="Room player id")
    nickname: str = Field("", description="Display name")
    is_ready: bool = Field(False)
    is_alive: bool = Field(True)
    role: Optional[Role] = Field(None, description="Assigned role, None before the game starts")


class Room(BaseModel):
    """Roster and configuration snapshot the engine consumes"""
    id: str = Field(..., description="Unique identifier for the room")
    host_id: str = Field(..., description="Player id of the host")
    status: RoomStatus = Field(RoomStatus.WAITING)
    config: RoomConfig = Field(default_factory=RoomConfig)
    players: List[Player] = Field(default_factory=list)

    def get_player(self, player_id: Optional[str]) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def alive_players(self) -> List[Player]:
        return [p for p in self.players if p.is_alive]


class GameState(BaseModel):
    """Current state of a Mafia game"""
    room_id: str = Field(..., description="Room this game belongs to")
    phase: GamePhase = Field(GamePhase.NIGHT)
    day_number: int = Field(1, ge=1)

    mafia_target_id: Optional[str] = None
    doctor_target_id: Optional[str] = None
    detective_target_id: Optional[str] = None
    detective_result: Optional[DetectiveResult] = None

    winner: Optional[Winner] = Field(None, description="'mafia' or 'civilians'")

    # Spectator recap of the last night, kept through the following day
    last_mafia_target_name: Optional[str] = None
    last_doctor_target_name: Optional[str] = None
    last_detective_target_name: Optional[str] = None

    phase_end_time: Optional[datetime] = Field(None, description="Deadline hint for the external scheduler")
    started_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Vote(BaseModel):
    """One vote row, unique per (room, voter, day)"""
    room_id: str
    voter_id: str
    day_number: int = Field(..., ge=1)
    target_id: Optional[str] = Field(None, description="None means abstain")
    created_at: datetime = Field(default_factory=utcnow)


class ActionRecord(BaseModel):
    """Append-only audit entry for a night action"""
    room_id: str
    actor_id: str
    action_type: str = Field(..., description="e.g. 'mafia_action'")
    target_id: str
    day_number: int
    phase: GamePhase
    created_at: datetime = Field(default_factory=utcnow)


class RoomSnapshot(BaseModel):
    """Everything the engine reads and writes for one room, committed as a unit"""
    room: Room
    game: Optional[GameState] = None
    votes: List[Vote] = Field(default_factory=list)
    actions: List[ActionRecord] = Field(default_factory=list)

    @property
    def room_id(self) -> str:
        return self.room.id

    @property
    def phase(self) -> GamePhase:
        return self.game.phase if self.game else GamePhase.LOBBY

    def votes_for_day(self, day_number: int) -> List[Vote]:
        return [v for v in self.votes if v.day_number == day_number]
