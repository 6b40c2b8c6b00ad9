"""Data types for the Mafia room engine"""

from .game import (
    GamePhase,
    RoomStatus,
    Role,
    Winner,
    DetectiveResult,
    NightMode,
    RoomConfig,
    Player,
    Room,
    GameState,
    Vote,
    ActionRecord,
    RoomSnapshot,
)
from .actions import Kill, Protect, Investigate, NightAction, build_night_action
from .events import (
    Faction,
    NightOutcome,
    GameEvent,
    GameStarted,
    PhaseChanged,
    NightResolved,
    VoteResolved,
    GameEnded,
    InvestigationCompleted,
    PlayerRemoved,
    GameRestarted,
)

__all__ = [
    # Game types
    "GamePhase",
    "RoomStatus",
    "Role",
    "Winner",
    "DetectiveResult",
    "NightMode",
    "RoomConfig",
    "Player",
    "Room",
    "GameState",
    "Vote",
    "ActionRecord",
    "RoomSnapshot",
    # Action types
    "Kill",
    "Protect",
    "Investigate",
    "NightAction",
    "build_night_action",
    # Event types
    "Faction",
    "NightOutcome",
    "GameEvent",
    "GameStarted",
    "PhaseChanged",
    "NightResolved",
    "VoteResolved",
    "GameEnded",
    "InvestigationCompleted",
    "PlayerRemoved",
    "GameRestarted",
]
