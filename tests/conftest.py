"""Shared test fixtures for Mafia game logic."""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

import pytest

from mafia.types.game import (
    GamePhase,
    GameState,
    Player,
    Role,
    Room,
    RoomConfig,
    RoomSnapshot,
    RoomStatus,
    Vote,
)

PLAYER_IDS = [f"p{i}" for i in range(6)]

# p0 hosts; one mafia, one doctor, one detective, three civilians
DEFAULT_ROLES: Dict[str, Role] = {
    "p0": Role.CIVILIAN,
    "p1": Role.MAFIA,
    "p2": Role.DOCTOR,
    "p3": Role.DETECTIVE,
    "p4": Role.CIVILIAN,
    "p5": Role.CIVILIAN,
}


class FakeClock:
    """Controllable clock for deadline tests."""

    def __init__(self, now: Optional[datetime] = None):
        self.now = now or datetime(2024, 1, 1, 20, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def tick(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def room_factory() -> Callable[..., Room]:
    """Factory fixture that builds lobby or in-game rooms."""

    def _factory(
        *,
        player_ids: Optional[Iterable[str]] = None,
        host_id: Optional[str] = None,
        status: RoomStatus = RoomStatus.WAITING,
        roles: Optional[Dict[str, Role]] = None,
        dead: Iterable[str] = (),
        ready: bool = True,
        config: Optional[RoomConfig] = None,
        room_id: str = "room-1",
    ) -> Room:
        ids: List[str] = list(player_ids or PLAYER_IDS)
        dead_ids = set(dead)
        players = [
            Player(
                id=player_id,
                nickname=player_id.upper(),
                is_ready=ready,
                is_alive=player_id not in dead_ids,
                role=(roles or {}).get(player_id),
            )
            for player_id in ids
        ]
        return Room(
            id=room_id,
            host_id=host_id or ids[0],
            status=status,
            config=config or RoomConfig(),
            players=players,
        )

    return _factory


@pytest.fixture
def snapshot_factory(room_factory) -> Callable[..., RoomSnapshot]:
    """Factory fixture that builds a room snapshot in the middle of a game."""

    def _factory(
        *,
        phase: GamePhase = GamePhase.NIGHT,
        day_number: int = 1,
        roles: Optional[Dict[str, Role]] = None,
        dead: Iterable[str] = (),
        votes: Optional[Dict[str, Optional[str]]] = None,
        config: Optional[RoomConfig] = None,
        player_ids: Optional[Iterable[str]] = None,
        **game_fields,
    ) -> RoomSnapshot:
        room = room_factory(
            player_ids=player_ids,
            status=RoomStatus.FINISHED if phase == GamePhase.GAME_OVER else RoomStatus.PLAYING,
            roles=roles or DEFAULT_ROLES,
            dead=dead,
            config=config,
        )
        game = GameState(room_id=room.id, phase=phase, day_number=day_number, **game_fields)
        vote_rows = [
            Vote(room_id=room.id, voter_id=voter, day_number=day_number, target_id=target)
            for voter, target in (votes or {}).items()
        ]
        return RoomSnapshot(room=room, game=game, votes=vote_rows)

    return _factory
