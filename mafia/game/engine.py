"""Phase engine: the authoritative Mafia state machine"""

import logging
import random
from datetime import datetime
from typing import Callable, List, Optional

from mafia.errors.handler import (
    AuthorizationError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from mafia.game.ledger import NightActionLedger
from mafia.game.roles import RoleAssigner
from mafia.game.rules import WinEvaluator
from mafia.game.state import StateManager
from mafia.game.votes import VoteTally
from mafia.types.actions import BaseNightAction
from mafia.types.events import (
    BaseEvent,
    GameEnded,
    GameRestarted,
    GameStarted,
    NightOutcome,
    NightResolved,
    PhaseChanged,
    PlayerRemoved,
    VoteResolved,
    faction_of,
)
from mafia.types.game import (
    GamePhase,
    GameState,
    RoomSnapshot,
    RoomStatus,
    Winner,
    utcnow,
)

logger = logging.getLogger(__name__)


class PhaseEngine:
    """Runs phase transitions and resolutions on a room snapshot.

    Every method mutates the snapshot it is given and returns the events the
    change produced. Callers hand in a private copy and commit it afterwards,
    so a rejected or failed operation never leaves partial changes behind.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.rng = rng
        self.clock = clock
        self.ledger = NightActionLedger()
        self.votes = VoteTally()
        self.state_manager = StateManager()

    # ------------------------------------------------------------------
    # Lobby -> night
    # ------------------------------------------------------------------

    def start(self, snapshot: RoomSnapshot, caller_id: str) -> List[BaseEvent]:
        """Assign roles and open night 1."""
        room = snapshot.room
        self._require_host(snapshot, caller_id, "Only the host can start the game")

        if room.status != RoomStatus.WAITING:
            raise PreconditionError("Game already started", reason="already_started")

        player_count = len(room.players)
        if player_count < room.config.min_players:
            raise PreconditionError(
                f"Need at least {room.config.min_players} players to start",
                reason="not_enough_players",
            )
        if player_count > room.config.max_players:
            raise ValidationError(
                f"At most {room.config.max_players} players can play",
                reason="too_many_players",
            )
        if not all(p.is_ready or p.id == room.host_id for p in room.players):
            raise PreconditionError("Not all players are ready", reason="not_ready")

        RoleAssigner.assign_to_roster(room.players, room.config, self.rng)
        for player in room.players:
            player.is_alive = True

        now = self.clock()
        room.status = RoomStatus.PLAYING
        snapshot.votes = []
        snapshot.actions = []
        snapshot.game = GameState(
            room_id=room.id,
            phase=GamePhase.NIGHT,
            day_number=1,
            phase_end_time=self.state_manager.phase_deadline(GamePhase.NIGHT, room.config, now),
            started_at=now,
            updated_at=now,
        )

        logger.info(f"Started game in room {room.id} with {player_count} players")
        return [
            GameStarted(room_id=room.id, day_number=1, player_count=player_count),
            PhaseChanged(room_id=room.id, day_number=1, new_phase=GamePhase.NIGHT),
        ]

    # ------------------------------------------------------------------
    # In-phase submissions
    # ------------------------------------------------------------------

    def submit_night_action(
        self,
        snapshot: RoomSnapshot,
        actor_id: str,
        action: BaseNightAction,
    ) -> List[BaseEvent]:
        return self.ledger.submit(snapshot, actor_id, action)

    def cast_vote(
        self,
        snapshot: RoomSnapshot,
        voter_id: str,
        target_id: Optional[str],
    ) -> List[BaseEvent]:
        self.votes.cast_vote(snapshot, voter_id, target_id)
        return []

    # ------------------------------------------------------------------
    # Phase advance
    # ------------------------------------------------------------------

    def can_advance(self, snapshot: RoomSnapshot) -> bool:
        """Whether an unforced advance would be accepted right now."""
        game = snapshot.game
        if game is None:
            return False
        if self.state_manager.deadline_passed(game, self.clock()):
            return game.phase in (GamePhase.NIGHT, GamePhase.DAY_VOTING)
        if game.phase == GamePhase.NIGHT:
            return self.ledger.all_acted(snapshot)
        if game.phase == GamePhase.DAY_VOTING:
            return self.votes.all_voted(snapshot)
        return False

    def advance(self, snapshot: RoomSnapshot, caller_id: str, force: bool = False) -> List[BaseEvent]:
        """
        Resolve the current phase and move to the next one.

        Night and day voting are the only phases that advance. Without
        ``force`` the phase must be complete (everyone acted or voted) or its
        deadline must have passed; ``force`` is reserved for the host.
        """
        room = snapshot.room
        if room.get_player(caller_id) is None:
            raise AuthorizationError("Player not in room", reason="not_in_room")

        game = snapshot.game
        if game is None or game.phase not in (GamePhase.NIGHT, GamePhase.DAY_VOTING):
            raise PreconditionError("Cannot advance from this phase", reason="wrong_phase")

        if force and caller_id != room.host_id:
            raise AuthorizationError("Only host can force advance", reason="not_host")

        if not force and not self.can_advance(snapshot):
            message = (
                "Not all night actions complete"
                if game.phase == GamePhase.NIGHT
                else "Not all votes in"
            )
            raise PreconditionError(message, reason="preconditions_not_met")

        if game.phase == GamePhase.NIGHT:
            return self._resolve_night(snapshot)
        return self._resolve_day(snapshot)

    def _resolve_night(self, snapshot: RoomSnapshot) -> List[BaseEvent]:
        room = snapshot.room
        game = snapshot.game
        events: List[BaseEvent] = []

        mafia_target = game.mafia_target_id
        doctor_target = game.doctor_target_id

        if mafia_target and mafia_target != doctor_target:
            victim = self.state_manager.eliminate_player(snapshot, mafia_target)
            revealed = faction_of(victim.role) if room.config.reveal_roles_on_death else None
            events.append(NightResolved(
                room_id=room.id,
                day_number=game.day_number,
                outcome=NightOutcome.DEATH,
                victim_id=victim.id,
                revealed_faction=revealed,
            ))
            logger.info(f"Room {room.id}: {victim.id} killed on night {game.day_number}")
        elif mafia_target:
            events.append(NightResolved(
                room_id=room.id,
                day_number=game.day_number,
                outcome=NightOutcome.SAVED,
            ))
            logger.info(f"Room {room.id}: doctor saved the target on night {game.day_number}")
        else:
            events.append(NightResolved(
                room_id=room.id,
                day_number=game.day_number,
                outcome=NightOutcome.PEACEFUL,
            ))

        self.ledger.clear(snapshot)

        winner = WinEvaluator.evaluate(room.players)
        if winner is not None:
            events.extend(self._finish(snapshot, winner))
            return events

        events.extend(self._enter_phase(snapshot, GamePhase.DAY_VOTING, game.day_number))
        return events

    def _resolve_day(self, snapshot: RoomSnapshot) -> List[BaseEvent]:
        room = snapshot.room
        game = snapshot.game
        events: List[BaseEvent] = []

        result = self.votes.tally(snapshot.votes, game.day_number)

        if result.eliminated_id:
            victim = self.state_manager.eliminate_player(snapshot, result.eliminated_id)
            revealed = faction_of(victim.role) if room.config.reveal_roles_on_death else None
            events.append(VoteResolved(
                room_id=room.id,
                day_number=game.day_number,
                eliminated_id=victim.id,
                revealed_faction=revealed,
            ))
            logger.info(f"Room {room.id}: {victim.id} eliminated by vote on day {game.day_number}")
        else:
            events.append(VoteResolved(
                room_id=room.id,
                day_number=game.day_number,
                tie=result.tie,
            ))
            logger.info(
                f"Room {room.id}: no elimination on day {game.day_number} "
                f"({'tie' if result.tie else 'inconclusive'})"
            )

        winner = WinEvaluator.evaluate(room.players)
        if winner is not None:
            events.extend(self._finish(snapshot, winner))
            return events

        self.state_manager.clear_spectator_names(game)
        events.extend(self._enter_phase(snapshot, GamePhase.NIGHT, game.day_number + 1))
        return events

    def _enter_phase(self, snapshot: RoomSnapshot, phase: GamePhase, day_number: int) -> List[BaseEvent]:
        game = snapshot.game
        now = self.clock()
        previous = game.phase
        game.phase = phase
        game.day_number = day_number
        game.phase_end_time = self.state_manager.phase_deadline(phase, snapshot.room.config, now)
        game.updated_at = now
        logger.info(f"Room {snapshot.room_id}: {previous.value} -> {phase.value} (day {day_number})")
        return [PhaseChanged(room_id=snapshot.room_id, day_number=day_number, new_phase=phase)]

    def _finish(
        self,
        snapshot: RoomSnapshot,
        winner: Optional[Winner],
        forced: bool = False,
    ) -> List[BaseEvent]:
        game = snapshot.game
        game.phase = GamePhase.GAME_OVER
        game.winner = winner
        game.phase_end_time = None
        game.updated_at = self.clock()
        snapshot.room.status = RoomStatus.FINISHED

        logger.info(
            f"Game in room {snapshot.room_id} ended. "
            f"Winner: {winner.value if winner else None}{' (ended by host)' if forced else ''}"
        )
        return [
            GameEnded(room_id=snapshot.room_id, day_number=game.day_number, winner=winner, forced=forced),
            PhaseChanged(room_id=snapshot.room_id, day_number=game.day_number, new_phase=GamePhase.GAME_OVER),
        ]

    # ------------------------------------------------------------------
    # Host controls
    # ------------------------------------------------------------------

    def end_game(
        self,
        snapshot: RoomSnapshot,
        caller_id: str,
        winner: Optional[Winner] = None,
    ) -> List[BaseEvent]:
        """Administrative termination, with an explicit or empty winner."""
        self._require_host(snapshot, caller_id, "Only the host can end the game")
        if snapshot.room.status != RoomStatus.PLAYING or snapshot.game is None:
            raise PreconditionError("Game is not in progress", reason="not_playing")
        return self._finish(snapshot, winner, forced=True)

    def restart(self, snapshot: RoomSnapshot, caller_id: str, force: bool = False) -> List[BaseEvent]:
        """Return the room to the lobby, wiping the game, votes and audit trail."""
        self._require_host(snapshot, caller_id, "Only the host can restart the game")

        game = snapshot.game
        if game is None:
            raise PreconditionError("Game has not started", reason="not_started")
        if game.phase != GamePhase.GAME_OVER and not force:
            raise PreconditionError("Game is still in progress", reason="in_progress")

        snapshot.game = None
        snapshot.votes = []
        snapshot.actions = []
        self.state_manager.reset_roster(snapshot.room.players)
        snapshot.room.status = RoomStatus.WAITING

        logger.info(f"Room {snapshot.room_id} restarted from {game.phase.value}")
        return [
            GameRestarted(room_id=snapshot.room_id),
            PhaseChanged(room_id=snapshot.room_id, new_phase=GamePhase.LOBBY),
        ]

    def remove_player(self, snapshot: RoomSnapshot, caller_id: str, player_id: str) -> List[BaseEvent]:
        """
        Drop a player from the roster and re-check the win condition.
        Night picks and today's vote involving the player are discarded.
        """
        room = snapshot.room
        self._require_host(snapshot, caller_id, "Only the host can remove players")
        if player_id == room.host_id:
            raise ValidationError("Host cannot remove themselves", reason="remove_host")

        player = room.get_player(player_id)
        if player is None:
            raise NotFoundError("Player not found", reason="player_not_found")

        room.players = [p for p in room.players if p.id != player_id]
        game = snapshot.game
        day_number = game.day_number if game else 1
        events: List[BaseEvent] = [PlayerRemoved(room_id=room.id, day_number=day_number, player_id=player_id)]
        logger.info(f"Room {room.id}: removed player {player_id}")

        if game is None or game.phase not in (GamePhase.NIGHT, GamePhase.DAY_VOTING):
            return events

        snapshot.votes = [
            v for v in snapshot.votes
            if not (v.day_number == game.day_number and (v.voter_id == player_id or v.target_id == player_id))
        ]
        for field in ("mafia_target_id", "doctor_target_id", "detective_target_id"):
            if getattr(game, field) == player_id:
                setattr(game, field, None)
                if field == "detective_target_id":
                    game.detective_result = None

        winner = WinEvaluator.evaluate(room.players)
        if winner is not None:
            events.extend(self._finish(snapshot, winner))
        return events

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def visible_state(self, snapshot: RoomSnapshot, viewer_id: str) -> dict:
        if snapshot.room.get_player(viewer_id) is None:
            raise NotFoundError("Player not in room", reason="not_in_room")
        return self.state_manager.get_visible_state(snapshot, viewer_id)

    @staticmethod
    def _require_host(snapshot: RoomSnapshot, caller_id: str, message: str) -> None:
        if caller_id != snapshot.room.host_id:
            raise AuthorizationError(message, reason="not_host")
