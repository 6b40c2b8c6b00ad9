"""State management helpers for Mafia games"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from mafia.game.votes import VoteTally
from mafia.types.game import (
    GamePhase,
    GameState,
    NightMode,
    Player,
    Role,
    RoomConfig,
    RoomSnapshot,
)


class StateManager:
    """Roster updates, phase deadlines and per-player views"""

    @staticmethod
    def eliminate_player(snapshot: RoomSnapshot, player_id: str) -> Optional[Player]:
        """Mark a player dead. Returns the player, or None if unknown."""
        player = snapshot.room.get_player(player_id)
        if player is not None:
            player.is_alive = False
        return player

    @staticmethod
    def phase_deadline(phase: GamePhase, config: RoomConfig, now: datetime) -> Optional[datetime]:
        """
        Deadline hint for the external scheduler.
        Action-complete nights have no deadline; they end once everyone acted.
        """
        if phase == GamePhase.NIGHT:
            if config.night_mode == NightMode.ACTION_COMPLETE:
                return None
            return now + timedelta(seconds=config.night_duration)
        if phase == GamePhase.DAY_VOTING:
            return now + timedelta(seconds=config.voting_duration or config.day_duration)
        return None

    @staticmethod
    def deadline_passed(game: GameState, now: datetime) -> bool:
        return game.phase_end_time is not None and now >= game.phase_end_time

    @staticmethod
    def clear_spectator_names(game: GameState) -> None:
        game.last_mafia_target_name = None
        game.last_doctor_target_name = None
        game.last_detective_target_name = None

    @staticmethod
    def reset_roster(players: List[Player]) -> None:
        """Back to lobby: everyone alive, unassigned and not ready."""
        for player in players:
            player.is_alive = True
            player.role = None
            player.is_ready = False

    @staticmethod
    def get_visible_state(snapshot: RoomSnapshot, viewer_id: str) -> Dict[str, Any]:
        """
        Get the room state visible to a specific player.
        Roles stay hidden until death (when the room reveals them) or game over.
        """
        room = snapshot.room
        game = snapshot.game
        viewer = room.get_player(viewer_id)
        game_over = game is not None and game.phase == GamePhase.GAME_OVER

        players = []
        for p in room.players:
            entry = {"id": p.id, "nickname": p.nickname, "is_alive": p.is_alive, "is_ready": p.is_ready}
            if game_over or (not p.is_alive and room.config.reveal_roles_on_death) or p.id == viewer_id:
                entry["role"] = p.role.value if p.role else None
            players.append(entry)

        visible_state: Dict[str, Any] = {
            "room_id": room.id,
            "host_id": room.host_id,
            "status": room.status.value,
            "phase": snapshot.phase.value,
            "day_number": game.day_number if game else None,
            "phase_end_time": game.phase_end_time.isoformat() if game and game.phase_end_time else None,
            "winner": game.winner.value if game and game.winner else None,
            "players": players,
            "your_role": viewer.role.value if viewer and viewer.role else None,
        }

        if viewer is None or game is None:
            return visible_state

        if viewer.role == Role.MAFIA:
            # Mafia know each other and tonight's pick
            visible_state["mafia_teammates"] = [p.id for p in room.players if p.role == Role.MAFIA]
            visible_state["mafia_target_id"] = game.mafia_target_id

        elif viewer.role == Role.DETECTIVE:
            visible_state["detective_target_id"] = game.detective_target_id
            visible_state["detective_result"] = (
                game.detective_result.value if game.detective_result else None
            )

        elif viewer.role == Role.DOCTOR:
            visible_state["doctor_target_id"] = game.doctor_target_id

        # Dead players spectate last night's picks
        if not viewer.is_alive:
            visible_state["spectator"] = {
                "mafia_target": game.last_mafia_target_name,
                "doctor_target": game.last_doctor_target_name,
                "detective_target": game.last_detective_target_name,
            }

        if game.phase == GamePhase.DAY_VOTING:
            todays_votes = snapshot.votes_for_day(game.day_number)
            visible_state["voted"] = sorted(v.voter_id for v in todays_votes)
            own_vote = next((v for v in todays_votes if v.voter_id == viewer_id), None)
            visible_state["your_vote"] = own_vote.target_id if own_vote else None
            if room.config.show_vote_counts:
                visible_state["vote_counts"] = VoteTally.count(todays_votes, game.day_number)

        return visible_state
