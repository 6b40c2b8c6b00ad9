"""Tests for per-player visible state."""

from datetime import timedelta

from mafia.game.state import StateManager
from mafia.types.game import DetectiveResult, GamePhase, NightMode, RoomConfig, Winner, utcnow


def _roles_shown(state):
    return {p["id"]: p.get("role") for p in state["players"]}


def test_civilian_sees_only_own_role(snapshot_factory):
    state = StateManager.get_visible_state(snapshot_factory(), "p4")

    assert state["your_role"] == "civilian"
    roles = _roles_shown(state)
    assert roles["p4"] == "civilian"
    assert all(role is None for pid, role in roles.items() if pid != "p4")
    assert "mafia_teammates" not in state
    assert "spectator" not in state


def test_mafia_sees_teammates_and_current_pick(snapshot_factory):
    snapshot = snapshot_factory(mafia_target_id="p4")

    state = StateManager.get_visible_state(snapshot, "p1")

    assert state["mafia_teammates"] == ["p1"]
    assert state["mafia_target_id"] == "p4"


def test_detective_sees_result(snapshot_factory):
    snapshot = snapshot_factory(detective_target_id="p1", detective_result=DetectiveResult.MAFIA)

    state = StateManager.get_visible_state(snapshot, "p3")

    assert state["detective_target_id"] == "p1"
    assert state["detective_result"] == "mafia"


def test_dead_roles_revealed_and_spectator_recap(snapshot_factory):
    snapshot = snapshot_factory(
        phase=GamePhase.DAY_VOTING,
        dead=["p5"],
        last_mafia_target_name="P5",
    )

    state = StateManager.get_visible_state(snapshot, "p5")

    assert _roles_shown(state)["p5"] == "civilian"
    assert state["spectator"]["mafia_target"] == "P5"


def test_dead_roles_hidden_when_reveal_is_off(snapshot_factory):
    snapshot = snapshot_factory(dead=["p5"], config=RoomConfig(reveal_roles_on_death=False))

    state = StateManager.get_visible_state(snapshot, "p4")

    assert _roles_shown(state)["p5"] is None


def test_everyone_sees_roles_at_game_over(snapshot_factory):
    snapshot = snapshot_factory(phase=GamePhase.GAME_OVER, winner=Winner.CIVILIANS)

    state = StateManager.get_visible_state(snapshot, "p4")

    assert _roles_shown(state)["p1"] == "mafia"
    assert state["winner"] == "civilians"


def test_vote_counts_follow_room_setting(snapshot_factory):
    votes = {"p3": "p1", "p4": "p1", "p5": None}
    shown = StateManager.get_visible_state(
        snapshot_factory(phase=GamePhase.DAY_VOTING, votes=votes), "p4"
    )
    hidden = StateManager.get_visible_state(
        snapshot_factory(
            phase=GamePhase.DAY_VOTING,
            votes=votes,
            config=RoomConfig(show_vote_counts=False),
        ),
        "p4",
    )

    assert shown["vote_counts"] == {"p1": 2}
    assert shown["voted"] == ["p3", "p4", "p5"]
    assert shown["your_vote"] == "p1"
    assert "vote_counts" not in hidden
    assert hidden["voted"] == ["p3", "p4", "p5"]


def test_phase_deadline_by_mode():
    now = utcnow()
    timed = RoomConfig(night_mode=NightMode.TIMED, night_duration=30)

    assert StateManager.phase_deadline(GamePhase.NIGHT, RoomConfig(), now) is None
    assert StateManager.phase_deadline(GamePhase.NIGHT, timed, now) == now + timedelta(seconds=30)
    assert StateManager.phase_deadline(GamePhase.DAY_VOTING, timed, now) == now + timedelta(seconds=60)
    assert StateManager.phase_deadline(GamePhase.GAME_OVER, timed, now) is None
