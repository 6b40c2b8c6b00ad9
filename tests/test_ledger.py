"""Tests for night action validation and recording."""

import pytest

from mafia.errors.handler import ActionRejection, ErrorType, InvalidActionError, ValidationError
from mafia.game.ledger import NightActionLedger
from mafia.types.actions import Investigate, Kill, Protect, build_night_action
from mafia.types.events import InvestigationCompleted
from mafia.types.game import DetectiveResult, GamePhase, Role


def _rejection(snapshot, actor_id, action) -> InvalidActionError:
    with pytest.raises(InvalidActionError) as exc_info:
        NightActionLedger.submit(snapshot, actor_id, action)
    return exc_info.value


def test_kill_records_target_and_spectator_name(snapshot_factory):
    snapshot = snapshot_factory()

    events = NightActionLedger.submit(snapshot, "p1", Kill(target_id="p4"))

    assert events == []
    assert snapshot.game.mafia_target_id == "p4"
    assert snapshot.game.last_mafia_target_name == "P4"
    assert len(snapshot.actions) == 1
    record = snapshot.actions[0]
    assert record.action_type == "mafia_action"
    assert record.actor_id == "p1"
    assert record.target_id == "p4"
    assert record.phase == GamePhase.NIGHT


def test_second_action_from_same_role_is_rejected(snapshot_factory):
    snapshot = snapshot_factory()
    NightActionLedger.submit(snapshot, "p1", Kill(target_id="p4"))

    error = _rejection(snapshot, "p1", Kill(target_id="p5"))

    assert error.rejection == ActionRejection.ALREADY_ACTED
    assert error.error_type == ErrorType.PRECONDITION
    assert snapshot.game.mafia_target_id == "p4"
    assert len(snapshot.actions) == 1


def test_second_mafia_member_cannot_overwrite_kill(snapshot_factory):
    roles = {
        "p0": Role.CIVILIAN,
        "p1": Role.MAFIA,
        "p2": Role.MAFIA,
        "p3": Role.DETECTIVE,
        "p4": Role.DOCTOR,
        "p5": Role.CIVILIAN,
    }
    snapshot = snapshot_factory(roles=roles)
    NightActionLedger.submit(snapshot, "p1", Kill(target_id="p0"))

    error = _rejection(snapshot, "p2", Kill(target_id="p5"))

    assert error.rejection == ActionRejection.ALREADY_ACTED
    assert snapshot.game.mafia_target_id == "p0"


def test_mafia_cannot_target_mafia(snapshot_factory):
    roles = {
        "p0": Role.CIVILIAN,
        "p1": Role.MAFIA,
        "p2": Role.MAFIA,
        "p3": Role.DETECTIVE,
        "p4": Role.DOCTOR,
        "p5": Role.CIVILIAN,
    }
    snapshot = snapshot_factory(roles=roles)

    error = _rejection(snapshot, "p1", Kill(target_id="p2"))

    assert error.rejection == ActionRejection.FRIENDLY_FIRE
    assert error.status_code == 400
    assert str(error) == "Mafia cannot kill other mafia"
    assert snapshot.game.mafia_target_id is None


def test_actions_outside_night_are_rejected(snapshot_factory):
    snapshot = snapshot_factory(phase=GamePhase.DAY_VOTING)

    error = _rejection(snapshot, "p1", Kill(target_id="p4"))

    assert error.rejection == ActionRejection.WRONG_PHASE
    assert error.status_code == 409


def test_dead_actor_cannot_act(snapshot_factory):
    snapshot = snapshot_factory(dead=["p2"])

    error = _rejection(snapshot, "p2", Protect(target_id="p4"))

    assert error.rejection == ActionRejection.ACTOR_DEAD
    assert error.error_type == ErrorType.AUTHORIZATION


def test_action_must_match_actor_role(snapshot_factory):
    snapshot = snapshot_factory()

    error = _rejection(snapshot, "p4", Kill(target_id="p5"))

    assert error.rejection == ActionRejection.WRONG_ROLE
    assert str(error) == "Invalid action for your role"


def test_unknown_actor_and_target(snapshot_factory):
    snapshot = snapshot_factory()

    assert _rejection(snapshot, "ghost", Kill(target_id="p4")).rejection == ActionRejection.ACTOR_NOT_FOUND
    assert _rejection(snapshot, "p1", Kill(target_id="ghost")).rejection == ActionRejection.TARGET_NOT_FOUND


def test_dead_target_is_rejected(snapshot_factory):
    snapshot = snapshot_factory(dead=["p4"])

    error = _rejection(snapshot, "p2", Protect(target_id="p4"))

    assert error.rejection == ActionRejection.TARGET_DEAD


def test_doctor_may_protect_themself(snapshot_factory):
    snapshot = snapshot_factory()

    NightActionLedger.submit(snapshot, "p2", Protect(target_id="p2"))

    assert snapshot.game.doctor_target_id == "p2"
    assert snapshot.actions[0].action_type == "doctor_action"


def test_detective_cannot_investigate_themself(snapshot_factory):
    snapshot = snapshot_factory()

    error = _rejection(snapshot, "p3", Investigate(target_id="p3"))

    assert error.rejection == ActionRejection.SELF_INVESTIGATION
    assert snapshot.game.detective_target_id is None


@pytest.mark.parametrize(
    "target_id, expected",
    [("p1", DetectiveResult.MAFIA), ("p4", DetectiveResult.NOT_MAFIA)],
)
def test_investigation_result_is_available_immediately(snapshot_factory, target_id, expected):
    snapshot = snapshot_factory()

    events = NightActionLedger.submit(snapshot, "p3", Investigate(target_id=target_id))

    assert snapshot.game.detective_result == expected
    assert len(events) == 1
    event = events[0]
    assert isinstance(event, InvestigationCompleted)
    assert event.visibility == "detective"
    assert event.detective_id == "p3"
    assert event.result == expected


def test_roles_without_living_holders_count_as_acted(snapshot_factory):
    snapshot = snapshot_factory(dead=["p2", "p3"])

    assert NightActionLedger.role_has_acted(snapshot, Role.DOCTOR)
    assert NightActionLedger.role_has_acted(snapshot, Role.DETECTIVE)
    assert not NightActionLedger.all_acted(snapshot)

    NightActionLedger.submit(snapshot, "p1", Kill(target_id="p4"))

    assert NightActionLedger.all_acted(snapshot)


def test_clear_resets_targets_but_keeps_spectator_names(snapshot_factory):
    snapshot = snapshot_factory()
    NightActionLedger.submit(snapshot, "p1", Kill(target_id="p4"))
    NightActionLedger.submit(snapshot, "p3", Investigate(target_id="p1"))

    NightActionLedger.clear(snapshot)

    assert snapshot.game.mafia_target_id is None
    assert snapshot.game.detective_target_id is None
    assert snapshot.game.detective_result is None
    assert snapshot.game.last_mafia_target_name == "P4"


def test_build_night_action_rejects_unknown_type():
    with pytest.raises(ValidationError):
        build_night_action("poison", "p4")

    action = build_night_action("protect", "p4")
    assert isinstance(action, Protect)
    assert action.actor_role == Role.DOCTOR
