"""Unit tests for role composition and assignment."""

import random
from collections import Counter

import pytest

from mafia.game.roles import RoleAssigner
from mafia.types.game import Player, Role, RoomConfig


@pytest.mark.parametrize("player_count", range(1, 16))
def test_composition_is_total_for_every_roster_size(player_count):
    composition = RoleAssigner.composition(player_count, RoomConfig())

    assert sum(composition.values()) == player_count
    assert all(count >= 0 for count in composition.values())
    assert composition[Role.MAFIA] <= max(player_count - 1, 0)


def test_default_six_player_composition():
    composition = RoleAssigner.composition(6, RoomConfig())

    assert composition == {
        Role.MAFIA: 1,
        Role.DOCTOR: 1,
        Role.DETECTIVE: 1,
        Role.CIVILIAN: 3,
    }


def test_composition_clamps_oversized_config():
    config = RoomConfig(mafia_count=3, doctor_count=2, detective_count=2)

    composition = RoleAssigner.composition(4, config)

    assert composition[Role.MAFIA] == 3
    assert composition[Role.DOCTOR] == 1
    assert composition[Role.DETECTIVE] == 0
    assert composition[Role.CIVILIAN] == 0


def test_single_player_gets_no_mafia():
    roles = RoleAssigner.assign_roles(1, RoomConfig())
    assert Role.MAFIA not in roles
    assert len(roles) == 1


def test_seeded_assignment_is_deterministic():
    config = RoomConfig(mafia_count=2)
    first = RoleAssigner.assign_roles(8, config, random.Random(42))
    second = RoleAssigner.assign_roles(8, config, random.Random(42))

    assert first == second
    assert Counter(first)[Role.MAFIA] == 2


def test_assign_to_roster_gives_everyone_a_role():
    players = [Player(id=f"p{i}") for i in range(7)]

    RoleAssigner.assign_to_roster(players, RoomConfig(mafia_count=2), random.Random(7))

    counts = RoleAssigner.count_roles(players)
    assert counts[Role.MAFIA] == 2
    assert counts[Role.DOCTOR] == 1
    assert counts[Role.DETECTIVE] == 1
    assert counts[Role.CIVILIAN] == 3
    assert {p.id for p in players} == {f"p{i}" for i in range(7)}


def test_every_role_can_land_on_every_seat():
    seen = {i: set() for i in range(4)}
    rng = random.Random(1)
    for _ in range(200):
        roles = RoleAssigner.assign_roles(4, RoomConfig(), rng)
        for seat, role in enumerate(roles):
            seen[seat].add(role)

    for roles in seen.values():
        assert roles == {Role.MAFIA, Role.DOCTOR, Role.DETECTIVE, Role.CIVILIAN}
