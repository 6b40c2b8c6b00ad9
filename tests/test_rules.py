"""Unit tests for win condition evaluation."""

from mafia.game.rules import WinEvaluator
from mafia.types.game import Player, Role, Winner


def _roster(*entries):
    return [
        Player(id=f"p{i}", role=role, is_alive=alive)
        for i, (role, alive) in enumerate(entries)
    ]


def test_civilians_win_when_no_mafia_alive():
    players = _roster(
        (Role.MAFIA, False),
        (Role.DOCTOR, True),
        (Role.CIVILIAN, True),
    )
    assert WinEvaluator.evaluate(players) == Winner.CIVILIANS


def test_mafia_win_at_parity():
    players = _roster(
        (Role.MAFIA, True),
        (Role.CIVILIAN, True),
        (Role.DETECTIVE, False),
        (Role.CIVILIAN, False),
    )
    assert WinEvaluator.evaluate(players) == Winner.MAFIA


def test_mafia_win_with_majority():
    players = _roster(
        (Role.MAFIA, True),
        (Role.MAFIA, True),
        (Role.CIVILIAN, True),
    )
    assert WinEvaluator.evaluate(players) == Winner.MAFIA


def test_game_continues_while_town_outnumbers_mafia():
    players = _roster(
        (Role.MAFIA, True),
        (Role.DOCTOR, True),
        (Role.CIVILIAN, True),
    )
    assert WinEvaluator.evaluate(players) is None


def test_no_mafia_and_no_town_counts_as_civilian_win():
    players = _roster((Role.MAFIA, False), (Role.CIVILIAN, False))
    assert WinEvaluator.evaluate(players) == Winner.CIVILIANS
