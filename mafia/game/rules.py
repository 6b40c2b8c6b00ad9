"""Win conditions for Mafia games"""

from typing import Iterable, Optional

from mafia.types.game import Player, Role, Winner


class WinEvaluator:
    """Decides whether the roster has produced a winner"""

    @staticmethod
    def evaluate(players: Iterable[Player]) -> Optional[Winner]:
        """
        Check if the game has ended.
        Returns the winning faction, or None while the game goes on.

        Must be called on the roster after deaths have been applied.
        """
        mafia_count = 0
        town_count = 0

        for player in players:
            if not player.is_alive:
                continue
            if player.role == Role.MAFIA:
                mafia_count += 1
            else:
                town_count += 1

        # Town wins once every mafia is gone
        if mafia_count == 0:
            return Winner.CIVILIANS

        # Mafia win at parity, not only at majority
        if mafia_count >= town_count:
            return Winner.MAFIA

        return None
