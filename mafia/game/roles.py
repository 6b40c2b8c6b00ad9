"""Role assignment for Mafia games"""

import random
import secrets
from collections import Counter
from typing import Dict, List, Optional

from mafia.types.game import Player, Role, RoomConfig


class RoleAssigner:
    """Builds the secret role composition and deals it to the roster"""

    @staticmethod
    def composition(player_count: int, config: RoomConfig) -> Dict[Role, int]:
        """
        Clamp the configured role counts to the number of players.
        Mafia never takes every seat; the remainder are civilians.
        """
        mafia = max(0, min(config.mafia_count, player_count - 1))
        doctor = max(0, min(config.doctor_count, player_count - mafia))
        detective = max(0, min(config.detective_count, player_count - mafia - doctor))
        return {
            Role.MAFIA: mafia,
            Role.DOCTOR: doctor,
            Role.DETECTIVE: detective,
            Role.CIVILIAN: player_count - mafia - doctor - detective,
        }

    @staticmethod
    def assign_roles(
        player_count: int,
        config: RoomConfig,
        rng: Optional[random.Random] = None,
    ) -> List[Role]:
        """Return ``player_count`` roles in uniformly random order.

        Secret identities are dealt with ``secrets.SystemRandom`` unless a
        seeded generator is passed in.
        """
        rng = rng or secrets.SystemRandom()
        roles: List[Role] = []
        for role, count in RoleAssigner.composition(player_count, config).items():
            roles.extend([role] * count)
        rng.shuffle(roles)
        return roles

    @staticmethod
    def assign_to_roster(
        players: List[Player],
        config: RoomConfig,
        rng: Optional[random.Random] = None,
    ) -> List[Player]:
        """Shuffle the roster and hand out roles positionally, in place."""
        rng = rng or secrets.SystemRandom()
        roles = RoleAssigner.assign_roles(len(players), config, rng)
        rng.shuffle(players)
        for player, role in zip(players, roles):
            player.role = role
        return players

    @staticmethod
    def count_roles(players: List[Player]) -> Counter:
        return Counter(p.role for p in players)
