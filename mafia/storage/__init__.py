"""Room storage for the Mafia room engine"""

from .store import GameStore, InMemoryGameStore

__all__ = [
    "GameStore",
    "InMemoryGameStore",
]
