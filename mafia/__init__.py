"""Authoritative game state machine for Mafia rooms"""

__version__ = "0.1.0"
