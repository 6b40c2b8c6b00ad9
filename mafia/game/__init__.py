"""Game logic for the Mafia room engine"""

from .engine import PhaseEngine
from .ledger import NightActionLedger
from .roles import RoleAssigner
from .rules import WinEvaluator
from .state import StateManager
from .votes import TallyResult, VoteTally

__all__ = [
    "PhaseEngine",
    "NightActionLedger",
    "RoleAssigner",
    "WinEvaluator",
    "StateManager",
    "TallyResult",
    "VoteTally",
]
