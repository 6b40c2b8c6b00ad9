"""Room actors that serialize operations per room"""

from .actor import OperationResult, RoomActor, RoomRegistry

__all__ = [
    "OperationResult",
    "RoomActor",
    "RoomRegistry",
]
