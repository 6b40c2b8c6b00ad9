"""Error taxonomy for the Mafia room engine"""

from .handler import (
    ErrorType,
    ActionRejection,
    GameError,
    ValidationError,
    PreconditionError,
    AuthorizationError,
    ConcurrencyError,
    NotFoundError,
    StorageError,
    InvalidActionError,
    ErrorHandler,
)

__all__ = [
    "ErrorType",
    "ActionRejection",
    "GameError",
    "ValidationError",
    "PreconditionError",
    "AuthorizationError",
    "ConcurrencyError",
    "NotFoundError",
    "StorageError",
    "InvalidActionError",
    "ErrorHandler",
]
