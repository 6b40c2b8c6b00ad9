"""
Error handling for the Mafia room engine.

Every rejected request surfaces as a typed ``GameError``. The engine never
drops an invalid request silently; callers get the category, the specific
reason and whether a retry can succeed.
"""

import logging
from typing import Dict, Any, Optional
from enum import Enum

logger = logging.getLogger(__name__)


class ErrorType(str, Enum):
    """Categories of errors the engine can return."""

    VALIDATION = "validation_error"
    PRECONDITION = "precondition_error"
    AUTHORIZATION = "authorization_error"
    CONCURRENCY = "concurrency_error"
    NOT_FOUND = "not_found_error"
    STORAGE = "storage_error"


class ActionRejection(str, Enum):
    """Specific reasons a night action is rejected."""

    WRONG_PHASE = "wrong_phase"
    ACTOR_NOT_FOUND = "actor_not_found"
    ACTOR_DEAD = "actor_dead"
    WRONG_ROLE = "wrong_role"
    ALREADY_ACTED = "already_acted"
    TARGET_NOT_FOUND = "target_not_found"
    TARGET_DEAD = "target_dead"
    FRIENDLY_FIRE = "friendly_fire"
    SELF_INVESTIGATION = "self_investigation"


class GameError(Exception):
    """Base class for every rejection the engine produces."""

    error_type: ErrorType = ErrorType.VALIDATION
    status_code: int = 400

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.reason = reason


class ValidationError(GameError):
    """Malformed or missing input, rejected before touching state."""

    error_type = ErrorType.VALIDATION
    status_code = 400


class PreconditionError(GameError):
    """Right shape, wrong moment: wrong phase, already acted, not all voted."""

    error_type = ErrorType.PRECONDITION
    status_code = 409


class AuthorizationError(GameError):
    """Wrong identity, role, or a host-only operation."""

    error_type = ErrorType.AUTHORIZATION
    status_code = 403


class ConcurrencyError(GameError):
    """Another mutating call is in flight for the room; retry shortly."""

    error_type = ErrorType.CONCURRENCY
    status_code = 429


class NotFoundError(GameError):
    """Room, player or target does not exist."""

    error_type = ErrorType.NOT_FOUND
    status_code = 404


class StorageError(GameError):
    """The external store failed; nothing was committed."""

    error_type = ErrorType.STORAGE
    status_code = 500


# Category each night-action rejection belongs to
REJECTION_CATEGORIES: Dict[ActionRejection, type] = {
    ActionRejection.WRONG_PHASE: PreconditionError,
    ActionRejection.ACTOR_NOT_FOUND: NotFoundError,
    ActionRejection.ACTOR_DEAD: AuthorizationError,
    ActionRejection.WRONG_ROLE: AuthorizationError,
    ActionRejection.ALREADY_ACTED: PreconditionError,
    ActionRejection.TARGET_NOT_FOUND: NotFoundError,
    ActionRejection.TARGET_DEAD: ValidationError,
    ActionRejection.FRIENDLY_FIRE: ValidationError,
    ActionRejection.SELF_INVESTIGATION: ValidationError,
}


class InvalidActionError(GameError):
    """A night action failed validation; ``rejection`` says which check."""

    def __init__(self, rejection: ActionRejection, message: str):
        super().__init__(message, reason=rejection.value)
        self.rejection = rejection
        category = REJECTION_CATEGORIES[rejection]
        self.error_type = category.error_type
        self.status_code = category.status_code


class ErrorHandler:
    """Turns engine errors into payloads and structured log entries."""

    RETRYABLE = {
        ErrorType.PRECONDITION,
        ErrorType.CONCURRENCY,
    }

    @staticmethod
    def is_retryable(error: GameError) -> bool:
        """Whether the same request can succeed if sent again later."""
        return error.error_type in ErrorHandler.RETRYABLE

    @staticmethod
    def to_payload(error: GameError) -> Dict[str, Any]:
        """
        Build the response body for a rejected request.

        Args:
            error: The rejection raised by the engine

        Returns:
            Dictionary with message, category, reason and retry hint
        """
        return {
            "error": error.message,
            "error_type": error.error_type.value,
            "reason": error.reason,
            "retryable": ErrorHandler.is_retryable(error),
        }

    @staticmethod
    def format_error_log(
        error: GameError,
        room_id: str,
        operation: str,
        phase: Optional[str] = None,
        day_number: Optional[int] = None,
        actor_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Format a rejection for logging.

        Args:
            error: The rejection
            room_id: Room the request targeted
            operation: Name of the operation that was rejected
            phase: Phase observed when the request was processed
            day_number: Day observed when the request was processed
            actor_id: Caller of the operation

        Returns:
            Formatted error log dictionary
        """
        return {
            "error_type": error.error_type.value,
            "reason": error.reason,
            "message": error.message,
            "room_id": room_id,
            "operation": operation,
            "phase": phase,
            "day_number": day_number,
            "actor_id": actor_id,
            "severity": ErrorHandler._get_severity(error),
        }

    @staticmethod
    def log(error: GameError, **context: Any) -> None:
        entry = ErrorHandler.format_error_log(error, **context)
        if entry["severity"] == "high":
            logger.error(f"Rejected {entry['operation']} in room {entry['room_id']}: {entry}")
        else:
            logger.warning(f"Rejected {entry['operation']} in room {entry['room_id']}: {error.message}")

    @staticmethod
    def _get_severity(error: GameError) -> str:
        """Get severity level for an error."""
        if error.error_type == ErrorType.STORAGE:
            return "high"
        elif error.error_type in (ErrorType.AUTHORIZATION, ErrorType.CONCURRENCY):
            return "medium"
        else:
            return "low"
