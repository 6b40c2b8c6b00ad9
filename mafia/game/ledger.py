"""Night action validation and recording"""

import logging
from typing import List

from mafia.errors.handler import ActionRejection, InvalidActionError
from mafia.types.actions import ACTION_CLASSES, BaseNightAction, Investigate, Kill
from mafia.types.events import BaseEvent, InvestigationCompleted
from mafia.types.game import (
    ActionRecord,
    DetectiveResult,
    GamePhase,
    Role,
    RoomSnapshot,
    utcnow,
)

logger = logging.getLogger(__name__)


class NightActionLedger:
    """Holds at most one action per acting role per night"""

    @staticmethod
    def validate(snapshot: RoomSnapshot, actor_id: str, action: BaseNightAction) -> None:
        """
        Check a night action against the current snapshot.
        Raises InvalidActionError naming the first check that failed.
        """
        game = snapshot.game
        if game is None or game.phase != GamePhase.NIGHT:
            raise InvalidActionError(
                ActionRejection.WRONG_PHASE, "Night actions only allowed at night"
            )

        actor = snapshot.room.get_player(actor_id)
        if actor is None:
            raise InvalidActionError(ActionRejection.ACTOR_NOT_FOUND, "Player not in this room")
        if not actor.is_alive:
            raise InvalidActionError(ActionRejection.ACTOR_DEAD, "Dead players cannot act")
        if actor.role != action.actor_role:
            raise InvalidActionError(ActionRejection.WRONG_ROLE, "Invalid action for your role")

        if getattr(game, action.target_field) is not None:
            raise InvalidActionError(
                ActionRejection.ALREADY_ACTED, "You have already acted this night"
            )

        target = snapshot.room.get_player(action.target_id)
        if target is None:
            raise InvalidActionError(ActionRejection.TARGET_NOT_FOUND, "Target not found")
        if not target.is_alive:
            raise InvalidActionError(ActionRejection.TARGET_DEAD, "Cannot target dead players")

        if isinstance(action, Kill) and target.role == Role.MAFIA:
            raise InvalidActionError(
                ActionRejection.FRIENDLY_FIRE, "Mafia cannot kill other mafia"
            )

        # Doctors may protect themselves; detectives learn nothing from themselves
        if isinstance(action, Investigate) and target.id == actor.id:
            raise InvalidActionError(
                ActionRejection.SELF_INVESTIGATION, "Cannot investigate yourself"
            )

    @staticmethod
    def submit(snapshot: RoomSnapshot, actor_id: str, action: BaseNightAction) -> List[BaseEvent]:
        """Validate and record a night action on the snapshot."""
        NightActionLedger.validate(snapshot, actor_id, action)

        game = snapshot.game
        target = snapshot.room.get_player(action.target_id)
        events: List[BaseEvent] = []

        setattr(game, action.target_field, target.id)
        setattr(game, action.name_field, target.nickname or target.id)

        if isinstance(action, Investigate):
            # Result is stored now so the detective does not wait for dawn
            result = (
                DetectiveResult.MAFIA if target.role == Role.MAFIA else DetectiveResult.NOT_MAFIA
            )
            game.detective_result = result
            events.append(InvestigationCompleted(
                room_id=snapshot.room_id,
                day_number=game.day_number,
                detective_id=actor_id,
                target_id=target.id,
                result=result,
            ))

        game.updated_at = utcnow()
        snapshot.actions.append(ActionRecord(
            room_id=snapshot.room_id,
            actor_id=actor_id,
            action_type=action.audit_type,
            target_id=target.id,
            day_number=game.day_number,
            phase=game.phase,
        ))

        logger.info(
            f"Room {snapshot.room_id}: recorded {action.action_type} "
            f"from {actor_id} on night {game.day_number}"
        )
        return events

    @staticmethod
    def role_has_acted(snapshot: RoomSnapshot, role: Role) -> bool:
        """A role with no living holder counts as having acted."""
        action_cls = next(cls for cls in ACTION_CLASSES if cls.actor_role == role)
        holders = [p for p in snapshot.room.alive_players() if p.role == role]
        if not holders:
            return True
        return getattr(snapshot.game, action_cls.target_field) is not None

    @staticmethod
    def all_acted(snapshot: RoomSnapshot) -> bool:
        return all(
            NightActionLedger.role_has_acted(snapshot, cls.actor_role) for cls in ACTION_CLASSES
        )

    @staticmethod
    def clear(snapshot: RoomSnapshot) -> None:
        """Reset tonight's targets; called once at dawn."""
        game = snapshot.game
        game.mafia_target_id = None
        game.doctor_target_id = None
        game.detective_target_id = None
        game.detective_result = None
