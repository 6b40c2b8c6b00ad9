"""Night action models for the Mafia room engine"""

from typing import Annotated, ClassVar, Literal, Union
from pydantic import BaseModel, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from mafia.errors.handler import ValidationError
from mafia.types.game import Role


class BaseNightAction(BaseModel):
    """Common shape of a night action; subclasses pin the acting role"""
    target_id: str = Field(..., min_length=1, description="Room player id of the target")

    actor_role: ClassVar[Role]
    target_field: ClassVar[str]
    name_field: ClassVar[str]

    @property
    def audit_type(self) -> str:
        return f"{self.actor_role.value}_action"


class Kill(BaseNightAction):
    """Mafia picks tonight's victim"""
    action_type: Literal["kill"] = "kill"

    actor_role: ClassVar[Role] = Role.MAFIA
    target_field: ClassVar[str] = "mafia_target_id"
    name_field: ClassVar[str] = "last_mafia_target_name"


class Protect(BaseNightAction):
    """Doctor shields one player from the kill"""
    action_type: Literal["protect"] = "protect"

    actor_role: ClassVar[Role] = Role.DOCTOR
    target_field: ClassVar[str] = "doctor_target_id"
    name_field: ClassVar[str] = "last_doctor_target_name"


class Investigate(BaseNightAction):
    """Detective learns whether the target is mafia"""
    action_type: Literal["investigate"] = "investigate"

    actor_role: ClassVar[Role] = Role.DETECTIVE
    target_field: ClassVar[str] = "detective_target_id"
    name_field: ClassVar[str] = "last_detective_target_name"


NightAction = Annotated[Union[Kill, Protect, Investigate], Field(discriminator="action_type")]

ACTION_CLASSES = (Kill, Protect, Investigate)

_night_action_adapter: TypeAdapter = TypeAdapter(NightAction)


def build_night_action(action_type: str, target_id: str) -> BaseNightAction:
    """Parse a wire-level (action_type, target_id) pair into a typed action."""
    try:
        return _night_action_adapter.validate_python(
            {"action_type": action_type, "target_id": target_id}
        )
    except PydanticValidationError as e:
        raise ValidationError(
            f"Invalid night action '{action_type}': {e.errors()[0]['msg']}"
        ) from e
