"""Operand values for the interpreter.

Values are plain immutable data.  A ``RegisterValue`` only names a
register; resolving it to the stored value needs the owning machine
(see ``Machine.read``).
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

INT_MIN = -(2**31)
INT_MAX = 2**31 - 1


def wrap_int(value: int) -> int:
    """Wrap an arbitrary Python int into the signed 32-bit range."""
    return (value - INT_MIN) % 2**32 + INT_MIN


class IntValue(BaseModel):
    """A literal signed 32-bit integer."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["int"] = "int"
    value: int = Field(ge=INT_MIN, le=INT_MAX)

    def __str__(self) -> str:
        return str(self.value)


class LabelValue(BaseModel):
    """A symbolic reference, resolved only when passed to a jump."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["label"] = "label"
    name: str

    def __str__(self) -> str:
        return self.name


class RegisterValue(BaseModel):
    """Reference to a machine register by name."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["register"] = "register"
    name: str

    def __str__(self) -> str:
        return f"[{self.name}]"


class EmptyValue(BaseModel):
    """Initial content of every register."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["empty"] = "empty"

    def __str__(self) -> str:
        return "EMPTY"


Value = Annotated[
    Union[IntValue, LabelValue, RegisterValue, EmptyValue],
    Field(discriminator="kind"),
]
