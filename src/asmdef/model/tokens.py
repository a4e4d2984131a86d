"""Token stream nodes produced by the scanner.

A program is a flat ``list[Token]`` consumed by index, not a tree.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from .values import Value


class ValueToken(BaseModel):
    """A literal or label operand."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["value"] = "value"
    value: Value


class InstructionToken(BaseModel):
    """The mnemonic that opens a statement."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["instruction"] = "instruction"
    name: str


class RegisterToken(BaseModel):
    """An operand naming a register."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["register"] = "register"
    name: str


class StatementEnd(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["end"] = "end"


Token = Annotated[
    Union[ValueToken, InstructionToken, RegisterToken, StatementEnd],
    Field(discriminator="kind"),
]
