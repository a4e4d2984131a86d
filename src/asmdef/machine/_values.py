"""Value resolution helpers for the machine.

Resolution takes the register table explicitly; values never point back
at the machine that produced them.
"""

from __future__ import annotations

from collections.abc import Mapping

from asmdef.model.values import (
    EmptyValue,
    IntValue,
    LabelValue,
    RegisterValue,
    Value,
)


class MachineError(Exception):
    """Host-side misuse of the machine API (not a program error)."""


_KIND_NAMES = {
    IntValue: "integer",
    LabelValue: "label",
    RegisterValue: "register",
    EmptyValue: "empty",
}


def kind_name(value: Value) -> str:
    """Human-readable kind of a value for diagnostics."""
    return _KIND_NAMES.get(type(value), type(value).__name__)


def resolve(value: Value, registers: Mapping[str, Value]) -> Value | None:
    """Follow a register reference to its stored value.

    Non-register values resolve to themselves.  Returns ``None`` when the
    register is not declared.
    """
    if isinstance(value, RegisterValue):
        return registers.get(value.name)
    return value


def parse_int_literal(word: str) -> IntValue | None:
    """Parse an all-digit word into an ``IntValue``.

    Returns ``None`` when the number does not fit in 32 bits.
    """
    number = int(word)
    if number > 2**31 - 1:
        return None
    return IntValue(value=number)
