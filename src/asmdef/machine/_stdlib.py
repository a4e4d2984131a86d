"""Bundled instruction set.

Hosts are free to register their own instructions instead; this set is a
ready-made default for the CLI and for quick experiments.

Arithmetic takes ``dst a b`` (``dst = a op b``) or ``dst a``
(``dst = dst op a``) and wraps to signed 32 bits.
"""

from __future__ import annotations

import operator
from collections.abc import Callable
from typing import TYPE_CHECKING

from asmdef.model.values import Value, wrap_int

from ._instructions import InstructionSet

if TYPE_CHECKING:
    from ._machine import Machine

STANDARD_INSTRUCTIONS = InstructionSet()


@STANDARD_INSTRUCTIONS.instruction("NOP", 0, 0)
def _nop(machine: Machine, args: list[Value]) -> None:
    pass


@STANDARD_INSTRUCTIONS.instruction("SET", 2, 2)
def _set(machine: Machine, args: list[Value]) -> None:
    machine.write(args[0], args[1])


def _arithmetic(op: Callable[[int, int], int]):
    def execute(machine: Machine, args: list[Value]) -> None:
        dst = args[0]
        operands = args[1:] if len(args) == 3 else [dst, args[1]]
        left = machine.read_int(operands[0])
        if left is None:
            return
        right = machine.read_int(operands[1])
        if right is None:
            return
        machine.write(dst, wrap_int(op(left, right)))

    return execute


STANDARD_INSTRUCTIONS.register("ADD", _arithmetic(operator.add), 2, 3)
STANDARD_INSTRUCTIONS.register("SUB", _arithmetic(operator.sub), 2, 3)
STANDARD_INSTRUCTIONS.register("MUL", _arithmetic(operator.mul), 2, 3)


@STANDARD_INSTRUCTIONS.instruction("JMP", 1, 1)
def _jmp(machine: Machine, args: list[Value]) -> None:
    machine.jump_to_label(args[0])


@STANDARD_INSTRUCTIONS.instruction("JV", 1, 1)
def _jv(machine: Machine, args: list[Value]) -> None:
    machine.jump_to_value(args[0])


@STANDARD_INSTRUCTIONS.instruction("JZ", 2, 2)
def _jz(machine: Machine, args: list[Value]) -> None:
    value = machine.read_int(args[0])
    if value == 0:
        machine.jump_to_label(args[1])


@STANDARD_INSTRUCTIONS.instruction("JNZ", 2, 2)
def _jnz(machine: Machine, args: list[Value]) -> None:
    value = machine.read_int(args[0])
    if value is not None and value != 0:
        machine.jump_to_label(args[1])


@STANDARD_INSTRUCTIONS.instruction("PRINT")
def _print(machine: Machine, args: list[Value]) -> None:
    parts = []
    for arg in args:
        resolved = machine.read(arg)
        if resolved is None:
            return
        parts.append(str(resolved))
    machine.emit(" ".join(parts))


@STANDARD_INSTRUCTIONS.instruction("HALT", 0, 0)
def _halt(machine: Machine, args: list[Value]) -> None:
    machine.halt()
