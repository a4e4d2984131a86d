"""Instruction dispatch: host-supplied callbacks bound to mnemonics.

An ``Instruction`` is immutable once built.  ``InstructionSet`` collects
instructions through a decorator so a whole family can be registered on
a machine in one call::

    ops = InstructionSet()

    @ops.instruction("SET", min_args=2, max_args=2)
    def set_(machine, args):
        machine.write(args[0], args[1])

    machine = Machine().insert_register("a").insert_instructions(ops)
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from asmdef.model.values import Value

from ._values import MachineError

if TYPE_CHECKING:
    from ._machine import Machine

InstructionCallback = Callable[["Machine", list[Value]], None]


@dataclass(frozen=True)
class Instruction:
    """A named callback with optional arity bounds.

    ``max_args=None`` means unbounded.
    """

    name: str
    callback: InstructionCallback
    min_args: int = 0
    max_args: int | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise MachineError("Instruction name must be non-empty")
        if not callable(self.callback):
            raise MachineError(f"Instruction '{self.name}' callback is not callable")
        if self.min_args < 0:
            raise MachineError(f"Instruction '{self.name}' min_args must be >= 0")
        if self.max_args is not None and self.max_args < self.min_args:
            raise MachineError(
                f"Instruction '{self.name}' max_args ({self.max_args}) "
                f"must be >= min_args ({self.min_args})"
            )

    def accepts(self, count: int) -> bool:
        if count < self.min_args:
            return False
        return self.max_args is None or count <= self.max_args

    def execute(self, machine: Machine, args: list[Value]) -> None:
        """Invoke the callback, reporting an arity mismatch instead."""
        if not self.accepts(len(args)):
            machine.raise_exception(
                f"{self.name} expects {self._arity_text()} argument(s), got {len(args)}",
                True,
            )
            return
        self.callback(machine, args)

    def _arity_text(self) -> str:
        if self.max_args is None:
            return f"at least {self.min_args}"
        if self.max_args == self.min_args:
            return str(self.min_args)
        return f"{self.min_args}-{self.max_args}"


class InstructionSet:
    """Ordered collection of instructions keyed by mnemonic."""

    def __init__(self) -> None:
        self._instructions: dict[str, Instruction] = {}

    def add(self, instruction: Instruction) -> None:
        if instruction.name in self._instructions:
            raise MachineError(f"Instruction '{instruction.name}' is already defined")
        self._instructions[instruction.name] = instruction

    def register(
        self,
        name: str,
        callback: InstructionCallback,
        min_args: int = 0,
        max_args: int | None = None,
    ) -> None:
        self.add(Instruction(name, callback, min_args, max_args))

    def instruction(self, name: str, min_args: int = 0, max_args: int | None = None):
        """Decorator form of ``register``."""
        def deco(fn: InstructionCallback) -> InstructionCallback:
            self.register(name, fn, min_args, max_args)
            return fn

        return deco

    def names(self) -> list[str]:
        return list(self._instructions)

    def __contains__(self, name: object) -> bool:
        return name in self._instructions

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self._instructions.values())

    def __len__(self) -> int:
        return len(self._instructions)
