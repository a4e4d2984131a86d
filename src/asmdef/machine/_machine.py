"""The machine: register table, instruction table, labels and run loop.

A machine is configured builder-style, then driven through ``scan`` and
``run`` (or both at once with ``interpret``)::

    machine = (
        Machine()
        .insert_register("r")
        .insert_instruction("SET", set_, min_args=2, max_args=2)
    )
    machine.interpret("SET [r] 5")
    assert machine.registers["r"] == IntValue(value=5)

Program errors never raise.  They go through ``raise_exception``, which
records the message, bumps ``error_count`` and optionally sets ``halted``.
The run loop checks ``halted`` before every token.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from types import MappingProxyType

from asmdef.model.tokens import (
    InstructionToken,
    RegisterToken,
    StatementEnd,
    Token,
    ValueToken,
)
from asmdef.model.values import (
    INT_MAX,
    INT_MIN,
    EmptyValue,
    IntValue,
    LabelValue,
    RegisterValue,
    Value,
)

from ._instructions import Instruction, InstructionCallback
from ._scanner import Scanner
from ._values import MachineError, kind_name, resolve

logger = logging.getLogger(__name__)

Sink = Callable[[str], None]


class Machine:
    """Single-threaded interpreter state for one program.

    Parameters
    ----------
    diagnostic_sink : callable, optional
        Receives each error message and state dump line.  Defaults to
        ``print``.
    output_sink : callable, optional
        Receives text emitted by instructions via ``emit``.  Defaults to
        ``print``.
    """

    def __init__(
        self,
        diagnostic_sink: Sink | None = None,
        output_sink: Sink | None = None,
    ) -> None:
        self.registers: dict[str, Value] = {}
        self.labels: dict[str, int] = {}
        self.cursor = 0
        self.halted = False
        self.error_count = 0
        self.diagnostics: list[str] = []
        self.output: list[str] = []
        self._instructions: dict[str, Instruction] = {}
        self._diagnostic_sink = diagnostic_sink or print
        self._output_sink = output_sink or print
        self._frozen = False
        self._jumped = False

    # -----------------------------------------------------------------------
    # Configuration
    # -----------------------------------------------------------------------

    @property
    def instructions(self) -> Mapping[str, Instruction]:
        """Read-only view of the registered instructions."""
        return MappingProxyType(self._instructions)

    @property
    def frozen(self) -> bool:
        """True once the machine has scanned or run a program."""
        return self._frozen

    def insert_register(self, name: str) -> Machine:
        self._check_configurable()
        if not name or not name.isalnum():
            raise MachineError(f"Register name must be alphanumeric, got {name!r}")
        if name in self.registers:
            raise MachineError(f"Register '{name}' is already defined")
        self.registers[name] = EmptyValue()
        return self

    def insert_instruction(
        self,
        name: str,
        callback: InstructionCallback,
        min_args: int = 0,
        max_args: int | None = None,
    ) -> Machine:
        return self._add_instruction(Instruction(name, callback, min_args, max_args))

    def insert_instructions(self, instructions: Iterable[Instruction]) -> Machine:
        """Register every instruction of an ``InstructionSet`` (or any iterable)."""
        for instruction in instructions:
            self._add_instruction(instruction)
        return self

    def _add_instruction(self, instruction: Instruction) -> Machine:
        self._check_configurable()
        if instruction.name in self._instructions:
            raise MachineError(f"Instruction '{instruction.name}' is already defined")
        self._instructions[instruction.name] = instruction
        return self

    def _check_configurable(self) -> None:
        if self._frozen:
            raise MachineError("Machine configuration is frozen once a program has been scanned or run")

    # -----------------------------------------------------------------------
    # Diagnostics
    # -----------------------------------------------------------------------

    def raise_exception(self, message: str, halt: bool) -> None:
        """Report a program error; halts the machine when *halt* is true."""
        self.diagnostics.append(message)
        self._diagnostic_sink(message)
        self.error_count += 1
        if halt:
            self.halted = True
            logger.debug("halted at token %d: %s", self.cursor, message)

    def halt(self) -> None:
        """Stop execution without reporting an error."""
        self.halted = True

    def emit(self, text: str) -> None:
        """Write program output (used by PRINT-style instructions)."""
        self.output.append(text)
        self._output_sink(text)

    def dump_state(self) -> list[str]:
        """Write every register value and instruction name to the diagnostic sink."""
        lines = ["== MACHINE STATE DUMP BEGIN =="]
        for name, value in self.registers.items():
            lines.append(f"REGISTER {name} is {value}")
        for name in self._instructions:
            lines.append(f"FOUND INSTRUCTION: {name}")
        lines.append("== MACHINE STATE DUMP END ==")
        for line in lines:
            self._diagnostic_sink(line)
        return lines

    # -----------------------------------------------------------------------
    # Register access for instruction callbacks
    # -----------------------------------------------------------------------

    def read(self, value: Value) -> Value | None:
        """Resolve *value*, following register references.

        Reports an error and halts when the register is undeclared.
        """
        resolved = resolve(value, self.registers)
        if resolved is None:
            self.raise_exception(f"Register {value} is not defined", True)
        return resolved

    def read_int(self, value: Value) -> int | None:
        """Resolve *value* to a Python int, or report and halt."""
        resolved = self.read(value)
        if resolved is None:
            return None
        if not isinstance(resolved, IntValue):
            self.raise_exception(
                f"Expected an integer operand, got {kind_name(resolved)} {resolved}", True,
            )
            return None
        return resolved.value

    def write(self, target: Value, value: Value | int) -> bool:
        """Store *value* (resolved first) into the register *target* names."""
        if not isinstance(target, RegisterValue):
            self.raise_exception(
                f"Destination must be a register, got {kind_name(target)} {target}", True,
            )
            return False
        if target.name not in self.registers:
            self.raise_exception(f"Register {target} is not defined", True)
            return False
        if isinstance(value, int):
            if not INT_MIN <= value <= INT_MAX:
                self.raise_exception(
                    f"Integer {value} is outside the signed 32-bit range", True,
                )
                return False
            value = IntValue(value=value)
        resolved = self.read(value)
        if resolved is None:
            return False
        self.registers[target.name] = resolved
        return True

    # -----------------------------------------------------------------------
    # Jumps
    # -----------------------------------------------------------------------

    def jump_to_value(self, value: Value) -> None:
        """Jump to the absolute token index held by an integer value."""
        resolved = resolve(value, self.registers)
        if isinstance(resolved, IntValue) and resolved.value >= 0:
            self.jump(resolved.value)
            return
        self.raise_exception(f"Invalid destination: {value}", True)

    def jump_to_label(self, value: Value) -> None:
        """Jump to the token index bound to a label value."""
        resolved = resolve(value, self.registers)
        if isinstance(resolved, LabelValue) and resolved.name in self.labels:
            self.jump(self.labels[resolved.name])
            return
        self.raise_exception(f"Invalid label: {value}", True)

    def jump(self, index: int) -> None:
        """Make *index* the next token processed by the run loop."""
        if index < 0:
            self.raise_exception(f"Invalid destination: {index}", True)
            return
        logger.debug("jump %d -> %d", self.cursor, index)
        self.cursor = index
        self._jumped = True

    # -----------------------------------------------------------------------
    # Scan / run
    # -----------------------------------------------------------------------

    def scan(self, source: str) -> list[Token]:
        """Tokenize *source*, binding labels on this machine.

        Labels from a previously scanned program are discarded.
        """
        self._frozen = True
        self.labels.clear()
        return Scanner(self).scan(source)

    def run(self, tokens: list[Token]) -> None:
        """Execute a token list from index 0 until the end or a halt."""
        self._frozen = True
        self.cursor = 0
        pending: Instruction | None = None
        args: list[Value] = []

        while self.cursor < len(tokens):
            if self.halted:
                return
            token = tokens[self.cursor]
            self._jumped = False

            if isinstance(token, InstructionToken):
                if pending is not None:
                    self._token_error(
                        f"instruction {token.name} encountered while {pending.name} is pending", True,
                    )
                    continue
                instruction = self._instructions.get(token.name)
                if instruction is None:
                    self._token_error(f"{token.name} is not a valid instruction", True)
                    continue
                pending = instruction
                args = []

            elif isinstance(token, ValueToken):
                if pending is None:
                    self._token_error(f"value {token.value} encountered with no instruction present", True)
                    continue
                args.append(token.value)

            elif isinstance(token, RegisterToken):
                if pending is None:
                    # Soft warning only; the token is skipped.
                    self._token_error(
                        f"register reference [{token.name}] encountered with no instruction present", False,
                    )
                elif token.name not in self.registers:
                    self._token_error(f"register [{token.name}] is not defined", True)
                    continue
                else:
                    args.append(RegisterValue(name=token.name))

            elif isinstance(token, StatementEnd):
                if pending is not None:
                    instruction, call_args = pending, args
                    pending, args = None, []
                    instruction.execute(self, call_args)

            if not self._jumped:
                self.cursor += 1

    def interpret(self, source: str) -> None:
        """Scan *source* and run it unless scanning reported errors."""
        errors_before = self.error_count
        tokens = self.scan(source)
        if self.error_count > errors_before:
            logger.debug("not running: %d scan error(s)", self.error_count - errors_before)
            return
        self.run(tokens)

    def reset(self) -> None:
        """Clear run state and registers, keeping the configuration."""
        for name in self.registers:
            self.registers[name] = EmptyValue()
        self.labels.clear()
        self.cursor = 0
        self.halted = False
        self.error_count = 0
        self.diagnostics.clear()
        self.output.clear()

    def _token_error(self, message: str, halt: bool) -> None:
        self.raise_exception(f"token {self.cursor}: {message}", halt)
