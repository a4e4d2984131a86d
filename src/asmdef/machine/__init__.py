"""asmdef machine: scan and run line-oriented assembly programs.

Entry point::

    from asmdef.machine import STANDARD_INSTRUCTIONS, interpret

    machine = interpret(
        "SET [a] 2\\nADD [a] 3",
        registers=["a"],
        instructions=STANDARD_INSTRUCTIONS,
    )
    assert machine.read_int(machine.registers["a"]) == 5
"""

from __future__ import annotations

from collections.abc import Iterable

from ._instructions import Instruction, InstructionCallback, InstructionSet
from ._machine import Machine, Sink
from ._scanner import Scanner
from ._stdlib import STANDARD_INSTRUCTIONS
from ._values import MachineError


def interpret(
    source: str,
    *,
    registers: Iterable[str] = (),
    instructions: Iterable[Instruction] = (),
    diagnostic_sink: Sink | None = None,
    output_sink: Sink | None = None,
) -> Machine:
    """Build a machine, interpret *source* on it and return the machine.

    Parameters
    ----------
    source
        Program text.
    registers
        Register names to declare; each starts out empty.
    instructions
        An ``InstructionSet`` (or any iterable of ``Instruction``).
    diagnostic_sink, output_sink
        Forwarded to ``Machine``.
    """
    machine = Machine(diagnostic_sink=diagnostic_sink, output_sink=output_sink)
    for name in registers:
        machine.insert_register(name)
    machine.insert_instructions(instructions)
    machine.interpret(source)
    return machine


__all__ = [
    "Instruction",
    "InstructionCallback",
    "InstructionSet",
    "Machine",
    "MachineError",
    "STANDARD_INSTRUCTIONS",
    "Scanner",
    "interpret",
]
