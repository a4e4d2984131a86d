"""Shared test helpers for the asmdef test suite."""

from asmdef.machine import Machine
from asmdef.model.values import IntValue


def quiet_machine(*registers, **instructions):
    """Build a machine whose sinks discard text (it is still kept on the machine).

    *instructions* maps mnemonic -> callback; each accepts any arity.
    """
    machine = Machine(diagnostic_sink=lambda _: None, output_sink=lambda _: None)
    for name in registers:
        machine.insert_register(name)
    for name, callback in instructions.items():
        machine.insert_instruction(name, callback)
    return machine


def set_(machine, args):
    machine.write(args[0], args[1])


def add(machine, args):
    """``ADD dst a b`` -> dst = a + b; ``ADD dst a`` -> dst = dst + a."""
    dst, *operands = args
    if len(operands) == 1:
        operands = [dst, operands[0]]
    total = sum(machine.read_int(op) for op in operands)
    machine.write(dst, total)


def jmp(machine, args):
    machine.jump_to_label(args[0])


def reg_int(machine, name):
    """Integer held by a register (asserts the register holds an int)."""
    value = machine.registers[name]
    assert isinstance(value, IntValue), f"register {name} holds {value!r}"
    return value.value
