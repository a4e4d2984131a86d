"""Tests for machine configuration, the run loop and error reporting."""

import pytest

from conftest import add, jmp, quiet_machine, reg_int, set_

from asmdef.machine import Machine, MachineError
from asmdef.model.tokens import (
    InstructionToken,
    RegisterToken,
    StatementEnd,
    ValueToken,
)
from asmdef.model.values import (
    INT_MAX,
    EmptyValue,
    IntValue,
    LabelValue,
    RegisterValue,
)

END = StatementEnd()


def _recorder():
    calls = []

    def record(machine, args):
        calls.append(list(args))

    return calls, record


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class TestConfiguration:
    def test_builder_chaining(self):
        m = Machine().insert_register("a").insert_register("b").insert_instruction("SET", set_)
        assert isinstance(m, Machine)
        assert set(m.registers) == {"a", "b"}
        assert "SET" in m.instructions

    def test_registers_start_empty(self):
        m = Machine().insert_register("a")
        assert m.registers["a"] == EmptyValue()

    def test_duplicate_register_rejected(self):
        m = Machine().insert_register("a")
        with pytest.raises(MachineError, match="already defined"):
            m.insert_register("a")

    def test_duplicate_instruction_rejected(self):
        m = Machine().insert_instruction("SET", set_)
        with pytest.raises(MachineError, match="already defined"):
            m.insert_instruction("SET", set_)

    def test_non_alphanumeric_register_rejected(self):
        with pytest.raises(MachineError, match="alphanumeric"):
            Machine().insert_register("a_b")

    def test_instruction_table_read_only(self):
        m = Machine().insert_instruction("SET", set_)
        with pytest.raises(TypeError):
            m.instructions["JMP"] = None

    def test_frozen_after_scan(self):
        m = quiet_machine("a")
        m.scan("")
        assert m.frozen
        with pytest.raises(MachineError, match="frozen"):
            m.insert_register("b")
        with pytest.raises(MachineError, match="frozen"):
            m.insert_instruction("SET", set_)

    def test_frozen_after_run(self):
        m = quiet_machine()
        m.run([])
        with pytest.raises(MachineError, match="frozen"):
            m.insert_register("b")


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

class TestDispatch:
    def test_instruction_receives_arguments(self):
        calls, record = _recorder()
        m = quiet_machine("r", REC=record)
        m.run([
            InstructionToken(name="REC"),
            ValueToken(value=IntValue(value=1)),
            RegisterToken(name="r"),
            ValueToken(value=LabelValue(name="x")),
            END,
        ])
        assert calls == [[IntValue(value=1), RegisterValue(name="r"), LabelValue(name="x")]]
        assert m.error_count == 0

    def test_argument_list_reset_between_statements(self):
        calls, record = _recorder()
        m = quiet_machine(REC=record)
        m.interpret("REC 1 2\nREC\nREC 3")
        assert calls == [
            [IntValue(value=1), IntValue(value=2)],
            [],
            [IntValue(value=3)],
        ]

    def test_instruction_without_end_never_called(self):
        calls, record = _recorder()
        m = quiet_machine(REC=record)
        m.run([InstructionToken(name="REC"), ValueToken(value=IntValue(value=1))])
        assert calls == []
        assert m.error_count == 0

    def test_lone_statement_end_is_noop(self):
        m = quiet_machine("r")
        m.run([END])
        assert m.registers == {"r": EmptyValue()}
        assert m.error_count == 0
        assert not m.halted

    def test_set_and_add(self):
        m = quiet_machine("a", "b", SET=set_, ADD=add)
        m.interpret("SET [a] 4\nSET [b] [a]\nADD [a] [b] 3")
        assert reg_int(m, "a") == 7
        assert reg_int(m, "b") == 4

    def test_cursor_at_end_after_natural_finish(self):
        m = quiet_machine(NOP=lambda mm, a: None)
        tokens = m.scan("NOP\nNOP")
        m.run(tokens)
        assert m.cursor == len(tokens)
        assert not m.halted


# ---------------------------------------------------------------------------
# Run-loop errors
# ---------------------------------------------------------------------------

class TestRunErrors:
    def test_two_instructions_without_terminator_halts(self):
        calls, record = _recorder()
        m = quiet_machine(REC=record)
        m.run([InstructionToken(name="REC"), InstructionToken(name="REC"), END])
        assert m.halted
        assert m.error_count == 1
        assert "while REC is pending" in m.diagnostics[0]
        assert calls == []

    def test_unknown_instruction_halts(self):
        m = quiet_machine()
        m.run([InstructionToken(name="NOPE"), END])
        assert m.halted
        assert "NOPE is not a valid instruction" in m.diagnostics[0]

    def test_value_without_instruction_halts(self):
        m = quiet_machine()
        m.run([ValueToken(value=IntValue(value=5)), END])
        assert m.halted
        assert m.error_count == 1
        assert "no instruction present" in m.diagnostics[0]

    def test_register_without_instruction_only_warns(self):
        calls, record = _recorder()
        m = quiet_machine("r", REC=record)
        m.run([
            RegisterToken(name="r"),
            InstructionToken(name="REC"),
            END,
        ])
        assert not m.halted
        assert m.error_count == 1
        assert calls == [[]]

    def test_undeclared_register_halts(self):
        calls, record = _recorder()
        m = quiet_machine(REC=record)
        m.run([InstructionToken(name="REC"), RegisterToken(name="ghost"), END])
        assert m.halted
        assert "[ghost] is not defined" in m.diagnostics[0]
        assert calls == []

    def test_cursor_left_on_failing_token(self):
        m = quiet_machine(NOP=lambda mm, a: None)
        m.run([InstructionToken(name="NOP"), END, ValueToken(value=IntValue(value=1))])
        assert m.cursor == 2
        assert m.diagnostics[0].startswith("token 2:")

    def test_halted_machine_does_not_run(self):
        calls, record = _recorder()
        m = quiet_machine(REC=record)
        m.halt()
        m.run([InstructionToken(name="REC"), END])
        assert calls == []
        assert m.error_count == 0

    def test_halt_stops_remaining_statements(self):
        calls, record = _recorder()
        m = quiet_machine(REC=record, STOP=lambda mm, a: mm.halt())
        m.interpret("REC 1\nSTOP\nREC 2")
        assert calls == [[IntValue(value=1)]]
        assert m.halted
        assert m.error_count == 0


# ---------------------------------------------------------------------------
# interpret / diagnostics
# ---------------------------------------------------------------------------

class TestInterpret:
    def test_scan_errors_prevent_run(self):
        calls, record = _recorder()
        m = quiet_machine(REC=record)
        m.interpret("REC 1\nBOGUS")
        assert calls == []
        assert m.error_count == 1
        assert not m.halted

    def test_diagnostics_written_to_sink(self):
        lines = []
        m = Machine(diagnostic_sink=lines.append)
        m.raise_exception("first", False)
        m.raise_exception("second", True)
        assert lines == ["first", "second"]
        assert m.diagnostics == ["first", "second"]
        assert m.error_count == 2
        assert m.halted

    def test_default_sink_prints(self, capsys):
        m = Machine()
        m.raise_exception("boom", False)
        assert capsys.readouterr().out == "boom\n"

    def test_emit_goes_to_output_sink(self):
        out = []
        m = Machine(output_sink=out.append)
        m.emit("hello")
        assert out == ["hello"]
        assert m.output == ["hello"]

    def test_reset_clears_run_state(self):
        m = quiet_machine("a", SET=set_, ADD=add)
        m.interpret("SET [a] 1\nl:\nADD [a] [ghost]")
        assert m.halted
        m.reset()
        assert m.registers == {"a": EmptyValue()}
        assert m.labels == {}
        assert m.error_count == 0
        assert m.diagnostics == []
        assert not m.halted
        m.interpret("SET [a] 2")
        assert reg_int(m, "a") == 2

    def test_labels_do_not_leak_between_programs(self):
        m = quiet_machine("r", SET=set_, JMP=jmp)
        m.interpret("SET [r] 1\nSET [r] 1\nold:\nSET [r] 2")
        assert m.labels == {"old": 8}
        assert reg_int(m, "r") == 2

        m.interpret("JMP old\nSET [r] 3")
        assert m.labels == {}
        assert m.halted
        assert m.error_count == 1
        assert "Invalid label: old" in m.diagnostics[0]
        assert reg_int(m, "r") == 2

    def test_rescan_replaces_labels(self):
        m = quiet_machine()
        m.scan("a:")
        m.scan("b:")
        assert m.labels == {"b": 0}


class TestDumpState:
    def test_dump_lists_registers_and_instructions(self):
        lines = []
        m = Machine(diagnostic_sink=lines.append)
        m.insert_register("a").insert_register("b").insert_instruction("SET", set_)
        m.interpret("SET [a] 3")
        dumped = m.dump_state()
        assert dumped == [
            "== MACHINE STATE DUMP BEGIN ==",
            "REGISTER a is 3",
            "REGISTER b is EMPTY",
            "FOUND INSTRUCTION: SET",
            "== MACHINE STATE DUMP END ==",
        ]
        assert lines == dumped


# ---------------------------------------------------------------------------
# Register access helpers
# ---------------------------------------------------------------------------

class TestRegisterAccess:
    def test_read_int_of_label_halts(self):
        m = quiet_machine()
        assert m.read_int(LabelValue(name="x")) is None
        assert m.halted
        assert "Expected an integer operand" in m.diagnostics[0]

    def test_read_int_of_empty_register_halts(self):
        m = quiet_machine("a")
        assert m.read_int(RegisterValue(name="a")) is None
        assert m.halted

    def test_read_undeclared_register(self):
        m = quiet_machine()
        assert m.read(RegisterValue(name="q")) is None
        assert "[q] is not defined" in m.diagnostics[0]

    def test_write_requires_register(self):
        m = quiet_machine()
        assert m.write(IntValue(value=1), IntValue(value=2)) is False
        assert "Destination must be a register" in m.diagnostics[0]

    def test_write_resolves_source(self):
        m = quiet_machine("a", "b")
        m.write(RegisterValue(name="a"), 6)
        m.write(RegisterValue(name="b"), RegisterValue(name="a"))
        assert m.registers["b"] == IntValue(value=6)

    def test_write_label_into_register(self):
        m = quiet_machine("a")
        m.write(RegisterValue(name="a"), LabelValue(name="top"))
        assert m.registers["a"] == LabelValue(name="top")

    def test_write_out_of_range_int_halts(self):
        m = quiet_machine("a")
        assert m.write(RegisterValue(name="a"), INT_MAX + 1) is False
        assert m.halted
        assert m.registers["a"] == EmptyValue()
        assert "outside the signed 32-bit range" in m.diagnostics[0]

    def test_overflowing_instruction_reports_error(self):
        def add3(mm, a):
            mm.write(a[0], mm.read_int(a[1]) + mm.read_int(a[2]))

        m = quiet_machine("r", SET=set_, ADD=add3)
        m.interpret(f"SET [r] {INT_MAX}\nADD [r] [r] 1")
        assert m.halted
        assert m.error_count == 1
        assert "outside the signed 32-bit range" in m.diagnostics[0]
        assert reg_int(m, "r") == INT_MAX
