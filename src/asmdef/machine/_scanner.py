"""Line scanner: source text -> flat token list.

Each non-empty line is either a label declaration (``name:``) or a
statement ``MNEMONIC arg arg ...``.  Label lines produce no tokens; the
label is bound to the index of the next token emitted.  Every statement
ends with a ``StatementEnd`` token.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from asmdef.model.tokens import (
    InstructionToken,
    RegisterToken,
    StatementEnd,
    Token,
    ValueToken,
)
from asmdef.model.values import LabelValue

from ._values import parse_int_literal

if TYPE_CHECKING:
    from ._machine import Machine

logger = logging.getLogger(__name__)

COMMENT_MARKER = ";;"


def _strip_whitespace(word: str) -> str:
    return "".join(ch for ch in word if not ch.isspace())


class Scanner:
    """Tokenizes source for one machine.

    Structural errors are reported through ``machine.raise_exception``
    without halting so that one pass reports all of them.
    """

    def __init__(self, machine: Machine) -> None:
        self.machine = machine

    def scan(self, source: str) -> list[Token]:
        tokens: list[Token] = []
        for line_no, raw in enumerate(source.split("\n"), start=1):
            line = raw.split(COMMENT_MARKER, 1)[0].strip()
            if not line:
                continue

            words = line.split(" ")
            if words[0].endswith(":"):
                self._declare_label(words, len(tokens), line_no)
                continue

            tokens.append(self._match_instruction(words[0], line_no))
            for word in words[1:]:
                tokens.append(self._match_argument(word, line_no))
            tokens.append(StatementEnd())
        return tokens

    # -----------------------------------------------------------------------
    # Line forms
    # -----------------------------------------------------------------------

    def _declare_label(self, words: list[str], index: int, line_no: int) -> None:
        name = words[0].replace(":", "")
        if not name:
            self.machine.raise_exception(f"line {line_no}: empty label name", False)
            return
        if not name.isalnum():
            self.machine.raise_exception(
                f"line {line_no}: label name '{name}' must be alphanumeric", False,
            )
            return
        if len(words) > 1:
            self.machine.raise_exception(
                f"line {line_no}: label '{name}' cannot share a line with an instruction",
                False,
            )
        self.machine.labels[name] = index
        logger.debug("label %s -> token %d", name, index)

    def _match_instruction(self, word: str, line_no: int) -> InstructionToken:
        name = _strip_whitespace(word)
        if name not in self.machine.instructions:
            self.machine.raise_exception(
                f"line {line_no}: {name} is an unknown instruction", False,
            )
        return InstructionToken(name=name)

    def _match_argument(self, word: str, line_no: int) -> Token:
        word = _strip_whitespace(word)
        if not word:
            self.machine.raise_exception(f"line {line_no}: empty argument", False)
            return StatementEnd()

        if word.isdecimal():
            literal = parse_int_literal(word)
            if literal is None:
                self.machine.raise_exception(
                    f"line {line_no}: integer literal {word} is out of range", False,
                )
                return StatementEnd()
            return ValueToken(value=literal)

        if word.isalnum():
            return ValueToken(value=LabelValue(name=word))

        if word.startswith("[") and word.endswith("]"):
            return RegisterToken(name="".join(ch for ch in word if ch.isalnum()))

        if word.startswith('"') and word.endswith('"'):
            raise NotImplementedError(
                f"line {line_no}: string literal arguments are not supported: {word}"
            )

        # Malformed operand: closes the statement early without a diagnostic.
        logger.debug("line %d: malformed argument %r treated as statement end", line_no, word)
        return StatementEnd()
