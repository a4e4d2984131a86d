"""Source listing printer for token streams.

Walks a token list and emits canonical source text: one statement per
line, label declarations on their own line before the token they name.
For a well-formed stream (every token inside an ``INSTRUCTION ... END``
statement) scanning the listing on a machine with the same instructions
gives back the same tokens and labels.

Tokens that do not belong to any statement (a stray operand or a bare
``StatementEnd``, as left behind by a malformed argument) cannot be
written as source; they are rendered as ``;;`` comments so the listing
stays readable.  Such a listing does not rescan to the same stream: the
comments take no token slots, so later labels shift.
"""

from __future__ import annotations

from collections.abc import Mapping
from io import StringIO

from asmdef.model.tokens import (
    InstructionToken,
    RegisterToken,
    StatementEnd,
    Token,
    ValueToken,
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def to_listing(tokens: list[Token], labels: Mapping[str, int] | None = None) -> str:
    """Render *tokens* (and the *labels* bound into them) as source text.

    Only streams without stray tokens rescan to the same tokens and labels.
    """
    writer = _ListingWriter(tokens, labels or {})
    return writer.render()


# ---------------------------------------------------------------------------
# Writer
# ---------------------------------------------------------------------------

class _ListingWriter:

    def __init__(self, tokens: list[Token], labels: Mapping[str, int]) -> None:
        self.tokens = tokens
        self.by_index: dict[int, list[str]] = {}
        for name, index in labels.items():
            self.by_index.setdefault(index, []).append(name)
        self.out = StringIO()

    def render(self) -> str:
        statement: list[str] | None = None
        emitted_labels: set[int] = set()

        for index, token in enumerate(self.tokens):
            if statement is None:
                self._write_labels(index)
                emitted_labels.add(index)
            elif index in self.by_index:
                names = ", ".join(sorted(self.by_index[index]))
                raise ValueError(f"Label(s) {names} point inside a statement (token {index})")

            if isinstance(token, InstructionToken):
                if statement is not None:
                    self._line(" ".join(statement))
                statement = [token.name]
            elif isinstance(token, StatementEnd):
                if statement is None:
                    self._line(";; stray statement end")
                else:
                    self._line(" ".join(statement))
                    statement = None
            elif statement is None:
                self._line(f";; stray operand {_operand(token)}")
            else:
                statement.append(_operand(token))

        if statement is not None:
            self._line(" ".join(statement))

        for index in sorted(self.by_index):
            if index not in emitted_labels:
                self._write_labels(index)
        return self.out.getvalue()

    def _write_labels(self, index: int) -> None:
        for name in sorted(self.by_index.get(index, ())):
            self._line(f"{name}:")

    def _line(self, text: str) -> None:
        self.out.write(text)
        self.out.write("\n")


def _operand(token: Token) -> str:
    if isinstance(token, RegisterToken):
        return f"[{token.name}]"
    if isinstance(token, ValueToken):
        return str(token.value)
    return repr(token)
