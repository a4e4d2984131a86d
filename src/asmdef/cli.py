"""``asmdef`` command line entry point.

Runs a program with the bundled instruction set::

    asmdef program.asm -r a -r b --dump
    asmdef --source "SET [a] 7" -r a --dump
"""

from __future__ import annotations

import argparse
import logging
import sys

from asmdef.export import to_listing
from asmdef.machine import STANDARD_INSTRUCTIONS, Machine, MachineError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="asmdef",
        description="Line-oriented assembly interpreter",
    )
    parser.add_argument("program", help="Source file path, or literal source with --source")
    parser.add_argument(
        "-r", "--register", dest="registers", action="append", default=[], metavar="NAME",
        help="Declare a register (repeatable)",
    )
    parser.add_argument("--source", dest="source_mode", action="store_true",
                        help="Treat the program argument as literal source text")
    parser.add_argument("--dump", action="store_true", help="Print the machine state after running")
    parser.add_argument("--listing", action="store_true", help="Print the scanned token stream as source")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    if args.source_mode:
        source = args.program
    else:
        try:
            with open(args.program, "r", encoding="utf-8") as handle:
                source = handle.read()
        except OSError as exc:
            print(f"Failed to read {args.program}: {exc}", file=sys.stderr)
            return 1

    machine = Machine()
    try:
        for name in args.registers:
            machine.insert_register(name)
    except MachineError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    machine.insert_instructions(STANDARD_INSTRUCTIONS)

    try:
        tokens = machine.scan(source)
    except NotImplementedError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if args.listing:
        print(to_listing(tokens, machine.labels), end="")

    if machine.error_count == 0:
        machine.run(tokens)

    if args.dump:
        machine.dump_state()

    return 1 if machine.error_count else 0


if __name__ == "__main__":
    raise SystemExit(main())
