#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
xod/__main__.py
===============

Command-line front-end for the xod calculator.

Usage
-----
    python -m xod                      # interactive loop
    python -m xod 0x1f                 # show a number in every base
    python -m xod 0x1f '<<' 4          # one-shot operation
    python -m xod 0b1010 not           # unary operation
    python -m xod -f script.xod        # evaluate a file

Operations for one-shot mode may be given as symbols or words:
``&``/``and``, ``|``/``or``, ``^``/``xor``, ``<<``/``left``,
``>>``/``right``, ``!``/``~``/``not``, ``+``/``plus``/``add``,
``-``/``minus``/``sub``, ``*``/``x``/``times``/``mul``, ``/``/``div``,
``%``/``mod``, ``**``/``pow``.

Interactive input that leaves a bracket open is continued on the next
line.  ``quit()`` / ``exit()`` or end-of-file leave the loop; Ctrl-C
abandons the current input (including a running loop) and keeps the
session.

Exit codes
----------
    0   Success.
    1   A statement failed to parse or evaluate.
    2   Bad command-line usage or unreadable input file.

Environment
-----------
    PARSE_DEBUG   when set, log every parse attempt at DEBUG level
    NO_COLOR      when set, never colour diagnostics
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Callable, List, Optional, Sequence, TextIO

from xod import __version__
from xod.ast import BitOp, ControlSignal
from xod.config import XodConfig
from xod.diagnostics import get_colors, render_error
from xod.errors import IncompleteInputError, XodError, XodParseError
from xod.evaluator import Evaluator, OperatorError, apply_operator
from xod.numbers import LiteralError, describe_number, parse_literal
from xod.parser import parse
from xod.runtime import Completed, Environment, Failure, ListValue, NumValue

_log = logging.getLogger("xod")

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_USAGE: int = 2

PROMPT = ">>> "
CONTINUATION_PROMPT = "... "

_CLEAR_SCREEN = "\033[2J\033[H"

OPERATOR_NAMES = {
    "&": BitOp.AND, "and": BitOp.AND,
    "|": BitOp.OR, "or": BitOp.OR,
    "^": BitOp.XOR, "xor": BitOp.XOR,
    "<<": BitOp.SHL, "left": BitOp.SHL,
    ">>": BitOp.SHR, "right": BitOp.SHR,
    "!": BitOp.NOT, "~": BitOp.NOT, "not": BitOp.NOT,
    "+": BitOp.ADD, "plus": BitOp.ADD, "add": BitOp.ADD,
    "-": BitOp.SUB, "minus": BitOp.SUB, "sub": BitOp.SUB,
    "*": BitOp.MUL, "x": BitOp.MUL, "times": BitOp.MUL, "mul": BitOp.MUL,
    "/": BitOp.DIV, "div": BitOp.DIV,
    "%": BitOp.MOD, "mod": BitOp.MOD,
    "**": BitOp.POW, "pow": BitOp.POW,
}

HELP_TEXT = """\
xod - bit manipulation calculator

Numbers     42   0x2a   0o52   0b101010
Variables   x = 0x10        lst = [1, 2, x]      r = 0..8
Operators   a & b   a | b   a ^ b   a << n   a >> n   !a   ~a
            a + b   a - b   a * b   a / b    a % b    a ** b
            one operator per expression; nest with parentheses:
            (a & b) | c
Compare     a == b  a != b  a >= b  a <= b  a > b  a < b
Lists       lst.append(v)  lst.prepend(v)  lst.pop()  lst.front()
            lst.pop_back() lst.back()      lst.index(i)  lst.get(i)
Blocks      for (i in lst) { ... }   for (i in 0..4) { ... }
            while (i < 8) { ... }    if (x == 1) { ... }
Functions   hex(v) bin(v) oct(v) dec(v)  bool(v)  bool(a == b)
            log(v, base)  history()  clear()  help()  quit()  exit()"""


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int, parse_debug: bool = False) -> None:
    """Set up the root ``xod`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    parse_debug:
        Force DEBUG on ``xod.parser`` regardless of *verbosity*.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    root = logging.getLogger("xod")
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
                datefmt="%H:%M:%S",
            )
        )
        root.addHandler(handler)
    if parse_debug:
        logging.getLogger("xod.parser").setLevel(logging.DEBUG)


def parse_operator_name(name: str) -> BitOp:
    """Map a one-shot operation argument to its operator."""
    try:
        return OPERATOR_NAMES[name.lower()]
    except KeyError:
        raise ValueError(f"unknown operation: {name!r}") from None


# ===========================================================================
# Session
# ===========================================================================

class Session:
    """One interactive or batch session: environment, history and output.

    ``submit`` runs one complete input unit (possibly several lines) and
    returns ``False`` once the user asked to quit.
    """

    def __init__(
        self,
        config: Optional[XodConfig] = None,
        out: Optional[TextIO] = None,
        err: Optional[TextIO] = None,
    ) -> None:
        self.config = config or XodConfig()
        self.env = Environment()
        self.out = out or sys.stdout
        self.err = err or sys.stderr
        self.history: List[str] = []
        self.failures = 0
        self.colors = get_colors(self.err, force=self.config.color)
        self._evaluator = Evaluator(self.env, self.config, self.out)

    def submit(self, text: str) -> bool:
        """Parse and run *text*.

        ``IncompleteInputError`` propagates so the caller can read more
        input; every other problem is reported to ``err``.
        """
        try:
            lines = parse(text, self.config)
        except IncompleteInputError:
            raise
        except XodParseError as exc:
            self._record(text)
            self.report(exc, text)
            return True

        self._record(text)
        for outcome in self._evaluator.run(lines):
            if isinstance(outcome, Completed):
                self.show(outcome.result)
            elif isinstance(outcome, Failure):
                self.report(outcome.error, text)
            else:
                return self.handle_signal(outcome.signal)
        return True

    def _record(self, text: str) -> None:
        if text.strip():
            self.history.append(text.rstrip("\n"))

    def show(self, result) -> None:
        if isinstance(result, NumValue):
            print(describe_number(result.value), file=self.out)
        elif isinstance(result, ListValue):
            print(result.render(), file=self.out)

    def report(self, error: XodError, source: str) -> None:
        self.failures += 1
        _log.info("%s at %d-%d", error.code, error.span.start, error.span.end)
        print(render_error(error, source, self.colors), file=self.err)

    def handle_signal(self, signal: ControlSignal) -> bool:
        if signal is ControlSignal.QUIT:
            return False
        if signal is ControlSignal.HELP:
            print(HELP_TEXT, file=self.out)
        elif signal is ControlSignal.HISTORY:
            for number, entry in enumerate(self.history, 1):
                print(f"{number:>4}  {entry}", file=self.out)
        elif signal is ControlSignal.CLEAR:
            self.out.write(_CLEAR_SCREEN)
            self.out.flush()
        return True


def interactive(session: Session, reader: Callable[[str], str] = input) -> int:
    """Read-eval-print loop.  *reader* behaves like ``input``."""
    buffer = ""
    while True:
        try:
            line = reader(CONTINUATION_PROMPT if buffer else PROMPT)
        except EOFError:
            return EXIT_OK
        except KeyboardInterrupt:
            print(file=session.out)
            buffer = ""
            continue
        buffer += line + "\n"
        try:
            keep_going = session.submit(buffer)
        except IncompleteInputError:
            continue
        except KeyboardInterrupt:
            _log.info("Evaluation interrupted.")
            print(file=session.out)
            buffer = ""
            continue
        buffer = ""
        if not keep_going:
            return EXIT_OK


def run_file(path: Path, session: Session) -> int:
    """Evaluate a whole file as one input unit."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        _log.error("cannot read %s: %s", path, exc)
        return EXIT_USAGE
    try:
        session.submit(text)
    except IncompleteInputError as exc:
        session.report(exc, text)
    return EXIT_ERROR if session.failures else EXIT_OK


def one_shot(
    number: str,
    operation: Optional[str],
    other: Optional[str],
    config: XodConfig,
    out: Optional[TextIO] = None,
) -> int:
    """Describe *number*, or the result of ``number OP other``."""
    out = out or sys.stdout
    try:
        value, _ = parse_literal(number, config.bit_width)
        op = parse_operator_name(operation) if operation else None
        right = parse_literal(other, config.bit_width)[0] if other else None
    except (LiteralError, ValueError) as exc:
        print(f"xod: error: {exc}", file=sys.stderr)
        return EXIT_USAGE

    print(describe_number(value, "Input:"), file=out)
    if op is None:
        return EXIT_OK
    if op is not BitOp.NOT:
        if right is None:
            print(f"xod: error: operation {op.token} needs a second number", file=sys.stderr)
            return EXIT_USAGE
        print(describe_number(right, "Other:"), file=out)
    try:
        result = apply_operator(op, value, right, config.bit_width)
    except OperatorError as exc:
        print(f"xod: error: {exc.message}", file=sys.stderr)
        return EXIT_ERROR
    print(describe_number(result, f"Result ({op.token}):"), file=out)
    return EXIT_OK


# ===========================================================================
# Argument parsing
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="xod",
        description="Bit manipulation calculator.",
    )
    parser.add_argument(
        "number", nargs="?",
        help="number to show or operate on (42, 0x2a, 0o52, 0b101010)",
    )
    parser.add_argument(
        "operation", nargs="?",
        help="operation such as '&', 'xor', '<<' or 'not'",
    )
    parser.add_argument(
        "other", nargs="?",
        help="second number for binary operations",
    )
    parser.add_argument(
        "-f", "--file", type=Path,
        help="evaluate the statements in FILE and exit",
    )
    parser.add_argument(
        "-w", "--bit-width", type=int, default=64,
        help="width of the unsigned number type (default: %(default)s)",
    )
    parser.add_argument(
        "--parse-debug", action="store_true",
        help="log every parse attempt (same as setting PARSE_DEBUG)",
    )
    parser.add_argument(
        "--no-color", action="store_true",
        help="never colour diagnostics",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="increase log verbosity (-v info, -vv debug)",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the xod CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    parse_debug = args.parse_debug or os.environ.get("PARSE_DEBUG") is not None
    _configure_logging(args.verbose, parse_debug)

    try:
        config = XodConfig(
            bit_width=args.bit_width,
            color=False if args.no_color else None,
            parse_debug=parse_debug,
        )
    except ValueError as exc:
        parser.error(str(exc))

    try:
        if args.file is not None:
            return run_file(args.file, Session(config))
        if args.number is not None:
            return one_shot(args.number, args.operation, args.other, config)
        return interactive(Session(config))
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
