"""xod: a tiny calculator language for bit manipulation.

This package provides the language front-end and the tree-walking
evaluator behind the ``xod`` REPL: variables, numeric literals in four
bases, bitwise / arithmetic / comparison operators, list values with
methods, ``for`` / ``while`` / ``if`` blocks, and built-in print and
introspection functions.

Submodules
----------
numbers
    Numeric literal lexing (``0x`` / ``0o`` / ``0b`` / decimal), the
    fixed word width, and base formatting helpers.

grammar
    The parsimonious PEG grammar for expressions and statements.

ast
    Frozen-dataclass AST; every node keeps the ``Span`` it was parsed
    from, for diagnostics only.

parser
    ``parse(text)`` – source text → ``Line`` sequence, or a located
    ``XodParseError`` (``IncompleteInputError`` for unbalanced brackets).

runtime
    Values (``NumValue``, ``ListValue``, ``NO_OP``), the variable
    ``Environment`` and the ``Outcome`` tagged union.

evaluator
    ``evaluate(line, env)`` / ``run(lines, env)`` and the ``Evaluator``
    class that backs them.

errors / diagnostics
    Error hierarchy with error codes, and the source-annotated
    diagnostic renderer.

Usage
-----
Command-line::

    python -m xod                 # interactive loop
    python -m xod 0x10 '<<' 2     # one-shot conversion
    python -m xod -f script.xod   # evaluate a file

Programmatic::

    from xod import Environment, parse, run

    env = Environment()
    for outcome in run(parse("x = 0x10\\ny = x << 2\\nbool(y == 64)\\n"), env):
        print(outcome)
"""

from __future__ import annotations

__version__: str = "1.0.1"

from xod.config import XodConfig
from xod.errors import (
    IncompleteInputError,
    XodError,
    XodEvalError,
    XodParseError,
)
from xod.evaluator import Evaluator, evaluate, run
from xod.parser import parse
from xod.runtime import (
    NO_OP,
    Completed,
    Control,
    ControlSignal,
    Environment,
    Failure,
    ListValue,
    NumValue,
)

__all__: list[str] = [
    "__version__",
    "XodConfig",
    "XodError",
    "XodParseError",
    "XodEvalError",
    "IncompleteInputError",
    "Evaluator",
    "evaluate",
    "run",
    "parse",
    "Environment",
    "NumValue",
    "ListValue",
    "NO_OP",
    "Completed",
    "Control",
    "ControlSignal",
    "Failure",
]
