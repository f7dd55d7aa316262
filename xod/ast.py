"""xod/ast.py – Abstract syntax for xod statements.

The parser produces a sequence of ``Line`` nodes per input; the
evaluator consumes them.  Nothing here depends on the concrete grammar.

Design invariants
-----------------
* Every node is a frozen dataclass; child sequences are tuples.
* Every node exposes ``.span`` covering the source text it came from.
  Spans are only used to build diagnostics; they never affect
  evaluation.
* ``str(node)`` renders canonical xod source for the node.  Fix
  suggestions in error messages are built from it, and re-parsing it
  yields an equivalent tree.

Node families
-------------
§1  Operators and enumerations
§2  Operands: ``Number``, ``Name``, ``BitExpr``, ``SepBitExpr``,
    ``CompareOp``, ``Range``, ``ListLiteral``
§3  Calls: built-in functions and list methods
§4  Lines: ``Empty``, ``Variable``, ``Loop`` and its heads
"""

from __future__ import annotations

import textwrap
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Tuple, Union

from xod.errors import Span
from xod.numbers import Radix, format_number

# ════════════════════════════════════════════════════════════════════════
# §1  Operators and enumerations
# ════════════════════════════════════════════════════════════════════════


class BitOp(Enum):
    """Binary and unary operators of a ``BitExpr``.

    All binary operators share one precedence level and may not be
    chained without parentheses.
    """

    AND = "&"
    OR = "|"
    XOR = "^"
    SHL = "<<"
    SHR = ">>"
    NOT = "!"
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    MOD = "%"
    POW = "**"

    @classmethod
    def from_token(cls, token: str) -> "BitOp":
        if token == "~":
            return cls.NOT
        return cls(token)

    @property
    def token(self) -> str:
        return self.value

    @property
    def is_unary(self) -> bool:
        return self is BitOp.NOT


class Compare(Enum):
    EQ = "=="
    NE = "!="
    GE = ">="
    LE = "<="
    GT = ">"
    LT = "<"

    @property
    def token(self) -> str:
        return self.value


class ControlSignal(Enum):
    """Out-of-band requests raised by ``quit()``, ``help()`` and friends."""

    QUIT = auto()
    HELP = auto()
    HISTORY = auto()
    CLEAR = auto()


CONTROL_BY_NAME = {
    "quit": ControlSignal.QUIT,
    "exit": ControlSignal.QUIT,
    "help": ControlSignal.HELP,
    "history": ControlSignal.HISTORY,
    "clear": ControlSignal.CLEAR,
}


class MethodKind(Enum):
    APPEND = "append"
    PREPEND = "prepend"
    FRONT = "front"
    BACK = "back"
    INDEX = "index"


METHOD_BY_NAME = {
    "append": MethodKind.APPEND,
    "prepend": MethodKind.PREPEND,
    "pop": MethodKind.FRONT,
    "front": MethodKind.FRONT,
    "pop_back": MethodKind.BACK,
    "back": MethodKind.BACK,
    "index": MethodKind.INDEX,
    "get": MethodKind.INDEX,
}


# ════════════════════════════════════════════════════════════════════════
# §2  Operands
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Number:
    """Unsigned literal.  ``prefix`` is ``None`` for decimal literals."""

    value: int
    digits: Span
    prefix: Optional[Span] = None
    radix: Radix = Radix.DEC

    @property
    def span(self) -> Span:
        return self.prefix.merge(self.digits) if self.prefix else self.digits

    def __str__(self) -> str:
        return format_number(self.value, self.radix)


@dataclass(frozen=True, slots=True)
class Name:
    ident: str
    span: Span

    def __str__(self) -> str:
        return self.ident


@dataclass(frozen=True, slots=True)
class BitExpr:
    """``left OP right``, or ``!left`` / ``~left`` with ``right`` unset."""

    left: "VarNum"
    op: BitOp
    op_span: Span
    right: Optional["VarNum"] = None

    @property
    def span(self) -> Span:
        if self.right is None:
            return self.op_span.merge(self.left.span)
        return self.left.span.merge(self.right.span)

    def __str__(self) -> str:
        if self.op.is_unary:
            return f"{self.op.token}{self.left}"
        if self.right is None:
            return f"{self.left} {self.op.token}"
        return f"{self.left} {self.op.token} {self.right}"


@dataclass(frozen=True, slots=True)
class SepBitExpr:
    """Parenthesised ``BitExpr`` used as an operand."""

    expr: BitExpr
    open: Span
    close: Span

    @property
    def span(self) -> Span:
        return self.open.merge(self.close)

    def __str__(self) -> str:
        return f"({self.expr})"


@dataclass(frozen=True, slots=True)
class CompareOp:
    left: "VarNum"
    op: Compare
    op_span: Span
    right: "VarNum"

    @property
    def span(self) -> Span:
        return self.left.span.merge(self.right.span)

    def __str__(self) -> str:
        return f"{self.left} {self.op.token} {self.right}"


@dataclass(frozen=True, slots=True)
class Range:
    """Half-open integer interval ``start..end``."""

    start: "VarNum"
    end: "VarNum"
    span: Span

    def __str__(self) -> str:
        return f"{self.start}..{self.end}"


@dataclass(frozen=True, slots=True)
class ListLiteral:
    items: Tuple["VarNum", ...]
    span: Span

    def __str__(self) -> str:
        return "[" + ", ".join(str(item) for item in self.items) + "]"


# ════════════════════════════════════════════════════════════════════════
# §3  Calls
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class BoolCall:
    arg: Union[CompareOp, "VarNum"]
    name_span: Span
    span: Span

    def __str__(self) -> str:
        return f"bool({self.arg})"


@dataclass(frozen=True, slots=True)
class FormatCall:
    """``hex(...)`` / ``bin(...)`` / ``oct(...)`` / ``dec(...)``."""

    radix: Radix
    value: Union[ListLiteral, Range, BitExpr, "VarNum"]
    name_span: Span
    span: Span

    @property
    def name(self) -> str:
        return _FORMAT_NAMES[self.radix]

    def __str__(self) -> str:
        return f"{self.name}({self.value})"


_FORMAT_NAMES = {Radix.HEX: "hex", Radix.BIN: "bin", Radix.OCT: "oct", Radix.DEC: "dec"}


@dataclass(frozen=True, slots=True)
class LogCall:
    value: "VarNum"
    base: "VarNum"
    name_span: Span
    span: Span

    def __str__(self) -> str:
        return f"log({self.value}, {self.base})"


@dataclass(frozen=True, slots=True)
class ControlCall:
    signal: ControlSignal
    name: str
    span: Span

    def __str__(self) -> str:
        return f"{self.name}()"


@dataclass(frozen=True, slots=True)
class MethodCall:
    """``target.method(arg)`` on a list-valued variable."""

    target: Name
    kind: MethodKind
    method_span: Span
    span: Span
    arg: Optional[Union[BitExpr, "VarNum"]] = None

    def __str__(self) -> str:
        arg = "" if self.arg is None else str(self.arg)
        return f"{self.target}.{self.kind.value}({arg})"


FuncCall = Union[BoolCall, FormatCall, LogCall, ControlCall]

VarNum = Union[Number, SepBitExpr, BoolCall, FormatCall, LogCall, ControlCall, MethodCall, Name]

Iterable = Union[ListLiteral, Range, Name]

Value = Union[Range, ListLiteral, BitExpr, FuncCall, MethodCall, SepBitExpr, Number, Name]


# ════════════════════════════════════════════════════════════════════════
# §4  Lines
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Empty:
    span: Span

    def __str__(self) -> str:
        return ""


@dataclass(frozen=True, slots=True)
class Variable:
    """Assignment ``name = value``."""

    name: Name
    value: Value

    @property
    def span(self) -> Span:
        return self.name.span.merge(self.value.span)

    def __str__(self) -> str:
        return f"{self.name} = {self.value}"


@dataclass(frozen=True, slots=True)
class ForHead:
    keyword: Span
    var: Name
    source: Iterable

    def __str__(self) -> str:
        return f"for ({self.var} in {self.source})"


@dataclass(frozen=True, slots=True)
class WhileHead:
    keyword: Span
    guard: CompareOp

    def __str__(self) -> str:
        return f"while ({self.guard})"


@dataclass(frozen=True, slots=True)
class IfHead:
    keyword: Span
    guard: CompareOp

    def __str__(self) -> str:
        return f"if ({self.guard})"


LoopHead = Union[ForHead, WhileHead, IfHead]


@dataclass(frozen=True, slots=True)
class Loop:
    head: LoopHead
    body: Tuple["Line", ...]
    open: Span
    close: Span

    @property
    def span(self) -> Span:
        return self.head.keyword.merge(self.close)

    def __str__(self) -> str:
        inner = "".join(
            textwrap.indent(f"{line}\n", "    ")
            for line in self.body
            if not isinstance(line, Empty)
        )
        return f"{self.head} {{\n{inner}}}"


Line = Union[Empty, Variable, BitExpr, CompareOp, BoolCall, FormatCall,
             LogCall, ControlCall, MethodCall, Loop]
