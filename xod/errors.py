# xod/errors.py
"""
xod Error Types

Every failure the front-end or the evaluator can report carries a
source span, a one-line message and a suggested fix, so the CLI can
underline the offending text and print a replacement the user can paste.

Error Hierarchy:
────────────────
    XodError (base)
    ├── XodParseError          - input does not match the grammar
    │   └── IncompleteInputError - unbalanced opening bracket; read more
    └── XodEvalError           - well-formed line that cannot be evaluated

Error Codes:
────────────
Codes follow the pattern XOD-NNNN, in ranges:
  - 1000-1999: Syntax errors
  - 2000-2999: Type errors (number vs list)
  - 3000-3999: Name errors
  - 5000-5999: Runtime errors

Spans:
──────
``Span`` holds absolute character offsets into the text that was handed
to ``xod.parser.parse``.  Line and column numbers are derived from the
source at render time (see ``xod.diagnostics``).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto, unique
from typing import Optional


# ═══════════════════════════════════════════════════════════════════════════════
# SOURCE SPANS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class Span:
    """Half-open ``[start, end)`` character range in the parsed source."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"span end {self.end} precedes start {self.start}")

    def text(self, source: str) -> str:
        return source[self.start:self.end]

    def merge(self, other: "Span") -> "Span":
        return Span(min(self.start, other.start), max(self.end, other.end))

    @classmethod
    def at(cls, offset: int, length: int = 1) -> "Span":
        return cls(offset, offset + length)


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CLASSIFICATION
# ═══════════════════════════════════════════════════════════════════════════════

@unique
class ErrorPhase(Enum):
    SYNTAX = "syntax"
    EVALUATION = "evaluation"


@unique
class ErrorCategory(Enum):
    # Syntax
    UNEXPECTED_TOKEN = auto()
    UNEXPECTED_EOF = auto()
    INVALID_NUMBER = auto()
    UNBALANCED_BRACKETS = auto()
    AMBIGUOUS_EXPRESSION = auto()
    NESTING_DEPTH = auto()

    # Type
    TYPE_MISMATCH = auto()

    # Name
    UNDEFINED_SYMBOL = auto()

    # Runtime
    EMPTY_LIST = auto()
    INDEX_OUT_OF_RANGE = auto()
    INVALID_RANGE = auto()
    MISSING_OPERAND = auto()
    OVERFLOW = auto()
    DOMAIN_ERROR = auto()


class ErrorCode:
    """
    Structured error code of the form ``XOD-NNNN``.

    Compares equal to another ``ErrorCode`` with the same number, or to
    its own string form.
    """

    __slots__ = ("prefix", "number", "category", "phase")

    def __init__(
        self,
        prefix: str,
        number: int,
        category: ErrorCategory,
        phase: ErrorPhase,
    ) -> None:
        self.prefix = prefix
        self.number = number
        self.category = category
        self.phase = phase

    @property
    def code(self) -> str:
        return f"{self.prefix}-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.category.name})"

    def __hash__(self) -> int:
        return hash((self.prefix, self.number))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.prefix == other.prefix and self.number == other.number
        if isinstance(other, str):
            return self.code == other
        return False


class XodErrorCodes:
    """Predefined error codes."""

    # ═══════════════════════════════════════════════════════════════════════════
    # SYNTAX ERRORS (1000-1999)
    # ═══════════════════════════════════════════════════════════════════════════

    UNEXPECTED_TOKEN = ErrorCode(
        "XOD", 1000, ErrorCategory.UNEXPECTED_TOKEN, ErrorPhase.SYNTAX
    )
    UNEXPECTED_EOF = ErrorCode(
        "XOD", 1001, ErrorCategory.UNEXPECTED_EOF, ErrorPhase.SYNTAX
    )
    INVALID_NUMBER_LITERAL = ErrorCode(
        "XOD", 1002, ErrorCategory.INVALID_NUMBER, ErrorPhase.SYNTAX
    )
    UNBALANCED_BRACKETS = ErrorCode(
        "XOD", 1003, ErrorCategory.UNBALANCED_BRACKETS, ErrorPhase.SYNTAX
    )
    CHAINED_OPERATORS = ErrorCode(
        "XOD", 1004, ErrorCategory.AMBIGUOUS_EXPRESSION, ErrorPhase.SYNTAX
    )
    NESTING_TOO_DEEP = ErrorCode(
        "XOD", 1005, ErrorCategory.NESTING_DEPTH, ErrorPhase.SYNTAX
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # TYPE ERRORS (2000-2999)
    # ═══════════════════════════════════════════════════════════════════════════

    EXPECTED_NUMBER = ErrorCode(
        "XOD", 2000, ErrorCategory.TYPE_MISMATCH, ErrorPhase.EVALUATION
    )
    EXPECTED_LIST = ErrorCode(
        "XOD", 2001, ErrorCategory.TYPE_MISMATCH, ErrorPhase.EVALUATION
    )
    LIST_IN_LIST = ErrorCode(
        "XOD", 2002, ErrorCategory.TYPE_MISMATCH, ErrorPhase.EVALUATION
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # NAME ERRORS (3000-3999)
    # ═══════════════════════════════════════════════════════════════════════════

    UNDEFINED_VARIABLE = ErrorCode(
        "XOD", 3000, ErrorCategory.UNDEFINED_SYMBOL, ErrorPhase.EVALUATION
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # RUNTIME ERRORS (5000-5999)
    # ═══════════════════════════════════════════════════════════════════════════

    EMPTY_LIST = ErrorCode(
        "XOD", 5000, ErrorCategory.EMPTY_LIST, ErrorPhase.EVALUATION
    )
    INDEX_OUT_OF_RANGE = ErrorCode(
        "XOD", 5001, ErrorCategory.INDEX_OUT_OF_RANGE, ErrorPhase.EVALUATION
    )
    EMPTY_RANGE = ErrorCode(
        "XOD", 5002, ErrorCategory.INVALID_RANGE, ErrorPhase.EVALUATION
    )
    INVERTED_RANGE = ErrorCode(
        "XOD", 5003, ErrorCategory.INVALID_RANGE, ErrorPhase.EVALUATION
    )
    MISSING_OPERAND = ErrorCode(
        "XOD", 5004, ErrorCategory.MISSING_OPERAND, ErrorPhase.EVALUATION
    )
    SHIFT_OUT_OF_RANGE = ErrorCode(
        "XOD", 5005, ErrorCategory.OVERFLOW, ErrorPhase.EVALUATION
    )
    ARITHMETIC_OVERFLOW = ErrorCode(
        "XOD", 5006, ErrorCategory.OVERFLOW, ErrorPhase.EVALUATION
    )
    ARITHMETIC_UNDERFLOW = ErrorCode(
        "XOD", 5007, ErrorCategory.OVERFLOW, ErrorPhase.EVALUATION
    )
    DIVISION_BY_ZERO = ErrorCode(
        "XOD", 5008, ErrorCategory.DOMAIN_ERROR, ErrorPhase.EVALUATION
    )
    LOG_DOMAIN = ErrorCode(
        "XOD", 5009, ErrorCategory.DOMAIN_ERROR, ErrorPhase.EVALUATION
    )


# ═══════════════════════════════════════════════════════════════════════════════
# DIAGNOSTIC RECORD
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Diagnostic:
    """
    Everything the renderer needs: where, what, and how to fix it.

    ``fix`` is a drop-in replacement for the offending text whenever one
    exists (``x = 0x42``, ``(a & b) | c``); otherwise a short hint.
    """

    code: ErrorCode
    span: Span
    message: str
    fix: str = ""


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTION CLASSES
# ═══════════════════════════════════════════════════════════════════════════════

class XodError(Exception):
    """Base exception for all located xod errors."""

    default_code: ErrorCode = XodErrorCodes.UNEXPECTED_TOKEN

    def __init__(
        self,
        message: str,
        span: Span,
        fix: str = "",
        code: Optional[ErrorCode] = None,
    ) -> None:
        super().__init__(message)
        self.diagnostic = Diagnostic(
            code=code or self.default_code,
            span=span,
            message=message,
            fix=fix,
        )

    def to_diagnostic(self) -> Diagnostic:
        return self.diagnostic

    @property
    def code(self) -> ErrorCode:
        return self.diagnostic.code

    @property
    def span(self) -> Span:
        return self.diagnostic.span

    @property
    def message(self) -> str:
        return self.diagnostic.message

    @property
    def fix(self) -> str:
        return self.diagnostic.fix

    def __str__(self) -> str:
        text = f"[{self.code}] {self.message} (at {self.span.start}-{self.span.end})"
        if self.fix:
            text += f"; fix: {self.fix}"
        return text


class XodParseError(XodError):
    """Input text does not form a valid statement."""

    default_code = XodErrorCodes.UNEXPECTED_TOKEN


class IncompleteInputError(XodParseError):
    """
    An opening bracket is still unclosed at end of input.

    Interactive callers read another line, append it, and parse again.
    """

    default_code = XodErrorCodes.UNBALANCED_BRACKETS


class XodEvalError(XodError):
    """A parsed line failed during evaluation."""

    default_code = XodErrorCodes.EXPECTED_NUMBER
