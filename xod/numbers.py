"""
xod/numbers.py
==============

Numeric literals and base formatting.

A literal is an optional base prefix followed by a digit run:

    ========  ==========  ==================
    prefix    base        digits
    ========  ==========  ==================
    0x / 0X   16          0-9 a-f A-F
    0o / 0O   8           0-7
    0b / 0B   2           0-1
    (none)    10          0-9
    ========  ==========  ==================

The grammar hands over the whole alphanumeric run starting at a digit
(``0x1F``, ``0b102``, ``12ab``), so a bad digit is reported against the
literal itself instead of surfacing later as a stray token.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Optional, Tuple

WORD_BITS: int = 64


def word_mask(bits: int = WORD_BITS) -> int:
    return (1 << bits) - 1


class Radix(Enum):
    """Number base, with its literal prefix and valid digit set."""

    BIN = 2
    OCT = 8
    DEC = 10
    HEX = 16

    @property
    def prefix(self) -> str:
        return _PREFIX_TEXT[self]

    @property
    def label(self) -> str:
        return _LABELS[self]

    def accepts(self, digits: str) -> bool:
        return _DIGIT_PATTERNS[self].fullmatch(digits) is not None


_PREFIX_TEXT = {Radix.BIN: "0b", Radix.OCT: "0o", Radix.DEC: "", Radix.HEX: "0x"}

_LABELS = {
    Radix.BIN: "binary",
    Radix.OCT: "octal",
    Radix.DEC: "decimal",
    Radix.HEX: "hexadecimal",
}

_DIGIT_PATTERNS = {
    Radix.BIN: re.compile(r"[01]+"),
    Radix.OCT: re.compile(r"[0-7]+"),
    Radix.DEC: re.compile(r"[0-9]+"),
    Radix.HEX: re.compile(r"[0-9a-fA-F]+"),
}

_PREFIXES = {"0x": Radix.HEX, "0o": Radix.OCT, "0b": Radix.BIN}

RADIX_BY_NAME = {"hex": Radix.HEX, "bin": Radix.BIN, "oct": Radix.OCT, "dec": Radix.DEC}


class LiteralError(ValueError):
    """A digit run that does not denote a representable number.

    ``offset`` / ``length`` locate the offending part relative to the
    start of the literal text.
    """

    def __init__(self, message: str, offset: int, length: int, fix: str) -> None:
        super().__init__(message)
        self.message = message
        self.offset = offset
        self.length = length
        self.fix = fix


def split_literal(text: str) -> Tuple[Optional[str], str, Radix]:
    """Split *text* into ``(prefix, digits, radix)``.

    >>> split_literal("0X1f")
    ('0X', '1f', <Radix.HEX: 16>)
    >>> split_literal("42")
    (None, '42', <Radix.DEC: 10>)
    """
    head = text[:2]
    radix = _PREFIXES.get(head.lower())
    if radix is None:
        return None, text, Radix.DEC
    return head, text[2:], radix


def parse_literal(text: str, bits: int = WORD_BITS) -> Tuple[int, Radix]:
    """Convert a literal to ``(value, radix)`` or raise ``LiteralError``."""
    prefix, digits, radix = split_literal(text)
    start = len(prefix) if prefix else 0
    if not digits:
        raise LiteralError(
            f"Missing digits after the `{prefix}` prefix.",
            0, len(text),
            f"{prefix}0",
        )
    if not radix.accepts(digits):
        bad = next(
            i for i, ch in enumerate(digits) if not radix.accepts(ch)
        )
        raise LiteralError(
            f"Invalid digit `{digits[bad]}` in a {radix.label} literal.",
            start + bad, 1,
            _suggest_radix(digits, prefix),
        )
    value = int(digits, radix.value)
    if value > word_mask(bits):
        raise LiteralError(
            f"Literal does not fit in {bits} bits.",
            0, len(text),
            format_number(word_mask(bits), radix),
        )
    return value, radix


def _suggest_radix(digits: str, prefix: Optional[str]) -> str:
    if Radix.HEX.accepts(digits):
        return f"0x{digits}"
    return f"{prefix or ''}0"


def format_number(value: int, radix: Radix) -> str:
    """Render *value* with its base prefix (``0x1f``, ``0b101``, ``42``)."""
    if radix is Radix.DEC:
        return str(value)
    return f"{radix.prefix}{value:{_FORMAT_SPEC[radix]}}"


_FORMAT_SPEC = {Radix.BIN: "b", Radix.OCT: "o", Radix.HEX: "x"}


def describe_number(value: int, label: str = "") -> str:
    """Multi-base summary printed by the CLI for scalar results."""
    lines = []
    if label:
        lines.append(label)
    lines.extend([
        f"  Base 10:                {value}",
        f"  Base 2 (binary):        {format_number(value, Radix.BIN)}",
        f"  Base 8 (octal):         {format_number(value, Radix.OCT)}",
        f"  Base 16 (hexadecimal):  {format_number(value, Radix.HEX)}",
        f"  Boolean (bit):          {1 if value else 0}",
    ])
    return "\n".join(lines)
