"""Runtime configuration for the xod front-end and evaluator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from xod.numbers import WORD_BITS, word_mask


@dataclass(frozen=True)
class XodConfig:
    """Knobs shared by the parser, the evaluator and the CLI.

    Attributes
    ----------
    bit_width:
        Width of the unsigned scalar type.  Bounds literals, arithmetic
        results and shift amounts, and fixes the width of ``!`` / ``~``.
    color:
        ``True`` / ``False`` forces ANSI colour in rendered diagnostics;
        ``None`` lets the caller auto-detect.
    parse_debug:
        Emit DEBUG records from ``xod.parser`` for every statement tried.
    """

    bit_width: int = WORD_BITS
    color: Optional[bool] = None
    parse_debug: bool = False

    def __post_init__(self) -> None:
        if self.bit_width < 1:
            raise ValueError(f"bit_width must be positive, got {self.bit_width}")

    @property
    def mask(self) -> int:
        """All-ones value of the configured width."""
        return word_mask(self.bit_width)

    @property
    def max_shift(self) -> int:
        return self.bit_width - 1


DEFAULT_CONFIG = XodConfig()
