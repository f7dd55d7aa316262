"""xod/runtime.py – values, variable environment and evaluation outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple, Union

from xod.ast import ControlSignal
from xod.errors import XodEvalError
from xod.numbers import Radix, format_number


@dataclass(frozen=True, slots=True)
class NumValue:
    value: int

    def render(self, radix: Radix = Radix.HEX) -> str:
        return format_number(self.value, radix)

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True, slots=True)
class ListValue:
    """Ordered sequence of scalars.  Methods write a new value back."""

    items: Tuple[int, ...] = ()

    def render(self, radix: Radix = Radix.HEX) -> str:
        return "[" + ", ".join(format_number(item, radix) for item in self.items) + "]"

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[int]:
        return iter(self.items)

    def __str__(self) -> str:
        return self.render()


class _NoOp:
    """Result of statements that produce nothing to print."""

    _instance: Optional["_NoOp"] = None

    def __new__(cls) -> "_NoOp":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_OP"

    def __bool__(self) -> bool:
        return False


NO_OP = _NoOp()

Value = Union[NumValue, ListValue]
Result = Union[NumValue, ListValue, _NoOp]


class Environment:
    """Name → value table for one session.

    Bindings persist across lines for the whole session.  A loop
    variable stays bound to its last value after the loop ends.
    """

    def __init__(self, initial: Optional[Dict[str, Value]] = None) -> None:
        self._vars: Dict[str, Value] = dict(initial or {})

    def get(self, name: str) -> Optional[Value]:
        return self._vars.get(name)

    def set(self, name: str, value: Value) -> None:
        self._vars[name] = value

    def __contains__(self, name: object) -> bool:
        return name in self._vars

    def __len__(self) -> int:
        return len(self._vars)

    def __repr__(self) -> str:
        body = ", ".join(f"{name}={value}" for name, value in sorted(self._vars.items()))
        return f"Environment({body})"


# ═══════════════════════════════════════════════════════════════════
#  EVALUATION OUTCOMES
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Completed:
    """The line ran to completion; ``result`` may be ``NO_OP``."""

    result: Result


@dataclass(frozen=True)
class Control:
    """A built-in asked the driver to quit, show help, etc."""

    signal: ControlSignal


@dataclass(frozen=True)
class Failure:
    error: XodEvalError


Outcome = Union[Completed, Control, Failure]

__all__ = [
    "NumValue",
    "ListValue",
    "NO_OP",
    "Value",
    "Result",
    "Environment",
    "Completed",
    "Control",
    "ControlSignal",
    "Failure",
    "Outcome",
]
