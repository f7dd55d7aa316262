"""xod/evaluator.py – tree-walking evaluation of parsed lines.

``Evaluator.evaluate(line)`` never raises for language-level problems.
It returns an ``Outcome``:

    Completed(result)   the line ran; ``result`` is a value or ``NO_OP``
    Control(signal)     ``quit()`` / ``help()`` / ``history()`` /
                        ``clear()`` was reached, possibly deep inside an
                        operand or a loop body
    Failure(error)      an ``XodEvalError`` located at the offending span

Scalars are unsigned and ``config.bit_width`` wide.  Bitwise results
always fit.  ``<<`` discards bits shifted past the top.  Arithmetic that
leaves the range, shifts by the full width or more, and division by zero
are reported as errors instead of wrapping.

The format built-ins (``hex``/``bin``/``oct``/``dec``) write to the
evaluator's output stream and return their argument unchanged.
"""

from __future__ import annotations

import logging
import operator
import sys
from typing import Callable, Iterable, Iterator, Optional, TextIO, Tuple

from xod.ast import (
    BitExpr,
    BitOp,
    BoolCall,
    Compare,
    CompareOp,
    ControlCall,
    ControlSignal,
    Empty,
    ForHead,
    FormatCall,
    IfHead,
    Line,
    ListLiteral,
    LogCall,
    Loop,
    LoopHead,
    MethodCall,
    MethodKind,
    Name,
    Number,
    Range,
    SepBitExpr,
    Variable,
    VarNum,
    WhileHead,
)
from xod.config import DEFAULT_CONFIG, XodConfig
from xod.errors import ErrorCode, XodErrorCodes, XodEvalError
from xod.numbers import WORD_BITS, Radix, format_number, word_mask
from xod.runtime import (
    NO_OP,
    Completed,
    Control,
    Environment,
    Failure,
    ListValue,
    NumValue,
    Outcome,
    Result,
    Value,
)

logger = logging.getLogger(__name__)

_CALL_TYPES = (MethodCall, BoolCall, FormatCall, LogCall, ControlCall)


# ═══════════════════════════════════════════════════════════════════
#  OPERATORS
# ═══════════════════════════════════════════════════════════════════

class OperatorError(ArithmeticError):
    """An operator cannot produce an in-range result for its operands."""

    def __init__(self, code: ErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


_BITWISE = {
    BitOp.AND: operator.and_,
    BitOp.OR: operator.or_,
    BitOp.XOR: operator.xor,
}

_COMPARE = {
    Compare.EQ: operator.eq,
    Compare.NE: operator.ne,
    Compare.GE: operator.ge,
    Compare.LE: operator.le,
    Compare.GT: operator.gt,
    Compare.LT: operator.lt,
}


def apply_operator(
    op: BitOp,
    left: int,
    right: Optional[int] = None,
    bit_width: int = WORD_BITS,
) -> int:
    """Apply *op* to unsigned operands of *bit_width* bits.

    Raises ``OperatorError`` when the right operand is missing or the
    result cannot be represented.
    """
    mask = word_mask(bit_width)
    if op is BitOp.NOT:
        return ~left & mask
    if right is None:
        raise OperatorError(
            XodErrorCodes.MISSING_OPERAND,
            f"Missing right operand for bitwise operation: {op.token}",
        )
    if op in _BITWISE:
        return _BITWISE[op](left, right)
    if op in (BitOp.SHL, BitOp.SHR):
        if right >= bit_width:
            raise OperatorError(
                XodErrorCodes.SHIFT_OUT_OF_RANGE,
                f"Shift amount {right} is out of range for {bit_width}-bit values.",
            )
        return (left << right) & mask if op is BitOp.SHL else left >> right
    if op in (BitOp.DIV, BitOp.MOD) and right == 0:
        word = "Division" if op is BitOp.DIV else "Modulo"
        raise OperatorError(XodErrorCodes.DIVISION_BY_ZERO, f"{word} by zero.")
    if op is BitOp.SUB:
        if right > left:
            raise OperatorError(
                XodErrorCodes.ARITHMETIC_UNDERFLOW,
                "Subtraction result would be negative.",
            )
        return left - right
    if op is BitOp.DIV:
        return left // right
    if op is BitOp.MOD:
        return left % right
    if op is BitOp.ADD:
        result = left + right
    elif op is BitOp.MUL:
        result = left * right
    elif left < 2 or right == 0:
        result = left ** right
    elif right >= bit_width:
        result = mask + 1
    else:
        result = left ** right
    if result > mask:
        raise OperatorError(
            XodErrorCodes.ARITHMETIC_OVERFLOW,
            f"Result of `{op.token}` does not fit in {bit_width} bits.",
        )
    return result


def integer_log(value: int, base: int) -> int:
    """Largest ``k`` with ``base ** k <= value``."""
    result = 0
    while value >= base:
        value //= base
        result += 1
    return result


# ═══════════════════════════════════════════════════════════════════
#  LOOP ITERATION
# ═══════════════════════════════════════════════════════════════════

class LoopIterator:
    """One iteration protocol for ``for``, ``while`` and ``if`` blocks.

    A value source yields the loop variable for each pass.  A guard is
    re-evaluated before every pass and stops the loop when it yields 0;
    with ``once=True`` it is consulted a single time, which makes ``if``
    a loop that runs at most once.
    """

    def __init__(
        self,
        source: Optional[Iterator[int]] = None,
        guard: Optional[Callable[[], int]] = None,
        once: bool = False,
    ) -> None:
        if (source is None) == (guard is None):
            raise ValueError("LoopIterator needs exactly one of source or guard")
        self._source = source
        self._guard = guard
        self._once = once
        self._done = False

    @classmethod
    def over(cls, values: Iterable[int]) -> "LoopIterator":
        return cls(source=iter(values))

    @classmethod
    def guarded(cls, guard: Callable[[], int], once: bool = False) -> "LoopIterator":
        return cls(guard=guard, once=once)

    def __iter__(self) -> "LoopIterator":
        return self

    def __next__(self) -> int:
        if self._done:
            raise StopIteration
        if self._source is not None:
            return next(self._source)
        if self._once:
            self._done = True
        result = self._guard()
        if not result:
            self._done = True
            raise StopIteration
        return result


# ═══════════════════════════════════════════════════════════════════
#  EVALUATOR
# ═══════════════════════════════════════════════════════════════════

class _ControlRaised(Exception):
    def __init__(self, signal: ControlSignal) -> None:
        super().__init__(signal.name)
        self.signal = signal


class Evaluator:
    """Evaluates ``Line`` nodes against an ``Environment``.

    Parameters
    ----------
    env:
        Variable bindings; shared across calls and mutated in place.
    config:
        Word width and related settings.
    out:
        Stream for the format built-ins.  Defaults to the *current*
        ``sys.stdout`` at print time.
    """

    def __init__(
        self,
        env: Optional[Environment] = None,
        config: Optional[XodConfig] = None,
        out: Optional[TextIO] = None,
    ) -> None:
        self.env = env if env is not None else Environment()
        self.config = config or DEFAULT_CONFIG
        self._out = out

    @property
    def out(self) -> TextIO:
        return self._out if self._out is not None else sys.stdout

    # ─────────────────────────────────────────────────────────────
    # Public entry points
    # ─────────────────────────────────────────────────────────────

    def evaluate(self, line: Line) -> Outcome:
        try:
            result = self._eval(line)
        except _ControlRaised as raised:
            logger.debug("control signal %s", raised.signal.name)
            return Control(raised.signal)
        except XodEvalError as exc:
            logger.debug("evaluation failed: %s", exc)
            return Failure(exc)
        except RecursionError:
            return Failure(XodEvalError(
                "Expression nested too deeply.",
                line.span,
                fix="Split it into smaller assignments.",
                code=XodErrorCodes.NESTING_TOO_DEEP,
            ))
        return Completed(result)

    def run(self, lines: Iterable[Line]) -> Iterator[Outcome]:
        """Evaluate *lines* in order, lazily.

        Stops after the first ``Control`` or ``Failure`` outcome, which
        is still yielded.
        """
        for line in lines:
            outcome = self.evaluate(line)
            yield outcome
            if not isinstance(outcome, Completed):
                return

    # ─────────────────────────────────────────────────────────────
    # Dispatch
    # ─────────────────────────────────────────────────────────────

    def _eval(self, node) -> Result:
        handler = getattr(self, f"_eval_{type(node).__name__}", None)
        if handler is None:
            raise TypeError(f"cannot evaluate {type(node).__name__}")
        return handler(node)

    def _scalar(self, node: VarNum) -> int:
        value = self._eval(node)
        if isinstance(value, NumValue):
            return value.value
        fix = (
            f"{node}.index(0)" if isinstance(node, Name)
            else "Use a list method such as `.front()` or `.index(i)` to get a number."
        )
        raise XodEvalError(
            "Expected a number, but got a list.",
            node.span,
            fix=fix,
            code=XodErrorCodes.EXPECTED_NUMBER,
        )

    def _lookup(self, name: Name) -> Value:
        value = self.env.get(name.ident)
        if value is None:
            raise XodEvalError(
                "Variable not defined.",
                name.span,
                fix=f"{name.ident} = 0x42",
                code=XodErrorCodes.UNDEFINED_VARIABLE,
            )
        return value

    def _list_items(self, name: Name) -> Tuple[int, ...]:
        value = self._lookup(name)
        if isinstance(value, ListValue):
            return value.items
        raise XodEvalError(
            "Expected a list, but got a number.",
            name.span,
            fix=f"{name.ident} = [{name.ident}]",
            code=XodErrorCodes.EXPECTED_LIST,
        )

    # ─────────────────────────────────────────────────────────────
    # Operands
    # ─────────────────────────────────────────────────────────────

    def _eval_Number(self, node: Number) -> NumValue:
        return NumValue(node.value)

    def _eval_Name(self, node: Name) -> Value:
        return self._lookup(node)

    def _eval_SepBitExpr(self, node: SepBitExpr) -> NumValue:
        return self._eval(node.expr)

    def _eval_BitExpr(self, node: BitExpr) -> NumValue:
        left = self._scalar(node.left)
        right = None if node.right is None else self._scalar(node.right)
        try:
            return NumValue(apply_operator(node.op, left, right, self.config.bit_width))
        except OperatorError as exc:
            raise self._operator_failure(node, exc) from exc

    def _operator_failure(self, node: BitExpr, exc: OperatorError) -> XodEvalError:
        code = exc.code
        token = node.op.token
        span = node.span
        if code == XodErrorCodes.MISSING_OPERAND:
            span = node.op_span
            fix = f"{node.left} {token} 0x800"
        elif code == XodErrorCodes.SHIFT_OUT_OF_RANGE:
            span = node.right.span
            fix = f"{node.left} {token} {self.config.max_shift}"
        elif code == XodErrorCodes.DIVISION_BY_ZERO:
            span = node.right.span
            fix = f"{node.left} {token} 1"
        elif code == XodErrorCodes.ARITHMETIC_UNDERFLOW:
            fix = f"{node.right} - {node.left}"
        else:
            fix = (
                f"Keep the result at or below "
                f"{format_number(self.config.mask, Radix.HEX)}."
            )
        return XodEvalError(exc.message, span, fix=fix, code=code)

    def _eval_CompareOp(self, node: CompareOp) -> NumValue:
        left = self._scalar(node.left)
        right = self._scalar(node.right)
        return NumValue(int(_COMPARE[node.op](left, right)))

    def _eval_ListLiteral(self, node: ListLiteral) -> ListValue:
        return ListValue(self._splice(node.items))

    def _splice(self, items: Tuple[VarNum, ...]) -> Tuple[int, ...]:
        """Flatten list-valued variables into the enclosing list."""
        result = []
        for item in items:
            if isinstance(item, Name):
                value = self._lookup(item)
                if isinstance(value, ListValue):
                    result.extend(value.items)
                else:
                    result.append(value.value)
            elif isinstance(item, _CALL_TYPES):
                value = self._eval(item)
                if isinstance(value, ListValue):
                    raise XodEvalError(
                        f"`{item}` returns a list, not a number.",
                        item.span,
                        fix="Try using `.front()` or `.back()` to get a single element.",
                        code=XodErrorCodes.LIST_IN_LIST,
                    )
                result.append(value.value)
            else:
                result.append(self._scalar(item))
        return tuple(result)

    def _bounds(self, node: Range) -> range:
        start = self._scalar(node.start)
        end = self._scalar(node.end)
        if start > end:
            raise XodEvalError(
                "Start of range is greater than end.",
                node.span,
                fix=f"{end}..{start}",
                code=XodErrorCodes.INVERTED_RANGE,
            )
        if start == end:
            raise XodEvalError(
                "Start of range is equal to end.",
                node.span,
                fix=f"{start}..{start + 1}",
                code=XodErrorCodes.EMPTY_RANGE,
            )
        return range(start, end)

    def _eval_Range(self, node: Range) -> ListValue:
        return ListValue(tuple(self._bounds(node)))

    # ─────────────────────────────────────────────────────────────
    # Built-in functions
    # ─────────────────────────────────────────────────────────────

    def _eval_BoolCall(self, node: BoolCall) -> NumValue:
        if isinstance(node.arg, CompareOp):
            return self._eval(node.arg)
        return NumValue(1 if self._scalar(node.arg) >= 1 else 0)

    def _eval_FormatCall(self, node: FormatCall) -> Value:
        value = self._eval(node.value)
        print(value.render(node.radix), file=self.out)
        return value

    def _eval_LogCall(self, node: LogCall) -> NumValue:
        value = self._scalar(node.value)
        base = self._scalar(node.base)
        if value == 0:
            raise XodEvalError(
                "Logarithm of zero is undefined.",
                node.value.span,
                fix=f"log(1, {node.base})",
                code=XodErrorCodes.LOG_DOMAIN,
            )
        if base < 2:
            raise XodEvalError(
                "Logarithm base must be at least 2.",
                node.base.span,
                fix=f"log({node.value}, 2)",
                code=XodErrorCodes.LOG_DOMAIN,
            )
        return NumValue(integer_log(value, base))

    def _eval_ControlCall(self, node: ControlCall) -> Result:
        raise _ControlRaised(node.signal)

    # ─────────────────────────────────────────────────────────────
    # List methods
    # ─────────────────────────────────────────────────────────────

    def _eval_MethodCall(self, node: MethodCall) -> Value:
        name = node.target.ident
        items = self._list_items(node.target)
        kind = node.kind

        if kind is MethodKind.APPEND or kind is MethodKind.PREPEND:
            element = self._scalar(node.arg)
            items = items + (element,) if kind is MethodKind.APPEND else (element,) + items
            updated = ListValue(items)
            self.env.set(name, updated)
            return updated

        if kind is MethodKind.INDEX:
            position = self._scalar(node.arg)
            if position >= len(items):
                fix = (
                    f"{name}.index({len(items) - 1})" if items
                    else f"{name}.append({node.arg})"
                )
                raise XodEvalError(
                    "Index out of bounds.",
                    node.arg.span,
                    fix=fix,
                    code=XodErrorCodes.INDEX_OUT_OF_RANGE,
                )
            return NumValue(items[position])

        if not items:
            raise XodEvalError(
                f"List is empty, cannot get {kind.value} element.",
                node.span,
                fix=f"{name}.append(0x1)",
                code=XodErrorCodes.EMPTY_LIST,
            )
        if kind is MethodKind.FRONT:
            element, rest = items[0], items[1:]
        else:
            element, rest = items[-1], items[:-1]
        self.env.set(name, ListValue(rest))
        return NumValue(element)

    # ─────────────────────────────────────────────────────────────
    # Lines
    # ─────────────────────────────────────────────────────────────

    def _eval_Empty(self, node: Empty) -> Result:
        return NO_OP

    def _eval_Variable(self, node: Variable) -> Result:
        value = self._eval(node.value)
        self.env.set(node.name.ident, value)
        logger.debug("%s = %s", node.name.ident, value)
        return NO_OP

    def _eval_Loop(self, node: Loop) -> Result:
        head = node.head
        passes = 0
        for item in self._loop_iterator(head):
            if isinstance(head, ForHead):
                self.env.set(head.var.ident, NumValue(item))
            for line in node.body:
                self._eval(line)
            passes += 1
        logger.debug("%s ran %d pass(es)", head, passes)
        return NO_OP

    def _loop_iterator(self, head: LoopHead) -> LoopIterator:
        if isinstance(head, WhileHead):
            return LoopIterator.guarded(lambda: self._scalar(head.guard))
        if isinstance(head, IfHead):
            return LoopIterator.guarded(lambda: self._scalar(head.guard), once=True)
        source = head.source
        if isinstance(source, ListLiteral):
            return LoopIterator.over(self._splice(source.items))
        if isinstance(source, Range):
            return LoopIterator.over(self._bounds(source))
        value = self._lookup(source)
        if isinstance(value, ListValue):
            return LoopIterator.over(value.items)
        return LoopIterator.over((value.value,))


# ═══════════════════════════════════════════════════════════════════
#  MODULE-LEVEL API
# ═══════════════════════════════════════════════════════════════════

def evaluate(
    line: Line,
    env: Environment,
    config: Optional[XodConfig] = None,
    out: Optional[TextIO] = None,
) -> Outcome:
    """Evaluate one line against *env*."""
    return Evaluator(env, config, out).evaluate(line)


def run(
    lines: Iterable[Line],
    env: Environment,
    config: Optional[XodConfig] = None,
    out: Optional[TextIO] = None,
) -> Iterator[Outcome]:
    """Evaluate *lines* against *env*, stopping at the first signal or error.

    The returned iterator is lazy: nothing is evaluated until it is
    consumed.
    """
    return Evaluator(env, config, out).run(lines)
