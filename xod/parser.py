"""xod/parser.py – source text → ``Line`` sequence.

Parsing runs in three steps:

1. **Bracket scan.**  An opening ``(``, ``[`` or ``{`` with no closer
   raises ``IncompleteInputError`` so an interactive caller can read
   another line and retry.  Stray closing braces are left in place; they
   become ``Empty`` lines.

2. **Statement splitting.**  Statements are separated by newlines or
   ``;``.  At each position the splitter matches either the
   ``block_head`` rule (``for``/``while``/``if`` up to ``{``) or the
   ``statement`` rule of ``xod.grammar.XOD_GRAMMAR``.  A block body runs
   to the matching ``}`` and is split recursively.

3. **AST building.**  ``_AstBuilder`` turns each parsimonious node into
   the frozen dataclasses of ``xod.ast``.  Spans are absolute offsets
   into the text passed to ``parse``.

Every failure surfaces as ``XodParseError`` with a span and a fix.
parsimonious exceptions never escape this module.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple

from parsimonious.exceptions import ParseError
from parsimonious.nodes import Node, NodeVisitor

from xod.ast import (
    CONTROL_BY_NAME,
    METHOD_BY_NAME,
    BitExpr,
    BitOp,
    BoolCall,
    Compare,
    CompareOp,
    ControlCall,
    Empty,
    ForHead,
    FormatCall,
    IfHead,
    Line,
    ListLiteral,
    LogCall,
    Loop,
    MethodCall,
    Name,
    Number,
    Range,
    SepBitExpr,
    Variable,
    WhileHead,
)
from xod.config import DEFAULT_CONFIG, XodConfig
from xod.errors import (
    IncompleteInputError,
    Span,
    XodErrorCodes,
    XodParseError,
)
from xod.grammar import BLOCK_KEYWORDS, DUAL_OPERATORS, XOD_GRAMMAR
from xod.numbers import RADIX_BY_NAME, LiteralError, parse_literal, split_literal

logger = logging.getLogger(__name__)

_BLOCK_START = re.compile(r"(?:%s)[ \t]*\(" % "|".join(BLOCK_KEYWORDS))
_SEPARATORS = re.compile(r"[\s;]*")
_INLINE_BLANK = re.compile(r"[ \t\r]*")

_PAIRS = {"(": ")", "[": "]", "{": "}"}
_OPENER_OF = {close: open_ for open_, close in _PAIRS.items()}

_STATEMENT_END = "\n;}"


def _span(node: Node) -> Span:
    return Span(node.start, node.end)


# ═══════════════════════════════════════════════════════════════════
#  PARSE TREE → AST
# ═══════════════════════════════════════════════════════════════════

class _AstBuilder(NodeVisitor):
    """Transforms parsimonious nodes into ``xod.ast`` nodes."""

    unwrapped_exceptions = (XodParseError, RecursionError)

    def __init__(self, bit_width: int) -> None:
        self._bit_width = bit_width

    def generic_visit(self, node, visited_children):
        """Default: the visited children, or the node itself for leaves."""
        return visited_children or node

    def _first(self, node, visited_children):
        return visited_children[0]

    visit_statement = _first
    visit_block_head = _first
    visit_iterable = _first
    visit_value = _first
    visit_operand = _first
    visit_bit_expr = _first
    visit_range = _first
    visit_func_call = _first
    visit_bool_arg = _first
    visit_format_arg = _first
    visit_method = _first
    visit_method_arg = _first

    # ─────────────────────────────────────────────────────────────
    # Tokens
    # ─────────────────────────────────────────────────────────────

    def visit_name(self, node, _):
        return Name(node.text, _span(node))

    def visit_number(self, node, _):
        text = node.text
        try:
            value, radix = parse_literal(text, self._bit_width)
        except LiteralError as exc:
            raise XodParseError(
                exc.message,
                Span.at(node.start + exc.offset, exc.length),
                fix=exc.fix,
                code=XodErrorCodes.INVALID_NUMBER_LITERAL,
            ) from exc
        prefix, _, _ = split_literal(text)
        if prefix is None:
            return Number(value, _span(node), None, radix)
        split = node.start + len(prefix)
        return Number(value, Span(split, node.end), Span(node.start, split), radix)

    def visit_dual_op(self, node, _):
        return BitOp.from_token(node.text), _span(node)

    visit_not_op = visit_dual_op

    def visit_compare_op(self, node, _):
        return Compare(node.text), _span(node)

    # ─────────────────────────────────────────────────────────────
    # Expressions
    # ─────────────────────────────────────────────────────────────

    def visit_dual_expr(self, node, visited_children):
        left, _, (op, op_span), right = visited_children
        right = right[0] if isinstance(right, list) else None
        return BitExpr(left, op, op_span, right)

    def visit_right_operand(self, node, visited_children):
        return visited_children[1]

    def visit_single_expr(self, node, visited_children):
        (op, op_span), _, operand = visited_children
        return BitExpr(operand, op, op_span)

    def visit_sep_expr(self, node, visited_children):
        open_, _, expr, _, close = visited_children
        return SepBitExpr(expr, _span(open_), _span(close))

    def visit_comparison(self, node, visited_children):
        left, _, (op, op_span), _, right = visited_children
        return CompareOp(left, op, op_span, right)

    # ─────────────────────────────────────────────────────────────
    # Lists and ranges
    # ─────────────────────────────────────────────────────────────

    def visit_list(self, node, visited_children):
        _, _, items, _, _ = visited_children
        items = items[0] if isinstance(items, list) else []
        return ListLiteral(tuple(items), _span(node))

    def visit_list_items(self, node, visited_children):
        first, rest = visited_children
        return [first] + (rest if isinstance(rest, list) else [])

    def visit_list_tail(self, node, visited_children):
        return visited_children[3]

    def visit_range_call(self, node, visited_children):
        start, end = visited_children[4], visited_children[8]
        return Range(start, end, _span(node))

    def visit_paren_range(self, node, visited_children):
        return visited_children[2]

    def visit_range_dots(self, node, visited_children):
        start, _, _, _, end = visited_children
        return Range(start, end, _span(node))

    # ─────────────────────────────────────────────────────────────
    # Calls
    # ─────────────────────────────────────────────────────────────

    def visit_bool_call(self, node, visited_children):
        keyword, _, _, _, arg, _, _ = visited_children
        return BoolCall(arg, _span(keyword), _span(node))

    def visit_format_call(self, node, visited_children):
        (radix, name_span), _, _, _, arg, _, _ = visited_children
        return FormatCall(radix, arg, name_span, _span(node))

    def visit_format_name(self, node, _):
        return RADIX_BY_NAME[node.text], _span(node)

    def visit_log_call(self, node, visited_children):
        keyword = visited_children[0]
        value, base = visited_children[4], visited_children[8]
        return LogCall(value, base, _span(keyword), _span(node))

    def visit_control_call(self, node, visited_children):
        (signal, name) = visited_children[0]
        return ControlCall(signal, name, _span(node))

    def visit_control_name(self, node, _):
        return CONTROL_BY_NAME[node.text], node.text

    def visit_method_call(self, node, visited_children):
        target, _, (kind, method_span, arg) = visited_children
        return MethodCall(target, kind, method_span, _span(node), arg)

    def visit_arg_method(self, node, visited_children):
        (kind, method_span), _, _, _, arg, _, _ = visited_children
        return kind, method_span, arg

    def visit_bare_method(self, node, visited_children):
        kind, method_span = visited_children[0]
        return kind, method_span, None

    def visit_arg_method_name(self, node, _):
        return METHOD_BY_NAME[node.text], _span(node)

    visit_bare_method_name = visit_arg_method_name

    # ─────────────────────────────────────────────────────────────
    # Statements and block heads
    # ─────────────────────────────────────────────────────────────

    def visit_assignment(self, node, visited_children):
        name, _, _, _, value = visited_children
        return Variable(name, value)

    def visit_for_head(self, node, visited_children):
        keyword, var, source = visited_children[0], visited_children[4], visited_children[8]
        return ForHead(_span(keyword), var, source), _span(visited_children[-1])

    def visit_while_head(self, node, visited_children):
        keyword, guard = visited_children[0], visited_children[4]
        return WhileHead(_span(keyword), guard), _span(visited_children[-1])

    def visit_if_head(self, node, visited_children):
        keyword, guard = visited_children[0], visited_children[4]
        return IfHead(_span(keyword), guard), _span(visited_children[-1])


# ═══════════════════════════════════════════════════════════════════
#  STATEMENT SPLITTER
# ═══════════════════════════════════════════════════════════════════

def check_brackets(source: str) -> None:
    """Raise ``IncompleteInputError`` if an opening bracket is never closed.

    Mismatched or stray closers are not reported here; the grammar
    rejects them with a better location.
    """
    stack: List[Tuple[str, int]] = []
    for index, char in enumerate(source):
        if char in _PAIRS:
            stack.append((char, index))
        elif char in _OPENER_OF:
            if stack and stack[-1][0] == _OPENER_OF[char]:
                stack.pop()
            elif char == "}" and not any(open_ == "{" for open_, _ in stack):
                continue
            else:
                return
    if stack:
        char, index = stack[-1]
        raise IncompleteInputError(
            f"Unclosed `{char}`.",
            Span.at(index),
            fix=f"Close it with `{_PAIRS[char]}`.",
        )


class _Splitter:
    def __init__(self, source: str, config: XodConfig) -> None:
        self._source = source
        self._builder = _AstBuilder(config.bit_width)
        self._trace = config.parse_debug

    def parse(self) -> List[Line]:
        source = self._source
        check_brackets(source)
        lines = self._parse_lines(0, len(source))
        if not lines and source:
            lines.append(Empty(Span(0, len(source))))
        return lines

    def _parse_lines(self, start: int, end: int) -> List[Line]:
        chunk = self._source[:end]
        lines: List[Line] = []
        pos = start
        while True:
            pos = _SEPARATORS.match(chunk, pos).end()
            if pos >= end:
                return lines
            if chunk[pos] in "{}":
                lines.append(Empty(Span.at(pos)))
                pos += 1
            elif _BLOCK_START.match(chunk, pos):
                loop, pos = self._parse_block(chunk, pos, end)
                lines.append(loop)
            else:
                line, pos = self._parse_statement(chunk, pos, end)
                lines.append(line)

    def _parse_block(self, chunk: str, pos: int, end: int) -> Tuple[Loop, int]:
        node = self._match("block_head", chunk, pos, end)
        head, open_span = self._build(node)
        close = self._matching_brace(chunk, open_span.start, end)
        if self._trace:
            logger.debug("block %s: body %r", head, chunk[open_span.end:close])
        body = self._parse_lines(open_span.end, close)
        return Loop(head, tuple(body), open_span, Span.at(close)), close + 1

    def _parse_statement(self, chunk: str, pos: int, end: int) -> Tuple[Line, int]:
        node = self._match("statement", chunk, pos, end)
        line = self._build(node)
        if self._trace:
            logger.debug("statement %r -> %s", node.text, type(line).__name__)
        stop = _INLINE_BLANK.match(chunk, node.end).end()
        if stop < end and chunk[stop] not in _STATEMENT_END:
            raise self._trailing_error(chunk, node, line, stop, end)
        return line, stop

    def _match(self, rule: str, chunk: str, pos: int, end: int) -> Node:
        if self._trace:
            logger.debug("trying %s at %d", rule, pos)
        try:
            return XOD_GRAMMAR[rule].match(chunk, pos)
        except ParseError as exc:
            raise _syntax_error(chunk, max(exc.pos, pos), end) from exc
        except RecursionError:
            raise _nesting_error(pos) from None

    def _build(self, node: Node):
        try:
            return self._builder.visit(node)
        except RecursionError:
            raise _nesting_error(node.start) from None

    @staticmethod
    def _matching_brace(chunk: str, open_pos: int, end: int) -> int:
        depth = 0
        for index in range(open_pos, end):
            char = chunk[index]
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return index
        raise IncompleteInputError(
            "Unclosed `{`.", Span.at(open_pos), fix="Close the block with `}`."
        )

    @staticmethod
    def _trailing_error(chunk: str, node: Node, line: Line, stop: int, end: int) -> XodParseError:
        line_end = chunk.find("\n", stop, end)
        if line_end < 0:
            line_end = end
        rest = chunk[stop:line_end].rstrip()
        operator = next((op for op in DUAL_OPERATORS if rest.startswith(op)), None)
        if operator is not None and isinstance(line, (BitExpr, Variable)):
            if isinstance(line, Variable):
                head = chunk[node.start:line.value.span.start]
                fix = f"{head}({line.value.span.text(chunk)}) {rest}"
            else:
                fix = f"({node.text}) {rest}"
            return XodParseError(
                "Operators cannot be chained without parentheses.",
                Span.at(stop, len(operator)),
                fix=fix,
                code=XodErrorCodes.CHAINED_OPERATORS,
            )
        return XodParseError(
            f"Unexpected `{chunk[stop]}` after the end of the statement.",
            Span.at(stop),
            fix="Put each statement on its own line or separate them with `;`.",
        )


def _syntax_error(chunk: str, pos: int, end: int) -> XodParseError:
    if pos >= end or chunk[pos] in "\r\n":
        return XodParseError(
            "Unexpected end of statement.",
            Span(min(pos, end), min(pos, end)),
            fix="Complete the statement; run `help()` for the accepted forms.",
            code=XodErrorCodes.UNEXPECTED_EOF,
        )
    return XodParseError(
        f"Unexpected `{chunk[pos]}`.",
        Span.at(pos),
        fix="Run `help()` for the accepted forms.",
    )


def _nesting_error(pos: int) -> XodParseError:
    return XodParseError(
        "Expression nested too deeply.",
        Span.at(pos),
        fix="Split it into smaller assignments.",
        code=XodErrorCodes.NESTING_TOO_DEEP,
    )


# ═══════════════════════════════════════════════════════════════════
#  PUBLIC API
# ═══════════════════════════════════════════════════════════════════

def parse(text: str, config: Optional[XodConfig] = None) -> List[Line]:
    """Parse *text* into a list of ``Line`` nodes.

    Raises ``IncompleteInputError`` when an opening bracket is still
    unclosed, and ``XodParseError`` for any other malformed input.
    Blank input yields ``[]`` for ``""`` and a single ``Empty`` line
    for whitespace.
    """
    return _Splitter(text, config or DEFAULT_CONFIG).parse()
