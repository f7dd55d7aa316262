"""
xod/diagnostics.py
==================

Source-annotated rendering of ``xod.errors.Diagnostic`` records.

Output shape::

    error[XOD-3000]: Variable not defined.
     --> line 2, cols 7-10
      |
    1 | for (i in [1]) {
    2 |   y = nope
      |       ^^^^
    3 | }
      = fix: nope = 0x42

The lines around the span are reproduced for context.

Lines and columns are 1-based and computed from the absolute span
offsets at render time.  Columns count characters, so a literal tab in
the source is one column wide.  A zero-width span still gets a single
caret.
"""

from __future__ import annotations

import os
import sys
from typing import Optional, TextIO, Tuple

from xod.errors import Diagnostic, XodError

CONTEXT_LINES = 3


# ═══════════════════════════════════════════════════════════════════════════
# TERMINAL COLORS
# ═══════════════════════════════════════════════════════════════════════════

class _Colors:
    """ANSI color codes, disabled when not writing to a TTY."""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled

    def _code(self, code: str) -> str:
        return code if self.enabled else ""

    @property
    def RESET(self) -> str:
        return self._code("\033[0m")

    @property
    def BOLD(self) -> str:
        return self._code("\033[1m")

    @property
    def RED(self) -> str:
        return self._code("\033[31m")

    @property
    def GREEN(self) -> str:
        return self._code("\033[32m")

    @property
    def BLUE(self) -> str:
        return self._code("\033[34m")


def get_colors(stream: TextIO = sys.stderr, force: Optional[bool] = None) -> _Colors:
    """Colors for *stream*: on for a TTY unless ``NO_COLOR`` is set.

    *force* overrides detection in either direction.
    """
    if force is not None:
        return _Colors(enabled=force)
    try:
        is_tty = hasattr(stream, "isatty") and stream.isatty()
    except ValueError:
        is_tty = False
    return _Colors(enabled=is_tty and os.environ.get("NO_COLOR") is None)


# ═══════════════════════════════════════════════════════════════════════════
# RENDERING
# ═══════════════════════════════════════════════════════════════════════════

def locate(source: str, offset: int) -> Tuple[int, int]:
    """1-based ``(line, column)`` of character *offset* in *source*."""
    offset = max(0, min(offset, len(source)))
    line = source.count("\n", 0, offset) + 1
    column = offset - (source.rfind("\n", 0, offset) + 1) + 1
    return line, column


def render(
    diagnostic: Diagnostic,
    source: str,
    colors: Optional[_Colors] = None,
) -> str:
    """Render *diagnostic* against the text it was produced from.

    Up to ``CONTEXT_LINES`` lines of the input around the span are
    reproduced with their line numbers; carets follow each span line.
    """
    c = colors or _Colors(enabled=False)
    span = diagnostic.span
    start_line, start_col = locate(source, span.start)
    last = max(span.end, span.start + 1) - 1
    end_line, end_col = locate(source, last) if last < len(source) else (start_line, start_col)
    if end_line < start_line:
        end_line, end_col = start_line, start_col

    body = source.split("\n")
    if len(body) > 1 and body[-1] == "":
        body.pop()
    first_shown = max(1, start_line - CONTEXT_LINES)
    last_shown = max(end_line, min(len(body), end_line + CONTEXT_LINES))

    gutter = len(str(last_shown))
    pad = " " * gutter
    bar = f"{c.BLUE}|{c.RESET}"

    if start_line == end_line:
        where = f"line {start_line}, cols {start_col}-{end_col}"
    else:
        where = f"lines {start_line}-{end_line}"

    out = [
        f"{c.BOLD}{c.RED}error[{diagnostic.code}]{c.RESET}{c.BOLD}: {diagnostic.message}{c.RESET}",
        f"{pad}{c.BLUE}-->{c.RESET} {where}",
        f"{pad} {bar}",
    ]
    for number in range(first_shown, last_shown + 1):
        text = body[number - 1] if number <= len(body) else ""
        out.append(f"{c.BLUE}{number:>{gutter}} |{c.RESET}" + (f" {text}" if text else ""))
        if not start_line <= number <= end_line:
            continue
        first = start_col if number == start_line else 1
        final = end_col if number == end_line else max(len(text), first)
        width = max(1, final - first + 1)
        out.append(f"{pad} {bar} {' ' * (first - 1)}{c.RED}{'^' * width}{c.RESET}")
    if diagnostic.fix:
        out.append(f"{pad} {c.BLUE}={c.RESET} {c.GREEN}fix:{c.RESET} {diagnostic.fix}")
    return "\n".join(out)


def render_error(error: XodError, source: str, colors: Optional[_Colors] = None) -> str:
    return render(error.to_diagnostic(), source, colors)
