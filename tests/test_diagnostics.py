# tests/test_diagnostics.py
"""
Tests for the source-annotated diagnostic renderer.
"""

import io

import pytest

from xod.diagnostics import _Colors, get_colors, locate, render, render_error
from xod.errors import Diagnostic, Span, XodErrorCodes, XodParseError
from xod.parser import parse


class _Tty(io.StringIO):
    def isatty(self):
        return True


class TestLocate:
    """Offset to line and column conversion."""

    @pytest.mark.parametrize("offset, expected", [
        (0, (1, 1)),
        (2, (1, 3)),
        (3, (2, 1)),
        (4, (2, 2)),
    ])
    def test_positions(self, offset, expected):
        assert locate("ab\ncd", offset) == expected

    def test_clamped_to_source(self):
        assert locate("ab", 99) == (1, 3)
        assert locate("ab", -5) == (1, 1)


class TestRender:
    """Layout of rendered diagnostics."""

    def test_undefined_variable(self, runner):
        source = "z = w + 1"
        error = runner.failure(source)
        assert render_error(error, source) == (
            "error[XOD-3000]: Variable not defined.\n"
            " --> line 1, cols 5-5\n"
            "  |\n"
            "1 | z = w + 1\n"
            "  |     ^\n"
            "  = fix: w = 0x42"
        )

    def test_second_line(self, runner):
        source = "x = 1\ny = x & q"
        error = runner.failure(source)
        assert render_error(error, source) == (
            "error[XOD-3000]: Variable not defined.\n"
            " --> line 2, cols 9-9\n"
            "  |\n"
            "1 | x = 1\n"
            "2 | y = x & q\n"
            "  |         ^\n"
            "  = fix: q = 0x42"
        )

    def test_wide_span(self):
        diagnostic = Diagnostic(XodErrorCodes.UNEXPECTED_TOKEN, Span(4, 8), "Bad.")
        lines = render(diagnostic, "abc defgh").splitlines()
        assert lines[1] == " --> line 1, cols 5-8"
        assert lines[4] == "  |     ^^^^"

    def test_no_fix_line(self):
        diagnostic = Diagnostic(XodErrorCodes.UNEXPECTED_TOKEN, Span(0, 1), "Bad.")
        assert "fix:" not in render(diagnostic, "x")

    def test_zero_width_span_at_end(self):
        source = "x = "
        with pytest.raises(XodParseError) as info:
            parse(source)
        lines = render_error(info.value, source).splitlines()
        assert lines[0] == "error[XOD-1001]: Unexpected end of statement."
        assert lines[1] == " --> line 1, cols 5-5"
        assert lines[4] == "  |     ^"

    def test_multi_line_span(self):
        diagnostic = Diagnostic(XodErrorCodes.UNEXPECTED_TOKEN, Span(0, 9), "Bad.")
        lines = render(diagnostic, "ab\ncdefgh").splitlines()
        assert lines[1] == " --> lines 1-2"
        assert lines[3:] == [
            "1 | ab",
            "  | ^^",
            "2 | cdefgh",
            "  | ^^^^^^",
        ]

    def test_gutter_grows_with_line_number(self):
        source = "\n" * 9 + "x"
        diagnostic = Diagnostic(XodErrorCodes.UNEXPECTED_TOKEN, Span(9, 10), "Bad.")
        lines = render(diagnostic, source).splitlines()
        assert lines[1:] == [
            "  --> line 10, cols 1-1",
            "   |",
            " 7 |",
            " 8 |",
            " 9 |",
            "10 | x",
            "   | ^",
        ]

    def test_error_in_block_body_shows_block(self, runner):
        source = "for (i in [1]) {\n  y = nope\n}\n"
        error = runner.failure(source)
        assert render_error(error, source) == (
            "error[XOD-3000]: Variable not defined.\n"
            " --> line 2, cols 7-10\n"
            "  |\n"
            "1 | for (i in [1]) {\n"
            "2 |   y = nope\n"
            "  |       ^^^^\n"
            "3 | }\n"
            "  = fix: nope = 0x42"
        )

    def test_context_is_limited_around_span(self):
        source = "\n".join(f"x{n} = {n}" for n in range(1, 11))
        offset = source.index("x6")
        diagnostic = Diagnostic(XodErrorCodes.UNEXPECTED_TOKEN, Span(offset, offset + 2), "Bad.")
        numbered = [
            line.split(" |")[0].strip()
            for line in render(diagnostic, source).splitlines()[3:]
            if not line.startswith(" ")
        ]
        assert numbered == ["3", "4", "5", "6", "7", "8", "9"]

    def test_chained_operator_fix(self):
        source = "a & b | c"
        with pytest.raises(XodParseError) as info:
            parse(source)
        rendered = render_error(info.value, source)
        assert "error[XOD-1004]" in rendered
        assert rendered.endswith("= fix: (a & b) | c")


class TestColors:
    """ANSI colour selection."""

    def test_disabled_renders_plain(self):
        diagnostic = Diagnostic(XodErrorCodes.UNEXPECTED_TOKEN, Span(0, 1), "Bad.")
        assert "\033[" not in render(diagnostic, "x", _Colors(enabled=False))

    def test_enabled_renders_ansi(self):
        diagnostic = Diagnostic(XodErrorCodes.UNEXPECTED_TOKEN, Span(0, 1), "Bad.", "y")
        rendered = render(diagnostic, "x", _Colors(enabled=True))
        assert "\033[31m" in rendered
        assert "\033[32mfix:" in rendered

    def test_not_a_tty(self):
        assert not get_colors(io.StringIO()).enabled

    def test_tty(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        assert get_colors(_Tty()).enabled

    def test_no_color_env(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")
        assert not get_colors(_Tty()).enabled

    @pytest.mark.parametrize("force", [True, False])
    def test_force(self, force):
        assert get_colors(io.StringIO(), force=force).enabled is force
