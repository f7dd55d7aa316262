# tests/test_numbers.py
"""
Tests for numeric literal lexing and base formatting.
"""

import pytest

from xod.numbers import (
    LiteralError,
    Radix,
    describe_number,
    format_number,
    parse_literal,
    split_literal,
    word_mask,
)


class TestSplitLiteral:
    """Splitting a literal into prefix and digits."""

    @pytest.mark.parametrize("text, prefix, digits, radix", [
        ("0x1F", "0x", "1F", Radix.HEX),
        ("0X1f", "0X", "1f", Radix.HEX),
        ("0o17", "0o", "17", Radix.OCT),
        ("0O17", "0O", "17", Radix.OCT),
        ("0b101", "0b", "101", Radix.BIN),
        ("0B101", "0B", "101", Radix.BIN),
        ("42", None, "42", Radix.DEC),
        ("0", None, "0", Radix.DEC),
    ])
    def test_prefixes(self, text, prefix, digits, radix):
        assert split_literal(text) == (prefix, digits, radix)


class TestParseLiteral:
    """Literal conversion and its errors."""

    @pytest.mark.parametrize("text, value, radix", [
        ("0x1F", 31, Radix.HEX),
        ("0xff", 255, Radix.HEX),
        ("0o17", 15, Radix.OCT),
        ("0b101", 5, Radix.BIN),
        ("42", 42, Radix.DEC),
        ("007", 7, Radix.DEC),
        ("0", 0, Radix.DEC),
    ])
    def test_valid(self, text, value, radix):
        assert parse_literal(text) == (value, radix)

    def test_max_value_fits(self):
        assert parse_literal("0xffffffffffffffff")[0] == 2 ** 64 - 1

    def test_overflow(self):
        with pytest.raises(LiteralError, match="64 bits"):
            parse_literal("0x1" + "0" * 16)

    def test_overflow_respects_width(self):
        assert parse_literal("255", bits=8)[0] == 255
        with pytest.raises(LiteralError) as info:
            parse_literal("256", bits=8)
        assert info.value.fix == "255"

    def test_missing_digits(self):
        with pytest.raises(LiteralError, match="Missing digits") as info:
            parse_literal("0x")
        assert info.value.fix == "0x0"

    def test_invalid_digit_location(self):
        with pytest.raises(LiteralError) as info:
            parse_literal("0b102")
        assert info.value.offset == 4
        assert info.value.length == 1
        assert "`2`" in info.value.message

    def test_invalid_decimal_suggests_hex(self):
        with pytest.raises(LiteralError) as info:
            parse_literal("12ab")
        assert info.value.offset == 2
        assert info.value.fix == "0x12ab"

    def test_invalid_octal(self):
        with pytest.raises(LiteralError, match="octal"):
            parse_literal("0o8")

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            parse_literal("0b2")


class TestFormatting:
    """Rendering numbers in each base."""

    def test_format_each_base(self):
        assert format_number(31, Radix.HEX) == "0x1f"
        assert format_number(31, Radix.BIN) == "0b11111"
        assert format_number(31, Radix.OCT) == "0o37"
        assert format_number(31, Radix.DEC) == "31"

    def test_format_zero(self):
        assert format_number(0, Radix.HEX) == "0x0"
        assert format_number(0, Radix.BIN) == "0b0"

    @pytest.mark.parametrize("value", [0, 1, 255, 2 ** 64 - 1])
    def test_formatted_literal_reparses(self, value):
        for radix in Radix:
            assert parse_literal(format_number(value, radix)) == (value, radix)

    def test_word_mask(self):
        assert word_mask(8) == 0xff
        assert word_mask() == 2 ** 64 - 1

    def test_describe_number(self):
        text = describe_number(5, "Input:")
        lines = text.splitlines()
        assert lines[0] == "Input:"
        assert "Base 10:                5" in text
        assert "Base 2 (binary):        0b101" in text
        assert "Base 8 (octal):         0o5" in text
        assert "Base 16 (hexadecimal):  0x5" in text
        assert "Boolean (bit):          1" in text

    def test_describe_zero_is_false(self):
        assert "Boolean (bit):          0" in describe_number(0)
