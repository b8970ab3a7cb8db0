"""Tests for the numeric evaluator."""

import math
import time

import pytest

from mathgrade.answer import evaluate_expression, evaluate_to_number
from mathgrade.parser import LEFT_TO_RIGHT_OPERATORS


class TestEvaluateToNumber:
    """Test numeric readings of answers."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("42", 42.0),
            ("-3", -3.0),
            ("1/2", 0.5),
            ("-3/4", -0.75),
            ("0.25", 0.25),
            ("2 + 3 × 4", 14.0),
            ("√16", 4.0),
            ("sqrt(2)^2", 2.0),
            ("3²", 9.0),
            ("2(3+4)", 14.0),
            ("1e-3", 0.001),
            ("2.5E2", 250.0),
        ],
    )
    def test_numeric_answers(self, raw, expected):
        """Test answers that have a numeric reading."""
        assert evaluate_to_number(raw) == pytest.approx(expected)

    def test_constants(self):
        """Test that pi and its glyph evaluate."""
        assert evaluate_to_number("2π") == pytest.approx(2 * math.pi)
        assert evaluate_to_number("pi/2") == pytest.approx(math.pi / 2)

    @pytest.mark.parametrize(
        "raw",
        [None, "", "x", "2x+1", "1/0", "5/0", "sqrt(-1)", "hello", "os.system('ls')", "nan", "inf"],
    )
    def test_no_numeric_reading(self, raw):
        """Test that uninterpretable answers give None, never zero."""
        assert evaluate_to_number(raw) is None

    def test_overflow_gives_none(self):
        """Test that a huge power does not raise."""
        assert evaluate_to_number("10^400") is None


class TestEvaluateExpression:
    """Test evaluation of normalized expressions."""

    def test_standard_precedence(self):
        """Test the default operator table."""
        assert evaluate_expression("2+3*4") == 14.0

    def test_left_to_right(self):
        """Test the flat operator table."""
        assert evaluate_expression("2+3*4", LEFT_TO_RIGHT_OPERATORS) == 20.0

    def test_invalid_expression(self):
        """Test that parse failures give None."""
        assert evaluate_expression("2+*") is None


class TestHostileInput:
    """Test that oversized or deeply nested answers give None instead of raising."""

    @pytest.mark.parametrize(
        "raw",
        [
            "(" * 2000 + "1" + ")" * 2000,
            "-" * 3000 + "1",
            "sqrt(" * 1000 + "4" + ")" * 1000,
            "2^" * 3000 + "2",
            "+".join(["1"] * 4000),
        ],
    )
    def test_deep_expressions(self, raw):
        """Test nesting and chains far beyond any real answer."""
        assert evaluate_to_number(raw) is None

    def test_moderate_nesting_still_evaluates(self):
        """Test that ordinary nesting is unaffected by the depth limit."""
        assert evaluate_to_number("(" * 30 + "2+3" + ")" * 30) == 5.0

    def test_long_digit_run_is_fast(self):
        """Test that a long digit run is rejected in linear time."""
        start = time.perf_counter()
        assert evaluate_to_number("1" * 9990 + "xy") is None
        assert time.perf_counter() - start < 1.0
