"""Tests for the tiered equivalence resolver."""

import time

import pytest
from pydantic import TypeAdapter, ValidationError

from mathgrade.answer import (
    AlgebraicMatch,
    EquivalenceMethod,
    EquivalenceVerdict,
    ExactMatch,
    NoEquivalence,
    NumericMatch,
    check_equivalence,
    compare_monomials,
)


class TestExactTier:
    """Test the exact tier."""

    def test_cosmetic_differences(self):
        """Test that spacing, case and glyphs do not matter."""
        assert isinstance(check_equivalence(" 2X + 1 ", "2x+1"), ExactMatch)
        assert isinstance(check_equivalence("3×π", "3*pi"), ExactMatch)

    @pytest.mark.parametrize("literal", ["42", "0", "-3", "2.5", ".5", "1e-3", "1/2", "100000"])
    def test_identical_literals_are_exact(self, literal):
        """Test that identical numbers stop at the exact tier."""
        verdict = check_equivalence(literal, literal)
        assert verdict.method == "exact"
        assert verdict.is_equivalent is True
        assert verdict.is_close is False

    def test_both_empty(self):
        """Test that two blank answers are trivially identical."""
        assert isinstance(check_equivalence("", "  "), ExactMatch)


class TestNumericTier:
    """Test the numeric tier."""

    def test_fraction_and_decimal(self):
        """Test that 1/2 and 0.5 match numerically."""
        verdict = check_equivalence("1/2", "0.5")
        assert isinstance(verdict, NumericMatch)
        assert verdict.is_equivalent is True
        assert verdict.user_value == pytest.approx(0.5)
        assert verdict.expected_value == pytest.approx(0.5)

    def test_within_tolerance(self):
        """Test a difference inside the tolerance."""
        verdict = check_equivalence("3.14159", "pi", tolerance=1e-4)
        assert isinstance(verdict, NumericMatch)
        assert verdict.is_equivalent is True

    def test_near_miss(self):
        """Test that a difference within the close band is reported, not accepted."""
        verdict = check_equivalence("3.14", "pi", tolerance=1e-4)
        assert isinstance(verdict, NumericMatch)
        assert verdict.is_equivalent is False
        assert verdict.is_close is True

    def test_far_miss(self):
        """Test that a large difference is not equivalent and not close."""
        verdict = check_equivalence("5", "7")
        assert isinstance(verdict, NoEquivalence)
        assert verdict.is_close is False

    def test_close_factor(self):
        """Test that the near-miss band scales with the close factor."""
        verdict = check_equivalence("3.14", "pi", tolerance=1e-4, close_factor=1)
        assert isinstance(verdict, NoEquivalence)

    def test_scientific_notation(self):
        """Test that 1e-3 matches 0.001."""
        assert check_equivalence("1e-3", "0.001").is_equivalent

    def test_one_side_not_numeric(self):
        """Test that a numeric tier needs both values."""
        assert isinstance(check_equivalence("abc", "5"), NoEquivalence)


class TestAlgebraicTier:
    """Test the algebraic tier."""

    def test_commuted_terms(self):
        """Test that x+1 and 1+x match algebraically."""
        verdict = check_equivalence("x+1", "1+x")
        assert isinstance(verdict, AlgebraicMatch)
        assert verdict.equivalence_method is EquivalenceMethod.ALGEBRAIC

    def test_collected_terms(self):
        """Test that like terms are collected before comparing."""
        assert isinstance(check_equivalence("2x + 3x", "5x"), AlgebraicMatch)
        assert isinstance(check_equivalence("x^2 + 2x + 1", "1 + 2x + x^2"), AlgebraicMatch)

    def test_different_polynomials(self):
        """Test that different coefficients do not match."""
        assert isinstance(check_equivalence("x+2", "x+1"), NoEquivalence)

    def test_undecomposable_answers_never_match(self):
        """Test that two undecomposable answers are not equivalent."""
        assert isinstance(check_equivalence("(x+1)^2", "(1+x)^2"), NoEquivalence)

    def test_algebraic_needs_letters_on_both_sides(self):
        """Test that a number never matches an expression algebraically."""
        assert isinstance(check_equivalence("1", "x^0"), NoEquivalence)


class TestValidation:
    """Test argument validation and verdict records."""

    @pytest.mark.parametrize(
        "kwargs",
        [{"tolerance": -1}, {"algebraic_tolerance": -0.1}, {"close_factor": 0.5}],
    )
    def test_invalid_arguments(self, kwargs):
        """Test that negative tolerances are rejected."""
        with pytest.raises(ValueError):
            check_equivalence("1", "2", **kwargs)

    def test_equivalent_and_close_is_rejected(self):
        """Test that a verdict cannot be both equivalent and close."""
        with pytest.raises(ValidationError):
            NumericMatch(user_value=1, expected_value=1, is_equivalent=True, is_close=True)

    def test_verdicts_are_frozen(self):
        """Test that verdicts cannot be mutated."""
        verdict = check_equivalence("1/2", "0.5")
        with pytest.raises(ValidationError):
            verdict.user_value = 2.0

    def test_discriminated_union(self):
        """Test that camelCase payloads validate to the right verdict type."""
        adapter = TypeAdapter(EquivalenceVerdict)
        verdict = adapter.validate_python(
            {"method": "numeric", "userValue": 0.5, "expectedValue": 0.5}
        )
        assert isinstance(verdict, NumericMatch)
        assert isinstance(adapter.validate_python({"method": "none", "isClose": True}), NoEquivalence)

    def test_wire_format(self):
        """Test camelCase serialization."""
        data = check_equivalence("3.14", "pi").model_dump(by_alias=True)
        assert data["method"] == "numeric"
        assert data["isClose"] is True
        assert "userValue" in data


class TestCompareMonomials:
    """Test monomial map comparison."""

    def test_missing_key_is_zero(self):
        """Test that a zero coefficient equals an absent term."""
        assert compare_monomials({"x^1": 1.0, "const": 0.0}, {"x^1": 1.0})

    def test_empty_maps(self):
        """Test that empty maps never match."""
        assert not compare_monomials({}, {})
        assert not compare_monomials({}, {"x^1": 1.0})

    def test_tolerance(self):
        """Test coefficient tolerance."""
        assert compare_monomials({"x^1": 1.00001}, {"x^1": 1.0}, tolerance=1e-4)
        assert not compare_monomials({"x^1": 1.01}, {"x^1": 1.0}, tolerance=1e-4)


class TestHostileInput:
    """Test answers built to stall the matchers."""

    def test_long_digit_run(self):
        """Test that a near-maximum answer resolves in well under a second."""
        start = time.perf_counter()
        verdict = check_equivalence("1" * 9990 + "xy", "x+1")
        assert time.perf_counter() - start < 1.0
        assert isinstance(verdict, NoEquivalence)

    def test_deep_nesting(self):
        """Test that deep nesting is a non-match, not an error."""
        assert isinstance(check_equivalence("(" * 3000 + "2" + ")" * 3000, "2"), NoEquivalence)
