"""Tests for the misconception catalog and detector."""

import pytest
from pydantic import ValidationError

from mathgrade.answer import misconceptions as catalog_module
from mathgrade.answer import (
    CATALOG,
    AnswerPair,
    detect_misconceptions,
    get_misconception,
)


def ids(user, expected, **kwargs):
    return [m.id for m in detect_misconceptions(user, expected, **kwargs)]


class TestCatalog:
    """Test the catalog records."""

    def test_catalog_ids(self):
        """Test that the catalog holds the documented patterns in order."""
        assert [entry.misconception.id for entry in CATALOG] == [
            "sign_error",
            "factor_error",
            "fraction_inverted",
            "order_of_operations",
            "power_root_confusion",
            "decimal_placement",
            "unit_conversion",
        ]

    def test_every_entry_has_a_hint(self):
        """Test that every misconception can be explained to the student."""
        for misconception, predicate in CATALOG:
            assert misconception.name
            assert misconception.description
            assert misconception.remediation_hint
            assert callable(predicate)

    def test_lookup(self):
        """Test lookup by id."""
        assert get_misconception("sign_error").name == "Sign error"
        with pytest.raises(KeyError):
            get_misconception("does_not_exist")

    def test_records_are_frozen(self):
        """Test that catalog records cannot be mutated."""
        with pytest.raises(ValidationError):
            get_misconception("sign_error").name = "changed"

    def test_wire_format(self):
        """Test camelCase serialization."""
        data = get_misconception("sign_error").model_dump(by_alias=True)
        assert "remediationHint" in data


class TestDetection:
    """Test detection over wrong answers."""

    def test_sign_error(self):
        """Test that -4 for 4 is a sign error only."""
        assert ids("-4", "4") == ["sign_error"]

    def test_factor_and_root(self):
        """Test that one answer can match several patterns."""
        assert ids("2", "4") == ["factor_error", "power_root_confusion"]

    def test_fraction_inverted(self):
        """Test a reciprocal answer."""
        assert "fraction_inverted" in ids("4/3", "3/4")

    def test_order_of_operations(self):
        """Test a left-to-right reading of the expected expression."""
        assert ids("20", "2+3*4") == ["order_of_operations"]

    def test_order_of_operations_needs_an_expression(self):
        """Test that a plain expected number never triggers the pattern."""
        assert "order_of_operations" not in ids("20", "14")

    def test_squared(self):
        """Test an answer that is the square of the expected value."""
        assert "power_root_confusion" in ids("81", "9")

    def test_decimal_placement(self):
        """Test a shifted decimal point."""
        assert "decimal_placement" in ids("0.35", "3.5")

    def test_unit_conversion(self):
        """Test an answer off by sixty."""
        assert ids("120", "2") == ["unit_conversion"]

    def test_pi_factor(self):
        """Test an answer missing a factor of pi."""
        assert "factor_error" in ids("4", "4pi")

    def test_unrelated_answer(self):
        """Test that an unrelated wrong answer matches nothing."""
        assert ids("7", "4") == []

    def test_non_numeric_answers(self):
        """Test that answers without numeric readings match nothing."""
        assert ids("x+2", "x+1") == []
        assert ids("banana", "4") == []

    def test_zero_expected_value(self):
        """Test that a zero expected value does not raise."""
        assert ids("5", "0") == []
        assert ids("0", "0.5") == []

    def test_tolerance(self):
        """Test that the relative tolerance is honored."""
        assert ids("-4.01", "4", tolerance=1e-3) == []
        assert ids("-4.01", "4", tolerance=1e-2) == ["sign_error"]

    def test_deterministic(self):
        """Test that repeated calls give the same result."""
        assert ids("2", "4") == ids("2", "4")


class TestPredicateIsolation:
    """Test that a failing predicate does not affect the others."""

    def test_raising_predicate_is_skipped(self, monkeypatch):
        """Test that an exception counts as no match."""

        def broken(pair: AnswerPair) -> bool:
            raise RuntimeError("boom")

        first, *rest = catalog_module.CATALOG
        monkeypatch.setattr(
            catalog_module,
            "CATALOG",
            (first._replace(predicate=broken), *rest),
        )

        assert ids("2", "4") == ["factor_error", "power_root_confusion"]
        assert ids("-4", "4") == []


class TestAnswerPair:
    """Test the predicate input record."""

    def test_values(self):
        """Test the values property."""
        pair = AnswerPair("2", "4", 2.0, 4.0)
        assert pair.values == (2.0, 4.0)
        assert pair.ratio == 0.5

    def test_missing_value(self):
        """Test that a missing value disables values and ratio."""
        pair = AnswerPair("x", "4", None, 4.0)
        assert pair.values is None
        assert pair.ratio is None

    def test_approx_near_zero(self):
        """Test that closeness to zero is absolute."""
        pair = AnswerPair("0", "0", 0.0, 0.0)
        assert pair.approx(0.0, 0.0)
        assert not pair.approx(0.001, 0.0)
