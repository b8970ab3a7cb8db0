"""
Misconception detector.

A fixed, versioned catalog of diagnostic patterns. Each entry pairs an
immutable ``Misconception`` record with a pure predicate over the two
answers; a wrong answer may match none, one or several entries.

Predicates are plain functions, not subclasses: adding a pattern means adding
one row to ``CATALOG``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, NamedTuple

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from mathgrade.core.logging import get_logger
from mathgrade.parser import LEFT_TO_RIGHT_OPERATORS

from .normalizer import normalize
from .numeric import evaluate_expression, evaluate_to_number

logger = get_logger(__name__)

CATALOG_VERSION = "1"

DEFAULT_TOLERANCE = 1e-3
ZERO_FLOOR = 1e-12

FACTORS = (2.0, 0.5, 10.0, 0.1, math.pi, 1 / math.pi)
DECIMAL_SHIFTS = (10.0, 100.0, 1000.0, 0.1, 0.01, 0.001)
UNIT_RATIOS = (60.0, 1 / 60, 3600.0, 1 / 3600, 1000.0, 0.001, 100.0, 0.01)


class Misconception(BaseModel):
    """A catalogued pattern of mathematical error."""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    id: str
    name: str
    description: str
    remediation_hint: str


@dataclass(frozen=True)
class AnswerPair:
    """
    The two answers handed to every predicate.

    Values are None when an answer has no numeric reading.
    """

    user_raw: str
    expected_raw: str
    user_value: float | None
    expected_value: float | None
    tolerance: float = DEFAULT_TOLERANCE

    def approx(self, a: float, b: float) -> bool:
        """Closeness of ``a`` to the reference ``b``, relative to ``b``."""
        if b == 0:
            return abs(a) <= ZERO_FLOOR
        return abs(a - b) <= self.tolerance * abs(b)

    @property
    def values(self) -> tuple[float, float] | None:
        if self.user_value is None or self.expected_value is None:
            return None
        return self.user_value, self.expected_value

    @property
    def ratio(self) -> float | None:
        """user / expected; raises ZeroDivisionError when expected is zero."""
        if self.values is None:
            return None
        return self.user_value / self.expected_value


Predicate = Callable[[AnswerPair], bool]


class CatalogEntry(NamedTuple):
    misconception: Misconception
    predicate: Predicate


# Predicates


def _sign_error(pair: AnswerPair) -> bool:
    if pair.values is None:
        return False
    user, expected = pair.values
    return expected != 0 and pair.approx(user, -expected)


def _ratio_in(pair: AnswerPair, candidates: tuple[float, ...]) -> bool:
    ratio = pair.ratio
    if ratio is None:
        return False
    return any(pair.approx(ratio, candidate) for candidate in candidates)


def _factor_error(pair: AnswerPair) -> bool:
    return _ratio_in(pair, FACTORS)


def _fraction_inverted(pair: AnswerPair) -> bool:
    if pair.values is None:
        return False
    user, expected = pair.values
    return pair.approx(user * expected, 1.0) and not pair.approx(user, expected)


def _order_of_operations(pair: AnswerPair) -> bool:
    """
    The expected answer is an arithmetic expression and the student's value
    is what that expression gives when read strictly left to right.
    """
    if pair.user_value is None or pair.expected_value is None:
        return False

    left_to_right = evaluate_expression(
        normalize(pair.expected_raw), LEFT_TO_RIGHT_OPERATORS
    )
    if left_to_right is None or pair.approx(left_to_right, pair.expected_value):
        return False

    return pair.approx(pair.user_value, left_to_right)


def _power_root_confusion(pair: AnswerPair) -> bool:
    if pair.values is None:
        return False
    user, expected = pair.values
    if expected <= 0:
        return False
    return pair.approx(user, math.sqrt(expected)) or pair.approx(user, expected ** 2)


def _decimal_placement(pair: AnswerPair) -> bool:
    return _ratio_in(pair, DECIMAL_SHIFTS)


def _unit_conversion(pair: AnswerPair) -> bool:
    return _ratio_in(pair, UNIT_RATIOS)


CATALOG: tuple[CatalogEntry, ...] = (
    CatalogEntry(
        Misconception(
            id="sign_error",
            name="Sign error",
            description="The answer has the right size but the opposite sign.",
            remediation_hint="Check each minus sign, especially when subtracting "
            "negative numbers or moving terms across the equals sign.",
        ),
        _sign_error,
    ),
    CatalogEntry(
        Misconception(
            id="factor_error",
            name="Factor omitted or added",
            description="The answer is off by a common factor such as 2, 10 or pi.",
            remediation_hint="Look for a factor you dropped or applied twice, "
            "for example a 2 in a formula or pi in a circle calculation.",
        ),
        _factor_error,
    ),
    CatalogEntry(
        Misconception(
            id="fraction_inverted",
            name="Fraction inverted",
            description="The answer is the reciprocal of the expected value.",
            remediation_hint="Check which quantity belongs in the numerator and "
            "which in the denominator.",
        ),
        _fraction_inverted,
    ),
    CatalogEntry(
        Misconception(
            id="order_of_operations",
            name="Order of operations",
            description="The expression was evaluated strictly left to right "
            "instead of multiplying and dividing before adding and subtracting.",
            remediation_hint="Work out powers first, then multiplication and "
            "division, then addition and subtraction.",
        ),
        _order_of_operations,
    ),
    CatalogEntry(
        Misconception(
            id="power_root_confusion",
            name="Power and root confused",
            description="The answer is the square or the square root of the "
            "expected value.",
            remediation_hint="Check whether the task asks you to square a number "
            "or to take its square root.",
        ),
        _power_root_confusion,
    ),
    CatalogEntry(
        Misconception(
            id="decimal_placement",
            name="Decimal point misplaced",
            description="The digits are right but the decimal point is shifted.",
            remediation_hint="Count the decimal places again, or estimate the "
            "size of the result before calculating.",
        ),
        _decimal_placement,
    ),
    CatalogEntry(
        Misconception(
            id="unit_conversion",
            name="Unit conversion error",
            description="The answer is off by a typical unit factor such as "
            "60, 100, 1000 or 3600.",
            remediation_hint="Convert all quantities to the same unit before "
            "calculating, and check the unit the answer asks for.",
        ),
        _unit_conversion,
    ),
)

_BY_ID = {entry.misconception.id: entry.misconception for entry in CATALOG}


def get_misconception(misconception_id: str) -> Misconception:
    """
    Look up a catalog entry by id.

    Raises:
        KeyError: If the id is not in the catalog
    """
    return _BY_ID[misconception_id]


def detect_misconceptions(
    user: str | None,
    expected: str | None,
    tolerance: float = DEFAULT_TOLERANCE,
) -> list[Misconception]:
    """
    Run every catalog predicate over a wrong answer.

    Only meaningful when the equivalence resolver found the answers not
    equivalent. A predicate that raises counts as no match and does not stop
    the others.

    Args:
        user: Student's answer
        expected: Expected answer
        tolerance: Relative tolerance of the approximate comparisons

    Returns:
        Matching misconceptions, in catalog order
    """
    pair = AnswerPair(
        user_raw=user or "",
        expected_raw=expected or "",
        user_value=evaluate_to_number(user),
        expected_value=evaluate_to_number(expected),
        tolerance=tolerance,
    )

    matches: list[Misconception] = []
    for misconception, predicate in CATALOG:
        try:
            if predicate(pair):
                matches.append(misconception)
        except Exception as e:
            logger.debug(
                "Misconception predicate failed",
                extra_data={"misconception": misconception.id, "error": repr(e)},
            )

    return matches
