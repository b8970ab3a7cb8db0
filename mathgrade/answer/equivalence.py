"""
Equivalence resolver.

Decides whether a student's answer is equivalent to the expected answer by
trying three comparison tiers in a fixed order, first match wins:

1. exact: the normalized strings are identical
2. numeric: both answers evaluate to numbers within tolerance
   (a difference within ``tolerance * close_factor`` is reported as a
   near miss, not a pass)
3. algebraic: both answers contain letters and decompose into the same
   monomial map

The verdict is a tagged union (see ``EquivalenceVerdict``) so callers can
dispatch on ``method`` instead of comparing free-form strings.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from mathgrade.core.logging import get_logger

from .algebraic import parse_algebraic
from .normalizer import normalize
from .numeric import evaluate_to_number

logger = get_logger(__name__)

DEFAULT_TOLERANCE = 1e-4
DEFAULT_CLOSE_FACTOR = 100.0
DEFAULT_ALGEBRAIC_TOLERANCE = 1e-4


class EquivalenceMethod(str, Enum):
    """Comparison tier that produced a verdict."""

    EXACT = "exact"
    NUMERIC = "numeric"
    ALGEBRAIC = "algebraic"
    NONE = "none"


class _Verdict(BaseModel):
    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    @property
    def equivalence_method(self) -> EquivalenceMethod:
        return EquivalenceMethod(self.method)


class ExactMatch(_Verdict):
    """Normalized answers are identical."""

    method: Literal["exact"] = "exact"
    is_equivalent: Literal[True] = True
    is_close: Literal[False] = False


class NumericMatch(_Verdict):
    """Both answers evaluated to numbers that are equal or nearly equal."""

    method: Literal["numeric"] = "numeric"
    user_value: float
    expected_value: float
    is_equivalent: bool = True
    is_close: bool = False

    @model_validator(mode="after")
    def _close_only_on_mismatch(self) -> "NumericMatch":
        if self.is_equivalent and self.is_close:
            raise ValueError("is_close is only meaningful for a mismatch")
        return self


class AlgebraicMatch(_Verdict):
    """Both answers decompose into the same monomial map."""

    method: Literal["algebraic"] = "algebraic"
    is_equivalent: Literal[True] = True
    is_close: Literal[False] = False


class NoEquivalence(_Verdict):
    """No tier found the answers equivalent."""

    method: Literal["none"] = "none"
    is_equivalent: Literal[False] = False
    is_close: bool = False


EquivalenceVerdict = Annotated[
    Union[ExactMatch, NumericMatch, AlgebraicMatch, NoEquivalence],
    Field(discriminator="method"),
]


def check_equivalence(
    user: str | None,
    expected: str | None,
    tolerance: float = DEFAULT_TOLERANCE,
    close_factor: float = DEFAULT_CLOSE_FACTOR,
    algebraic_tolerance: float = DEFAULT_ALGEBRAIC_TOLERANCE,
) -> ExactMatch | NumericMatch | AlgebraicMatch | NoEquivalence:
    """
    Compare a student's answer with the expected answer.

    Args:
        user: Student's answer as typed
        expected: Expected answer
        tolerance: Absolute tolerance for the numeric tier
        close_factor: Multiplier on ``tolerance`` for the near-miss band
        algebraic_tolerance: Maximum coefficient difference per monomial

    Returns:
        The verdict of the first tier that decides

    Raises:
        ValueError: If a tolerance is negative
    """
    if tolerance < 0 or algebraic_tolerance < 0:
        raise ValueError("tolerance must be non-negative")
    if close_factor < 1:
        raise ValueError("close_factor must be at least 1")

    user_norm = normalize(user)
    expected_norm = normalize(expected)

    # Tier 1: exact
    if user_norm == expected_norm:
        logger.debug("Exact match", extra_data={"answer": user_norm})
        return ExactMatch()

    # Tier 2: numeric
    user_value = evaluate_to_number(user)
    expected_value = evaluate_to_number(expected)

    if user_value is not None and expected_value is not None:
        difference = abs(user_value - expected_value)

        if difference <= tolerance:
            logger.debug(
                "Numeric match",
                extra_data={"user_value": user_value, "expected_value": expected_value},
            )
            return NumericMatch(user_value=user_value, expected_value=expected_value)

        if difference <= tolerance * close_factor:
            logger.debug(
                "Numeric near miss",
                extra_data={"user_value": user_value, "expected_value": expected_value},
            )
            return NumericMatch(
                user_value=user_value,
                expected_value=expected_value,
                is_equivalent=False,
                is_close=True,
            )

    # Tier 3: algebraic
    if _has_letter(user_norm) and _has_letter(expected_norm):
        user_terms = parse_algebraic(user)
        expected_terms = parse_algebraic(expected)

        if compare_monomials(user_terms, expected_terms, algebraic_tolerance):
            logger.debug("Algebraic match", extra_data={"terms": expected_terms})
            return AlgebraicMatch()

    return NoEquivalence()


def compare_monomials(
    user_terms: dict[str, float],
    expected_terms: dict[str, float],
    tolerance: float = DEFAULT_ALGEBRAIC_TOLERANCE,
) -> bool:
    """
    Compare two monomial maps key by key; a missing key counts as zero.

    Two empty maps do not match: an empty map means "could not decompose",
    and two undecomposable answers say nothing about each other.
    """
    if not user_terms or not expected_terms:
        return False

    keys = user_terms.keys() | expected_terms.keys()
    return all(
        abs(user_terms.get(key, 0.0) - expected_terms.get(key, 0.0)) <= tolerance
        for key in keys
    )


def _has_letter(expression: str) -> bool:
    return any(ch.isalpha() for ch in expression)
