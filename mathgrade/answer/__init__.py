"""
Answer evaluation: normalization, numeric and algebraic interpretation,
tiered equivalence checking and misconception detection.
"""

from .normalizer import normalize
from .numeric import evaluate_to_number, evaluate_expression
from .algebraic import parse_algebraic, term_key
from .equivalence import (
    AlgebraicMatch,
    EquivalenceMethod,
    EquivalenceVerdict,
    ExactMatch,
    NoEquivalence,
    NumericMatch,
    check_equivalence,
    compare_monomials,
)
from .misconceptions import (
    CATALOG,
    CATALOG_VERSION,
    AnswerPair,
    Misconception,
    detect_misconceptions,
    get_misconception,
)

__all__ = [
    "normalize",
    "evaluate_to_number",
    "evaluate_expression",
    "parse_algebraic",
    "term_key",
    "EquivalenceMethod",
    "EquivalenceVerdict",
    "ExactMatch",
    "NumericMatch",
    "AlgebraicMatch",
    "NoEquivalence",
    "check_equivalence",
    "compare_monomials",
    "CATALOG",
    "CATALOG_VERSION",
    "AnswerPair",
    "Misconception",
    "detect_misconceptions",
    "get_misconception",
]
