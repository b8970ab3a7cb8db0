"""
Algebraic term decomposer.

Splits a single-variable polynomial such as ``3x^2 - x + 4`` into a monomial
map ``{"x^2": 3.0, "x^1": -1.0, "const": 4.0}`` so that two answers can be
compared term by term regardless of term order.

Only sums of monomials with integer or decimal coefficients are understood.
Parentheses, products of two variables and function terms make the whole
expression undecomposable, in which case the map is empty.
"""

from __future__ import annotations

import re

from .normalizer import normalize

CONSTANT_KEY = "const"

# Split before a sign, unless the sign belongs to an exponent or a factor
_TERM_BOUNDARY = re.compile(r"(?<![\^*/])(?=[+-])")

_TERM = re.compile(
    r"""
    ^(?P<sign>[+-]?)
    (?P<coefficient>\d+(?:\.\d*)?|\.\d+)?
    (?:
        \*?(?P<variable>[a-z])
        (?:\^(?P<power>-?\d+))?
    )?$
    """,
    re.VERBOSE,
)


def term_key(variable: str | None, power: int = 1) -> str:
    """Monomial key for ``variable^power`` (``"const"`` for a bare number)."""
    if variable is None or power == 0:
        return CONSTANT_KEY
    return f"{variable}^{power}"


def parse_algebraic(raw: str | None) -> dict[str, float]:
    """
    Decompose an expression into a monomial map.

    Args:
        raw: Answer text

    Returns:
        Mapping from term key to accumulated coefficient. Empty for empty or
        undecomposable input.

    Examples:
        >>> parse_algebraic("x + x")
        {'x^1': 2.0}
        >>> parse_algebraic("-x^2 + 2.5")
        {'x^2': -1.0, 'const': 2.5}
    """
    expression = normalize(raw)
    terms: dict[str, float] = {}

    for term in _TERM_BOUNDARY.split(expression):
        if not term:
            continue

        match = _TERM.match(term)
        if match is None:
            return {}

        sign = -1.0 if match.group("sign") == "-" else 1.0
        coefficient = match.group("coefficient")
        variable = match.group("variable")

        # A lone sign, or a product with no left factor ("*x")
        if coefficient is None and (variable is None or "*" in term):
            return {}

        magnitude = float(coefficient) if coefficient is not None else 1.0
        power = int(match.group("power")) if match.group("power") else 1

        key = term_key(variable, power)
        terms[key] = terms.get(key, 0.0) + sign * magnitude

    return terms
