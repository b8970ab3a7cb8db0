"""
Numeric evaluator.

Reduces an answer to a single float when it has a numeric reading
("1/2", "2*pi", "sqrt(16)", "3²"), using the restricted arithmetic parser.
An answer without a numeric reading gives None, never zero and never an
exception.
"""

from __future__ import annotations

import math
import re

from mathgrade.core.logging import get_logger
from mathgrade.parser import (
    STANDARD_OPERATORS,
    EvalVisitor,
    OperatorTable,
    ParseError,
    Parser,
    TokenizeError,
)

from .normalizer import normalize

logger = get_logger(__name__)

_SIMPLE_FRACTION = re.compile(r"^(-?\d+)/(\d+)$")
_FLOAT_LITERAL = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")


def evaluate_to_number(raw: str | None) -> float | None:
    """
    Evaluate an answer to a float.

    The answer is normalized first. Simple ``integer/integer`` fractions are
    divided directly. A raw text that is a plain float literal is read as
    one, so ``1e-3`` is a thousandth and not ``1*e - 3``. Everything else
    goes through the restricted parser, which rejects any identifier other
    than ``pi``, ``e`` and ``sqrt``.

    Args:
        raw: Answer text

    Returns:
        The value, or None if the answer has no finite numeric reading
    """
    expression = normalize(raw)
    if not expression:
        return None

    fraction = _SIMPLE_FRACTION.match(expression)
    if fraction:
        numerator, denominator = int(fraction.group(1)), int(fraction.group(2))
        if denominator == 0:
            return None
        try:
            return _finite(numerator / denominator)
        except OverflowError:
            return None

    value = _parse_float(raw)
    if value is not None:
        return value

    return evaluate_expression(expression)


def evaluate_expression(
    expression: str, operators: OperatorTable | None = None
) -> float | None:
    """
    Parse and evaluate an already-normalized expression.

    Args:
        expression: Normalized expression
        operators: Operator table (standard precedence by default)

    Returns:
        The finite value, or None if the expression is outside the grammar
        or its arithmetic fails
    """
    try:
        ast = Parser(operators or STANDARD_OPERATORS).parse(expression)
        return _finite(ast.accept(EvalVisitor()))
    except (TokenizeError, ParseError):
        return None
    except RecursionError:
        # long flat chains like 1+1+...+1 build a deep left-leaning tree
        logger.debug(
            "Expression too long to evaluate",
            extra_data={"length": len(expression)},
        )
        return None
    except (ArithmeticError, ValueError) as e:
        logger.debug(
            "Arithmetic failed during evaluation",
            extra_data={"expression": expression, "error": str(e)},
        )
        return None


def _parse_float(raw: str | None) -> float | None:
    """Read the whole answer as a float literal."""
    text = str(raw).strip()
    if not _FLOAT_LITERAL.match(text):
        return None
    try:
        return _finite(float(text))
    except ValueError:
        return None


def _finite(value: float) -> float | None:
    value = float(value)
    if math.isnan(value) or math.isinf(value):
        return None
    return value
