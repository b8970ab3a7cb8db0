"""
Expression normalizer.

Canonicalizes a raw answer string so that cosmetic differences (case,
spacing, Unicode math glyphs, implicit multiplication) do not affect
comparison.
"""

from __future__ import annotations

import re

# Unicode glyph → ASCII spelling
GLYPHS = {
    "×": "*",
    "÷": "/",
    "−": "-",  # minus sign
    "‐": "-",  # hyphen
    "‑": "-",  # non-breaking hyphen
    "‒": "-",  # figure dash
    "–": "-",  # en dash
    "—": "-",  # em dash
    "·": "*",  # middle dot
    "⋅": "*",  # dot operator
    "²": "^2",
    "³": "^3",
    "√": "sqrt",
    "π": "pi",
}

_GLYPH_PATTERN = re.compile("|".join(re.escape(glyph) for glyph in GLYPHS))
_WHITESPACE = re.compile(r"\s+")
_DIGIT_LETTER = re.compile(r"(\d)([a-z])")


def normalize(raw: str | None) -> str:
    """
    Canonicalize a raw answer.

    Args:
        raw: Student or expected answer as typed

    Returns:
        Lowercase ASCII expression without whitespace, with an explicit
        ``*`` between a digit and a following letter. Empty input gives "".

    Examples:
        >>> normalize(" 2X + 1 ")
        '2*x+1'
        >>> normalize("3×π")
        '3*pi'
    """
    if raw is None:
        return ""

    text = str(raw).strip().lower()
    text = _GLYPH_PATTERN.sub(lambda match: GLYPHS[match.group()], text)
    text = _WHITESPACE.sub("", text)

    if text.startswith("+"):
        text = text[1:]

    return _DIGIT_LETTER.sub(r"\1*\2", text)
