"""
Tokenizer for restricted arithmetic expressions.

This module provides regex-based tokenization for the small grammar the
numeric evaluator accepts: numbers, the four arithmetic operators, powers,
parentheses, ``sqrt`` and the named constants ``pi`` and ``e``.

Anything else is rejected here. The tokenizer is the gate that keeps free-form
student input from ever reaching a general-purpose evaluator.
"""

import re
from dataclasses import dataclass
from enum import Enum, auto


class TokenType(Enum):
    """Token types for arithmetic expressions."""

    # Literals
    NUMBER = auto()
    CONSTANT = auto()

    # Operators
    PLUS = auto()
    MINUS = auto()
    MULTIPLY = auto()
    DIVIDE = auto()
    POWER = auto()

    # Parentheses
    LPAREN = auto()  # (
    RPAREN = auto()  # )

    # Special
    FUNCTION = auto()
    EOF = auto()


@dataclass(frozen=True)
class Token:
    """
    Represents a single token in the expression.

    Attributes:
        type: The token type
        value: The string value of the token
        pos: Position in the source string (for error reporting)
    """

    type: TokenType
    value: str
    pos: int

    def __repr__(self) -> str:
        return f"Token({self.type.name}, '{self.value}', pos={self.pos})"


class TokenizeError(ValueError):
    """Raised when the input contains anything outside the grammar."""

    def __init__(self, message: str, pos: int):
        self.pos = pos
        super().__init__(f"{message} at position {pos}")


class Tokenizer:
    """
    Tokenizes arithmetic expressions.

    Identifiers are letters only, so ``sqrt4`` (from a normalized ``√4``)
    splits into the function ``sqrt`` and the number ``4``.
    """

    # Order matters: ** before *
    PATTERNS = {
        "NUMBER": r"\d+(?:\.\d*)?|\.\d+",
        "IDENT": r"[a-zA-Z]+",
        "POWER": r"\*\*|\^",
        "PLUS": r"\+",
        "MINUS": r"-",
        "MULTIPLY": r"\*",
        "DIVIDE": r"/",
        "LPAREN": r"\(",
        "RPAREN": r"\)",
        "WHITESPACE": r"\s+",
    }

    CONSTANTS = frozenset({"pi", "e"})
    FUNCTIONS = frozenset({"sqrt"})

    _combined_pattern = re.compile(
        "|".join(f"(?P<{name}>{pattern})" for name, pattern in PATTERNS.items())
    )

    def tokenize(self, expression: str) -> list[Token]:
        """
        Tokenize an arithmetic expression.

        Args:
            expression: The expression to tokenize

        Returns:
            List of tokens, terminated by an EOF token

        Raises:
            TokenizeError: On any character or identifier outside the grammar
        """
        tokens: list[Token] = []
        pos = 0

        while pos < len(expression):
            match = self._combined_pattern.match(expression, pos)

            if not match:
                raise TokenizeError(
                    f"Invalid character '{expression[pos]}'", pos
                )

            kind = match.lastgroup
            value = match.group()
            token_pos = pos
            pos = match.end()

            if kind == "WHITESPACE":
                continue

            if kind == "IDENT":
                name = value.lower()
                if name in self.CONSTANTS:
                    tokens.append(Token(TokenType.CONSTANT, name, token_pos))
                elif name in self.FUNCTIONS:
                    tokens.append(Token(TokenType.FUNCTION, name, token_pos))
                else:
                    raise TokenizeError(f"Unknown identifier '{value}'", token_pos)
                continue

            tokens.append(Token(TokenType[kind], value, token_pos))

        tokens.append(Token(TokenType.EOF, "", len(expression)))

        return self._insert_implicit_multiplication(tokens)

    def _insert_implicit_multiplication(self, tokens: list[Token]) -> list[Token]:
        """
        Insert multiplication tokens where juxtaposition means a product.

        Examples:
        - 2(x) → 2 * (x)
        - (a+1)(a-1) → (a+1) * (a-1)
        - (3)2 → (3) * 2
        - 2sqrt(4) → 2 * sqrt(4)

        A constant followed by a number (``pi2``) is left alone and fails to
        parse, since it has no unambiguous reading.
        """
        result: list[Token] = []

        for i, token in enumerate(tokens):
            result.append(token)

            if i >= len(tokens) - 1 or token.type == TokenType.EOF:
                continue

            next_token = tokens[i + 1]
            should_insert = False

            if token.type == TokenType.NUMBER:
                should_insert = next_token.type in (
                    TokenType.CONSTANT,
                    TokenType.FUNCTION,
                    TokenType.LPAREN,
                )
            elif token.type == TokenType.RPAREN:
                should_insert = next_token.type in (
                    TokenType.NUMBER,
                    TokenType.CONSTANT,
                    TokenType.FUNCTION,
                    TokenType.LPAREN,
                )
            elif token.type == TokenType.CONSTANT:
                should_insert = next_token.type in (
                    TokenType.CONSTANT,
                    TokenType.FUNCTION,
                    TokenType.LPAREN,
                )

            if should_insert:
                result.append(
                    Token(TokenType.MULTIPLY, "*", token.pos + len(token.value))
                )

        return result
