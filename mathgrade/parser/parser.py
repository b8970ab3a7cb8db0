"""
Recursive descent parser for restricted arithmetic expressions.

This parser uses operator precedence climbing (Pratt parsing) to build an
Abstract Syntax Tree from a token stream. It handles:
- Binary operators with configurable precedence and associativity
- Unary signs
- sqrt with or without parentheses
- Parenthesized groups
"""

from dataclasses import dataclass, field
from enum import Enum

from .ast import ASTNode, BinaryOp, Constant, FunctionCall, Number, UnaryOp
from .tokenizer import Token, TokenType, Tokenizer


class Associativity(Enum):
    """Operator associativity."""

    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class OperatorTable:
    """
    Precedence and associativity of the binary operators.

    Attributes:
        precedence: Operator symbol to binding power (higher binds tighter)
        right_associative: Operators that group right-to-left
        unary_precedence: Binding power of a unary sign's operand
    """

    precedence: dict[str, int] = field(default_factory=dict)
    right_associative: frozenset[str] = frozenset()
    unary_precedence: int = 0

    def get_operator_precedence(self, op: str) -> int:
        return self.precedence.get(op, 0)

    def get_operator_associativity(self, op: str) -> Associativity:
        if op in self.right_associative:
            return Associativity.RIGHT
        return Associativity.LEFT


# Standard arithmetic: -2^2 is -(2^2), 2^3^2 is 2^(3^2)
STANDARD_OPERATORS = OperatorTable(
    precedence={"+": 1, "-": 1, "*": 2, "/": 2, "^": 3, "**": 3},
    right_associative=frozenset({"^", "**"}),
    unary_precedence=3,
)

# Strict left-to-right reading of + - * /, as a student who ignores
# precedence would compute it. Parentheses and powers still apply.
LEFT_TO_RIGHT_OPERATORS = OperatorTable(
    precedence={"+": 1, "-": 1, "*": 1, "/": 1, "^": 2, "**": 2},
    right_associative=frozenset({"^", "**"}),
    unary_precedence=2,
)


class ParseError(ValueError):
    """Exception raised during parsing."""

    def __init__(self, message: str, token: Token):
        self.message = message
        self.token = token
        super().__init__(f"{message} at position {token.pos}: '{token.value}'")


class Parser:
    """
    Recursive descent parser with operator precedence (Pratt parsing).

    The parser builds an AST from a token stream, respecting the precedence
    and associativity of its operator table.
    """

    BINARY_OPERATORS = frozenset({
        TokenType.PLUS,
        TokenType.MINUS,
        TokenType.MULTIPLY,
        TokenType.DIVIDE,
        TokenType.POWER,
    })

    # Levels counted across parse_expression and parse_prefix
    MAX_DEPTH = 200

    def __init__(self, operators: OperatorTable | None = None):
        """
        Initialize parser with an optional operator table.

        Args:
            operators: Precedence rules (defaults to standard arithmetic)
        """
        self.operators = operators or STANDARD_OPERATORS
        self.tokens: list[Token] = []
        self.pos = 0
        self.depth = 0

    def parse(self, expression: str) -> ASTNode:
        """
        Parse an expression string to an AST.

        Args:
            expression: The arithmetic expression

        Returns:
            Root AST node

        Raises:
            TokenizeError: If expression contains anything outside the grammar
            ParseError: If expression is malformed
        """
        self.tokens = Tokenizer().tokenize(expression)
        self.pos = 0
        self.depth = 0

        if len(self.tokens) == 1:
            raise ParseError("Empty expression", self.tokens[0])

        ast = self.parse_expression(0)

        if self.current().type != TokenType.EOF:
            raise ParseError("Unexpected token", self.current())

        return ast

    def current(self) -> Token:
        """Get current token without consuming it."""
        return self.tokens[self.pos]

    def advance(self) -> Token:
        """Consume and return current token."""
        token = self.current()
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return token

    def expect(self, token_type: TokenType) -> Token:
        """
        Consume a token of the expected type.

        Raises:
            ParseError: If current token doesn't match expected type
        """
        token = self.current()
        if token.type != token_type:
            raise ParseError(
                f"Expected {token_type.name}, got {token.type.name}", token
            )
        return self.advance()

    def parse_expression(self, min_precedence: int = 0) -> ASTNode:
        """
        Parse an expression using operator precedence climbing.

        Args:
            min_precedence: Minimum precedence to consider

        Returns:
            AST node
        """
        self.enter()
        try:
            left = self.parse_prefix()

            while True:
                token = self.current()

                if token.type not in self.BINARY_OPERATORS:
                    break

                precedence = self.operators.get_operator_precedence(token.value)
                if precedence < min_precedence:
                    break

                op_token = self.advance()

                assoc = self.operators.get_operator_associativity(op_token.value)
                next_min_prec = precedence + (1 if assoc == Associativity.LEFT else 0)

                right = self.parse_expression(next_min_prec)

                # ** and ^ are the same operator
                op = "^" if op_token.type == TokenType.POWER else op_token.value
                left = BinaryOp(left, op, right)

            return left
        finally:
            self.depth -= 1

    def parse_prefix(self) -> ASTNode:
        """Parse a signed operand, an atom or a function call."""
        self.enter()
        try:
            token = self.current()

            if token.type in (TokenType.MINUS, TokenType.PLUS):
                op_token = self.advance()
                operand = self.parse_expression(self.operators.unary_precedence)
                return UnaryOp(op_token.value, operand)

            return self.parse_atom()
        finally:
            self.depth -= 1

    def enter(self) -> None:
        """
        Descend one nesting level.

        Raises:
            ParseError: If nesting exceeds MAX_DEPTH
        """
        self.depth += 1
        if self.depth > self.MAX_DEPTH:
            raise ParseError("Expression nested too deeply", self.current())

    def parse_atom(self) -> ASTNode:
        """Parse a number, constant, function call or parenthesized group."""
        token = self.current()

        if token.type == TokenType.NUMBER:
            self.advance()
            return Number(float(token.value))

        if token.type == TokenType.CONSTANT:
            self.advance()
            return Constant(token.value)

        if token.type == TokenType.FUNCTION:
            return self.parse_function_call()

        if token.type == TokenType.LPAREN:
            self.advance()
            if self.current().type == TokenType.RPAREN:
                raise ParseError("Empty parentheses", self.current())
            inner = self.parse_expression()
            self.expect(TokenType.RPAREN)
            return inner

        raise ParseError("Unexpected token in atom", token)

    def parse_function_call(self) -> FunctionCall:
        """
        Parse ``sqrt(expr)`` or ``sqrt atom`` (from a normalized radical sign).
        """
        func_token = self.advance()

        if self.current().type == TokenType.LPAREN:
            self.advance()
            arg = self.parse_expression()
            self.expect(TokenType.RPAREN)
        else:
            arg = self.parse_prefix()

        return FunctionCall(func_token.value, [arg])
