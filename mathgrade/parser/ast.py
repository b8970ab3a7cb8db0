"""
Abstract Syntax Tree (AST) node definitions for arithmetic expressions.

Nodes follow the Visitor pattern so evaluation and rendering live in
separate visitor classes (see visitors.py).
"""

from abc import ABC, abstractmethod
from typing import Any, Protocol


class ASTVisitor(Protocol):
    """Visitor protocol for traversing AST nodes."""

    def visit_number(self, node: "Number") -> Any:
        ...

    def visit_constant(self, node: "Constant") -> Any:
        ...

    def visit_binary_op(self, node: "BinaryOp") -> Any:
        ...

    def visit_unary_op(self, node: "UnaryOp") -> Any:
        ...

    def visit_function_call(self, node: "FunctionCall") -> Any:
        ...


class ASTNode(ABC):
    """Base class for all AST nodes."""

    @abstractmethod
    def accept(self, visitor: ASTVisitor) -> Any:
        """Accept a visitor for traversal."""
        pass

    @abstractmethod
    def __repr__(self) -> str:
        pass


# Leaf Nodes


class Number(ASTNode):
    """
    Represents a numeric literal.

    Examples: 42, 3.14, .5
    """

    def __init__(self, value: float | int):
        self.value = float(value)

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_number(self)

    def __repr__(self) -> str:
        return f"Number({self.value})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Number) and self.value == other.value


class Constant(ASTNode):
    """
    Represents a named constant: pi or e.
    """

    def __init__(self, name: str):
        self.name = name

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_constant(self)

    def __repr__(self) -> str:
        return f"Constant('{self.name}')"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Constant) and self.name == other.name


# Composite Nodes


class BinaryOp(ASTNode):
    """
    Represents a binary operation.

    Operators: +, -, *, /, ^
    """

    def __init__(self, left: ASTNode, op: str, right: ASTNode):
        self.left = left
        self.op = op
        self.right = right

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_binary_op(self)

    def __repr__(self) -> str:
        return f"BinaryOp({self.left!r}, '{self.op}', {self.right!r})"

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, BinaryOp)
            and self.left == other.left
            and self.op == other.op
            and self.right == other.right
        )


class UnaryOp(ASTNode):
    """
    Represents a unary sign: -x, +5
    """

    def __init__(self, op: str, operand: ASTNode):
        self.op = op
        self.operand = operand

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_unary_op(self)

    def __repr__(self) -> str:
        return f"UnaryOp('{self.op}', {self.operand!r})"

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, UnaryOp)
            and self.op == other.op
            and self.operand == other.operand
        )


class FunctionCall(ASTNode):
    """
    Represents a function call. Only sqrt is part of the grammar.
    """

    def __init__(self, name: str, args: list[ASTNode]):
        self.name = name
        self.args = args

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_function_call(self)

    def __repr__(self) -> str:
        args_repr = ", ".join(repr(arg) for arg in self.args)
        return f"FunctionCall('{self.name}', [{args_repr}])"

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, FunctionCall)
            and self.name == other.name
            and self.args == other.args
        )
