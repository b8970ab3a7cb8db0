"""
AST Visitor implementations.

- StringVisitor: Convert AST back to a compact string
- EvalVisitor: Evaluate AST to a float
"""

import math
from typing import Any

from .ast import BinaryOp, Constant, FunctionCall, Number, UnaryOp
from .parser import STANDARD_OPERATORS, OperatorTable


class StringVisitor:
    """
    Convert AST to string representation.

    Examples:
    - BinaryOp(Number(2), '+', Number(3)) → "2 + 3"
    - FunctionCall('sqrt', [Number(2)]) → "sqrt(2)"
    """

    def __init__(self, operators: OperatorTable | None = None):
        self.operators = operators or STANDARD_OPERATORS

    def visit_number(self, node: Number) -> str:
        if node.value == int(node.value):
            return str(int(node.value))
        return str(node.value)

    def visit_constant(self, node: Constant) -> str:
        return node.name

    def visit_binary_op(self, node: BinaryOp) -> str:
        left_str = node.left.accept(self)
        right_str = node.right.accept(self)

        left_prec = self._get_precedence(node.left)
        right_prec = self._get_precedence(node.right)
        op_prec = self.operators.get_operator_precedence(node.op)

        if left_prec > 0 and left_prec < op_prec:
            left_str = f"({left_str})"

        if right_prec > 0 and right_prec <= op_prec:
            right_str = f"({right_str})"

        return f"{left_str} {node.op} {right_str}"

    def visit_unary_op(self, node: UnaryOp) -> str:
        operand_str = node.operand.accept(self)

        if isinstance(node.operand, BinaryOp):
            operand_str = f"({operand_str})"

        return f"{node.op}{operand_str}"

    def visit_function_call(self, node: FunctionCall) -> str:
        args_str = ", ".join(arg.accept(self) for arg in node.args)
        return f"{node.name}({args_str})"

    def _get_precedence(self, node: Any) -> int:
        if isinstance(node, BinaryOp):
            return self.operators.get_operator_precedence(node.op)
        return 0


class EvalVisitor:
    """
    Evaluate an AST to a float.

    Arithmetic errors propagate (ZeroDivisionError, OverflowError, ValueError
    for a negative square root); callers decide what a failure means.
    """

    CONSTANTS = {"pi": math.pi, "e": math.e}

    FUNCTIONS = {"sqrt": math.sqrt}

    def visit_number(self, node: Number) -> float:
        return node.value

    def visit_constant(self, node: Constant) -> float:
        try:
            return self.CONSTANTS[node.name]
        except KeyError:
            raise ValueError(f"Unknown constant: {node.name}") from None

    def visit_binary_op(self, node: BinaryOp) -> float:
        left = node.left.accept(self)
        right = node.right.accept(self)

        if node.op == "+":
            return left + right
        if node.op == "-":
            return left - right
        if node.op == "*":
            return left * right
        if node.op == "/":
            return left / right
        if node.op == "^":
            result = left ** right
            if isinstance(result, complex):
                raise ValueError(f"Complex result for {left} ^ {right}")
            return float(result)

        raise ValueError(f"Unknown operator: {node.op}")

    def visit_unary_op(self, node: UnaryOp) -> float:
        operand = node.operand.accept(self)
        return -operand if node.op == "-" else operand

    def visit_function_call(self, node: FunctionCall) -> float:
        func = self.FUNCTIONS.get(node.name)
        if func is None:
            raise ValueError(f"Unknown function: {node.name}")
        if len(node.args) != 1:
            raise ValueError(f"{node.name} takes exactly one argument")
        return func(node.args[0].accept(self))
