"""
Parser Package

Tokenization, AST construction and evaluation for the restricted arithmetic
grammar used by the numeric evaluator. Nothing here ever calls ``eval``.
"""

from .ast import ASTNode, Number, Constant, BinaryOp, UnaryOp, FunctionCall
from .tokenizer import Token, TokenType, Tokenizer, TokenizeError
from .parser import (
    LEFT_TO_RIGHT_OPERATORS,
    STANDARD_OPERATORS,
    OperatorTable,
    ParseError,
    Parser,
)
from .visitors import EvalVisitor, StringVisitor

__all__ = [
    "ASTNode",
    "Number",
    "Constant",
    "BinaryOp",
    "UnaryOp",
    "FunctionCall",
    "Token",
    "TokenType",
    "Tokenizer",
    "TokenizeError",
    "OperatorTable",
    "STANDARD_OPERATORS",
    "LEFT_TO_RIGHT_OPERATORS",
    "ParseError",
    "Parser",
    "EvalVisitor",
    "StringVisitor",
]
