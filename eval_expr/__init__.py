"""
Arithmetic expression evaluator.

Usage:
    from eval_expr import evaluate

    evaluate("2 * (3 + 4) ^ 2")
    # 98.0
"""

from eval_expr.errors import (
    DivisionByZero,
    DomainError,
    EmptyExpression,
    EvalError,
    LexError,
    NestingTooDeep,
    NumericOverflow,
    UnexpectedToken,
    UnmatchedParen,
)
from eval_expr.evaluator import OPERATORS, ExpressionEvaluator, eval_expr, evaluate
from eval_expr.output import EvaluationOutcome, describe_error, format_number
from eval_expr.tokenizer import Token, TokenKind, Tokenizer, tokenize

__all__ = [
    "DivisionByZero",
    "DomainError",
    "EmptyExpression",
    "EvalError",
    "EvaluationOutcome",
    "ExpressionEvaluator",
    "LexError",
    "NestingTooDeep",
    "NumericOverflow",
    "OPERATORS",
    "Token",
    "TokenKind",
    "Tokenizer",
    "UnexpectedToken",
    "UnmatchedParen",
    "describe_error",
    "eval_expr",
    "evaluate",
    "format_number",
    "tokenize",
]
