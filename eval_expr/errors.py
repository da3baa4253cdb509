"""
Error types raised by the tokenizer and the evaluator.

Every failure is terminal for the evaluation call that raised it. Each class
carries a stable ``code`` for machine-readable output and the character
``position`` (0-based offset into the source text) where the problem was
detected, so callers can point at it.
"""

from typing import Optional


class EvalError(Exception):
    """Base class for all evaluation errors."""

    code = "eval_error"

    def __init__(self, message: str, position: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.position = position


class LexError(EvalError):
    """Raised when the tokenizer meets a character outside the grammar."""

    code = "lex_error"

    def __init__(self, char: str, position: int):
        super().__init__(f"Invalid character {char!r} at position {position}", position)
        self.char = char


class UnexpectedToken(EvalError):
    """Raised when a token appears where the grammar does not allow it."""

    code = "unexpected_token"

    def __init__(self, token, expected: str):
        found = "end of input" if token.is_end else repr(token.text)
        super().__init__(f"Expected {expected}, got {found} at position {token.pos}", token.pos)
        self.token = token
        self.expected = expected


class UnmatchedParen(EvalError):
    """Raised for a '(' that is never closed or a ')' that was never opened."""

    code = "unmatched_paren"


class EmptyExpression(EvalError):
    """Raised when the input holds no tokens at all."""

    code = "empty_expression"

    def __init__(self):
        super().__init__("Expression is empty", 0)


class DivisionByZero(EvalError):
    code = "division_by_zero"

    def __init__(self, operator: str, position: int):
        super().__init__(f"Division by zero at position {position}", position)
        self.operator = operator


class NumericOverflow(EvalError):
    """Raised when a literal or a result does not fit a finite float."""

    code = "numeric_overflow"


class DomainError(EvalError):
    """Raised when an operation has no real-valued result."""

    code = "domain_error"


class NestingTooDeep(EvalError):
    code = "nesting_too_deep"

    def __init__(self, max_depth: int, position: int):
        super().__init__(f"Expression nested deeper than {max_depth} levels at position {position}", position)
        self.max_depth = max_depth
