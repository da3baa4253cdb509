"""
Precedence-climbing evaluator.

Parses the token stream with top-down operator precedence and applies each
operator as soon as both operands are known, so no syntax tree is built.

Grammar, with the binding of each binary operator taken from OPERATORS:

    expression : primary (binop expression)*
    primary    : NUMBER | '(' expression ')' | '-' expression{min_prec=3}

All values are 64-bit floats. Division by zero, overflow to infinity and
results that would be complex are reported as errors rather than returned.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from eval_expr.errors import (
    DivisionByZero,
    DomainError,
    EmptyExpression,
    EvalError,
    NestingTooDeep,
    NumericOverflow,
    UnexpectedToken,
    UnmatchedParen,
)
from eval_expr.tokenizer import Token, TokenKind, Tokenizer

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 100

# Each nesting level costs a handful of Python frames.
MAX_DEPTH_LIMIT = 150


class Associativity(Enum):
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class OperatorInfo:
    """Binding information for a binary operator."""
    symbol: str
    precedence: int
    assoc: Associativity


# Higher number = binds tighter.
OPERATORS: Dict[str, OperatorInfo] = {
    '+': OperatorInfo('+', 1, Associativity.LEFT),
    '-': OperatorInfo('-', 1, Associativity.LEFT),
    '*': OperatorInfo('*', 2, Associativity.LEFT),
    '/': OperatorInfo('/', 2, Associativity.LEFT),
    '^': OperatorInfo('^', 3, Associativity.RIGHT),
}

# Unary minus takes an operand that may contain '^' but nothing looser,
# so -2^2 == -(2^2) and -2*3 == (-2)*3.
UNARY_MINUS_PRECEDENCE = OPERATORS['^'].precedence


def _power(base: float, exponent: float, op: Token) -> float:
    if exponent == 0:
        return 1.0
    if base == 0 and exponent < 0:
        raise DivisionByZero(op.text, op.pos)
    if base < 0 and not exponent.is_integer():
        raise DomainError(
            f"Negative base raised to a fractional power at position {op.pos} has no real result",
            op.pos,
        )
    return base ** exponent


def apply_operator(op: Token, left: float, right: float) -> float:
    """Apply binary operator ``op`` to two operands, enforcing the numeric policy."""
    symbol = op.text
    try:
        if symbol == '+':
            result = left + right
        elif symbol == '-':
            result = left - right
        elif symbol == '*':
            result = left * right
        elif symbol == '/':
            if right == 0:
                raise DivisionByZero(symbol, op.pos)
            result = left / right
        else:
            result = _power(left, right, op)
    except OverflowError:
        # float ** raises instead of returning inf
        result = math.inf
    if math.isinf(result):
        raise NumericOverflow(f"Result of {symbol!r} at position {op.pos} is out of range", op.pos)
    logger.debug(f"Applied {left!r} {symbol} {right!r} = {result!r}")
    return result


class ExpressionEvaluator:
    """Single-use evaluator for one expression string.

    Holds the token cursor (one token of lookahead) and the current nesting
    depth. Create a new instance for every expression.
    """

    def __init__(self, text: str, max_depth: int = DEFAULT_MAX_DEPTH):
        if not 1 <= max_depth <= MAX_DEPTH_LIMIT:
            raise ValueError(f"max_depth must be between 1 and {MAX_DEPTH_LIMIT}, got {max_depth}")
        self.text = text
        self.max_depth = max_depth
        self._tokens = Tokenizer(text)
        self._lookahead: Optional[Token] = None
        self._depth = 0
        self._used = False

    def _current(self) -> Token:
        if self._lookahead is None:
            self._lookahead = next(self._tokens)
        return self._lookahead

    def _advance(self) -> Token:
        tok = self._current()
        self._lookahead = None
        return tok

    def evaluate(self) -> float:
        """Evaluate the whole input and return its value.

        Raises:
            EvalError: one of its subclasses, describing the first problem found.
        """
        if self._used:
            raise RuntimeError("ExpressionEvaluator instances evaluate only once")
        self._used = True
        logger.debug(f"Evaluating {self.text!r}")
        try:
            if self._current().is_end:
                raise EmptyExpression()
            result = self._parse_expression(1)
            tok = self._current()
            if tok.kind is TokenKind.RPAREN:
                raise UnmatchedParen(f"Unmatched ')' at position {tok.pos}", tok.pos)
            if not tok.is_end:
                raise UnexpectedToken(tok, "an operator or end of input")
        except EvalError as e:
            logger.debug(f"Evaluation of {self.text!r} failed: {e}")
            raise
        logger.debug(f"Evaluated {self.text!r} = {result!r}")
        return result

    def _nested(self, tok: Token, min_prec: int) -> float:
        """Parse a sub-expression opened by ``tok``, counting it against max_depth.

        Only parentheses, unary minus and right-associative operators can
        nest without bound; left-associative operands recurse at most once
        per precedence level.
        """
        self._depth += 1
        try:
            if self._depth > self.max_depth:
                raise NestingTooDeep(self.max_depth, tok.pos)
            return self._parse_expression(min_prec)
        finally:
            self._depth -= 1

    def _parse_expression(self, min_prec: int) -> float:
        """Fold every operator binding at least as tightly as ``min_prec``."""
        left = self._parse_primary()
        while True:
            tok = self._current()
            if not tok.is_operator:
                break
            info = OPERATORS[tok.text]
            if info.precedence < min_prec:
                break
            self._advance()
            if info.assoc is Associativity.LEFT:
                right = self._parse_expression(info.precedence + 1)
            else:
                right = self._nested(tok, info.precedence)
            left = apply_operator(tok, left, right)
        return left

    def _parse_primary(self) -> float:
        tok = self._current()
        if tok.kind is TokenKind.NUMBER:
            self._advance()
            return tok.value
        if tok.kind is TokenKind.LPAREN:
            self._advance()
            value = self._nested(tok, 1)
            closing = self._current()
            if closing.kind is TokenKind.RPAREN:
                self._advance()
                return value
            if closing.is_end:
                raise UnmatchedParen(f"Unclosed '(' at position {tok.pos}", tok.pos)
            raise UnexpectedToken(closing, "')'")
        if tok.is_operator and tok.text == '-':
            self._advance()
            return -self._nested(tok, UNARY_MINUS_PRECEDENCE)
        raise UnexpectedToken(tok, "a number, '(' or '-'")


def evaluate(text: str, max_depth: int = DEFAULT_MAX_DEPTH) -> float:
    """Evaluate an arithmetic expression and return its value as a float.

    Args:
        text: Expression source, e.g. ``"2 * (3 + 4) ^ 2"``.
        max_depth: Maximum nesting of parentheses, unary minus and
            right-associative chains.

    Raises:
        EvalError: LexError, UnexpectedToken, UnmatchedParen, EmptyExpression,
            DivisionByZero, NumericOverflow, DomainError or NestingTooDeep.
    """
    return ExpressionEvaluator(text, max_depth).evaluate()


eval_expr = evaluate
