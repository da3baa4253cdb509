"""
Tokenizer for arithmetic expressions.

Turns source text into a lazy, single-pass stream of tokens:
NUMBER, OPERATOR, LPAREN, RPAREN and a final END. Whitespace is skipped,
any character outside the grammar raises LexError at its offset.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional

from eval_expr.errors import LexError, NumericOverflow

logger = logging.getLogger(__name__)


class TokenKind(Enum):
    """Closed set of token kinds."""
    NUMBER = "NUMBER"
    OPERATOR = "OPERATOR"
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"
    END = "END"


@dataclass(frozen=True)
class Token:
    """A lexical unit with its kind, numeric value (NUMBER only), offset and source text."""
    kind: TokenKind
    value: Optional[float]
    pos: int
    text: str

    @property
    def is_end(self) -> bool:
        return self.kind is TokenKind.END

    @property
    def is_operator(self) -> bool:
        return self.kind is TokenKind.OPERATOR

    def __repr__(self) -> str:
        return f"Token({self.kind.value}, {self.text!r}, pos={self.pos})"


_DIGITS = "0123456789"

_SYMBOLS = {
    '+': TokenKind.OPERATOR,
    '-': TokenKind.OPERATOR,
    '*': TokenKind.OPERATOR,
    '/': TokenKind.OPERATOR,
    '^': TokenKind.OPERATOR,
    '(': TokenKind.LPAREN,
    ')': TokenKind.RPAREN,
}


def _is_digit(ch: str) -> bool:
    # str.isdigit() also accepts superscripts and other scripts' digits
    return ch != '' and ch in _DIGITS


class Tokenizer:
    """Stateful token cursor over a string.

    Each ``next()`` advances by exactly one token. After END has been
    produced, or after a LexError, the tokenizer is exhausted; build a new
    one to scan the text again.
    """

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.len = len(text)
        self._exhausted = False

    def __iter__(self) -> Iterator[Token]:
        return self

    def __next__(self) -> Token:
        if self._exhausted:
            raise StopIteration
        self._skip_whitespace()
        ch = self._peek()
        if ch == '':
            self._exhausted = True
            token = Token(TokenKind.END, None, self.pos, '')
        elif _is_digit(ch):
            token = self._read_number()
        elif ch in _SYMBOLS:
            token = Token(_SYMBOLS[ch], None, self.pos, ch)
            self._advance()
        else:
            self._exhausted = True
            raise LexError(ch, self.pos)
        logger.debug(f"Scanned {token!r}")
        return token

    def _peek(self) -> str:
        return self.text[self.pos] if self.pos < self.len else ''

    def _advance(self) -> None:
        self.pos += 1

    def _skip_whitespace(self) -> None:
        while self._peek() and self._peek().isspace():
            self._advance()

    def _read_number(self) -> Token:
        """Consume the longest run of digits with at most one decimal point."""
        start = self.pos
        has_dot = False
        while True:
            ch = self._peek()
            if _is_digit(ch):
                self._advance()
            elif ch == '.' and not has_dot:
                has_dot = True
                self._advance()
            else:
                break
        raw = self.text[start:self.pos]
        value = float(raw)
        if math.isinf(value):
            self._exhausted = True
            raise NumericOverflow(f"Numeric literal at position {start} is too large", start)
        return Token(TokenKind.NUMBER, value, start, raw)


def tokenize(text: str) -> Tokenizer:
    """Return a lazy token stream over ``text``."""
    return Tokenizer(text)
