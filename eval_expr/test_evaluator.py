# test_evaluator.py

import logging
import math
from concurrent.futures import ThreadPoolExecutor

import pytest

from eval_expr import eval_expr
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
from eval_expr.evaluator import (
    DEFAULT_MAX_DEPTH,
    MAX_DEPTH_LIMIT,
    OPERATORS,
    Associativity,
    ExpressionEvaluator,
    apply_operator,
    evaluate,
)
from eval_expr.tokenizer import Token, TokenKind


def op(symbol, pos=0):
    return Token(TokenKind.OPERATOR, None, pos, symbol)


# ---------------------------
# Operator table
# ---------------------------

def test_operator_table():
    assert {s: (i.precedence, i.assoc) for s, i in OPERATORS.items()} == {
        '+': (1, Associativity.LEFT),
        '-': (1, Associativity.LEFT),
        '*': (2, Associativity.LEFT),
        '/': (2, Associativity.LEFT),
        '^': (3, Associativity.RIGHT),
    }


# ---------------------------
# Precedence and associativity
# ---------------------------

@pytest.mark.parametrize("text, expected", [
    ("1 + 2 - 3", 0),
    ("1 + 2 - 3 + 4", 4),
    ("1 + 2 - 3 + 4 - 5", -1),
    ("1-2-3", -4),
    ("8/4/2", 1),
    ("1 + 2 * 3", 7),
    ("1 + 2 * 3 - 4", 3),
    ("1 + 2 * 3 - 4 / 2", 5),
    ("2+3*4", 14),
    ("(2+3)*4", 20),
    ("2 ^ 3", 8),
    ("2^3^2", 512),
    ("2^2^3", 256),
    ("2*3^2", 18),
    ("2 * (3 + 4) ^ 2", 98),
    ("2 ^ (1 ^ 4)", 2),
    ("(2 ^ 1) ^ 4", 16),
    ("((((7))))", 7),
    ("10 - (4 - (3 - 1))", 8),
])
def test_evaluate(text, expected):
    assert evaluate(text) == expected


def test_left_fold_differs_from_right_fold():
    assert evaluate("1-2-3") == -4
    assert evaluate("1-(2-3)") == 2
    assert evaluate("64/8/2") == 4


def test_results_are_floats():
    assert evaluate("7/2") == 3.5
    assert isinstance(evaluate("1+1"), float)
    assert evaluate("1.5 * 4") == 6
    assert evaluate("0.1 + 0.2") == pytest.approx(0.3)


# ---------------------------
# Unary minus
# ---------------------------

@pytest.mark.parametrize("text, expected", [
    ("-5", -5),
    ("--3", 3),
    ("3*-2", -6),
    ("3--2", 5),
    ("-2^2", -4),
    ("(-2)^2", 4),
    ("-2*3", -6),
    ("-(1+2)", -3),
    ("2^-1", 0.5),
    ("-2^-2", -0.25),
])
def test_unary_minus(text, expected):
    assert evaluate(text) == expected


def test_unary_plus_is_not_supported():
    with pytest.raises(UnexpectedToken) as e:
        evaluate("+5")
    assert e.value.position == 0


# ---------------------------
# Numeric policy
# ---------------------------

@pytest.mark.parametrize("text", ["0^0", "5^0", "(-3)^0", "2.5^(1-1)"])
def test_zero_exponent_is_one(text):
    assert evaluate(text) == 1


def test_fractional_power():
    assert evaluate("9^0.5") == 3
    assert evaluate("(-8)^3") == -512


def test_division_by_zero():
    with pytest.raises(DivisionByZero) as e:
        evaluate("5/0")
    assert e.value.operator == '/'
    assert e.value.position == 1
    assert e.value.code == "division_by_zero"


@pytest.mark.parametrize("text, pos", [
    ("1 + 2 / (3 - 3)", 6),
    ("1/0.0", 1),
    ("0*(1/0)", 4),
    ("0^-1", 1),
])
def test_division_by_zero_is_eager(text, pos):
    with pytest.raises(DivisionByZero) as e:
        evaluate(text)
    assert e.value.position == pos


def test_negative_base_fractional_exponent():
    with pytest.raises(DomainError) as e:
        evaluate("(-8)^(1/3)")
    assert e.value.position == 4


@pytest.mark.parametrize("text, pos", [
    ("10^400", 2),
    ("10^308*10", 6),
    ("(-2)^9999", 4),
])
def test_overflow(text, pos):
    with pytest.raises(NumericOverflow) as e:
        evaluate(text)
    assert e.value.position == pos


def test_underflow_is_zero():
    assert evaluate("10^-400") == 0


def test_apply_operator():
    assert apply_operator(op('+'), 1.0, 2.0) == 3.0
    assert apply_operator(op('-'), 1.0, 2.0) == -1.0
    assert apply_operator(op('*'), 3.0, 2.0) == 6.0
    assert apply_operator(op('/'), 3.0, 2.0) == 1.5
    assert apply_operator(op('^'), 3.0, 2.0) == 9.0
    with pytest.raises(DivisionByZero):
        apply_operator(op('/', 7), 1.0, 0.0)
    with pytest.raises(NumericOverflow):
        apply_operator(op('*'), 1e308, 1e308)


@pytest.mark.parametrize("symbol, expected", [
    ('+', 8.0), ('-', 4.0), ('*', 12.0), ('/', 3.0), ('^', 36.0),
])
def test_apply_operator_covers_operator_table(symbol, expected):
    assert symbol in OPERATORS
    assert apply_operator(op(symbol), 6.0, 2.0) == expected


# ---------------------------
# Malformed input
# ---------------------------

@pytest.mark.parametrize("text, pos", [
    ("(1+2", 0),
    ("((1)", 0),
    ("2*(3+(4", 5),
    ("1+2)", 3),
    ("(1+2))", 5),
])
def test_unmatched_paren(text, pos):
    with pytest.raises(UnmatchedParen) as e:
        evaluate(text)
    assert e.value.position == pos


@pytest.mark.parametrize("text, pos, found", [
    ("1+", 2, ''),
    ("*1", 0, '*'),
    ("()", 1, ')'),
    (")", 0, ')'),
    ("1 2", 2, '2'),
    ("(1 2)", 3, '2'),
    ("2(3)", 1, '('),
    ("1 ^ * 2", 4, '*'),
])
def test_unexpected_token(text, pos, found):
    with pytest.raises(UnexpectedToken) as e:
        evaluate(text)
    assert e.value.position == pos
    assert e.value.token.text == found


def test_unexpected_end_message():
    with pytest.raises(UnexpectedToken) as e:
        evaluate("1 + 2 *")
    assert str(e.value) == "Expected a number, '(' or '-', got end of input at position 7"
    assert e.value.token.is_end


def test_missing_close_paren_before_other_token():
    with pytest.raises(UnexpectedToken) as e:
        evaluate("(1 2")
    assert e.value.expected == "')'"


@pytest.mark.parametrize("text", ["", "   ", "\t\n"])
def test_empty_expression(text):
    with pytest.raises(EmptyExpression):
        evaluate(text)


def test_invalid_character():
    with pytest.raises(LexError) as e:
        evaluate("1+@2")
    assert e.value.char == '@'
    assert e.value.position == 2


def test_lex_error_wins_over_later_problems():
    # scanning stops at the first bad character, before the missing ')'
    with pytest.raises(LexError):
        evaluate("(1 + x")


def test_all_errors_share_base_class():
    for text in ["", "1+", "(1", "1/0", "1 # 2", "10^999", "(-1)^0.5"]:
        with pytest.raises(EvalError):
            evaluate(text)


# ---------------------------
# Nesting limit
# ---------------------------

def test_nesting_at_limit():
    depth = DEFAULT_MAX_DEPTH
    assert evaluate("(" * depth + "1" + ")" * depth) == 1
    assert evaluate("-" * depth + "1") == 1
    assert evaluate("1^" * depth + "1") == 1


@pytest.mark.parametrize("text", [
    "(" * (DEFAULT_MAX_DEPTH + 1) + "1" + ")" * (DEFAULT_MAX_DEPTH + 1),
    "-" * (DEFAULT_MAX_DEPTH + 1) + "1",
    "1^" * (DEFAULT_MAX_DEPTH + 1) + "1",
])
def test_nesting_too_deep(text):
    with pytest.raises(NestingTooDeep) as e:
        evaluate(text)
    assert e.value.max_depth == DEFAULT_MAX_DEPTH


def test_custom_max_depth():
    assert evaluate("(1)", max_depth=1) == 1
    with pytest.raises(NestingTooDeep) as e:
        evaluate("((1))", max_depth=1)
    assert e.value.position == 1


def test_long_left_assoc_chain_is_not_nesting():
    assert evaluate("+".join(["1"] * 2000)) == 2000


def test_max_depth_must_be_positive():
    with pytest.raises(ValueError):
        ExpressionEvaluator("1", max_depth=0)


def test_max_depth_is_capped():
    assert evaluate("1", max_depth=MAX_DEPTH_LIMIT) == 1
    with pytest.raises(ValueError):
        ExpressionEvaluator("1", max_depth=MAX_DEPTH_LIMIT + 1)
    with pytest.raises(ValueError):
        evaluate("(" * 5000 + "1" + ")" * 5000, max_depth=100000)


def test_deepest_allowed_nesting():
    text = "(" * (MAX_DEPTH_LIMIT + 1) + "1" + ")" * (MAX_DEPTH_LIMIT + 1)
    with pytest.raises(NestingTooDeep):
        evaluate(text, max_depth=MAX_DEPTH_LIMIT)
    assert evaluate("-(" * (MAX_DEPTH_LIMIT // 2) + "1" + ")" * (MAX_DEPTH_LIMIT // 2),
                    max_depth=MAX_DEPTH_LIMIT) == 1


# ---------------------------
# Lifecycle and properties
# ---------------------------

def test_evaluator_is_single_use():
    ev = ExpressionEvaluator("1 + 1")
    assert ev.evaluate() == 2
    with pytest.raises(RuntimeError):
        ev.evaluate()


def test_whitespace_insensitive():
    assert evaluate("1+2") == evaluate(" 1 + 2 ") == evaluate("\t1\n+\n2\t")


def test_deterministic():
    text = "2 * (3 + 4) ^ 2 / 7 - 1.5"
    results = {evaluate(text) for _ in range(5)}
    assert len(results) == 1


def test_concurrent_calls_are_independent():
    exprs = [f"{i} * ({i} + 1) - {i}^2" for i in range(50)]
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(evaluate, exprs))
    assert results == [float(i) for i in range(50)]


def test_eval_expr_alias():
    assert eval_expr("2^10") == 1024


def test_debug_logging(caplog):
    caplog.set_level(logging.DEBUG, logger="eval_expr")
    evaluate("1 + 2")
    messages = [r.getMessage() for r in caplog.records]
    assert "Applied 1.0 + 2.0 = 3.0" in messages
    assert any(m.startswith("Evaluated '1 + 2'") for m in messages)


def test_failure_is_logged_at_debug(caplog):
    caplog.set_level(logging.DEBUG, logger="eval_expr.evaluator")
    with pytest.raises(DivisionByZero):
        evaluate("1/0")
    assert any("failed" in r.getMessage() for r in caplog.records)
    assert all(r.levelno == logging.DEBUG for r in caplog.records)


def test_result_is_finite():
    assert math.isfinite(evaluate("10^308"))
