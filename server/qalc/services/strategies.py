from __future__ import annotations

import logging
import math
import operator
import re
from typing import Callable, Dict

from qalc.services.expression import (
    BinaryOp,
    ExpressionSyntaxError,
    Node,
    Number,
    UnaryOp,
    iter_nodes,
    parse_expression,
)

logger = logging.getLogger("qalc.strategies")

MAX_SAFE_INTEGER = 2**53 - 1
SIGNIFICANT_DIGITS = 15
TINY_MAGNITUDE = 1e-10
# Display switches to exponent form below 1e-6. The 1e21 upper switch never applies to a
# non-integral double, since every double at or above 2**53 is integral.
EXPONENT_FORM_LOWER = 1e-6
MAX_EXACT_POWER_BITS = 10_000

_WHITESPACE = re.compile(r"\s+")


class _NotExact(Exception):
    """The tree uses something integer arithmetic cannot represent exactly."""


def _truncated_remainder(dividend: int, divisor: int) -> int:
    remainder = abs(dividend) % abs(divisor)
    return -remainder if dividend < 0 else remainder


def _integer_power(base: int, exponent: int) -> int:
    if exponent < 0:
        raise _NotExact()
    if exponent and base.bit_length() * exponent > MAX_EXACT_POWER_BITS:
        raise _NotExact()
    return base**exponent


_INTEGER_BINARY_OPERATORS: Dict[str, Callable[[int, int], int]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "%": _truncated_remainder,
    "**": _integer_power,
}


def _float_divide(left: float, right: float) -> float:
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


def _float_remainder(left: float, right: float) -> float:
    if right == 0 or math.isinf(left):
        return math.nan
    return math.fmod(left, right)


def _float_power(base: float, exponent: float) -> float:
    try:
        return math.pow(base, exponent)
    except OverflowError:
        return math.inf
    except ValueError:
        return math.nan


_FLOAT_BINARY_OPERATORS: Dict[str, Callable[[float, float], float]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": _float_divide,
    "%": _float_remainder,
    "^": _float_power,
    "**": _float_power,
}

_UNARY_OPERATORS: Dict[str, Callable] = {
    "+": operator.pos,
    "-": operator.neg,
}


def _evaluate_integer_node(node: Node) -> int:
    if isinstance(node, Number):
        if node.is_decimal:
            raise _NotExact()
        return int(node.text)

    if isinstance(node, UnaryOp):
        return _UNARY_OPERATORS[node.op](_evaluate_integer_node(node.operand))

    if isinstance(node, BinaryOp):
        operator_fn = _INTEGER_BINARY_OPERATORS.get(node.op)
        if operator_fn is None:
            raise _NotExact()
        return operator_fn(_evaluate_integer_node(node.left), _evaluate_integer_node(node.right))

    raise _NotExact()


def _evaluate_float_node(node: Node) -> float:
    if isinstance(node, Number):
        return float(node.text)

    if isinstance(node, UnaryOp):
        return _UNARY_OPERATORS[node.op](_evaluate_float_node(node.operand))

    if isinstance(node, BinaryOp):
        operator_fn = _FLOAT_BINARY_OPERATORS[node.op]
        return operator_fn(_evaluate_float_node(node.left), _evaluate_float_node(node.right))

    raise TypeError(f"Unsupported node {node!r}.")


def evaluate_exact_integer(expression: str) -> int | str | None:
    """
    Evaluate integer-only arithmetic exactly.

    Returns an ``int`` when the result is within the double-safe range, the
    decimal digit string otherwise, and ``None`` when the expression is not
    integer arithmetic (decimal literals, ``/``, ``^`` or a negative ``**``
    exponent) or fails to evaluate. Whitespace is removed before parsing, so
    digits separated by spaces read as one number.
    """
    try:
        tree = parse_expression(_WHITESPACE.sub("", expression))
        if any(isinstance(node, BinaryOp) and node.op in {"/", "^"} for node in iter_nodes(tree)):
            return None
        value = _evaluate_integer_node(tree)
        if abs(value) <= MAX_SAFE_INTEGER:
            return value
        return str(value)
    except (_NotExact, ExpressionSyntaxError, ArithmeticError, ValueError) as exc:
        logger.debug("exact.no_result", extra={"expression": expression, "reason": type(exc).__name__})
        return None


def _uses_exponent_form(value: float) -> bool:
    return abs(value) < EXPONENT_FORM_LOWER


def round_significant(value: float, digits: int = SIGNIFICANT_DIGITS) -> float:
    # Rounds in decimal: format to N significant digits, then parse back.
    return float(f"{value:.{digits}g}")


def normalize_float(value: float) -> int | float:
    if not math.isfinite(value):
        return value

    if value != 0 and abs(value) < TINY_MAGNITUDE:
        return value

    if value.is_integer():
        return int(value) if abs(value) <= MAX_SAFE_INTEGER else value

    if _uses_exponent_form(value):
        return value

    rounded = round_significant(value)
    if rounded.is_integer() and abs(rounded) <= MAX_SAFE_INTEGER:
        return int(rounded)
    return rounded


def evaluate_precise_decimal(expression: str) -> int | float | None:
    """
    Evaluate general arithmetic in double precision and strip float noise.

    Non-finite outcomes such as division by zero are returned as they are so the
    caller can report them; malformed input yields ``None``.
    """
    try:
        tree = parse_expression(expression)
    except ExpressionSyntaxError as exc:
        logger.debug("decimal.no_result", extra={"expression": expression, "reason": str(exc)})
        return None

    return normalize_float(_evaluate_float_node(tree))
