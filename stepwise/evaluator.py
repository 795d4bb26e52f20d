"""
Numeric evaluation of literal operands.

Binary arithmetic is exact decimal arithmetic at PRECISION significant
digits with round-half-up, so 0.1 + 0.2 gives exactly 0.3. Trigonometric
functions and degree/radian conversion go through floating point and are
rounded back to PRECISION digits; the remaining unary operators stay in
decimal.

Each evaluation returns the replacement tree and the name of the rule that
produced it. Usually that is a literal and "evaluate", but a power of 0.5
becomes a square root and the square root of a negative literal splits
off the imaginary unit.
"""

import decimal
import logging
import math
from decimal import Context, Decimal
from typing import Callable, Dict, Tuple

from .config import PRECISION
from .errors import (
    DivisionByZero,
    InternalInvariantViolation,
    InvalidExpression,
    UnsupportedOperation,
)
from .rules import register
from .tree import (
    BinaryOperator,
    ImaginaryUnit,
    Operand,
    Tree,
    UnaryOperator,
    apply,
    mul,
    num,
)

logger = logging.getLogger(__name__)

CONTEXT = Context(prec=PRECISION, rounding=decimal.ROUND_HALF_UP)

HALF = Decimal("0.5")

register("evaluate", "Evaluate {0} = {1}", "evaluate")
register("power-to-root", "Rewrite {0} as {1}", "evaluate")
register("imaginary-unit", "Rewrite {0} as the imaginary unit {1}", "evaluate")
register("split-negative-root", "Split {0} into {1}", "evaluate")


# ============================================================
# Binary folds
# ============================================================

def _divide(a: Decimal, b: Decimal) -> Decimal:
    if b.is_zero():
        raise DivisionByZero("Tried to divide by zero")
    return CONTEXT.divide(a, b)


def _modulus(a: Decimal, b: Decimal) -> Decimal:
    if b.is_zero():
        raise DivisionByZero("Tried to take the modulus by zero")
    return CONTEXT.remainder(a, b)


def _power(a: Decimal, b: Decimal) -> Decimal:
    if a < 0 and b != b.to_integral_value():
        raise UnsupportedOperation(
            f"Sorry, a negative base ({a}) raised to a non-integer exponent ({b}) "
            "has no real result"
        )
    return CONTEXT.power(a, b)


BINARY_FOLDS: Dict[BinaryOperator, Callable[[Decimal, Decimal], Decimal]] = {
    BinaryOperator.ADD: CONTEXT.add,
    BinaryOperator.SUBTRACT: CONTEXT.subtract,
    BinaryOperator.MULTIPLY: CONTEXT.multiply,
    BinaryOperator.DIVIDE: _divide,
    BinaryOperator.MODULUS: _modulus,
    BinaryOperator.POWER: _power,
}


# ============================================================
# Unary folds
# ============================================================

def _via_float(func: Callable[[float], float]) -> Callable[[Decimal], Decimal]:
    """Wrap a math function so it takes and returns decimals."""
    def evaluate(value: Decimal) -> Decimal:
        result = func(float(value))
        if math.isnan(result) or math.isinf(result):
            raise ValueError("result is not a finite number")
        return CONTEXT.create_decimal_from_float(result)
    return evaluate


UNARY_FOLDS: Dict[UnaryOperator, Callable[[Decimal], Decimal]] = {
    UnaryOperator.NEGATE: lambda v: v.copy_negate(),
    UnaryOperator.PLUS: lambda v: v,
    UnaryOperator.ABS: lambda v: v.copy_abs(),
    UnaryOperator.CEIL: lambda v: v.to_integral_value(rounding=decimal.ROUND_CEILING),
    UnaryOperator.FLOOR: lambda v: v.to_integral_value(rounding=decimal.ROUND_FLOOR),
    UnaryOperator.ROUND: lambda v: v.to_integral_value(rounding=decimal.ROUND_HALF_EVEN),
    UnaryOperator.SQRT: CONTEXT.sqrt,
    UnaryOperator.SIN: _via_float(math.sin),
    UnaryOperator.ARCSIN: _via_float(math.asin),
    UnaryOperator.COS: _via_float(math.cos),
    UnaryOperator.ARCCOS: _via_float(math.acos),
    UnaryOperator.TAN: _via_float(math.tan),
    UnaryOperator.ARCTAN: _via_float(math.atan),
    UnaryOperator.DEGREES: _via_float(math.degrees),
    UnaryOperator.RADIANS: _via_float(math.radians),
}


# ============================================================
# Entry points
# ============================================================

def evaluate_binary(operator: BinaryOperator, left: Operand,
                    right: Operand) -> Tuple[Tree, str]:
    """
    Evaluate a binary operator over two literals.

    Args:
        operator: Any arithmetic operator (not EQUAL)
        left: Left literal
        right: Right literal

    Returns:
        (replacement tree, rule name)

    Raises:
        DivisionByZero: Division or modulus by zero
        UnsupportedOperation: Negative base with a non-integer exponent,
            or a result too large to represent
        InvalidExpression: The result is undefined (e.g. 0^0)
        InternalInvariantViolation: operator is not arithmetic
    """
    fold = BINARY_FOLDS.get(operator)
    if fold is None:
        raise InternalInvariantViolation(f"Cannot evaluate operator {operator!r}")

    a, b = left.value, right.value
    if operator is BinaryOperator.POWER and b == HALF:
        return apply(UnaryOperator.SQRT, left), "power-to-root"

    text = f"{left.literal}{operator.symbol}{right.literal}"
    try:
        result = fold(a, b)
    except (decimal.DivisionByZero, decimal.Overflow, decimal.InvalidOperation) as e:
        logger.debug("Evaluating %s raised %s", text, type(e).__name__)
        if isinstance(e, decimal.DivisionByZero):
            raise DivisionByZero(f"Tried to divide by zero in {text}") from e
        if isinstance(e, decimal.Overflow):
            raise UnsupportedOperation(f"The result of {text} is too large") from e
        raise InvalidExpression(
            f"Couldn't evaluate {text}, the result is undefined", expression=text
        ) from e
    return num(result), "evaluate"


def evaluate_unary(operator: UnaryOperator, operand: Operand) -> Tuple[Tree, str]:
    """
    Evaluate a unary operator or function over a literal.

    The square root of -1 is the imaginary unit; the square root of any
    other negative literal becomes sqrt(-1)*sqrt(|operand|).

    Raises:
        InvalidExpression: The result is not a real number (e.g. arcsin(2))
    """
    value = operand.value
    if operator is UnaryOperator.SQRT and value < 0:
        if value == -1:
            return ImaginaryUnit(), "imaginary-unit"
        split = mul(apply(UnaryOperator.SQRT, num(-1)),
                    apply(UnaryOperator.SQRT, num(value.copy_negate())))
        return split, "split-negative-root"

    fold = UNARY_FOLDS.get(operator)
    if fold is None:
        raise InternalInvariantViolation(f"Cannot evaluate operator {operator!r}")

    text = f"{operator.symbol}({operand.literal})"
    try:
        result = fold(value)
    except (ValueError, OverflowError, decimal.InvalidOperation) as e:
        logger.debug("Evaluating %s raised %s: %s", text, type(e).__name__, e)
        raise InvalidExpression(
            f"Couldn't solve {text}, the result is not a number", expression=text
        ) from e
    return num(result), "evaluate"
