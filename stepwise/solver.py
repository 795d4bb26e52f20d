"""
Equation isolation: move terms across the equal sign until x stands alone.

``isolate(equation)`` is called by the rewriter once both sides of an
equation are at a fixpoint. It takes one step per call:

    3 = x+1          swap sides            x+1 = 3
    x+1 = 3          subtract 1            x = 3-1
    2*x = 4          divide by 2           x = 4/2
    2/x = 4          take the reciprocal   x = 2/4
    x^2 = 9          root                  x = 9^(1/2)
    sin(x) = 0.5     inverse function      x = arcsin(0.5)
    2*x+3 = x        collect on the left   2*x+3-x = 0

When no step applies the equation is returned unchanged: either x is
isolated, or it is combined in a way that cannot be inverted (abs(x) = 2,
x+sin(x) = 1, 2^x = 8).
"""

import logging
from typing import Any, Optional

from .errors import InvalidEquation
from .printer import to_infix
from .rules import Changed, Rewrite, Unchanged, register
from .tree import (
    INVERSE_FUNCTIONS,
    BinaryOp,
    BinaryOperator,
    Tree,
    UnaryOp,
    UnaryOperator,
    Variable,
    add,
    apply,
    chain,
    contains_equality,
    div,
    equals,
    is_binary,
    is_literal,
    mul,
    neg,
    num,
    power,
    sub,
    terms,
)

logger = logging.getLogger(__name__)

register("swap-sides", "Swap the sides so that x is on the left", "solve")
register("collect-on-left", "Subtract {0} from both sides", "solve")
register("subtract-both-sides", "Subtract {0} from both sides", "solve")
register("add-both-sides", "Add {0} to both sides", "solve")
register("divide-both-sides", "Divide both sides by {0}", "solve")
register("multiply-both-sides", "Multiply both sides by {0}", "solve")
register("reciprocal-both-sides", "Take the reciprocal of both sides and multiply by {0}", "solve")
register("root-both-sides", "Raise both sides to the power of 1/{0}", "solve")
register("negate-both-sides", "Negate both sides", "solve")
register("square-both-sides", "Square both sides", "solve")
register("inverse-function", "Apply {0} to both sides", "solve")


# ============================================================
# Equality placement
# ============================================================

def check_placement(node: Tree) -> None:
    """Raise InvalidEquation when an equal node is a direct child of node."""
    if isinstance(node, BinaryOp):
        for child in (node.left, node.right):
            if is_binary(child, BinaryOperator.EQUAL):
                if node.operator is BinaryOperator.EQUAL:
                    raise InvalidEquation("Cannot have more than one equal operator")
                raise InvalidEquation("Cannot have an equal operator inside parentheses")
    elif isinstance(node, UnaryOp) and is_binary(node.operand, BinaryOperator.EQUAL):
        raise InvalidEquation("Cannot have an equal operator inside a unary operator")


def validate(tree: Tree) -> None:
    """Check equality placement everywhere in tree."""
    check_placement(tree)
    if isinstance(tree, BinaryOp):
        validate(tree.left)
        validate(tree.right)
    elif isinstance(tree, UnaryOp):
        validate(tree.operand)


# ============================================================
# Isolation
# ============================================================

def _step(rule: str, left: Tree, right: Tree, *subjects: Any) -> Changed:
    return Changed(equals(left, right), rule, subjects)


def _move_term(left: BinaryOp, right: Tree) -> Optional[Changed]:
    """Move the first term without x of an additive chain to the right."""
    signed = terms(left)
    for k, (sign, term) in enumerate(signed):
        if term.contains_variable():
            continue
        rest = chain(signed[:k] + signed[k + 1:])
        if sign is BinaryOperator.ADD:
            return _step("subtract-both-sides", rest, sub(right, term), term)
        return _step("add-both-sides", rest, add(right, term), term)
    return None


def _isolate_binary(left: BinaryOp, right: Tree) -> Optional[Changed]:
    operator = left.operator
    if operator in (BinaryOperator.ADD, BinaryOperator.SUBTRACT):
        return _move_term(left, right)

    a, b = left.left, left.right
    if operator is BinaryOperator.MULTIPLY:
        if not a.contains_variable():
            return _step("divide-both-sides", b, div(right, a), a)
        if not b.contains_variable():
            return _step("divide-both-sides", a, div(right, b), b)
    elif operator is BinaryOperator.DIVIDE:
        if not a.contains_variable():
            return _step("reciprocal-both-sides", b, div(a, right), a)
        if not b.contains_variable():
            return _step("multiply-both-sides", a, mul(right, b), b)
    elif operator is BinaryOperator.POWER:
        if is_literal(b):
            return _step("root-both-sides", a, power(right, div(num(1), b)), b)
    return None


def _invert_unary(left: UnaryOp, right: Tree) -> Optional[Changed]:
    inner = left.operand
    if left.operator is UnaryOperator.NEGATE:
        return _step("negate-both-sides", inner, neg(right))
    if left.operator is UnaryOperator.SQRT:
        return _step("square-both-sides", inner, power(right, num(2)))
    inverse = INVERSE_FUNCTIONS.get(left.operator)
    if inverse is not None:
        return _step("inverse-function", inner, apply(inverse, right), inverse.symbol)
    return None


def isolate(equation: BinaryOp) -> Rewrite:
    """
    Take one step towards isolating x on the left of an equation.

    Both sides must already be at a fixpoint of the rewriter.

    Args:
        equation: A BinaryOp with the EQUAL operator

    Returns:
        Changed with the rewritten equation, or Unchanged when no step applies.

    Raises:
        InvalidEquation: Either side contains another equal node
    """
    for side in (equation.left, equation.right):
        if is_binary(side, BinaryOperator.EQUAL):
            raise InvalidEquation("Cannot have more than one equal operator")
        if contains_equality(side):
            raise InvalidEquation("Cannot have an equal operator inside parentheses")

    left, right = equation.left, equation.right
    on_left, on_right = left.contains_variable(), right.contains_variable()

    if on_right and not on_left:
        return _step("swap-sides", right, left)
    if on_left and on_right:
        return _step("collect-on-left", sub(left, right), num(0), right)
    if not on_left:
        return Unchanged(equation)

    step = None
    if isinstance(left, BinaryOp):
        step = _isolate_binary(left, right)
    elif isinstance(left, UnaryOp):
        step = _invert_unary(left, right)
    if step is None:
        if left.contains_variable() and not isinstance(left, Variable):
            logger.debug("Cannot isolate x further in %s", to_infix(equation))
        return Unchanged(equation)
    return step
