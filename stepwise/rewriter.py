"""
Shape rewriter: one algebraic simplification per call.

``rewrite(tree)`` walks the tree post-order. Children are rewritten first;
as soon as one of them changes, the parent is rebuilt around the new child
and returned without trying its own rules. Only a node whose children are
already at a fixpoint gets its own rule set tried, in priority order:

    1. evaluate       both children are literals
    2. identity       e+0, 0+e, e-0, 0-e, e*1, 1*e, -1*e, e*0, e/1, 0/e, e^0, e^1, 1^e
    3. cancellation   e-e, e+e, e/e, e*e, (-e)+e, 1/(1/e)
    4. sign           a+(-b), a-(-b), a+(-k)*b, a-(-k)*b, a+(-k), a-(-k),
                      (-a)+b, (-a)-b, a*(-b), a/(-b)
    5. fraction       a/c + b/c
    6. reorder        bring literals or like terms of a chain together
    7. distribution   p*q + p*r, k*e + e
    8. multiplicative (a/b)*b, a*(1/c), cancel factors, combine powers
    9. unary          +e, --e, f(f^-1(e)), sqrt(e^2)

Equations are handed to the solver once both sides are at a fixpoint.

Rules are plain functions registered per operator with ``binary_rule`` or
``unary_rule``. A rule returns ``to(new_tree, *subjects)`` when it applies
and None otherwise.

Examples:
    rewrite(E("2*x+3*x"))   # => Changed(x*(2+3), "factor-out", (x,))
    rewrite(E("5*x"))       # => Unchanged(5*x)
"""

from itertools import combinations
from typing import Callable, Dict, List, Optional, Tuple

from .errors import DivisionByZero, InternalInvariantViolation
from .evaluator import evaluate_binary, evaluate_unary
from .rules import Changed, Match, Rewrite, Unchanged, register, to
from .solver import check_placement, isolate
from .tree import (
    INVERSE_FUNCTIONS,
    BinaryOp,
    BinaryOperator as Op,
    ImaginaryUnit,
    Operand,
    Tree,
    UnaryOp,
    UnaryOperator as Fn,
    Variable,
    add,
    apply,
    chain,
    compose_signs,
    div,
    factors,
    flip_sign,
    is_binary,
    is_literal,
    is_unary,
    mul,
    neg,
    num,
    power,
    product,
    sub,
    terms,
)

BinaryRule = Callable[[BinaryOp], Match]
UnaryRule = Callable[[UnaryOp], Match]

BINARY_RULES: Dict[Op, List[Tuple[str, BinaryRule]]] = {
    op: [] for op in Op if op is not Op.EQUAL
}
UNARY_RULES: List[Tuple[str, UnaryRule]] = []


def binary_rule(operators: List[Op], name: str, description: str, category: str):
    """Register a rule for the given binary operators, after existing ones."""
    register(name, description, category)

    def decorator(func: BinaryRule) -> BinaryRule:
        for operator in operators:
            BINARY_RULES[operator].append((name, func))
        return func
    return decorator


def unary_rule(name: str, description: str, category: str):
    """Register a rule for unary nodes, after existing ones."""
    register(name, description, category)

    def decorator(func: UnaryRule) -> UnaryRule:
        UNARY_RULES.append((name, func))
        return func
    return decorator


ADDITIVE = [Op.ADD, Op.SUBTRACT]


# ============================================================
# Chain predicates
# ============================================================

def _like_terms(a: Tree, b: Tree) -> bool:
    """Terms that the distribution rules can merge once they are siblings."""
    if is_literal(a) or is_literal(b):
        return False
    if a == b:
        return True
    if is_binary(a, Op.MULTIPLY) and b in (a.left, a.right):
        return True
    if is_binary(b, Op.MULTIPLY) and a in (b.left, b.right):
        return True
    if is_binary(a, Op.MULTIPLY) and is_binary(b, Op.MULTIPLY):
        return any(f == g and not is_literal(f)
                   for f in (a.left, a.right) for g in (b.left, b.right))
    return False


def _same_base(a: Tree, b: Tree) -> bool:
    """Factors that multiply into a single power."""
    if is_literal(a) or is_literal(b):
        return False
    base_a = a.left if is_binary(a, Op.POWER) else a
    base_b = b.left if is_binary(b, Op.POWER) else b
    return base_a == base_b


def _find_pair(items: List[Tree], alike: Callable[[Tree, Tree], bool]) -> Optional[Tuple[int, int]]:
    """Leftmost literal pair, otherwise the leftmost pair of alike items."""
    pairs = list(combinations(range(len(items)), 2))
    for i, j in pairs:
        if is_literal(items[i]) and is_literal(items[j]):
            return i, j
    for i, j in pairs:
        if alike(items[i], items[j]):
            return i, j
    return None


# ============================================================
# Identity elimination
# ============================================================

@binary_rule([Op.ADD], "plus-zero", "Remove redundant plus zero", "identity")
def _plus_zero(node):
    if is_literal(node.right, 0):
        return to(node.left)
    if is_literal(node.left, 0):
        return to(node.right)


@binary_rule([Op.SUBTRACT], "minus-zero", "Remove redundant minus zero", "identity")
def _minus_zero(node):
    if is_literal(node.right, 0):
        return to(node.left)


@binary_rule([Op.SUBTRACT], "zero-minus", "Zero minus {0} is the negation of {0}", "identity")
def _zero_minus(node):
    if is_literal(node.left, 0):
        return to(neg(node.right), node.right)


@binary_rule([Op.MULTIPLY], "times-one", "Remove redundant multiplication by one", "identity")
def _times_one(node):
    if is_literal(node.left, 1):
        return to(node.right)
    if is_literal(node.right, 1):
        return to(node.left)


@binary_rule([Op.MULTIPLY], "times-minus-one", "Multiplying by -1 negates {0}", "identity")
def _times_minus_one(node):
    if is_literal(node.left, -1):
        return to(neg(node.right), node.right)
    if is_literal(node.right, -1):
        return to(neg(node.left), node.left)


@binary_rule([Op.MULTIPLY], "times-zero", "Anything multiplied by zero is zero", "identity")
def _times_zero(node):
    if is_literal(node.left, 0) or is_literal(node.right, 0):
        return to(num(0))


@binary_rule([Op.DIVIDE, Op.MODULUS], "divide-by-zero", "Division by zero", "identity")
def _divide_by_zero(node):
    if is_literal(node.right, 0):
        raise DivisionByZero("Tried to divide by zero")


@binary_rule([Op.DIVIDE], "divide-by-one", "Remove redundant division by one", "identity")
def _divide_by_one(node):
    if is_literal(node.right, 1):
        return to(node.left)


@binary_rule([Op.DIVIDE], "zero-divided", "Zero divided by anything is zero", "identity")
def _zero_divided(node):
    if is_literal(node.left, 0):
        return to(num(0))


@binary_rule([Op.POWER], "power-zero", "Anything to the power of zero is one", "identity")
def _power_zero(node):
    if is_literal(node.right, 0):
        return to(num(1))


@binary_rule([Op.POWER], "power-one", "Anything to the power of one is itself", "identity")
def _power_one(node):
    if is_literal(node.right, 1):
        return to(node.left)


@binary_rule([Op.POWER], "one-to-power", "One to any power is one", "identity")
def _one_to_power(node):
    if is_literal(node.left, 1):
        return to(num(1))


@binary_rule([Op.POWER], "imaginary-square", "The imaginary unit squared is -1", "identity")
def _imaginary_square(node):
    if isinstance(node.left, ImaginaryUnit) and is_literal(node.right, 2):
        return to(num(-1))


# ============================================================
# Self-cancellation and self-combination
# ============================================================

@binary_rule([Op.ADD], "add-self", "Adding {0} to itself doubles it", "cancellation")
def _add_self(node):
    if not is_literal(node.left) and node.left == node.right:
        return to(mul(num(2), node.left), node.left)


@binary_rule([Op.ADD], "additive-inverse", "{0} and its negation cancel", "cancellation")
def _additive_inverse(node):
    if is_unary(node.left, Fn.NEGATE) and node.left.operand == node.right:
        return to(num(0), node.right)


@binary_rule([Op.SUBTRACT], "subtract-self", "Subtracting {0} from itself gives zero", "cancellation")
def _subtract_self(node):
    if node.left == node.right:
        return to(num(0), node.left)


@binary_rule([Op.DIVIDE], "divide-self", "Dividing {0} by itself gives one", "cancellation")
def _divide_self(node):
    if node.left == node.right:
        return to(num(1), node.left)


@binary_rule([Op.DIVIDE], "double-reciprocal", "The reciprocal of a reciprocal cancels", "cancellation")
def _double_reciprocal(node):
    right = node.right
    if is_literal(node.left, 1) and is_binary(right, Op.DIVIDE) and is_literal(right.left, 1):
        return to(right.right)


# ============================================================
# Sign normalization
# ============================================================

@binary_rule([Op.ADD], "plus-negation", "Adding the negation of {0} is subtracting {0}", "sign")
def _plus_negation(node):
    if is_unary(node.right, Fn.NEGATE):
        return to(sub(node.left, node.right.operand), node.right.operand)


@binary_rule([Op.SUBTRACT], "minus-negation", "Subtracting the negation of {0} is adding {0}", "sign")
def _minus_negation(node):
    if is_unary(node.right, Fn.NEGATE):
        return to(add(node.left, node.right.operand), node.right.operand)


@binary_rule(ADDITIVE, "negative-literal", "Change the sign of {0} and the operator", "sign")
def _negative_literal(node):
    right = node.right
    if is_literal(right) and right.value < 0:
        flipped = num(right.value.copy_negate())
        return to(BinaryOp(flip_sign(node.operator), node.left, flipped), right)


@binary_rule(ADDITIVE, "negative-coefficient", "Change the sign of {0} and the operator", "sign")
def _negative_coefficient(node):
    right = node.right
    if is_binary(right, Op.MULTIPLY) and is_literal(right.left) and right.left.value < 0:
        term = mul(num(right.left.value.copy_negate()), right.right)
        return to(BinaryOp(flip_sign(node.operator), node.left, term), right.left)


@binary_rule([Op.ADD], "leading-negation", "Subtract {0} instead of adding its negation",
             "sign")
def _leading_negation(node):
    if is_unary(node.left, Fn.NEGATE):
        return to(sub(node.right, node.left.operand), node.left.operand)


@binary_rule([Op.SUBTRACT], "negated-difference", "Factor the negation out of -{0}-{1}", "sign")
def _negated_difference(node):
    if is_unary(node.left, Fn.NEGATE):
        inner = node.left.operand
        return to(neg(add(inner, node.right)), inner, node.right)


@binary_rule([Op.MULTIPLY, Op.DIVIDE], "negation-out", "Move the negation of {0} outside", "sign")
def _negation_out(node):
    left, right = node.left, node.right
    if is_unary(left, Fn.NEGATE):
        return to(neg(BinaryOp(node.operator, left.operand, right)), left.operand)
    if is_unary(right, Fn.NEGATE):
        return to(neg(BinaryOp(node.operator, left, right.operand)), right.operand)


# ============================================================
# Fractions
# ============================================================

@binary_rule(ADDITIVE, "common-denominator", "Combine fractions over the common denominator {0}",
             "fraction")
def _common_denominator(node):
    left, right = node.left, node.right
    if is_binary(left, Op.DIVIDE) and is_binary(right, Op.DIVIDE) and left.right == right.right:
        numerator = BinaryOp(node.operator, left.left, right.left)
        return to(div(numerator, left.right), left.right)


# ============================================================
# Reordering
# ============================================================

@binary_rule(ADDITIVE, "reorder-terms", "Reorder the terms to bring {0} and {1} together", "reorder")
def _reorder_terms(node):
    signed = terms(node)
    if len(signed) < 3:
        return None
    pair = _find_pair([term for _, term in signed], _like_terms)
    if pair is None:
        return None
    i, j = pair
    (sign_i, term_i), (sign_j, term_j) = signed[i], signed[j]
    joined = BinaryOp(compose_signs(sign_i, sign_j), term_i, term_j)
    rest = signed[:i] + [(sign_i, joined)] + signed[i + 1:j] + signed[j + 1:]
    result = chain(rest)
    if result == node:
        return None
    return to(result, term_i, term_j)


@binary_rule([Op.MULTIPLY], "literal-first", "Move the number {0} to the front", "reorder")
def _literal_first(node):
    if is_literal(node.right) and not is_literal(node.left):
        return to(mul(node.right, node.left), node.right)


@binary_rule([Op.MULTIPLY], "reorder-factors", "Reorder the factors to bring {0} and {1} together",
             "reorder")
def _reorder_factors(node):
    items = factors(node)
    if len(items) < 3:
        return None
    pair = _find_pair(items, _same_base)
    if pair is None:
        return None
    i, j = pair
    rest = items[:i] + [mul(items[i], items[j])] + items[i + 1:j] + items[j + 1:]
    result = product(rest)
    if result == node:
        return None
    return to(result, items[i], items[j])


# ============================================================
# Distribution and factoring
# ============================================================

@binary_rule(ADDITIVE, "factor-out", "Factor out the common factor {0}", "distribution")
def _factor_out(node):
    left, right = node.left, node.right
    if not (is_binary(left, Op.MULTIPLY) and is_binary(right, Op.MULTIPLY)):
        return None
    candidates = [
        (left.left, right.left, left.right, right.right),
        (left.left, right.right, left.right, right.left),
        (left.right, right.left, left.left, right.right),
        (left.right, right.right, left.left, right.left),
    ]
    for shared, other, rest_left, rest_right in candidates:
        if shared == other:
            return to(mul(shared, BinaryOp(node.operator, rest_left, rest_right)), shared)


@binary_rule(ADDITIVE, "collect-coefficient", "Collect the coefficients of {0}", "distribution")
def _collect_coefficient(node):
    left, right, op = node.left, node.right, node.operator
    if is_binary(left, Op.MULTIPLY) and not is_literal(right):
        if left.right == right:
            return to(mul(right, BinaryOp(op, left.left, num(1))), right)
        if left.left == right:
            return to(mul(right, BinaryOp(op, left.right, num(1))), right)
    if is_binary(right, Op.MULTIPLY) and not is_literal(left):
        if right.right == left:
            return to(mul(left, BinaryOp(op, num(1), right.left)), left)
        if right.left == left:
            return to(mul(left, BinaryOp(op, num(1), right.right)), left)


# ============================================================
# Multiplicative cancellation
# ============================================================

@binary_rule([Op.MULTIPLY], "cancel-fraction", "Multiplying by {0} cancels the division by {0}",
             "multiplicative")
def _cancel_fraction(node):
    left, right = node.left, node.right
    if is_binary(right, Op.DIVIDE) and right.right == left:
        return to(right.left, left)
    if is_binary(left, Op.DIVIDE) and left.right == right:
        return to(left.left, right)


@binary_rule([Op.MULTIPLY], "multiply-self", "Multiplying {0} by itself squares it", "multiplicative")
def _multiply_self(node):
    if not is_literal(node.left) and node.left == node.right:
        return to(power(node.left, num(2)), node.left)


@binary_rule([Op.MULTIPLY], "add-exponents", "Powers of {0} multiply by adding exponents",
             "multiplicative")
def _add_exponents(node):
    left, right = node.left, node.right
    left_power, right_power = is_binary(left, Op.POWER), is_binary(right, Op.POWER)
    if left_power and right_power and left.left == right.left:
        return to(power(left.left, add(left.right, right.right)), left.left)
    if left_power and left.left == right:
        return to(power(right, add(left.right, num(1))), right)
    if right_power and right.left == left:
        return to(power(left, add(num(1), right.right)), left)


@binary_rule([Op.MULTIPLY], "times-reciprocal", "Multiplying by 1/{0} is dividing by {0}",
             "multiplicative")
def _times_reciprocal(node):
    left, right = node.left, node.right
    if is_binary(right, Op.DIVIDE) and is_literal(right.left, 1):
        return to(div(left, right.right), right.right)
    if is_binary(left, Op.DIVIDE) and is_literal(left.left, 1):
        return to(div(right, left.right), left.right)


@binary_rule([Op.DIVIDE], "cancel-factor", "Cancel the common factor {0}", "multiplicative")
def _cancel_factor(node):
    top, bottom = factors(node.left), factors(node.right)
    for i, f in enumerate(top):
        for j, g in enumerate(bottom):
            if f == g:
                numerator = product(top[:i] + top[i + 1:])
                rest = bottom[:j] + bottom[j + 1:]
                return to(div(numerator, product(rest)) if rest else numerator, f)


@binary_rule([Op.DIVIDE], "combine-literal-factors", "Divide the numbers {0} and {1}",
             "multiplicative")
def _combine_literal_factors(node):
    top, bottom = factors(node.left), factors(node.right)
    if len(top) == 1 and len(bottom) == 1:
        return None
    i = next((k for k, f in enumerate(top) if is_literal(f)), None)
    j = next((k for k, f in enumerate(bottom) if is_literal(f)), None)
    if i is None or j is None:
        return None
    numerator = product([div(top[i], bottom[j])] + top[:i] + top[i + 1:])
    rest = bottom[:j] + bottom[j + 1:]
    return to(div(numerator, product(rest)) if rest else numerator, top[i], bottom[j])


@binary_rule([Op.DIVIDE], "subtract-exponents", "Powers of {0} divide by subtracting exponents",
             "multiplicative")
def _subtract_exponents(node):
    left, right = node.left, node.right
    left_power, right_power = is_binary(left, Op.POWER), is_binary(right, Op.POWER)
    if left_power and right_power and left.left == right.left:
        return to(power(left.left, sub(left.right, right.right)), left.left)
    if left_power and left.left == right:
        return to(power(right, sub(left.right, num(1))), right)
    if right_power and right.left == left:
        return to(power(left, sub(num(1), right.right)), left)


# ============================================================
# Unary simplification
# ============================================================

@unary_rule("unary-plus", "Remove redundant unary plus", "unary")
def _unary_plus(node):
    if node.operator is Fn.PLUS:
        return to(node.operand)


@unary_rule("double-negation", "Two negations cancel", "unary")
def _double_negation(node):
    if node.operator is Fn.NEGATE and is_unary(node.operand, Fn.NEGATE):
        return to(node.operand.operand)


@unary_rule("negate-coefficient", "Move the negation into the coefficient {0}", "unary")
def _negate_coefficient(node):
    inner = node.operand
    if node.operator is Fn.NEGATE and is_binary(inner, Op.MULTIPLY) and is_literal(inner.left):
        return to(mul(num(inner.left.value.copy_negate()), inner.right), inner.left)


@unary_rule("inverse-cancel", "{0} and {1} cancel each other", "unary")
def _inverse_cancel(node):
    inner = node.operand
    if isinstance(inner, UnaryOp) and INVERSE_FUNCTIONS.get(node.operator) is inner.operator:
        return to(inner.operand, node.operator.symbol, inner.operator.symbol)


@unary_rule("root-of-square", "The square root of a square is the absolute value", "unary")
def _root_of_square(node):
    inner = node.operand
    if node.operator is Fn.SQRT and is_binary(inner, Op.POWER) and is_literal(inner.right, 2):
        return to(apply(Fn.ABS, inner.left))


# ============================================================
# Dispatch
# ============================================================

def _first_match(rules, node) -> Rewrite:
    for name, rule in rules:
        match = rule(node)
        if match is not None:
            tree, subjects = match
            return Changed(tree, name, subjects)
    return Unchanged(node)


def _rewrite_binary(node: BinaryOp) -> Rewrite:
    check_placement(node)

    left = rewrite(node.left)
    if left.changed:
        return left.rebuild(BinaryOp(node.operator, left.tree, node.right))
    right = rewrite(node.right)
    if right.changed:
        return right.rebuild(BinaryOp(node.operator, node.left, right.tree))

    if node.operator is Op.EQUAL:
        return isolate(node)

    if isinstance(node.left, Operand) and isinstance(node.right, Operand):
        result, rule = evaluate_binary(node.operator, node.left, node.right)
        return Changed(result, rule, (node, result))

    rules = BINARY_RULES.get(node.operator)
    if rules is None:
        raise InternalInvariantViolation(f"No rules for operator {node.operator!r}")
    return _first_match(rules, node)


def _rewrite_unary(node: UnaryOp) -> Rewrite:
    check_placement(node)

    inner = rewrite(node.operand)
    if inner.changed:
        return inner.rebuild(UnaryOp(node.operator, inner.tree))

    if isinstance(node.operand, Operand):
        result, rule = evaluate_unary(node.operator, node.operand)
        return Changed(result, rule, (node, result))

    return _first_match(UNARY_RULES, node)


def rewrite(tree: Tree) -> Rewrite:
    """
    Apply at most one simplification anywhere in tree.

    Args:
        tree: The tree to simplify

    Returns:
        Unchanged(tree) if no rule applies anywhere, otherwise
        Changed(new_tree, rule, subjects) for the single rule applied.

    Raises:
        InvalidEquation: An equal node is nested below the root
        MathError: Numeric evaluation failed
    """
    if isinstance(tree, BinaryOp):
        return _rewrite_binary(tree)
    if isinstance(tree, UnaryOp):
        return _rewrite_unary(tree)
    if isinstance(tree, (Operand, Variable, ImaginaryUnit)):
        return Unchanged(tree)
    raise InternalInvariantViolation(f"Not an expression tree: {tree!r}")
