"""
Expression tree model.

Trees are immutable values built from five node variants:

    BinaryOp(operator, left, right)
    UnaryOp(operator, operand)
    Operand(literal)        # exact decimal string, e.g. "2", "-0.5"
    Variable()              # the single unknown x
    ImaginaryUnit()         # i, the square root of -1

Equality is structural and order-sensitive: ``add(num(2), X)`` is not
equal to ``add(X, num(2))``. Rewrite rules, not equality, decide when
terms get reordered.

Examples:
    tree = equals(add(mul(num(2), X), num(3)), num(7))   # 2*x+3=7
    tree.contains_variable()                             # => True
    tree.left.right == Operand("3")                      # => True
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import ClassVar, Dict, List, Tuple, Union


# ============================================================
# Operators
# ============================================================

class BinaryOperator(Enum):
    """Binary operators with their symbol and precedence."""

    ADD = ("+", 0)
    SUBTRACT = ("-", 0)
    MULTIPLY = ("*", 1)
    DIVIDE = ("/", 1)
    MODULUS = ("%", 1)
    POWER = ("^", 3)
    EQUAL = ("=", -1)

    def __init__(self, symbol: str, precedence: int):
        self.symbol = symbol
        self.precedence = precedence

    @property
    def right_associative(self) -> bool:
        return self is BinaryOperator.POWER

    @classmethod
    def from_symbol(cls, symbol: str) -> "BinaryOperator":
        for operator in cls:
            if operator.symbol == symbol:
                return operator
        raise ValueError(f"Unknown binary operator: {symbol!r}")

    def __repr__(self) -> str:
        return f"<{self.name} {self.symbol!r}>"


class UnaryOperator(Enum):
    """Prefix operators and functions with their name and precedence."""

    NEGATE = ("-", 2)
    PLUS = ("+", 2)
    SIN = ("sin", 4)
    ARCSIN = ("arcsin", 4)
    COS = ("cos", 4)
    ARCCOS = ("arccos", 4)
    TAN = ("tan", 4)
    ARCTAN = ("arctan", 4)
    SQRT = ("sqrt", 4)
    ABS = ("abs", 4)
    DEGREES = ("deg", 4)
    RADIANS = ("rad", 4)
    CEIL = ("ceil", 4)
    FLOOR = ("floor", 4)
    ROUND = ("round", 4)

    def __init__(self, symbol: str, precedence: int):
        self.symbol = symbol
        self.precedence = precedence

    @property
    def is_function(self) -> bool:
        """True for named functions, False for prefix signs."""
        return self not in (UnaryOperator.NEGATE, UnaryOperator.PLUS)

    @classmethod
    def from_symbol(cls, symbol: str) -> "UnaryOperator":
        for operator in cls:
            if operator.symbol == symbol:
                return operator
        raise ValueError(f"Unknown unary operator: {symbol!r}")

    def __repr__(self) -> str:
        return f"<{self.name} {self.symbol!r}>"


# Function pairs that cancel when applied one after the other
INVERSE_FUNCTIONS: Dict[UnaryOperator, UnaryOperator] = {
    UnaryOperator.SIN: UnaryOperator.ARCSIN,
    UnaryOperator.ARCSIN: UnaryOperator.SIN,
    UnaryOperator.COS: UnaryOperator.ARCCOS,
    UnaryOperator.ARCCOS: UnaryOperator.COS,
    UnaryOperator.TAN: UnaryOperator.ARCTAN,
    UnaryOperator.ARCTAN: UnaryOperator.TAN,
    UnaryOperator.DEGREES: UnaryOperator.RADIANS,
    UnaryOperator.RADIANS: UnaryOperator.DEGREES,
}


# ============================================================
# Nodes
# ============================================================

@dataclass(frozen=True)
class BinaryOp:
    operator: BinaryOperator
    left: "Tree"
    right: "Tree"

    def contains_variable(self) -> bool:
        return self.left.contains_variable() or self.right.contains_variable()


@dataclass(frozen=True)
class UnaryOp:
    operator: UnaryOperator
    operand: "Tree"

    def contains_variable(self) -> bool:
        return self.operand.contains_variable()


@dataclass(frozen=True)
class Operand:
    """A numeric literal holding an exact decimal string."""

    literal: str

    @property
    def value(self) -> Decimal:
        return Decimal(self.literal)

    def contains_variable(self) -> bool:
        return False


@dataclass(frozen=True)
class Variable:
    """The unknown. Only one variable is supported."""

    name: ClassVar[str] = "x"

    def contains_variable(self) -> bool:
        return True


@dataclass(frozen=True)
class ImaginaryUnit:
    """Placeholder for the square root of -1."""

    name: ClassVar[str] = "i"

    def contains_variable(self) -> bool:
        return False


Tree = Union[BinaryOp, UnaryOp, Operand, Variable, ImaginaryUnit]

X = Variable()


# ============================================================
# Literals
# ============================================================

def format_decimal(value: Decimal) -> str:
    """
    Format a decimal as a plain literal string.

    Trailing zeros and exponents are dropped and negative zero becomes "0".

    Examples:
        format_decimal(Decimal("2.50"))   # => "2.5"
        format_decimal(Decimal("1E+1"))   # => "10"
        format_decimal(Decimal("-0.0"))   # => "0"
    """
    if value.is_zero():
        return "0"
    return format(value.normalize(), "f")


def num(value: Union[int, str, Decimal]) -> Operand:
    """Build an Operand from an int, a decimal string or a Decimal."""
    if isinstance(value, Decimal):
        return Operand(format_decimal(value))
    if isinstance(value, bool):
        raise TypeError("Booleans are not numeric literals")
    if isinstance(value, int):
        return Operand(str(value))
    if isinstance(value, str):
        Decimal(value)  # raises decimal.InvalidOperation on garbage
        return Operand(value)
    raise TypeError(f"Cannot build a literal from {type(value).__name__}")


# ============================================================
# Builders
# ============================================================

def add(left: Tree, right: Tree) -> BinaryOp:
    return BinaryOp(BinaryOperator.ADD, left, right)


def sub(left: Tree, right: Tree) -> BinaryOp:
    return BinaryOp(BinaryOperator.SUBTRACT, left, right)


def mul(left: Tree, right: Tree) -> BinaryOp:
    return BinaryOp(BinaryOperator.MULTIPLY, left, right)


def div(left: Tree, right: Tree) -> BinaryOp:
    return BinaryOp(BinaryOperator.DIVIDE, left, right)


def power(base: Tree, exponent: Tree) -> BinaryOp:
    return BinaryOp(BinaryOperator.POWER, base, exponent)


def equals(left: Tree, right: Tree) -> BinaryOp:
    return BinaryOp(BinaryOperator.EQUAL, left, right)


def neg(operand: Tree) -> UnaryOp:
    return UnaryOp(UnaryOperator.NEGATE, operand)


def apply(operator: UnaryOperator, operand: Tree) -> UnaryOp:
    return UnaryOp(operator, operand)


# ============================================================
# Queries
# ============================================================

def contains_variable(tree: Tree) -> bool:
    return tree.contains_variable()


def is_literal(tree: Tree, value: Union[int, str, None] = None) -> bool:
    """True if tree is an Operand, optionally with the given numeric value."""
    if not isinstance(tree, Operand):
        return False
    return value is None or tree.value == Decimal(value)


def is_binary(tree: Tree, *operators: BinaryOperator) -> bool:
    """True if tree is a BinaryOp whose operator is one of operators."""
    return isinstance(tree, BinaryOp) and tree.operator in operators


def is_unary(tree: Tree, *operators: UnaryOperator) -> bool:
    """True if tree is a UnaryOp whose operator is one of operators."""
    return isinstance(tree, UnaryOp) and tree.operator in operators


def is_equation(tree: Tree) -> bool:
    return is_binary(tree, BinaryOperator.EQUAL)


def contains_equality(tree: Tree) -> bool:
    """True if an equal node occurs anywhere in tree, including the root."""
    if isinstance(tree, BinaryOp):
        return (tree.operator is BinaryOperator.EQUAL
                or contains_equality(tree.left)
                or contains_equality(tree.right))
    if isinstance(tree, UnaryOp):
        return contains_equality(tree.operand)
    return False


# ============================================================
# Chains
# ============================================================
#
# Additive chains are read as signed terms: a-(b-c) is [+a, -b, +c].
# Multiplicative chains are read as factors: (a*b)*c is [a, b, c].
# Both are rebuilt left-nested.

def flip_sign(sign: BinaryOperator) -> BinaryOperator:
    if sign is BinaryOperator.ADD:
        return BinaryOperator.SUBTRACT
    return BinaryOperator.ADD


def compose_signs(outer: BinaryOperator, inner: BinaryOperator) -> BinaryOperator:
    """Sign of a term with sign ``inner`` inside a term with sign ``outer``."""
    return inner if outer is BinaryOperator.ADD else flip_sign(inner)


def terms(tree: Tree, sign: BinaryOperator = BinaryOperator.ADD) -> List[Tuple[BinaryOperator, Tree]]:
    """Flatten an additive chain into (sign, term) pairs."""
    if is_binary(tree, BinaryOperator.ADD, BinaryOperator.SUBTRACT):
        return (terms(tree.left, sign)
                + terms(tree.right, compose_signs(sign, tree.operator)))
    return [(sign, tree)]


def chain(signed: List[Tuple[BinaryOperator, Tree]]) -> Tree:
    """Rebuild (sign, term) pairs into a left-nested additive chain."""
    sign, result = signed[0]
    if sign is BinaryOperator.SUBTRACT:
        result = neg(result)
    for sign, term in signed[1:]:
        result = BinaryOp(sign, result, term)
    return result


def factors(tree: Tree) -> List[Tree]:
    """Flatten a multiplicative chain."""
    if is_binary(tree, BinaryOperator.MULTIPLY):
        return factors(tree.left) + factors(tree.right)
    return [tree]


def product(items: List[Tree]) -> Tree:
    """Rebuild factors into a left-nested product; the empty product is 1."""
    if not items:
        return num(1)
    result = items[0]
    for item in items[1:]:
        result = mul(result, item)
    return result
