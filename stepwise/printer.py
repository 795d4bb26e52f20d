"""
Printers: infix text, LaTeX and an ASCII debug graph.

    to_infix(E("(x+1)*2"))      # => "(x+1)*2"
    to_latex(E("x/2"))          # => "\\frac{x}{2}"
    print(to_graph(E("2*x+3")))
    # Graph of abstract syntax tree
    # +
    # |-- *
    # |   |-- 2
    # |   `-- x
    # `-- 3
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, List

from .config import DISPLAY_DECIMALS
from .tree import (
    BinaryOp,
    BinaryOperator,
    ImaginaryUnit,
    Operand,
    Tree,
    UnaryOp,
    UnaryOperator,
    Variable,
)

GRAPH_TITLE = "Graph of abstract syntax tree"


def display_literal(operand: Operand) -> str:
    """
    Literal text for display.

    A literal that rounds half-up to an integer at DISPLAY_DECIMALS
    decimals prints as that integer; anything else prints as stored.

    Examples:
        display_literal(Operand("2.0000000001"))   # => "2"
        display_literal(Operand("0.5235987756"))   # => "0.5235987756"
    """
    try:
        rounded = operand.value.quantize(Decimal(1).scaleb(-DISPLAY_DECIMALS),
                                         rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return operand.literal
    if rounded == rounded.to_integral_value():
        return str(int(rounded))
    return operand.literal


def _needs_parens(child: Tree, parent: BinaryOp, right_side: bool) -> bool:
    """Whether child must be parenthesized below parent to keep its meaning."""
    operator = parent.operator
    if isinstance(child, Operand):
        if operator is BinaryOperator.EQUAL:
            return False
        negative = display_literal(child).startswith("-")
        return negative and (right_side or operator is BinaryOperator.POWER)
    if not isinstance(child, BinaryOp):
        return False
    inner = child.operator.precedence
    outer = operator.precedence
    if inner < outer:
        return True
    if inner == outer:
        if right_side:
            if operator is BinaryOperator.MULTIPLY:
                return child.operator is BinaryOperator.MODULUS
            return operator in (BinaryOperator.SUBTRACT, BinaryOperator.DIVIDE,
                                BinaryOperator.MODULUS)
        return operator.right_associative
    return False


# ============================================================
# Infix
# ============================================================

def to_infix(tree: Tree) -> str:
    """Render tree as compact infix text (no spaces)."""
    if isinstance(tree, Operand):
        return display_literal(tree)
    if isinstance(tree, (Variable, ImaginaryUnit)):
        return tree.name
    if isinstance(tree, UnaryOp):
        inner = to_infix(tree.operand)
        if tree.operator.is_function:
            return f"{tree.operator.symbol}({inner})"
        operand = tree.operand
        if isinstance(operand, BinaryOp) and operand.operator.precedence < tree.operator.precedence:
            inner = f"({inner})"
        return f"({tree.operator.symbol}{inner})"

    left = to_infix(tree.left)
    if _needs_parens(tree.left, tree, right_side=False):
        left = f"({left})"
    right = to_infix(tree.right)
    if _needs_parens(tree.right, tree, right_side=True):
        right = f"({right})"
    return f"{left}{tree.operator.symbol}{right}"


# ============================================================
# LaTeX
# ============================================================

LATEX_FUNCTIONS: Dict[UnaryOperator, str] = {
    UnaryOperator.SIN: r"\sin",
    UnaryOperator.ARCSIN: r"\arcsin",
    UnaryOperator.COS: r"\cos",
    UnaryOperator.ARCCOS: r"\arccos",
    UnaryOperator.TAN: r"\tan",
    UnaryOperator.ARCTAN: r"\arctan",
}

LATEX_OPERATORS: Dict[BinaryOperator, str] = {
    BinaryOperator.ADD: " + ",
    BinaryOperator.SUBTRACT: " - ",
    BinaryOperator.MULTIPLY: r" \cdot ",
    BinaryOperator.MODULUS: r" \bmod ",
    BinaryOperator.EQUAL: " = ",
}


def _latex_group(text: str) -> str:
    return rf"\left({text}\right)"


def _latex_unary(tree: UnaryOp) -> str:
    inner = to_latex(tree.operand)
    operator = tree.operator
    if operator is UnaryOperator.SQRT:
        return rf"\sqrt{{{inner}}}"
    if operator is UnaryOperator.ABS:
        return rf"\left|{inner}\right|"
    if not operator.is_function:
        if isinstance(tree.operand, (BinaryOp, UnaryOp)):
            inner = _latex_group(inner)
        return f"{operator.symbol}{inner}"
    command = LATEX_FUNCTIONS.get(operator, rf"\operatorname{{{operator.symbol}}}")
    return f"{command}{_latex_group(inner)}"


def to_latex(tree: Tree) -> str:
    """Render tree as a LaTeX math expression (without delimiters)."""
    if isinstance(tree, Operand):
        return display_literal(tree)
    if isinstance(tree, (Variable, ImaginaryUnit)):
        return tree.name
    if isinstance(tree, UnaryOp):
        return _latex_unary(tree)

    operator = tree.operator
    left, right = to_latex(tree.left), to_latex(tree.right)
    if operator is BinaryOperator.DIVIDE:
        return rf"\frac{{{left}}}{{{right}}}"
    if operator is BinaryOperator.POWER:
        if _needs_parens(tree.left, tree, right_side=False) or isinstance(tree.left, UnaryOp):
            left = _latex_group(left)
        return f"{left}^{{{right}}}"

    if _needs_parens(tree.left, tree, right_side=False):
        left = _latex_group(left)
    if _needs_parens(tree.right, tree, right_side=True):
        right = _latex_group(right)
    return f"{left}{LATEX_OPERATORS[operator]}{right}"


# ============================================================
# Debug graph
# ============================================================

def _label(tree: Tree) -> str:
    if isinstance(tree, Operand):
        return tree.literal
    if isinstance(tree, (Variable, ImaginaryUnit)):
        return tree.name
    return tree.operator.symbol


def _children(tree: Tree) -> List[Tree]:
    if isinstance(tree, BinaryOp):
        return [tree.left, tree.right]
    if isinstance(tree, UnaryOp):
        return [tree.operand]
    return []


def _graph_children(tree: Tree, prefix: str, lines: List[str]) -> None:
    children = _children(tree)
    for k, child in enumerate(children):
        last = k == len(children) - 1
        lines.append(prefix + ("`-- " if last else "|-- ") + _label(child))
        _graph_children(child, prefix + ("    " if last else "|   "), lines)


def to_graph(tree: Tree) -> str:
    """Render tree as an indented ASCII graph, one node per line."""
    lines = [GRAPH_TITLE, _label(tree)]
    _graph_children(tree, "", lines)
    return "\n".join(lines)
