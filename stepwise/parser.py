"""
Precedence parser for infix expressions, and the E builder.

Operator precedence, lowest first:

    =           -1
    + -          0
    * / %        1
    unary + -    2
    ^            3   (right associative)
    functions    4

So ``-x^2`` is ``-(x^2)``, ``2^-x`` is ``2^(-x)`` and ``sin x^2`` is
``(sin x)^2``.
"""

from typing import List, Union

from .errors import ParseError
from .lexer import Token, TokenKind, tokenize
from .tree import (
    BinaryOp,
    BinaryOperator,
    ImaginaryUnit,
    Operand,
    Tree,
    UnaryOp,
    UnaryOperator,
    Variable,
    num,
)


def _should_reduce(top: Token, incoming: Token) -> bool:
    if top.kind is TokenKind.LEFT_PAREN:
        return False
    if incoming.operator.right_associative:
        return top.precedence > incoming.precedence
    return top.precedence >= incoming.precedence


def _reduce(operators: List[Token], output: List[Tree]) -> None:
    token = operators.pop()
    if token.kind is TokenKind.LEFT_PAREN:
        raise ParseError("Mismatched parenthesis: missing ')'")
    if token.kind is TokenKind.UNARY:
        if not output:
            raise ParseError(f"Missing operand for {token.value!r}")
        output.append(UnaryOp(token.operator, output.pop()))
        return
    if len(output) < 2:
        raise ParseError(f"Missing operand for {token.value!r}")
    right = output.pop()
    left = output.pop()
    output.append(BinaryOp(token.operator, left, right))


def parse(source: Union[str, List[Token]]) -> Tree:
    """
    Parse an infix expression (or a token list from tokenize) into a tree.

    Args:
        source: Expression text, or tokens ending with END

    Returns:
        The expression tree

    Raises:
        ParseError: Malformed input

    Examples:
        parse("2x+3=7")     # => BinaryOp(EQUAL, 2*x+3, 7)
        parse("sqrt(x^2)")  # => UnaryOp(SQRT, x^2)
    """
    tokens = tokenize(source) if isinstance(source, str) else source
    output: List[Tree] = []
    operators: List[Token] = []

    for token in tokens:
        kind = token.kind
        if kind is TokenKind.NUMBER:
            output.append(Operand(token.value))
        elif kind is TokenKind.VARIABLE:
            output.append(Variable())
        elif kind is TokenKind.IMAGINARY:
            output.append(ImaginaryUnit())
        elif kind in (TokenKind.UNARY, TokenKind.LEFT_PAREN):
            operators.append(token)
        elif kind is TokenKind.RIGHT_PAREN:
            while operators and operators[-1].kind is not TokenKind.LEFT_PAREN:
                _reduce(operators, output)
            if not operators:
                raise ParseError("Mismatched parenthesis: unexpected ')'")
            operators.pop()
        elif kind is TokenKind.BINARY:
            while operators and _should_reduce(operators[-1], token):
                _reduce(operators, output)
            operators.append(token)
        elif kind is TokenKind.END:
            break

    while operators:
        _reduce(operators, output)

    if not output:
        raise ParseError("Empty expression")
    if len(output) > 1:
        raise ParseError("Couldn't parse to a single tree")
    return output[0]


# ============================================================
# Expression builder
# ============================================================

class _ExprBuilder:
    """
    Fluent helper for building trees.

    Examples:
        E("2*x+3")          # parse infix
        E.op("+", E.x, 2)   # BinaryOp(ADD, x, 2)
        E.op("sin", E.x)    # UnaryOp(SIN, x)
        E.num("0.5")        # Operand("0.5")
    """

    x = Variable()
    i = ImaginaryUnit()

    def __call__(self, text: str) -> Tree:
        return parse(text)

    def num(self, value) -> Operand:
        return num(value)

    def op(self, symbol: str, *children) -> Tree:
        nodes = [num(c) if isinstance(c, (int, str)) else c for c in children]
        if len(nodes) == 2:
            return BinaryOp(BinaryOperator.from_symbol(symbol), nodes[0], nodes[1])
        if len(nodes) == 1:
            return UnaryOp(UnaryOperator.from_symbol(symbol), nodes[0])
        raise ValueError(f"Operators take one or two operands, got {len(nodes)}")


E = _ExprBuilder()
