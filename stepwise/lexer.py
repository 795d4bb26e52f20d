"""
Tokenizer for infix expressions.

    tokenize("2x+sin(pi)")
    # => NUMBER 2, BINARY *, VARIABLE x, BINARY +, UNARY sin, LEFT_PAREN,
    #    NUMBER 3.1415926535, RIGHT_PAREN, END

Implicit multiplication is made explicit, the constants e and pi become
numbers, and + or - become unary operators wherever no left operand can
precede them.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Union

from .errors import ParseError
from .tree import BinaryOperator, UnaryOperator


class TokenKind(Enum):
    NUMBER = "number"
    VARIABLE = "variable"
    IMAGINARY = "imaginary"
    BINARY = "binary"
    UNARY = "unary"
    LEFT_PAREN = "("
    RIGHT_PAREN = ")"
    END = "end"


@dataclass(frozen=True)
class Token:
    """One lexical unit. Operator tokens carry their operator."""

    kind: TokenKind
    value: str
    operator: Optional[Union[BinaryOperator, UnaryOperator]] = None

    @property
    def precedence(self) -> int:
        if self.operator is None:
            raise ValueError(f"Token {self.value!r} has no precedence")
        return self.operator.precedence

    def __repr__(self) -> str:
        return f"{self.kind.name} {self.value}"


CONSTANTS: Dict[str, str] = {
    "e": "2.7182818284",
    "pi": "3.1415926535",
}

FUNCTIONS: Dict[str, UnaryOperator] = {
    op.symbol: op for op in UnaryOperator if op.is_function
}
FUNCTIONS.update({
    "asin": UnaryOperator.ARCSIN,
    "acos": UnaryOperator.ARCCOS,
    "atan": UnaryOperator.ARCTAN,
})

NAMES = sorted(list(CONSTANTS) + list(FUNCTIONS) + ["x", "i"], key=len, reverse=True)

TOKEN_RE = re.compile(r"""
    (?P<space>\s+)
  | (?P<number>\d+(?:\.\d*)?|\.\d+)
  | (?P<name>[A-Za-z]+)
  | (?P<symbol>[-+*/^%=()])
""", re.VERBOSE)

# Tokens that can end an operand, and tokens that can start one
_ENDS_OPERAND = {TokenKind.NUMBER, TokenKind.VARIABLE, TokenKind.IMAGINARY,
                 TokenKind.RIGHT_PAREN}
_STARTS_OPERAND = {TokenKind.NUMBER, TokenKind.VARIABLE, TokenKind.IMAGINARY,
                   TokenKind.LEFT_PAREN}

_MULTIPLY = Token(TokenKind.BINARY, "*", BinaryOperator.MULTIPLY)


def split_name(run: str) -> List[str]:
    """
    Split a run of letters into known names, longest match first.

    Examples:
        split_name("xsin")  # => ["x", "sin"]
        split_name("pix")   # => ["pi", "x"]
    """
    names = []
    position = 0
    while position < len(run):
        for name in NAMES:
            if run.startswith(name, position):
                names.append(name)
                position += len(name)
                break
        else:
            raise ParseError(f"Unknown name {run[position:]!r}")
    return names


def _name_token(name: str) -> Token:
    if name == "x":
        return Token(TokenKind.VARIABLE, name)
    if name == "i":
        return Token(TokenKind.IMAGINARY, name)
    if name in CONSTANTS:
        return Token(TokenKind.NUMBER, CONSTANTS[name])
    operator = FUNCTIONS[name]
    return Token(TokenKind.UNARY, operator.symbol, operator)


def _symbol_token(symbol: str, previous: Optional[Token]) -> Token:
    if symbol == "(":
        return Token(TokenKind.LEFT_PAREN, symbol)
    if symbol == ")":
        return Token(TokenKind.RIGHT_PAREN, symbol)
    if symbol in "+-" and (previous is None or previous.kind in
                           (TokenKind.LEFT_PAREN, TokenKind.BINARY, TokenKind.UNARY)):
        operator = UnaryOperator.from_symbol(symbol)
        return Token(TokenKind.UNARY, symbol, operator)
    return Token(TokenKind.BINARY, symbol, BinaryOperator.from_symbol(symbol))


def _needs_multiply(previous: Optional[Token], token: Token) -> bool:
    if previous is None or previous.kind not in _ENDS_OPERAND:
        return False
    if token.kind in _STARTS_OPERAND:
        return True
    return token.kind is TokenKind.UNARY and token.operator.is_function


def tokenize(text: str) -> List[Token]:
    """
    Turn an infix expression into tokens, ending with an END token.

    Raises:
        ParseError: Unknown character or name
    """
    tokens: List[Token] = []

    def emit(token: Token) -> None:
        previous = tokens[-1] if tokens else None
        if _needs_multiply(previous, token):
            tokens.append(_MULTIPLY)
        tokens.append(token)

    position = 0
    while position < len(text):
        match = TOKEN_RE.match(text, position)
        if match is None:
            raise ParseError(f"Unexpected character {text[position]!r} at position {position}")
        position = match.end()

        if match.lastgroup == "number":
            emit(Token(TokenKind.NUMBER, match.group()))
        elif match.lastgroup == "name":
            for name in split_name(match.group()):
                emit(_name_token(name))
        elif match.lastgroup == "symbol":
            previous = tokens[-1] if tokens else None
            emit(_symbol_token(match.group(), previous))

    tokens.append(Token(TokenKind.END, ""))
    return tokens
