"""
Stepwise - step-by-step algebra

Simplifies expressions and solves linear-style equations in one unknown,
one rewrite rule at a time, keeping every intermediate tree so each step
can be shown and explained.

Quick Start:
    from stepwise import Simplifier, to_infix

    simplifier = Simplifier()
    result, derivation = simplifier("2x+3=7", trace=True)

    to_infix(result)                 # => "x=2"
    derivation.explanations()
    # => ["Original equation", "Subtract 3 from both sides",
    #     "Evaluate 7-3 = 4", "Divide both sides by 2", "Evaluate 4/2 = 2"]

Building trees directly:
    from stepwise import E, add, mul, num, X

    E("2*x+3")                       # parse infix
    add(mul(num(2), X), num(3))      # the same tree

Input Syntax:
    + - * / % ^ =                    binary operators (^ is right associative)
    -e +e                            unary signs
    sin cos tan arcsin arccos arctan sqrt abs deg rad ceil floor round
    x                                the unknown
    i, e, pi                         imaginary unit and constants
    2x, 2(x+1), (x+1)(x-1)           implicit multiplication

Errors:
    Every user-facing failure is a StepwiseError carrying the partial
    derivation (.derivation) and the number of completed steps (.step).
"""

__version__ = "0.1.0"

# Tree model
from .tree import (
    BinaryOperator,
    UnaryOperator,
    BinaryOp,
    UnaryOp,
    Operand,
    Variable,
    ImaginaryUnit,
    Tree,
    X,
    num,
    add,
    sub,
    mul,
    div,
    power,
    equals,
    neg,
    apply,
    contains_variable,
    format_decimal,
)

# Errors
from .errors import (
    StepwiseError,
    InvalidSyntax,
    ParseError,
    InvalidEquation,
    MathError,
    DivisionByZero,
    InvalidExpression,
    UnsupportedOperation,
    NonTerminatingRewrite,
    InternalInvariantViolation,
)

# Rewriting
from .rules import RULES, RuleMetadata, Unchanged, Changed, rules_in
from .evaluator import evaluate_binary, evaluate_unary
from .rewriter import rewrite
from .solver import isolate, validate
from .engine import Simplifier, Derivation, RewriteStep, derive, simplify, solve

# Text in and out
from .lexer import Token, TokenKind, tokenize
from .parser import E, parse
from .printer import to_infix, to_latex, to_graph

# Public API
__all__ = [
    # Version
    "__version__",
    # Tree model
    "BinaryOperator",
    "UnaryOperator",
    "BinaryOp",
    "UnaryOp",
    "Operand",
    "Variable",
    "ImaginaryUnit",
    "Tree",
    "X",
    "num",
    "add",
    "sub",
    "mul",
    "div",
    "power",
    "equals",
    "neg",
    "apply",
    "contains_variable",
    "format_decimal",
    # Errors
    "StepwiseError",
    "InvalidSyntax",
    "ParseError",
    "InvalidEquation",
    "MathError",
    "DivisionByZero",
    "InvalidExpression",
    "UnsupportedOperation",
    "NonTerminatingRewrite",
    "InternalInvariantViolation",
    # Rules and rewriting
    "RULES",
    "RuleMetadata",
    "Unchanged",
    "Changed",
    "rules_in",
    "evaluate_binary",
    "evaluate_unary",
    "rewrite",
    "isolate",
    "validate",
    # Driver
    "Simplifier",
    "Derivation",
    "RewriteStep",
    "derive",
    "simplify",
    "solve",
    # Parsing and printing
    "Token",
    "TokenKind",
    "tokenize",
    "E",
    "parse",
    "to_infix",
    "to_latex",
    "to_graph",
]
