"""
Exceptions raised while parsing, rewriting and evaluating expressions.

Every user-facing failure derives from StepwiseError. When an error is
raised inside a derivation the driver attaches the partial derivation, so
callers can show the steps that led up to it:

    try:
        simplify("5/0")
    except StepwiseError as e:
        print(e, "after", e.step, "steps")

InternalInvariantViolation is not a StepwiseError: it signals a bug and
should never be caught alongside user errors.
"""

from typing import Any, Optional


class StepwiseError(Exception):
    """Base class for errors reported to the user."""

    def __init__(self, message: str, derivation: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.derivation = derivation

    @property
    def step(self) -> Optional[int]:
        """Number of completed steps when the error occurred, if known."""
        if self.derivation is None:
            return None
        return len(self.derivation.steps)


# ============================================================
# Syntax-level errors
# ============================================================

class InvalidSyntax(StepwiseError, ValueError):
    """Input that cannot be turned into a valid expression tree."""


class ParseError(InvalidSyntax):
    """Tokenizing or parsing failed."""


class InvalidEquation(InvalidSyntax):
    """The equal operator appears somewhere other than the root."""


# ============================================================
# Arithmetic errors
# ============================================================

class MathError(StepwiseError, ArithmeticError):
    """Numeric evaluation failed."""


class DivisionByZero(MathError, ZeroDivisionError):
    """Division or modulus by zero."""


class InvalidExpression(MathError):
    """Evaluation produced no real number, e.g. arcsin(2)."""

    def __init__(self, message: str, expression: str = "",
                 derivation: Optional[Any] = None):
        super().__init__(message, derivation)
        self.expression = expression


class UnsupportedOperation(MathError):
    """An operation outside the supported numeric domain."""


# ============================================================
# Engine diagnostics
# ============================================================

class NonTerminatingRewrite(StepwiseError, RuntimeError):
    """The fixpoint driver hit its iteration cap."""


class InternalInvariantViolation(AssertionError):
    """A rewrite or evaluation function received a node it cannot dispatch."""
