"""
Fixpoint driver: rewrite a tree until nothing changes.

Each pass applies exactly one rule, so the derivation reads as a list of
human-sized steps:

    from stepwise import Simplifier

    simplifier = Simplifier()
    result, derivation = simplifier("2*x+3=7", trace=True)
    print(derivation.format("verbose"))
    # Initial: 2*x+3=7
    #   1. Subtract 3 from both sides: 2*x=7-3
    #   2. Evaluate 7-3 = 4: 2*x=4
    #   3. Divide both sides by 2: x=4/2
    #   4. Evaluate 4/2 = 2: x=2
    # Final: x=2

The number of trees a derivation may hold is capped (MAX_PASSES); hitting
the cap raises NonTerminatingRewrite with the partial derivation attached.
"""

import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Union

from . import config
from .errors import InvalidEquation, NonTerminatingRewrite, StepwiseError
from .parser import parse
from .printer import to_infix
from .rewriter import rewrite
from .rules import RULES, RuleMetadata
from .solver import validate
from .tree import Tree, is_equation

logger = logging.getLogger(__name__)

Renderer = Callable[[Tree], str]


class RewriteStep:
    """A single step in a derivation."""

    def __init__(self, rule: str, before: Tree, after: Tree,
                 subjects: Tuple[Any, ...] = ()):
        self.rule = rule
        self.before = before
        self.after = after
        self.subjects = subjects

    @property
    def metadata(self) -> RuleMetadata:
        return RULES[self.rule]

    def explain(self, render: Renderer = to_infix) -> str:
        """Human-readable description of what this step did."""
        return self.metadata.explain(self.subjects, render)

    def __repr__(self) -> str:
        return f"{self.rule}: {to_infix(self.before)} -> {to_infix(self.after)}"

    def to_dict(self, render: Renderer = to_infix) -> Dict:
        """Convert step to dictionary for serialization."""
        return {
            "rule": self.rule,
            "category": self.metadata.category,
            "explanation": self.explain(render),
            "before": render(self.before),
            "after": render(self.after),
        }


class Derivation:
    """
    The trees produced by a run of the fixpoint driver.

    Provides multiple formatting options:
        - format("verbose"): numbered steps with explanations (default)
        - format("compact"): single line showing the rule chain
        - format("rules"): just the rule names applied
        - format("chain"): the trees, linked by rule names
        - to_dict(): JSON-serializable dictionary
    """

    def __init__(self, initial: Tree):
        self.initial = initial
        self.steps: List[RewriteStep] = []

    def add_step(self, step: RewriteStep):
        self.steps.append(step)

    @property
    def final(self) -> Tree:
        return self.steps[-1].after if self.steps else self.initial

    @property
    def history(self) -> List[Tree]:
        """The initial tree followed by every successor."""
        return [self.initial] + [step.after for step in self.steps]

    def explanations(self, render: Renderer = to_infix) -> List[str]:
        """One line per tree in history, starting with the original."""
        first = "Original equation" if is_equation(self.initial) else "Original expression"
        return [first] + [step.explain(render) for step in self.steps]

    def format(self, style: str = "verbose", render: Renderer = to_infix) -> str:
        """
        Format the derivation in different styles.

        Args:
            style: One of "verbose", "compact", "rules", "chain"
            render: Printer used for trees, to_infix by default

        Returns:
            Formatted string representation of the derivation.
        """
        rules = self.rules_applied()
        if style == "compact":
            return f"{render(self.initial)} --[{', '.join(rules)}]--> {render(self.final)}"

        elif style == "rules":
            return " -> ".join(rules) if rules else "(no rules applied)"

        elif style == "chain":
            parts = [render(self.initial)]
            for step in self.steps:
                parts.append(f"  --({step.rule})-->")
                parts.append(render(step.after))
            return "\n".join(parts)

        elif style == "verbose":
            lines = [f"Initial: {render(self.initial)}"]
            for i, step in enumerate(self.steps, 1):
                lines.append(f"  {i}. {step.explain(render)}: {render(step.after)}")
            lines.append(f"Final: {render(self.final)}")
            return "\n".join(lines)

        raise ValueError(f"Unknown format style: {style}")

    def __repr__(self) -> str:
        return self.format("verbose")

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self) -> Iterator[RewriteStep]:
        """Iterate over rewrite steps."""
        return iter(self.steps)

    def __bool__(self) -> bool:
        """True if any rewriting was done."""
        return len(self.steps) > 0

    def to_dict(self, render: Renderer = to_infix) -> Dict:
        """Convert derivation to dictionary for JSON serialization."""
        return {
            "initial": render(self.initial),
            "final": render(self.final),
            "steps": [step.to_dict(render) for step in self.steps],
            "step_count": len(self.steps),
        }

    def rule_counts(self) -> Dict[str, int]:
        """Count how many times each rule was applied."""
        counts: Dict[str, int] = {}
        for step in self.steps:
            counts[step.rule] = counts.get(step.rule, 0) + 1
        return counts

    def rules_applied(self) -> List[str]:
        """Get list of rule names in order of application."""
        return [step.rule for step in self.steps]

    def summary(self) -> str:
        """Get a brief summary of the derivation."""
        if not self.steps:
            return "No rewriting performed"
        counts = self.rule_counts()
        most_used = max(counts.items(), key=lambda x: x[1])
        return (f"{len(self.steps)} steps using {len(counts)} unique rules. "
                f"Most used: {most_used[0]} ({most_used[1]}x)")


# ============================================================
# Driver
# ============================================================

def derive(tree: Tree, max_passes: Optional[int] = None) -> Derivation:
    """
    Rewrite tree one rule at a time until it reaches a fixpoint.

    Args:
        tree: Expression or equation to simplify
        max_passes: Most trees the derivation may hold (default: config.MAX_PASSES)

    Returns:
        The derivation; its final tree is the simplified or solved result.

    Raises:
        StepwiseError: Any user-facing failure, with .derivation set to the
            steps taken before it occurred
        NonTerminatingRewrite: The cap was reached before a fixpoint
    """
    limit = config.MAX_PASSES if max_passes is None else max_passes
    if limit < 1:
        raise ValueError(f"max_passes must be at least 1, got {limit}")

    derivation = Derivation(tree)
    current = tree
    try:
        validate(tree)
        while True:
            result = rewrite(current)
            if not result.changed or result.tree == current:
                logger.debug("Fixpoint after %d steps: %s", len(derivation), to_infix(current))
                return derivation
            if len(derivation.history) >= limit:
                logger.warning("No fixpoint within %d passes for %s", limit, to_infix(tree))
                raise NonTerminatingRewrite(
                    f"No fixpoint reached within {limit} passes")
            logger.debug("Step %d (%s): %s", len(derivation) + 1, result.rule,
                         to_infix(result.tree))
            derivation.add_step(RewriteStep(result.rule, current, result.tree, result.subjects))
            current = result.tree
    except StepwiseError as e:
        e.derivation = derivation
        raise


class Simplifier:
    """
    Simplify expressions and solve equations step by step.

    Accepts trees or infix strings. Calling the simplifier returns the
    final tree, or (tree, derivation) with trace=True.

    Example:
        simplifier = Simplifier()
        simplifier("2*x+3*x")                    # => 5*x as a tree
        simplifier.solve("x/2=3")                # => x=6 as a tree
        simplifier.derive("x+0").rules_applied() # => ["plus-zero"]

        # A lower cap for experiments
        strict = Simplifier(max_passes=10)
    """

    def __init__(self, max_passes: Optional[int] = None):
        self.max_passes = config.MAX_PASSES if max_passes is None else max_passes
        if self.max_passes < 1:
            raise ValueError(f"max_passes must be at least 1, got {self.max_passes}")

    def _tree(self, expr: Union[str, Tree]) -> Tree:
        return parse(expr) if isinstance(expr, str) else expr

    def derive(self, expr: Union[str, Tree]) -> Derivation:
        return derive(self._tree(expr), self.max_passes)

    def simplify(self, expr: Union[str, Tree]) -> Tree:
        return self.derive(expr).final

    def solve(self, expr: Union[str, Tree]) -> Tree:
        """Solve an equation; raises InvalidEquation for plain expressions."""
        tree = self._tree(expr)
        if not is_equation(tree):
            raise InvalidEquation("Expected an equation such as 2*x+3=7")
        return self.derive(tree).final

    def __call__(self, expr: Union[str, Tree], trace: bool = False):
        derivation = self.derive(expr)
        if trace:
            return derivation.final, derivation
        return derivation.final

    def __repr__(self) -> str:
        return f"Simplifier(max_passes={self.max_passes})"


def simplify(expr: Union[str, Tree], max_passes: Optional[int] = None) -> Tree:
    """Simplify an expression (or solve an equation) and return the result."""
    return Simplifier(max_passes).simplify(expr)


def solve(expr: Union[str, Tree], max_passes: Optional[int] = None) -> Tree:
    """Solve an equation and return the final equation."""
    return Simplifier(max_passes).solve(expr)
