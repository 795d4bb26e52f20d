"""Tests for the fixpoint driver, derivations and the Simplifier facade."""

import logging

import pytest

from stepwise import (
    E,
    Derivation,
    DivisionByZero,
    InvalidEquation,
    NonTerminatingRewrite,
    ParseError,
    RewriteStep,
    Simplifier,
    StepwiseError,
    derive,
    simplify,
    to_infix,
    to_latex,
)
from stepwise.tree import X, add, num


class TestDerive:
    """Tests for the fixpoint driver."""

    def test_history(self):
        """History holds the initial tree and every successor."""
        derivation = derive(E("2*x+3=7"))
        assert [to_infix(t) for t in derivation.history] == [
            "2*x+3=7", "2*x=7-3", "2*x=4", "x=4/2", "x=2",
        ]
        assert derivation.initial == E("2*x+3=7")
        assert derivation.final == E("x=2")

    def test_fixpoint_has_no_steps(self):
        """A simplified tree gives a one-tree history."""
        derivation = derive(E("5*x"))
        assert derivation.history == [E("5*x")]
        assert len(derivation) == 0
        assert not derivation

    def test_consecutive_trees_differ(self):
        """Every step changes the tree."""
        history = derive(E("x/(x+1)+2/(x+1)")).history
        for before, after in zip(history, history[1:]):
            assert before != after

    def test_steps_link_history(self):
        """Each step starts where the previous one ended."""
        derivation = derive(E("1+2+3+4"))
        assert len(derivation.history) == 4
        assert derivation.final == num(10)
        for step, before in zip(derivation.steps, derivation.history):
            assert step.before == before

    def test_iteration_cap(self):
        """Hitting the cap raises with the partial derivation."""
        with pytest.raises(NonTerminatingRewrite) as info:
            derive(E("1+2+3+4"), max_passes=2)
        assert len(info.value.derivation.history) == 2
        assert info.value.step == 1

    def test_cap_is_exact(self):
        """A cap equal to the history length is enough."""
        assert derive(E("1+2+3+4"), max_passes=4).final == num(10)

    def test_invalid_cap(self):
        """Caps below one are rejected."""
        with pytest.raises(ValueError):
            derive(X, max_passes=0)

    def test_error_carries_derivation(self):
        """Errors report the steps taken before them."""
        with pytest.raises(DivisionByZero) as info:
            derive(E("1+2+5/0"))
        assert info.value.step == 1
        assert info.value.derivation.final == add(num(3), E("5/0"))

    def test_invalid_equation_before_rewriting(self):
        """Misplaced equal operators fail without steps."""
        with pytest.raises(InvalidEquation) as info:
            derive(E("x=x=2"))
        assert info.value.step == 0

    def test_logging(self, caplog):
        """Applied rules are logged at DEBUG."""
        with caplog.at_level(logging.DEBUG, logger="stepwise.engine"):
            derive(E("x+0"))
        assert "plus-zero" in caplog.text

    def test_cap_logged(self, caplog):
        """Hitting the cap is a warning."""
        with caplog.at_level(logging.WARNING, logger="stepwise.engine"):
            with pytest.raises(NonTerminatingRewrite):
                derive(E("1+2+3+4"), max_passes=2)
        assert "No fixpoint" in caplog.text


class TestProperties:
    """Properties that hold across many inputs."""

    EXAMPLES = [
        "2*x+3=7", "2*x+3*x", "2*x+3=x", "x+3=2*x", "sqrt(x^2)", "x^2=9",
        "sqrt(-4)", "x/(x+1)+2/(x+1)", "x*x*x", "i*i", "3-x=5", "2/x=4",
    ]

    @pytest.mark.parametrize("text", EXAMPLES)
    def test_idempotence(self, text):
        """A converged result is a fixpoint."""
        result = simplify(text)
        assert derive(result).history == [result]

    @pytest.mark.parametrize("text", ["2*x+3*x", "sqrt(x^2)", "x*x", "x/(x+1)"])
    def test_identity_laws(self, text):
        """Adding zero or multiplying by one changes nothing in the end."""
        expected = simplify(text)
        for wrapped in (f"({text})+0", f"0+({text})", f"({text})*1", f"1*({text})"):
            assert simplify(wrapped) == expected

    def test_history_never_exceeds_cap(self):
        """The history is bounded by the cap."""
        for text in self.EXAMPLES:
            assert len(derive(E(text)).history) <= 80


class TestDerivation:
    """Tests for derivation formatting and statistics."""

    def setup_method(self):
        """Solve a small equation."""
        self.derivation = derive(E("2*x+3=7"))

    def test_explanations(self):
        """One explanation per tree in the history."""
        assert self.derivation.explanations() == [
            "Original equation",
            "Subtract 3 from both sides",
            "Evaluate 7-3 = 4",
            "Divide both sides by 2",
            "Evaluate 4/2 = 2",
        ]

    def test_expression_explanations(self):
        """Expressions start with 'Original expression'."""
        assert derive(E("x+0")).explanations() == [
            "Original expression",
            "Remove redundant plus zero",
        ]

    def test_explanations_with_latex(self):
        """Subjects are rendered with the given printer."""
        explanations = derive(E("x/2=3")).explanations(to_latex)
        assert "Multiply both sides by 2" in explanations
        assert r"Evaluate 3 \cdot 2 = 6" in explanations

    def test_format_verbose(self):
        """Verbose format numbers the steps."""
        verbose = self.derivation.format("verbose")
        lines = verbose.splitlines()
        assert lines[0] == "Initial: 2*x+3=7"
        assert lines[1] == "  1. Subtract 3 from both sides: 2*x=7-3"
        assert lines[-1] == "Final: x=2"
        assert repr(self.derivation) == verbose

    def test_format_compact(self):
        """Compact format is a single line."""
        compact = self.derivation.format("compact")
        assert compact.startswith("2*x+3=7 --[subtract-both-sides, evaluate")
        assert compact.endswith("]--> x=2")
        assert compact.count("\n") == 0

    def test_format_rules(self):
        """Rules format lists rule names."""
        assert self.derivation.format("rules") == \
            "subtract-both-sides -> evaluate -> divide-both-sides -> evaluate"
        assert derive(X).format("rules") == "(no rules applied)"

    def test_format_chain(self):
        """Chain format links trees by rule names."""
        chain = self.derivation.format("chain")
        assert chain.splitlines()[:3] == ["2*x+3=7", "  --(subtract-both-sides)-->", "2*x=7-3"]

    def test_format_unknown(self):
        """Unknown styles are rejected."""
        with pytest.raises(ValueError):
            self.derivation.format("fancy")

    def test_rule_counts(self):
        """Rules are counted."""
        assert self.derivation.rule_counts() == {
            "subtract-both-sides": 1,
            "evaluate": 2,
            "divide-both-sides": 1,
        }
        assert self.derivation.rules_applied()[0] == "subtract-both-sides"

    def test_summary(self):
        """Summary names the most used rule."""
        assert self.derivation.summary() == \
            "4 steps using 3 unique rules. Most used: evaluate (2x)"
        assert derive(X).summary() == "No rewriting performed"

    def test_to_dict(self):
        """Derivations serialize to plain data."""
        data = self.derivation.to_dict()
        assert data["initial"] == "2*x+3=7"
        assert data["final"] == "x=2"
        assert data["step_count"] == 4
        assert data["steps"][0] == {
            "rule": "subtract-both-sides",
            "category": "solve",
            "explanation": "Subtract 3 from both sides",
            "before": "2*x+3=7",
            "after": "2*x=7-3",
        }

    def test_iteration(self):
        """Derivations iterate over steps."""
        steps = list(self.derivation)
        assert len(steps) == len(self.derivation) == 4
        assert all(isinstance(step, RewriteStep) for step in steps)
        assert repr(steps[0]) == "subtract-both-sides: 2*x+3=7 -> 2*x=7-3"

    def test_empty_derivation(self):
        """A derivation without steps ends where it starts."""
        derivation = Derivation(X)
        assert derivation.final == X
        assert derivation.history == [X]


class TestSimplifier:
    """Tests for the Simplifier facade."""

    def setup_method(self):
        """Create a simplifier."""
        self.simplifier = Simplifier()

    def test_call(self):
        """Calling returns the final tree."""
        assert self.simplifier("2*x+3*x") == E("5*x")

    def test_call_with_trace(self):
        """trace=True also returns the derivation."""
        result, derivation = self.simplifier("2*x+3*x", trace=True)
        assert result == E("5*x")
        assert derivation.rules_applied() == ["factor-out", "evaluate", "literal-first"]

    def test_accepts_trees(self):
        """Trees are used as they are."""
        assert self.simplifier.simplify(add(X, num(0))) == X

    def test_solve(self):
        """solve requires an equation."""
        assert self.simplifier.solve("x/2=3") == E("x=6")
        with pytest.raises(InvalidEquation):
            self.simplifier.solve("x/2")

    def test_max_passes(self):
        """The cap is configurable."""
        strict = Simplifier(max_passes=2)
        with pytest.raises(NonTerminatingRewrite):
            strict("1+2+3+4")
        assert repr(strict) == "Simplifier(max_passes=2)"
        with pytest.raises(ValueError):
            Simplifier(max_passes=0)

    def test_parse_errors(self):
        """Syntax errors are StepwiseErrors."""
        with pytest.raises(ParseError):
            self.simplifier("2+")
        with pytest.raises(StepwiseError):
            self.simplifier("(x")

    def test_module_function(self):
        """simplify is a shortcut."""
        assert simplify("0.1+0.2") == num("0.3")
        assert to_infix(simplify("x+(-x)")) == "0"
