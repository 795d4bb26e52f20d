"""Tests for the infix, LaTeX and graph printers."""

from stepwise import E, parse, to_graph, to_infix, to_latex
from stepwise.printer import GRAPH_TITLE, display_literal
from stepwise.tree import ImaginaryUnit, Operand, X, equals, mul, num, power, sub


class TestDisplayLiteral:
    """Tests for literal display rounding."""

    def test_integers(self):
        """Integers print as integers."""
        assert display_literal(num(42)) == "42"
        assert display_literal(num(-3)) == "-3"

    def test_near_integers(self):
        """Values that round to an integer print as one."""
        assert display_literal(Operand("2.0000000001")) == "2"
        assert display_literal(Operand("179.9999999")) == "180"

    def test_fractions(self):
        """Other values print as stored."""
        assert display_literal(Operand("0.5")) == "0.5"
        assert display_literal(Operand("0.3333333333")) == "0.3333333333"


class TestInfix:
    """Tests for to_infix."""

    def test_no_spaces(self):
        """Infix has no spaces."""
        assert to_infix(E("2 * x + 3 = 7")) == "2*x+3=7"

    def test_precedence_parens(self):
        """Lower-precedence children are parenthesized."""
        assert to_infix(E("(x+1)*2")) == "(x+1)*2"
        assert to_infix(E("2*(x+1)")) == "2*(x+1)"
        assert to_infix(E("x+1*2")) == "x+1*2"

    def test_right_side_parens(self):
        """Non-associative operators keep right grouping."""
        assert to_infix(E("x-(x-1)")) == "x-(x-1)"
        assert to_infix(E("x/(2/x)")) == "x/(2/x)"
        assert to_infix(E("x-x-1")) == "x-x-1"

    def test_power_grouping(self):
        """Power groups to the right."""
        assert to_infix(E("x^2^3")) == "x^2^3"
        assert to_infix(E("(x^2)^3")) == "(x^2)^3"

    def test_unary(self):
        """Signs are parenthesized, functions use call syntax."""
        assert to_infix(E("-x")) == "(-x)"
        assert to_infix(E("sin(x)+1")) == "sin(x)+1"
        assert to_infix(E("sqrt(x^2)")) == "sqrt(x^2)"

    def test_negative_literals(self):
        """Negative literals are parenthesized on the right and as bases."""
        assert to_infix(mul(X, num(-3))) == "x*(-3)"
        assert to_infix(power(num(-2), num(2))) == "(-2)^2"
        assert to_infix(mul(num(-1), X)) == "-1*x"
        assert to_infix(equals(X, num(-3))) == "x=-3"
        assert to_infix(sub(X, num(-3))) == "x-(-3)"

    def test_modulus_under_multiply(self):
        """A modulus on the right of a product keeps its parentheses."""
        assert to_infix(E("2*(x%3)")) == "2*(x%3)"
        assert to_infix(E("(2*x)%3")) == "2*x%3"
        assert to_infix(E("2*(x/3)")) == "2*x/3"
        assert to_latex(E("2*(x%3)")) == r"2 \cdot \left(x \bmod 3\right)"

    def test_negated_sum(self):
        """A sign applied to a sum or product groups its operand."""
        assert to_infix(E("-(x+3)")) == "(-(x+3))"
        assert to_infix(E("-(x*2)")) == "(-(x*2))"
        assert to_infix(E("-x^2")) == "(-x^2)"

    def test_parses_back(self):
        """Printed text parses to the same tree."""
        for text in ["2*(x%3)", "(2*x)%3", "-(x+3)", "-(x-1)*2", "x-(x-1)",
                     "x/(2/x)", "(x^2)^3", "x^2^3", "2^(-x)", "sin(x+1)%(x*2)"]:
            tree = E(text)
            assert parse(to_infix(tree)) == tree

    def test_leaves(self):
        """Variable and imaginary unit."""
        assert to_infix(X) == "x"
        assert to_infix(ImaginaryUnit()) == "i"


class TestLatex:
    """Tests for to_latex."""

    def test_operators(self):
        """Binary operators."""
        assert to_latex(E("2*x+3")) == r"2 \cdot x + 3"
        assert to_latex(E("x%2")) == r"x \bmod 2"
        assert to_latex(E("x=1")) == "x = 1"

    def test_fraction_and_power(self):
        """Fractions and exponents use braces."""
        assert to_latex(E("x/2")) == r"\frac{x}{2}"
        assert to_latex(E("(x+1)/2")) == r"\frac{x + 1}{2}"
        assert to_latex(E("x^2")) == "x^{2}"
        assert to_latex(E("(x+1)^2")) == r"\left(x + 1\right)^{2}"

    def test_functions(self):
        """Functions."""
        assert to_latex(E("sqrt(x)")) == r"\sqrt{x}"
        assert to_latex(E("abs(x)")) == r"\left|x\right|"
        assert to_latex(E("sin(x)")) == r"\sin\left(x\right)"
        assert to_latex(E("ceil(x)")) == r"\operatorname{ceil}\left(x\right)"

    def test_grouping(self):
        """Lower-precedence children are grouped."""
        assert to_latex(E("2*(x+1)")) == r"2 \cdot \left(x + 1\right)"
        assert to_latex(E("-(x+1)")) == r"-\left(x + 1\right)"
        assert to_latex(E("-x")) == "-x"


class TestGraph:
    """Tests for the debug graph."""

    def test_graph(self):
        """One node per line with connectors."""
        assert to_graph(E("2*x+3")) == "\n".join([
            GRAPH_TITLE,
            "+",
            "|-- *",
            "|   |-- 2",
            "|   `-- x",
            "`-- 3",
        ])

    def test_unary_graph(self):
        """Unary nodes have a single child."""
        assert to_graph(E("sqrt(x)")).splitlines()[1:] == ["sqrt", "`-- x"]

    def test_leaf_graph(self):
        """A leaf is just the title and the label."""
        assert to_graph(X) == f"{GRAPH_TITLE}\nx"
