#!/usr/bin/env python3
"""
Stepwise Feature Demonstration

This script walks through the major features of the stepwise library.
"""

from stepwise import (
    Simplifier, StepwiseError, E,
    derive, to_infix, to_latex, to_graph, rules_in,
)


def section(title: str):
    """Print a section header."""
    print(f"\n{'='*60}")
    print(f" {title}")
    print('='*60)


def demo_simplify():
    """Demonstrate expression simplification."""
    section("Simplifying Expressions")

    simplifier = Simplifier()
    examples = [
        "2x+3x",
        "x*x*x",
        "x/(x+1)+2/(x+1)",
        "sqrt(x^2)",
        "0.1+0.2",
        "sqrt(-4)",
    ]

    for expr_str in examples:
        result = simplifier(expr_str)
        print(f"  {expr_str} => {to_infix(result)}")


def demo_solve():
    """Demonstrate equation solving."""
    section("Solving Equations")

    simplifier = Simplifier()
    examples = [
        ("2x+3=7", "linear"),
        ("3=x+1", "x on the right"),
        ("2x+3=x", "x on both sides"),
        ("2/x=4", "x in the denominator"),
        ("x^2=9", "principal root"),
        ("sin(x)=0.5", "inverse function"),
    ]

    for expr_str, desc in examples:
        result = simplifier.solve(expr_str)
        print(f"  {expr_str} ({desc}) => {to_infix(result)}")


def demo_derivation():
    """Demonstrate derivation formatting."""
    section("Derivations")

    derivation = derive(E("2x+3=7"))

    print("  Verbose format (default):")
    for line in str(derivation).split('\n'):
        print(f"    {line}")

    print(f"\n  Compact: {derivation.format('compact')}")
    print(f"  Rules: {derivation.format('rules')}")
    print(f"  Summary: {derivation.summary()}")

    print("\n  Explanations:")
    for tree, explanation in zip(derivation.history, derivation.explanations()):
        print(f"    {explanation:32} {to_infix(tree)}")


def demo_printers():
    """Demonstrate the three printers."""
    section("Printers")

    tree = E("(x+1)/2 + sqrt(abs(x))")
    print(f"  Infix: {to_infix(tree)}")
    print(f"  LaTeX: {to_latex(tree)}")
    print()
    for line in to_graph(E("2x+3")).split('\n'):
        print(f"  {line}")


def demo_errors():
    """Demonstrate error reporting."""
    section("Errors")

    simplifier = Simplifier()
    examples = ["5/0", "x=x=2", "arcsin(2)", "(x+1", "1+2+x/0"]

    for expr_str in examples:
        try:
            simplifier(expr_str)
        except StepwiseError as e:
            after = f" after {e.step} steps" if e.step is not None else ""
            print(f"  {expr_str}: {type(e).__name__}: {e}{after}")


def demo_rules():
    """Demonstrate the rule registry."""
    section("Rule Registry")

    for meta in rules_in("solve").values():
        print(f"  {meta!r}")


def main():
    """Run all demonstrations."""
    print("Stepwise - step-by-step algebra")
    print("Feature Demonstration")

    demo_simplify()
    demo_solve()
    demo_derivation()
    demo_printers()
    demo_errors()
    demo_rules()

    print("\n" + "="*60)
    print(" Demo complete!")
    print("="*60)


if __name__ == "__main__":
    main()
