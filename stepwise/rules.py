"""
Rule registry and rewrite results.

Every rewrite pass returns one of two values:

    Unchanged(tree)                   # no rule applied anywhere in tree
    Changed(tree, rule, subjects)     # exactly one rule applied

``rule`` names an entry in RULES, whose description is a template filled
with the rendered ``subjects`` when a step is explained:

    RULES["subtract-both-sides"].explain((num(3),), to_infix)
    # => "Subtract 3 from both sides"
"""

from dataclasses import dataclass, replace
from typing import Any, Callable, ClassVar, Dict, Optional, Sequence, Tuple, Union

from .tree import Tree


class RuleMetadata:
    """Name, description template and category of one rewrite rule."""

    __slots__ = ("name", "description", "category")

    def __init__(self, name: str, description: str, category: str):
        self.name = name
        self.description = description
        self.category = category

    def explain(self, subjects: Sequence[Any], render: Callable[[Tree], str]) -> str:
        """Fill the description template with rendered subjects."""
        texts = [s if isinstance(s, str) else render(s) for s in subjects]
        return self.description.format(*texts)

    def __repr__(self) -> str:
        return f"@{self.name} \"{self.description}\" [{self.category}]"


RULES: Dict[str, RuleMetadata] = {}


def register(name: str, description: str, category: str) -> RuleMetadata:
    """Add a rule to the registry. Names must be unique."""
    if name in RULES:
        raise ValueError(f"Rule already registered: {name}")
    metadata = RuleMetadata(name, description, category)
    RULES[name] = metadata
    return metadata


def rules_in(category: str) -> Dict[str, RuleMetadata]:
    """Registered rules of one category, in registration order."""
    return {name: meta for name, meta in RULES.items() if meta.category == category}


# ============================================================
# Rewrite results
# ============================================================

@dataclass(frozen=True)
class Unchanged:
    tree: Tree

    changed: ClassVar[bool] = False


@dataclass(frozen=True)
class Changed:
    tree: Tree
    rule: str
    subjects: Tuple[Any, ...] = ()

    changed: ClassVar[bool] = True

    @property
    def metadata(self) -> RuleMetadata:
        return RULES[self.rule]

    def rebuild(self, tree: Tree) -> "Changed":
        """Same step, carried up into an enclosing tree."""
        return replace(self, tree=tree)


Rewrite = Union[Unchanged, Changed]

# What an individual rule returns: the replacement tree and its subjects
Match = Optional[Tuple[Tree, Tuple[Any, ...]]]


def to(tree: Tree, *subjects: Any) -> Tuple[Tree, Tuple[Any, ...]]:
    """Shorthand used by rules to report a match."""
    return tree, subjects
