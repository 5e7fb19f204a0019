"""Condition tree node types.

A condition is a recursive tagged variant.  Every node is an immutable
dataclass; the matcher and the filter translator dispatch on node type with
``match`` statements.

Example
-------
::

    from aumos_abilities.conditions.nodes import And, Comparison, Equality

    adult_member = And(
        (
            Equality("status", "active"),
            Comparison("age", "gte", 18),
        )
    )
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from aumos_abilities.conditions.operands import COMPARISON_OPERATORS


@dataclass(frozen=True)
class Equality:
    """``path == value`` (or ``!=`` when ``negated``)."""

    path: str
    value: object
    negated: bool = False


@dataclass(frozen=True)
class Membership:
    """``path in values`` (or ``not in`` when ``negated``).

    Lists and sets are stored as a tuple.  Any other ``values`` operand is
    kept as given and marks the node as malformed.
    """

    path: str
    values: tuple[object, ...]
    negated: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.values, (list, set, frozenset)):
            object.__setattr__(self, "values", tuple(self.values))


@dataclass(frozen=True)
class Comparison:
    """Ordering comparison; ``operator`` is one of ``gt``, ``gte``, ``lt``, ``lte``."""

    path: str
    operator: str
    value: object

    def __post_init__(self) -> None:
        if self.operator not in COMPARISON_OPERATORS:
            raise ValueError(
                f"Comparison.operator must be one of {sorted(COMPARISON_OPERATORS)}; "
                f"got {self.operator!r}."
            )


@dataclass(frozen=True)
class And:
    children: tuple[Condition, ...]


@dataclass(frozen=True)
class Or:
    children: tuple[Condition, ...]


@dataclass(frozen=True)
class Not:
    child: Condition


@dataclass(frozen=True)
class Nested:
    """Match ``condition`` against the sub-object found at ``path``.

    Paths inside ``condition`` are relative to that sub-object.  The node is
    ``False`` when ``path`` does not resolve.
    """

    path: str
    condition: Condition


@dataclass(frozen=True)
class Custom:
    """A caller-supplied comparator applied to the value at ``path``.

    Evaluated per instance by the matcher.  It has no predicate AST form,
    so translating a rule that carries one fails.
    """

    path: str
    predicate: Callable[[object], bool]
    name: str = "custom"


@dataclass(frozen=True)
class Malformed:
    """Placeholder for a condition fragment the parser could not understand.

    Never matches and is never translatable.  Keeping it in the tree lets
    the owning rule degrade to "does not apply" instead of failing the
    build.
    """

    raw: object
    message: str


Condition = (
    Equality | Membership | Comparison | And | Or | Not | Nested | Custom | Malformed
)


def walk(condition: Condition):
    """Yield ``condition`` and every descendant node, depth first."""
    yield condition
    match condition:
        case And(children=children) | Or(children=children):
            for child in children:
                yield from walk(child)
        case Not(child=child):
            yield from walk(child)
        case Nested(condition=inner):
            yield from walk(inner)


def is_malformed(condition: Condition) -> bool:
    """Return whether ``condition`` itself can never be evaluated.

    Only the node is inspected, not its descendants; combine with
    :func:`walk` to check a whole tree.
    """
    match condition:
        case Malformed():
            return True
        case Membership(values=values):
            return not isinstance(values, tuple)
    return False
