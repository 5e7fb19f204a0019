"""Leaf-level semantics shared by the condition matcher and the predicate AST.

Both :mod:`aumos_abilities.conditions.matcher` and
:mod:`aumos_abilities.filters.ast` resolve attribute paths and compare values
through the functions below, so a point check and a translated filter can
never disagree on a single leaf.
"""
from __future__ import annotations

from collections.abc import Mapping

# Values we never descend into via attribute lookup; ``getattr("abc", "upper")``
# would otherwise resolve to a bound method.
_OPAQUE_TYPES: tuple[type, ...] = (
    str,
    bytes,
    int,
    float,
    complex,
    bool,
    list,
    tuple,
    set,
    frozenset,
    type(None),
)

COMPARISON_OPERATORS: frozenset[str] = frozenset({"gt", "gte", "lt", "lte"})
COMPARE_OPERATORS: frozenset[str] = frozenset({"eq", "ne"}) | COMPARISON_OPERATORS


class _Missing:
    """Sentinel for an attribute path that does not resolve."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


def resolve_path(instance: object, path: str) -> object:
    """Resolve a dot-separated attribute path against an instance.

    Mappings are looked up by key, other objects by attribute.  Returns
    :data:`MISSING` as soon as one segment does not resolve.  A present
    ``None`` value is *not* missing.
    """
    current: object = instance
    for part in path.split("."):
        if isinstance(current, Mapping):
            if part not in current:
                return MISSING
            current = current[part]
        elif isinstance(current, _OPAQUE_TYPES):
            return MISSING
        else:
            current = getattr(current, part, MISSING)
            if current is MISSING:
                return MISSING
    return current


def compare(operator: str, actual: object, expected: object) -> bool:
    """Apply a comparison operator to a resolved value.

    A :data:`MISSING` actual value makes every operator ``False``, including
    ``ne``.  Ordering operators on incomparable types are ``False``.
    """
    if actual is MISSING:
        return False
    match operator:
        case "eq":
            return bool(actual == expected)
        case "ne":
            return bool(actual != expected)
        case "gt" | "gte" | "lt" | "lte":
            if actual is None or expected is None:
                return False
            try:
                if operator == "gt":
                    return bool(actual > expected)  # type: ignore[operator]
                if operator == "gte":
                    return bool(actual >= expected)  # type: ignore[operator]
                if operator == "lt":
                    return bool(actual < expected)  # type: ignore[operator]
                return bool(actual <= expected)  # type: ignore[operator]
            except TypeError:
                return False
        case _:
            raise ValueError(f"Unknown comparison operator {operator!r}.")


def is_member(actual: object, values: tuple[object, ...], negated: bool = False) -> bool:
    """Return whether ``actual`` is (or, negated, is not) one of ``values``."""
    if actual is MISSING:
        return False
    found = actual in values
    return not found if negated else found
