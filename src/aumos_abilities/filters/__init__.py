"""Rule-to-filter translation and the neutral predicate AST."""
from __future__ import annotations

from aumos_abilities.filters.ast import (
    ALWAYS_FALSE,
    ALWAYS_TRUE,
    AllOf,
    AlwaysFalse,
    AlwaysTrue,
    AnyOf,
    Compare,
    Exists,
    Member,
    Negation,
    Predicate,
    all_of,
    any_of,
    negate,
)
from aumos_abilities.filters.translator import filter_for, translate_condition

__all__ = [
    "ALWAYS_FALSE",
    "ALWAYS_TRUE",
    "AllOf",
    "AlwaysFalse",
    "AlwaysTrue",
    "AnyOf",
    "Compare",
    "Exists",
    "Member",
    "Negation",
    "Predicate",
    "all_of",
    "any_of",
    "filter_for",
    "negate",
    "translate_condition",
]
