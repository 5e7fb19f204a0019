"""Condition trees: node types, shorthand parser, and matcher."""
from __future__ import annotations

from aumos_abilities.conditions.matcher import matches
from aumos_abilities.conditions.nodes import (
    And,
    Comparison,
    Condition,
    Custom,
    Equality,
    Malformed,
    Membership,
    Nested,
    Not,
    Or,
    is_malformed,
    walk,
)
from aumos_abilities.conditions.operands import MISSING, resolve_path
from aumos_abilities.conditions.parser import parse_conditions

__all__ = [
    "And",
    "Comparison",
    "Condition",
    "Custom",
    "Equality",
    "MISSING",
    "Malformed",
    "Membership",
    "Nested",
    "Not",
    "Or",
    "is_malformed",
    "matches",
    "parse_conditions",
    "resolve_path",
    "walk",
]
