"""Parse mapping-shorthand conditions into condition trees.

The shorthand follows the Mongo-style query objects that capability
libraries use for rule conditions:

::

    {
        "owner_id": "42",                   # Equality
        "status": {"$ne": "locked"},        # negated Equality
        "role": {"$in": ["editor", "admin"]},
        "age": {"$gte": 18, "$lt": 65},     # two Comparisons, AND-ed
        "profile": {"country": "NZ"},       # Nested (no $-keys)
        "$or": [{"draft": False}, {"author_id": "42"}],
        "$not": {"archived": True},
        "score": {"$not": {"$gt": 5}},      # negated operator expression
    }

Several keys in one mapping are AND-ed.  A field-level ``$not`` whose
operand holds only comparison operators negates them on that field; any
other field-level ``$not``, ``$and`` or ``$or`` applies to the sub-object.  A callable value becomes a
:class:`~aumos_abilities.conditions.nodes.Custom` node.

Parsing never raises for unknown operators or bad operand shapes.  The
offending fragment becomes a :class:`~aumos_abilities.conditions.nodes.Malformed`
node and a warning is logged, so one broken rule cannot take down the
whole rule set.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping

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
)

logger = logging.getLogger(__name__)

_LOGICAL_KEYS: frozenset[str] = frozenset({"$and", "$or", "$not"})


def parse_conditions(raw: Mapping[str, object] | Condition | None) -> Condition | None:
    """Parse a condition mapping into a condition tree.

    Parameters
    ----------
    raw:
        A shorthand mapping, an already-built condition node, or ``None``.

    Returns
    -------
    Condition | None
        ``None`` for ``None`` or an empty mapping (the rule is
        unconditional), otherwise the parsed tree.
    """
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        if _is_node(raw):
            return raw  # type: ignore[return-value]
        return _malformed(raw, "conditions must be a mapping")
    if not raw:
        return None
    return _parse_mapping(raw)


def _is_node(value: object) -> bool:
    return isinstance(
        value,
        (Equality, Membership, Comparison, And, Or, Not, Nested, Custom, Malformed),
    )


def _malformed(raw: object, message: str) -> Malformed:
    logger.warning("Malformed condition %r: %s", raw, message)
    return Malformed(raw=raw, message=message)


def _combine(parts: list[Condition]) -> Condition:
    if len(parts) == 1:
        return parts[0]
    return And(tuple(parts))


def _parse_mapping(raw: Mapping[str, object]) -> Condition:
    parts: list[Condition] = []
    for key, value in raw.items():
        if not isinstance(key, str) or not key:
            parts.append(_malformed(key, "condition keys must be non-empty strings"))
        elif key in _LOGICAL_KEYS:
            parts.append(_parse_logical(key, value))
        elif key.startswith("$"):
            parts.append(_malformed({key: value}, f"unknown logical operator {key!r}"))
        else:
            parts.append(_parse_field(key, value))
    return _combine(parts)


def _parse_logical(key: str, value: object) -> Condition:
    if key == "$not":
        if _is_node(value):
            return Not(value)  # type: ignore[arg-type]
        if not isinstance(value, Mapping) or not value:
            return _malformed({key: value}, "$not expects a non-empty mapping")
        return Not(_parse_mapping(value))

    if not isinstance(value, (list, tuple)) or not value:
        return _malformed({key: value}, f"{key} expects a non-empty list")
    children: list[Condition] = []
    for item in value:
        if isinstance(item, Mapping) and item:
            children.append(_parse_mapping(item))
        elif _is_node(item):
            children.append(item)  # type: ignore[arg-type]
        else:
            children.append(_malformed(item, f"{key} items must be non-empty mappings"))
    return And(tuple(children)) if key == "$and" else Or(tuple(children))


def _parse_field(path: str, value: object) -> Condition:
    if callable(value) and not _is_node(value):
        return Custom(path=path, predicate=value, name=getattr(value, "__name__", "custom"))
    if _is_node(value):
        return Nested(path=path, condition=value)  # type: ignore[arg-type]
    if isinstance(value, Mapping):
        if not value:
            return _malformed({path: value}, "empty mapping has no meaning")
        keys = list(value.keys())
        dollar_keys = [k for k in keys if isinstance(k, str) and k.startswith("$")]
        if not dollar_keys:
            return Nested(path=path, condition=_parse_mapping(value))
        if len(dollar_keys) != len(keys):
            return _malformed(
                {path: value}, "cannot mix operators and nested attributes"
            )
        return _combine([_parse_operator(path, op, operand) for op, operand in value.items()])
    return Equality(path=path, value=value)


def _is_operator_expression(value: object) -> bool:
    return (
        isinstance(value, Mapping)
        and bool(value)
        and all(
            isinstance(key, str) and key.startswith("$") and key not in _LOGICAL_KEYS
            for key in value
        )
    )


def _parse_operator(path: str, operator: str, operand: object) -> Condition:
    match operator:
        case "$eq":
            return Equality(path=path, value=operand)
        case "$ne":
            return Equality(path=path, value=operand, negated=True)
        case "$in" | "$nin":
            if not isinstance(operand, (list, tuple, set, frozenset)):
                return _malformed(
                    {path: {operator: operand}}, f"{operator} expects a list of values"
                )
            return Membership(
                path=path, values=tuple(operand), negated=operator == "$nin"
            )
        case "$gt" | "$gte" | "$lt" | "$lte":
            if isinstance(operand, (Mapping, list, tuple, set)) or operand is None:
                return _malformed(
                    {path: {operator: operand}}, f"{operator} expects a scalar operand"
                )
            return Comparison(path=path, operator=operator[1:], value=operand)
        case "$not" if _is_operator_expression(operand):
            return Not(_parse_field(path, operand))
        case "$and" | "$or" | "$not":
            return Nested(path=path, condition=_parse_logical(operator, operand))
        case _:
            return _malformed({path: {operator: operand}}, f"unknown operator {operator!r}")
