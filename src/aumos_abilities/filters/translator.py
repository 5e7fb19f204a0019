"""Translate a rule set into a query predicate for bulk-authorized reads.

:func:`filter_for` mirrors the decision engine's last-match-wins precedence,
so for every instance ``i`` where translation succeeds::

    can(ability, action, subject, i) == filter_for(ability, action, subject).matches(i)

Rules are walked from last to first.  Conditions of later deny rules become
negated guards on every earlier allow rule.  An unconditional rule ends the
walk: everything registered before it is shadowed and never translated.
Rules with malformed conditions never match in the decision engine, so they
are skipped here too.

Example
-------
::

    ability = (
        AbilityBuilder()
        .allow("read", "Article", {"published": True})
        .allow("read", "Article", {"author_id": "42"})
        .deny("read", "Article", {"status": "removed"})
        .build()
    )
    filter_for(ability, "read", "Article").to_dict()
    # {"op": "or", "children": [
    #     {"op": "and", "children": [
    #         {"op": "not", "child": {"op": "eq", "path": "status", "value": "removed"}},
    #         {"op": "eq", "path": "author_id", "value": "42"}]},
    #     {"op": "and", "children": [
    #         {"op": "not", "child": {"op": "eq", "path": "status", "value": "removed"}},
    #         {"op": "eq", "path": "published", "value": True}]}]}
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

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
from aumos_abilities.errors import UntranslatableRuleError
from aumos_abilities.filters.ast import (
    Compare,
    Exists,
    Member,
    Predicate,
    all_of,
    any_of,
    negate,
)
from aumos_abilities.rules import Rule

if TYPE_CHECKING:
    from aumos_abilities.ability import Ability

logger = logging.getLogger(__name__)


class _Untranslatable(Exception):
    """Internal signal carrying the reason a node has no predicate form."""


def translate_condition(condition: Condition, prefix: str = "") -> Predicate:
    """Translate a condition tree into a predicate.

    Parameters
    ----------
    condition:
        The tree to translate.
    prefix:
        Path prefix applied to every attribute path (used to flatten
        :class:`Nested` nodes).

    Raises
    ------
    UntranslatableRuleError
        If the tree contains a :class:`Custom` or :class:`Malformed` node.
    """
    try:
        return _translate(condition, prefix)
    except _Untranslatable as exc:
        raise UntranslatableRuleError(str(exc)) from None


def _translate(condition: Condition, prefix: str) -> Predicate:
    match condition:
        case Equality(path=path, value=value, negated=negated):
            return Compare(prefix + path, "ne" if negated else "eq", value)
        case Membership(path=path, values=values, negated=negated):
            if not isinstance(values, tuple):
                raise _Untranslatable(f"membership on {prefix + path!r} has no value list")
            return Member(prefix + path, values, negated)
        case Comparison(path=path, operator=operator, value=value):
            return Compare(prefix + path, operator, value)
        case And(children=children):
            return all_of(*(_translate(child, prefix) for child in children))
        case Or(children=children):
            return any_of(*(_translate(child, prefix) for child in children))
        case Not(child=child):
            return negate(_translate(child, prefix))
        case Nested(path=path, condition=inner):
            full_path = prefix + path
            return all_of(Exists(full_path), _translate(inner, full_path + "."))
        case Custom(path=path, name=name):
            raise _Untranslatable(
                f"custom comparator {name!r} on {prefix + path!r} has no query form"
            )
        case Malformed(message=message):
            raise _Untranslatable(f"malformed condition ({message})")
        case _:
            raise _Untranslatable(f"unsupported node {type(condition).__name__}")


def _translate_rule(rule: Rule, conditions: Condition) -> Predicate:
    try:
        return translate_condition(conditions)
    except UntranslatableRuleError as exc:
        raise UntranslatableRuleError(
            f"Rule '{rule.describe()}' cannot be translated: {exc}", rule=rule
        ) from None


def filter_for(ability: Ability, action: str, subject_type: str) -> Predicate:
    """Build the predicate selecting every instance ``action`` is allowed on.

    Returns
    -------
    Predicate
        ``ALWAYS_TRUE`` when access is unrestricted, ``ALWAYS_FALSE`` when
        nothing is allowed, otherwise a composite predicate.

    Raises
    ------
    UntranslatableRuleError
        If a rule that can influence the result has a condition with no
        predicate form.  Fall back to per-instance checks in that case.
    """
    rules = list(ability.rule_set.rules_for(action, subject_type))
    clauses: list[Predicate] = []
    guards: list[Predicate] = []

    for rule in reversed(rules):
        if rule.conditions is None:
            if rule.allows:
                clauses.append(all_of(*guards))
            break
        if rule.is_malformed:
            logger.warning("Skipping rule with malformed conditions: %s", rule.describe())
            continue
        condition = _translate_rule(rule, rule.conditions)
        if rule.allows:
            clauses.append(all_of(*guards, condition))
        else:
            guards.append(negate(condition))

    predicate = any_of(*clauses)
    logger.debug(
        "Filter for action=%s subject=%s built from %d rules: %s",
        action,
        subject_type,
        len(rules),
        type(predicate).__name__,
    )
    return predicate
