"""Ability: a frozen rule set bound to one principal.

An ability is built once per request (usually through
:class:`~aumos_abilities.builder.AbilityBuilder`) and thrown away afterwards.
It is read-only, so concurrent checks for the same principal may share it;
it must never be shared between principals.
"""
from __future__ import annotations

from collections.abc import Iterator

from aumos_abilities import engine
from aumos_abilities.engine import Decision, FieldPermission
from aumos_abilities.filters.ast import Predicate
from aumos_abilities.filters.translator import filter_for
from aumos_abilities.principal import Principal
from aumos_abilities.rules import Rule, RuleSet


class Ability:
    """Answers authorization questions for one principal.

    Parameters
    ----------
    rule_set:
        The principal's rules.  It is frozen on construction if the caller
        has not done so already.
    principal:
        The principal the rules were built for, if any.
    """

    def __init__(self, rule_set: RuleSet, principal: Principal | None = None) -> None:
        self._rule_set = rule_set.freeze()
        self._principal = principal

    @property
    def rule_set(self) -> RuleSet:
        return self._rule_set

    @property
    def principal(self) -> Principal | None:
        return self._principal

    def rules_for(self, action: str, subject_type: str) -> Iterator[Rule]:
        return self._rule_set.rules_for(action, subject_type)

    def can(self, action: str, subject_type: str, instance: object | None = None) -> bool:
        return engine.can(self, action, subject_type, instance)

    def cannot(self, action: str, subject_type: str, instance: object | None = None) -> bool:
        return not engine.can(self, action, subject_type, instance)

    def decide(
        self, action: str, subject_type: str, instance: object | None = None
    ) -> Decision:
        return engine.decide(self, action, subject_type, instance)

    def relevant_rule(
        self, action: str, subject_type: str, instance: object | None = None
    ) -> Rule | None:
        return engine.relevant_rule(self, action, subject_type, instance)

    def authorize(
        self, action: str, subject_type: str, instance: object | None = None
    ) -> Decision:
        """Raise :class:`~aumos_abilities.errors.ForbiddenError` unless allowed."""
        return engine.authorize(self, action, subject_type, instance)

    def permitted_fields(
        self, action: str, subject_type: str, instance: object | None = None
    ) -> FieldPermission:
        return engine.permitted_fields(self, action, subject_type, instance)

    def filter_for(self, action: str, subject_type: str) -> Predicate:
        return filter_for(self, action, subject_type)

    def __repr__(self) -> str:
        who = self._principal.id if self._principal is not None else "<anonymous>"
        return f"Ability(principal={who!r}, rules={len(self._rule_set)})"
