"""Fluent ability builder.

The builder records ``allow`` / ``deny`` calls as rules in registration
order.  It knows nothing about roles: deciding which rules a principal gets
is ordinary caller logic (or a :class:`~aumos_abilities.config.RoleMapping`).

Example
-------
::

    def define(builder, user):
        if "admin" in user.roles:
            builder.allow("manage", "all")
        else:
            builder.allow(["read", "update"], "User", {"id": user.id})
            builder.deny("update", "User", {"status": "locked"})

    ability = define_ability(Principal(id="42", roles=["member"]), define)
    ability.can("read", "User", {"id": "42"})   # True
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping

from aumos_abilities.ability import Ability
from aumos_abilities.conditions.nodes import Condition
from aumos_abilities.conditions.parser import parse_conditions
from aumos_abilities.errors import InvalidRuleDefinition
from aumos_abilities.principal import Principal
from aumos_abilities.rules import Effect, Rule, RuleSet

logger = logging.getLogger(__name__)

Actions = str | Iterable[str]
Conditions = Mapping[str, object] | Condition | None


def _normalize_names(value: Actions | None, kind: str) -> frozenset[str]:
    if isinstance(value, str):
        names = [value]
    elif value is None:
        names = []
    else:
        names = list(value)
    for name in names:
        if not isinstance(name, str) or not name:
            raise InvalidRuleDefinition(f"{kind} names must be non-empty strings; got {name!r}.")
    return frozenset(names)


class AbilityBuilder:
    """Collects rules for one principal and builds an :class:`Ability`.

    Parameters
    ----------
    principal:
        Optional principal the resulting ability is bound to.
    """

    def __init__(self, principal: Principal | None = None) -> None:
        self._principal = principal
        self._rule_set = RuleSet()

    def allow(
        self,
        actions: Actions,
        subject_type: str,
        conditions: Conditions = None,
        fields: Actions | None = None,
        reason: str | None = None,
    ) -> AbilityBuilder:
        """Append an allowing rule.  Returns the builder for chaining."""
        self._rule_set.append(
            self._make_rule(Effect.ALLOW, actions, subject_type, conditions, fields, reason)
        )
        return self

    def deny(
        self,
        actions: Actions,
        subject_type: str,
        conditions: Conditions = None,
        fields: Actions | None = None,
        reason: str | None = None,
    ) -> AbilityBuilder:
        """Append a denying rule.  Returns the builder for chaining."""
        self._rule_set.append(
            self._make_rule(Effect.DENY, actions, subject_type, conditions, fields, reason)
        )
        return self

    can = allow
    cannot = deny

    @property
    def rules(self) -> RuleSet:
        """The rule set being built (read it, do not append to it directly)."""
        return self._rule_set

    def build(self) -> Ability:
        """Freeze the collected rules and return the bound ability.

        The builder is spent afterwards: further ``allow`` / ``deny`` calls
        raise :class:`~aumos_abilities.errors.RuleSetFrozenError`.
        """
        self._rule_set.freeze()
        logger.debug(
            "Built ability with %d rules for principal %s",
            len(self._rule_set),
            self._principal.id if self._principal is not None else "<anonymous>",
        )
        return Ability(self._rule_set, principal=self._principal)

    def _make_rule(
        self,
        effect: Effect,
        actions: Actions,
        subject_type: str,
        conditions: Conditions,
        fields: Actions | None,
        reason: str | None,
    ) -> Rule:
        action_names = _normalize_names(actions, "Action")
        if not action_names:
            raise InvalidRuleDefinition("A rule needs at least one action.")
        if not isinstance(subject_type, str) or not subject_type:
            raise InvalidRuleDefinition(
                f"A rule needs a non-empty subject type; got {subject_type!r}."
            )
        field_names = None if fields is None else _normalize_names(fields, "Field")
        return Rule(
            effect=effect,
            actions=action_names,
            subject_type=subject_type,
            conditions=parse_conditions(conditions),
            fields=field_names,
            reason=reason,
        )


def define_ability(
    principal: Principal | None,
    define: Callable[[AbilityBuilder, Principal | None], None],
) -> Ability:
    """Run ``define(builder, principal)`` and return the built ability."""
    builder = AbilityBuilder(principal)
    define(builder, principal)
    return builder.build()
