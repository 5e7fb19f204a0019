"""Decision engine: point checks and field restrictions.

Precedence is last-match-wins.  Among the rules covering an action and
subject type, the last one (in registration order) whose conditions match
the instance decides.  With no matching rule the answer is "no".

Without an instance (collection-level check) only unconditional rules can
match.

A rule whose condition cannot be evaluated is skipped and logged; checks
never raise for a well-formed rule set.

Example
-------
::

    ability = (
        AbilityBuilder()
        .allow("read", "Doc")
        .deny("read", "Doc", {"owner_id": "x"})
        .build()
    )
    can(ability, "read", "Doc", {"owner_id": "x"})  # False
    can(ability, "read", "Doc", {"owner_id": "y"})  # True
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from aumos_abilities.conditions.matcher import matches
from aumos_abilities.errors import ConditionEvaluationError, ForbiddenError
from aumos_abilities.rules import Rule

if TYPE_CHECKING:
    from aumos_abilities.ability import Ability

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Decision:
    """Immutable outcome of a point check.

    Attributes
    ----------
    allowed:
        Whether the action is permitted.
    action:
        The action that was checked.
    subject_type:
        The resource type that was checked.
    rule:
        The winning rule, or ``None`` when the default deny applied.
    """

    allowed: bool
    action: str
    subject_type: str
    rule: Rule | None = None

    def __bool__(self) -> bool:
        return self.allowed

    @property
    def reason(self) -> str:
        """Internal explanation of the outcome.  Do not show to end users."""
        if self.rule is None:
            return f"No rule grants '{self.action}' on '{self.subject_type}'."
        return self.rule.reason or self.rule.describe()


@dataclass(frozen=True)
class FieldPermission:
    """Which fields of an instance a check grants.

    Either every field (:attr:`all` is ``True``) or exactly :attr:`fields`.
    Use :data:`ALL_FIELDS` and :data:`NO_FIELDS` rather than building the
    extreme cases by hand.
    """

    fields: frozenset[str] = frozenset()
    all: bool = False

    def __bool__(self) -> bool:
        return self.all or bool(self.fields)

    def __contains__(self, name: object) -> bool:
        return self.all or name in self.fields

    def allows(self, name: str) -> bool:
        return name in self

    def restrict(self, payload: Mapping[str, object]) -> dict[str, object]:
        """Return a copy of ``payload`` without the fields not granted."""
        if self.all:
            return dict(payload)
        return {key: value for key, value in payload.items() if key in self.fields}


ALL_FIELDS = FieldPermission(all=True)
NO_FIELDS = FieldPermission()


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------


def _rule_matches(rule: Rule, instance: object | None) -> bool:
    if rule.conditions is None:
        return True
    if instance is None:
        return False
    if rule.is_malformed:
        logger.warning("Skipping rule with malformed conditions: %s", rule.describe())
        return False
    try:
        return matches(rule.conditions, instance)
    except ConditionEvaluationError as exc:
        logger.warning("Skipping rule %s: %s", rule.describe(), exc)
        return False


def relevant_rule(
    ability: Ability,
    action: str,
    subject_type: str,
    instance: object | None = None,
) -> Rule | None:
    """Return the rule that decides this check, or ``None``."""
    candidates = list(ability.rule_set.rules_for(action, subject_type))
    for rule in reversed(candidates):
        if _rule_matches(rule, instance):
            return rule
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def decide(
    ability: Ability,
    action: str,
    subject_type: str,
    instance: object | None = None,
) -> Decision:
    """Evaluate a check and return the full :class:`Decision`."""
    rule = relevant_rule(ability, action, subject_type, instance)
    decision = Decision(
        allowed=rule is not None and rule.allows,
        action=action,
        subject_type=subject_type,
        rule=rule,
    )
    logger.debug(
        "Ability %s: action=%s subject=%s rule=%s",
        "ALLOW" if decision.allowed else "DENY",
        action,
        subject_type,
        rule.describe() if rule is not None else "<default>",
    )
    return decision


def can(
    ability: Ability,
    action: str,
    subject_type: str,
    instance: object | None = None,
) -> bool:
    """Return ``True`` if ``action`` on ``subject_type`` (or ``instance``) is allowed."""
    return decide(ability, action, subject_type, instance).allowed


def authorize(
    ability: Ability,
    action: str,
    subject_type: str,
    instance: object | None = None,
) -> Decision:
    """Like :func:`decide`, but raise when the check is denied.

    Raises
    ------
    ForbiddenError
        With a generic message; the deciding rule is attached for logs.
    """
    decision = decide(ability, action, subject_type, instance)
    if not decision.allowed:
        raise ForbiddenError(action, subject_type, rule=decision.rule)
    return decision


def permitted_fields(
    ability: Ability,
    action: str,
    subject_type: str,
    instance: object | None = None,
) -> FieldPermission:
    """Return the fields the winning rule grants.

    A denying or absent winner grants nothing.  An allowing winner grants
    its ``fields`` when it has them, otherwise every field.
    """
    rule = relevant_rule(ability, action, subject_type, instance)
    if rule is None or not rule.allows:
        return NO_FIELDS
    if rule.fields is None:
        return ALL_FIELDS
    return FieldPermission(fields=rule.fields)
