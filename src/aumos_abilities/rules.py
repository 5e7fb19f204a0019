"""Rule model and the ordered rule set.

A :class:`RuleSet` holds rules in registration order.  That order is the
only source of precedence (the last matching rule wins), so the set is never
sorted or re-indexed.  It has two phases: rules are appended while building,
then :meth:`RuleSet.freeze` closes it and it becomes read-only.

Example
-------
::

    rules = RuleSet()
    rules.append(Rule(Effect.ALLOW, frozenset({"read"}), "Article"))
    rules.append(
        Rule(
            Effect.DENY,
            frozenset({"read"}),
            "Article",
            conditions=Equality("status", "draft"),
        )
    )
    rules.freeze()
    [r.effect for r in rules.rules_for("read", "Article")]
    # [Effect.ALLOW, Effect.DENY]
"""
from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from aumos_abilities.conditions.nodes import Condition, walk
from aumos_abilities.conditions.nodes import is_malformed as _node_is_malformed
from aumos_abilities.errors import RuleSetFrozenError

ANY_ACTION = "manage"
ANY_SUBJECT = "all"

WILDCARD_ACTIONS: frozenset[str] = frozenset({ANY_ACTION, "*"})
WILDCARD_SUBJECTS: frozenset[str] = frozenset({ANY_SUBJECT, "*"})


class Effect(str, Enum):
    """Outcome a rule produces when it is the winning match."""

    ALLOW = "allow"
    DENY = "deny"


@dataclass(frozen=True)
class Rule:
    """An atomic permission grant or denial.

    Attributes
    ----------
    effect:
        :attr:`Effect.ALLOW` or :attr:`Effect.DENY`.
    actions:
        Action identifiers the rule covers.  ``"manage"`` (or ``"*"``)
        covers every action.
    subject_type:
        Resource type the rule covers.  ``"all"`` (or ``"*"``) covers every
        type.
    conditions:
        Condition tree narrowing which instances the rule applies to, or
        ``None`` for an unconditional rule.
    fields:
        Field names the rule restricts to, or ``None`` for all fields.
    reason:
        Free-text justification, used in logs only.
    """

    effect: Effect
    actions: frozenset[str]
    subject_type: str
    conditions: Condition | None = None
    fields: frozenset[str] | None = None
    reason: str | None = None
    is_malformed: bool = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        malformed = self.conditions is not None and any(
            _node_is_malformed(node) for node in walk(self.conditions)
        )
        object.__setattr__(self, "is_malformed", malformed)

    @property
    def allows(self) -> bool:
        return self.effect is Effect.ALLOW

    @property
    def is_conditional(self) -> bool:
        return self.conditions is not None

    def applies_to(self, action: str, subject_type: str) -> bool:
        """Return ``True`` if the rule covers this action and subject type."""
        action_ok = action in self.actions or not self.actions.isdisjoint(WILDCARD_ACTIONS)
        subject_ok = (
            self.subject_type == subject_type or self.subject_type in WILDCARD_SUBJECTS
        )
        return action_ok and subject_ok

    def describe(self) -> str:
        """Short human-readable label, e.g. ``allow read,update User``."""
        label = f"{self.effect.value} {','.join(sorted(self.actions))} {self.subject_type}"
        if self.reason:
            label = f"{label} ({self.reason})"
        return label


class RuleSet:
    """Ordered, append-only sequence of rules for one principal."""

    def __init__(self, rules: list[Rule] | None = None) -> None:
        self._rules: list[Rule] = list(rules or [])
        self._frozen = False

    def append(self, rule: Rule) -> None:
        """Add ``rule`` to the end of the sequence.

        Raises
        ------
        RuleSetFrozenError
            If :meth:`freeze` has already been called.
        """
        if self._frozen:
            raise RuleSetFrozenError("Cannot append to a frozen RuleSet.")
        self._rules.append(rule)

    def freeze(self) -> RuleSet:
        """End the building phase.  Returns ``self`` for chaining."""
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def rules_for(self, action: str, subject_type: str) -> Iterator[Rule]:
        """Yield, in registration order, the rules covering action and subject."""
        return (rule for rule in self._rules if rule.applies_to(action, subject_type))

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "building"
        return f"RuleSet({len(self._rules)} rules, {state})"
