"""Exception hierarchy for aumos-abilities.

Only two phases can fail loudly: building a rule set
(:class:`InvalidRuleDefinition`, :class:`PolicyConfigError`) and translating
it into a query filter (:class:`UntranslatableRuleError`).  Point checks are
total functions; :class:`ConditionEvaluationError` is used internally to skip
a rule and never escapes :func:`aumos_abilities.engine.can`.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from aumos_abilities.rules import Rule


class AbilityError(Exception):
    """Base class for every error raised by this package."""


class InvalidRuleDefinition(AbilityError, ValueError):
    """Raised at build time when a rule is structurally invalid."""


class RuleSetFrozenError(AbilityError, RuntimeError):
    """Raised when a rule is appended after the building phase ended."""


class ConditionEvaluationError(AbilityError):
    """A condition could not be evaluated against an instance.

    The decision engine treats the owning rule as non-matching.
    """


class UntranslatableRuleError(AbilityError):
    """Raised when a rule condition has no predicate AST equivalent.

    Attributes
    ----------
    rule:
        The rule whose condition could not be translated, if known.
    """

    def __init__(self, message: str, rule: Rule | None = None) -> None:
        self.rule = rule
        super().__init__(message)


class ForbiddenError(AbilityError):
    """Raised by ``authorize`` when a check is denied.

    ``str(error)`` is always the generic message so it can be returned to
    end users.  The deciding rule is kept on the instance for internal
    logging only.
    """

    GENERIC_MESSAGE = "Not authorized."

    def __init__(
        self,
        action: str,
        subject_type: str,
        rule: Rule | None = None,
    ) -> None:
        self.action = action
        self.subject_type = subject_type
        self.rule = rule
        super().__init__(self.GENERIC_MESSAGE)


class PolicyConfigError(AbilityError, ValueError):
    """Raised when a role mapping config is malformed or invalid.

    Attributes
    ----------
    config_path:
        The path to the config file that caused the error, if known.
    """

    def __init__(self, message: str, config_path: str | None = None) -> None:
        self.config_path = config_path
        prefix = f"[{config_path}] " if config_path else ""
        super().__init__(f"{prefix}{message}")
