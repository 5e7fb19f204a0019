"""aumos-abilities: rule-based ability checks with conditions and query filters.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> from aumos_abilities import AbilityBuilder
>>> ability = (
...     AbilityBuilder()
...     .allow(["read", "update"], "User", {"id": "42"})
...     .deny("update", "User", {"status": "locked"})
...     .build()
... )
>>> ability.can("read", "User", {"id": "42"})
True
>>> ability.can("update", "User", {"id": "42", "status": "locked"})
False
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ---------------------------------------------------------------------------
# Rules and building
# ---------------------------------------------------------------------------
from aumos_abilities.ability import Ability
from aumos_abilities.builder import AbilityBuilder, define_ability
from aumos_abilities.principal import Principal
from aumos_abilities.rules import (
    ANY_ACTION,
    ANY_SUBJECT,
    Effect,
    Rule,
    RuleSet,
)

# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------
from aumos_abilities.engine import (
    ALL_FIELDS,
    NO_FIELDS,
    Decision,
    FieldPermission,
    authorize,
    can,
    decide,
    permitted_fields,
    relevant_rule,
)

# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------
from aumos_abilities.filters import (
    ALWAYS_FALSE,
    ALWAYS_TRUE,
    AlwaysFalse,
    AlwaysTrue,
    Predicate,
    filter_for,
)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------
from aumos_abilities.config import RoleMapping, RoleMappingLoader

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
from aumos_abilities.errors import (
    AbilityError,
    ConditionEvaluationError,
    ForbiddenError,
    InvalidRuleDefinition,
    PolicyConfigError,
    RuleSetFrozenError,
    UntranslatableRuleError,
)

__all__ = [
    "__version__",
    # Rules and building
    "ANY_ACTION",
    "ANY_SUBJECT",
    "Ability",
    "AbilityBuilder",
    "Effect",
    "Principal",
    "Rule",
    "RuleSet",
    "define_ability",
    # Decisions
    "ALL_FIELDS",
    "Decision",
    "FieldPermission",
    "NO_FIELDS",
    "authorize",
    "can",
    "decide",
    "permitted_fields",
    "relevant_rule",
    # Filters
    "ALWAYS_FALSE",
    "ALWAYS_TRUE",
    "AlwaysFalse",
    "AlwaysTrue",
    "Predicate",
    "filter_for",
    # Configuration
    "RoleMapping",
    "RoleMappingLoader",
    # Errors
    "AbilityError",
    "ConditionEvaluationError",
    "ForbiddenError",
    "InvalidRuleDefinition",
    "PolicyConfigError",
    "RuleSetFrozenError",
    "UntranslatableRuleError",
]
