"""Data-driven role-to-rule mapping loaded from YAML."""
from __future__ import annotations

from aumos_abilities.config.loader import RoleMappingLoader
from aumos_abilities.config.mapping import RoleMapping
from aumos_abilities.config.schema import PolicyConfig, RoleDefinition, RuleTemplate

__all__ = [
    "PolicyConfig",
    "RoleDefinition",
    "RoleMapping",
    "RoleMappingLoader",
    "RuleTemplate",
]
