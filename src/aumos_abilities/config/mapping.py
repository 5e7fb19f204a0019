"""Role mapping: turn a principal's roles into an ability.

The mapping walks the principal's roles in order.  For each role it applies
the inherited roles' templates first (depth first, each role once), then the
role's own templates.  Because precedence is last-match-wins, rules of a
role listed later can override rules of roles listed before it.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Mapping

from aumos_abilities.ability import Ability
from aumos_abilities.builder import AbilityBuilder
from aumos_abilities.conditions.operands import MISSING
from aumos_abilities.config.schema import PolicyConfig, RuleTemplate
from aumos_abilities.errors import InvalidRuleDefinition
from aumos_abilities.principal import Principal
from aumos_abilities.rules import Effect

logger = logging.getLogger(__name__)

_PRINCIPAL_REF = re.compile(r"^\$\{principal\.([A-Za-z0-9_.]+)\}$")


def _substitute(value: object, principal: Principal) -> object:
    """Replace ``${principal.<path>}`` placeholders, preserving value types."""
    if isinstance(value, str):
        match = _PRINCIPAL_REF.match(value)
        if match is None:
            return value
        resolved = principal.resolve(match.group(1))
        if resolved is MISSING:
            raise InvalidRuleDefinition(
                f"Condition references principal.{match.group(1)}, "
                f"which principal {principal.id!r} does not have."
            )
        return resolved
    if isinstance(value, Mapping):
        return {key: _substitute(item, principal) for key, item in value.items()}
    if isinstance(value, list):
        return [_substitute(item, principal) for item in value]
    return value


class RoleMapping:
    """Applies a validated :class:`PolicyConfig` to principals.

    Parameters
    ----------
    config:
        The validated role mapping document.
    source:
        Where the config came from, for log messages.
    """

    def __init__(self, config: PolicyConfig, source: str | None = None) -> None:
        self._config = config
        self._source = source or "<dict>"

    @property
    def config(self) -> PolicyConfig:
        return self._config

    @property
    def role_names(self) -> list[str]:
        return list(self._config.roles)

    def templates_for(self, role: str) -> list[RuleTemplate]:
        """Return the templates of ``role`` with inherited ones first."""
        templates: list[RuleTemplate] = []
        self._collect(role, set(), templates)
        return templates

    def _collect(self, role: str, seen: set[str], out: list[RuleTemplate]) -> None:
        if role in seen:
            return
        seen.add(role)
        definition = self._config.roles[role]
        for parent in definition.inherits:
            self._collect(parent, seen, out)
        out.extend(definition.rules)

    def apply(self, builder: AbilityBuilder, principal: Principal) -> AbilityBuilder:
        """Register the principal's rules on ``builder``."""
        seen: set[str] = set()
        for role in principal.roles:
            if role not in self._config.roles:
                logger.debug("Role %r not defined in %s; ignored", role, self._source)
                continue
            templates: list[RuleTemplate] = []
            self._collect(role, seen, templates)
            for template in templates:
                self._register(builder, template, principal)
        return builder

    def build_ability(self, principal: Principal) -> Ability:
        """Build a fresh ability for ``principal``."""
        return self.apply(AbilityBuilder(principal), principal).build()

    def _register(
        self,
        builder: AbilityBuilder,
        template: RuleTemplate,
        principal: Principal,
    ) -> None:
        conditions = (
            _substitute(template.conditions, principal)
            if template.conditions is not None
            else None
        )
        register = builder.allow if template.effect is Effect.ALLOW else builder.deny
        register(
            template.actions,
            template.subject,
            conditions,  # type: ignore[arg-type]
            fields=template.fields,
            reason=template.reason,
        )

    def summary(self) -> dict[str, object]:
        """Return a plain dict summarising the mapping."""
        return {
            "source": self._source,
            "version": self._config.version,
            "roles": {
                name: {
                    "inherits": list(role.inherits),
                    "rules": len(role.rules),
                    "effective_rules": len(self.templates_for(name)),
                }
                for name, role in self._config.roles.items()
            },
        }
