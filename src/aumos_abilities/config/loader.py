"""YAML loader for role mappings.

Example
-------
::

    loader = RoleMappingLoader()
    mapping = loader.load("roles.yaml")
    ability = mapping.build_ability(Principal(id="42", roles=["member"]))
    ability.can("read", "User", {"id": "42"})
"""
from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from aumos_abilities.config.mapping import RoleMapping
from aumos_abilities.config.schema import PolicyConfig
from aumos_abilities.errors import PolicyConfigError

logger = logging.getLogger(__name__)


class RoleMappingLoader:
    """Loads :class:`RoleMapping` objects from YAML files, strings or dicts.

    Parameters
    ----------
    strict:
        When ``True``, unknown top-level keys are an error.  Default
        ``False`` (unknown keys are ignored).
    """

    _KNOWN_TOP_KEYS: frozenset[str] = frozenset(
        ["version", "roles", "metadata", "description"]
    )

    def __init__(self, strict: bool = False) -> None:
        self._strict = strict

    def load(self, config_path: str | Path) -> RoleMapping:
        """Load a role mapping from a YAML file on disk.

        Raises
        ------
        FileNotFoundError
            If the config file does not exist.
        PolicyConfigError
            If the file cannot be parsed or is structurally invalid.
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Role mapping config not found: {config_path}")

        try:
            with config_path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise PolicyConfigError(
                f"Failed to parse YAML: {exc}", str(config_path)
            ) from exc

        return self._build(raw, config_path=str(config_path))

    def load_from_yaml_string(
        self,
        yaml_string: str,
        config_path: str | None = None,
    ) -> RoleMapping:
        """Load a role mapping from YAML text."""
        try:
            raw = yaml.safe_load(yaml_string) or {}
        except yaml.YAMLError as exc:
            raise PolicyConfigError(
                f"Failed to parse YAML string: {exc}", config_path
            ) from exc
        return self._build(raw, config_path=config_path)

    def load_from_dict(
        self,
        config: dict[str, object],
        config_path: str | None = None,
    ) -> RoleMapping:
        """Load a role mapping from an already-parsed dictionary."""
        return self._build(config, config_path=config_path)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _build(self, raw: object, config_path: str | None) -> RoleMapping:
        if not isinstance(raw, dict):
            raise PolicyConfigError(
                "Role mapping config must be a YAML mapping (dict).", config_path
            )
        if "roles" not in raw:
            raise PolicyConfigError(
                "Role mapping config must contain a 'roles' mapping.", config_path
            )
        if self._strict:
            unknown_keys = set(raw.keys()) - self._KNOWN_TOP_KEYS
            if unknown_keys:
                raise PolicyConfigError(
                    f"Unknown top-level keys: {sorted(unknown_keys)}. "
                    f"Known keys: {sorted(self._KNOWN_TOP_KEYS)}.",
                    config_path,
                )

        try:
            config = PolicyConfig.model_validate(raw)
        except ValidationError as exc:
            raise PolicyConfigError(
                f"Invalid role mapping: {exc}", config_path
            ) from exc

        rule_count = sum(len(role.rules) for role in config.roles.values())
        logger.info(
            "Loaded %d roles with %d rule templates from %s",
            len(config.roles),
            rule_count,
            config_path or "<dict>",
        )
        return RoleMapping(config, source=config_path)
