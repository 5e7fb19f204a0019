"""Role mapping schema: Pydantic v2 models for ``roles.yaml`` files.

A role mapping is data, not code: it lists, per role, the rule templates a
principal holding that role receives.

Example
-------
::

    version: "1"
    roles:
      admin:
        rules:
          - allow: manage
            subject: all
      member:
        inherits: [guest]
        rules:
          - allow: [read, update]
            subject: User
            conditions: {id: "${principal.id}"}
            fields: [name, email]
          - deny: update
            subject: User
            conditions: {status: locked}
      guest:
        rules:
          - allow: read
            subject: Article
            conditions: {published: true}
"""
from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from aumos_abilities.rules import Effect

SUPPORTED_VERSIONS: frozenset[str] = frozenset({"1", "1.0"})


def _as_list(value: object) -> object:
    if isinstance(value, str):
        return [value]
    return value


class RuleTemplate(BaseModel):
    """One ``allow`` or ``deny`` entry of a role.

    Exactly one of :attr:`allow` / :attr:`deny` must be given.  String
    values of the form ``${principal.<path>}`` inside :attr:`conditions` are
    replaced with the principal's value when the ability is built.
    """

    model_config = {"extra": "forbid"}

    allow: list[str] | None = None
    deny: list[str] | None = None
    subject: str = Field(min_length=1)
    conditions: dict[str, object] | None = None
    fields: list[str] | None = None
    reason: str | None = None

    @field_validator("allow", "deny", "fields", mode="before")
    @classmethod
    def coerce_single_name(cls, value: object) -> object:
        return _as_list(value)

    @model_validator(mode="after")
    def exactly_one_effect(self) -> RuleTemplate:
        if (self.allow is None) == (self.deny is None):
            raise ValueError("A rule template needs exactly one of 'allow' or 'deny'.")
        return self

    @property
    def effect(self) -> Effect:
        return Effect.ALLOW if self.allow is not None else Effect.DENY

    @property
    def actions(self) -> list[str]:
        return list(self.allow if self.allow is not None else self.deny or [])


class RoleDefinition(BaseModel):
    """Rules granted to one role, optionally on top of inherited roles."""

    model_config = {"extra": "forbid"}

    description: str | None = None
    inherits: list[str] = Field(default_factory=list)
    rules: list[RuleTemplate] = Field(default_factory=list)

    @field_validator("inherits", mode="before")
    @classmethod
    def coerce_single_parent(cls, value: object) -> object:
        return _as_list(value)


class PolicyConfig(BaseModel):
    """Top-level role mapping document."""

    model_config = {"extra": "allow"}

    version: str = Field(default="1")
    roles: dict[str, RoleDefinition] = Field(default_factory=dict)
    metadata: dict[str, object] = Field(default_factory=dict)

    @field_validator("version", mode="before")
    @classmethod
    def version_supported(cls, value: object) -> str:
        version = str(value)
        if version not in SUPPORTED_VERSIONS:
            raise ValueError(
                f"Unsupported config version {version!r}. "
                f"Supported: {sorted(SUPPORTED_VERSIONS)}."
            )
        return version

    @model_validator(mode="after")
    def inheritance_is_valid(self) -> PolicyConfig:
        for name, role in self.roles.items():
            for parent in role.inherits:
                if parent not in self.roles:
                    raise ValueError(f"Role {name!r} inherits unknown role {parent!r}.")
        for name in self.roles:
            self._check_cycle(name, [])
        return self

    def _check_cycle(self, name: str, trail: list[str]) -> None:
        if name in trail:
            cycle = " -> ".join([*trail[trail.index(name):], name])
            raise ValueError(f"Role inheritance cycle: {cycle}.")
        for parent in self.roles[name].inherits:
            self._check_cycle(parent, [*trail, name])
