"""Principal model: the acting identity an ability is built for.

Authentication and role lookup happen outside this package; the request
layer hands over a :class:`Principal` once it knows who is calling.
"""
from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from aumos_abilities.conditions.operands import resolve_path


class Principal(BaseModel):
    """The authenticated caller.

    Attributes
    ----------
    id:
        Stable identifier, used by self-referential conditions such as
        ``{"owner_id": "${principal.id}"}``.
    roles:
        Role names, in the order their rule templates should be applied.
    attributes:
        Arbitrary extra attributes (tenant, team, clearance level, ...).
    """

    model_config = {"frozen": True}

    id: str | int
    roles: list[str] = Field(default_factory=list)
    attributes: dict[str, object] = Field(default_factory=dict)

    @field_validator("roles")
    @classmethod
    def role_names_non_empty(cls, values: list[str]) -> list[str]:
        for role in values:
            if not role:
                raise ValueError("Role names must be non-empty strings.")
        return values

    def resolve(self, path: str) -> object:
        """Resolve a dot path against the principal.

        ``id`` and ``roles`` resolve to the model fields; any other first
        segment is looked up in :attr:`attributes`.  Returns
        ``MISSING`` when the path does not resolve.
        """
        head = path.split(".", 1)[0]
        if head in ("id", "roles", "attributes"):
            return resolve_path(
                {"id": self.id, "roles": self.roles, "attributes": self.attributes},
                path,
            )
        return resolve_path(self.attributes, path)
