"""Bundled role mapping templates."""
from __future__ import annotations

from aumos_abilities.templates.role_templates import (
    get_template,
    list_templates,
    write_template,
)

__all__ = ["get_template", "list_templates", "write_template"]
