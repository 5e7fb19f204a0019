"""Built-in YAML role mapping templates.

Three starting points are bundled: a flat admin/member split, a
multi-tenant setup scoped by ``tenant_id``, and an editorial workflow with
field-restricted updates.

Example
-------
>>> from aumos_abilities.templates.role_templates import list_templates
>>> list_templates()
['editorial', 'multi_tenant', 'owner_scoped']
"""
from __future__ import annotations

from pathlib import Path

# ---------------------------------------------------------------------------
# Template definitions
# ---------------------------------------------------------------------------

_OWNER_SCOPED = """\
# Owner-scoped role mapping
# --------------------------
# Admins manage everything. Members read and update their own profile,
# except while the account is locked.

version: "1"
roles:
  admin:
    description: Full access to every resource.
    rules:
      - allow: manage
        subject: all
        reason: admin override

  member:
    description: Regular signed-in user.
    rules:
      - allow: [read, update]
        subject: User
        conditions:
          id: "${principal.id}"
        fields: [name, email, avatar_url]
        reason: members manage their own profile
      - deny: update
        subject: User
        conditions:
          status: locked
        reason: locked accounts are read-only
"""

_MULTI_TENANT = """\
# Multi-tenant role mapping
# -------------------------
# Every rule is scoped to the principal's tenant. Principals carry
# ``attributes.tenant_id``.

version: "1"
roles:
  tenant_viewer:
    rules:
      - allow: read
        subject: all
        conditions:
          tenant_id: "${principal.tenant_id}"
        reason: tenant members see their tenant's data

  tenant_admin:
    inherits: [tenant_viewer]
    rules:
      - allow: [create, update, delete]
        subject: all
        conditions:
          tenant_id: "${principal.tenant_id}"
        reason: tenant admins manage their tenant
      - deny: delete
        subject: Invoice
        conditions:
          status: {$in: [paid, exported]}
        reason: settled invoices are immutable
"""

_EDITORIAL = """\
# Editorial workflow role mapping
# -------------------------------
# Readers see published articles. Authors write their own drafts.
# Editors publish, but may only touch editorial fields.

version: "1"
roles:
  reader:
    rules:
      - allow: read
        subject: Article
        conditions:
          published: true

  author:
    inherits: [reader]
    rules:
      - allow: [read, update]
        subject: Article
        conditions:
          author_id: "${principal.id}"
      - allow: create
        subject: Article
      - deny: update
        subject: Article
        conditions:
          published: true
        reason: published articles go through editors

  editor:
    inherits: [reader]
    rules:
      - allow: read
        subject: Article
      - allow: update
        subject: Article
        fields: [title, summary, published, tags]
        reason: editors curate, they do not rewrite
"""

# ---------------------------------------------------------------------------
# Template registry
# ---------------------------------------------------------------------------

TEMPLATES: dict[str, str] = {
    "owner_scoped": _OWNER_SCOPED,
    "multi_tenant": _MULTI_TENANT,
    "editorial": _EDITORIAL,
}

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_template(name: str) -> str:
    """Return the YAML string for a built-in role mapping template.

    Raises
    ------
    KeyError
        If no template with the given name is registered.
    """
    if name not in TEMPLATES:
        available = ", ".join(sorted(TEMPLATES))
        raise KeyError(
            f"Template {name!r} not found. Available templates: {available}."
        )
    return TEMPLATES[name]


def list_templates() -> list[str]:
    """Return a sorted list of all built-in template names."""
    return sorted(TEMPLATES)


def write_template(name: str, output_path: Path) -> Path:
    """Write a built-in template to a file and return its absolute path.

    Parent directories are created automatically if they do not exist.
    """
    content = get_template(name)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(content, encoding="utf-8")
    return output_path.resolve()
