#!/usr/bin/env python3
"""Example: Role mappings and bulk-read filters

Loads a bundled role mapping template, builds abilities for two
principals, and turns their rules into query predicates for list endpoints.

Usage:
    python examples/02_bulk_filter.py

Requirements:
    pip install aumos-abilities
"""
from __future__ import annotations

import json

from aumos_abilities import AbilityBuilder, Principal, RoleMappingLoader, UntranslatableRuleError
from aumos_abilities.conditions import Custom
from aumos_abilities.templates import get_template


def main() -> None:
    mapping = RoleMappingLoader().load_from_yaml_string(get_template("editorial"))
    print(f"Roles: {', '.join(mapping.role_names)}")

    articles = [
        {"id": 1, "published": True, "author_id": "a1"},
        {"id": 2, "published": False, "author_id": "a1"},
        {"id": 3, "published": False, "author_id": "a2"},
    ]

    for principal in (
        Principal(id="a1", roles=["author"]),
        Principal(id="r1", roles=["reader"]),
    ):
        ability = mapping.build_ability(principal)
        predicate = ability.filter_for("read", "Article")
        visible = [a["id"] for a in articles if predicate.matches(a)]
        print(f"\n{principal.id} ({', '.join(principal.roles)}) may read: {visible}")
        print(json.dumps(predicate.to_dict(), indent=2))

    # A custom comparator has no query form: fall back to per-instance checks.
    ability = (
        AbilityBuilder()
        .allow("read", "Article", Custom("id", lambda v: v % 2 == 1, "odd_id"))
        .build()
    )
    try:
        ability.filter_for("read", "Article")
    except UntranslatableRuleError as exc:
        print(f"\nFalling back to per-instance checks: {exc}")
        visible = [a["id"] for a in articles if ability.can("read", "Article", a)]
        print(f"Visible after fallback: {visible}")


if __name__ == "__main__":
    main()
