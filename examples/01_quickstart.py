#!/usr/bin/env python3
"""Example: Quickstart: aumos-abilities

Minimal working example: build an ability for a user, run point checks,
and redact a response payload.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install aumos-abilities
"""
from __future__ import annotations

import aumos_abilities as abilities
from aumos_abilities import AbilityBuilder, ForbiddenError, Principal


def main() -> None:
    print(f"aumos-abilities version: {abilities.__version__}")

    # Step 1: Build an ability for the signed-in user
    user = Principal(id="42", roles=["member"])
    ability = (
        AbilityBuilder(user)
        .allow(["read", "update"], "User", {"id": user.id}, fields=["name", "email"])
        .deny("update", "User", {"status": "locked"}, reason="locked accounts are read-only")
        .build()
    )
    print(f"Ability ready: {ability!r}")

    # Step 2: Point checks
    checks = [
        ("read", {"id": "42"}),
        ("update", {"id": "42", "status": "locked"}),
        ("update", {"id": "99"}),
    ]
    print("\nChecks:")
    for action, instance in checks:
        decision = ability.decide(action, "User", instance)
        icon = "ALLOW" if decision.allowed else "DENY"
        print(f"  [{icon}] {action} {instance}  ({decision.reason})")

    # Step 3: Field-level redaction
    record = {"id": "42", "name": "Ada", "email": "ada@example.com", "password_hash": "..."}
    fields = ability.permitted_fields("read", "User", record)
    print(f"\nRedacted payload: {fields.restrict(record)}")

    # Step 4: authorize() raises a generic error for end users
    try:
        ability.authorize("update", "User", {"id": "99"})
    except ForbiddenError as exc:
        print(f"\nauthorize() refused: {exc}")


if __name__ == "__main__":
    main()
