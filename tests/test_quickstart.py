"""Test that the top-level quickstart API works for aumos-abilities."""
from __future__ import annotations


def test_quickstart_import() -> None:
    import aumos_abilities

    assert aumos_abilities.__version__ == "0.1.0"


def test_quickstart_build_and_check() -> None:
    from aumos_abilities import AbilityBuilder

    ability = AbilityBuilder().allow("read", "Doc").deny("read", "Doc", {"owner_id": "x"}).build()
    assert ability.can("read", "Doc", {"owner_id": "y"}) is True
    assert ability.can("read", "Doc", {"owner_id": "x"}) is False


def test_quickstart_role_mapping() -> None:
    from aumos_abilities import Principal, RoleMappingLoader

    mapping = RoleMappingLoader().load_from_dict(
        {"roles": {"admin": {"rules": [{"allow": "manage", "subject": "all"}]}}}
    )
    ability = mapping.build_ability(Principal(id="1", roles=["admin"]))
    assert ability.can("delete", "Anything") is True


def test_quickstart_filter() -> None:
    from aumos_abilities import ALWAYS_FALSE, AbilityBuilder

    assert AbilityBuilder().build().filter_for("read", "Doc") is ALWAYS_FALSE


def test_quickstart_repr() -> None:
    from aumos_abilities import AbilityBuilder

    assert "Ability" in repr(AbilityBuilder().build())
