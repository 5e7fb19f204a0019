"""Unit tests for config/: schema, RoleMapping and RoleMappingLoader."""
from __future__ import annotations

import pathlib
import textwrap

import pytest

from aumos_abilities.config.loader import RoleMappingLoader
from aumos_abilities.config.mapping import RoleMapping
from aumos_abilities.config.schema import RuleTemplate
from aumos_abilities.errors import InvalidRuleDefinition, PolicyConfigError
from aumos_abilities.principal import Principal
from aumos_abilities.rules import Effect
from aumos_abilities.templates.role_templates import get_template, list_templates, write_template


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

_VALID_CONFIG: dict[str, object] = {
    "version": "1",
    "roles": {
        "admin": {"rules": [{"allow": "manage", "subject": "all"}]},
        "guest": {
            "rules": [
                {"allow": "read", "subject": "Article", "conditions": {"published": True}},
            ]
        },
        "member": {
            "inherits": ["guest"],
            "rules": [
                {
                    "allow": ["read", "update"],
                    "subject": "User",
                    "conditions": {"id": "${principal.id}"},
                    "fields": ["name", "email"],
                    "reason": "own profile",
                },
                {"deny": "update", "subject": "User", "conditions": {"status": "locked"}},
            ],
        },
    },
}


@pytest.fixture()
def loader() -> RoleMappingLoader:
    return RoleMappingLoader()


@pytest.fixture()
def mapping(loader: RoleMappingLoader) -> RoleMapping:
    return loader.load_from_dict(_VALID_CONFIG)


# ---------------------------------------------------------------------------
# RuleTemplate
# ---------------------------------------------------------------------------


class TestRuleTemplate:
    def test_single_action_coerced_to_list(self) -> None:
        template = RuleTemplate.model_validate({"allow": "read", "subject": "Doc"})
        assert template.actions == ["read"]
        assert template.effect is Effect.ALLOW

    def test_deny_effect(self) -> None:
        template = RuleTemplate.model_validate({"deny": ["read"], "subject": "Doc"})
        assert template.effect is Effect.DENY

    def test_both_effects_rejected(self) -> None:
        with pytest.raises(ValueError):
            RuleTemplate.model_validate({"allow": "read", "deny": "read", "subject": "Doc"})

    def test_no_effect_rejected(self) -> None:
        with pytest.raises(ValueError):
            RuleTemplate.model_validate({"subject": "Doc"})

    def test_unknown_key_rejected(self) -> None:
        with pytest.raises(ValueError):
            RuleTemplate.model_validate({"allow": "read", "subject": "Doc", "priority": 1})


# ---------------------------------------------------------------------------
# RoleMappingLoader
# ---------------------------------------------------------------------------


class TestRoleMappingLoader:
    def test_load_from_dict(self, mapping: RoleMapping) -> None:
        assert mapping.role_names == ["admin", "guest", "member"]

    def test_missing_roles_rejected(self, loader: RoleMappingLoader) -> None:
        with pytest.raises(PolicyConfigError, match="roles"):
            loader.load_from_dict({"version": "1"})

    def test_non_mapping_rejected(self, loader: RoleMappingLoader) -> None:
        with pytest.raises(PolicyConfigError):
            loader.load_from_yaml_string("- just\n- a list\n")

    def test_bad_version_rejected(self, loader: RoleMappingLoader) -> None:
        with pytest.raises(PolicyConfigError, match="Unsupported"):
            loader.load_from_dict({"version": "2", "roles": {}})

    def test_unknown_parent_rejected(self, loader: RoleMappingLoader) -> None:
        with pytest.raises(PolicyConfigError, match="unknown role"):
            loader.load_from_dict({"roles": {"a": {"inherits": ["ghost"]}}})

    def test_inheritance_cycle_rejected(self, loader: RoleMappingLoader) -> None:
        with pytest.raises(PolicyConfigError, match="cycle"):
            loader.load_from_dict(
                {"roles": {"a": {"inherits": ["b"]}, "b": {"inherits": ["a"]}}}
            )

    def test_strict_rejects_unknown_keys(self) -> None:
        with pytest.raises(PolicyConfigError, match="Unknown top-level keys"):
            RoleMappingLoader(strict=True).load_from_dict({"roles": {}, "extra": 1})

    def test_lenient_ignores_unknown_keys(self, loader: RoleMappingLoader) -> None:
        assert loader.load_from_dict({"roles": {}, "extra": 1}).role_names == []

    def test_invalid_yaml_rejected(self, loader: RoleMappingLoader) -> None:
        with pytest.raises(PolicyConfigError, match="parse YAML"):
            loader.load_from_yaml_string("roles: [unclosed", config_path="inline")

    def test_error_prefixed_with_path(self, loader: RoleMappingLoader) -> None:
        with pytest.raises(PolicyConfigError) as info:
            loader.load_from_dict({"version": "1"}, config_path="roles.yaml")
        assert str(info.value).startswith("[roles.yaml]")
        assert info.value.config_path == "roles.yaml"

    def test_load_from_file(self, loader: RoleMappingLoader, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "roles.yaml"
        path.write_text(
            textwrap.dedent(
                """\
                version: "1"
                roles:
                  viewer:
                    rules:
                      - allow: read
                        subject: Doc
                        conditions:
                          level: {$lte: 2}
                """
            ),
            encoding="utf-8",
        )
        ability = loader.load(path).build_ability(Principal(id=1, roles=["viewer"]))
        assert ability.can("read", "Doc", {"level": 1}) is True
        assert ability.can("read", "Doc", {"level": 3}) is False

    def test_missing_file(self, loader: RoleMappingLoader, tmp_path: pathlib.Path) -> None:
        with pytest.raises(FileNotFoundError):
            loader.load(tmp_path / "nope.yaml")


# ---------------------------------------------------------------------------
# RoleMapping.build_ability
# ---------------------------------------------------------------------------


class TestBuildAbility:
    def test_principal_reference_substituted(self, mapping: RoleMapping) -> None:
        ability = mapping.build_ability(Principal(id="42", roles=["member"]))
        assert ability.can("read", "User", {"id": "42"}) is True
        assert ability.can("update", "User", {"id": "42", "status": "locked"}) is False
        assert ability.can("update", "User", {"id": "99"}) is False

    def test_substitution_preserves_type(self, loader: RoleMappingLoader) -> None:
        mapping = loader.load_from_dict(
            {
                "roles": {
                    "staff": {
                        "rules": [
                            {
                                "allow": "read",
                                "subject": "Doc",
                                "conditions": {"tenant_id": "${principal.tenant_id}"},
                            }
                        ]
                    }
                }
            }
        )
        principal = Principal(id="1", roles=["staff"], attributes={"tenant_id": 7})
        ability = mapping.build_ability(principal)
        assert ability.can("read", "Doc", {"tenant_id": 7}) is True
        assert ability.can("read", "Doc", {"tenant_id": "7"}) is False

    def test_unresolvable_reference_raises(self, loader: RoleMappingLoader) -> None:
        mapping = loader.load_from_dict(
            {
                "roles": {
                    "staff": {
                        "rules": [
                            {
                                "deny": "read",
                                "subject": "Doc",
                                "conditions": {"tenant_id": {"$ne": "${principal.tenant_id}"}},
                            }
                        ]
                    }
                }
            }
        )
        with pytest.raises(InvalidRuleDefinition, match="tenant_id"):
            mapping.build_ability(Principal(id="1", roles=["staff"]))

    def test_inherited_rules_applied(self, mapping: RoleMapping) -> None:
        ability = mapping.build_ability(Principal(id="42", roles=["member"]))
        assert ability.can("read", "Article", {"published": True}) is True

    def test_inherited_rules_come_first(self, mapping: RoleMapping) -> None:
        subjects = [template.subject for template in mapping.templates_for("member")]
        assert subjects == ["Article", "User", "User"]

    def test_unknown_role_ignored(self, mapping: RoleMapping) -> None:
        ability = mapping.build_ability(Principal(id="42", roles=["ghost"]))
        assert len(ability.rule_set) == 0
        assert ability.can("read", "Article", {"published": True}) is False

    def test_shared_parent_applied_once(self, mapping: RoleMapping) -> None:
        ability = mapping.build_ability(Principal(id="42", roles=["guest", "member"]))
        assert len(ability.rule_set) == 3

    def test_admin_override(self, mapping: RoleMapping) -> None:
        ability = mapping.build_ability(Principal(id="1", roles=["admin"]))
        assert ability.can("delete", "Invoice") is True

    def test_fields_carried_over(self, mapping: RoleMapping) -> None:
        ability = mapping.build_ability(Principal(id="42", roles=["member"]))
        fields = ability.permitted_fields("read", "User", {"id": "42"})
        assert fields.fields == frozenset({"name", "email"})

    def test_summary(self, mapping: RoleMapping) -> None:
        summary = mapping.summary()
        roles = summary["roles"]
        assert roles["member"]["effective_rules"] == 3  # type: ignore[index]


# ---------------------------------------------------------------------------
# Bundled templates
# ---------------------------------------------------------------------------


class TestTemplates:
    def test_list_templates(self) -> None:
        assert list_templates() == ["editorial", "multi_tenant", "owner_scoped"]

    def test_unknown_template(self) -> None:
        with pytest.raises(KeyError):
            get_template("nope")

    @pytest.mark.parametrize("name", ["editorial", "multi_tenant", "owner_scoped"])
    def test_every_template_loads(self, loader: RoleMappingLoader, name: str) -> None:
        mapping = loader.load_from_yaml_string(get_template(name), config_path=name)
        assert mapping.role_names

    def test_write_template(self, tmp_path: pathlib.Path) -> None:
        written = write_template("owner_scoped", tmp_path / "nested" / "roles.yaml")
        assert written.exists()

    def test_multi_tenant_scopes_by_tenant(self, loader: RoleMappingLoader) -> None:
        mapping = loader.load_from_yaml_string(get_template("multi_tenant"))
        principal = Principal(id="u1", roles=["tenant_admin"], attributes={"tenant_id": "t1"})
        ability = mapping.build_ability(principal)
        assert ability.can("read", "Invoice", {"tenant_id": "t1"}) is True
        assert ability.can("read", "Invoice", {"tenant_id": "t2"}) is False
        assert ability.can("delete", "Invoice", {"tenant_id": "t1", "status": "paid"}) is False
        assert ability.can("delete", "Invoice", {"tenant_id": "t1", "status": "open"}) is True

    def test_editorial_editor_fields(self, loader: RoleMappingLoader) -> None:
        mapping = loader.load_from_yaml_string(get_template("editorial"))
        ability = mapping.build_ability(Principal(id="e1", roles=["editor"]))
        fields = ability.permitted_fields("update", "Article", {"published": False})
        assert fields.fields == frozenset({"title", "summary", "published", "tags"})
