"""Unit tests for rules.py (Rule, RuleSet) and builder.py (AbilityBuilder)."""
from __future__ import annotations

import pytest

from aumos_abilities.ability import Ability
from aumos_abilities.builder import AbilityBuilder, define_ability
from aumos_abilities.conditions.nodes import Equality, Membership, Not
from aumos_abilities.errors import InvalidRuleDefinition, RuleSetFrozenError
from aumos_abilities.principal import Principal
from aumos_abilities.rules import Effect, Rule, RuleSet


def _rule(
    effect: Effect = Effect.ALLOW,
    actions: tuple[str, ...] = ("read",),
    subject: str = "Doc",
    reason: str | None = None,
) -> Rule:
    return Rule(effect=effect, actions=frozenset(actions), subject_type=subject, reason=reason)


# ---------------------------------------------------------------------------
# Rule
# ---------------------------------------------------------------------------


class TestRule:
    def test_applies_to_exact_match(self) -> None:
        assert _rule().applies_to("read", "Doc") is True

    def test_does_not_apply_to_other_action(self) -> None:
        assert _rule().applies_to("update", "Doc") is False

    def test_does_not_apply_to_other_subject(self) -> None:
        assert _rule().applies_to("read", "User") is False

    @pytest.mark.parametrize("wildcard", ["manage", "*"])
    def test_wildcard_action(self, wildcard: str) -> None:
        assert _rule(actions=(wildcard,)).applies_to("delete", "Doc") is True

    @pytest.mark.parametrize("wildcard", ["all", "*"])
    def test_wildcard_subject(self, wildcard: str) -> None:
        assert _rule(subject=wildcard).applies_to("read", "Anything") is True

    def test_is_conditional(self) -> None:
        rule = Rule(Effect.ALLOW, frozenset({"read"}), "Doc", conditions=Equality("a", 1))
        assert rule.is_conditional is True
        assert _rule().is_conditional is False

    def test_is_malformed_flags_bad_membership_operand(self) -> None:
        bad = Membership("level", 5)  # type: ignore[arg-type]
        rule = Rule(Effect.DENY, frozenset({"read"}), "Doc", conditions=Not(bad))
        assert rule.is_malformed is True

    def test_is_malformed_false_for_valid_tree(self) -> None:
        rule = Rule(
            Effect.ALLOW, frozenset({"read"}), "Doc", conditions=Membership("level", (1, 2))
        )
        assert rule.is_malformed is False

    def test_describe_includes_reason(self) -> None:
        text = _rule(effect=Effect.DENY, actions=("update", "read"), reason="locked").describe()
        assert text == "deny read,update Doc (locked)"

    def test_frozen(self) -> None:
        rule = _rule()
        with pytest.raises((AttributeError, TypeError)):
            rule.subject_type = "User"  # type: ignore[misc]


# ---------------------------------------------------------------------------
# RuleSet
# ---------------------------------------------------------------------------


class TestRuleSet:
    def test_rules_for_preserves_registration_order(self) -> None:
        first = _rule(reason="first")
        second = _rule(effect=Effect.DENY, reason="second")
        third = _rule(subject="all", reason="third")
        rules = RuleSet([first, _rule(subject="User"), second, third])
        assert list(rules.rules_for("read", "Doc")) == [first, second, third]

    def test_rules_for_is_lazy(self) -> None:
        rules = RuleSet([_rule()])
        view = rules.rules_for("read", "Doc")
        assert not isinstance(view, list)
        assert next(view).actions == frozenset({"read"})

    def test_append_after_freeze_raises(self) -> None:
        rules = RuleSet().freeze()
        with pytest.raises(RuleSetFrozenError):
            rules.append(_rule())

    def test_len_and_iter(self) -> None:
        rules = RuleSet([_rule(), _rule()])
        assert len(rules) == 2
        assert all(isinstance(r, Rule) for r in rules)


# ---------------------------------------------------------------------------
# AbilityBuilder
# ---------------------------------------------------------------------------


class TestAbilityBuilder:
    def test_fluent_chaining_returns_builder(self) -> None:
        builder = AbilityBuilder()
        assert builder.allow("read", "Doc").deny("read", "Doc") is builder

    def test_rules_registered_in_order(self) -> None:
        builder = AbilityBuilder().allow("read", "Doc").deny("update", "Doc")
        effects = [rule.effect for rule in builder.rules]
        assert effects == [Effect.ALLOW, Effect.DENY]

    def test_can_and_cannot_aliases(self) -> None:
        builder = AbilityBuilder().can("read", "Doc").cannot("read", "Doc")
        assert [rule.effect for rule in builder.rules] == [Effect.ALLOW, Effect.DENY]

    def test_single_action_string_accepted(self) -> None:
        rule = next(iter(AbilityBuilder().allow("read", "Doc").rules))
        assert rule.actions == frozenset({"read"})

    def test_conditions_parsed(self) -> None:
        rule = next(iter(AbilityBuilder().allow("read", "Doc", {"owner_id": "x"}).rules))
        assert rule.conditions == Equality("owner_id", "x")

    def test_empty_conditions_unconditional(self) -> None:
        rule = next(iter(AbilityBuilder().allow("read", "Doc", {}).rules))
        assert rule.conditions is None

    def test_fields_normalised(self) -> None:
        rule = next(iter(AbilityBuilder().allow("read", "Doc", fields=["a", "b"]).rules))
        assert rule.fields == frozenset({"a", "b"})

    def test_empty_actions_rejected(self) -> None:
        with pytest.raises(InvalidRuleDefinition):
            AbilityBuilder().allow([], "Doc")

    def test_empty_action_name_rejected(self) -> None:
        with pytest.raises(InvalidRuleDefinition):
            AbilityBuilder().allow(["read", ""], "Doc")

    def test_empty_subject_rejected(self) -> None:
        with pytest.raises(InvalidRuleDefinition):
            AbilityBuilder().deny("read", "")

    def test_unknown_identifiers_accepted(self) -> None:
        ability = AbilityBuilder().allow("frobnicate", "Nothing").build()
        assert ability.can("read", "Doc") is False

    def test_build_returns_frozen_ability(self) -> None:
        builder = AbilityBuilder().allow("read", "Doc")
        ability = builder.build()
        assert isinstance(ability, Ability)
        assert ability.rule_set.frozen is True

    def test_builder_spent_after_build(self) -> None:
        builder = AbilityBuilder()
        builder.build()
        with pytest.raises(RuleSetFrozenError):
            builder.allow("read", "Doc")

    def test_define_ability_passes_principal(self) -> None:
        principal = Principal(id="42", roles=["member"])

        def define(builder: AbilityBuilder, user: Principal | None) -> None:
            assert user is principal
            if user is not None and "admin" in user.roles:
                builder.allow("manage", "all")
            else:
                builder.allow("read", "User", {"id": user.id if user else None})

        ability = define_ability(principal, define)
        assert ability.principal is principal
        assert ability.can("read", "User", {"id": "42"}) is True
        assert ability.can("delete", "User", {"id": "42"}) is False
