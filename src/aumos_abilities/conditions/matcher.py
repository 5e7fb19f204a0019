"""Evaluate condition trees against resource instances.

:func:`matches` is a pure function: it reads the instance and the tree and
returns a boolean.  It holds no state, so it is safe to call from any number
of threads.

A missing attribute path makes the containing leaf ``False``.  Nodes the
matcher cannot evaluate at all (:class:`Malformed`, or a :class:`Custom`
predicate that raises) raise :class:`ConditionEvaluationError`, as does any
error raised while reading the instance.  The decision engine catches it
and treats the owning rule as non-matching.
"""
from __future__ import annotations

from aumos_abilities.conditions.nodes import (
    And,
    Comparison,
    Condition,
    Custom,
    Equality,
    Malformed,
    Membership,
    Nested,
    Not,
    Or,
)
from aumos_abilities.conditions.operands import MISSING, compare, is_member, resolve_path
from aumos_abilities.errors import ConditionEvaluationError


def matches(condition: Condition | None, instance: object) -> bool:
    """Return ``True`` when ``instance`` satisfies ``condition``.

    Parameters
    ----------
    condition:
        Condition tree, or ``None`` for "always".
    instance:
        Mapping or plain object whose attributes are tested.

    Raises
    ------
    ConditionEvaluationError
        If the tree contains a node that cannot be evaluated, or reading the
        instance raises.
    """
    if condition is None:
        return True
    try:
        return _evaluate(condition, instance)
    except ConditionEvaluationError:
        raise
    except Exception as exc:
        raise ConditionEvaluationError(
            f"Evaluating condition failed: {type(exc).__name__}: {exc}"
        ) from exc


def _evaluate(condition: Condition, instance: object) -> bool:
    match condition:
        case Equality(path=path, value=value, negated=negated):
            return compare("ne" if negated else "eq", resolve_path(instance, path), value)
        case Membership(path=path, values=values, negated=negated):
            if not isinstance(values, tuple):
                raise ConditionEvaluationError(
                    f"Membership on {path!r} expects a list of values; got {values!r}."
                )
            return is_member(resolve_path(instance, path), values, negated)
        case Comparison(path=path, operator=operator, value=value):
            return compare(operator, resolve_path(instance, path), value)
        case And(children=children):
            return all(_evaluate(child, instance) for child in children)
        case Or(children=children):
            return any(_evaluate(child, instance) for child in children)
        case Not(child=child):
            return not _evaluate(child, instance)
        case Nested(path=path, condition=inner):
            target = resolve_path(instance, path)
            if target is MISSING:
                return False
            return _evaluate(inner, target)
        case Custom(path=path, predicate=predicate, name=name):
            actual = resolve_path(instance, path)
            if actual is MISSING:
                return False
            try:
                return bool(predicate(actual))
            except Exception as exc:
                raise ConditionEvaluationError(
                    f"Custom condition {name!r} on {path!r} failed: {exc}"
                ) from exc
        case Malformed(message=message):
            raise ConditionEvaluationError(f"Malformed condition: {message}")
        case _:
            raise ConditionEvaluationError(
                f"Unsupported condition node {type(condition).__name__}."
            )
