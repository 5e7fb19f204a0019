"""Neutral predicate AST emitted by the filter translator.

Storage adapters turn these nodes into their own query syntax (a SQL
``WHERE`` clause, a document-store filter, ...).  Each node can also be
evaluated in memory with :meth:`Predicate.matches`, using exactly the same
leaf semantics as the condition matcher, and dumped to plain data with
:meth:`Predicate.to_dict`.

Build composite nodes through :func:`all_of`, :func:`any_of` and
:func:`negate`; they flatten and fold constants.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from aumos_abilities.conditions.operands import (
    COMPARE_OPERATORS,
    MISSING,
    compare,
    is_member,
    resolve_path,
)


class Predicate(ABC):
    """Abstract base for predicate nodes."""

    @abstractmethod
    def matches(self, instance: object) -> bool:
        """Evaluate the predicate against an in-memory instance."""

    @abstractmethod
    def to_dict(self) -> dict[str, object]:
        """Return a JSON-ready representation."""


@dataclass(frozen=True)
class AlwaysTrue(Predicate):
    def matches(self, instance: object) -> bool:
        return True

    def to_dict(self) -> dict[str, object]:
        return {"op": "true"}


@dataclass(frozen=True)
class AlwaysFalse(Predicate):
    def matches(self, instance: object) -> bool:
        return False

    def to_dict(self) -> dict[str, object]:
        return {"op": "false"}


@dataclass(frozen=True)
class Compare(Predicate):
    """``path <operator> value``; operator is ``eq ne gt gte lt lte``."""

    path: str
    operator: str
    value: object

    def __post_init__(self) -> None:
        if self.operator not in COMPARE_OPERATORS:
            raise ValueError(f"Unknown compare operator {self.operator!r}.")

    def matches(self, instance: object) -> bool:
        return compare(self.operator, resolve_path(instance, self.path), self.value)

    def to_dict(self) -> dict[str, object]:
        return {"op": self.operator, "path": self.path, "value": self.value}


@dataclass(frozen=True)
class Member(Predicate):
    """``path in values`` (``not in`` when negated)."""

    path: str
    values: tuple[object, ...]
    negated: bool = False

    def matches(self, instance: object) -> bool:
        return is_member(resolve_path(instance, self.path), self.values, self.negated)

    def to_dict(self) -> dict[str, object]:
        return {
            "op": "nin" if self.negated else "in",
            "path": self.path,
            "values": list(self.values),
        }


@dataclass(frozen=True)
class Exists(Predicate):
    """``path`` resolves (a present ``None`` counts as existing)."""

    path: str

    def matches(self, instance: object) -> bool:
        return resolve_path(instance, self.path) is not MISSING

    def to_dict(self) -> dict[str, object]:
        return {"op": "exists", "path": self.path}


@dataclass(frozen=True)
class AllOf(Predicate):
    children: tuple[Predicate, ...]

    def matches(self, instance: object) -> bool:
        return all(child.matches(instance) for child in self.children)

    def to_dict(self) -> dict[str, object]:
        return {"op": "and", "children": [child.to_dict() for child in self.children]}


@dataclass(frozen=True)
class AnyOf(Predicate):
    children: tuple[Predicate, ...]

    def matches(self, instance: object) -> bool:
        return any(child.matches(instance) for child in self.children)

    def to_dict(self) -> dict[str, object]:
        return {"op": "or", "children": [child.to_dict() for child in self.children]}


@dataclass(frozen=True)
class Negation(Predicate):
    child: Predicate

    def matches(self, instance: object) -> bool:
        return not self.child.matches(instance)

    def to_dict(self) -> dict[str, object]:
        return {"op": "not", "child": self.child.to_dict()}


ALWAYS_TRUE = AlwaysTrue()
ALWAYS_FALSE = AlwaysFalse()


def all_of(*predicates: Predicate) -> Predicate:
    """Conjunction with flattening; empty is :data:`ALWAYS_TRUE`."""
    children: list[Predicate] = []
    for predicate in predicates:
        if isinstance(predicate, AlwaysFalse):
            return ALWAYS_FALSE
        if isinstance(predicate, AlwaysTrue):
            continue
        if isinstance(predicate, AllOf):
            children.extend(predicate.children)
        else:
            children.append(predicate)
    if not children:
        return ALWAYS_TRUE
    if len(children) == 1:
        return children[0]
    return AllOf(tuple(children))


def any_of(*predicates: Predicate) -> Predicate:
    """Disjunction with flattening; empty is :data:`ALWAYS_FALSE`."""
    children: list[Predicate] = []
    for predicate in predicates:
        if isinstance(predicate, AlwaysTrue):
            return ALWAYS_TRUE
        if isinstance(predicate, AlwaysFalse):
            continue
        if isinstance(predicate, AnyOf):
            children.extend(predicate.children)
        else:
            children.append(predicate)
    if not children:
        return ALWAYS_FALSE
    if len(children) == 1:
        return children[0]
    return AnyOf(tuple(children))


def negate(predicate: Predicate) -> Predicate:
    if isinstance(predicate, AlwaysTrue):
        return ALWAYS_FALSE
    if isinstance(predicate, AlwaysFalse):
        return ALWAYS_TRUE
    if isinstance(predicate, Negation):
        return predicate.child
    return Negation(predicate)
