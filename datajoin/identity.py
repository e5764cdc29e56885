"""
Key Rules - Identity Resolution
===============================

This module turns the ``key`` argument accepted by ``DataJoin.data()`` into a
pure function from a raw item to its identity.

Three rules are supported:
- PropertyKey: read a named field (``item[name]`` for mappings, attribute otherwise)
- CallableKey: compute the identity with a caller-supplied function
- SelfKey: the item is its own identity

Unhashable identities (a dict bound without a key rule, say) are wrapped in a
ReferenceKey and compared by reference.

Usage:
    rule = resolve_key("id")
    ident = rule.resolver()
    ident({"id": 7, "name": "seven"})  # 7
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Hashable, Optional, Union


def _self_identity(item: Any) -> Any:
    return item


@dataclass(frozen=True)
class PropertyKey:
    """Identity is the value of a named field on each item."""

    name: str

    def resolver(self) -> Callable[[Any], Hashable]:
        name = self.name

        def read_property(item: Any) -> Hashable:
            # Mappings are read by key, everything else by attribute
            if isinstance(item, Mapping):
                return item[name]
            return getattr(item, name)

        return read_property

    @property
    def indexes_values(self) -> bool:
        return True


@dataclass(frozen=True)
class CallableKey:
    """Identity is computed from each item by ``fn``."""

    fn: Callable[[Any], Hashable]

    def resolver(self) -> Callable[[Any], Hashable]:
        return self.fn

    @property
    def indexes_values(self) -> bool:
        return True


@dataclass(frozen=True)
class SelfKey:
    """Each item is its own identity; no value index is kept."""

    def resolver(self) -> Callable[[Any], Hashable]:
        return _self_identity

    @property
    def indexes_values(self) -> bool:
        return False


class ReferenceKey:
    """
    Identity of an unhashable item, compared by reference.

    Two ReferenceKeys are equal only when they wrap the very same object, so a
    list or dict bound twice keeps its identity while an equal copy does not.
    """

    __slots__ = ("item",)

    def __init__(self, item: Any):
        self.item = item

    def __hash__(self):
        return id(self.item)

    def __eq__(self, other):
        if not isinstance(other, ReferenceKey):
            return False
        return self.item is other.item

    def __repr__(self):
        return f"ReferenceKey({self.item!r})"


def as_identity(value: Any) -> Hashable:
    """Return ``value`` itself if hashable, else a ReferenceKey around it."""
    try:
        hash(value)
        return value
    except TypeError:
        return ReferenceKey(value)


def unwrap_identity(identity: Hashable) -> Any:
    """Inverse of as_identity."""
    if isinstance(identity, ReferenceKey):
        return identity.item
    return identity


KeyRule = Union[PropertyKey, CallableKey, SelfKey]

# SelfKey carries no state, share one instance
SELF_KEY = SelfKey()


def resolve_key(key: Optional[Union[str, Callable[[Any], Hashable], KeyRule]]) -> KeyRule:
    """
    Resolve a key accessor into a tagged key rule.

    Args:
        key: A property name, a callable, an already-built rule, or None

    Returns:
        The matching KeyRule

    Raises:
        TypeError: If ``key`` is none of the accepted shapes
    """
    if key is None:
        return SELF_KEY
    if isinstance(key, (PropertyKey, CallableKey, SelfKey)):
        return key
    if isinstance(key, str):
        return PropertyKey(key)
    if callable(key):
        return CallableKey(key)
    raise TypeError(
        f"key must be a property name, a callable or None, not {type(key).__name__}"
    )
