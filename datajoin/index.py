"""
Identity Indices
================

Two identity-keyed tables back a DataJoin:

- VersionIndex: identity -> most recently bound raw value. Merged, not
  replaced, across versions so identities from the previous version stay
  resolvable until they are pruned.
- ObjectIndex: identity -> (raw value at construction, constructed object).
  An entry is only valid while its raw value is the same value the
  VersionIndex currently holds for the identity.

Both are pruned after every reconciliation to the identities that are still
current or have just exited.
"""

from typing import Any, Callable, Dict, Hashable, Iterable, List, Mapping, Optional, Tuple

# Sentinel object for "key not found"
MISSING = object()

# Values compared by equality when checking staleness; everything else is
# compared by reference
_SCALAR_TYPES = (type(None), bool, int, float, complex, str, bytes)


def same_value(old: Any, new: Any) -> bool:
    """
    Check whether two raw values belong to the same construction epoch.

    Containers and arbitrary objects must be the very same object. Immutable
    scalars of the same type are compared by value.
    """
    if old is new:
        return True
    if type(old) is not type(new) or not isinstance(old, _SCALAR_TYPES):
        return False
    return old == new


def equal_value(old: Any, new: Any) -> bool:
    """Staleness check for items that are their own identity: plain equality."""
    return old is new or old == new


class VersionIndex:
    """
    Mapping from identity to the most recently observed raw value.

    Usage:
        index = VersionIndex({1: {"id": 1}})
        index.merge(VersionIndex({2: {"id": 2}}))
        index.prune({2})
        index.resolve(2)  # {"id": 2}
    """

    def __init__(self, values: Optional[Mapping[Hashable, Any]] = None):
        self._data: Dict[Hashable, Any] = dict(values) if values else {}

    def merge(self, other: "VersionIndex") -> None:
        """Overwrite with every entry of ``other``, keeping entries it lacks."""
        self._data.update(other._data)

    def resolve(self, identity: Hashable) -> Any:
        """
        Raw value for ``identity``.

        Identities that were never indexed resolve to themselves; that is the
        raw value they had when bound without a key rule.
        """
        return self._data.get(identity, identity)

    def prune(self, live: Iterable[Hashable]) -> int:
        """
        Delete every identity not in ``live``.

        Returns:
            Number of identities removed
        """
        live = live if isinstance(live, (set, frozenset)) else set(live)
        stale = [identity for identity in self._data if identity not in live]
        for identity in stale:
            del self._data[identity]
        return len(stale)

    def keys(self) -> List[Hashable]:
        return list(self._data.keys())

    def __contains__(self, identity: Hashable) -> bool:
        return identity in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"VersionIndex({len(self._data)} identities)"


class ObjectIndex:
    """
    Memo table of factory-built objects keyed by identity.

    Each entry remembers the raw value it was built from so staleness is an
    explicit comparison against the current raw value.
    """

    def __init__(self):
        self._entries: Dict[Hashable, Tuple[Any, Any]] = {}

    def lookup(
        self, identity: Hashable, raw: Any, same: Callable[[Any, Any], bool] = same_value
    ) -> Any:
        """
        Cached object for ``identity`` if it was built from ``raw``.

        Returns:
            The object, or MISSING when absent or stale
        """
        entry = self._entries.get(identity, MISSING)
        if entry is MISSING or not same(entry[0], raw):
            return MISSING
        return entry[1]

    def store(self, identity: Hashable, raw: Any, obj: Any) -> None:
        self._entries[identity] = (raw, obj)

    def get_or_create(
        self,
        identity: Hashable,
        raw: Any,
        create: Callable[[Any], Any],
        same: Callable[[Any, Any], bool] = same_value,
    ) -> Tuple[Any, bool]:
        """
        Return the object for ``identity``, building it from ``raw`` if needed.

        Returns:
            Tuple of (object, whether ``create`` was called)
        """
        obj = self.lookup(identity, raw, same)
        if obj is not MISSING:
            return obj, False
        obj = create(raw)
        self.store(identity, raw, obj)
        return obj, True

    def prune(self, live: Iterable[Hashable]) -> int:
        """Delete every entry whose identity is not in ``live``."""
        live = live if isinstance(live, (set, frozenset)) else set(live)
        stale = [identity for identity in self._entries if identity not in live]
        for identity in stale:
            del self._entries[identity]
        return len(stale)

    def evict_stale(
        self,
        resolve: Callable[[Hashable], Any],
        same: Callable[[Any, Any], bool] = same_value,
    ) -> List[Hashable]:
        """
        Delete entries whose construction value no longer matches.

        Args:
            resolve: Maps an identity to its current raw value
            same: Decides whether a stored raw value is still current

        Returns:
            Identities whose entries were evicted
        """
        evicted = [
            identity
            for identity, (raw, _) in self._entries.items()
            if not same(raw, resolve(identity))
        ]
        for identity in evicted:
            del self._entries[identity]
        return evicted

    def discard(self, identities: Iterable[Hashable]) -> List[Hashable]:
        """Delete the entries of ``identities``, returning those that existed."""
        discarded = []
        for identity in identities:
            if self._entries.pop(identity, MISSING) is not MISSING:
                discarded.append(identity)
        return discarded

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, identity: Hashable) -> bool:
        return identity in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ObjectIndex({len(self._entries)} objects)"
