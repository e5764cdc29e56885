"""
DataJoin - Keyed Reconciliation of Successive Collections
=========================================================

A DataJoin binds successive versions of an ordered collection and exposes
enter, update and exit selections relative to the previous version, in the
manner of d3's data join but without any document behind it.

Without a factory the selections hold the raw items. With a factory every
identity is mapped to an object built by ``create``, memoised per identity
and rebuilt only when the identity's raw value changes. ``destroy`` is called
once for every item that leaves the collection, inside the ``data()`` call
that removed it.

Usage:
    join = DataJoin(create=Marker, destroy=Marker.remove)

    join.data([{"id": 1}, {"id": 2}], key="id")
    join.enter()   # [Marker(1), Marker(2)]

    join.data([{"id": 2}, {"id": 3}], key="id")  # Marker(1).remove() called
    join.enter()   # [Marker(3)]
    join.exit()    # [Marker(1)]
    join.all()     # [Marker(2), Marker(3)]

A join is not thread-safe. Confine it to one thread or guard it externally.
"""

import logging
from typing import Any, Callable, Dict, Hashable, Iterable, Iterator, List, Optional, Union

from cachetools import Cache

from .identity import KeyRule, as_identity, resolve_key, unwrap_identity
from .index import MISSING, ObjectIndex, VersionIndex, equal_value, same_value
from .reconcile import reconcile

KeyAccessor = Union[str, Callable[[Any], Hashable], KeyRule, None]

# Names of the memoised selections, one cache slot each
SELECTIONS = ("all", "enter", "update", "exit")


class DataJoin:
    """
    Reconciles successive versions of a collection by identity.

    Features:
    - Order-preserving enter / update / exit selections
    - Identity by property name, callable or the item itself
    - Memoised factory construction, rebuilt when an item's value changes
    - Exactly-once destroy callback for exiting items
    - Per-version caching of resolved selections

    Usage:
        join = DataJoin()
        join.data(["a", "b"])
        join.data(["b", "c"])
        join.enter()  # ["c"]
        join.exit()   # ["a"]
    """

    def __init__(
        self,
        create: Optional[Callable[[Any], Any]] = None,
        destroy: Optional[Callable[[Any], Any]] = None,
        cache_selections: bool = True,
    ):
        """
        Initialize the join.

        Args:
            create: Factory mapping a raw item to an object
            destroy: Called with every exiting object (or raw item without a factory)
            cache_selections: Whether resolved selections are memoised per version
        """
        # Identity sequences of the current version
        self._current: List[Hashable] = []
        self._enter: List[Hashable] = []
        self._update: List[Hashable] = []
        self._exit: List[Hashable] = []

        # None while the last bind used the items themselves as identities
        self._values: Optional[VersionIndex] = None
        self._objects = ObjectIndex()

        self._create: Optional[Callable[[Any], Any]] = None
        self._destroy: Optional[Callable[[Any], Any]] = None

        self._cache_selections = cache_selections
        self._cache = Cache(maxsize=len(SELECTIONS))

        # Statistics
        self._stats = {
            "binds": 0,
            "entered": 0,
            "exited": 0,
            "constructed": 0,
            "destroyed": 0,
            "evicted": 0,
            "reads": 0,
            "cache_hits": 0,
        }

        if create is not None or destroy is not None:
            self.factory(create, destroy)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def data(
        self, items: Optional[Iterable[Any]] = None, key: KeyAccessor = None
    ) -> Union["DataJoin", List[Any]]:
        """
        Bind a new version of the collection, or return the current one.

        Args:
            items: The new collection. When omitted, the raw items of the
                current version are returned instead.
            key: Identity accessor for this version: a property name, a
                callable, or None to use each item as its own identity

        Returns:
            The join (for chaining) when binding, else a list of raw items
        """
        if items is None:
            return [self._raw_value(identity) for identity in self._current]

        self._update_selections(list(items), key)
        return self

    def all(self) -> List[Any]:
        """Resolved selection of every item in the current version."""
        return self._select("all", self._current)

    def enter(self) -> List[Any]:
        """Resolved selection of items new in the current version."""
        return self._select("enter", self._enter)

    def update(self) -> List[Any]:
        """Resolved selection of items present in both the previous and current version."""
        return self._select("update", self._update)

    def exit(self) -> List[Any]:
        """Resolved selection of items that left in the current version."""
        return self._select("exit", self._exit)

    def factory(
        self,
        create: Optional[Callable[[Any], Any]],
        destroy: Optional[Callable[[Any], Any]] = None,
    ) -> "DataJoin":
        """
        Map every item to an object built by ``create``.

        ``destroy`` receives each exiting object, synchronously, inside the
        ``data()`` call that produced the exit. Passing ``create=None``
        returns the join to raw items.

        Raises:
            TypeError: If either argument is neither callable nor None
        """
        for name, fn in (("create", create), ("destroy", destroy)):
            if fn is not None and not callable(fn):
                raise TypeError(f"{name} must be callable, not {type(fn).__name__}")

        # Bound methods are rebuilt on every attribute access, compare by equality
        if create != self._create:
            # Objects built by another factory must not be handed out
            self._objects.clear()
            self._cache.clear()

        self._create = create
        self._destroy = destroy
        return self

    def identify(self, identity: Union[Hashable, List[Hashable]]) -> Any:
        """
        Resolve an identity (or a list of identities) to its raw item or object.

        Builds and memoises the object when a factory is registered and no
        object exists for the identity's current raw value.
        """
        if isinstance(identity, list):
            return [self.identify(each) for each in identity]

        identity = as_identity(identity)
        raw = self._raw_value(identity)
        if self._create is None:
            return raw

        obj, created = self._objects.get_or_create(
            identity, raw, self._create, self._same_raw_value()
        )
        if created:
            self._stats["constructed"] += 1
        return obj

    def identities(self) -> List[Hashable]:
        """Identities of the current version, in bound order."""
        return [unwrap_identity(identity) for identity in self._current]

    def get_stats(self) -> Dict[str, Any]:
        """Get statistics about join operations."""
        stats = self._stats.copy()
        stats["current_size"] = len(self._current)
        stats["indexed_values"] = len(self._values) if self._values is not None else 0
        stats["indexed_objects"] = len(self._objects)
        stats["cache_hit_rate"] = (
            stats["cache_hits"] / stats["reads"] if stats["reads"] > 0 else 0
        )
        return stats

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def _update_selections(self, items: List[Any], key: KeyAccessor) -> None:
        """
        Reconcile ``items`` against the current version and maintain indices.

        Callback errors propagate as raised; indices keep whatever state they
        reached at that point.
        """
        # Selections from the previous version are never valid past this point
        self._cache.clear()
        self._stats["binds"] += 1

        rule = resolve_key(key)
        ident = rule.resolver()

        new_ids = [as_identity(ident(item)) for item in items]
        # Duplicate identities collapse here, the last occurrence wins
        new_index = (
            VersionIndex(dict(zip(new_ids, items))) if rule.indexes_values else None
        )

        result = reconcile(self._current, new_ids)
        self._current = result.current
        self._enter = result.enter
        self._update = result.update
        self._exit = result.exit

        if new_index is not None and self._values is not None:
            self._values.merge(new_index)
        else:
            self._values = new_index

        live = result.live()
        if self._values is not None:
            self._values.prune(live)
        self._objects.prune(live)

        evicted = self._objects.evict_stale(self._raw_value, self._same_raw_value())
        # Objects left over from an identity's previous life were destroyed
        # when it exited
        evicted += self._objects.discard(result.enter)
        self._stats["entered"] += len(result.enter)
        self._stats["exited"] += len(result.exit)
        self._stats["evicted"] += len(evicted)

        logging.debug(
            f"DataJoin bind #{self._stats['binds']}: {result}, "
            f"{len(evicted)} stale objects evicted"
        )

        if self._destroy is not None:
            self._dispatch_destroy()

        # Reads made by destroy callbacks do not outlive the bind
        self._cache.clear()

    def _dispatch_destroy(self) -> None:
        """Call ``destroy`` once per exiting identity, in exit order."""
        # An identity bound twice exits twice but owns a single object
        exiting = self.identify(list(dict.fromkeys(self._exit)))
        for obj in exiting:
            self._destroy(obj)
            self._stats["destroyed"] += 1

        if exiting:
            logging.debug(f"DataJoin destroyed {len(exiting)} exiting objects")

    def _raw_value(self, identity: Hashable) -> Any:
        raw = identity if self._values is None else self._values.resolve(identity)
        return unwrap_identity(raw)

    def _same_raw_value(self) -> Callable[[Any, Any], bool]:
        # Items that are their own identity are only as stale as their key
        return same_value if self._values is not None else equal_value

    def _select(self, name: str, identities: List[Hashable]) -> List[Any]:
        self._stats["reads"] += 1
        if not self._cache_selections:
            return self.identify(identities)

        selection = self._cache.get(name, MISSING)
        if selection is not MISSING:
            self._stats["cache_hits"] += 1
            return selection

        selection = self.identify(identities)
        self._cache[name] = selection
        return selection

    # ------------------------------------------------------------------
    # Container protocol
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._current)

    def __contains__(self, identity: Hashable) -> bool:
        return as_identity(identity) in self._current

    def __iter__(self) -> Iterator[Any]:
        return iter(self.all())

    def __repr__(self) -> str:
        return (
            f"DataJoin(size={len(self._current)}, enter={len(self._enter)}, "
            f"update={len(self._update)}, exit={len(self._exit)})"
        )


def data_join(
    create: Optional[Callable[[Any], Any]] = None,
    destroy: Optional[Callable[[Any], Any]] = None,
    **kwargs: Any,
) -> DataJoin:
    """Create a DataJoin, optionally with a factory and destroy callback."""
    return DataJoin(create=create, destroy=destroy, **kwargs)
