"""
Reconciliation - Order-Preserving Set Differences
=================================================

Given the identity sequence of the previous version and of the new version,
classify every identity as entering, persisting (update) or exiting.

    previous = [1, 2, 3]
    current  = [3, 4, 1]

    enter  = [4]      # current - previous, in current order
    update = [3, 1]   # current & previous, in current order
    exit   = [2]      # previous - current, in previous order

Duplicates are kept: an identity listed twice in ``current`` and absent from
``previous`` appears twice in ``enter``.
"""

from dataclasses import dataclass, field
from typing import Hashable, Iterable, List, Sequence


def without(sequence: Iterable[Hashable], excluded: Iterable[Hashable]) -> List[Hashable]:
    """Return ``sequence`` minus every element of ``excluded``, keeping order."""
    excluded = set(excluded)
    return [identity for identity in sequence if identity not in excluded]


def intersect(sequence: Iterable[Hashable], kept: Iterable[Hashable]) -> List[Hashable]:
    """Return the elements of ``sequence`` that also appear in ``kept``, keeping order."""
    kept = set(kept)
    return [identity for identity in sequence if identity in kept]


@dataclass
class Reconciliation:
    """
    Result of comparing two versions of an identity sequence.

    Attributes:
        current: Identities of the new version, as given
        enter: Identities new in this version
        update: Identities present in both versions
        exit: Identities that left in this version
    """

    current: List[Hashable] = field(default_factory=list)
    enter: List[Hashable] = field(default_factory=list)
    update: List[Hashable] = field(default_factory=list)
    exit: List[Hashable] = field(default_factory=list)

    def live(self) -> set:
        """Identities that may still be resolved in this version."""
        return set(self.current).union(self.exit)

    def __repr__(self) -> str:
        return (
            f"Reconciliation(enter={len(self.enter)}, "
            f"update={len(self.update)}, exit={len(self.exit)})"
        )


def reconcile(previous: Sequence[Hashable], current: Sequence[Hashable]) -> Reconciliation:
    """
    Compute enter, update and exit partitions between two versions.

    Args:
        previous: Identity sequence of the prior version (empty on first bind)
        current: Identity sequence of the new version

    Returns:
        A Reconciliation with every partition in source order
    """
    current = list(current)
    return Reconciliation(
        current=current,
        enter=without(current, previous),
        update=intersect(current, previous),
        exit=without(previous, current),
    )
