"""
datajoin - Keyed Data Joins for Plain Python Collections

Binds successive versions of an ordered collection and tracks which items
enter, persist and exit, optionally mapping each item to a factory-built
object that is reused while the item is unchanged.
"""

__version__ = "0.1.0"

# Identity rules
from .identity import (
    CallableKey,
    KeyRule,
    PropertyKey,
    ReferenceKey,
    SelfKey,
    resolve_key,
)

# Identity-keyed indices
from .index import ObjectIndex, VersionIndex, same_value

# The join itself
from .join import DataJoin, data_join

# Reconciliation primitives
from .reconcile import Reconciliation, intersect, reconcile, without

__all__ = [
    # Join
    "DataJoin",
    "data_join",
    # Identity rules
    "KeyRule",
    "PropertyKey",
    "CallableKey",
    "SelfKey",
    "ReferenceKey",
    "resolve_key",
    # Reconciliation
    "Reconciliation",
    "reconcile",
    "without",
    "intersect",
    # Indices
    "VersionIndex",
    "ObjectIndex",
    "same_value",
]
