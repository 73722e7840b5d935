"""
vertex-sieve: property-value vertex filtering for large partitioned graphs.

Vertices failing a single-attribute predicate are removed, and every edge
that would dangle is pruned from the surviving endpoint in the same pass.
"""

from sieve.errors import (
    ConfigurationError,
    DataIntegrityError,
    DuplicateVertexError,
    SieveError,
)
from sieve.graph import Direction, Edge, Vertex, connect
from sieve.messages import RemovalNotice, RoutedMessage, VertexPayload
from sieve.predicate import Comparator, FilterSpec, ValueType, evaluate
from sieve.stages import Counters, FilterCounters, filter_vertex, merge_group

__all__ = [
    "Comparator",
    "ConfigurationError",
    "Counters",
    "DataIntegrityError",
    "Direction",
    "DuplicateVertexError",
    "Edge",
    "FilterCounters",
    "FilterSpec",
    "RemovalNotice",
    "RoutedMessage",
    "SieveError",
    "ValueType",
    "Vertex",
    "VertexPayload",
    "connect",
    "evaluate",
    "filter_vertex",
    "merge_group",
]
