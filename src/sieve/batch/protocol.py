"""Protocol definitions for graph sources and sinks.

This module defines the interface that graph record providers and sinks
must implement, plus the statistics reported for one filter pass.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from sieve.graph import Vertex


@dataclass
class PassStats:
    """Statistics from one filter pass."""

    source: str
    vertices_read: int = 0
    vertices_kept: int = 0
    vertices_dropped: int = 0
    vertices_written: int = 0
    notices_routed: int = 0
    edges_pruned: int = 0
    duration_seconds: float = 0.0

    def __str__(self) -> str:
        """Return a human-readable summary."""
        parts = [
            f"{self.vertices_read:,} read",
            f"{self.vertices_kept:,} kept",
            f"{self.vertices_dropped:,} dropped",
        ]
        if self.edges_pruned:
            parts.append(f"{self.edges_pruned:,} edges pruned")
        return f"{self.source}: {', '.join(parts)} ({self.duration_seconds:.1f}s)"


@runtime_checkable
class GraphSource(Protocol):
    """Supplies the vertex records of one pass.

    ``read`` is called exactly once per pass.
    """

    name: str  # Short identifier shown in summaries (e.g., "jsonl", "neo4j")

    def read(self) -> Iterator[Vertex]:
        """Yield every vertex of the input graph.

        Raises:
            GraphFormatError: If a record cannot be decoded.
        """
        ...


@runtime_checkable
class GraphSink(Protocol):
    """Receives the repaired surviving vertices of one pass."""

    def write(self, vertices: Iterable[Vertex]) -> int:
        """Write vertices and return how many were written."""
        ...
