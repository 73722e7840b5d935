"""Filter and merge stages of a vertex filter pass.

The filter stage runs once per vertex. A kept vertex is routed to its own
id; a dropped vertex sends a removal notice to every neighbour instead. After
the messages are grouped by destination id, the merge stage strips the edges
that point at dropped neighbours from the one surviving record in each group.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from sieve.errors import DuplicateVertexError, IllegalMessageError, MisroutedMessageError
from sieve.graph import Vertex
from sieve.messages import Message, RemovalNotice, RoutedMessage, VertexPayload
from sieve.predicate import FilterSpec, evaluate

logger = logging.getLogger(__name__)


class Counters(str, Enum):
    """Counters maintained by the filter stage."""

    VERTICES_KEPT = "vertices_kept"
    VERTICES_DROPPED = "vertices_dropped"


class CounterSink(Protocol):
    """Anything that can accumulate counter increments."""

    def increment(self, counter: Counters, amount: int = 1) -> None: ...


@dataclass
class FilterCounters:
    """In-memory counters, one instance per partition."""

    vertices_kept: int = 0
    vertices_dropped: int = 0

    def increment(self, counter: Counters, amount: int = 1) -> None:
        if counter is Counters.VERTICES_KEPT:
            self.vertices_kept += amount
        elif counter is Counters.VERTICES_DROPPED:
            self.vertices_dropped += amount
        else:
            raise ValueError(f"Unknown counter: {counter!r}")

    def merge(self, other: FilterCounters) -> None:
        self.vertices_kept += other.vertices_kept
        self.vertices_dropped += other.vertices_dropped

    @property
    def total(self) -> int:
        return self.vertices_kept + self.vertices_dropped


def filter_vertex(
    vertex: Vertex,
    spec: FilterSpec,
    counters: Optional[CounterSink] = None,
) -> list[RoutedMessage]:
    """Evaluate ``spec`` on ``vertex`` and emit the messages it produces.

    Args:
        vertex: The vertex to test.
        spec: The predicate shared by the whole pass.
        counters: Optional sink for the kept/dropped counters.

    Returns:
        A single payload routed to ``vertex.id`` if the vertex is kept,
        otherwise one removal notice per incident edge routed to the far
        endpoint (self-loops excluded).
    """
    if evaluate(vertex, spec):
        if counters is not None:
            counters.increment(Counters.VERTICES_KEPT)
        return [RoutedMessage(destination=vertex.id, message=VertexPayload(vertex))]

    if counters is not None:
        counters.increment(Counters.VERTICES_DROPPED)
    return [
        RoutedMessage(destination=neighbor_id, message=RemovalNotice(vertex.id))
        for neighbor_id in vertex.neighbor_ids()
        if neighbor_id != vertex.id
    ]


def merge_group(destination_id: int, messages: Iterable[Message]) -> Optional[Vertex]:
    """Reconcile every message routed to ``destination_id``.

    Arrival order does not matter: removal notices are collected into a set
    and applied once the whole group has been seen.

    Returns:
        The surviving vertex without edges to any notified id, or ``None``
        when the group carries no vertex payload.

    Raises:
        DuplicateVertexError: If more than one payload is in the group.
        MisroutedMessageError: If a payload belongs to a different id.
        IllegalMessageError: If a message is of an unknown type.
    """
    vertex: Optional[Vertex] = None
    dropped_ids: set[int] = set()

    for message in messages:
        if isinstance(message, RemovalNotice):
            dropped_ids.add(message.dropped_id)
        elif isinstance(message, VertexPayload):
            if message.vertex.id != destination_id:
                raise MisroutedMessageError(destination_id, message.vertex.id)
            if vertex is not None:
                raise DuplicateVertexError(destination_id)
            vertex = message.vertex
        else:
            raise IllegalMessageError(
                f"A message of type {type(message).__name__} is not legal for this operation"
            )

    if vertex is None:
        if dropped_ids:
            logger.debug(
                "Discarding %d removal notice(s) for absent vertex %d",
                len(dropped_ids),
                destination_id,
            )
        return None

    return vertex.without_edges_to_from(dropped_ids)
