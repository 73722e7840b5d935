"""Messages exchanged between the filter stage and the merge stage.

Every emission builds a fresh, immutable message; nothing is reused across
emissions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from sieve.graph import Vertex


@dataclass(frozen=True)
class VertexPayload:
    """A surviving vertex record, routed to its own id."""

    vertex: Vertex


@dataclass(frozen=True)
class RemovalNotice:
    """Tells a neighbour that vertex ``dropped_id`` was filtered out."""

    dropped_id: int


Message = Union[VertexPayload, RemovalNotice]


@dataclass(frozen=True)
class RoutedMessage:
    """A message paired with the vertex id whose group it belongs to."""

    destination: int
    message: Message
