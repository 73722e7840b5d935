"""Property graph records consumed and produced by a filter pass.

A vertex carries its own adjacency in both directions, so every edge is
stored twice: as an out-edge on its source and as an in-edge on its target.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import AbstractSet, Optional, cast


class Direction(str, Enum):
    """Direction of an edge relative to the vertex holding it."""

    OUT = "out"
    IN = "in"


@dataclass
class Edge:
    """A directed, optionally labelled edge between two vertex ids."""

    source_id: int
    target_id: int
    label: str = ""
    properties: dict[str, object] = field(default_factory=dict)

    def far_endpoint(self, direction: Direction) -> int:
        """Return the id at the other end, seen from the holding vertex."""
        if direction is Direction.OUT:
            return self.target_id
        return self.source_id


@dataclass
class Vertex:
    """A vertex with scalar properties and bidirectional adjacency."""

    id: int
    properties: dict[str, object] = field(default_factory=dict)
    out_edges: list[Edge] = field(default_factory=list)
    in_edges: list[Edge] = field(default_factory=list)

    def get_property(self, key: str) -> object | None:
        return self.properties.get(key)

    def edges(self, direction: Optional[Direction] = None) -> Iterator[tuple[Direction, Edge]]:
        """Iterate over incident edges, out-edges first, tagged with their direction."""
        if direction in (None, Direction.OUT):
            for edge in self.out_edges:
                yield Direction.OUT, edge
        if direction in (None, Direction.IN):
            for edge in self.in_edges:
                yield Direction.IN, edge

    def neighbor_ids(self) -> Iterator[int]:
        """Yield the far endpoint of every incident edge (repeats for parallel edges)."""
        for direction, edge in self.edges():
            yield edge.far_endpoint(direction)

    def edge_count(self) -> int:
        return len(self.out_edges) + len(self.in_edges)

    def without_edges_to_from(self, ids: AbstractSet[int]) -> Vertex:
        """Return a copy with every edge whose far endpoint is in ``ids`` removed.

        Returns ``self`` when no edge is affected, so untouched vertices pass
        through the merge stage unchanged.
        """
        if not ids:
            return self
        out_edges = [e for e in self.out_edges if e.target_id not in ids]
        in_edges = [e for e in self.in_edges if e.source_id not in ids]
        if len(out_edges) == len(self.out_edges) and len(in_edges) == len(self.in_edges):
            return self
        return Vertex(
            id=self.id,
            properties=dict(self.properties),
            out_edges=out_edges,
            in_edges=in_edges,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "properties": dict(self.properties),
            "out": [
                {"target": e.target_id, "label": e.label, "properties": dict(e.properties)}
                for e in self.out_edges
            ],
            "in": [
                {"source": e.source_id, "label": e.label, "properties": dict(e.properties)}
                for e in self.in_edges
            ],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Vertex:
        vertex_id = _as_vertex_id(data["id"])
        out_data = cast(list[Mapping[str, object]], data.get("out", []))
        in_data = cast(list[Mapping[str, object]], data.get("in", []))
        return cls(
            id=vertex_id,
            properties=dict(cast(Mapping[str, object], data.get("properties", {}))),
            out_edges=[
                Edge(
                    source_id=vertex_id,
                    target_id=_as_vertex_id(e["target"]),
                    label=cast(str, e.get("label", "")),
                    properties=dict(cast(Mapping[str, object], e.get("properties", {}))),
                )
                for e in out_data
            ],
            in_edges=[
                Edge(
                    source_id=_as_vertex_id(e["source"]),
                    target_id=vertex_id,
                    label=cast(str, e.get("label", "")),
                    properties=dict(cast(Mapping[str, object], e.get("properties", {}))),
                )
                for e in in_data
            ],
        )


def connect(
    source: Vertex,
    target: Vertex,
    label: str = "",
    properties: Optional[dict[str, object]] = None,
) -> Edge:
    """Create an edge from ``source`` to ``target`` and record it on both vertices."""
    edge = Edge(
        source_id=source.id,
        target_id=target.id,
        label=label,
        properties=dict(properties or {}),
    )
    source.out_edges.append(edge)
    target.in_edges.append(edge)
    return edge


def _as_vertex_id(value: object) -> int:
    # bool is an int subclass but never a valid id
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"Invalid vertex id: {value!r}")
    return int(value)
