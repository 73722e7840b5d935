"""Neo4j graph source.

Reads every node and relationship through a session and assembles them into
Vertex records with bidirectional adjacency. Node ids are Neo4j internal ids
(``id(n)``), which are integers as the filter pass requires.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import Optional, Protocol, cast

from sieve.graph import Edge, Vertex

logger = logging.getLogger(__name__)

NODE_QUERY = "MATCH (n) RETURN id(n) AS id, properties(n) AS properties"

RELATIONSHIP_QUERY = """
MATCH (s)-[r]->(t)
RETURN id(s) AS source, id(t) AS target, type(r) AS label, properties(r) AS properties
"""


class Neo4jSession(Protocol):
    """Minimal protocol for a Neo4j session.

    Any object with a compatible ``run`` method can be used, which keeps
    tests free of a live database.
    """

    def run(self, query: str, parameters: Optional[dict[str, object]] = None) -> object: ...


class Neo4jGraphSource:
    """Reads the whole graph from Neo4j."""

    name = "neo4j"

    def __init__(self, session: Neo4jSession) -> None:
        """
        Initialize Neo4j source.

        Args:
            session: Neo4j session object with a ``run`` method.
        """
        self.session = session

    def read(self) -> Iterator[Vertex]:
        vertices: dict[int, Vertex] = {}
        for record in self._iter_records(NODE_QUERY):
            vertex_id = int(cast(int, record["id"]))
            props = cast(Mapping[str, object], record.get("properties") or {})
            vertices[vertex_id] = Vertex(id=vertex_id, properties=dict(props))

        skipped = 0
        for record in self._iter_records(RELATIONSHIP_QUERY):
            source_id = int(cast(int, record["source"]))
            target_id = int(cast(int, record["target"]))
            source = vertices.get(source_id)
            target = vertices.get(target_id)
            if source is None or target is None:
                skipped += 1
                continue
            edge = Edge(
                source_id=source_id,
                target_id=target_id,
                label=str(record.get("label") or ""),
                properties=dict(cast(Mapping[str, object], record.get("properties") or {})),
            )
            source.out_edges.append(edge)
            target.in_edges.append(edge)

        if skipped:
            logger.warning("Skipped %d relationship(s) with endpoints outside the node set", skipped)
        logger.debug("Read %d vertices from Neo4j", len(vertices))
        yield from vertices.values()

    def _iter_records(
        self, query: str, parameters: Optional[dict[str, object]] = None
    ) -> list[dict[str, object]]:
        records_raw = self.session.run(query, parameters or {})
        # The driver returns a Result of Record objects; tests pass plain dicts.
        if records_raw is None or not isinstance(records_raw, Iterable):
            return []

        results: list[dict[str, object]] = []
        for rec in cast(Iterable[object], records_raw):
            if isinstance(rec, dict):
                results.append(rec)
            elif hasattr(rec, "data") and callable(getattr(rec, "data")):
                results.append(dict(getattr(rec, "data")()))
            else:
                mapping_like = cast(Mapping[str, object], rec)
                results.append({key: mapping_like[key] for key in mapping_like.keys()})
        return results
