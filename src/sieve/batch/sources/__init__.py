"""Graph record providers and sinks for the filter pass.

Each source implements the GraphSource protocol; sinks implement GraphSink.
"""

from __future__ import annotations

from sieve.batch.sources.jsonl import JsonLinesGraphSink, JsonLinesGraphSource
from sieve.batch.sources.neo4j import Neo4jGraphSource

__all__ = [
    "JsonLinesGraphSink",
    "JsonLinesGraphSource",
    "Neo4jGraphSource",
]
