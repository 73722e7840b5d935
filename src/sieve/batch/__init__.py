"""Batch execution of a vertex filter pass.

Usage:
    uv run python -m sieve.batch --input graph.jsonl --key age --value 20 \\
        --value-type numeric --compare GREATER_THAN_EQUAL
    uv run python -m sieve.batch --config job.yaml --neo4j --output out.jsonl
    uv run python -m sieve.batch --config job.yaml --dry-run
"""

from sieve.batch.config import Config
from sieve.batch.executor import FilterPassExecutor, PassResult
from sieve.batch.protocol import GraphSink, GraphSource, PassStats

__all__ = ["Config", "FilterPassExecutor", "GraphSink", "GraphSource", "PassResult", "PassStats"]
