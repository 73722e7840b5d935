"""In-process batch engine for a filter pass.

The pass runs in three phases:

1. **map**: the input is hash-partitioned by vertex id and every partition
   runs the filter stage independently.
2. **shuffle**: routed messages are grouped by destination id into shards.
3. **reduce**: every shard runs the merge stage once per destination group.

Partitions and shards may run concurrently. Each task is a pure function of
its input, so a failed task is simply run again and its result replaces
whatever the failed attempt produced.
"""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, TypeVar

from sieve.batch.protocol import PassStats
from sieve.batch.retry import RetryHandler
from sieve.graph import Vertex
from sieve.messages import Message, RoutedMessage, VertexPayload
from sieve.predicate import FilterSpec
from sieve.stages import FilterCounters, filter_vertex, merge_group

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class MapOutput:
    """Messages and counters produced by one map partition."""

    messages: list[RoutedMessage] = field(default_factory=list)
    counters: FilterCounters = field(default_factory=FilterCounters)


@dataclass
class ReduceOutput:
    """Surviving vertices produced by one reduce shard."""

    vertices: list[Vertex] = field(default_factory=list)
    edges_pruned: int = 0


@dataclass
class PassResult:
    """Output of a complete filter pass."""

    vertices: list[Vertex]
    stats: PassStats


class FilterPassExecutor:
    """Runs the filter and merge stages over a whole graph."""

    def __init__(
        self,
        spec: FilterSpec,
        partitions: int = 4,
        max_workers: int = 4,
        parallel: bool = True,
        retry_handler: RetryHandler | None = None,
        verbose: bool = False,
    ) -> None:
        """Initialize the executor.

        Args:
            spec: Predicate for the pass; shared read-only by all tasks.
            partitions: Number of map partitions and reduce shards.
            max_workers: Maximum concurrent workers for parallel execution.
            parallel: Whether to run partitions and shards concurrently.
            retry_handler: Retry policy for each task (default: no delay, 3 retries).
            verbose: Whether to print progress information.
        """
        if partitions < 1:
            raise ValueError(f"partitions must be at least 1, got {partitions}")
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.spec = spec
        self.partitions = partitions
        self.max_workers = max_workers
        self.parallel = parallel
        self.retry_handler = retry_handler or RetryHandler(initial_delay=0.0)
        self.verbose = verbose

    def run(self, vertices: Iterable[Vertex], source_name: str = "graph") -> PassResult:
        """Filter ``vertices`` and repair the adjacency of the survivors.

        Args:
            vertices: The input graph, consumed exactly once.
            source_name: Label used in the returned statistics.

        Returns:
            PassResult with surviving vertices ordered by id.

        Raises:
            DataIntegrityError: If the input contains duplicate vertex ids.
            FatalPassError: If a task keeps failing after all retries.
        """
        start_time = time.time()

        partitions = self._partition(vertices)
        vertices_read = sum(len(p) for p in partitions)

        self._banner(f"MAP: {self.spec} over {vertices_read:,} vertices")
        map_outputs = self._run_tasks("Filter partition", self._map_partition, partitions)

        counters = FilterCounters()
        for output in map_outputs:
            counters.merge(output.counters)

        shards = self._shuffle(map_outputs)
        notices_routed = sum(len(o.messages) for o in map_outputs) - counters.vertices_kept

        self._banner(f"REDUCE: {sum(len(s) for s in shards):,} groups in {len(shards)} shards")
        reduce_outputs = self._run_tasks("Merge shard", self._reduce_shard, shards)

        survivors = sorted(
            (v for output in reduce_outputs for v in output.vertices),
            key=lambda v: v.id,
        )

        stats = PassStats(
            source=source_name,
            vertices_read=vertices_read,
            vertices_kept=counters.vertices_kept,
            vertices_dropped=counters.vertices_dropped,
            vertices_written=len(survivors),
            notices_routed=notices_routed,
            edges_pruned=sum(o.edges_pruned for o in reduce_outputs),
            duration_seconds=time.time() - start_time,
        )
        logger.debug("Filter pass finished: %s", stats)
        if self.verbose:
            print(f"✓ {stats}")
        return PassResult(vertices=survivors, stats=stats)

    def _partition(self, vertices: Iterable[Vertex]) -> list[list[Vertex]]:
        """Hash-partition the input by vertex id."""
        partitions: list[list[Vertex]] = [[] for _ in range(self.partitions)]
        for vertex in vertices:
            partitions[vertex.id % self.partitions].append(vertex)
        return partitions

    def _map_partition(self, vertices: list[Vertex]) -> MapOutput:
        """Run the filter stage over one partition."""
        output = MapOutput()
        for vertex in vertices:
            output.messages.extend(filter_vertex(vertex, self.spec, output.counters))
        return output

    def _shuffle(self, outputs: list[MapOutput]) -> list[dict[int, list[Message]]]:
        """Group routed messages by destination id, sharded by the same hash as the map."""
        shards: list[dict[int, list[Message]]] = [defaultdict(list) for _ in range(self.partitions)]
        for output in outputs:
            for routed in output.messages:
                shards[routed.destination % self.partitions][routed.destination].append(
                    routed.message
                )
        return shards

    def _reduce_shard(self, groups: dict[int, list[Message]]) -> ReduceOutput:
        """Run the merge stage over every group of one shard."""
        output = ReduceOutput()
        for destination_id in sorted(groups):
            merged = merge_group(destination_id, groups[destination_id])
            if merged is None:
                continue
            payload = next(m for m in groups[destination_id] if isinstance(m, VertexPayload))
            output.edges_pruned += payload.vertex.edge_count() - merged.edge_count()
            output.vertices.append(merged)
        return output

    def _run_tasks(
        self,
        operation_name: str,
        task: Callable[[T], R],
        inputs: list[T],
    ) -> list[R]:
        """Run ``task`` once per input, retrying failures.

        Results are stored by input index, so a retried task overwrites
        rather than duplicates its output.
        """
        results: dict[int, R] = {}

        def run_one(index: int) -> None:
            results[index] = self.retry_handler.execute(
                lambda: task(inputs[index]),
                operation_name=f"{operation_name} {index}",
            )

        if self.parallel and len(inputs) > 1 and self.max_workers > 1:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(inputs))) as pool:
                futures = [pool.submit(run_one, i) for i in range(len(inputs))]
                for future in futures:
                    # re-raises the first task failure
                    future.result()
        else:
            for i in range(len(inputs)):
                run_one(i)

        return [results[i] for i in range(len(inputs))]

    def _banner(self, title: str) -> None:
        logger.debug(title)
        if self.verbose:
            print(f"\n{'═' * 60}")
            print(f" {title}")
            print(f"{'═' * 60}")
