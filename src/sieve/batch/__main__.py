"""CLI entry point for a vertex filter pass.

Usage:
    uv run python -m sieve.batch --input graph.jsonl --key age --value 20 \\
        --value-type numeric --compare GREATER_THAN_EQUAL
    uv run python -m sieve.batch --config job.yaml --neo4j --output out.jsonl
    uv run python -m sieve.batch --config job.yaml --dry-run
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from sieve.errors import ConfigurationError, SieveError

if TYPE_CHECKING:
    from sieve.batch.config import Config
    from sieve.batch.protocol import PassStats
    from sieve.batch.retry import RetryHandler
    from sieve.graph import Vertex
    from sieve.predicate import FilterSpec


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vertex-sieve",
        description="Filter graph vertices by a property value and prune dangling edges",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Keep vertices whose age is at least 20
    vertex-sieve --input graph.jsonl --key age --value 20 \\
        --value-type numeric --compare GREATER_THAN_EQUAL --output kept.jsonl

    # Read the job from YAML and the graph from Neo4j
    vertex-sieve --config job.yaml --neo4j

    # Validate configuration without running
    vertex-sieve --config job.yaml --dry-run
""",
    )

    # Input / output
    parser.add_argument("--input", type=Path, help="JSON Lines graph to filter")
    parser.add_argument(
        "--neo4j",
        action="store_true",
        help="Read the graph from Neo4j (NEO4J_URI / NEO4J_PASSWORD or the job file)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="-",
        help="Where to write surviving vertices as JSON Lines (default: stdout)",
    )

    # Configuration
    parser.add_argument("--config", type=Path, help="YAML job file")
    parser.add_argument("--env", type=Path, help="Path to .env file (default: .env)")

    # Predicate overrides
    parser.add_argument("--key", type=str, help="Vertex property to test")
    parser.add_argument("--value", type=str, help="Comparison value")
    parser.add_argument(
        "--value-type",
        type=str,
        choices=["string", "numeric", "boolean"],
        help="How --value is interpreted (default: string)",
    )
    parser.add_argument(
        "--compare",
        type=str,
        help="Comparator: EQUAL, NOT_EQUAL, GREATER_THAN, LESS_THAN, "
        "GREATER_THAN_EQUAL, LESS_THAN_EQUAL",
    )

    # Execution
    parser.add_argument("--partitions", type=int, help="Number of partitions (default: 4)")
    parser.add_argument("--workers", type=int, help="Maximum concurrent workers (default: 4)")
    parser.add_argument(
        "--sequential",
        action="store_true",
        help="Run partitions one after another",
    )
    parser.add_argument("--max-retries", type=int, help="Maximum retry attempts (default: 3)")
    parser.add_argument(
        "--retry-delay",
        type=float,
        help="Initial retry delay in seconds (default: 2.0)",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate configuration and show the plan without executing",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for a filter pass."""
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.input is None and not args.neo4j:
        print("Error: either --input or --neo4j is required", file=sys.stderr)
        return 1

    try:
        config = _load_config(args)
        spec = config.filter_spec()
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    _print_banner(config, spec, args)

    if args.dry_run:
        print("Configuration is valid. Run without --dry-run to execute.", file=sys.stderr)
        return 0

    from neo4j.exceptions import DriverError, Neo4jError

    from sieve.batch.executor import FilterPassExecutor
    from sieve.batch.retry import FatalPassError, RetryHandler
    from sieve.batch.sources import JsonLinesGraphSink

    retry_handler = RetryHandler(
        max_retries=config.max_retries,
        initial_delay=config.retry_initial_delay,
        max_delay=config.retry_max_delay,
        verbose=args.verbose,
    )
    executor = FilterPassExecutor(
        spec,
        partitions=config.partitions,
        max_workers=config.max_workers,
        parallel=config.parallel,
        retry_handler=retry_handler,
        verbose=args.verbose,
    )

    try:
        if args.neo4j:
            source_name = "neo4j"
            try:
                vertices = _read_neo4j(config, retry_handler, args.verbose)
            except (Neo4jError, DriverError) as e:
                print(f"Error reading from Neo4j: {e}", file=sys.stderr)
                return 1
        else:
            if not args.input.exists():
                print(f"Error: input file not found: {args.input}", file=sys.stderr)
                return 1
            from sieve.batch.sources import JsonLinesGraphSource

            source = JsonLinesGraphSource(args.input)
            source_name = source.name
            vertices = retry_handler.execute(
                lambda: list(source.read()),
                operation_name=f"Read {args.input}",
            )

        result = executor.run(vertices, source_name=source_name)

        sink = JsonLinesGraphSink(path=None if args.output == "-" else Path(args.output))
        result.stats.vertices_written = sink.write(result.vertices)
    except (SieveError, FatalPassError, OSError) as e:
        print(f"\n✗ Error: {e}", file=sys.stderr)
        return 1

    _print_summary(result.stats)
    return 0


def _load_config(args: argparse.Namespace) -> Config:
    """Load the job configuration and apply CLI overrides."""
    from sieve.batch.config import Config

    if args.config:
        config = Config.from_yaml(args.config, args.env)
    else:
        config = Config.from_env(args.env)

    if args.key is not None:
        config.filter_key = args.key
    if args.value is not None:
        config.filter_value = args.value
    if args.value_type is not None:
        config.filter_value_type = args.value_type
    if args.compare is not None:
        config.filter_compare = args.compare
    if args.partitions is not None:
        config.partitions = args.partitions
    if args.workers is not None:
        config.max_workers = args.workers
    if args.sequential:
        config.parallel = False
    if args.max_retries is not None:
        config.max_retries = args.max_retries
    if args.retry_delay is not None:
        config.retry_initial_delay = args.retry_delay

    if config.partitions < 1:
        raise ConfigurationError("partitions must be at least 1")
    if config.max_workers < 1:
        raise ConfigurationError("workers must be at least 1")
    if args.neo4j and not config.has_neo4j_credentials():
        raise ConfigurationError("NEO4J_URI and NEO4J_PASSWORD are required with --neo4j")
    return config


def _read_neo4j(config: Config, retry_handler: RetryHandler, verbose: bool) -> list[Vertex]:
    """Read the whole graph from Neo4j, retrying transient failures."""
    from neo4j import GraphDatabase

    from sieve.batch.sources import Neo4jGraphSource

    driver = GraphDatabase.driver(
        config.neo4j_uri,
        auth=(config.neo4j_user, config.neo4j_password),
    )
    try:

        def read() -> list[Vertex]:
            with driver.session() as session:
                return list(Neo4jGraphSource(session).read())

        vertices = retry_handler.execute(read, operation_name=f"Read graph from {config.neo4j_uri}")
    finally:
        driver.close()

    if verbose:
        print(f"Read {len(vertices):,} vertices from Neo4j at {config.neo4j_uri}", file=sys.stderr)
    return vertices


def _print_banner(config: Config, spec: FilterSpec, args: argparse.Namespace) -> None:
    """Print startup banner."""
    source = f"neo4j ({config.neo4j_uri})" if args.neo4j else str(args.input)
    mode = "parallel" if config.parallel else "sequential"

    print(file=sys.stderr)
    print("╭" + "─" * 58 + "╮", file=sys.stderr)
    print("│" + " Vertex Sieve".center(58) + "│", file=sys.stderr)
    print("╰" + "─" * 58 + "╯", file=sys.stderr)
    print(file=sys.stderr)
    print("Configuration:", file=sys.stderr)
    print(f"  Source:     {source}", file=sys.stderr)
    print(f"  Output:     {args.output}", file=sys.stderr)
    print(f"  Predicate:  {spec}", file=sys.stderr)
    print(f"  Partitions: {config.partitions} ({mode}, {config.max_workers} workers)", file=sys.stderr)
    print(file=sys.stderr)


def _print_summary(stats: PassStats) -> None:
    """Print execution summary."""
    duration = (
        f"{stats.duration_seconds:.1f}s"
        if stats.duration_seconds < 60
        else f"{stats.duration_seconds / 60:.1f}m"
    )
    rows = [
        ("Read", f"{stats.vertices_read:,}"),
        ("Kept", f"{stats.vertices_kept:,}"),
        ("Dropped", f"{stats.vertices_dropped:,}"),
        ("Written", f"{stats.vertices_written:,}"),
        ("Notices", f"{stats.notices_routed:,}"),
        ("Edges pruned", f"{stats.edges_pruned:,}"),
        ("Time", duration),
    ]

    print(file=sys.stderr)
    print("┌" + "─" * 16 + "┬" + "─" * 15 + "┐", file=sys.stderr)
    for label, value in rows:
        print(f"│ {label:<14} │ {value:>13} │", file=sys.stderr)
    print("└" + "─" * 16 + "┴" + "─" * 15 + "┘", file=sys.stderr)
    print(file=sys.stderr)


if __name__ == "__main__":
    raise SystemExit(main())
