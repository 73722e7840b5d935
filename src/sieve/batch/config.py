"""Configuration management for the filter pass.

Settings come from environment variables (optionally seeded from a .env
file) or from a YAML job file. Either way they are read once, before the
pass starts, and turned into an immutable FilterSpec.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import cast

import yaml

from sieve.errors import ConfigurationError
from sieve.predicate import FilterSpec


@dataclass
class Config:
    """Filter pass configuration."""

    # Predicate
    filter_key: str | None = None
    filter_value: object = None
    filter_value_type: str = "string"
    filter_compare: str | None = None

    # Execution
    partitions: int = 4
    max_workers: int = 4
    parallel: bool = True

    # Neo4j connection (only needed when reading from Neo4j)
    neo4j_uri: str | None = None
    neo4j_user: str = "neo4j"
    neo4j_password: str | None = None

    # Retry settings
    max_retries: int = 3
    retry_initial_delay: float = 2.0
    retry_max_delay: float = 60.0

    @classmethod
    def from_env(cls, env_file: Path | None = None) -> Config:
        """Load configuration from environment variables and optional .env file.

        Args:
            env_file: Optional path to .env file. If None, looks for .env in cwd.

        Returns:
            Config instance with values from environment.

        Raises:
            ConfigurationError: If a numeric setting cannot be parsed.
        """
        _seed_environment(env_file)
        env = os.environ
        return cls(
            filter_key=env.get("SIEVE_FILTER_KEY") or None,
            filter_value=env.get("SIEVE_FILTER_VALUE"),
            filter_value_type=env.get("SIEVE_FILTER_VALUE_TYPE", "string"),
            filter_compare=env.get("SIEVE_FILTER_COMPARE") or None,
            partitions=_parse_int(env.get("SIEVE_PARTITIONS", "4"), "SIEVE_PARTITIONS"),
            max_workers=_parse_int(env.get("SIEVE_MAX_WORKERS", "4"), "SIEVE_MAX_WORKERS"),
            parallel=_parse_bool(env.get("SIEVE_PARALLEL", "true"), "SIEVE_PARALLEL"),
            neo4j_uri=env.get("NEO4J_URI") or None,
            neo4j_user=env.get("NEO4J_USER", "neo4j"),
            neo4j_password=env.get("NEO4J_PASSWORD") or None,
            max_retries=_parse_int(env.get("MAX_RETRIES", "3"), "MAX_RETRIES"),
            retry_initial_delay=_parse_float(
                env.get("RETRY_INITIAL_DELAY", "2.0"), "RETRY_INITIAL_DELAY"
            ),
            retry_max_delay=_parse_float(env.get("RETRY_MAX_DELAY", "60.0"), "RETRY_MAX_DELAY"),
        )

    @classmethod
    def from_yaml(cls, path: Path, env_file: Path | None = None) -> Config:
        """Load configuration from a YAML job file.

        Expected layout::

            filter:
              key: age
              value: 20
              value_type: numeric
              compare: GREATER_THAN_EQUAL
            execution:
              partitions: 8
              max_workers: 4
              parallel: true
            neo4j:
              uri: bolt://localhost:7687
              user: neo4j
              password: secret
            retry:
              max_retries: 3
              initial_delay: 2.0
              max_delay: 60.0

        Neo4j settings missing from the file fall back to NEO4J_URI,
        NEO4J_USER and NEO4J_PASSWORD, seeded from ``env_file`` (default: .env
        in cwd) the same way as ``from_env``, so passwords can stay out of it.

        Raises:
            ConfigurationError: If the file is not a mapping or a value is malformed.
        """
        _seed_environment(env_file)
        try:
            with path.open("r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigurationError(f"Cannot read job file {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(raw, Mapping):
            raise ConfigurationError(f"{path} must contain a mapping at the top level")

        filter_section = _section(raw, "filter")
        execution = _section(raw, "execution")
        neo4j = _section(raw, "neo4j")
        retry = _section(raw, "retry")

        defaults = cls()
        return cls(
            filter_key=cast("str | None", filter_section.get("key")),
            filter_value=filter_section.get("value"),
            filter_value_type=str(filter_section.get("value_type", defaults.filter_value_type)),
            filter_compare=cast("str | None", filter_section.get("compare")),
            partitions=_parse_int(execution.get("partitions", defaults.partitions), "partitions"),
            max_workers=_parse_int(
                execution.get("max_workers", defaults.max_workers), "max_workers"
            ),
            parallel=_parse_bool(execution.get("parallel", defaults.parallel), "parallel"),
            neo4j_uri=cast("str | None", neo4j.get("uri")) or os.environ.get("NEO4J_URI") or None,
            neo4j_user=str(neo4j.get("user") or os.environ.get("NEO4J_USER", defaults.neo4j_user)),
            neo4j_password=(
                cast("str | None", neo4j.get("password"))
                or os.environ.get("NEO4J_PASSWORD")
                or None
            ),
            max_retries=_parse_int(retry.get("max_retries", defaults.max_retries), "max_retries"),
            retry_initial_delay=_parse_float(
                retry.get("initial_delay", defaults.retry_initial_delay), "initial_delay"
            ),
            retry_max_delay=_parse_float(
                retry.get("max_delay", defaults.retry_max_delay), "max_delay"
            ),
        )

    def filter_spec(self) -> FilterSpec:
        """Build the immutable predicate for this pass.

        Raises:
            ConfigurationError: If the key, value type, value or comparator is invalid.
        """
        if not self.filter_key:
            raise ConfigurationError("A filter property key is required")
        if not self.filter_compare:
            raise ConfigurationError("A filter comparator is required")
        return FilterSpec.build(
            property_key=self.filter_key,
            raw_value=self.filter_value,
            value_type=self.filter_value_type,
            comparator=self.filter_compare,
        )

    def has_neo4j_credentials(self) -> bool:
        """Check if a Neo4j connection is configured."""
        return bool(self.neo4j_uri and self.neo4j_password)


def _section(raw: Mapping[object, object], name: str) -> Mapping[str, object]:
    section = raw.get(name) or {}
    if not isinstance(section, Mapping):
        raise ConfigurationError(f"'{name}' section must be a mapping")
    return cast(Mapping[str, object], section)


def _parse_int(value: object, name: str) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    try:
        return int(cast("str | int", value))
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from None


def _parse_float(value: object, name: str) -> float:
    try:
        return float(cast("str | float", value))
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from None


def _parse_bool(value: object, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ConfigurationError(f"{name} must be true or false, got {value!r}")


def _seed_environment(env_file: Path | None) -> None:
    if env_file is None:
        env_file = Path(".env")
    if env_file.exists():
        _load_dotenv(env_file)


def _load_dotenv(path: Path) -> None:
    """Minimal .env loader.

    Parses KEY=VALUE lines, ignoring comments and empty lines. Existing
    environment variables win over file values.
    """
    try:
        with path.open() as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip()
                if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
                    value = value[1:-1]
                if key and key not in os.environ:
                    os.environ[key] = value
    except OSError:
        pass  # an unreadable .env behaves like a missing one
