"""Single-attribute vertex predicate.

A predicate is a (property key, comparator, comparison value) triple. It is
built once, before a pass starts, and evaluated once per vertex:

- **EQUAL**: both sides absent, or both present and equal.
- **NOT_EQUAL**: the negation of EQUAL.
- **Ordering comparators**: false whenever either side is absent or the two
  sides are of different kinds; natural ordering otherwise.

Numeric values (never booleans) are widened to ``float`` on both sides before
comparison, so integers above 2**53 lose precision and may compare equal.
The widening is to 64-bit floats, not 32-bit ones, which is stricter for
mid-sized integers: ``age EQUAL 16777216`` does not match a vertex whose
age is 16777217, although both round to the same 32-bit float. Above 2**53
the same collapse happens, e.g. 2**53 EQUAL 2**53 + 1 is true.
"""

from __future__ import annotations

import operator
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from sieve.errors import ConfigurationError
from sieve.graph import Vertex


class Comparator(str, Enum):
    """Supported comparison operators."""

    EQUAL = "EQUAL"
    NOT_EQUAL = "NOT_EQUAL"
    GREATER_THAN = "GREATER_THAN"
    LESS_THAN = "LESS_THAN"
    GREATER_THAN_EQUAL = "GREATER_THAN_EQUAL"
    LESS_THAN_EQUAL = "LESS_THAN_EQUAL"

    @classmethod
    def parse(cls, name: object) -> Comparator:
        """Resolve a comparator from its name (case-insensitive)."""
        if isinstance(name, Comparator):
            return name
        if not isinstance(name, str) or not name.strip():
            raise ConfigurationError(f"Comparator must be one of {_names(cls)}, got {name!r}")
        try:
            return cls(name.strip().upper())
        except ValueError:
            raise ConfigurationError(
                f"Unknown comparator {name!r}; expected one of {_names(cls)}"
            ) from None

    @property
    def is_ordering(self) -> bool:
        return self in _ORDERINGS


class ValueType(str, Enum):
    """Declared type of the configured comparison value."""

    STRING = "string"
    NUMERIC = "numeric"
    BOOLEAN = "boolean"

    @classmethod
    def parse(cls, name: object) -> ValueType:
        if isinstance(name, ValueType):
            return name
        if isinstance(name, str):
            try:
                return cls(name.strip().lower())
            except ValueError:
                pass
        raise ConfigurationError(f"Value type {name!r} is an unsupported value type")


_ORDERINGS: dict[Comparator, Callable[[object, object], bool]] = {
    Comparator.GREATER_THAN: operator.gt,
    Comparator.LESS_THAN: operator.lt,
    Comparator.GREATER_THAN_EQUAL: operator.ge,
    Comparator.LESS_THAN_EQUAL: operator.le,
}


@dataclass(frozen=True)
class FilterSpec:
    """Immutable predicate shared read-only by every worker of a pass."""

    property_key: str
    comparison_value: str | float | bool | None
    comparator: Comparator

    def __post_init__(self) -> None:
        if not isinstance(self.property_key, str) or not self.property_key:
            raise ConfigurationError("Filter property key must be a non-empty string")
        object.__setattr__(self, "comparator", Comparator.parse(self.comparator))
        object.__setattr__(self, "comparison_value", _coerce(self.comparison_value))

    @classmethod
    def build(
        cls,
        property_key: str,
        raw_value: object,
        value_type: ValueType | str = ValueType.STRING,
        comparator: Comparator | str = Comparator.EQUAL,
    ) -> FilterSpec:
        """Build a FilterSpec from raw configuration values.

        Args:
            property_key: Vertex property to test.
            raw_value: Comparison value as read from configuration (usually a string).
            value_type: How ``raw_value`` is interpreted.
            comparator: Comparator or comparator name.

        Raises:
            ConfigurationError: If any value is missing, malformed or unsupported.
        """
        return cls(
            property_key=property_key,
            comparison_value=parse_comparison_value(raw_value, ValueType.parse(value_type)),
            comparator=Comparator.parse(comparator),
        )

    def __str__(self) -> str:
        return f"{self.property_key} {self.comparator.value} {self.comparison_value!r}"


def parse_comparison_value(raw: object, value_type: ValueType) -> str | float | bool | None:
    """Convert a raw configured value to its declared type.

    A missing string value stays absent; a missing numeric value is ``0.0``
    and a missing boolean value is ``False``.
    """
    if value_type is ValueType.STRING:
        return None if raw is None else str(raw)

    if value_type is ValueType.NUMERIC:
        if raw is None:
            return 0.0
        if isinstance(raw, bool):
            raise ConfigurationError(f"Numeric comparison value expected, got {raw!r}")
        try:
            return _to_float(raw)
        except (TypeError, ValueError):
            raise ConfigurationError(f"Numeric comparison value expected, got {raw!r}") from None

    if raw is None:
        return False
    if isinstance(raw, bool):
        return raw
    text = str(raw).strip().lower()
    if text == "true":
        return True
    if text == "false":
        return False
    raise ConfigurationError(f"Boolean comparison value expected, got {raw!r}")


def _to_float(raw: object) -> float:
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        return float(raw.strip())
    raise TypeError(f"not a number: {raw!r}")


def evaluate(vertex: Vertex, spec: FilterSpec) -> bool:
    """Decide whether ``vertex`` is kept under ``spec``."""
    value = _coerce(vertex.get_property(spec.property_key))
    expected = spec.comparison_value

    if spec.comparator is Comparator.EQUAL:
        return _equal(value, expected)
    if spec.comparator is Comparator.NOT_EQUAL:
        return not _equal(value, expected)

    if value is None or expected is None:
        return False
    if _kind(value) != _kind(expected):
        return False
    try:
        return bool(_ORDERINGS[spec.comparator](value, expected))
    except TypeError:
        # non-scalar property values have no natural ordering
        return False


def _equal(value: object, expected: object) -> bool:
    if value is None or expected is None:
        return value is None and expected is None
    return _kind(value) == _kind(expected) and value == expected


def _coerce(value: object) -> object:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return float(value)
    return value


def _kind(value: object) -> str:
    if isinstance(value, bool):
        return ValueType.BOOLEAN.value
    if isinstance(value, float):
        return ValueType.NUMERIC.value
    if isinstance(value, str):
        return ValueType.STRING.value
    return type(value).__name__


def _names(enum_cls: type[Enum]) -> str:
    return ", ".join(member.name for member in enum_cls)
