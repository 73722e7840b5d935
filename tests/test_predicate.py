"""Tests for the single-attribute vertex predicate."""

from __future__ import annotations

import pytest

from sieve.errors import ConfigurationError
from sieve.graph import Vertex
from sieve.predicate import (
    Comparator,
    FilterSpec,
    ValueType,
    evaluate,
    parse_comparison_value,
)

ORDERING = [
    Comparator.GREATER_THAN,
    Comparator.LESS_THAN,
    Comparator.GREATER_THAN_EQUAL,
    Comparator.LESS_THAN_EQUAL,
]


def vertex_with(**properties: object) -> Vertex:
    return Vertex(id=1, properties=dict(properties))


class TestComparator:
    """Tests for Comparator parsing."""

    def test_parse_exact_name(self) -> None:
        """Names resolve to members."""
        assert Comparator.parse("GREATER_THAN_EQUAL") is Comparator.GREATER_THAN_EQUAL

    def test_parse_case_insensitive(self) -> None:
        """Lower-case names with whitespace are accepted."""
        assert Comparator.parse("  not_equal ") is Comparator.NOT_EQUAL

    def test_parse_member_passthrough(self) -> None:
        """Members are returned unchanged."""
        assert Comparator.parse(Comparator.LESS_THAN) is Comparator.LESS_THAN

    def test_parse_unknown(self) -> None:
        """Unknown names are configuration errors."""
        with pytest.raises(ConfigurationError, match="Unknown comparator"):
            Comparator.parse("ROUGHLY_EQUAL")

    @pytest.mark.parametrize("name", [None, "", 3])
    def test_parse_missing_or_wrong_type(self, name: object) -> None:
        """Missing or non-string names are configuration errors."""
        with pytest.raises(ConfigurationError):
            Comparator.parse(name)

    def test_is_ordering(self) -> None:
        """Only the four ordering comparators report is_ordering."""
        assert not Comparator.EQUAL.is_ordering
        assert not Comparator.NOT_EQUAL.is_ordering
        assert all(c.is_ordering for c in ORDERING)


class TestParseComparisonValue:
    """Tests for configured value conversion."""

    def test_string_verbatim(self) -> None:
        """String values are used exactly as configured."""
        assert parse_comparison_value("20", ValueType.STRING) == "20"

    def test_string_missing_is_absent(self) -> None:
        """A missing string value means the comparison value is absent."""
        assert parse_comparison_value(None, ValueType.STRING) is None

    def test_numeric_parsed_as_float(self) -> None:
        """Numeric values are parsed as floats."""
        assert parse_comparison_value("20", ValueType.NUMERIC) == 20.0
        assert isinstance(parse_comparison_value(7, ValueType.NUMERIC), float)

    def test_numeric_missing_defaults_to_zero(self) -> None:
        """A missing numeric value defaults to 0.0."""
        assert parse_comparison_value(None, ValueType.NUMERIC) == 0.0

    @pytest.mark.parametrize("raw", ["twenty", True, [1]])
    def test_numeric_malformed(self, raw: object) -> None:
        """Unparseable numeric values are configuration errors."""
        with pytest.raises(ConfigurationError, match="Numeric"):
            parse_comparison_value(raw, ValueType.NUMERIC)

    @pytest.mark.parametrize("raw,expected", [("true", True), ("FALSE", False), (True, True)])
    def test_boolean(self, raw: object, expected: bool) -> None:
        """Booleans are parsed case-insensitively."""
        assert parse_comparison_value(raw, ValueType.BOOLEAN) is expected

    def test_boolean_missing_defaults_to_false(self) -> None:
        """A missing boolean value defaults to False."""
        assert parse_comparison_value(None, ValueType.BOOLEAN) is False

    def test_boolean_malformed(self) -> None:
        """Anything other than true or false is rejected."""
        with pytest.raises(ConfigurationError, match="Boolean"):
            parse_comparison_value("yes", ValueType.BOOLEAN)


class TestFilterSpec:
    """Tests for FilterSpec construction."""

    def test_build(self) -> None:
        """build() converts the raw value by its declared type."""
        spec = FilterSpec.build("age", "20", "numeric", "GREATER_THAN_EQUAL")
        assert spec.property_key == "age"
        assert spec.comparison_value == 20.0
        assert spec.comparator is Comparator.GREATER_THAN_EQUAL

    def test_unsupported_value_type(self) -> None:
        """Unknown value types fail before any vertex is seen."""
        with pytest.raises(ConfigurationError, match="unsupported value type"):
            FilterSpec.build("age", "20", "date", "EQUAL")

    def test_empty_key(self) -> None:
        """An empty property key is rejected."""
        with pytest.raises(ConfigurationError, match="property key"):
            FilterSpec("", "x", Comparator.EQUAL)

    def test_direct_construction_coerces_numbers(self) -> None:
        """Integer comparison values are widened to float."""
        spec = FilterSpec("age", 20, Comparator.EQUAL)
        assert spec.comparison_value == 20.0
        assert isinstance(spec.comparison_value, float)

    def test_direct_construction_parses_comparator_name(self) -> None:
        """FilterSpec accepts a comparator name and coerces the value."""
        spec = FilterSpec("age", 20, "LESS_THAN")  # type: ignore[arg-type]
        assert spec.comparator is Comparator.LESS_THAN

    def test_immutable(self) -> None:
        """Specs cannot be modified once built."""
        spec = FilterSpec("age", 20, Comparator.EQUAL)
        with pytest.raises(AttributeError):
            spec.property_key = "height"  # type: ignore[misc]

    def test_str(self) -> None:
        """The predicate renders as key, comparator and value."""
        assert str(FilterSpec("age", 20, Comparator.LESS_THAN)) == "age LESS_THAN 20.0"


class TestEvaluateEquality:
    """Tests for EQUAL and NOT_EQUAL."""

    def test_equal_string(self) -> None:
        """Strings match only when identical."""
        spec = FilterSpec("name", "marko", Comparator.EQUAL)
        assert evaluate(vertex_with(name="marko"), spec) is True
        assert evaluate(vertex_with(name="josh"), spec) is False

    def test_equal_numeric_int_vs_float(self) -> None:
        """Integer properties equal the float comparison value."""
        spec = FilterSpec.build("age", "30", "numeric", "EQUAL")
        assert evaluate(vertex_with(age=30), spec) is True
        assert evaluate(vertex_with(age=30.0), spec) is True

    def test_equal_boolean(self) -> None:
        """Booleans match only the same boolean."""
        spec = FilterSpec.build("active", "true", "boolean", "EQUAL")
        assert evaluate(vertex_with(active=True), spec) is True
        assert evaluate(vertex_with(active=False), spec) is False

    def test_boolean_never_equals_number(self) -> None:
        """True and 1.0 are different kinds."""
        spec = FilterSpec.build("flag", "1", "numeric", "EQUAL")
        assert evaluate(vertex_with(flag=True), spec) is False
        spec = FilterSpec.build("flag", "true", "boolean", "EQUAL")
        assert evaluate(vertex_with(flag=1), spec) is False

    def test_string_never_equals_number(self) -> None:
        """Values of different kinds never compare equal."""
        spec = FilterSpec.build("age", "30", "string", "EQUAL")
        assert evaluate(vertex_with(age=30), spec) is False

    def test_equal_both_absent(self) -> None:
        """A missing property equals a missing comparison value."""
        spec = FilterSpec.build("nickname", None, "string", "EQUAL")
        assert evaluate(vertex_with(), spec) is True

    def test_equal_one_absent(self) -> None:
        """EQUAL is false when exactly one side is absent."""
        spec = FilterSpec.build("nickname", None, "string", "EQUAL")
        assert evaluate(vertex_with(nickname="mo"), spec) is False
        spec = FilterSpec.build("nickname", "mo", "string", "EQUAL")
        assert evaluate(vertex_with(), spec) is False

    def test_not_equal_both_absent(self) -> None:
        """NOT_EQUAL is false when both sides are absent."""
        spec = FilterSpec.build("nickname", None, "string", "NOT_EQUAL")
        assert evaluate(vertex_with(), spec) is False

    def test_not_equal_one_absent(self) -> None:
        """NOT_EQUAL is true when exactly one side is absent."""
        spec = FilterSpec.build("nickname", None, "string", "NOT_EQUAL")
        assert evaluate(vertex_with(nickname="mo"), spec) is True
        spec = FilterSpec.build("nickname", "mo", "string", "NOT_EQUAL")
        assert evaluate(vertex_with(), spec) is True

    def test_not_equal_values(self) -> None:
        """NOT_EQUAL negates EQUAL for present values."""
        spec = FilterSpec.build("name", "marko", "string", "NOT_EQUAL")
        assert evaluate(vertex_with(name="josh"), spec) is True
        assert evaluate(vertex_with(name="marko"), spec) is False


class TestEvaluateOrdering:
    """Tests for the ordering comparators."""

    @pytest.mark.parametrize(
        "comparator,age,expected",
        [
            (Comparator.GREATER_THAN, 21, True),
            (Comparator.GREATER_THAN, 20, False),
            (Comparator.GREATER_THAN, 19, False),
            (Comparator.LESS_THAN, 19, True),
            (Comparator.LESS_THAN, 20, False),
            (Comparator.LESS_THAN, 21, False),
            (Comparator.GREATER_THAN_EQUAL, 20, True),
            (Comparator.GREATER_THAN_EQUAL, 19.5, False),
            (Comparator.LESS_THAN_EQUAL, 20, True),
            (Comparator.LESS_THAN_EQUAL, 20.5, False),
        ],
    )
    def test_numeric_boundaries(self, comparator: Comparator, age: float, expected: bool) -> None:
        """Ordering comparators respect their boundaries."""
        spec = FilterSpec.build("age", "20", "numeric", comparator)
        assert evaluate(vertex_with(age=age), spec) is expected

    def test_string_ordering(self) -> None:
        """Strings use lexicographic ordering."""
        spec = FilterSpec.build("name", "m", "string", "GREATER_THAN")
        assert evaluate(vertex_with(name="marko"), spec) is True
        assert evaluate(vertex_with(name="josh"), spec) is False

    def test_boolean_ordering(self) -> None:
        """False orders before True."""
        spec = FilterSpec.build("active", "false", "boolean", "GREATER_THAN")
        assert evaluate(vertex_with(active=True), spec) is True
        assert evaluate(vertex_with(active=False), spec) is False

    @pytest.mark.parametrize("comparator", ORDERING)
    def test_missing_property_is_false(self, comparator: Comparator) -> None:
        """Absent data never satisfies an ordering comparator."""
        spec = FilterSpec.build("age", "20", "numeric", comparator)
        assert evaluate(vertex_with(), spec) is False

    @pytest.mark.parametrize("comparator", ORDERING)
    def test_missing_comparison_value_is_false(self, comparator: Comparator) -> None:
        """Ordering against an absent comparison value is always false."""
        spec = FilterSpec.build("name", None, "string", comparator)
        assert evaluate(vertex_with(name="marko"), spec) is False
        assert evaluate(vertex_with(), spec) is False

    @pytest.mark.parametrize("comparator", ORDERING)
    def test_mixed_kinds_are_false(self, comparator: Comparator) -> None:
        """A string property cannot be ordered against a number."""
        spec = FilterSpec.build("age", "20", "numeric", comparator)
        assert evaluate(vertex_with(age="20"), spec) is False

    def test_unorderable_values_are_false(self) -> None:
        """Non-scalar property values never raise."""
        spec = FilterSpec("tags", {"b": 2}, Comparator.LESS_THAN)  # type: ignore[arg-type]
        assert evaluate(vertex_with(tags={"a": 1}), spec) is False

    def test_deterministic(self) -> None:
        """Repeated evaluation gives the same answer."""
        spec = FilterSpec.build("age", "20", "numeric", "GREATER_THAN_EQUAL")
        vertex = vertex_with(age=30)
        assert {evaluate(vertex, spec) for _ in range(10)} == {True}

    def test_large_integers_lose_precision(self) -> None:
        """Numeric values are compared as floats."""
        spec = FilterSpec("big", 2**53, Comparator.EQUAL)
        assert evaluate(vertex_with(big=2**53 + 1), spec) is True

    def test_double_precision_below_2_53(self) -> None:
        """Integers that only collide as 32-bit floats stay distinct."""
        spec = FilterSpec("age", 16777216, Comparator.EQUAL)
        assert evaluate(vertex_with(age=16777217), spec) is False
        assert evaluate(vertex_with(age=16777216), spec) is True
