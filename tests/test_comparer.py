"""
Tests for MockTap JSON Comparer

Tests semantic JSON comparison including:
- Key order and whitespace insensitivity
- One-directional object comparison
- Null comparison modes
- Semantic leaf comparison (numbers, date-times, UUIDs)
- Array differences and replace_arrays
- Ignored paths and wildcards
- Maximum differences and truncation
- Assertions
"""

from dataclasses import dataclass
from datetime import datetime, timezone

import pytest

from mocktap.compare import (
    ComparisonMode,
    ComparisonOptions,
    DifferenceKind,
    JsonComparer,
    assert_json,
    assert_value,
    parse_json,
    to_tree,
)
from mocktap.errors import ParseError


@pytest.fixture
def comparer():
    """Comparer with default options."""
    return JsonComparer()


@dataclass
class Person:
    first_name: str
    age: int


class TestObjectComparison:
    """Test object comparison."""

    def test_key_order_and_whitespace_ignored(self, comparer):
        """Test documents differing only in key order and whitespace are equal."""
        result = comparer.compare(
            '{"a":1,"b":[1,2],"c":{"x":"y"}}',
            ' {\n  "c" : { "x" : "y" },\n  "b" : [ 1, 2 ],\n  "a" : 1\n} '
        )

        assert result.are_equal
        assert not result.has_differences
        assert str(result) == "No differences detected."

    def test_actual_only_properties_ignored(self, comparer):
        """Test properties only present in actual are ignored."""
        result = comparer.compare('{"a": 1}', '{"a": 1, "extra": {"b": 2}}')

        assert result.are_equal

    def test_missing_property(self, comparer):
        """Test expected property absent from actual."""
        result = comparer.compare('{"a": 1, "b": 2}', '{"a": 1}')

        assert result.difference_count == 1
        difference = result.differences[0]
        assert difference.path == "$.b"
        assert difference.kind == DifferenceKind.MISSING
        assert "Does not exist in actual." in str(difference)

    def test_nested_value_difference(self, comparer):
        """Test difference path for a nested value."""
        result = comparer.compare(
            '{"person": {"name": "Bob", "address": {"city": "Paris"}}}',
            '{"person": {"name": "Bob", "address": {"city": "Lyon"}}}'
        )

        assert result.difference_count == 1
        assert result.differences[0].path == "$.person.address.city"
        assert str(result.differences[0]) == "Path '$.person.address.city': Value is not equal: \"Paris\" != \"Lyon\"."

    def test_kind_mismatch(self, comparer):
        """Test different JSON kinds are reported."""
        result = comparer.compare('{"a": "1"}', '{"a": 1}')

        assert result.differences[0].kind == DifferenceKind.KIND
        assert "Kind is not equal: String != Number." in str(result)

    def test_case_insensitive_properties(self):
        """Test case-insensitive property lookup."""
        expected = '{"firstName": "Bob"}'
        actual = '{"FIRSTNAME": "Bob"}'

        assert JsonComparer(ComparisonOptions(ignore_case_properties=True)).compare(expected, actual).are_equal
        assert JsonComparer().compare(expected, actual).differences[0].kind == DifferenceKind.MISSING

    def test_custom_property_name_comparer(self):
        """Test a custom property name comparer."""
        options = ComparisonOptions(property_name_comparer=lambda e, a: e.replace('_', '') == a.replace('_', ''))

        result = JsonComparer(options).compare('{"first_name": "Bob"}', '{"firstname": "Bob"}')

        assert result.are_equal


class TestNullComparison:
    """Test null comparison modes."""

    def test_semantic_null_matches_absent(self):
        """Test expected null equals an absent property under semantic null comparison."""
        options = ComparisonOptions(null_comparison=ComparisonMode.SEMANTIC)

        result = JsonComparer(options).compare('{"a":1,"b":null}', '{"a":1}')

        assert result.are_equal

    def test_exact_null_reports_absent(self):
        """Test expected null vs absent property under exact null comparison."""
        options = ComparisonOptions(null_comparison='exact')

        result = JsonComparer(options).compare('{"a":1,"b":null}', '{"a":1}')

        assert result.difference_count == 1
        assert result.differences[0].path == "$.b"

    def test_default_null_comparison_is_exact(self, comparer):
        """Test default null comparison."""
        assert comparer.options.null_comparison == ComparisonMode.EXACT
        assert comparer.compare('{"b": null}', '{}').has_differences

    def test_null_vs_value(self, comparer):
        """Test expected null vs a present value."""
        result = comparer.compare('{"a": null}', '{"a": 1}')

        assert "Kind is not equal: Null != Number." in str(result)
        assert comparer.compare('{"a": null}', '{"a": null}').are_equal


class TestLeafComparison:
    """Test semantic and exact leaf comparison."""

    @pytest.mark.parametrize("expected,actual", [
        ('1.0', '1'),
        ('1e2', '100'),
        ('0.10', '0.1'),
    ])
    def test_semantic_numbers(self, comparer, expected, actual):
        """Test numbers with different formatting are equal."""
        assert comparer.compare(f'{{"n": {expected}}}', f'{{"n": {actual}}}').are_equal

    def test_exact_numbers(self):
        """Test exact mode compares raw number text."""
        comparer = JsonComparer(ComparisonOptions(value_comparison='exact'))

        result = comparer.compare('{"n": 1.0}', '{"n": 1}')

        assert result.differences[0].kind == DifferenceKind.VALUE
        assert str(result.differences[0]) == "Path '$.n': Value is not equal: 1.0 != 1."

    def test_semantic_datetimes(self, comparer):
        """Test equivalent date-times in different formats are equal."""
        assert comparer.compare('"2024-01-01T10:00:00Z"', '"2024-01-01T10:00:00+00:00"').are_equal
        assert comparer.compare('"2024-01-01T12:00:00+02:00"', '"2024-01-01T10:00:00Z"').are_equal
        assert comparer.compare('"2024-01-01T10:00:00Z"', '"2024-01-01T11:00:00Z"').has_differences

    def test_semantic_uuids(self, comparer):
        """Test UUIDs compare case-insensitively."""
        result = comparer.compare(
            '"6F9619FF-8B86-D011-B42D-00C04FC964FF"',
            '"6f9619ff-8b86-d011-b42d-00c04fc964ff"'
        )

        assert result.are_equal

    def test_strings_are_case_sensitive(self, comparer):
        """Test plain strings compare exactly."""
        assert comparer.compare('"abc"', '"ABC"').has_differences

    def test_exact_strings(self):
        """Test exact mode does not parse date-times."""
        comparer = JsonComparer(ComparisonOptions(value_comparison=ComparisonMode.EXACT))

        assert comparer.compare('"2024-01-01T10:00:00Z"', '"2024-01-01T10:00:00+00:00"').has_differences

    def test_booleans(self, comparer):
        """Test boolean comparison."""
        assert comparer.compare('true', 'true').are_equal
        assert comparer.compare('true', 'false').differences[0].kind == DifferenceKind.VALUE
        assert comparer.compare('true', '1').differences[0].kind == DifferenceKind.KIND


class TestArrayComparison:
    """Test array comparison."""

    def test_per_index_difference(self, comparer):
        """Test element differences are reported per index."""
        result = comparer.compare(
            '{"items": [{"id": 1}, {"id": 2}]}',
            '{"items": [{"id": 1}, {"id": 3}]}'
        )

        assert result.difference_count == 1
        assert result.differences[0].path == "$.items[1].id"

    def test_length_difference(self, comparer):
        """Test length mismatch adds one difference."""
        result = comparer.compare('[1, 2, 3]', '[1, 2]')

        assert result.difference_count == 1
        assert result.differences[0].kind == DifferenceKind.ARRAY_LENGTH
        assert "Array lengths are not equal: 3 != 2." in str(result)

    def test_replace_arrays(self):
        """Test replace_arrays collapses element differences."""
        comparer = JsonComparer(ComparisonOptions(replace_arrays=True))

        result = comparer.compare('{"items": [1, 2, 3]}', '{"items": [1, 5, 6]}')

        assert result.difference_count == 1
        assert result.differences[0].kind == DifferenceKind.ARRAY_REPLACED
        assert result.differences[0].path == "$.items"
        assert "Array is not equal: [1,2,3] != [1,5,6]." in str(result)

    def test_replace_arrays_equal(self):
        """Test replace_arrays with equal arrays."""
        comparer = JsonComparer(ComparisonOptions(replace_arrays=True))

        assert comparer.compare('{"items": [1, 2]}', '{"items": [1, 2]}').are_equal


class TestIgnoredPaths:
    """Test ignored paths."""

    def test_ignore_qualified_path(self, comparer):
        """Test ignoring a $-rooted path."""
        assert comparer.compare('{"id": 1, "name": "a"}', '{"id": 2, "name": "a"}', '$.id').are_equal

    def test_ignore_path_without_root(self, comparer):
        """Test paths without '$' are prefixed."""
        assert comparer.compare('{"id": 1}', '{"id": 2}', 'id').are_equal

    def test_ignore_path_case_insensitive(self, comparer):
        """Test ignore entries match case-insensitively by default."""
        assert comparer.compare('{"id": 1}', '{"id": 2}', '$.ID').are_equal

    def test_ignore_path_case_sensitive(self):
        """Test case-sensitive ignore entries."""
        comparer = JsonComparer(ComparisonOptions(ignore_case_paths=False))

        assert comparer.compare('{"id": 1}', '{"id": 2}', '$.ID').has_differences

    def test_ignore_index_free_path(self, comparer):
        """Test an index-free path ignores the property in every element."""
        result = comparer.compare(
            '{"items": [{"id": 1, "v": 1}, {"id": 2, "v": 1}]}',
            '{"items": [{"id": 8, "v": 1}, {"id": 9, "v": 1}]}',
            'items.id'
        )

        assert result.are_equal

    def test_ignore_wildcard(self, comparer):
        """Test '*' matches a single path segment."""
        assert comparer.compare(
            '{"items": [{"id": 1}, {"id": 2}]}',
            '{"items": [{"id": 8}, {"id": 9}]}',
            '$.items[*].id'
        ).are_equal
        assert comparer.compare(
            '{"a": {"id": 1}, "b": {"id": 2}}',
            '{"a": {"id": 3}, "b": {"id": 4}}',
            '$.*.id'
        ).are_equal

    def test_ignore_paths_from_options(self):
        """Test ignored paths configured in options."""
        comparer = JsonComparer(ComparisonOptions().with_ignored('$.etag'))

        assert comparer.compare('{"etag": "a", "v": 1}', '{"etag": "b", "v": 1}').are_equal


class TestMaxDifferences:
    """Test maximum difference count."""

    def test_stops_at_max(self):
        """Test comparison stops and reports truncation."""
        comparer = JsonComparer(ComparisonOptions(max_differences=2))

        result = comparer.compare('{"a": 1, "b": 2, "c": 3}', '{"a": 9, "b": 9, "c": 9}')

        assert result.difference_count == 2
        assert result.truncated
        assert "Maximum difference count of '2' found" in str(result)

    def test_unlimited_by_default(self, comparer):
        """Test all differences are reported by default."""
        result = comparer.compare('{"a": 1, "b": 2, "c": 3}', '{"a": 9, "b": 9, "c": 9}')

        assert result.difference_count == 3
        assert not result.truncated

    def test_invalid_max(self):
        """Test max_differences must be positive."""
        with pytest.raises(ValueError):
            ComparisonOptions(max_differences=0)


class TestParsing:
    """Test malformed input."""

    def test_malformed_expected(self, comparer):
        """Test malformed expected JSON raises ParseError."""
        with pytest.raises(ParseError) as exc_info:
            comparer.compare('{', '{}')

        assert exc_info.value.side == 'expected'

    def test_malformed_actual(self, comparer):
        """Test malformed actual JSON raises ParseError (a ValueError)."""
        with pytest.raises(ValueError):
            comparer.compare('{}', 'not json')

    def test_bytes_input(self, comparer):
        """Test JSON given as bytes."""
        assert comparer.compare(b'{"a": 1}', b'{"a": 1}').are_equal

    def test_plain_values_given_as_trees(self, comparer):
        """Test compare_trees rejects Python values that are not tree nodes."""
        with pytest.raises(ParseError) as exc_info:
            comparer.compare_trees({"a": 1}, {"a": 1})

        assert "compare_value" in str(exc_info.value)

    def test_parsed_trees(self, comparer):
        """Test compare_trees accepts parsed and converted trees."""
        result = comparer.compare_trees(parse_json('{"a": 1}'), to_tree({"a": 1}))

        assert result.are_equal


class TestValueComparison:
    """Test comparison of Python values."""

    def test_dataclass_vs_dict(self, comparer):
        """Test a dataclass compared with a dictionary."""
        result = comparer.compare_value(Person("Bob", 30), {"first_name": "Bob", "age": 30, "extra": 1})

        assert result.are_equal

    def test_datetime_value(self, comparer):
        """Test datetime values compare semantically with ISO strings."""
        result = comparer.compare_value(
            {"at": datetime(2024, 1, 1, tzinfo=timezone.utc)},
            {"at": "2024-01-01T00:00:00Z"}
        )

        assert result.are_equal

    def test_value_difference(self, comparer):
        """Test differing values."""
        result = comparer.compare_value({"age": 30}, {"age": 31})

        assert result.differences[0].path == "$.age"

    def test_equals(self, comparer):
        """Test equals stops at the first difference."""
        assert comparer.equals('{"a": 1}', '{"a": 1, "b": 2}')
        assert not comparer.equals('{"a": 1}', '{"a": 2}')

    def test_to_dict(self, comparer):
        """Test result serialization."""
        data = comparer.compare('{"a": 1}', '{"a": 2}').to_dict()

        assert data['are_equal'] is False
        assert data['differences'][0] == {'path': '$.a', 'kind': 'value', 'expected': '1', 'actual': '2'}


class TestAssertions:
    """Test assert_json and assert_value."""

    def test_assert_json_passes(self):
        """Test assert_json with equal documents."""
        result = assert_json('{"a": 1}', '{"a": 1.0, "b": 2}')

        assert result.are_equal

    def test_assert_json_fails(self):
        """Test assert_json raises AssertionError with the report."""
        with pytest.raises(AssertionError) as exc_info:
            assert_json('{"name": "Bob"}', '{"name": "Alice"}', message="Person mismatch")

        message = str(exc_info.value)
        assert message.startswith("Person mismatch")
        assert "$.name" in message

    def test_assert_json_ignore_paths(self):
        """Test assert_json with ignored paths."""
        assert_json('{"id": 1, "name": "Bob"}', '{"id": 2, "name": "Bob"}', '$.id')

    def test_assert_value(self):
        """Test assert_value with options."""
        options = ComparisonOptions(null_comparison='semantic')

        assert_value({"a": 1, "b": None}, {"a": 1}, options=options)
        with pytest.raises(AssertionError):
            assert_value({"a": 1, "b": None}, {"a": 1})
