"""
MockTap JSON Comparer

Semantic, one-directional comparison of an expected value tree against an
actual one.

Features:
- Partial (contract-style) object matching: properties only present in the
  actual value are ignored
- Per-index array differences, or a single replacement difference when
  replace_arrays is enabled
- Semantic leaf comparison (date-times, UUIDs, numeric precision)
- Ignored paths with '*' wildcards
- Maximum difference count
"""

import re
from typing import Any, Iterable, List, Optional, Pattern, Set, Tuple

from ..errors import ParseError
from .options import ComparisonMode, ComparisonOptions
from .parsers import (
    MISSING,
    NUMBER_PARSERS,
    STRING_PARSERS,
    JsonNumber,
    parse_json,
    semantic_equal,
    to_tree,
)
from .result import ComparisonResult, Difference, DifferenceKind

ROOT_PATH = "$"


def prepend_root_path(path: str) -> str:
    """Normalise a path so that it starts with the '$' root."""
    if not path:
        return ROOT_PATH
    if path.startswith(ROOT_PATH):
        return path
    if path.startswith('['):
        return f"{ROOT_PATH}{path}"
    return f"{ROOT_PATH}.{path}"


class _IgnoredPaths:
    """Set of paths to skip, with optional '*' wildcards."""

    def __init__(self, paths: Iterable[str], ignore_case: bool):
        self.ignore_case = ignore_case
        self.exact: Set[str] = set()
        self.patterns: List[Pattern] = []

        for path in paths:
            path = prepend_root_path(path)
            if '*' in path:
                regex = re.escape(path).replace(r'\*', r'[^.\[\]]+')
                self.patterns.append(re.compile(f'^{regex}$', re.IGNORECASE if ignore_case else 0))
            else:
                self.exact.add(self._key(path))

    def _key(self, path: str) -> str:
        return path.casefold() if self.ignore_case else path

    def __bool__(self) -> bool:
        return bool(self.exact or self.patterns)

    def contains(self, *paths: str) -> bool:
        for path in paths:
            if self._key(path) in self.exact:
                return True
            if any(p.match(path) for p in self.patterns):
                return True
        return False


class _CompareState:
    """Mutable state for a single comparison."""

    def __init__(self, options: ComparisonOptions, ignored: _IgnoredPaths, max_differences: Optional[int]):
        self.options = options
        self.ignored = ignored
        self.result = ComparisonResult(max_differences=max_differences)

    @property
    def done(self) -> bool:
        return self.result.truncated

    def add(self, path: str, expected: Any, actual: Any, kind: DifferenceKind):
        if not self.done:
            self.result.add(Difference(path, expected, actual, kind))

    def probe(self) -> '_CompareState':
        """Child state that stops at the first difference."""
        return _CompareState(self.options, self.ignored, 1)


class JsonComparer:
    """
    Compares JSON value trees.

    Example:
        comparer = JsonComparer(ComparisonOptions(null_comparison='semantic'))
        result = comparer.compare('{"a": 1, "b": null}', '{"a": 1.0}')

        if result.has_differences:
            print(result)
    """

    def __init__(self, options: Optional[ComparisonOptions] = None):
        """
        Initialize comparer.

        Args:
            options: Comparison options (defaults to ComparisonOptions())
        """
        self.options = options or ComparisonOptions()

    def compare(self, expected, actual, *ignore_paths: str) -> ComparisonResult:
        """
        Compare two JSON documents.

        Args:
            expected: Expected JSON text (str or bytes)
            actual: Actual JSON text (str or bytes)
            *ignore_paths: Additional paths to ignore

        Returns:
            ComparisonResult with the differences found

        Raises:
            ParseError: If either side is not valid JSON
        """
        expected_tree = parse_json(expected, 'expected')
        actual_tree = parse_json(actual, 'actual')
        return self.compare_trees(expected_tree, actual_tree, *ignore_paths)

    def compare_value(self, expected: Any, actual: Any, *ignore_paths: str) -> ComparisonResult:
        """
        Compare two Python values by their JSON representation.

        Args:
            expected: Expected value (dict, list, scalar, dataclass, model)
            actual: Actual value
            *ignore_paths: Additional paths to ignore

        Returns:
            ComparisonResult with the differences found
        """
        return self.compare_trees(to_tree(expected), to_tree(actual), *ignore_paths)

    def compare_trees(self, expected: Any, actual: Any, *ignore_paths: str) -> ComparisonResult:
        """
        Compare two already-parsed value trees (from parse_json or to_tree).

        Raises:
            ParseError: If either side holds a value that is not a tree node
        """
        ignored = _IgnoredPaths([*self.options.ignore_paths, *ignore_paths], self.options.ignore_case_paths)
        state = _CompareState(self.options, ignored, self.options.max_differences)
        self._compare(expected, actual, state, ROOT_PATH, ROOT_PATH)
        return state.result

    def equals(self, expected, actual) -> bool:
        """Check two JSON documents for equality, stopping at the first difference."""
        ignored = _IgnoredPaths(self.options.ignore_paths, self.options.ignore_case_paths)
        state = _CompareState(self.options, ignored, 1)
        self._compare(parse_json(expected, 'expected'), parse_json(actual, 'actual'), state, ROOT_PATH, ROOT_PATH)
        return state.result.are_equal

    def _compare(self, expected: Any, actual: Any, state: _CompareState, path: str, unqualified: str):
        expected_kind = _kind(expected)
        if expected_kind != _kind(actual):
            state.add(path, expected, actual, DifferenceKind.KIND)
            return

        if expected_kind == 'object':
            self._compare_object(expected, actual, state, path, unqualified)
        elif expected_kind == 'array':
            self._compare_array(expected, actual, state, path, unqualified)
        elif expected_kind == 'string':
            if not self._leaf_equal(expected, actual, STRING_PARSERS):
                state.add(path, expected, actual, DifferenceKind.VALUE)
        elif expected_kind == 'number':
            if not self._leaf_equal(expected, actual, NUMBER_PARSERS):
                state.add(path, expected, actual, DifferenceKind.VALUE)
        elif expected_kind == 'boolean':
            if expected is not actual:
                state.add(path, expected, actual, DifferenceKind.VALUE)

    def _leaf_equal(self, expected: str, actual: str, parsers: Tuple) -> bool:
        if str.__eq__(expected, actual):
            return True
        if self.options.value_comparison is ComparisonMode.EXACT:
            return False
        return semantic_equal(expected, actual, parsers)

    def _compare_object(self, expected: dict, actual: dict, state: _CompareState, path: str, unqualified: str):
        for name, expected_value in expected.items():
            child_path = f"{path}.{name}"
            child_unqualified = f"{unqualified}.{name}"
            if state.ignored and state.ignored.contains(child_unqualified, child_path):
                continue

            actual_value = self._get_property(actual, name)
            if actual_value is MISSING:
                if expected_value is None and self.options.null_comparison is ComparisonMode.SEMANTIC:
                    continue
                state.add(child_path, expected_value, MISSING, DifferenceKind.MISSING)
            else:
                self._compare(expected_value, actual_value, state, child_path, child_unqualified)

            if state.done:
                break

    def _get_property(self, actual: dict, name: str) -> Any:
        options = self.options
        if options.property_name_comparer is None and not options.ignore_case_properties:
            return actual.get(name, MISSING)

        if name in actual and options.names_equal(name, name):
            return actual[name]
        for actual_name, value in actual.items():
            if options.names_equal(name, actual_name):
                return value
        return MISSING

    def _compare_array(self, expected: list, actual: list, state: _CompareState, path: str, unqualified: str):
        if self.options.replace_arrays:
            probe = state.probe()
            self._compare_items(expected, actual, probe, path, unqualified)
            if probe.result.has_differences or len(expected) != len(actual):
                state.add(path, expected, actual, DifferenceKind.ARRAY_REPLACED)
            return

        self._compare_items(expected, actual, state, path, unqualified)
        if len(expected) != len(actual):
            state.add(path, expected, actual, DifferenceKind.ARRAY_LENGTH)

    def _compare_items(self, expected: list, actual: list, state: _CompareState, path: str, unqualified: str):
        for index, (expected_item, actual_item) in enumerate(zip(expected, actual)):
            item_path = f"{path}[{index}]"
            if state.ignored and state.ignored.contains(item_path):
                continue

            self._compare(expected_item, actual_item, state, item_path, unqualified)
            if state.done:
                break


def _kind(value: Any) -> str:
    if value is None:
        return 'null'
    if value is MISSING:
        return 'missing'
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, JsonNumber):
        return 'number'
    if isinstance(value, str):
        return 'string'
    if isinstance(value, dict):
        return 'object'
    if isinstance(value, list):
        return 'array'
    raise ParseError(f"Unexpected value of type '{type(value).__name__}' in JSON tree; use compare_value for Python values")
