"""
MockTap Comparison Options

Options controlling how JsonComparer compares two value trees.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, List, Optional


class ComparisonMode(Enum):
    """How leaf values (or nulls) are compared."""

    SEMANTIC = "semantic"
    EXACT = "exact"

    @classmethod
    def parse(cls, value) -> 'ComparisonMode':
        """Accept a ComparisonMode or its (case-insensitive) name."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown comparison mode: {value!r} (expected 'semantic' or 'exact')") from None


@dataclass
class ComparisonOptions:
    """
    Options for a value comparison.

    Attributes:
        value_comparison: SEMANTIC tries date-time, UUID then string for
            strings and decimal then float for numbers; EXACT compares raw text.
        null_comparison: SEMANTIC treats an expected null as equal to an
            absent actual property; EXACT reports it as missing.
        ignore_case_paths: Compare ignore entries to paths case-insensitively.
        ignore_case_properties: Look up actual properties case-insensitively.
        property_name_comparer: Custom ``(expected_name, actual_name) -> bool``;
            overrides ignore_case_properties when set.
        ignore_paths: Paths skipped during comparison.
        max_differences: Stop after this many differences (None = unlimited).
        replace_arrays: Report a differing array as a single replacement
            instead of per-index differences.
    """

    value_comparison: ComparisonMode = ComparisonMode.SEMANTIC
    null_comparison: ComparisonMode = ComparisonMode.EXACT
    ignore_case_paths: bool = True
    ignore_case_properties: bool = False
    property_name_comparer: Optional[Callable[[str, str], bool]] = None
    ignore_paths: List[str] = field(default_factory=list)
    max_differences: Optional[int] = None
    replace_arrays: bool = False

    def __post_init__(self):
        self.value_comparison = ComparisonMode.parse(self.value_comparison)
        self.null_comparison = ComparisonMode.parse(self.null_comparison)
        if self.max_differences is not None and self.max_differences < 1:
            raise ValueError("max_differences must be at least 1")

    def names_equal(self, expected_name: str, actual_name: str) -> bool:
        """Compare two property names using the configured comparer."""
        if self.property_name_comparer is not None:
            return self.property_name_comparer(expected_name, actual_name)
        if self.ignore_case_properties:
            return expected_name.casefold() == actual_name.casefold()
        return expected_name == actual_name

    def with_ignored(self, *paths: str) -> 'ComparisonOptions':
        """Return a copy with additional ignored paths."""
        return replace(self, ignore_paths=[*self.ignore_paths, *paths])
