"""
MockTap Comparison Result

Differences found by JsonComparer, in the order they were detected.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .parsers import MISSING, JsonNumber, render


class DifferenceKind(Enum):
    """Type of difference identified."""

    KIND = "kind"  # Different JSON types
    VALUE = "value"
    MISSING = "missing"  # Expected property absent from actual
    ARRAY_LENGTH = "array_length"
    ARRAY_REPLACED = "array_replaced"


def _kind_name(value: Any) -> str:
    if value is MISSING:
        return "Missing"
    if value is None:
        return "Null"
    if isinstance(value, bool):
        return "Boolean"
    if isinstance(value, JsonNumber):
        return "Number"
    if isinstance(value, str):
        return "String"
    if isinstance(value, dict):
        return "Object"
    return "Array"


@dataclass
class Difference:
    """A single difference between expected and actual."""

    path: str
    expected: Any
    actual: Any
    kind: DifferenceKind = DifferenceKind.VALUE

    def __str__(self) -> str:
        if self.kind is DifferenceKind.MISSING:
            detail = "Does not exist in actual."
        elif self.kind is DifferenceKind.ARRAY_LENGTH:
            detail = f"Array lengths are not equal: {len(self.expected)} != {len(self.actual)}."
        elif self.kind is DifferenceKind.ARRAY_REPLACED:
            detail = f"Array is not equal: {render(self.expected)} != {render(self.actual)}."
        elif self.kind is DifferenceKind.KIND:
            detail = f"Kind is not equal: {_kind_name(self.expected)} != {_kind_name(self.actual)}."
        else:
            detail = f"Value is not equal: {render(self.expected)} != {render(self.actual)}."
        return f"Path '{self.path}': {detail}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'path': self.path,
            'kind': self.kind.value,
            'expected': render(self.expected),
            'actual': render(self.actual),
        }


@dataclass
class ComparisonResult:
    """Result of comparing an expected value tree with an actual one."""

    max_differences: Optional[int] = None
    differences: List[Difference] = field(default_factory=list)

    @property
    def are_equal(self) -> bool:
        return not self.differences

    @property
    def has_differences(self) -> bool:
        return bool(self.differences)

    @property
    def difference_count(self) -> int:
        return len(self.differences)

    @property
    def truncated(self) -> bool:
        """True when comparison stopped because max_differences was reached."""
        return self.max_differences is not None and len(self.differences) >= self.max_differences

    def add(self, difference: Difference):
        self.differences.append(difference)

    def __str__(self) -> str:
        if self.are_equal:
            return "No differences detected."

        lines = [str(d) for d in self.differences]
        if self.truncated:
            lines.append(f"Maximum difference count of '{self.max_differences}' found; comparison stopped.")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'are_equal': self.are_equal,
            'truncated': self.truncated,
            'differences': [d.to_dict() for d in self.differences],
        }
