"""
MockTap Assertions

Test assertions built on JsonComparer. Failures raise AssertionError with the
full difference report so any test runner shows it as a failure.
"""

from typing import Any, Optional

from .comparer import JsonComparer
from .options import ComparisonOptions
from .result import ComparisonResult


def _fail(result: ComparisonResult, message: Optional[str]):
    report = str(result)
    raise AssertionError(f"{message}\n{report}" if message else report)


def assert_json(expected, actual, *ignore_paths: str,
                options: Optional[ComparisonOptions] = None,
                message: Optional[str] = None) -> ComparisonResult:
    """
    Assert that an actual JSON document matches the expected one.

    Args:
        expected: Expected JSON text
        actual: Actual JSON text
        *ignore_paths: Paths to ignore ('$.id', '$.items[*].createdAt')
        options: Comparison options (defaults to ComparisonOptions())
        message: Optional message placed before the difference report

    Returns:
        The (equal) ComparisonResult

    Raises:
        AssertionError: If differences were found
        ParseError: If either side is not valid JSON
    """
    result = JsonComparer(options).compare(expected, actual, *ignore_paths)
    if result.has_differences:
        _fail(result, message)
    return result


def assert_value(expected: Any, actual: Any, *ignore_paths: str,
                 options: Optional[ComparisonOptions] = None,
                 message: Optional[str] = None) -> ComparisonResult:
    """Assert that two Python values are equal by their JSON representation."""
    result = JsonComparer(options).compare_value(expected, actual, *ignore_paths)
    if result.has_differences:
        _fail(result, message)
    return result
