"""
MockTap Compare Module

Semantic comparison of JSON documents and Python values.

This module provides:
- One-directional (partial) object comparison
- Semantic leaf comparison for dates, UUIDs and numbers
- Ignored paths and difference limits
- assert_json / assert_value test assertions
"""

from .options import ComparisonMode, ComparisonOptions
from .result import ComparisonResult, Difference, DifferenceKind
from .comparer import JsonComparer
from .parsers import parse_json, to_tree
from .assertions import assert_json, assert_value

__all__ = [
    # Options
    'ComparisonMode',
    'ComparisonOptions',

    # Results
    'ComparisonResult',
    'Difference',
    'DifferenceKind',

    # Comparison
    'JsonComparer',
    'parse_json',
    'to_tree',
    'assert_json',
    'assert_value',
]
