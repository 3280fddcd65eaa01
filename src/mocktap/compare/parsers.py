"""
MockTap Value Parsers

Parsing of JSON text into comparable value trees, and the ordered leaf
parsers used for semantic comparison.

Numbers are kept as JsonNumber (their source text) so that exact comparison
can compare raw text while semantic comparison can still compare by value.
"""

import dataclasses
import json
import math
import re
import uuid
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Optional, Tuple

from ..errors import ParseError


class JsonNumber(str):
    """A JSON number, holding its source text."""

    __slots__ = ()

    def __repr__(self) -> str:
        return str.__str__(self)


class _Missing:
    """Marker for a property absent from the actual value."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<missing>"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


def parse_json(text, side: str = "value") -> Any:
    """
    Parse JSON text into a value tree.

    Args:
        text: JSON as str or bytes
        side: Which side of the comparison this is (for the error message)

    Returns:
        Parsed tree with numbers as JsonNumber

    Raises:
        ParseError: If the text is not valid JSON
    """
    if isinstance(text, (bytes, bytearray)):
        try:
            text = text.decode('utf-8')
        except UnicodeDecodeError as e:
            raise ParseError(f"JSON for {side} is not valid UTF-8: {e}", side) from e

    if text is None:
        raise ParseError(f"JSON for {side} is missing", side)

    try:
        return json.loads(text, parse_int=JsonNumber, parse_float=JsonNumber, parse_constant=_reject_constant)
    except (json.JSONDecodeError, ValueError) as e:
        raise ParseError(f"JSON for {side} is not considered valid: {e}", side) from e


def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


def to_tree(value: Any) -> Any:
    """
    Convert a Python value into a JSON-compatible value tree.

    Dataclasses, objects exposing ``model_dump()`` or ``dict()``, dates,
    UUIDs, enums and decimals are converted the way a JSON serializer would.
    Numbers become JsonNumber.
    """
    if value is None or isinstance(value, (bool, JsonNumber)):
        return value
    if isinstance(value, (int, float, Decimal)):
        if isinstance(value, float) and not math.isfinite(value):
            raise ParseError(f"{value} cannot be represented as JSON")
        return JsonNumber(json.dumps(value) if not isinstance(value, Decimal) else str(value))
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        return {str(k): to_tree(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_tree(v) for v in value]
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, Enum):
        return to_tree(value.value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return to_tree(dataclasses.asdict(value))
    for method in ('model_dump', 'dict', 'to_dict'):
        dump = getattr(value, method, None)
        if callable(dump):
            return to_tree(dump())

    raise ParseError(f"Value of type '{type(value).__name__}' cannot be converted to JSON")


def render(value: Any) -> str:
    """Render a tree value as compact JSON text for messages."""
    if value is MISSING:
        return "<missing>"
    if isinstance(value, JsonNumber):
        return str.__str__(value)
    if isinstance(value, dict):
        items = (f"{json.dumps(k, ensure_ascii=False)}:{render(v)}" for k, v in value.items())
        return '{' + ','.join(items) + '}'
    if isinstance(value, list):
        return '[' + ','.join(render(v) for v in value) + ']'
    return json.dumps(value, default=str, ensure_ascii=False)


# Leaf parsers for semantic comparison. Each returns the parsed value, or
# None when the text is not in that representation.

_DATE_PREFIX = re.compile(r'^\d{4}-\d{2}-\d{2}')


def parse_datetime(text: str) -> Optional[datetime]:
    """Parse an ISO-8601 date or date-time."""
    if not _DATE_PREFIX.match(text):
        return None
    candidate = text[:-1] + '+00:00' if text.endswith(('Z', 'z')) else text
    try:
        return datetime.fromisoformat(candidate)
    except ValueError:
        return None


def parse_uuid(text: str) -> Optional[uuid.UUID]:
    """Parse a UUID in any of its accepted textual forms."""
    if len(text) < 32:
        return None
    try:
        return uuid.UUID(text)
    except ValueError:
        return None


def parse_string(text: str) -> str:
    return text


def parse_decimal(text: str) -> Optional[Decimal]:
    try:
        result = Decimal(text)
    except InvalidOperation:
        return None
    return result if result.is_finite() else None


def parse_float(text: str) -> Optional[float]:
    try:
        return float(text)
    except ValueError:
        return None


STRING_PARSERS: Tuple[Callable[[str], Any], ...] = (parse_datetime, parse_uuid, parse_string)
NUMBER_PARSERS: Tuple[Callable[[str], Any], ...] = (parse_decimal, parse_float)


def semantic_equal(expected: str, actual: str, parsers: Tuple[Callable[[str], Any], ...]) -> bool:
    """
    Compare two leaf texts using the first parser that accepts both.

    Args:
        expected: Expected leaf text
        actual: Actual leaf text
        parsers: Ordered parsers to try

    Returns:
        True if the first representation both sides parse to is equal
    """
    for parser in parsers:
        left = parser(expected)
        right = parser(actual)
        if left is not None and right is not None:
            return _equal(left, right)
    return False


def _equal(left: Any, right: Any) -> bool:
    # Naive and aware datetimes never compare equal.
    if isinstance(left, datetime) and isinstance(right, datetime):
        if (left.tzinfo is None) != (right.tzinfo is None):
            return False
    return left == right
