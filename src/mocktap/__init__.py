"""
MockTap - HTTP mocking and semantic JSON comparison for tests.

Declare the outbound HTTP calls code under test is expected to make, script
canned responses (with delays, sequences and transport failures), and verify
afterwards that every expectation was met.
"""

from .config import MockConfig
from .errors import (
    ConfigurationError,
    MatchError,
    MockCancelledError,
    MockHttpError,
    ParseError,
    SequenceExhaustedError,
    VerificationError,
)
from .compare import (
    ComparisonMode,
    ComparisonOptions,
    ComparisonResult,
    Difference,
    DifferenceKind,
    JsonComparer,
    assert_json,
    assert_value,
)
from .common import ResourceLoader
from .mock import (
    MockHttpClient,
    MockHttpClientFactory,
    MockHttpRequest,
    MockResponse,
    MockScenario,
    Times,
    VerificationEngine,
)

__version__ = '1.0.0'

__all__ = [
    'MockConfig',
    'ResourceLoader',

    # Errors
    'MockHttpError',
    'ConfigurationError',
    'MatchError',
    'SequenceExhaustedError',
    'MockCancelledError',
    'VerificationError',
    'ParseError',

    # Comparison
    'ComparisonMode',
    'ComparisonOptions',
    'ComparisonResult',
    'Difference',
    'DifferenceKind',
    'JsonComparer',
    'assert_json',
    'assert_value',

    # Mocking
    'MockHttpClientFactory',
    'MockHttpClient',
    'MockHttpRequest',
    'MockResponse',
    'MockScenario',
    'Times',
    'VerificationEngine',
]
