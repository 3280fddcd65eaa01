"""
MockTap Mock Module

Mock HTTP clients for tests: declare expected requests, script responses,
then verify the expectations were met.

This module provides:
- Named mock clients and the client factory
- Fluent expectation builder and call-count policies
- Response sequences, delays and simulated transport failures
- httpx and requests interception
- YAML scenarios
"""

from .registry import MockHttpClientFactory
from .client import MockHttpClient
from .expectation import MockHttpRequest, MockHttpResponseBuilder, SequenceBuilder, Times
from .matcher import (
    AnyBody,
    ExactBody,
    InterceptedRequest,
    NoBody,
    RequestMatcher,
    SemanticJsonBody,
)
from .sequencer import MockResponse, ResponseSequencer
from .transport import AsyncMockTransport, MockRequestsAdapter, MockTransport
from .verification import VerificationEngine, VerificationFailure
from .scenario import MockScenario

__all__ = [
    # Clients
    'MockHttpClientFactory',
    'MockHttpClient',

    # Expectations
    'MockHttpRequest',
    'MockHttpResponseBuilder',
    'SequenceBuilder',
    'Times',

    # Matching
    'RequestMatcher',
    'InterceptedRequest',
    'NoBody',
    'AnyBody',
    'ExactBody',
    'SemanticJsonBody',

    # Responses
    'MockResponse',
    'ResponseSequencer',

    # Transports
    'MockTransport',
    'AsyncMockTransport',
    'MockRequestsAdapter',

    # Verification
    'VerificationEngine',
    'VerificationFailure',

    # Scenarios
    'MockScenario',
]
