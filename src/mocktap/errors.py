"""
MockTap Errors

Exception hierarchy raised by the mocking engine and the value comparer.

Errors raised while a call is in flight (MatchError, SequenceExhaustedError,
MockCancelledError) derive from httpx.TransportError so that code under test
observes them as failed network calls. VerificationError derives from
AssertionError so any test runner reports it as a test failure.
"""

import httpx


class MockHttpError(Exception):
    """Base class for all MockTap errors."""


class ConfigurationError(MockHttpError):
    """An expectation or client was configured incorrectly or incompletely."""


class ParseError(MockHttpError, ValueError):
    """A structured value given to the comparer could not be parsed."""

    def __init__(self, message: str, side: str = "value"):
        super().__init__(message)
        self.side = side


class VerificationError(MockHttpError, AssertionError):
    """An expectation was not invoked the configured number of times."""


class MatchError(MockHttpError, httpx.TransportError):
    """No expectation matched an outgoing request."""


class SequenceExhaustedError(MockHttpError, httpx.TransportError):
    """More calls were made than responses were configured for a sequence."""


class MockCancelledError(MockHttpError, httpx.TransportError):
    """A simulated response delay was cancelled before it elapsed."""
