"""
MockTap Verification

Checks expectation invocation counts against their call-count policies after
the code under test has run.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Iterable, List

from ..errors import MockHttpError

if TYPE_CHECKING:
    from .client import MockHttpClient
    from .expectation import MockHttpRequest


@dataclass
class VerificationFailure:
    """An expectation that failed verification."""

    client: str
    expectation: 'MockHttpRequest'
    error: MockHttpError

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'client': self.client,
            'method': self.expectation.method,
            'uri': self.expectation.resolved_uri,
            'count': self.expectation.count,
            'expected': str(self.expectation.policy),
            'error': str(self.error),
        }


class VerificationEngine:
    """
    Verifies the expectations of one or more clients.

    Example:
        engine = VerificationEngine(factory.clients)
        engine.verify_all()  # raises on the first violation

        for failure in engine.collect_failures():
            print(failure.error)
    """

    def __init__(self, clients: Iterable['MockHttpClient']):
        self.clients = list(clients)

    def verify_all(self):
        """
        Verify every expectation, failing fast on the first violation.

        Raises:
            ConfigurationError: If an expectation has no response ("mock not complete")
            VerificationError: If an invocation count does not satisfy its policy
        """
        for client in self.clients:
            for expectation in list(client.expectations):
                expectation.verify()

    def collect_failures(self) -> List[VerificationFailure]:
        """Verify every expectation and return all failures instead of raising."""
        failures = []
        for client in self.clients:
            for expectation in list(client.expectations):
                try:
                    expectation.verify()
                except MockHttpError as e:
                    failures.append(VerificationFailure(client.name, expectation, e))
        return failures
