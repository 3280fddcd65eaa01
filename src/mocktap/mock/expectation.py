"""
MockTap Expectations

Fluent configuration of an expected request and its canned responses.

Example:
    client = factory.create_client("people", "https://people.example.com")

    client.request("POST", "/person") \\
        .with_json_body({"firstName": "Bob"}) \\
        .respond.with_json({"id": 1}, status=201)

    client.request("GET", "/person/1") \\
        .times(Times.exactly(2)) \\
        .respond.with_sequence([
            MockResponse(200, '{"id": 1}', 'application/json'),
            MockResponse(404),
        ])
"""

import json
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Optional, Pattern, Union

import httpx

from ..common.url_utils import URLMatcher
from ..compare.parsers import render, to_tree
from ..errors import ConfigurationError, VerificationError
from .matcher import AnyBody, ExactBody, NoBody, SemanticJsonBody
from .sequencer import MockResponse, ResponseSequencer, TransportFailure

if TYPE_CHECKING:
    from .client import MockHttpClient


@dataclass(frozen=True)
class Times:
    """Call-count policy for an expectation."""

    minimum: int
    maximum: Optional[int] = None
    name: str = ""

    @classmethod
    def at_least_once(cls) -> 'Times':
        return cls(1, None, "at least once")

    @classmethod
    def once(cls) -> 'Times':
        return cls(1, 1, "once")

    @classmethod
    def never(cls) -> 'Times':
        return cls(0, 0, "never")

    @classmethod
    def exactly(cls, count: int) -> 'Times':
        if count < 0:
            raise ConfigurationError("Times.exactly requires a count of zero or more")
        return cls(count, count, f"exactly {count} time(s)")

    @classmethod
    def at_least(cls, count: int) -> 'Times':
        if count < 0:
            raise ConfigurationError("Times.at_least requires a count of zero or more")
        return cls(count, None, f"at least {count} time(s)")

    @classmethod
    def at_most(cls, count: int) -> 'Times':
        if count < 0:
            raise ConfigurationError("Times.at_most requires a count of zero or more")
        return cls(0, count, f"at most {count} time(s)")

    @classmethod
    def between(cls, minimum: int, maximum: int) -> 'Times':
        if minimum < 0 or maximum < minimum:
            raise ConfigurationError("Times.between requires 0 <= minimum <= maximum")
        return cls(minimum, maximum, f"between {minimum} and {maximum} time(s)")

    def is_satisfied(self, count: int) -> bool:
        return count >= self.minimum and (self.maximum is None or count <= self.maximum)

    def has_capacity(self, count: int) -> bool:
        """True while another call would not exceed the upper bound."""
        return self.maximum is None or count < self.maximum

    def __str__(self) -> str:
        return self.name or f"between {self.minimum} and {self.maximum} time(s)"


def to_json_text(value: Any, indent: Optional[int] = None) -> str:
    """Serialize a value (or pass through JSON text) for a body."""
    if isinstance(value, (str, bytes)):
        return value.decode('utf-8') if isinstance(value, bytes) else value
    text = render(to_tree(value))
    if indent is None:
        return text
    return json.dumps(json.loads(text), indent=indent)


class MockHttpRequest:
    """
    An expected request: method, URI, headers and body matcher, bound to the
    responses it returns and a call-count policy.

    Created through MockHttpClient.request(); not instantiated directly.
    """

    def __init__(self, client: 'MockHttpClient', method: str, uri: Union[str, Pattern]):
        self.client = client
        self.method = method.upper()
        self.uri = uri
        self.resolved_uri = uri.pattern if isinstance(uri, re.Pattern) else URLMatcher.resolve(client.base_address, uri)
        self.headers: Dict[str, str] = {}
        self.body_matcher = NoBody()
        self.trace = False
        self.sequencer: Optional[ResponseSequencer] = None
        self.count = 0
        self._times: Optional[Times] = None
        self.respond = MockHttpResponseBuilder(self)

    # Request configuration

    def with_body(self, text: str, content_type: str = "text/plain") -> 'MockHttpRequest':
        """Expect a body with exactly this text."""
        self.body_matcher = ExactBody(text, content_type)
        return self

    def with_any_body(self) -> 'MockHttpRequest':
        """Expect any non-empty body."""
        self.body_matcher = AnyBody()
        return self

    def with_json_body(self, value: Any, *ignore_paths: str) -> 'MockHttpRequest':
        """
        Expect a JSON body, compared semantically.

        Args:
            value: JSON text, or a value serialized to JSON (dict, list, dataclass, model)
            *ignore_paths: Paths to ignore ('$.id', 'items[*].createdAt')

        Raises:
            ParseError: If value is JSON text that does not parse
        """
        text = to_json_text(value)
        self.body_matcher = SemanticJsonBody(text, self.client.comparison_options(), tuple(ignore_paths))
        return self

    def with_json_resource_body(self, resource_name: str, *ignore_paths: str) -> 'MockHttpRequest':
        """Expect a JSON body loaded from a named resource."""
        return self.with_json_body(self.client.resources.load_json(resource_name), *ignore_paths)

    def with_header(self, name: str, value: str) -> 'MockHttpRequest':
        """Expect a header with exactly this value."""
        self.headers[name] = value
        return self

    def times(self, times: Times) -> 'MockHttpRequest':
        """Set the call-count policy."""
        self._times = times
        return self

    def trace_comparisons(self) -> 'MockHttpRequest':
        """Log JSON body differences at DEBUG when this expectation rejects a request."""
        self.trace = True
        return self

    # State

    @property
    def policy(self) -> Times:
        """
        Effective call-count policy.

        Defaults to exactly the number of responses for an explicit sequence,
        and at least once otherwise.
        """
        if self._times is not None:
            return self._times
        if self.sequencer is not None and not self.sequencer.repeating:
            return Times.exactly(len(self.sequencer.responses))
        return Times.at_least_once()

    @property
    def is_complete(self) -> bool:
        """True once a response has been configured."""
        return self.sequencer is not None and not self.sequencer.is_empty

    @property
    def has_capacity(self) -> bool:
        return self.policy.has_capacity(self.count) and not self.sequencer.exhausted

    def set_responses(self, responses: List[MockResponse], repeating: bool):
        self.sequencer = ResponseSequencer(responses, repeating=repeating)

    def invoke(self) -> MockResponse:
        """Count a matched call and take its response (caller holds the client lock)."""
        self.count += 1
        return self.sequencer.take(self.describe())

    def describe(self) -> str:
        return f"<{self.client.name}> {self.method} {self.resolved_uri} {self.body_matcher.describe()}"

    def verify(self):
        """
        Verify this expectation was invoked according to its policy.

        Raises:
            ConfigurationError: If no response was configured
            VerificationError: If the invocation count does not satisfy the policy
        """
        if not self.is_complete:
            raise ConfigurationError(
                f"The request mock is not complete; a response must be configured for mocking to be verified. "
                f"Request: {self.describe()}"
            )

        if self.policy.is_satisfied(self.count):
            return

        if self._times is None and not self.sequencer.repeating:
            total = len(self.sequencer.responses)
            raise VerificationError(
                f"There were {total} response(s) configured for the sequence and {self.count} response(s) invoked. "
                f"Request: {self.describe()}"
            )
        raise VerificationError(f"The request was invoked {self.count} times; expected {self.policy}. Request: {self.describe()}")

    def __repr__(self) -> str:
        return f"MockHttpRequest({self.describe()})"


class MockHttpResponseBuilder:
    """
    Configures the response(s) of an expectation.

    Inside a sequence each call adds one response; otherwise it sets the
    single response answering every matching call.
    """

    def __init__(self, request: MockHttpRequest, sequence: Optional[List[MockResponse]] = None):
        self._request = request
        self._sequence = sequence
        self._delay_ms = 0
        self._delay_max_ms: Optional[int] = None

    def delay(self, ms: int, max_ms: Optional[int] = None) -> 'MockHttpResponseBuilder':
        """
        Delay the response.

        Args:
            ms: Delay in milliseconds (minimum when max_ms is given)
            max_ms: Upper bound for a uniformly random delay
        """
        self._delay_ms = ms
        self._delay_max_ms = max_ms
        return self

    def _add(self, **values) -> MockHttpRequest:
        response = MockResponse(delay_ms=self._delay_ms, delay_max_ms=self._delay_max_ms, **values)

        if self._sequence is not None:
            self._sequence.append(response)
        else:
            self._request.set_responses([response], repeating=True)
        return self._request

    def with_(self, status: int = 200, body: Optional[Union[str, bytes]] = None,
              content_type: Optional[str] = None, headers: Optional[Dict[str, str]] = None,
              on_response: Optional[Callable[[httpx.Response], None]] = None) -> MockHttpRequest:
        """Respond with a status code and optional body."""
        if body is not None and content_type is None:
            content_type = "text/plain; charset=utf-8"
        return self._add(status=status, body=body, content_type=content_type,
                         headers=dict(headers or {}), on_response=on_response)

    def with_json(self, value: Any, status: int = 200, headers: Optional[Dict[str, str]] = None,
                  on_response: Optional[Callable[[httpx.Response], None]] = None) -> MockHttpRequest:
        """Respond with a JSON body (JSON text, or a value serialized to JSON)."""
        body = to_json_text(value, self._request.client.config.json_indent)
        return self._add(status=status, body=body, content_type="application/json",
                         headers=dict(headers or {}), on_response=on_response)

    def with_json_resource(self, resource_name: str, status: int = 200,
                           headers: Optional[Dict[str, str]] = None,
                           on_response: Optional[Callable[[httpx.Response], None]] = None) -> MockHttpRequest:
        """Respond with a JSON body loaded from a named resource."""
        body = self._request.client.resources.load_json(resource_name)
        return self.with_json(body, status, headers, on_response)

    def with_error(self, error: TransportFailure = httpx.ConnectError,
                   message: str = "Simulated transport failure") -> MockHttpRequest:
        """Fail the call with a transport error instead of responding."""
        return self._add(error=error, error_message=message)

    def with_sequence(self, sequence: Union[Callable[['SequenceBuilder'], Any], Iterable[Any]]) -> MockHttpRequest:
        """
        Respond with an ordered sequence, one response per call.

        Args:
            sequence: Callable receiving a SequenceBuilder, or an iterable of
                MockResponse, status codes, or MockResponse keyword dicts

        Raises:
            ConfigurationError: If used within a sequence
        """
        if self._sequence is not None:
            raise ConfigurationError("A with_sequence can not be issued within the context of a parent with_sequence.")

        responses: List[MockResponse] = []
        if callable(sequence):
            sequence(SequenceBuilder(self._request, responses))
        else:
            responses.extend(_to_response(item) for item in sequence)

        if responses:
            self._request.set_responses(responses, repeating=False)
        return self._request


class SequenceBuilder:
    """Adds responses to a sequence in order."""

    def __init__(self, request: MockHttpRequest, responses: List[MockResponse]):
        self._request = request
        self._responses = responses

    def respond(self) -> MockHttpResponseBuilder:
        return MockHttpResponseBuilder(self._request, self._responses)


def _to_response(item: Any) -> MockResponse:
    if isinstance(item, MockResponse):
        return item
    if isinstance(item, int):
        return MockResponse(item)
    if isinstance(item, dict):
        return MockResponse(**item)
    raise ConfigurationError(f"Unsupported sequence item: {item!r}")
