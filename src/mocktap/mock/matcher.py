"""
MockTap Request Matcher

Matching engine that selects the expectation answering an intercepted request.

Features:
- Case-insensitive method matching
- Normalized URI matching (percent-encoding, query order) with wildcards
- Header matching
- Body matching: no body, any body, exact text, semantic JSON
- Detailed MatchError reports quoting expected and actual bodies
"""

import logging
import re
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple

import httpx

from ..common.url_utils import URLMatcher
from ..compare.comparer import JsonComparer
from ..compare.options import ComparisonOptions
from ..compare.parsers import parse_json
from ..compare.result import ComparisonResult
from ..errors import MatchError, ParseError

if TYPE_CHECKING:
    from .expectation import MockHttpRequest

compare_logger = logging.getLogger("mocktap.compare")

JSON_MEDIA_TYPES = ('application/json', 'text/json')


def is_json_media_type(media_type: Optional[str]) -> bool:
    """Check whether a media type carries JSON (absent counts as JSON)."""
    if not media_type:
        return True
    return media_type in JSON_MEDIA_TYPES or media_type.endswith('+json')


@dataclass
class InterceptedRequest:
    """An outgoing request captured by a mock client."""

    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    content: bytes = b''
    timestamp: float = field(default_factory=time.time)
    matched: bool = False

    @classmethod
    def from_httpx(cls, request: httpx.Request) -> 'InterceptedRequest':
        """Create from an httpx request whose content has been read."""
        return cls(
            method=request.method.upper(),
            url=str(request.url),
            headers={k.lower(): v for k, v in request.headers.items()},
            content=request.content,
        )

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get('content-type')

    @property
    def media_type(self) -> Optional[str]:
        """Content type without parameters, lower-cased."""
        if not self.content_type:
            return None
        return self.content_type.split(';')[0].strip().lower() or None

    @property
    def text(self) -> str:
        return self.content.decode('utf-8', errors='replace')

    def describe(self) -> str:
        body = f"'{self.text}'" if self.content else "'No content'"
        media = f" [{self.media_type}]" if self.media_type else ""
        return f"{self.method} {self.url} {body}{media}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'timestamp': self.timestamp,
            'method': self.method,
            'url': self.url,
            'headers': dict(self.headers),
            'body': self.text,
            'matched': self.matched,
        }


@dataclass
class BodyMatch:
    """Result of matching a request body."""

    matched: bool
    reason: str = ""
    result: Optional[ComparisonResult] = None


@dataclass(frozen=True)
class NoBody:
    """Matches a request without a body."""

    def matches(self, request: InterceptedRequest) -> BodyMatch:
        if request.content:
            return BodyMatch(False, "Expected no body")
        return BodyMatch(True)

    def describe(self) -> str:
        return "'No content'"


@dataclass(frozen=True)
class AnyBody:
    """Matches a request with any non-empty body."""

    def matches(self, request: InterceptedRequest) -> BodyMatch:
        if not request.content:
            return BodyMatch(False, "Expected a body but the request has none")
        return BodyMatch(True)

    def describe(self) -> str:
        return "'Any content'"


@dataclass(frozen=True)
class ExactBody:
    """Matches a request body with exactly the given text."""

    text: str
    content_type: str = "text/plain"

    def matches(self, request: InterceptedRequest) -> BodyMatch:
        media_type = request.media_type
        if media_type is not None and media_type != self.content_type.lower():
            return BodyMatch(False, f"Content type '{media_type}' is not '{self.content_type}'")
        if request.text != self.text:
            return BodyMatch(False, "Body text is not equal")
        return BodyMatch(True)

    def describe(self) -> str:
        return f"'{self.text}' ({self.content_type})"


@dataclass(frozen=True)
class SemanticJsonBody:
    """Matches a JSON request body semantically using JsonComparer."""

    json: str
    options: ComparisonOptions = field(default_factory=ComparisonOptions, compare=False)
    ignore_paths: Tuple[str, ...] = ()

    def __post_init__(self):
        # Invalid expected JSON raises ParseError here
        object.__setattr__(self, '_tree', parse_json(self.json, 'expected'))

    def matches(self, request: InterceptedRequest) -> BodyMatch:
        if not is_json_media_type(request.media_type):
            return BodyMatch(False, f"Content type '{request.media_type}' is not JSON")
        if not request.content:
            return BodyMatch(False, "Expected a JSON body but the request has none")

        try:
            actual = parse_json(request.content, 'actual')
        except ParseError as e:
            return BodyMatch(False, str(e))

        result = JsonComparer(self.options).compare_trees(self._tree, actual, *self.ignore_paths)
        if result.has_differences:
            return BodyMatch(False, "JSON body is not equal", result)
        return BodyMatch(True, result=result)

    def describe(self) -> str:
        return f"'{self.json}' (application/json)"


@dataclass
class MatchOutcome:
    """Result of evaluating one expectation against a request."""

    expectation: 'MockHttpRequest'
    request_matched: bool  # method, URI and headers
    body: Optional[BodyMatch] = None
    reason: str = ""

    @property
    def matched(self) -> bool:
        return self.request_matched and self.body is not None and self.body.matched


@dataclass
class MatchResult:
    """Result of matching a request against a client's expectations."""

    expectation: Optional['MockHttpRequest'] = None
    near_misses: List[MatchOutcome] = field(default_factory=list)

    @property
    def matched(self) -> bool:
        return self.expectation is not None


class RequestMatcher:
    """
    Selects the expectation answering a request.

    The first declared expectation whose matcher accepts and that still has
    capacity wins. When every accepting expectation is at capacity, the first
    accepting one is chosen so over-invocation is detected by verification.

    Example:
        matcher = RequestMatcher(client_name='orders')
        result = matcher.find_match(expectations, request)

        if not result.matched:
            raise matcher.build_error(request, result)
    """

    def __init__(self, client_name: str = "", trace_comparisons: bool = False):
        """
        Initialize request matcher.

        Args:
            client_name: Name of the owning client (for messages)
            trace_comparisons: Log body differences at DEBUG for every expectation
        """
        self.client_name = client_name
        self.trace_comparisons = trace_comparisons

    def evaluate(self, expectation: 'MockHttpRequest', request: InterceptedRequest) -> MatchOutcome:
        """Evaluate a single expectation against a request."""
        if expectation.method != request.method:
            return MatchOutcome(expectation, False, reason="Method does not match")

        if not self._uri_matches(expectation, request.url):
            return MatchOutcome(expectation, False, reason="URI does not match")

        for name, value in expectation.headers.items():
            actual = request.headers.get(name.lower())
            if actual != value:
                return MatchOutcome(expectation, True, BodyMatch(False), f"Header '{name}' is {actual!r}, expected {value!r}")

        body = expectation.body_matcher.matches(request)
        if not body.matched and body.result is not None and (self.trace_comparisons or expectation.trace):
            compare_logger.debug(f"HTTP request body differences for {expectation.describe()}:\n{body.result}")

        return MatchOutcome(expectation, True, body, body.reason)

    def _uri_matches(self, expectation: 'MockHttpRequest', url: str) -> bool:
        uri = expectation.uri
        if isinstance(uri, re.Pattern):
            return URLMatcher.matches_pattern(uri, url)
        if URLMatcher.is_pattern(uri):
            return URLMatcher.matches_pattern(expectation.resolved_uri, url)
        return URLMatcher.urls_match(expectation.resolved_uri, url)

    def find_match(self, expectations: Sequence['MockHttpRequest'], request: InterceptedRequest) -> MatchResult:
        """
        Find the expectation answering a request.

        Expectations without a configured response are skipped.

        Args:
            expectations: Expectations in registration order
            request: Intercepted request

        Returns:
            MatchResult (near misses are collected only when nothing matched)
        """
        fallback = None
        near_misses = []

        for expectation in expectations:
            if not expectation.is_complete:
                continue

            outcome = self.evaluate(expectation, request)
            if outcome.matched:
                if expectation.has_capacity:
                    return MatchResult(expectation=expectation)
                fallback = fallback or expectation
            elif outcome.request_matched:
                near_misses.append(outcome)

        if fallback is not None:
            return MatchResult(expectation=fallback)
        return MatchResult(near_misses=near_misses)

    def build_error(self, request: InterceptedRequest, result: MatchResult,
                    httpx_request: Optional[httpx.Request] = None) -> MatchError:
        """Create a MatchError describing the request and the closest expectations."""
        lines = [f"No mock expectation matched the request on client <{self.client_name}>: {request.describe()}"]

        for outcome in result.near_misses:
            lines.append(f"Expectation {outcome.expectation.describe()} matched on method and URI but not on content: {outcome.reason}.")
            lines.append(f"  Expected body: {outcome.expectation.body_matcher.describe()}")
            lines.append(f"  Actual body: '{request.text}'")
            if outcome.body is not None and outcome.body.result is not None:
                lines.extend(f"  {line}" for line in str(outcome.body.result).splitlines())

        return MatchError("\n".join(lines), request=httpx_request)
