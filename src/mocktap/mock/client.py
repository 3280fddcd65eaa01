"""
MockTap Mock HTTP Client

A named simulated client holding ordered expectations. Handles created from it
(httpx.Client, httpx.AsyncClient, requests.Session) route every call through
the client, which selects the matching expectation, takes its next response,
applies the delay and builds the response.
"""

import threading
from typing import TYPE_CHECKING, List, Optional, Pattern, Union

import httpx
import requests

from ..errors import ConfigurationError
from .expectation import MockHttpRequest
from .matcher import InterceptedRequest, RequestMatcher
from .sequencer import MockResponse, wait, wait_async
from .transport import AsyncMockTransport, MockRequestsAdapter, MockTransport
from .verification import VerificationEngine

if TYPE_CHECKING:
    from .registry import MockHttpClientFactory


def _read_timeout(request: httpx.Request) -> Optional[float]:
    timeout = request.extensions.get("timeout") or {}
    return timeout.get("read")


class MockHttpClient:
    """
    Named mock HTTP client.

    Example:
        client = factory.create_client("orders", "https://orders.example.com")
        client.request("GET", "/orders/1").respond.with_json({"id": 1})

        with client.create_http_client() as http:
            http.get("/orders/1").json()  # {"id": 1}

        client.verify()
    """

    def __init__(self, factory: 'MockHttpClientFactory', name: str, base_address: Optional[str] = None):
        self.factory = factory
        self.config = factory.config
        self.resources = factory.resources
        self.logger = factory.logger
        self.name = name
        self.base_address_specified = base_address is not None
        self.base_address = base_address or self.config.default_base_address
        self.expectations: List[MockHttpRequest] = []
        self.recorded_requests: List[InterceptedRequest] = []
        self.passthrough = False
        self.matcher = RequestMatcher(name, self.config.trace_request_comparisons)
        self._lock = threading.Lock()

    def comparison_options(self):
        """Fresh comparison options from the factory configuration."""
        return self.config.comparison_options()

    def without_mocking(self) -> 'MockHttpClient':
        """
        Bypass mocking: handles created from this client use the real network.

        Raises:
            ConfigurationError: If requests have already been configured
        """
        if self.expectations:
            raise ConfigurationError("without_mocking is not supported where a request has already been specified.")
        self.passthrough = True
        return self

    def request(self, method: str, uri: Union[str, Pattern]) -> MockHttpRequest:
        """
        Declare an expected request.

        Args:
            method: HTTP method (case-insensitive)
            uri: Path or URL relative to the base address, a wildcard pattern
                ('/products/*', '/users/{id}') or a compiled regular expression

        Returns:
            MockHttpRequest for fluent configuration

        Raises:
            ConfigurationError: If the client was marked without_mocking
        """
        if self.passthrough:
            raise ConfigurationError("request is not supported where without_mocking has been specified.")

        expectation = MockHttpRequest(self, method, uri)
        with self._lock:
            self.expectations.append(expectation)
        return expectation

    # Handles

    def create_http_client(self, **kwargs) -> httpx.Client:
        """Create an httpx.Client whose calls are intercepted by this client."""
        transport = httpx.HTTPTransport() if self.passthrough else MockTransport(self)
        return httpx.Client(transport=transport, base_url=self._handle_base_url(), **kwargs)

    def create_async_http_client(self, **kwargs) -> httpx.AsyncClient:
        """Create an httpx.AsyncClient whose calls are intercepted by this client."""
        transport = httpx.AsyncHTTPTransport() if self.passthrough else AsyncMockTransport(self)
        return httpx.AsyncClient(transport=transport, base_url=self._handle_base_url(), **kwargs)

    def create_requests_session(self) -> requests.Session:
        """
        Create a requests.Session whose calls are intercepted by this client.

        requests has no base URL, so calls must use absolute URLs.
        """
        session = requests.Session()
        if not self.passthrough:
            adapter = MockRequestsAdapter(self)
            session.mount('http://', adapter)
            session.mount('https://', adapter)
        return session

    def _handle_base_url(self) -> str:
        if self.passthrough and not self.base_address_specified:
            return ""
        return self.base_address

    # Interception

    def send(self, request: httpx.Request, cancel_event: Optional[threading.Event] = None) -> httpx.Response:
        """Handle an intercepted request on the calling thread."""
        request.read()
        intercepted = InterceptedRequest.from_httpx(request)
        response = self._select(intercepted, request)
        wait(response, timeout=_read_timeout(request),
             cancel_event=cancel_event or self.factory.cancel_event, request=request,
             description=intercepted.describe())
        return self._respond(intercepted, response, request)

    async def send_async(self, request: httpx.Request) -> httpx.Response:
        """Handle an intercepted request as a cancellable coroutine."""
        await request.aread()
        intercepted = InterceptedRequest.from_httpx(request)
        response = self._select(intercepted, request)
        await wait_async(response, timeout=_read_timeout(request), request=request,
                         description=intercepted.describe())
        return self._respond(intercepted, response, request)

    def _select(self, intercepted: InterceptedRequest, request: httpx.Request) -> MockResponse:
        self.logger.info(f"<{self.name}> {intercepted.method} {intercepted.url}")

        with self._lock:
            self._record_request(intercepted)
            result = self.matcher.find_match(self.expectations, intercepted)
            if not result.matched:
                self.logger.warning(f"<{self.name}> No match found for {intercepted.method} {intercepted.url}")
                raise self.matcher.build_error(intercepted, result, request)

            intercepted.matched = True
            return result.expectation.invoke()

    def _respond(self, intercepted: InterceptedRequest, response: MockResponse, request: httpx.Request) -> httpx.Response:
        if response.is_failure:
            self.logger.info(f"<{self.name}> {intercepted.method} {intercepted.url} -> {response.describe()}")
            raise response.build_error(request)

        http_response = response.to_httpx_response(request)
        self.logger.info(f"<{self.name}> {intercepted.method} {intercepted.url} -> {http_response.status_code}")
        return http_response

    def _record_request(self, intercepted: InterceptedRequest):
        """Record an intercepted request for later inspection."""
        if not self.config.recording_enabled:
            return

        self.recorded_requests.append(intercepted)

        limit = self.config.recording_limit
        if limit and len(self.recorded_requests) > limit:
            self.recorded_requests.pop(0)

        self.logger.debug(f"Recorded request: {intercepted.method} {intercepted.url}")

    # Verification

    def verify(self):
        """
        Verify every expectation of this client.

        Raises:
            ConfigurationError: If an expectation has no response
            VerificationError: On the first expectation whose policy is not satisfied
        """
        VerificationEngine([self]).verify_all()

    def __repr__(self) -> str:
        return f"MockHttpClient(name={self.name!r}, base_address={self.base_address!r})"
