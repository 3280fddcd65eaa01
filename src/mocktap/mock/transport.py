"""
MockTap Transports

Interception points for the supported HTTP client libraries:
- MockTransport: httpx.BaseTransport for httpx.Client
- AsyncMockTransport: httpx.AsyncBaseTransport for httpx.AsyncClient
- MockRequestsAdapter: requests transport adapter for requests.Session

Each delegates to its MockHttpClient.
"""

from typing import TYPE_CHECKING

import httpx
import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict
from requests.utils import get_encoding_from_headers

from ..errors import MockHttpError

if TYPE_CHECKING:
    from .client import MockHttpClient


class MockTransport(httpx.BaseTransport):
    """httpx transport routing every request to a MockHttpClient."""

    def __init__(self, client: 'MockHttpClient'):
        self.client = client

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        return self.client.send(request)


class AsyncMockTransport(httpx.AsyncBaseTransport):
    """Async httpx transport routing every request to a MockHttpClient."""

    def __init__(self, client: 'MockHttpClient'):
        self.client = client

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        return await self.client.send_async(request)


class MockRequestsAdapter(BaseAdapter):
    """
    requests transport adapter routing every request to a MockHttpClient.

    Simulated transport failures surface as requests.ConnectionError and
    delays past the read timeout as requests.ReadTimeout. MockTap errors
    (MatchError, SequenceExhaustedError) are raised unchanged.
    """

    def __init__(self, client: 'MockHttpClient'):
        super().__init__()
        self.client = client

    def send(self, request: requests.PreparedRequest, stream=False, timeout=None,
             verify=True, cert=None, proxies=None) -> requests.Response:
        read_timeout = timeout[1] if isinstance(timeout, tuple) else timeout
        httpx_request = httpx.Request(
            request.method,
            request.url,
            headers=dict(request.headers),
            content=_body_bytes(request.body),
            extensions={"timeout": {"read": read_timeout}},
        )

        try:
            response = self.client.send(httpx_request)
        except MockHttpError:
            raise
        except httpx.TimeoutException as e:
            raise requests.exceptions.ReadTimeout(str(e), request=request) from e
        except httpx.TransportError as e:
            raise requests.exceptions.ConnectionError(str(e), request=request) from e

        return self.build_response(request, response)

    def build_response(self, request: requests.PreparedRequest, response: httpx.Response) -> requests.Response:
        """Convert an httpx response into a requests response."""
        result = requests.Response()
        result.status_code = response.status_code
        result.headers = CaseInsensitiveDict(response.headers)
        result.encoding = get_encoding_from_headers(result.headers)
        result._content = response.content
        result._content_consumed = True
        result.reason = response.reason_phrase
        result.url = request.url
        result.request = request
        result.connection = self
        return result

    def close(self):
        pass


def _body_bytes(body) -> bytes:
    if body is None:
        return b''
    if isinstance(body, str):
        return body.encode('utf-8')
    if isinstance(body, bytes):
        return body
    return b''.join(chunk.encode('utf-8') if isinstance(chunk, str) else chunk for chunk in body)
