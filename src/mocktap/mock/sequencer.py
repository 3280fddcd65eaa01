"""
MockTap Response Sequencer

Canned responses and the ordered, single-consumption sequence that hands
them out one per matched call.

Delays are applied outside of any lock:
- async callers suspend on asyncio.sleep, so task cancellation propagates
- sync callers wait on a threading.Event, so MockHttpClientFactory.cancel_all()
  can interrupt them

When the caller's read timeout is shorter than the delay, the wait stops at
the deadline and httpx.ReadTimeout is raised, as a real timed-out call would.
"""

import asyncio
import random
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Type, Union

import httpx

from ..errors import ConfigurationError, MockCancelledError, SequenceExhaustedError

TransportFailure = Union[Type[httpx.TransportError], httpx.TransportError]


@dataclass
class MockResponse:
    """A canned response, or a simulated transport failure."""

    status: int = 200
    body: Optional[Union[str, bytes]] = None
    content_type: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    on_response: Optional[Callable[[httpx.Response], None]] = None

    # Transport failure (raised instead of returning a response)
    error: Optional[TransportFailure] = None
    error_message: str = "Simulated transport failure"

    # Delay in milliseconds; uniformly sampled from [delay_ms, delay_max_ms] when a max is set
    delay_ms: int = 0
    delay_max_ms: Optional[int] = None

    def __post_init__(self):
        if self.delay_ms < 0:
            raise ConfigurationError("Delay must not be negative")
        if self.delay_max_ms is not None and self.delay_max_ms < self.delay_ms:
            raise ConfigurationError("Maximum delay must not be less than the minimum delay")

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    def pick_delay_ms(self) -> int:
        """Delay to apply for one call, in milliseconds."""
        if self.delay_max_ms is not None:
            return random.randint(self.delay_ms, self.delay_max_ms)
        return self.delay_ms

    def build_error(self, request: Optional[httpx.Request] = None) -> httpx.TransportError:
        """Create the transport exception this definition simulates."""
        if isinstance(self.error, BaseException):
            return self.error
        error_type = self.error or httpx.ConnectError
        return error_type(self.error_message, request=request)

    def to_httpx_response(self, request: httpx.Request) -> httpx.Response:
        """
        Build the httpx response for a request.

        Raises:
            httpx.TransportError: If this definition simulates a transport failure
        """
        if self.is_failure:
            raise self.build_error(request)

        headers = dict(self.headers)
        content = self.body.encode('utf-8') if isinstance(self.body, str) else (self.body or b'')
        if self.content_type and not any(k.lower() == 'content-type' for k in headers):
            headers['Content-Type'] = self.content_type

        response = httpx.Response(self.status, headers=headers, content=content, request=request)
        if self.on_response:
            self.on_response(response)
        return response

    def describe(self) -> str:
        if self.is_failure:
            error = self.error if isinstance(self.error, type) else type(self.error)
            return f"{error.__name__}"
        return f"{self.status}"


class ResponseSequencer:
    """
    Ordered responses for one expectation.

    The cursor only advances. An explicit sequence never wraps: taking past its
    end raises SequenceExhaustedError. A repeating sequencer (a single
    configured response) answers every call with that response.

    Example:
        sequencer = ResponseSequencer([MockResponse(200), MockResponse(404)])
        sequencer.next().status  # 200
        sequencer.next().status  # 404
        sequencer.next()         # SequenceExhaustedError
    """

    def __init__(self, responses: Optional[List[MockResponse]] = None, repeating: bool = False):
        self._responses: List[MockResponse] = list(responses or [])
        self.repeating = repeating
        self._cursor = 0
        self._lock = threading.Lock()

    @classmethod
    def single(cls, response: MockResponse) -> 'ResponseSequencer':
        return cls([response], repeating=True)

    @property
    def responses(self) -> List[MockResponse]:
        return list(self._responses)

    @property
    def cursor(self) -> int:
        """Number of responses taken so far."""
        return self._cursor

    @property
    def is_empty(self) -> bool:
        return not self._responses

    @property
    def exhausted(self) -> bool:
        return not self.repeating and self._cursor >= len(self._responses)

    def take(self, description: str = "") -> MockResponse:
        """
        Return the response at the cursor and advance, without any delay.

        Args:
            description: Request description for error messages

        Raises:
            ConfigurationError: If no responses are configured
            SequenceExhaustedError: If every response of a sequence was taken
        """
        with self._lock:
            if not self._responses:
                raise ConfigurationError(f"No response has been configured. Request: {description}")

            if self.repeating:
                self._cursor += 1
                return self._responses[0]

            if self._cursor >= len(self._responses):
                raise SequenceExhaustedError(
                    f"There were {len(self._responses)} responses configured for the sequence and these responses "
                    f"have been exhausted; i.e. an unexpected additional invocation has occurred. Request: {description}"
                )

            response = self._responses[self._cursor]
            self._cursor += 1
            return response

    def next(self, timeout: Optional[float] = None,
             cancel_event: Optional[threading.Event] = None) -> MockResponse:
        """Take the next response and apply its delay (blocking)."""
        response = self.take()
        wait(response, timeout=timeout, cancel_event=cancel_event)
        return response

    async def anext(self, timeout: Optional[float] = None) -> MockResponse:
        """Take the next response and apply its delay (async)."""
        response = self.take()
        await wait_async(response, timeout=timeout)
        return response


def _delay_seconds(response: MockResponse, timeout: Optional[float]):
    delay = response.pick_delay_ms() / 1000
    timed_out = timeout is not None and timeout < delay
    return delay, timed_out


def _timeout_error(delay: float, timeout: float, request: Optional[httpx.Request], description: str) -> httpx.ReadTimeout:
    return httpx.ReadTimeout(
        f"Simulated response delay of {delay * 1000:.0f} ms exceeded the read timeout of {timeout} s. Request: {description}",
        request=request,
    )


def wait(response: MockResponse, timeout: Optional[float] = None,
         cancel_event: Optional[threading.Event] = None,
         request: Optional[httpx.Request] = None, description: str = ""):
    """
    Apply a response delay on the calling thread.

    Raises:
        MockCancelledError: If cancel_event is set while waiting
        httpx.ReadTimeout: If the delay exceeds the timeout
    """
    delay, timed_out = _delay_seconds(response, timeout)
    if delay <= 0:
        return

    event = cancel_event or threading.Event()
    if event.wait(timeout if timed_out else delay):
        raise MockCancelledError(f"Simulated response delay was cancelled. Request: {description}", request=request)
    if timed_out:
        raise _timeout_error(delay, timeout, request, description)


async def wait_async(response: MockResponse, timeout: Optional[float] = None,
                     request: Optional[httpx.Request] = None, description: str = ""):
    """
    Apply a response delay as a cancellable suspension.

    Raises:
        asyncio.CancelledError: If the awaiting task is cancelled
        httpx.ReadTimeout: If the delay exceeds the timeout
    """
    delay, timed_out = _delay_seconds(response, timeout)
    if delay <= 0:
        return

    await asyncio.sleep(timeout if timed_out else delay)
    if timed_out:
        raise _timeout_error(delay, timeout, request, description)
