"""
Tests for MockTap Response Sequencer

Tests canned responses including:
- Ordered, single-consumption sequences and exhaustion
- Repeating single responses
- Delays, read timeouts and cancellation (sync and async)
- Conversion to httpx responses and transport failures
"""

import asyncio
import threading
import time

import httpx
import pytest

from mocktap.errors import ConfigurationError, MockCancelledError, SequenceExhaustedError
from mocktap.mock.sequencer import MockResponse, ResponseSequencer, wait


@pytest.fixture
def request_():
    """Sample httpx request."""
    return httpx.Request("GET", "https://unittest/items")


class TestResponseSequencer:
    """Test ResponseSequencer."""

    def test_sequence_order_and_exhaustion(self):
        """Test k responses are returned in order, then exhaustion on call k+1."""
        sequencer = ResponseSequencer([MockResponse(200), MockResponse(201), MockResponse(404)])

        assert [sequencer.next().status for _ in range(3)] == [200, 201, 404]
        assert sequencer.exhausted
        assert sequencer.cursor == 3

        with pytest.raises(SequenceExhaustedError) as exc_info:
            sequencer.next()

        assert "3 responses configured" in str(exc_info.value)

    def test_single_response_repeats(self):
        """Test a single response answers every call."""
        sequencer = ResponseSequencer.single(MockResponse(204))

        assert [sequencer.next().status for _ in range(5)] == [204] * 5
        assert not sequencer.exhausted

    def test_empty_sequencer(self):
        """Test taking from an empty sequencer."""
        sequencer = ResponseSequencer()

        assert sequencer.is_empty
        with pytest.raises(ConfigurationError):
            sequencer.take()

    def test_exhausted_error_is_transport_error(self):
        """Test exhaustion appears as a failed network call."""
        sequencer = ResponseSequencer([MockResponse(200)])
        sequencer.next()

        with pytest.raises(httpx.TransportError):
            sequencer.next()


class TestDelays:
    """Test response delays."""

    def test_delay(self):
        """Test a delayed response returns no earlier than its delay."""
        sequencer = ResponseSequencer([MockResponse(200, delay_ms=100)])

        start = time.monotonic()
        sequencer.next()

        assert time.monotonic() - start >= 0.09

    def test_random_delay_range(self):
        """Test random delays stay within range."""
        response = MockResponse(delay_ms=10, delay_max_ms=20)

        assert all(10 <= response.pick_delay_ms() <= 20 for _ in range(50))

    def test_invalid_delay_range(self):
        """Test max delay below min delay is rejected."""
        with pytest.raises(ConfigurationError):
            MockResponse(delay_ms=20, delay_max_ms=10)

    def test_delay_exceeding_timeout(self):
        """Test a delay longer than the read timeout raises ReadTimeout at the deadline."""
        sequencer = ResponseSequencer([MockResponse(200, delay_ms=500)])

        start = time.monotonic()
        with pytest.raises(httpx.ReadTimeout):
            sequencer.next(timeout=0.05)

        assert time.monotonic() - start < 0.4

    def test_cancel_event(self, request_):
        """Test setting the cancel event interrupts a sync delay."""
        event = threading.Event()
        timer = threading.Timer(0.05, event.set)
        timer.start()

        start = time.monotonic()
        with pytest.raises(MockCancelledError) as exc_info:
            wait(MockResponse(delay_ms=2000), cancel_event=event, request=request_,
                 description="GET https://unittest/slow 'No content'")

        assert time.monotonic() - start < 1.5
        assert str(exc_info.value).endswith("Request: GET https://unittest/slow 'No content'")

    @pytest.mark.asyncio
    async def test_async_delay(self):
        """Test an async delayed response."""
        sequencer = ResponseSequencer([MockResponse(200, delay_ms=100)])

        start = time.monotonic()
        response = await sequencer.anext()

        assert response.status == 200
        assert time.monotonic() - start >= 0.09

    @pytest.mark.asyncio
    async def test_async_delay_cancellable(self):
        """Test an async delay is cancelled by the caller's deadline."""
        sequencer = ResponseSequencer([MockResponse(200, delay_ms=500)])

        start = time.monotonic()
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(sequencer.anext(), timeout=0.05)

        assert time.monotonic() - start < 0.4

    @pytest.mark.asyncio
    async def test_async_delay_exceeding_timeout(self):
        """Test async ReadTimeout when the delay exceeds the timeout."""
        sequencer = ResponseSequencer([MockResponse(200, delay_ms=500)])

        with pytest.raises(httpx.ReadTimeout):
            await sequencer.anext(timeout=0.05)


class TestMockResponse:
    """Test MockResponse conversion."""

    def test_to_httpx_response(self, request_):
        """Test building an httpx response."""
        response = MockResponse(201, '{"a": 1}', 'application/json', headers={'X-Id': '1'})

        http_response = response.to_httpx_response(request_)

        assert http_response.status_code == 201
        assert http_response.json() == {"a": 1}
        assert http_response.headers['content-type'] == 'application/json'
        assert http_response.headers['x-id'] == '1'

    def test_on_response_callback(self, request_):
        """Test the callback can adjust the response."""
        response = MockResponse(200, on_response=lambda r: r.headers.__setitem__('X-Trace', 'abc'))

        assert response.to_httpx_response(request_).headers['x-trace'] == 'abc'

    def test_empty_body(self, request_):
        """Test a response without body."""
        http_response = MockResponse(204).to_httpx_response(request_)

        assert http_response.status_code == 204
        assert http_response.content == b''

    def test_transport_failure(self, request_):
        """Test a simulated transport failure."""
        response = MockResponse(error=httpx.ConnectError, error_message="refused")

        assert response.is_failure
        with pytest.raises(httpx.ConnectError, match="refused"):
            response.to_httpx_response(request_)

    def test_transport_failure_instance(self, request_):
        """Test a failure configured as an exception instance."""
        error = httpx.ReadError("reset")
        response = MockResponse(error=error)

        with pytest.raises(httpx.ReadError):
            response.to_httpx_response(request_)
