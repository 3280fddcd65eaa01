"""
MockTap Client Factory

Owns the named mock clients of a test. A factory is normally created per test
and used as a context manager so its clients are discarded afterwards.

Example:
    with MockHttpClientFactory() as factory:
        people = factory.create_client("people")
        people.request("POST", "/person") \\
            .with_json_body({"firstName": "Bob"}) \\
            .respond.with_(200)

        with factory.get_http_client("people") as http:
            service = PersonService(http)
            service.create("Bob")

        factory.verify_all()
"""

import threading
from typing import Dict, List, Optional

import httpx
import requests

from ..common.resources import ResourceLoader
from ..config import MockConfig
from ..errors import ConfigurationError
from .client import MockHttpClient
from .verification import VerificationEngine


class MockHttpClientFactory:
    """Registry of named mock HTTP clients."""

    def __init__(self, config: Optional[MockConfig] = None):
        """
        Initialize factory.

        Args:
            config: Configuration (defaults to MockConfig())
        """
        self.config = config or MockConfig()
        self.logger = self.config.get_logger("mocktap.mock")
        self.resources = ResourceLoader(self.config.resource_dirs or None)
        self._clients: Dict[str, MockHttpClient] = {}
        self._lock = threading.Lock()
        self._cancel_event = threading.Event()

    @property
    def clients(self) -> List[MockHttpClient]:
        with self._lock:
            return list(self._clients.values())

    @property
    def cancel_event(self) -> threading.Event:
        """Event set by cancel_all() to interrupt in-flight sync delays."""
        return self._cancel_event

    def create_client(self, name: str, base_address: Optional[str] = None) -> MockHttpClient:
        """
        Create (or re-create) a named mock client.

        Re-creating a name replaces the prior client and its configuration.

        Args:
            name: Client name ('' for the default client)
            base_address: Base address (defaults to config.default_base_address)

        Returns:
            MockHttpClient
        """
        if name is None:
            raise ConfigurationError("Client name must not be None")

        client = MockHttpClient(self, name, base_address)
        with self._lock:
            replaced = name in self._clients
            self._clients[name] = client

        if replaced:
            self.logger.debug(f"Replaced mock client <{name}>")
        self.logger.debug(f"Created mock client <{name}> at {client.base_address}")
        return client

    def create_default_client(self, base_address: Optional[str] = None) -> MockHttpClient:
        """Create the default (unnamed) mock client."""
        return self.create_client("", base_address)

    def get_client(self, name: str = "") -> MockHttpClient:
        """
        Get a mock client by name.

        Raises:
            ConfigurationError: If no client with that name exists
        """
        with self._lock:
            client = self._clients.get(name)
        if client is None:
            raise ConfigurationError(f"No mock client named '{name}' has been created.")
        return client

    def get_http_client(self, name: str = "", **kwargs) -> httpx.Client:
        """Create an httpx.Client for a named mock client (the caller owns it)."""
        return self.get_client(name).create_http_client(**kwargs)

    def get_async_http_client(self, name: str = "", **kwargs) -> httpx.AsyncClient:
        """Create an httpx.AsyncClient for a named mock client (the caller owns it)."""
        return self.get_client(name).create_async_http_client(**kwargs)

    def get_requests_session(self, name: str = "") -> requests.Session:
        """Create a requests.Session for a named mock client (the caller owns it)."""
        return self.get_client(name).create_requests_session()

    def verify_all(self):
        """
        Verify the expectations of every client.

        Raises:
            ConfigurationError: If an expectation has no response
            VerificationError: On the first expectation whose policy is not satisfied
        """
        VerificationEngine(self.clients).verify_all()

    def cancel_all(self):
        """Interrupt every in-flight sync response delay with MockCancelledError."""
        with self._lock:
            event, self._cancel_event = self._cancel_event, threading.Event()
        event.set()
        self.logger.debug("Cancelled in-flight response delays")

    def reset(self):
        """Discard every client."""
        with self._lock:
            self._clients.clear()

    def __enter__(self) -> 'MockHttpClientFactory':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.cancel_all()
        self.reset()
