"""
MockTap Scenarios

YAML-based mock scenarios: clients and their expectations declared in a file
and arranged on a MockHttpClientFactory.

    name: People service
    variables:
      people_url: https://people.example.com
    clients:
      - name: people
        base_address: ${people_url}
        expectations:
          - method: POST
            uri: /person
            json_body: {firstName: Bob}
            times: once
            response: {status: 201, json: {id: 1}}
          - method: GET
            uri: /person/1
            sequence:
              - {status: 200, json: {id: 1, firstName: Bob}}
              - {status: 404}
              - {error: connect}

Strings may reference ${variable} from 'variables' or ${env.NAME} from the
environment.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import httpx
import yaml

from ..errors import ConfigurationError
from .expectation import MockHttpRequest, MockHttpResponseBuilder, Times

if TYPE_CHECKING:
    from .client import MockHttpClient
    from .registry import MockHttpClientFactory

TRANSPORT_ERRORS = {
    'connect': httpx.ConnectError,
    'connect_timeout': httpx.ConnectTimeout,
    'read': httpx.ReadError,
    'read_timeout': httpx.ReadTimeout,
    'network': httpx.NetworkError,
    'protocol': httpx.RemoteProtocolError,
}

_VARIABLE = re.compile(r'\$\{([^}]+)\}')


def parse_times(value: Any) -> Optional[Times]:
    """
    Parse a call-count policy.

    Accepts 'at_least_once', 'once', 'never', an integer (exactly n), or a
    single-key mapping: {exactly: n}, {at_least: n}, {at_most: n},
    {between: [a, b]}.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid times: {value!r}")
    if isinstance(value, int):
        return Times.exactly(value)
    if isinstance(value, str):
        factory = {'at_least_once': Times.at_least_once, 'once': Times.once, 'never': Times.never}.get(value)
        if factory is None:
            raise ConfigurationError(f"Invalid times: {value!r}")
        return factory()
    if isinstance(value, dict) and len(value) == 1:
        (kind, arg), = value.items()
        if kind == 'between' and isinstance(arg, (list, tuple)) and len(arg) == 2:
            return Times.between(int(arg[0]), int(arg[1]))
        if kind in ('exactly', 'at_least', 'at_most'):
            return getattr(Times, kind)(int(arg))
    raise ConfigurationError(f"Invalid times: {value!r}")


@dataclass
class ResponseSpec:
    """A response declared in a scenario."""

    status: int = 200
    body: Optional[str] = None
    content_type: Optional[str] = None
    json: Any = None
    json_resource: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    delay_ms: int = 0
    delay_max_ms: Optional[int] = None
    error: Optional[str] = None
    error_message: str = "Simulated transport failure"

    @classmethod
    def from_dict(cls, data: Any) -> 'ResponseSpec':
        """Create ResponseSpec from dictionary (or a bare status code)."""
        if isinstance(data, int):
            return cls(status=data)
        if not isinstance(data, dict):
            raise ConfigurationError(f"Invalid response: {data!r}")

        return cls(
            status=data.get('status', 200),
            body=data.get('body'),
            content_type=data.get('content_type'),
            json=data.get('json'),
            json_resource=data.get('json_resource'),
            headers=data.get('headers', {}),
            delay_ms=data.get('delay_ms', 0),
            delay_max_ms=data.get('delay_max_ms'),
            error=data.get('error'),
            error_message=data.get('error_message', 'Simulated transport failure'),
        )

    def apply(self, builder: MockHttpResponseBuilder):
        """Configure this response on a response builder."""
        if self.delay_ms or self.delay_max_ms is not None:
            builder.delay(self.delay_ms, self.delay_max_ms)

        if self.error is not None:
            error = TRANSPORT_ERRORS.get(self.error)
            if error is None:
                raise ConfigurationError(f"Unknown transport error '{self.error}' (expected one of: {', '.join(TRANSPORT_ERRORS)})")
            builder.with_error(error, self.error_message)
        elif self.json_resource is not None:
            builder.with_json_resource(self.json_resource, self.status, self.headers)
        elif self.json is not None:
            builder.with_json(self.json, self.status, self.headers)
        else:
            builder.with_(self.status, self.body, self.content_type, self.headers)


@dataclass
class ExpectationSpec:
    """An expectation declared in a scenario."""

    method: str
    uri: str
    body: Optional[str] = None
    content_type: str = "text/plain"
    any_body: bool = False
    json_body: Any = None
    json_resource: Optional[str] = None
    ignore_paths: List[str] = field(default_factory=list)
    headers: Dict[str, str] = field(default_factory=dict)
    times: Optional[Times] = None
    trace: bool = False
    response: Optional[ResponseSpec] = None
    sequence: List[ResponseSpec] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ExpectationSpec':
        """Create ExpectationSpec from dictionary."""
        if 'method' not in data or 'uri' not in data:
            raise ConfigurationError(f"Expectation requires 'method' and 'uri': {data!r}")
        if 'response' in data and 'sequence' in data:
            raise ConfigurationError(f"Expectation can not declare both 'response' and 'sequence': {data['method']} {data['uri']}")

        return cls(
            method=data['method'],
            uri=data['uri'],
            body=data.get('body'),
            content_type=data.get('content_type', 'text/plain'),
            any_body=data.get('any_body', False),
            json_body=data.get('json_body'),
            json_resource=data.get('json_resource'),
            ignore_paths=data.get('ignore_paths', []),
            headers=data.get('headers', {}),
            times=parse_times(data.get('times')),
            trace=data.get('trace', False),
            response=ResponseSpec.from_dict(data['response']) if 'response' in data else None,
            sequence=[ResponseSpec.from_dict(r) for r in data.get('sequence', [])],
        )

    def apply(self, client: 'MockHttpClient') -> MockHttpRequest:
        """Declare this expectation on a client."""
        request = client.request(self.method, self.uri)

        if self.json_resource is not None:
            request.with_json_resource_body(self.json_resource, *self.ignore_paths)
        elif self.json_body is not None:
            request.with_json_body(self.json_body, *self.ignore_paths)
        elif self.body is not None:
            request.with_body(self.body, self.content_type)
        elif self.any_body:
            request.with_any_body()

        for name, value in self.headers.items():
            request.with_header(name, str(value))
        if self.times is not None:
            request.times(self.times)
        if self.trace:
            request.trace_comparisons()

        if self.sequence:
            request.respond.with_sequence(lambda s: [spec.apply(s.respond()) for spec in self.sequence])
        elif self.response is not None:
            self.response.apply(request.respond)
        return request


@dataclass
class ClientSpec:
    """A mock client declared in a scenario."""

    name: str = ""
    base_address: Optional[str] = None
    without_mocking: bool = False
    expectations: List[ExpectationSpec] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ClientSpec':
        """Create ClientSpec from dictionary."""
        return cls(
            name=data.get('name', ''),
            base_address=data.get('base_address'),
            without_mocking=data.get('without_mocking', False),
            expectations=[ExpectationSpec.from_dict(e) for e in data.get('expectations', [])],
        )


@dataclass
class MockScenario:
    """A complete mock scenario."""

    name: str
    description: str = ""
    variables: Dict[str, Any] = field(default_factory=dict)
    clients: List[ClientSpec] = field(default_factory=list)

    @classmethod
    def from_yaml(cls, yaml_path: str, env_vars: Optional[Dict[str, str]] = None) -> 'MockScenario':
        """Load scenario from YAML file."""
        path = Path(yaml_path)
        if not path.exists():
            raise FileNotFoundError(f"Scenario file not found: {path}")

        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {}, env_vars)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], env_vars: Optional[Dict[str, str]] = None) -> 'MockScenario':
        """Create scenario from dictionary, resolving ${variable} references."""
        variables = data.get('variables', {})
        resolved = _resolve(data, variables, env_vars if env_vars is not None else dict(os.environ))

        return cls(
            name=resolved.get('name', 'Unnamed Scenario'),
            description=resolved.get('description', ''),
            variables=variables,
            clients=[ClientSpec.from_dict(c) for c in resolved.get('clients', [])],
        )

    def apply(self, factory: 'MockHttpClientFactory') -> List['MockHttpClient']:
        """
        Arrange every client and expectation on a factory.

        Returns:
            The created clients, in declaration order
        """
        clients = []
        for spec in self.clients:
            client = factory.create_client(spec.name, spec.base_address)
            if spec.without_mocking:
                client.without_mocking()
            for expectation in spec.expectations:
                expectation.apply(client)
            clients.append(client)

        factory.logger.info(f"Applied scenario '{self.name}' ({len(clients)} client(s))")
        return clients


def _resolve(value: Any, variables: Dict[str, Any], env_vars: Dict[str, str]) -> Any:
    if isinstance(value, str):
        def replacer(match):
            name = match.group(1)
            if name.startswith('env.'):
                resolved = env_vars.get(name[4:])
            else:
                resolved = variables.get(name)
            return str(resolved) if resolved is not None else match.group(0)

        return _VARIABLE.sub(replacer, value)
    if isinstance(value, dict):
        return {k: _resolve(v, variables, env_vars) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve(item, variables, env_vars) for item in value]
    return value
