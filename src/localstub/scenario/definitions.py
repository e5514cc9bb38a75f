"""
LocalStub Stub Definitions

YAML-based stub definitions: the default response plus routes with single,
stateful or sequenced responses.

Example document:

    default:
      status: 404
      body: '{"error": "not stubbed"}'

    routes:
      - pattern: randomuser.me/api/
        methods: [GET]
        file: fixtures/user_male.json

      - pattern: /orders
        methods: [POST]
        status: 201
        json: {id: 7}
        when_state: "1"
        set_state: "2"
        scenario: checkout

      - pattern: randomuser.me/api/
        sequence:
          - file: fixtures/user_male.json
          - file: fixtures/user_female.json
"""

import json
import logging
from pathlib import Path
from typing import Dict, Any, List, Optional, Union
from dataclasses import dataclass, field

from ..common.utils import StubFileLoader, guess_content_type, read_fixture
from ..stub.methods import HTTPMethod, coerce_methods
from ..stub.response import StubResponse
from ..stub.server import StubServer, StubConfig

logger = logging.getLogger("localstub.definitions")

_BODY_KEYS = ('body', 'json', 'file')


def _header_map(value: Any, where: str) -> Dict[str, str]:
    """Normalize a headers section to a str -> str dict."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{where} headers must be a mapping, got {type(value).__name__}")
    return {str(k): str(v) for k, v in value.items()}


@dataclass
class ResponseDefinition:
    """One canned response of a stub definition."""

    status: int = 200
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None
    json: Any = None
    file: Optional[str] = None
    when_state: Optional[str] = None
    set_state: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ResponseDefinition':
        """
        Create ResponseDefinition from dictionary.

        Raises:
            ValueError: If more than one body source is given
        """
        if not isinstance(data, dict):
            raise ValueError(f"Response must be a mapping, got {type(data).__name__}")

        sources = [key for key in _BODY_KEYS if data.get(key) is not None]
        if len(sources) > 1:
            raise ValueError(f"Response has several body sources: {', '.join(sources)}")

        when_state = data.get('when_state')
        set_state = data.get('set_state')
        return cls(
            status=int(data.get('status', 200)),
            headers=_header_map(data.get('headers'), 'Response'),
            body=data.get('body'),
            json=data.get('json'),
            file=data.get('file'),
            when_state=str(when_state) if when_state is not None else None,
            set_state=str(set_state) if set_state is not None else None
        )

    def build(self, base_dir: Optional[Path] = None) -> StubResponse:
        """
        Build the StubResponse described by this definition.

        Args:
            base_dir: Directory that relative fixture paths resolve against

        Raises:
            FileNotFoundError: If a fixture file doesn't exist
        """
        response = StubResponse(status_code=self.status)

        if self.file is not None:
            path = Path(self.file)
            if base_dir is not None and not path.is_absolute():
                path = base_dir / path
            response = (response
                        .with_headers({'Content-Type': guess_content_type(path)})
                        .with_body(read_fixture(path)))
        elif self.json is not None:
            response = response.with_json(self.json)
        elif self.body is not None:
            response = response.with_body(self.body if isinstance(self.body, str) else json.dumps(self.body))

        if self.headers:
            response = response.with_headers(self.headers)
        if self.when_state is not None:
            response = response.when_state_is(self.when_state)
        if self.set_state is not None:
            response = response.will_set_state_to(self.set_state)

        return response


@dataclass
class RouteDefinition:
    """A pattern with its methods and either one response or a sequence."""

    pattern: str
    methods: List[HTTPMethod] = field(default_factory=lambda: [HTTPMethod.GET])
    scenario: Optional[str] = None
    response: Optional[ResponseDefinition] = None
    sequence: List[ResponseDefinition] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RouteDefinition':
        """
        Create RouteDefinition from dictionary.

        Raises:
            ValueError: If the pattern is missing, a method is unknown, or both
                a response and a sequence are given
        """
        if not isinstance(data, dict):
            raise ValueError(f"Route must be a mapping, got {type(data).__name__}")

        pattern = data.get('pattern')
        if not pattern:
            raise ValueError("Route is missing 'pattern'")

        methods = coerce_methods(data.get('methods') or data.get('method') or ['GET'])
        sequence_data = data.get('sequence')

        if sequence_data is not None:
            if not isinstance(sequence_data, list) or not sequence_data:
                raise ValueError(f"Route {pattern!r}: 'sequence' must be a non-empty list")
            if any(data.get(key) is not None for key in _BODY_KEYS + ('when_state', 'set_state')):
                raise ValueError(f"Route {pattern!r}: use either 'sequence' or a single response")
            sequence = [ResponseDefinition.from_dict(item) for item in sequence_data]
            response = None
        else:
            sequence = []
            response = ResponseDefinition.from_dict(data)

        scenario = data.get('scenario')
        return cls(
            pattern=str(pattern),
            methods=methods,
            scenario=str(scenario) if scenario is not None else None,
            response=response,
            sequence=sequence
        )

    def apply(self, server: StubServer, base_dir: Optional[Path] = None):
        """Register this route on a server."""
        if self.sequence:
            server.stub_sequence(
                self.methods,
                self.pattern,
                [item.build(base_dir) for item in self.sequence],
                scenario=self.scenario
            )
        else:
            server.stub(self.methods, self.pattern, self.response.build(base_dir), scenario=self.scenario)


@dataclass
class StubDefinitions:
    """A complete stub definitions document."""

    default_status: int = 404
    default_body: str = ""
    default_headers: Dict[str, str] = field(default_factory=dict)
    routes: List[RouteDefinition] = field(default_factory=list)
    base_dir: Optional[Path] = None

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> 'StubDefinitions':
        """
        Load definitions from a YAML (or JSON) file.

        Relative fixture paths resolve against the file's directory.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the document is invalid
        """
        path = Path(yaml_path)
        data = StubFileLoader(path).load()
        definitions = cls.from_dict(data)
        definitions.base_dir = path.parent
        logger.info(f"Loaded {len(definitions.routes)} routes from {path}")
        return definitions

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StubDefinitions':
        """
        Create definitions from a dictionary.

        Raises:
            ValueError: If a route is invalid; the message names the route index
        """
        if not isinstance(data, dict):
            raise ValueError(f"Stub definitions must be a mapping, got {type(data).__name__}")

        default = data.get('default') or {}
        if not isinstance(default, dict):
            raise ValueError(f"Invalid default: must be a mapping, got {type(default).__name__}")

        routes_data = data.get('routes') or []
        if not isinstance(routes_data, list):
            raise ValueError(f"Invalid routes: must be a list, got {type(routes_data).__name__}")

        routes = []
        for index, route_data in enumerate(routes_data):
            try:
                routes.append(RouteDefinition.from_dict(route_data))
            except ValueError as e:
                raise ValueError(f"Invalid route #{index + 1}: {e}") from e

        return cls(
            default_status=int(default.get('status', 404)),
            default_body=str(default.get('body', '')),
            default_headers=_header_map(default.get('headers'), 'Default'),
            routes=routes
        )

    def to_config(self, **overrides) -> StubConfig:
        """Build a StubConfig carrying this document's default response."""
        return StubConfig(
            default_status=self.default_status,
            default_body=self.default_body,
            default_headers=dict(self.default_headers),
            **overrides
        )

    def apply(self, server: StubServer) -> StubServer:
        """Register every route on a server, in document order."""
        for route in self.routes:
            route.apply(server, self.base_dir)
        return server

    def build_server(self, **config_overrides) -> StubServer:
        """Create a StubServer from this document."""
        return self.apply(StubServer(config=self.to_config(**config_overrides)))
