"""
LocalStub Server

Facade of the stub engine: registers routes, dispatches intercepted requests
through the per-method routers and falls back to a default response.

Features:
- Literal-or-regex route patterns, first registration wins
- Query and fragment parameters handed to handlers
- Stateful response sequences per logical route
- Configurable default response
- Metrics and logging
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Union

from .methods import HTTPMethod, parse_method, coerce_methods
from .response import StubResponse
from .router import Router, RouteHandler, NO_MATCH
from .state import StateStore, sequence_transitions
from . import transport

Methods = Union[str, HTTPMethod, Iterable[Union[str, HTTPMethod]]]


@dataclass
class StubConfig:
    """Configuration for stub server behavior."""

    # Default response
    default_status: int = 404
    default_body: str = ""
    default_headers: Dict[str, str] = field(default_factory=dict)

    # Raise on invalid regex patterns and undecodable parameters
    strict: bool = False

    # Local server options
    host: str = "127.0.0.1"
    port: int = 8080
    log_level: str = "info"
    verbose_mode: bool = False  # Print every dispatch to the console

    # Admin API
    admin_enabled: bool = True
    admin_prefix: str = "/__admin__"


@dataclass
class StubMetrics:
    """Track dispatch metrics."""

    total_requests: int = 0
    matched_requests: int = 0
    unmatched_requests: int = 0
    start_time: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        uptime_seconds = (datetime.now() - datetime.fromisoformat(self.start_time)).total_seconds()
        return {
            'total_requests': self.total_requests,
            'matched_requests': self.matched_requests,
            'unmatched_requests': self.unmatched_requests,
            'match_rate': round((self.matched_requests / self.total_requests * 100) if self.total_requests > 0 else 0, 2),
            'uptime_seconds': round(uptime_seconds, 2),
            'start_time': self.start_time
        }


class MethodTable:
    """Routers keyed by HTTP method, created on first registration."""

    def __init__(self, strict: bool = False):
        self.strict = strict
        self.routers: Dict[HTTPMethod, Router] = {}

    def __contains__(self, method: HTTPMethod) -> bool:
        return method in self.routers

    def add_route(self, method: HTTPMethod, pattern: str, handler: RouteHandler):
        router = self.routers.get(method)
        if router is None:
            router = self.routers[method] = Router(method, strict=self.strict)
        router.add_route(pattern, handler)

    def router_for(self, method: HTTPMethod) -> Optional[Router]:
        return self.routers.get(method)

    def clear(self):
        self.routers.clear()


class StubServer:
    """
    In-process stub server for intercepted HTTP requests.

    Example:
        server = StubServer()
        server.route(['GET'], 'randomuser.me/api/',
                     lambda request, params: StubResponse().with_json({'results': []}))

        # Stateful sequence: first call gets page 1, second gets page 2
        server.stub_sequence('GET', '/items', [page_one, page_two])

        response = server.dispatch(StubRequest('GET', 'https://randomuser.me/api/?page=2'))

        # Route real `requests` traffic through this server
        server.activate()
    """

    def __init__(self, config: Optional[StubConfig] = None, state: Optional[StateStore] = None):
        """
        Initialize stub server.

        Args:
            config: Optional StubConfig for server behavior
            state: Optional StateStore (a fresh one is created if None)
        """
        self.config = config or StubConfig()
        self.metrics = StubMetrics()
        self.table = MethodTable(strict=self.config.strict)
        self.state = state or StateStore()
        self.default_response = StubResponse(
            status_code=self.config.default_status,
            headers=dict(self.config.default_headers),
            body=self.config.default_body.encode('utf-8')
        )

        # Stateful routes that already own a route handler
        self._stateful_routes: set = set()
        self._registrations: List[Dict[str, Any]] = []

        self.logger = logging.getLogger("localstub.stub")
        self.logger.setLevel(getattr(logging, self.config.log_level.upper()))

    def route(self, methods: Methods, pattern: str, handler: RouteHandler):
        """
        Register a handler for a pattern under each of the given methods.

        Registering the same triple twice adds a second entry; the earlier
        one keeps winning.

        Args:
            methods: Method or methods to register under
            pattern: Literal substring or regex matched against request URLs
            handler: Callable (request, params) -> StubResponse, or None to decline

        Raises:
            ValueError: If a method name is unknown
        """
        for method in coerce_methods(methods):
            self.table.add_route(method, pattern, handler)
            self._registrations.append({
                'method': method.value,
                'pattern': pattern,
                'handler': getattr(handler, '__name__', repr(handler))
            })
            self.logger.debug(f"Registered {method.value} {pattern!r}")

    def stub(
        self,
        methods: Methods,
        pattern: str,
        response: StubResponse,
        scenario: Optional[str] = None
    ):
        """
        Register a canned, possibly stateful, response.

        Responses registered for the same method and pattern share one route
        and are chosen by the state store. Their state key is the explicit
        scenario name, or "METHOD pattern" for each method.

        Args:
            methods: Method or methods to register under
            pattern: Literal substring or regex matched against request URLs
            response: Response to serve; its transition controls eligibility
            scenario: Explicit state key shared by every method
        """
        for method in coerce_methods(methods):
            route_id = self.state_key(method, pattern)
            self.state.add(scenario or route_id, response, route=route_id)

            if route_id not in self._stateful_routes:
                self._stateful_routes.add(route_id)
                self.route([method], pattern, self._stateful_handler(route_id))

    def stub_sequence(
        self,
        methods: Methods,
        pattern: str,
        responses: Iterable[StubResponse],
        scenario: Optional[str] = None
    ) -> List[StubResponse]:
        """
        Register responses served one per call, in order.

        The k-th matching call receives the k-th response; once the sequence
        is exhausted calls fall through to the default response.

        Returns:
            The chained responses as registered
        """
        chained = sequence_transitions(responses)
        for response in chained:
            self.stub(methods, pattern, response, scenario=scenario)
        return chained

    @staticmethod
    def state_key(method: HTTPMethod, pattern: str) -> str:
        """Default logical key of a stateful route."""
        return f"{method.value} {pattern}"

    def _stateful_handler(self, route_id: str) -> RouteHandler:
        def handler(request, params):
            return self.state.select(route_id)
        handler.__name__ = f"stateful[{route_id}]"
        return handler

    def set_state(self, key: str, state: Optional[str]):
        self.state.set_state(key, state)

    def reset_state(self, key: Optional[str] = None):
        self.state.reset(key)

    def dispatch(self, request: Any) -> StubResponse:
        """
        Produce the response for an intercepted request.

        Never fails for an unknown method, a method without routes, an
        unmatched URL or an exhausted stateful route; those all yield the
        default response.

        Args:
            request: Object exposing `method` and `url`

        Returns:
            Handler result or the default response

        Raises:
            MissingURLError: If a routed request has no URL
        """
        raw_method = getattr(request, 'method', None)
        url = getattr(request, 'url', None)

        self.logger.debug(f"Incoming: {raw_method} {url}")

        response = self._resolve(request, raw_method)
        self.metrics.total_requests += 1

        if response is None:
            self.metrics.unmatched_requests += 1
            self.logger.warning(f"No match found for {raw_method} {url}")
            response = self.default_response
        else:
            self.metrics.matched_requests += 1

        if self.config.verbose_mode:
            timestamp = datetime.now().strftime("%H:%M:%S")
            print(f"[{timestamp}] {raw_method} {url} -> {response.status_code}")

        return response

    def _resolve(self, request: Any, raw_method: Optional[str]) -> Optional[StubResponse]:
        method = parse_method(raw_method)
        if method is None:
            return None

        router = self.table.router_for(method)
        if router is None:
            return None

        result = router.route(request)
        if result is NO_MATCH:
            return None
        return result

    def activate(self) -> StubServer:
        """Make this the process-wide active server for intercepted traffic."""
        transport.activate(self)
        return self

    def routes(self) -> List[Dict[str, Any]]:
        """List registrations in order, for admin output."""
        return list(self._registrations)

    def clear(self):
        """Remove every route and all state."""
        self.table.clear()
        self.state.clear()
        self._stateful_routes.clear()
        self._registrations.clear()


def create_stub_server(
    default_status: int = 404,
    default_body: str = "",
    strict: bool = False,
    host: str = "127.0.0.1",
    port: int = 8080,
    log_level: str = "info",
    admin_enabled: bool = True
) -> StubServer:
    """
    Convenience function to create and configure a stub server.

    Args:
        default_status: Status of the response served when nothing matches
        default_body: Body of that response
        strict: Raise on invalid patterns and undecodable parameters
        host: Host for the local HTTP server
        port: Port for the local HTTP server
        log_level: Logging level name
        admin_enabled: Expose the admin API on the local HTTP server

    Returns:
        Configured StubServer instance
    """
    config = StubConfig(
        default_status=default_status,
        default_body=default_body,
        strict=strict,
        host=host,
        port=port,
        log_level=log_level,
        admin_enabled=admin_enabled
    )
    return StubServer(config=config)
