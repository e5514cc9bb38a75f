"""
LocalStub Router

Ordered route patterns for one HTTP method.

A pattern matches a request when it is a literal substring of the absolute
URL or when it is a regular expression found in the URL. Patterns are tried
in registration order and the first match wins; there is no scoring.
"""

import re
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..common.params import url_parameters
from ..errors import PatternError
from .methods import HTTPMethod
from .request import request_url
from .response import StubResponse

logger = logging.getLogger("localstub.router")

RouteHandler = Callable[[Any, Dict[str, str]], Optional[StubResponse]]


class _NoMatch:
    """Sentinel returned by Router.route when no pattern matched."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_MATCH"


NO_MATCH = _NoMatch()


@dataclass(frozen=True)
class RoutePattern:
    """A registered pattern and the handler bound to it."""

    pattern: str
    handler: RouteHandler

    def matches(self, url: str, strict: bool = False) -> bool:
        """
        Test the pattern against an absolute URL.

        Literal containment is tried first, then a regex search. A pattern
        that is not a valid regex simply does not match (unless strict).

        Args:
            url: Absolute request URL
            strict: Raise PatternError for an invalid regex

        Returns:
            True if either interpretation matches
        """
        if self.pattern in url:
            return True

        try:
            return re.search(self.pattern, url) is not None
        except re.error as e:
            if strict:
                raise PatternError(self.pattern, str(e)) from e
            logger.debug(f"Pattern {self.pattern!r} is not a valid regex: {e}")
            return False


class Router:
    """
    Route table for a single HTTP method.

    Example:
        router = Router(HTTPMethod.GET)
        router.add_route('/users', lambda request, params: StubResponse())
        response = router.route(request)

        if response is NO_MATCH:
            ...
    """

    def __init__(self, method: HTTPMethod, strict: bool = False):
        """
        Initialize router.

        Args:
            method: Method this router serves
            strict: Surface invalid patterns and undecodable parameters as errors
        """
        self.method = method
        self.strict = strict
        self.patterns: List[RoutePattern] = []

    def __len__(self) -> int:
        return len(self.patterns)

    def add_route(self, pattern: str, handler: RouteHandler) -> RoutePattern:
        """
        Append a route. Pattern syntax is not validated here.

        Returns:
            The created RoutePattern
        """
        route = RoutePattern(pattern=pattern, handler=handler)
        self.patterns.append(route)
        return route

    def find(self, url: str) -> Optional[RoutePattern]:
        """Return the first pattern matching the URL, or None."""
        for route in self.patterns:
            if route.matches(url, strict=self.strict):
                return route
        return None

    def route(self, request: Any):
        """
        Route a request to the first matching handler.

        Args:
            request: Object exposing `url` (and `method`)

        Returns:
            The handler's result, or NO_MATCH when no pattern matched

        Raises:
            MissingURLError: If the request has no URL
        """
        url = request_url(request)
        params = url_parameters(url, strict=self.strict)

        route = self.find(url)
        if route is None:
            return NO_MATCH

        logger.debug(f"{self.method.value} {url} matched pattern {route.pattern!r}")
        return route.handler(request, params)
