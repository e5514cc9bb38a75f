"""
LocalStub HTTP Methods

Closed set of HTTP methods the stub engine can route.
"""

from enum import Enum
from typing import Iterable, List, Optional, Union


class HTTPMethod(str, Enum):
    """HTTP request method."""

    GET = "GET"
    POST = "POST"
    DELETE = "DELETE"
    HEAD = "HEAD"
    PUT = "PUT"
    PATCH = "PATCH"
    TRACE = "TRACE"
    CONNECT = "CONNECT"
    OPTIONS = "OPTIONS"


def parse_method(raw: Optional[str]) -> Optional[HTTPMethod]:
    """
    Map a raw method string onto HTTPMethod.

    The comparison is exact: 'get' is not GET.

    Args:
        raw: Method string from an intercepted request

    Returns:
        The matching HTTPMethod, or None when the string is not recognized
    """
    if not isinstance(raw, str):
        return None
    try:
        return HTTPMethod(raw)
    except ValueError:
        return None


def coerce_methods(methods: Union[str, HTTPMethod, Iterable[Union[str, HTTPMethod]]]) -> List[HTTPMethod]:
    """
    Normalize a registration-time method argument into a list of HTTPMethod.

    Accepts a single method or an iterable of methods, as enum members or
    names. Names are matched case-insensitively here since this is caller
    code, not an intercepted request.

    Raises:
        ValueError: If a name is not a known HTTP method
    """
    if isinstance(methods, (str, HTTPMethod)):
        methods = [methods]

    result = []
    for method in methods:
        if isinstance(method, HTTPMethod):
            result.append(method)
            continue
        parsed = parse_method(str(method).upper())
        if parsed is None:
            raise ValueError(f"Unknown HTTP method: {method!r}")
        result.append(parsed)
    return result
