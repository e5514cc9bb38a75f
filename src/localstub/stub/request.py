"""
LocalStub Requests

The engine only needs `method` and `url` from a request, so any object
exposing them works: requests.PreparedRequest, a Starlette request adapted by
the local server, or the StubRequest below.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Any

from ..errors import MissingURLError


@dataclass
class StubRequest:
    """Plain intercepted request."""

    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None


def request_url(request: Any) -> str:
    """
    Return the absolute URL of an intercepted request.

    Raises:
        MissingURLError: If the request has no URL
    """
    url = getattr(request, 'url', None)
    if url is None or str(url) == '':
        raise MissingURLError(f"Intercepted request has no URL: {request!r}")
    return str(url)
