"""
LocalStub Transport Interception

Routes outgoing `requests` traffic through the active stub server.

The first activation patches requests.adapters.HTTPAdapter.send once per
process. The patch is never removed: while no server is active it forwards
to the original transport, so swapping or clearing the active server is
just an assignment.
"""

from __future__ import annotations

import logging
import threading
from http import HTTPStatus
from typing import Any, Optional, TYPE_CHECKING

import requests
from requests.adapters import BaseAdapter, HTTPAdapter
from requests.structures import CaseInsensitiveDict
from requests.utils import get_encoding_from_headers

if TYPE_CHECKING:
    from .server import StubServer

logger = logging.getLogger("localstub.transport")

_active_server: Optional[StubServer] = None
_hook_lock = threading.Lock()
_hook_installed = False
_original_send = None


def get_active_server() -> Optional[StubServer]:
    """Return the process-wide active stub server, if any."""
    return _active_server


def activate(server: StubServer) -> StubServer:
    """
    Make `server` the active stub server and ensure the hook is installed.

    Args:
        server: Server that will answer intercepted requests

    Returns:
        The server, for chaining
    """
    global _active_server
    _active_server = server
    install_hook()
    return server


def deactivate():
    """Stop intercepting; the installed hook forwards to the real transport."""
    global _active_server
    _active_server = None


def is_hook_installed() -> bool:
    return _hook_installed


def install_hook() -> bool:
    """
    Patch HTTPAdapter.send, at most once per process.

    Returns:
        True if this call installed the hook, False if it was already installed
    """
    global _hook_installed, _original_send

    with _hook_lock:
        if _hook_installed:
            return False

        _original_send = HTTPAdapter.send

        def send(adapter, request, **kwargs):
            server = _active_server
            if server is None:
                return _original_send(adapter, request, **kwargs)
            return to_requests_response(server.dispatch(request), request)

        HTTPAdapter.send = send
        _hook_installed = True

    logger.info("Installed requests transport hook")
    return True


def to_requests_response(stub_response: Any, request: requests.PreparedRequest) -> requests.Response:
    """
    Convert a StubResponse into a requests.Response.

    Args:
        stub_response: Response produced by the stub engine
        request: Prepared request being answered

    Returns:
        Fully read requests.Response
    """
    response = requests.Response()
    response.status_code = stub_response.status_code
    response.headers = CaseInsensitiveDict(stub_response.headers)
    response._content = stub_response.body
    response.url = request.url
    response.request = request
    response.encoding = get_encoding_from_headers(response.headers)

    try:
        response.reason = HTTPStatus(stub_response.status_code).phrase
    except ValueError:
        response.reason = None

    return response


class StubAdapter(BaseAdapter):
    """
    Transport adapter answering every request from a stub server.

    Mount it on a session to stub only that session, without the global hook.

    Example:
        session = requests.Session()
        session.mount('https://', StubAdapter(server))
        session.get('https://api.example.com/users')
    """

    def __init__(self, server: StubServer):
        super().__init__()
        self.server = server

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        return to_requests_response(self.server.dispatch(request), request)

    def close(self):
        pass
