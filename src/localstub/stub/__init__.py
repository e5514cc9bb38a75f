"""
LocalStub Stub Module

In-process HTTP stub engine for integration and UI tests.

This module provides:
- Literal-or-regex routing per HTTP method
- Stateful response sequences
- requests transport interception
- FastAPI-based local server
"""

from .methods import HTTPMethod, parse_method
from .request import StubRequest
from .response import StubResponse, StateTransition
from .router import Router, RoutePattern, NO_MATCH
from .state import StateStore, sequence_transitions
from .server import StubServer, StubConfig, StubMetrics, MethodTable, create_stub_server
from .transport import activate, deactivate, get_active_server, install_hook, StubAdapter

__all__ = [
    # Routing
    'HTTPMethod',
    'parse_method',
    'Router',
    'RoutePattern',
    'NO_MATCH',

    # Requests and responses
    'StubRequest',
    'StubResponse',
    'StateTransition',

    # State
    'StateStore',
    'sequence_transitions',

    # Server
    'StubServer',
    'StubConfig',
    'StubMetrics',
    'MethodTable',
    'create_stub_server',

    # Interception
    'activate',
    'deactivate',
    'get_active_server',
    'install_hook',
    'StubAdapter',
]
