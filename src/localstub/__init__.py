"""
LocalStub

In-process HTTP request stubbing for reproducible integration and UI tests.
"""

from .errors import StubError, MissingURLError, PatternError, ParameterDecodeError
from .stub import (
    HTTPMethod,
    StubRequest,
    StubResponse,
    StateTransition,
    StateStore,
    StubServer,
    StubConfig,
    create_stub_server,
    activate,
    deactivate,
    get_active_server,
    StubAdapter,
)
from .scenario import StubDefinitions

__all__ = [
    'StubError',
    'MissingURLError',
    'PatternError',
    'ParameterDecodeError',
    'HTTPMethod',
    'StubRequest',
    'StubResponse',
    'StateTransition',
    'StateStore',
    'StubServer',
    'StubConfig',
    'create_stub_server',
    'activate',
    'deactivate',
    'get_active_server',
    'StubAdapter',
    'StubDefinitions',
]

__version__ = '1.0.0'
