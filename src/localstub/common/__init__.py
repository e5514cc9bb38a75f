"""
LocalStub Common Utilities

Shared helpers used across LocalStub modules.
"""

from .params import parse_parameters, merge_parameters, split_url, url_parameters
from .utils import safe_json_parse, guess_content_type, read_fixture, StubFileLoader

__all__ = [
    'parse_parameters',
    'merge_parameters',
    'split_url',
    'url_parameters',
    'safe_json_parse',
    'guess_content_type',
    'read_fixture',
    'StubFileLoader',
]
