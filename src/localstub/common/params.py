"""
LocalStub URL Parameter Utilities

Decoding of query and fragment strings into parameter mappings, and the
query-over-fragment merge handed to route handlers.
"""

import re
import logging
from urllib.parse import unquote
from typing import Dict, Tuple

from ..errors import ParameterDecodeError

logger = logging.getLogger("localstub.params")

# A '%' not followed by two hex digits
_MALFORMED_ESCAPE = re.compile(r'%(?![0-9A-Fa-f]{2})')


def _percent_decode(raw: str) -> str:
    """
    Percent-decode a string as UTF-8, failing on malformed input.

    Raises:
        ValueError: On a malformed escape or an invalid UTF-8 sequence
    """
    match = _MALFORMED_ESCAPE.search(raw)
    if match:
        raise ValueError(f"malformed escape at offset {match.start()}")

    # UnicodeDecodeError is a ValueError
    return unquote(raw, encoding='utf-8', errors='strict')


def parse_parameters(raw: str, strict: bool = False) -> Dict[str, str]:
    """
    Decode a raw query or fragment string into a parameter mapping.

    '+' becomes a space before the whole string is percent-decoded, then the
    result is split on '&' and each pair on its first '='. A pair without '='
    maps to an empty string and the last occurrence of a key wins.

    Args:
        raw: Percent-encoded parameter string (without the leading '?' or '#')
        strict: Raise ParameterDecodeError instead of returning {} on bad input

    Returns:
        Decoded parameters; empty when the string is empty or undecodable

    Example:
        parse_parameters('name=John+Doe&city=S%C3%A3o%20Paulo')
        # {'name': 'John Doe', 'city': 'São Paulo'}
    """
    if not raw:
        return {}

    clean = raw.replace('+', ' ')
    try:
        decoded = _percent_decode(clean)
    except ValueError as e:
        if strict:
            raise ParameterDecodeError(raw, str(e)) from e
        logger.debug(f"Ignoring undecodable parameters {raw!r}: {e}")
        return {}

    parameters = {}
    for pair in decoded.split('&'):
        key, _, value = pair.partition('=')
        parameters[key] = value

    return parameters


def split_url(url: str) -> Tuple[str, str]:
    """
    Extract the raw query and fragment components of a URL.

    Args:
        url: Absolute URL

    Returns:
        (query, fragment), each '' when absent
    """
    rest, _, fragment = url.partition('#')
    _, _, query = rest.partition('?')
    return query, fragment


def merge_parameters(query: Dict[str, str], fragment: Dict[str, str]) -> Dict[str, str]:
    """
    Merge query and fragment parameters; query values win on collision.

    Args:
        query: Parameters decoded from the query string
        fragment: Parameters decoded from the fragment

    Returns:
        New merged mapping
    """
    return {**fragment, **query}


def url_parameters(url: str, strict: bool = False) -> Dict[str, str]:
    """Decode and merge the query and fragment parameters of a URL."""
    query, fragment = split_url(url)
    return merge_parameters(
        parse_parameters(query, strict=strict),
        parse_parameters(fragment, strict=strict)
    )
