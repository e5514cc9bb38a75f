"""
LocalStub Common Utilities

Loading of stub definition documents and fixture payloads.
"""

import json
import mimetypes
from pathlib import Path
from typing import Dict, Any, Union

import yaml


def safe_json_parse(json_string: Union[str, bytes], default: Any = None) -> Any:
    """
    Safely parse JSON with error handling.

    Args:
        json_string: JSON text (str or UTF-8 bytes)
        default: Value to return if parsing fails

    Returns:
        Parsed JSON object, or default if parsing fails
    """
    if not json_string:
        return default

    try:
        return json.loads(json_string)
    except (json.JSONDecodeError, TypeError, ValueError):
        return default


def guess_content_type(file_path: Union[str, Path], fallback: str = 'application/octet-stream') -> str:
    """
    Guess a Content-Type header value from a fixture file name.

    Args:
        file_path: Fixture path
        fallback: Value used when the extension is unknown

    Returns:
        MIME type string
    """
    content_type, _ = mimetypes.guess_type(str(file_path))
    return content_type or fallback


def read_fixture(file_path: Union[str, Path]) -> bytes:
    """
    Read a fixture payload as raw bytes.

    Raises:
        FileNotFoundError: If the fixture doesn't exist
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Fixture file not found: {path}")
    return path.read_bytes()


class StubFileLoader:
    """
    Loader for stub definition documents.

    Accepts YAML (.yaml, .yml) and JSON (.json) files whose top level is a
    mapping. Any other extension is parsed as YAML, which also covers JSON.

    Example:
        loader = StubFileLoader("stubs.yaml")
        data = loader.load()

        for route in data.get('routes', []):
            print(route['pattern'])
    """

    def __init__(self, file_path: Union[str, Path]):
        """
        Initialize stub file loader.

        Args:
            file_path: Path to the definitions file
        """
        self.file_path = Path(file_path)

    def load(self) -> Dict[str, Any]:
        """
        Load the definitions document.

        Returns:
            Top-level mapping of the document

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the document is malformed or not a mapping
        """
        if not self.file_path.exists():
            raise FileNotFoundError(f"Stub file not found: {self.file_path}")

        with open(self.file_path, 'r', encoding='utf-8') as f:
            try:
                if self.file_path.suffix.lower() == '.json':
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
            except (json.JSONDecodeError, yaml.YAMLError) as e:
                raise ValueError(f"Cannot parse {self.file_path}: {e}") from e

        if data is None:
            return {}

        if not isinstance(data, dict):
            raise ValueError(
                f"Unexpected format in {self.file_path}. "
                f"Expected a mapping with 'routes', got {type(data).__name__}"
            )

        return data

    @staticmethod
    def load_from_file(file_path: Union[str, Path]) -> Dict[str, Any]:
        """
        Convenience method to load a definitions document in one call.

        Example:
            data = StubFileLoader.load_from_file("stubs.yaml")
        """
        return StubFileLoader(file_path).load()
