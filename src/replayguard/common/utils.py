"""
ReplayGuard Common Utilities

Shared helpers for loading captures and cleaning up HTTP headers.
"""

import json
from pathlib import Path
from typing import List, Dict, Any, Iterable, Optional


# Headers that describe a single connection rather than the exchange itself.
# They are never replayed, recorded into plans or served back by mocks.
HOP_BY_HOP_HEADERS = frozenset([
    'host',
    'content-length',
    'transfer-encoding',
    'connection',
    'keep-alive',
    'content-encoding',
    'date',
    'server',
])


class CaptureLoader:
    """
    Loader for capture files used as recording logs.

    Handles the JSON shapes a capture file can have:
    - {"requests": [...]}
    - {"captures": [...]}
    - [...]

    Example:
        captures = CaptureLoader("recording.json").load()
    """

    REQUIRED_FIELDS = ('method', 'url', 'status')

    def __init__(self, file_path: str):
        self.file_path = Path(file_path)

    def load(self) -> List[Dict[str, Any]]:
        """
        Load captures from the JSON file.

        Returns:
            List of capture dictionaries, in recorded order

        Raises:
            FileNotFoundError: If capture file doesn't exist
            ValueError: If JSON is invalid or its shape is unrecognized
        """
        if not self.file_path.exists():
            raise FileNotFoundError(f"Capture file not found: {self.file_path}")

        with open(self.file_path, 'r', encoding='utf-8') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in {self.file_path}: {e}") from e

        if isinstance(data, dict):
            if 'requests' in data:
                captures = data['requests']
            elif 'captures' in data:
                captures = data['captures']
            else:
                raise ValueError(
                    f"Unexpected JSON format in {self.file_path}. "
                    f"Expected dict with 'requests' or 'captures' key, "
                    f"or a list of captures. Found keys: {list(data.keys())}"
                )
        elif isinstance(data, list):
            captures = data
        else:
            raise ValueError(
                f"Unexpected JSON format in {self.file_path}. "
                f"Expected dict or list, got {type(data).__name__}"
            )

        if not isinstance(captures, list):
            raise ValueError(f"Captures in {self.file_path} must be a list, got {type(captures).__name__}")
        return captures

    def validate_capture(self, capture: Any) -> bool:
        """Check that a capture is a dict with the minimum required fields."""
        return isinstance(capture, dict) and all(field in capture for field in self.REQUIRED_FIELDS)


def strip_headers(
    headers: Optional[Dict[str, str]],
    excluded: Iterable[str] = HOP_BY_HOP_HEADERS
) -> Dict[str, str]:
    """
    Drop headers whose names (case-insensitive) are in ``excluded``.

    Args:
        headers: Headers to filter, may be None
        excluded: Header names to remove

    Returns:
        New dictionary keeping the original order and casing
    """
    if not headers:
        return {}
    excluded_lower = {h.strip().lower() for h in excluded}
    return {k: v for k, v in headers.items() if k.lower() not in excluded_lower}
