"""
ReplayGuard Recording Log

Ordered, read-only view of the request/response exchanges captured in one
recorded session. Both halves of the mock transport are built from it.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Dict, Any, Iterator, Optional, Union

from .errors import RecordingLogError
from .utils import CaptureLoader


@dataclass(frozen=True)
class RecordedExchange:
    """One recorded request together with the response it received."""

    method: str
    url: str
    status: int
    req_headers: Dict[str, str] = field(default_factory=dict)
    req_body: str = ""
    resp_headers: Dict[str, str] = field(default_factory=dict)
    resp_body: str = ""
    duration_ms: int = 0

    @classmethod
    def from_capture(cls, capture: Dict[str, Any]) -> 'RecordedExchange':
        """
        Create exchange from a capture record.

        Raises:
            ValueError: If a field has the wrong type
        """
        try:
            status = int(capture['status'])
        except (TypeError, ValueError):
            raise ValueError(f"Invalid status {capture['status']!r} for {capture['url']}")

        duration = capture.get('duration_ms') or 0
        if isinstance(duration, bool) or not isinstance(duration, (int, float)):
            raise ValueError(f"Invalid duration_ms {duration!r} for {capture['url']}")

        return cls(
            method=str(capture['method']).upper(),
            url=str(capture['url']),
            status=status,
            req_headers=_headers(capture, 'req_headers'),
            req_body=_body(capture, 'req_body'),
            resp_headers=_headers(capture, 'resp_headers'),
            resp_body=_body(capture, 'resp_body'),
            duration_ms=int(duration)
        )


def _body(capture: Dict[str, Any], key: str) -> str:
    value = capture.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string, got {type(value).__name__} for {capture['url']}")
    return value


def _headers(capture: Dict[str, Any], key: str) -> Dict[str, str]:
    value = capture.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"{key} must be a mapping, got {type(value).__name__} for {capture['url']}")
    return {str(name): str(header) for name, header in value.items()}


class RecordingLog:
    """
    Recorded session loaded from a capture file.

    Example:
        log = RecordingLog.load('regression/petstore/recording.json')
        for exchange in log:
            print(exchange.method, exchange.url)
    """

    def __init__(self, exchanges: List[RecordedExchange], source: Optional[Path] = None):
        self._exchanges = tuple(exchanges)
        self.source = source

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'RecordingLog':
        """
        Load recording log from a capture file.

        Raises:
            RecordingLogError: If the file is missing, not JSON, or holds
                records without method, url and status or with mistyped fields
        """
        loader = CaptureLoader(str(path))
        try:
            captures = loader.load()
        except (FileNotFoundError, ValueError) as e:
            raise RecordingLogError(str(e)) from e

        exchanges = []
        for index, capture in enumerate(captures):
            if not loader.validate_capture(capture):
                raise RecordingLogError(
                    f"Record #{index} in {path} is missing one of {', '.join(CaptureLoader.REQUIRED_FIELDS)}"
                )
            try:
                exchanges.append(RecordedExchange.from_capture(capture))
            except (TypeError, ValueError) as e:
                raise RecordingLogError(f"Record #{index} in {path}: {e}") from e

        return cls(exchanges, source=Path(path))

    @property
    def exchanges(self) -> List[RecordedExchange]:
        return list(self._exchanges)

    def __iter__(self) -> Iterator[RecordedExchange]:
        return iter(self._exchanges)

    def __len__(self) -> int:
        return len(self._exchanges)
