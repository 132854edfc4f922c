"""
ReplayGuard Result Log

JTL-style XML result log written by the plan runner, one <httpSample> per
executed sampler:

    <httpSample t="452" it="0" lt="10" ct="5" ts="1620000000000" s="true" lb="1 /users" ...>
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Union
from xml.sax.saxutils import escape


def _attr(value) -> str:
    return escape(str(value), {'"': '&quot;', '\n': '&#10;', '\r': '&#13;'})


def canonical_header_name(name: str) -> str:
    """'matched-stub-id' -> 'Matched-Stub-Id'."""
    return '-'.join(part[:1].upper() + part[1:].lower() for part in name.split('-'))


@dataclass
class SampleResult:
    """Outcome of executing one sampler."""

    label: str
    method: str
    url: str
    timestamp_ms: int
    elapsed_ms: int = 0
    latency_ms: int = 0
    connect_ms: int = 0
    success: bool = False
    response_code: str = ""
    response_message: str = ""
    thread_name: str = ""
    hostname: str = ""
    response_headers: Dict[str, str] = field(default_factory=dict)
    request_headers: Dict[str, str] = field(default_factory=dict)
    response_data: str = ""
    sent_bytes: int = 0

    @property
    def bytes(self) -> int:
        return len(self.response_data.encode('utf-8'))

    def to_xml(self) -> str:
        attributes = [
            ('t', self.elapsed_ms),
            ('it', 0),
            ('lt', self.latency_ms),
            ('ct', self.connect_ms),
            ('ts', self.timestamp_ms),
            ('s', 'true' if self.success else 'false'),
            ('lb', self.label),
            ('rc', self.response_code),
            ('rm', self.response_message),
            ('tn', self.thread_name),
            ('dt', 'text'),
            ('by', self.bytes),
            ('sby', self.sent_bytes),
            ('ng', 1),
            ('na', 1),
            # hn must stay last, templates rely on it being closed by '">'
            ('hn', self.hostname),
        ]
        opening = ' '.join(f'{name}="{_attr(value)}"' for name, value in attributes)

        status_line = f"HTTP/1.1 {self.response_code} {self.response_message}\n" if self.response_code.isdigit() else ""
        response_headers = status_line + ''.join(
            f"{canonical_header_name(k)}: {v}\n" for k, v in self.response_headers.items()
        )
        request_headers = ''.join(f"{canonical_header_name(k)}: {v}\n" for k, v in self.request_headers.items())

        return (
            f'<httpSample {opening}>\n'
            f'  <responseHeader>{escape(response_headers)}</responseHeader>\n'
            f'  <requestHeader>{escape(request_headers)}</requestHeader>\n'
            f'  <responseData>{escape(self.response_data)}</responseData>\n'
            f'  <method>{escape(self.method)}</method>\n'
            f'  <url>{escape(self.url)}</url>\n'
            f'</httpSample>\n'
        )


class ResultLogWriter:
    """
    Streams sample results to a result log file.

    Example:
        with ResultLogWriter('test-run.jtl') as writer:
            writer.write(sample)
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._file = None
        self.count = 0

    def open(self) -> 'ResultLogWriter':
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self.path, 'w', encoding='utf-8', newline='\n')
        self._file.write('<?xml version="1.0" encoding="UTF-8"?>\n<testResults version="1.2">\n')
        return self

    def write(self, sample: SampleResult):
        self._file.write(sample.to_xml())
        self.count += 1

    def close(self):
        if self._file is not None:
            self._file.write('</testResults>\n')
            self._file.close()
            self._file = None

    def __enter__(self) -> 'ResultLogWriter':
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
