"""
ReplayGuard Common Utilities

Shared errors, recording-log loading and helpers used across ReplayGuard modules.
"""

from .errors import (
    ReplayGuardError,
    StructuralError,
    RecordingLogError,
    TemplateSyntaxError,
    MissingTemplateError,
    TemplateMismatchError,
    TransportError,
    UnexpectedRequestError,
    ClientReplayError,
    ServerStartError,
)
from .recording_log import RecordingLog, RecordedExchange
from .server_thread import ServerThread
from .utils import CaptureLoader, strip_headers, HOP_BY_HOP_HEADERS
from .url_utils import replace_base_url, normalize_query, path_with_query

__all__ = [
    'ReplayGuardError',
    'StructuralError',
    'RecordingLogError',
    'TemplateSyntaxError',
    'MissingTemplateError',
    'TemplateMismatchError',
    'TransportError',
    'UnexpectedRequestError',
    'ClientReplayError',
    'ServerStartError',
    'RecordingLog',
    'RecordedExchange',
    'ServerThread',
    'CaptureLoader',
    'strip_headers',
    'HOP_BY_HOP_HEADERS',
    'replace_base_url',
    'normalize_query',
    'path_with_query',
]
