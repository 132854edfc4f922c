"""
ReplayGuard Mock Module

Mock transport pair rebuilt from a recording log.

This module provides:
- FastAPI-based mock server answering with recorded responses
- Mock client replaying recorded requests in order
- Signature-based request matching
"""

from .server import MockServer, MockConfig, MockMetrics
from .client import MockClient
from .matcher import RequestMatcher, RequestSignature, MatchResult, Stub
from .transport import from_log

__all__ = [
    # Server
    'MockServer',
    'MockConfig',
    'MockMetrics',

    # Client
    'MockClient',

    # Matcher
    'RequestMatcher',
    'RequestSignature',
    'MatchResult',
    'Stub',

    # Factory
    'from_log',
]

__version__ = '1.0.0'
