"""
ReplayGuard Mock Transport

Builds the mock server and mock client of a test case from one recording log,
so the responses served and the requests issued always come from the same
exchanges.
"""

from typing import Optional, Tuple

from .client import MockClient
from .server import MockServer, MockConfig
from ..common.recording_log import RecordingLog


def from_log(
    recording_log: RecordingLog,
    config: Optional[MockConfig] = None,
    client_timeout: int = 30
) -> Tuple[MockServer, MockClient]:
    """
    Create the mock transport pair for a recording log.

    Args:
        recording_log: Loaded recording log
        config: Mock server configuration
        client_timeout: Per-request timeout of the mock client, in seconds

    Returns:
        (MockServer, MockClient); the server is not started yet
    """
    exchanges = recording_log.exchanges
    server = MockServer(exchanges, config=config)
    client = MockClient(exchanges, timeout=client_timeout)
    return server, client
