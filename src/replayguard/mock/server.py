"""
ReplayGuard Mock Server

FastAPI-based HTTP server that answers requests with the responses of a
recording log.

Features:
- Exact signature matching, recorded responses served in order
- Stub identifiers sent in a Matched-Stub-Id header
- reset() to serve the same responses again from the start
- Unrecorded requests collected and reported by verify()
- Background serving through uvicorn
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from .matcher import RequestMatcher
from ..common.errors import UnexpectedRequestError
from ..common.recording_log import RecordedExchange
from ..common.server_thread import ServerThread
from ..common.utils import strip_headers


HTTP_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


@dataclass
class MockConfig:
    """Configuration for mock server behavior."""

    host: str = "127.0.0.1"
    port: int = 0  # 0 lets the OS pick a free port
    log_level: str = "warning"

    # Header carrying the id of the stub that answered
    stub_id_header: str = "Matched-Stub-Id"

    # Response sent for unrecorded requests, before verify() fails the test case
    unmatched_status: int = 404


@dataclass
class MockMetrics:
    """Track mock server metrics."""

    total_requests: int = 0
    matched_requests: int = 0
    unmatched_requests: int = 0
    start_time: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_requests': self.total_requests,
            'matched_requests': self.matched_requests,
            'unmatched_requests': self.unmatched_requests,
            'match_rate': round((self.matched_requests / self.total_requests * 100) if self.total_requests > 0 else 0, 2),
            'start_time': self.start_time
        }


class MockServer:
    """
    Mock server serving the responses of a recording log.

    Normally created together with its client by mock.from_log().

    Example:
        server, client = from_log(RecordingLog.load('recording.json'))
        with server:
            client.run(server.base_url)
            server.verify()
    """

    def __init__(
        self,
        exchanges: List[RecordedExchange],
        config: Optional[MockConfig] = None,
        id_factory: Optional[Callable[[], str]] = None
    ):
        self.config = config or MockConfig()
        self.metrics = MockMetrics()
        self.unexpected_requests: List[str] = []

        self.logger = logging.getLogger("replayguard.mock")

        self.matcher = RequestMatcher(exchanges, id_factory=id_factory or (lambda: str(uuid.uuid4())))
        self.logger.debug(f"Loaded {len(exchanges)} exchanges into {len(self.matcher.stubs)} stubs")

        # Requests are served from uvicorn's thread, reset() comes from the harness
        self._lock = threading.Lock()
        self._thread: Optional[ServerThread] = None

        self.app = self._create_app()

    def _create_app(self) -> FastAPI:
        app = FastAPI(
            title="ReplayGuard Mock Server",
            description="Serves recorded responses to replayed requests",
            openapi_url=None,
            docs_url=None,
            redoc_url=None
        )

        @app.api_route("/{path:path}", methods=HTTP_METHODS)
        async def mock_request(request: Request, path: str):
            body = await request.body()
            return self._handle_request(request.method, str(request.url), body)

        return app

    def _handle_request(self, method: str, url: str, body: bytes) -> Response:
        with self._lock:
            self.metrics.total_requests += 1
            result = self.matcher.find_match(method, url, body)

            if not result.matched:
                self.metrics.unmatched_requests += 1
                self.unexpected_requests.append(str(result.signature))
                self.logger.warning(f"No recorded response for {result.signature}")
                return JSONResponse(
                    content={'error': 'No recorded response', 'request': str(result.signature)},
                    status_code=self.config.unmatched_status
                )

            self.metrics.matched_requests += 1
            stub_id = result.stub.stub_id

        self.logger.debug(f"Matched {result.signature} -> stub {stub_id}")
        return self._create_response(result.response, stub_id)

    def _create_response(self, exchange: RecordedExchange, stub_id: str) -> Response:
        headers = strip_headers(exchange.resp_headers)
        headers[self.config.stub_id_header] = stub_id
        return Response(
            content=exchange.resp_body.encode('utf-8'),
            status_code=exchange.status,
            headers=headers
        )

    @property
    def base_url(self) -> str:
        if self._thread is None:
            raise RuntimeError("Mock server is not running")
        return self._thread.base_url

    def start(self) -> 'MockServer':
        """Start serving on a background thread."""
        if self._thread is None:
            self._thread = ServerThread(
                self.app,
                host=self.config.host,
                port=self.config.port,
                log_level=self.config.log_level
            )
            self._thread.start()
            self.logger.info(f"Mock server listening on {self._thread.base_url}")
        return self

    def reset(self):
        """Serve every recorded response from the start again."""
        with self._lock:
            self.matcher.rewind()
            self.unexpected_requests.clear()
            self.metrics = MockMetrics()

    def verify(self):
        """
        Fail if any request had no recorded response.

        Raises:
            UnexpectedRequestError: Listing the unrecorded requests
        """
        with self._lock:
            unexpected = list(self.unexpected_requests)
        if unexpected:
            raise UnexpectedRequestError(unexpected)

    def close(self):
        """Stop serving. Safe to call twice."""
        if self._thread is not None:
            self._thread.stop()
            self._thread = None

    def get_app(self) -> FastAPI:
        """FastAPI app, for testing without a listening socket."""
        return self.app

    def __enter__(self) -> 'MockServer':
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
