"""
ReplayGuard Recording Proxy

Reference recorder: a reverse proxy that forwards client traffic to an
upstream server and turns every forwarded request into a plan sampler.

Sampler numbers come from a counter owned by the proxy, so a proxy reused for
several sessions keeps counting. Plans recorded in different runs therefore
differ in their sampler numbers, which templates treat as volatile.
"""

import itertools
import logging
import uuid
from pathlib import Path
from typing import List, Optional, Union

import requests
from fastapi import FastAPI, Request, Response
from starlette.concurrency import run_in_threadpool

from .plan import PlanSampler, RecordedPlan
from ..common.server_thread import ServerThread
from ..common.url_utils import replace_base_url, path_with_query
from ..common.utils import HOP_BY_HOP_HEADERS, strip_headers
from ..config.properties import PropertySet


HTTP_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

# Headers added by HTTP client libraries, they vary between environments
DEFAULT_EXCLUDED_HEADERS = ['user-agent', 'accept-encoding']


class RecordingSession:
    """
    One recording: a listening proxy plus the samplers recorded so far.

    Use RecordingProxy.open_session() to create one.
    """

    def __init__(self, proxy: 'RecordingProxy', properties: PropertySet, upstream_url: str):
        self.proxy = proxy
        self.upstream_url = upstream_url
        self.excluded_headers = set(HOP_BY_HOP_HEADERS) | {
            h.lower() for h in properties.get_list('recorder.excluded_headers', DEFAULT_EXCLUDED_HEADERS)
        }
        self.timeout = properties.get_int('recorder.timeout', 30)
        self.samplers: List[PlanSampler] = []

        self.logger = logging.getLogger("replayguard.recorder")
        self.http = requests.Session()
        self.app = self._create_app()
        self._thread = ServerThread(self.app, host=proxy.host, port=0)

    def _create_app(self) -> FastAPI:
        app = FastAPI(title="ReplayGuard Recording Proxy", openapi_url=None, docs_url=None, redoc_url=None)

        @app.api_route("/{path:path}", methods=HTTP_METHODS)
        async def record_request(request: Request, path: str):
            body = await request.body()
            return await run_in_threadpool(
                self._forward, request.method, str(request.url), dict(request.headers), body
            )

        return app

    def _forward(self, method: str, url: str, headers: dict, body: bytes) -> Response:
        target = replace_base_url(url, self.upstream_url)
        recorded_headers = strip_headers(headers, self.excluded_headers)

        sampler = PlanSampler(
            name=f"{next(self.proxy.counter)} {path_with_query(url)}",
            method=method,
            url=target,
            headers=recorded_headers,
            body=body.decode('utf-8', errors='replace'),
            cache_key=str(uuid.uuid4())
        )
        self.samplers.append(sampler)
        self.logger.debug(f"Recorded {sampler.name}")

        try:
            upstream = self.http.request(
                method=method,
                url=target,
                headers=strip_headers(headers),
                data=body or None,
                timeout=self.timeout,
                allow_redirects=False
            )
        except requests.RequestException as e:
            self.logger.error(f"Upstream request {method} {target} failed: {e}")
            return Response(content=f"Upstream error: {e}", status_code=502)

        return Response(
            content=upstream.content,
            status_code=upstream.status_code,
            headers=strip_headers(dict(upstream.headers))
        )

    @property
    def endpoint(self) -> str:
        """Base URL clients send their traffic to."""
        return self._thread.base_url

    def start(self) -> 'RecordingSession':
        self._thread.start()
        self.logger.debug(f"Recording proxy on {self.endpoint} -> {self.upstream_url}")
        return self

    def save_plan(self, path: Union[str, Path]) -> Path:
        """Write the samplers recorded so far as a plan."""
        RecordedPlan(samplers=list(self.samplers)).save(path)
        self.logger.info(f"Saved plan with {len(self.samplers)} samplers to {path}")
        return Path(path)

    def close(self):
        self._thread.stop()
        self.http.close()

    def __enter__(self) -> 'RecordingSession':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class RecordingProxy:
    """
    Recorder producing plans from proxied traffic.

    Example:
        recorder = RecordingProxy()
        with recorder.open_session(properties, 'http://127.0.0.1:8089') as session:
            client.run(session.endpoint)
            session.save_plan('recorded.xml')
    """

    def __init__(self, host: str = "127.0.0.1", first_sampler_number: int = 1):
        self.host = host
        self.counter = itertools.count(first_sampler_number)

    def open_session(self, properties: PropertySet, upstream_url: str) -> RecordingSession:
        """Start a recording session forwarding to ``upstream_url``."""
        return RecordingSession(self, properties, upstream_url).start()
