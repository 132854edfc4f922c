"""
ReplayGuard Mock Client

Replays the requests of a recording log, in recorded order, against the
system under test.
"""

import logging
import time
from typing import List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..common.errors import ClientReplayError
from ..common.recording_log import RecordedExchange
from ..common.url_utils import replace_base_url
from ..common.utils import strip_headers


class MockClient:
    """
    Issues recorded requests synchronously, one after the other.

    Retries only cover failed connection attempts: a request that reached
    the system under test is never sent twice.

    Example:
        server, client = from_log(log)
        client.run('http://127.0.0.1:8888')
    """

    def __init__(
        self,
        exchanges: List[RecordedExchange],
        timeout: int = 30,
        max_retries: int = 2,
        session: Optional[requests.Session] = None
    ):
        self.exchanges = list(exchanges)
        self.timeout = timeout
        self.max_retries = max_retries
        self.logger = logging.getLogger("replayguard.mock.client")

        self.session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        session = requests.Session()

        retry_strategy = Retry(
            total=self.max_retries,
            connect=self.max_retries,
            read=0,
            status=0,
            backoff_factor=0.2,
            allowed_methods=None
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        return session

    def run(self, target_base_url: str) -> int:
        """
        Send every recorded request to the target.

        Args:
            target_base_url: Base URL of the system under test

        Returns:
            Number of requests sent

        Raises:
            ClientReplayError: If a request cannot be delivered
        """
        self.logger.debug(f"Replaying {len(self.exchanges)} requests against {target_base_url}")

        for i, exchange in enumerate(self.exchanges, 1):
            url = replace_base_url(exchange.url, target_base_url)
            start_time = time.time()

            try:
                response = self.session.request(
                    method=exchange.method,
                    url=url,
                    headers=strip_headers(exchange.req_headers),
                    data=exchange.req_body.encode('utf-8') if exchange.req_body else None,
                    timeout=self.timeout,
                    allow_redirects=False
                )
            except requests.RequestException as e:
                raise ClientReplayError(f"Request {i}/{len(self.exchanges)} {exchange.method} {url} failed: {e}") from e

            duration_ms = (time.time() - start_time) * 1000
            self.logger.debug(
                f"[{i}/{len(self.exchanges)}] {exchange.method} {url} -> {response.status_code} "
                f"(recorded {exchange.status}, {duration_ms:.0f}ms)"
            )

        return len(self.exchanges)

    def close(self):
        self.session.close()
