"""
ReplayGuard Plan Runner

Reference run engine: executes a recorded plan with requests and writes a
result log.
"""

import logging
import socket
import time
from pathlib import Path
from typing import Optional, Union

import requests

from .results import ResultLogWriter, SampleResult
from ..common.utils import strip_headers
from ..config.properties import PropertySet
from ..recorder.plan import PlanSampler, RecordedPlan


logger = logging.getLogger("replayguard.engine")


class PlanRunner:
    """
    Executes plan samplers one after the other.

    Failed requests do not stop the run; they are logged as unsuccessful
    samples so result-log comparison reports them.

    Properties:
        runner.timeout: Per-request timeout in seconds (default 30)
        runner.thread_name: Value of the tn attribute (default '<thread group> 1-1')

    Example:
        PlanRunner().run('recorded.xml', 'test-run.jtl', PropertySet())
    """

    def __init__(self, hostname: Optional[str] = None):
        self.hostname = hostname or socket.gethostname()

    def run(self, plan_path: Union[str, Path], result_log_path: Union[str, Path], properties: PropertySet) -> int:
        """
        Execute a plan.

        Returns:
            Number of samples written

        Raises:
            StructuralError: If the plan cannot be loaded
        """
        plan = RecordedPlan.load(plan_path)
        timeout = properties.get_int('runner.timeout', 30)
        thread_name = str(properties.get('runner.thread_name') or f"{plan.thread_group} 1-1")

        logger.info(f"Running {len(plan.samplers)} samplers from {plan_path}")

        with ResultLogWriter(result_log_path) as writer, requests.Session() as session:
            for sampler in plan.samplers:
                writer.write(self._execute(session, sampler, thread_name, timeout))

        return writer.count

    def _execute(self, session: requests.Session, sampler: PlanSampler, thread_name: str, timeout: int) -> SampleResult:
        body = sampler.body.encode('utf-8') if sampler.body else None
        result = SampleResult(
            label=sampler.name,
            method=sampler.method,
            url=sampler.url,
            timestamp_ms=int(time.time() * 1000),
            thread_name=thread_name,
            hostname=self.hostname,
            request_headers=strip_headers(sampler.headers),
            sent_bytes=len(body) if body else 0
        )

        start_time = time.time()
        try:
            response = session.request(
                method=sampler.method,
                url=sampler.url,
                headers=strip_headers(sampler.headers),
                data=body,
                timeout=timeout,
                allow_redirects=False
            )
        except requests.RequestException as e:
            result.elapsed_ms = int((time.time() - start_time) * 1000)
            result.response_code = f"Non HTTP response code: {type(e).__name__}"
            result.response_message = f"Non HTTP response message: {e}"
            logger.warning(f"{sampler.name} failed: {e}")
            return result

        result.elapsed_ms = int((time.time() - start_time) * 1000)
        result.latency_ms = int(response.elapsed.total_seconds() * 1000)
        # requests does not expose connect time
        result.connect_ms = 0
        result.success = response.status_code < 400
        result.response_code = str(response.status_code)
        result.response_message = response.reason or ""
        result.response_headers = strip_headers(dict(response.headers), ['content-encoding', 'transfer-encoding', 'connection', 'keep-alive', 'date', 'server'])
        result.response_data = response.text

        logger.debug(f"{sampler.name} -> {response.status_code} ({result.elapsed_ms}ms)")
        return result
