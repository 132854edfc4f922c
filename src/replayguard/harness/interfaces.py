"""
ReplayGuard Harness Interfaces

Capabilities the harness needs from the system under test. Anything
providing these methods can be plugged in; the recorder and engine packages
ship reference implementations.
"""

from pathlib import Path
from typing import Protocol, Union

from ..config.properties import PropertySet


class RecorderSession(Protocol):
    """An open recording: accepts client traffic, emits a plan."""

    @property
    def endpoint(self) -> str:
        """Base URL the mock client sends its requests to."""

    def save_plan(self, path: Union[str, Path]):
        """Persist the plan recorded so far."""

    def close(self):
        """Release the session's resources."""

    def __enter__(self):
        ...

    def __exit__(self, exc_type, exc, tb):
        ...


class Recorder(Protocol):
    """Recorder-under-test: accepts a session, emits a plan."""

    def open_session(self, properties: PropertySet, upstream_url: str) -> RecorderSession:
        """Open a recording forwarding traffic to ``upstream_url``."""


class PlanRunner(Protocol):
    """Run engine: accepts a plan, emits a result log."""

    def run(self, plan_path: Union[str, Path], result_log_path: Union[str, Path], properties: PropertySet):
        """Execute the plan and write its result log."""
