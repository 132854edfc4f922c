"""
ReplayGuard Errors

Exception hierarchy shared by every ReplayGuard module.

- StructuralError: the inputs of a test case are unusable (malformed
  recording log, broken template, missing baseline file)
- TemplateMismatchError: a generated artifact diverges from its template
- TransportError: the mock client or mock server could not do its job
"""

from typing import List, Optional


class ReplayGuardError(Exception):
    """Base class for all ReplayGuard errors."""


class StructuralError(ReplayGuardError):
    """Inputs of a test case are malformed or missing."""


class RecordingLogError(StructuralError):
    """Recording log cannot be read or contains invalid records."""


class TemplateSyntaxError(StructuralError):
    """Template text contains an unterminated or invalid placeholder."""


class MissingTemplateError(StructuralError):
    """A baseline template file does not exist."""


class TemplateMismatchError(ReplayGuardError):
    """
    A generated artifact does not match its template.

    Attributes:
        artifact: ArtifactKind of the compared artifact
        mismatch: TemplateMismatch describing the first divergence
        path: Path of the generated artifact, if it came from a file
    """

    def __init__(self, artifact, mismatch, path: Optional[str] = None):
        self.artifact = artifact
        self.mismatch = mismatch
        self.path = path
        location = f" ({path})" if path else ""
        super().__init__(f"{artifact.label} does not match template{location}: {mismatch.describe()}")


class TransportError(ReplayGuardError):
    """Mock transport failure, fatal to the test case."""


class UnexpectedRequestError(TransportError):
    """Mock server received requests with no recorded response."""

    def __init__(self, requests: List[str]):
        self.requests = list(requests)
        listed = ', '.join(self.requests[:5])
        more = f" (+{len(self.requests) - 5} more)" if len(self.requests) > 5 else ""
        super().__init__(f"Mock server received {len(self.requests)} unrecorded request(s): {listed}{more}")


class ClientReplayError(TransportError):
    """Mock client could not deliver a recorded request."""


class ServerStartError(TransportError):
    """A background HTTP server did not come up."""
