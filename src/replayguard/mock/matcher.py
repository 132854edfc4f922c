"""
ReplayGuard Request Matcher

Exact request matching for the mock server. A request is identified by its
signature: method, path, sorted query string and a digest of its body. The
mock server answers a request only with responses recorded for the same
signature, in recorded order.
"""

import hashlib
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union
from urllib.parse import urlparse

from ..common.recording_log import RecordedExchange
from ..common.url_utils import normalize_query


@dataclass(frozen=True)
class RequestSignature:
    """Identity shared by a recorded request and its replayed copies."""

    method: str
    path: str
    query: str = ""
    body_digest: str = ""

    @classmethod
    def create(cls, method: str, url: str, body: Union[str, bytes, None] = None) -> 'RequestSignature':
        parsed = urlparse(url)
        if isinstance(body, str):
            body = body.encode('utf-8')
        return cls(
            method=method.upper(),
            path=parsed.path or '/',
            query=normalize_query(parsed.query),
            body_digest=hashlib.md5(body).hexdigest() if body else ""
        )

    @classmethod
    def of(cls, exchange: RecordedExchange) -> 'RequestSignature':
        return cls.create(exchange.method, exchange.url, exchange.req_body)

    def __str__(self) -> str:
        query = f"?{self.query}" if self.query else ""
        body = f" [body {self.body_digest[:8]}]" if self.body_digest else ""
        return f"{self.method} {self.path}{query}{body}"


@dataclass
class Stub:
    """Recorded responses for one signature, served one after the other."""

    signature: RequestSignature
    stub_id: str
    responses: List[RecordedExchange] = field(default_factory=list)
    served: int = 0

    def next_response(self) -> RecordedExchange:
        # Once exhausted the last recorded response keeps being served
        index = min(self.served, len(self.responses) - 1)
        self.served += 1
        return self.responses[index]

    def rewind(self):
        self.served = 0


@dataclass(frozen=True)
class MatchResult:
    """Result of matching an incoming request."""

    matched: bool
    signature: RequestSignature
    stub: Optional[Stub] = None
    response: Optional[RecordedExchange] = None


class RequestMatcher:
    """
    Signature-based matcher over recorded exchanges.

    Example:
        matcher = RequestMatcher(log.exchanges, id_factory=lambda: str(uuid.uuid4()))
        result = matcher.find_match('GET', '/users/1', b'')
    """

    def __init__(self, exchanges: List[RecordedExchange], id_factory):
        self.stubs: Dict[RequestSignature, Stub] = {}
        for exchange in exchanges:
            signature = RequestSignature.of(exchange)
            if signature not in self.stubs:
                self.stubs[signature] = Stub(signature, stub_id=id_factory())
            self.stubs[signature].responses.append(exchange)

    def find_match(self, method: str, url: str, body: Union[str, bytes, None] = None) -> MatchResult:
        signature = RequestSignature.create(method, url, body)
        stub = self.stubs.get(signature)
        if stub is None:
            return MatchResult(False, signature)
        return MatchResult(True, signature, stub=stub, response=stub.next_response())

    def rewind(self):
        """Serve every stub from its first recorded response again."""
        for stub in self.stubs.values():
            stub.rewind()
