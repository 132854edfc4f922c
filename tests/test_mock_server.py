"""
Tests for ReplayGuard Mock Server

Tests the FastAPI-based mock server including:
- Request handling and matching
- Response serving with stub ids
- Unexpected request reporting
- Reset between recording and execution
- Building the transport pair from a recording log
"""

import itertools

import pytest
import requests
from fastapi.testclient import TestClient

from replayguard.common.errors import UnexpectedRequestError
from replayguard.common.recording_log import RecordingLog
from replayguard.mock import MockClient, MockConfig, MockMetrics, MockServer, from_log


@pytest.fixture
def recording_log(recording_log_file):
    return RecordingLog.load(recording_log_file)


@pytest.fixture
def mock_server(recording_log):
    counter = itertools.count(1)
    return MockServer(recording_log.exchanges, id_factory=lambda: f"stub-{next(counter)}")


@pytest.fixture
def client(mock_server):
    return TestClient(mock_server.get_app())


class TestMockConfig:
    """Test MockConfig defaults."""

    def test_defaults(self):
        """Test default configuration values."""
        config = MockConfig()

        assert config.host == '127.0.0.1'
        assert config.port == 0
        assert config.stub_id_header == 'Matched-Stub-Id'
        assert config.unmatched_status == 404


class TestMockMetrics:
    """Test MockMetrics."""

    def test_to_dict(self):
        """Test match rate calculation."""
        metrics = MockMetrics(total_requests=4, matched_requests=3, unmatched_requests=1)

        data = metrics.to_dict()

        assert data['match_rate'] == 75.0
        assert data['total_requests'] == 4

    def test_to_dict_without_requests(self):
        """Test match rate with no requests."""
        assert MockMetrics().to_dict()['match_rate'] == 0


class TestMockServerRequests:
    """Test request handling."""

    def test_serves_recorded_response(self, client):
        """Test a recorded GET gets its recorded response."""
        response = client.get('/users/123', headers={'Accept': 'application/json'})

        assert response.status_code == 200
        assert response.json() == {'id': 123, 'name': 'John Doe'}
        assert response.headers['content-type'] == 'application/json'
        assert response.headers['Matched-Stub-Id'] == 'stub-1'

    def test_recorded_hop_by_hop_headers_are_not_served(self, client):
        """Test recorded Date and Content-Length are not sent back verbatim."""
        response = client.get('/users/123')

        assert response.headers.get('date') != 'Mon, 01 Jan 2024 00:00:00 GMT'
        assert response.headers['content-length'] == str(len(response.content))

    def test_post_matches_on_body(self, client, mock_server):
        """Test a POST is matched by its body."""
        response = client.post('/users', content=b'{"name": "Jane Smith"}')

        assert response.status_code == 201
        assert response.headers['Matched-Stub-Id'] == 'stub-2'

        client.post('/users', content=b'{"name": "Someone Else"}')
        assert len(mock_server.unexpected_requests) == 1

    def test_query_order_does_not_matter(self, client):
        """Test query parameters match in any order."""
        response = client.get('/products?size=10&page=1')

        assert response.status_code == 200
        assert response.json() == {'products': []}

    def test_unrecorded_request(self, client, mock_server):
        """Test an unrecorded request gets 404 and is remembered."""
        response = client.delete('/users/123')

        assert response.status_code == 404
        assert response.json()['request'] == 'DELETE /users/123'
        assert mock_server.unexpected_requests == ['DELETE /users/123']
        assert mock_server.metrics.unmatched_requests == 1

    def test_metrics(self, client, mock_server):
        """Test request counters."""
        client.get('/users/123')
        client.get('/nothing')

        assert mock_server.metrics.total_requests == 2
        assert mock_server.metrics.matched_requests == 1


class TestMockServerLifecycle:
    """Test verify, reset and start/close."""

    def test_verify_passes_without_unexpected_requests(self, client, mock_server):
        """Test verify is silent when every request was recorded."""
        client.get('/users/123')

        mock_server.verify()

    def test_verify_raises_on_unexpected_requests(self, client, mock_server):
        """Test verify lists unrecorded requests."""
        client.get('/nothing')

        with pytest.raises(UnexpectedRequestError, match='GET /nothing') as exc_info:
            mock_server.verify()

        assert exc_info.value.requests == ['GET /nothing']

    def test_reset(self, client, mock_server):
        """Test reset clears misses and metrics and keeps stub ids."""
        first_id = client.get('/users/123').headers['Matched-Stub-Id']
        client.get('/nothing')

        mock_server.reset()

        mock_server.verify()
        assert mock_server.metrics.total_requests == 0
        assert client.get('/users/123').headers['Matched-Stub-Id'] == first_id

    def test_base_url_requires_start(self, mock_server):
        """Test base_url before start raises."""
        with pytest.raises(RuntimeError):
            mock_server.base_url

    def test_serves_over_http(self, mock_server):
        """Test the server answers real HTTP requests on an ephemeral port."""
        with mock_server:
            response = requests.get(f"{mock_server.base_url}/users/123", timeout=5)

        assert response.status_code == 200
        assert response.headers['Matched-Stub-Id'] == 'stub-1'

    def test_close_twice(self, mock_server):
        """Test close is idempotent."""
        mock_server.start()
        mock_server.close()
        mock_server.close()


class TestFromLog:
    """Test building the transport pair."""

    def test_pair_shares_exchanges(self, recording_log):
        """Test server and client come from the same exchanges."""
        server, client = from_log(recording_log, MockConfig(port=0), client_timeout=5)

        assert isinstance(server, MockServer)
        assert isinstance(client, MockClient)
        assert client.exchanges == recording_log.exchanges
        assert client.timeout == 5
        assert sum(len(s.responses) for s in server.matcher.stubs.values()) == len(recording_log)
        client.close()

    def test_client_requests_all_match_server(self, recording_log):
        """Test replaying the log against its own server leaves no unexpected requests."""
        server, client = from_log(recording_log)

        with server:
            assert client.run(server.base_url) == 3
            server.verify()
        client.close()

        assert server.metrics.matched_requests == 3
