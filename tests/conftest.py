"""Shared fixtures for ReplayGuard tests."""

import json

import pytest


@pytest.fixture
def sample_captures():
    """Sample recorded exchanges."""
    return [
        {
            'method': 'GET',
            'url': 'https://api.example.com/users/123',
            'status': 200,
            'req_headers': {
                'Accept': 'application/json',
                'Host': 'api.example.com'
            },
            'resp_headers': {
                'Content-Type': 'application/json',
                'Content-Length': '31',
                'Date': 'Mon, 01 Jan 2024 00:00:00 GMT'
            },
            'resp_body': '{"id": 123, "name": "John Doe"}',
            'duration_ms': 12
        },
        {
            'method': 'POST',
            'url': 'https://api.example.com/users',
            'status': 201,
            'req_headers': {
                'Content-Type': 'application/json'
            },
            'req_body': '{"name": "Jane Smith"}',
            'resp_headers': {
                'Content-Type': 'application/json'
            },
            'resp_body': '{"id": 456, "name": "Jane Smith"}'
        },
        {
            'method': 'GET',
            'url': 'https://api.example.com/products?page=1&size=10',
            'status': 200,
            'resp_headers': {
                'Content-Type': 'application/json'
            },
            'resp_body': '{"products": []}'
        }
    ]


@pytest.fixture
def recording_log_file(tmp_path, sample_captures):
    """Recording log in capture format."""
    path = tmp_path / 'recording.json'
    path.write_text(json.dumps({'requests': sample_captures}), encoding='utf-8')
    return path
