"""
ReplayGuard URL Utilities

URL rewriting and normalization shared by the mock transport, the recorder
and the run engine.
"""

from urllib.parse import urlparse, parse_qsl, urlencode, urlunparse


def replace_base_url(original_url: str, new_base_url: str) -> str:
    """
    Replace scheme and host of a URL while preserving path and query.

    Args:
        original_url: Original URL from a capture
        new_base_url: New base URL to use (e.g. 'http://127.0.0.1:8089')

    Returns:
        Modified URL with the new base
    """
    original_parsed = urlparse(original_url)
    new_base_parsed = urlparse(new_base_url)

    return urlunparse((
        new_base_parsed.scheme or original_parsed.scheme,
        new_base_parsed.netloc or original_parsed.netloc,
        original_parsed.path or '/',
        original_parsed.params,
        original_parsed.query,
        ''
    ))


def normalize_query(query: str) -> str:
    """Sort query parameters so equivalent query strings compare equal."""
    pairs = parse_qsl(query, keep_blank_values=True)
    return urlencode(sorted(pairs))


def path_with_query(url: str) -> str:
    """Return the path and query part of a URL ('/users?id=1')."""
    parsed = urlparse(url)
    path = parsed.path or '/'
    return f"{path}?{parsed.query}" if parsed.query else path
