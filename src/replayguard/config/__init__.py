"""
ReplayGuard Config Module

Explicit property sets and per-test-case override scoping.
"""

from .properties import PropertySet, load_overrides, flatten
from .scoped import ScopedConfigContext, find_override_file, DEFAULT_OVERRIDES_NAME

__all__ = [
    'PropertySet',
    'load_overrides',
    'flatten',
    'ScopedConfigContext',
    'find_override_file',
    'DEFAULT_OVERRIDES_NAME',
]
