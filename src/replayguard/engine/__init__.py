"""
ReplayGuard Engine Module

Reference run engine executing recorded plans into result logs.
"""

from .runner import PlanRunner
from .results import ResultLogWriter, SampleResult, canonical_header_name

__all__ = [
    'PlanRunner',
    'ResultLogWriter',
    'SampleResult',
    'canonical_header_name',
]

__version__ = '1.0.0'
