"""
ReplayGuard Recorder Module

Reference recorder-under-test: a recording reverse proxy and its plan format.
"""

from .plan import RecordedPlan, PlanSampler
from .proxy import RecordingProxy, RecordingSession

__all__ = [
    'RecordedPlan',
    'PlanSampler',
    'RecordingProxy',
    'RecordingSession',
]

__version__ = '1.0.0'
