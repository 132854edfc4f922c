"""
ReplayGuard Harness Module

Record/replay regression harness.

This module provides:
- Test case discovery
- Verify and baseline-generation pipelines over one state machine
- YAML harness settings
- Interfaces for the recorder-under-test and the run engine
"""

from .controller import RegressionHarness, HarnessState, CaseOutcome, BaselineReport
from .interfaces import Recorder, RecorderSession, PlanRunner
from .locator import RegressionTestCase, find_test_cases, DEFAULT_RECORDING_LOG_NAME
from .settings import HarnessSettings, DEFAULT_SETTINGS_FILE

__all__ = [
    # Controller
    'RegressionHarness',
    'HarnessState',
    'CaseOutcome',
    'BaselineReport',

    # Interfaces
    'Recorder',
    'RecorderSession',
    'PlanRunner',

    # Discovery
    'RegressionTestCase',
    'find_test_cases',
    'DEFAULT_RECORDING_LOG_NAME',

    # Settings
    'HarnessSettings',
    'DEFAULT_SETTINGS_FILE',
]

__version__ = '1.0.0'
