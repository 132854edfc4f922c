"""
ReplayGuard - record/replay regression harness

Replays recorded HTTP sessions through a recorder-under-test and compares the
plans and result logs it produces with templates tolerating volatile values.
"""

__version__ = '1.0.0'
