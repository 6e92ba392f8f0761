"""
Utility modules for the study space backend.

This package contains shared helpers used across the application: UTC
datetime handling and closed-interval checks for booking periods.
"""

from utils.interval_utils import InvalidIntervalError, intervals_overlap, validate_interval

__all__ = ['InvalidIntervalError', 'intervals_overlap', 'validate_interval']
