"""
Chart error types.

All failures raised by the chart pipeline derive from ChartError so the
widget can catch a single type at its entry point and degrade to an empty
scene instead of crashing the host page.
"""

from typing import Optional


class ChartError(Exception):
    """Base class for chart pipeline failures."""


class ChartDataError(ChartError, ValueError):
    """Malformed input: non-finite values, wrong shapes, rejected negatives."""

    def __init__(self, message: str, index: Optional[int] = None):
        super().__init__(message)
        self.index = index


class UnknownBucketError(ChartError, LookupError):
    """A bucket key was looked up in a scale whose domain does not contain it."""

    def __init__(self, key: str):
        super().__init__(f"Unknown bucket key: {key!r}")
        self.key = key
