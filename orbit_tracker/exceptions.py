"""
Error taxonomy for the orbit tracker.

The numerical core raises these and never swallows them; callers such as
``SatelliteTracker`` decide how a failed tick is surfaced.
"""

from typing import Any, Dict, Optional


class OrbitTrackerError(Exception):
    """Base class for all orbit tracker errors."""


class ParseError(OrbitTrackerError, ValueError):
    """Malformed element set (wrong format, bad checksum, field out of range)."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        if line_number is not None:
            message = f"TLE line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number


class PropagationError(OrbitTrackerError, RuntimeError):
    """
    SGP4 reported a decayed or degenerate orbit, or produced a
    non-physical state, at the requested instant.
    """

    def __init__(self, message: str, error_code: int = 0,
                 diagnostics: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.error_code = error_code
        self.diagnostics = diagnostics or {}


class InputDomainError(OrbitTrackerError, ValueError):
    """Altitude outside the domain of the analytic calculators."""


class TLEFetchError(OrbitTrackerError):
    """An element-set provider could not deliver a TLE."""
