"""
Exception hierarchy for the max anode current test.

All exceptions inherit from :class:`PMTTestError` so callers can catch
broadly (``except PMTTestError``) or narrowly (``except InstrumentError``).
Every exception carries the process exit code the CLI should return.
"""


class PMTTestError(Exception):
    """Base exception for all max anode current test errors."""

    exit_code = 1


class ValidationError(PMTTestError):
    """Raised when a run parameter or config value fails validation."""


class LaunchError(PMTTestError):
    """Raised when an external program cannot be started at all."""


class InstrumentError(PMTTestError):
    """Raised when the power supply or filter wheel program reports failure."""


class AcquisitionError(PMTTestError):
    """Raised when the acquisition binary does not leave its output file behind."""


class AnalysisError(PMTTestError):
    """Raised when the max anode current analysis reports failure."""
