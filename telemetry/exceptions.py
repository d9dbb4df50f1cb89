"""
Exceptions raised by the telemetry client.
"""


class TelemetryError(Exception):
    """Base class for telemetry client errors."""


class CompressionError(TelemetryError):
    """Raised when a batch cannot be compressed before sending."""
