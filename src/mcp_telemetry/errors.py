"""Exceptions raised by the telemetry engine."""

from __future__ import annotations


class TelemetryError(RuntimeError):
    """Base class for telemetry failures that reach the caller."""


class MetricsStoreError(TelemetryError):
    """Raised when the remote metrics store cannot serve a request."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Store the HTTP status code alongside the message when known."""
        super().__init__(message)
        self.status_code = status_code


class ActivityLogError(TelemetryError):
    """Raised when the local activity log cannot be queried."""


__all__ = ["ActivityLogError", "MetricsStoreError", "TelemetryError"]
