"""
Shared error handling for the Kubernetes service exporter.
"""

from typing import Dict, Any, Optional


class ExporterException(Exception):
    """Base exception for exporter components."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a log-friendly mapping."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


class KubeClientError(ExporterException):
    """Kubernetes client could not be constructed from the available configuration."""

    def __init__(self, message: str = "Kubernetes client configuration failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("KUBE_CLIENT_CONFIG_FAILED", message, details)


class CacheSyncTimeoutError(ExporterException):
    """Initial cache sync did not complete within the startup budget."""

    def __init__(self, timeout_seconds: float, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            "CACHE_SYNC_TIMEOUT",
            f"timed out waiting for caches to sync after {timeout_seconds}s",
            details
        )
        self.timeout_seconds = timeout_seconds


class WatchExpiredError(ExporterException):
    """Watch resource version is too old; a fresh list is required."""

    def __init__(self, message: str = "Watch resource version expired", details: Optional[Dict[str, Any]] = None):
        super().__init__("WATCH_EXPIRED", message, details)


class WatchStreamError(ExporterException):
    """Watch stream reported an error event."""

    def __init__(self, message: str = "Watch stream error", details: Optional[Dict[str, Any]] = None):
        super().__init__("WATCH_STREAM_ERROR", message, details)
