# =============================================================================
# parlor_core/errors/exceptions.py
# Custom Exception Hierarchy for LoveDone Parlor
# =============================================================================

from typing import Optional, Dict, Any


class ParlorError(Exception):
    """
    Base exception for all LoveDone Parlor errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "REMOTE_001")
        details: Additional context as a dictionary
        recoverable: Whether the error can be recovered from
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "PARLOR_000"
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        base = f"[{self.code}] {self.message}"
        if self.details:
            base += f" | Details: {self.details}"
        return base

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization"""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# REMOTE BACKEND EXCEPTIONS
# =============================================================================

class RemoteError(ParlorError):
    """Base class for failures at the remote collection boundary"""

    def __init__(
        self,
        message: str,
        collection: Optional[str] = None,
        operation: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if collection:
            details["collection"] = collection
        if operation:
            details["operation"] = operation

        super().__init__(message=message, details=details, **kwargs)

    @property
    def collection(self) -> Optional[str]:
        return self.details.get("collection")

    @property
    def operation(self) -> Optional[str]:
        return self.details.get("operation")


class RemoteUnavailable(RemoteError):
    """
    Raised when the backend cannot be reached (network, timeout, auth).

    Transient: callers fall back to the local cache. ``explicit_offline``
    is set when no backend is configured at all, so the UI can tell
    "offline by choice" apart from "offline because something broke".
    """

    def __init__(self, message: str, explicit_offline: bool = False, **kwargs):
        details = kwargs.pop("details", {})
        if explicit_offline:
            details["explicit_offline"] = True

        super().__init__(
            message=message,
            code="REMOTE_001",
            details=details,
            recoverable=True,
            **kwargs,
        )

    @property
    def explicit_offline(self) -> bool:
        return bool(self.details.get("explicit_offline", False))


class RemoteRejected(RemoteError):
    """Raised when the backend understood the request and refused it"""

    def __init__(self, message: str, remote_code: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if remote_code:
            details["remote_code"] = remote_code

        super().__init__(
            message=message,
            code="REMOTE_002",
            details=details,
            recoverable=True,
            **kwargs,
        )


class NotFound(RemoteError):
    """Raised when the targeted record no longer exists remotely"""

    def __init__(self, message: str, entity_id: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if entity_id:
            details["entity_id"] = entity_id

        super().__init__(
            message=message,
            code="REMOTE_404",
            details=details,
            recoverable=False,
            **kwargs,
        )


# =============================================================================
# LOCAL CACHE EXCEPTIONS
# =============================================================================

class CacheCorrupt(ParlorError):
    """Raised when a cached snapshot cannot be decoded"""

    def __init__(self, message: str, cache_key: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if cache_key:
            details["cache_key"] = cache_key

        super().__init__(
            message=message,
            code="CACHE_001",
            details=details,
            **kwargs,
        )


# =============================================================================
# CONFIGURATION EXCEPTIONS
# =============================================================================

class ConfigurationError(ParlorError):
    """Raised when configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        expected_type: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key
        if expected_type:
            details["expected_type"] = expected_type

        super().__init__(
            message=message,
            code="CONFIG_001",
            details=details,
            recoverable=False,
            **kwargs,
        )
