# =============================================================================
# parlor_core/errors/__init__.py
# Centralized Error Handling for LoveDone Parlor
# =============================================================================

from .exceptions import (
    ParlorError,
    RemoteError,
    RemoteUnavailable,
    RemoteRejected,
    NotFound,
    CacheCorrupt,
    ConfigurationError,
)

from .handlers import (
    severity_of,
    describe,
    handle_error,
    safe_execute,
    ErrorContext,
    error_boundary,
)

__all__ = [
    # Exceptions
    "ParlorError",
    "RemoteError",
    "RemoteUnavailable",
    "RemoteRejected",
    "NotFound",
    "CacheCorrupt",
    "ConfigurationError",
    # Handlers
    "severity_of",
    "describe",
    "handle_error",
    "safe_execute",
    "ErrorContext",
    "error_boundary",
]
