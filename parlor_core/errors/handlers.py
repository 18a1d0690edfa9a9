# =============================================================================
# parlor_core/errors/handlers.py
# Turning exceptions into parlor-staff-facing notices
# =============================================================================
"""
Screens never show raw exceptions. Backend trouble is expected in this app
(parlors run on patchy connections), so an unreachable server becomes a
warning, local-only mode becomes an info note and only refusals, missing
records and bugs are shown as errors.

Log levels follow the same split as the repositories: INFO for local-only
mode, WARNING for an unreachable server or unreadable cache, ERROR for the
rest.
"""

from __future__ import annotations
import functools
import logging
from typing import Optional, Callable, TypeVar, Any
import streamlit as st

from parlor_core.logging import get_logger
from .exceptions import (
    CacheCorrupt,
    ConfigurationError,
    NotFound,
    ParlorError,
    RemoteRejected,
    RemoteUnavailable,
)

logger = get_logger(__name__)

T = TypeVar("T")

INFO = "info"
WARNING = "warning"
ERROR = "error"


def severity_of(error: BaseException) -> str:
    """How loudly an error is logged and shown: "info", "warning" or "error"."""
    if isinstance(error, RemoteUnavailable):
        return INFO if error.explicit_offline else WARNING
    if isinstance(error, CacheCorrupt):
        return WARNING
    return ERROR


def describe(error: BaseException) -> str:
    """Sentence shown to parlor staff for error."""
    if isinstance(error, RemoteUnavailable):
        if error.explicit_offline:
            return "Working offline: changes are kept on this device only."
        return "The server could not be reached. Showing saved data where available."
    if isinstance(error, NotFound):
        return "That record no longer exists on the server. Reload to see the current list."
    if isinstance(error, RemoteRejected):
        return f"The server refused the request: {error.message}"
    if isinstance(error, CacheCorrupt):
        return "Some locally saved data could not be read and was skipped."
    if isinstance(error, ConfigurationError):
        return f"The app is misconfigured: {error.message}. Please contact support."
    if isinstance(error, ParlorError):
        return error.message
    return str(error) or error.__class__.__name__


def handle_error(
    error: BaseException,
    show_user_message: bool = True,
    user_message: Optional[str] = None,
) -> None:
    """
    Log error and show one notice for it.

    Args:
        error: The exception to handle
        show_user_message: Whether to render a notice
        user_message: Text to show instead of the default description
    """
    severity = severity_of(error)
    if isinstance(error, ParlorError):
        level = {INFO: logging.INFO, WARNING: logging.WARNING}.get(severity, logging.ERROR)
        logger.log(level, str(error), extra={"details": error.details})
        details = error.to_dict()
    else:
        # Not one of ours: a bug, keep the traceback
        logger.error(f"Unexpected {error.__class__.__name__}: {error}", exc_info=error)
        details = {"error_type": error.__class__.__name__, "message": str(error)}

    if not show_user_message:
        return

    message = user_message or describe(error)
    getattr(st, severity)(message)

    if st.session_state.get("debug_mode", False):
        with st.expander("Error details", expanded=False):
            st.json(details)


def safe_execute(
    func: Callable[..., T],
    *args,
    default: Optional[T] = None,
    error_message: Optional[str] = None,
    reraise: bool = False,
    **kwargs,
) -> Optional[T]:
    """
    Call func, handing any exception to handle_error and returning default.

    Usage:
        settings = safe_execute(load_settings, default=Settings())
    """
    try:
        return func(*args, **kwargs)
    except Exception as e:
        handle_error(e, user_message=error_message)
        if reraise:
            raise
        return default


class ErrorContext:
    """
    Wrap one section of a page; an exception shows a notice and the rest of
    the page still renders.

    Usage:
        with ErrorContext("Loading cases"):
            notify_load_result(repos.cases.load())
    """

    def __init__(self, operation: str, recoverable: bool = True):
        self.operation = operation
        self.recoverable = recoverable

    def __enter__(self) -> ErrorContext:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is None or not issubclass(exc_type, Exception):
            return False

        if isinstance(exc_val, ParlorError):
            handle_error(exc_val, user_message=f"{self.operation}: {describe(exc_val)}")
        else:
            handle_error(exc_val, user_message=f"{self.operation} failed unexpectedly.")
        return self.recoverable


def error_boundary(
    default_return: Any = None,
    error_message: Optional[str] = None,
):
    """
    Decorator for render helpers: on exception, log it, optionally show
    error_message and return default_return.

    Usage:
        @error_boundary(error_message="Could not render this task")
        def render_card(task):
            ...
    """
    def decorator(func: Callable[..., T]) -> Callable[..., Optional[T]]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Optional[T]:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                handle_error(
                    e,
                    show_user_message=error_message is not None,
                    user_message=error_message,
                )
                return default_return

        return wrapper

    return decorator
