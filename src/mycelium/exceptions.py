"""
Mycelium Exception Hierarchy

This module defines the errors raised by the intercepting filesystem, the
remote channel and the execution session. Every error carries an error code
and a context dictionary so the host's loader can report a failed import
with the originating detail.

Errors raised for local paths are never wrapped: the native ``OSError``
subclasses from the real filesystem propagate unchanged.
"""

import io
import time
from typing import Any, Dict, Optional


class MyceliumError(Exception):
    """
    Base exception class for all mycelium errors.

    Attributes:
        error_code: Unique error code for programmatic handling
        timestamp: When the error occurred
        context: Additional context information (path, uri, scheme, ...)
        user_message: User-friendly error message
        developer_message: Detailed technical error message
        suggestion: Suggested fix or next steps (if applicable)
    """

    def __init__(
        self,
        message: str,
        error_code: str = "MYCELIUM_ERROR",
        context: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        suggestion: Optional[str] = None,
    ):
        super().__init__(message)
        self.error_code = error_code
        self.timestamp = time.time()
        self.context = context or {}
        self.user_message = user_message or message
        self.developer_message = message
        self.suggestion = suggestion

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.developer_message,
            "user_message": self.user_message,
            "timestamp": self.timestamp,
            "context": self.context,
            "suggestion": self.suggestion,
        }

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.developer_message}"


# =============================================================================
# PATH ERRORS
# =============================================================================

class PathError(MyceliumError):
    """Base class for errors raised while classifying or decoding a path."""

    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        self.path = path

        context = kwargs.pop("context", {})
        if path is not None:
            context["path"] = path

        error_code = kwargs.pop("error_code", "PATH_ERROR")
        super().__init__(message, error_code=error_code, context=context, **kwargs)


class MalformedRemotePathError(PathError):
    """
    Raised when the remainder of a reserved-prefix path is not a URI.

    Examples:
    - The path is the bare reserved prefix with nothing after it
    - The remainder has no scheme or no authority
    """

    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            path=path,
            error_code="MALFORMED_REMOTE_PATH",
            suggestion="Remote paths look like '<prefix>/https:/host/module.js'",
            **kwargs,
        )


class UnsupportedSchemeError(PathError):
    """Raised when a remote path decodes to a URI whose scheme cannot be fetched."""

    def __init__(
        self,
        scheme: str,
        path: Optional[str] = None,
        supported_schemes: Optional[tuple] = None,
        **kwargs,
    ):
        self.scheme = scheme
        self.supported_schemes = tuple(supported_schemes or ("http", "https"))

        context = kwargs.pop("context", {})
        context["scheme"] = scheme
        context["supported_schemes"] = list(self.supported_schemes)

        super().__init__(
            f"Unknown scheme {scheme}",
            path=path,
            error_code="UNSUPPORTED_SCHEME",
            context=context,
            suggestion=f"Use one of: {', '.join(self.supported_schemes)}",
            **kwargs,
        )


# =============================================================================
# CHANNEL ERRORS
# =============================================================================

class RemoteConnectionError(MyceliumError, ConnectionError):
    """Raised when the network stream for a remote path cannot be established."""

    def __init__(
        self,
        message: str,
        uri: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs,
    ):
        self.uri = uri
        self.status_code = status_code

        context = kwargs.pop("context", {})
        if uri is not None:
            context["uri"] = uri
        if status_code is not None:
            context["status_code"] = status_code

        super().__init__(
            message,
            error_code="REMOTE_CONNECTION_ERROR",
            context=context,
            **kwargs,
        )


class ChannelClosedError(MyceliumError):
    """Raised when a remote channel is closed a second time."""

    def __init__(self, uri: Optional[str] = None, **kwargs):
        self.uri = uri
        context = kwargs.pop("context", {})
        if uri is not None:
            context["uri"] = uri
        super().__init__(
            f"Channel for {uri} is already closed",
            error_code="CHANNEL_CLOSED",
            context=context,
            **kwargs,
        )


class UnsupportedOperationError(MyceliumError, io.UnsupportedOperation):
    """
    Raised when a filesystem operation has no meaning for a path.

    Remote paths behave like regular files without directory semantics, so
    directory creation, listing and attribute reads are rejected.
    """

    def __init__(self, operation: str, path: Optional[str] = None, **kwargs):
        self.operation = operation
        self.path = path

        context = kwargs.pop("context", {})
        context["operation"] = operation
        if path is not None:
            context["path"] = path

        message = kwargs.pop("message", None) or (
            f"Operation '{operation}' is not supported for {path}"
        )
        super().__init__(
            message,
            error_code="UNSUPPORTED_OPERATION",
            context=context,
            **kwargs,
        )


# =============================================================================
# SESSION ERRORS
# =============================================================================

class SessionError(MyceliumError):
    """Base class for execution session errors."""

    def __init__(self, message: str, **kwargs):
        error_code = kwargs.pop("error_code", "SESSION_ERROR")
        super().__init__(message, error_code=error_code, **kwargs)


class UnknownLanguageError(SessionError):
    """Raised when no guest language is registered for a file extension."""

    def __init__(self, extension: str, path: Optional[str] = None, **kwargs):
        self.extension = extension
        self.path = path

        context = kwargs.pop("context", {})
        context["extension"] = extension
        if path is not None:
            context["path"] = path

        super().__init__(
            f"No language registered for extension '{extension}'",
            error_code="UNKNOWN_LANGUAGE",
            context=context,
            **kwargs,
        )


class HostNotConfiguredError(SessionError):
    """Raised when a session needs an execution host but none was given."""

    def __init__(self, message: str = "No execution host configured", **kwargs):
        super().__init__(
            message,
            error_code="HOST_NOT_CONFIGURED",
            suggestion="Pass host=... when creating the ExecutionSession",
            **kwargs,
        )
