"""
Exception classes for the session store.

This module provides the AppException base class, the SessionStoreError
returned through store results, and convenience factory functions for
the common failure cases.
"""

from typing import Any, Optional

from errors.codes import ErrorCode, is_client_error


class AppException(Exception):
    """
    Base exception class for all store-specific errors.
    
    This exception provides structured error information including:
    - error_code: A standardized error code from the ErrorCode enum
    - message: A human-readable error message
    - details: Optional additional context (e.g., the session id)
    
    Example:
        raise AppException(
            error_code=ErrorCode.SERIALIZATION_ERROR,
            message="Session cannot be encoded",
            details={"session_id": "abc", "reason": "set is not JSON serializable"}
        )
    """
    
    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        details: Optional[dict[str, Any]] = None
    ):
        """
        Initialize an AppException.
        
        Args:
            error_code: The error code from the ErrorCode enum
            message: A human-readable error message
            details: Optional dictionary with additional error context
        """
        self.error_code = error_code
        self.message = message
        self.details = details
        super().__init__(message)
    
    @property
    def is_client_error(self) -> bool:
        """True when the error was caused by the caller's input."""
        return is_client_error(self.error_code)
    
    def to_dict(self) -> dict[str, Any]:
        """
        Convert the exception to a dictionary for JSON serialization.
        
        Returns:
            Dictionary containing error_code, message, and details
        """
        result = {
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details is not None:
            result["details"] = self.details
        return result
    
    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(error_code={self.error_code.value!r}, "
            f"message={self.message!r}, details={self.details!r})"
        )


class SessionStoreError(AppException):
    """Error produced by the session store itself rather than the driver."""


# Convenience factory functions for common error types

def invalid_session(
    message: str = "Session must be a mapping",
    details: Optional[dict[str, Any]] = None
) -> SessionStoreError:
    """Create an invalid session error."""
    return SessionStoreError(
        error_code=ErrorCode.INVALID_SESSION,
        message=message,
        details=details
    )


def serialization_error(
    message: str = "Session cannot be serialized",
    details: Optional[dict[str, Any]] = None
) -> SessionStoreError:
    """Create a serialization error."""
    return SessionStoreError(
        error_code=ErrorCode.SERIALIZATION_ERROR,
        message=message,
        details=details
    )


def session_store_unavailable(
    message: str = "Session store unavailable",
    details: Optional[dict[str, Any]] = None
) -> SessionStoreError:
    """Create a session store unavailable error."""
    return SessionStoreError(
        error_code=ErrorCode.SESSION_STORE_UNAVAILABLE,
        message=message,
        details=details
    )

