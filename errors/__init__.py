"""
Error handling module for the session store.

This module provides structured error handling with:
- ErrorCode enum for standardized error codes
- AppException class for store-specific exceptions
- SessionStoreError returned through store results
"""

from errors.codes import ErrorCode, is_client_error
from errors.exceptions import (
    AppException,
    SessionStoreError,
    invalid_session,
    serialization_error,
    session_store_unavailable,
)

__all__ = [
    "ErrorCode",
    "is_client_error",
    "AppException",
    "SessionStoreError",
    "invalid_session",
    "serialization_error",
    "session_store_unavailable",
]
