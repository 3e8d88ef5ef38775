"""
Error code catalog for the session store.

This module defines the error codes raised or returned by the session
store, covering unusable session payloads and failures of the
underlying column store.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """
    Enumeration of all error codes used by the session store.
    
    Each error code belongs to one of two categories:
    - Session errors: payloads that cannot be written or read
    - Store errors: the column store cannot be reached
    """
    
    # Session errors
    INVALID_SESSION = "INVALID_SESSION"
    """Session object is not a mapping"""
    
    SERIALIZATION_ERROR = "SERIALIZATION_ERROR"
    """Session object cannot be encoded as JSON"""
    
    # Store errors
    SESSION_STORE_UNAVAILABLE = "SESSION_STORE_UNAVAILABLE"
    """Cassandra cluster cannot be reached"""


# Codes that describe a problem with the caller's input rather than the store
CLIENT_ERROR_CODES: frozenset[ErrorCode] = frozenset({
    ErrorCode.INVALID_SESSION,
    ErrorCode.SERIALIZATION_ERROR,
})


def is_client_error(error_code: ErrorCode) -> bool:
    """
    Check whether an error code is caused by the caller's input.
    
    Args:
        error_code: The error code to check
        
    Returns:
        True if the caller can fix the error by changing its input
    """
    return error_code in CLIENT_ERROR_CODES
