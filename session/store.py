"""
Session store abstraction for web-session middleware.

This module defines the contract a session middleware relies on to
persist sessions outside the process: fetch a session by id, commit a
session under an id, and destroy the session for an id.

Every operation reports its outcome as a ``StoreResult`` instead of
raising, so a middleware can treat "not found" and "store failure" with
the same code path.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, NamedTuple, Optional


class StoreResult(NamedTuple):
    """
    Completion signal of a store operation.
    
    Unpacks as ``error, value = await store.get(sid)``. ``error`` is None
    on success; ``value`` is the operation's result (the session for
    ``get``, the driver result for ``set`` and ``destroy``).
    """
    error: Optional[BaseException]
    value: Any = None
    
    @property
    def ok(self) -> bool:
        """True when the operation completed without an error."""
        return self.error is None
    
    def unwrap(self) -> Any:
        """Return the value, raising the error if the operation failed."""
        if self.error is not None:
            raise self.error
        return self.value


# Signature of the optional completion callback: callback(error, value)
Callback = Callable[[Optional[BaseException], Any], None]


class SessionStore(ABC):
    """
    Abstract base class for session storage implementations.
    
    Implementations may use Cassandra, Redis, or other external storage
    systems. All methods are async to support non-blocking I/O with the
    external store, and none of them raise for store failures: errors are
    returned in the ``StoreResult``.
    """
    
    @abstractmethod
    async def get(
        self,
        session_id: str,
        callback: Optional[Callback] = None
    ) -> StoreResult:
        """
        Fetch the session stored under ``session_id``.
        
        Args:
            session_id: Unique identifier for the session.
            callback: Optional completion callback receiving ``(error, session)``.
            
        Returns:
            ``(None, session)`` when found, ``(None, None)`` when the session
            does not exist, has expired or cannot be decoded, and
            ``(error, None)`` when the store fails.
        """
        pass
    
    @abstractmethod
    async def set(
        self,
        session_id: str,
        session: dict[str, Any],
        callback: Optional[Callback] = None
    ) -> StoreResult:
        """
        Commit ``session`` under ``session_id``, replacing any stored version.
        
        Args:
            session_id: Unique identifier for the session.
            session: Session mapping, including its ``cookie`` sub-mapping.
            callback: Optional completion callback receiving ``(error, result)``.
            
        Returns:
            ``(error, result)`` as reported by the underlying store.
        """
        pass
    
    @abstractmethod
    async def destroy(
        self,
        session_id: str,
        callback: Optional[Callback] = None
    ) -> StoreResult:
        """
        Destroy the session stored under ``session_id``.
        
        Destroying a session that does not exist is not an error.
        
        Args:
            session_id: Unique identifier for the session to delete.
            callback: Optional completion callback receiving ``(error, result)``.
            
        Returns:
            ``(error, result)`` as reported by the underlying store.
        """
        pass
