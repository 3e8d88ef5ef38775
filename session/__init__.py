"""
Session persistence for web-session middleware.

This module provides the session store contract and a Cassandra-backed
implementation that stores each session as a JSON row with a TTL taken
from the session cookie, applying a cookie attribute policy on write.
"""

from session.store import SessionStore, StoreResult
from session.cassandra_store import CassandraSessionStore
from session.client import CassandraClient, ColumnStoreClient, ExecutionResult
from session.cookie_policy import DEV_COOKIE_DOMAIN, apply_cookie_policy, resolve_cookie_policy
from session.ttl import resolve_ttl

__all__ = [
    "SessionStore",
    "StoreResult",
    "CassandraSessionStore",
    "CassandraClient",
    "ColumnStoreClient",
    "ExecutionResult",
    "DEV_COOKIE_DOMAIN",
    "apply_cookie_policy",
    "resolve_cookie_policy",
    "resolve_ttl",
]
