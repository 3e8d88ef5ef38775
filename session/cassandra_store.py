"""
Cassandra-backed session store implementation.

Sessions are stored one row per session id, as JSON text, with the row's
TTL derived from the session cookie's ``maxAge``. Before every write the
store's cookie policy is merged into the session cookie.

The store holds no per-call state, so one instance can serve any number
of concurrent requests. Operations are independent: there is no locking,
ordering, retrying or read-your-writes guarantee beyond what Cassandra
itself provides.
"""

import asyncio
import logging
from typing import Any, Optional, Union

from cassandra.cluster import Cluster

from config.settings import StoreSettings, build_settings
from errors.exceptions import invalid_session, serialization_error
from session.client import CassandraClient, ColumnStoreClient, ExecutionResult
from session.codec import decode_session, encode_session
from session.cookie_policy import apply_cookie_policy, resolve_cookie_policy
from session.queries import (
    SCHEMA,
    QueryContext,
    build_query,
    delete_query,
    resolve_table_name,
    select_query,
    update_query,
)
from session.store import Callback, SessionStore, StoreResult
from session.ttl import resolve_ttl

logger = logging.getLogger(__name__)


class CassandraSessionStore(SessionStore):
    """
    Session store backed by a Cassandra table.

    The store either wraps a client supplied by the caller or builds a
    ``CassandraClient`` from its settings. A caller may also pass a driver
    ``Cluster``, which is wrapped in a ``CassandraClient``. Anything the
    caller supplies is never shut down by the store; only its log
    listener is detached on ``close``. Construction does not wait for
    the cluster: when an event loop is running a connection attempt is
    started in the background, and a failure is only logged. Operations
    issued while the cluster is unreachable fail individually.

    Attributes:
        settings: Immutable store settings.
        table: Keyspace-qualified table name, fixed at construction.
        cookie_policy: Cookie attributes merged into every written session.
        client: The column store client.

    Example:
        store = CassandraSessionStore(keyspace="app", ttl=3600)
        error, session = await store.get(session_id)
    """

    def __init__(
        self,
        settings: Optional[StoreSettings] = None,
        *,
        client: Optional[Union[ColumnStoreClient, Cluster]] = None,
        **overrides: Any
    ):
        """
        Initialize the Cassandra session store.

        Args:
            settings: Store settings. Loaded from the environment when omitted.
            client: Already configured client, or driver ``Cluster``, to use
                instead of building one.
            **overrides: Settings fields that take precedence over ``settings``.

        Raises:
            ConfigurationError: If the resulting settings are invalid.
        """
        self.settings = build_settings(settings, **overrides)
        self.table = resolve_table_name(self.settings.keyspace, self.settings.table)
        self.cookie_policy = resolve_cookie_policy(
            self.settings.is_development,
            self.settings.cookie_options,
            self.settings.dev_cookie_options,
        )

        self._owns_client = client is None
        if client is None:
            client = CassandraClient(self.settings)
        elif isinstance(client, Cluster):
            client = CassandraClient(self.settings, cluster=client)
        self.client: ColumnStoreClient = client
        self.client.add_log_listener(self._on_driver_log)

        logger.debug("Session store configured", extra={
            "extra_data": {
                "settings": self.settings.safe_dump(),
                "table": self.table,
                "cookie_policy": self.cookie_policy,
                "mode": "development" if self.settings.is_development else "production",
            }
        })

        self._connect_task: Optional[asyncio.Task] = None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop yet; the first operation connects
            loop = None
        if loop is not None:
            self._connect_task = loop.create_task(self.connect())

    async def connect(self) -> bool:
        """
        Connect the underlying client.

        Never raises: a connection failure is logged and reported as False.

        Returns:
            True if the client is connected, False otherwise.
        """
        try:
            await self.client.connect()
        except Exception as e:
            logger.warning("Database not available", extra={
                "extra_data": {"table": self.table, "error": str(e)}
            })
            return False
        logger.debug("Database store initialized", extra={
            "extra_data": {"table": self.table}
        })
        return True

    async def close(self) -> None:
        """Detach the driver log listener and shut down a client this store created."""
        if self._connect_task is not None and not self._connect_task.done():
            self._connect_task.cancel()
        self.client.remove_log_listener(self._on_driver_log)
        if self._owns_client:
            await self.client.shutdown()

    async def create_table(self) -> StoreResult:
        """Create the session table if it does not exist."""
        query = build_query(SCHEMA, self.table, (), self.settings.query_options.model_copy(
            update={"prepare": False}
        ))
        return await self._execute(query)

    async def get(
        self,
        session_id: str,
        callback: Optional[Callback] = None
    ) -> StoreResult:
        query = select_query(self.table, session_id, self.settings.query_options)
        error, result = await self._execute(query, session_id)
        if error is not None:
            return _complete(StoreResult(error, None), callback)

        row = result.first
        payload = row.get("sobject") if row else None
        if not payload:
            logger.debug("Session not found", extra={
                "extra_data": {"session_id": session_id}
            })
            return _complete(StoreResult(None, None), callback)

        decoded = decode_session(payload)
        if not decoded.ok:
            # A corrupt payload behaves as a missing session
            logger.warning("Session cannot be parsed", extra={
                "extra_data": {"session_id": session_id, "error": decoded.error}
            })
            return _complete(StoreResult(None, None), callback)

        logger.debug("Session obtained", extra={
            "extra_data": {"session_id": session_id}
        })
        return _complete(StoreResult(None, decoded.session), callback)

    async def set(
        self,
        session_id: str,
        session: dict[str, Any],
        callback: Optional[Callback] = None
    ) -> StoreResult:
        if not isinstance(session, dict):
            error = invalid_session(details={
                "session_id": session_id,
                "type": type(session).__name__,
            })
            return _complete(StoreResult(error, None), callback)

        session["cookie"] = apply_cookie_policy(session.get("cookie"), self.cookie_policy)

        try:
            payload = encode_session(session)
        except (TypeError, ValueError) as e:
            logger.warning("Session cannot be serialized", extra={
                "extra_data": {"session_id": session_id, "error": str(e)}
            })
            error = serialization_error(details={"session_id": session_id, "reason": str(e)})
            return _complete(StoreResult(error, None), callback)

        ttl = resolve_ttl(session["cookie"].get("maxAge"), self.settings.ttl)
        query = update_query(self.table, session_id, ttl, payload, self.settings.query_options)
        return _complete(await self._execute(query, session_id), callback)

    async def destroy(
        self,
        session_id: str,
        callback: Optional[Callback] = None
    ) -> StoreResult:
        query = delete_query(self.table, session_id, self.settings.query_options)
        return _complete(await self._execute(query, session_id), callback)

    async def _execute(
        self,
        query: QueryContext,
        session_id: Optional[str] = None
    ) -> StoreResult:
        """Run one statement, turning any failure into an error result."""
        logger.debug("Query: %s", query.statement, extra={
            "extra_data": {"session_id": session_id, "query": query.template.name}
        })
        try:
            result: ExecutionResult = await self.client.execute(query)
        except Exception as e:
            logger.error("Session %s failed", query.template.name, extra={
                "extra_data": {"session_id": session_id, "error": str(e)}
            })
            return StoreResult(e, None)

        logger.debug("Session %s succeeded", query.template.name, extra={
            "extra_data": {"session_id": session_id, "rows": len(result.rows)}
        })
        return StoreResult(None, result)

    def _on_driver_log(self, level: str, logger_name: str, message: str, exc_info: Any) -> None:
        logger.debug("%s [%s]: %s", logger_name, level, message, extra={
            "extra_data": {"driver_logger": logger_name, "driver_level": level}
        })


def _complete(result: StoreResult, callback: Optional[Callback]) -> StoreResult:
    if callback is not None:
        callback(result.error, result.value)
    return result
