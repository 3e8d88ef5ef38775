"""
Asynchronous wrapper around the DataStax Cassandra driver.

The driver exposes callback-based ``ResponseFuture`` objects and a few
blocking calls (connecting, preparing). This module bridges both into
asyncio so the session store can ``await`` a single execution per call.

Retries, load balancing and per-request timeouts stay with the driver.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol

from cassandra.auth import PlainTextAuthProvider
from cassandra.cluster import Cluster, ResponseFuture, Session
from cassandra.query import SimpleStatement, dict_factory

from config.settings import StoreSettings
from errors.exceptions import session_store_unavailable
from session.queries import QueryContext

logger = logging.getLogger(__name__)

DRIVER_LOGGER_NAME = "cassandra"

# listener(level, logger_name, message, exc_info)
LogListener = Callable[[str, str, str, Any], None]


@dataclass
class ExecutionResult:
    """Rows returned by a statement; empty for writes and deletes."""
    rows: list[dict[str, Any]] = field(default_factory=list)

    @property
    def first(self) -> Optional[dict[str, Any]]:
        return self.rows[0] if self.rows else None


class ColumnStoreClient(Protocol):
    """What the session store needs from a column store client."""

    async def connect(self) -> None:
        ...

    async def execute(self, query: QueryContext) -> ExecutionResult:
        ...

    def add_log_listener(self, listener: LogListener) -> None:
        ...

    def remove_log_listener(self, listener: LogListener) -> None:
        ...

    async def shutdown(self) -> None:
        ...


class _ListenerHandler(logging.Handler):
    """Forwards driver log records to a listener callable."""

    def __init__(self, listener: LogListener):
        super().__init__()
        self.listener = listener

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.listener(record.levelname, record.name, record.getMessage(), record.exc_info)
        except Exception:
            self.handleError(record)


class CassandraClient:
    """
    Cassandra client built from store settings.

    Connecting is lazy and shared: concurrent callers wait on the same
    connection attempt, and a failed attempt is reported to every waiter
    and retried by the next call.

    Attributes:
        settings: Settings the cluster was built from.
        cluster: The driver ``Cluster``.
        session: The driver ``Session`` once connected, else None.
    """

    def __init__(self, settings: StoreSettings, cluster: Optional[Cluster] = None):
        self.settings = settings
        self.cluster = cluster if cluster is not None else build_cluster(settings)
        self.session: Optional[Session] = None
        self._connecting: Optional[asyncio.Future] = None
        self._prepared: dict[str, Any] = {}
        self._handlers: list[_ListenerHandler] = []
        self._closed = False

    @property
    def connected(self) -> bool:
        return self.session is not None

    async def connect(self) -> None:
        """
        Connect to the cluster if not already connected.

        Raises:
            cassandra.cluster.NoHostAvailable: If no contact point answers.
            SessionStoreError: If the client has been shut down.
        """
        if self._closed:
            raise session_store_unavailable("Cassandra client has been shut down")
        if self.session is not None:
            return

        if self._connecting is None:
            loop = asyncio.get_running_loop()
            self._connecting = loop.run_in_executor(None, self.cluster.connect)
        connecting = self._connecting

        try:
            session = await asyncio.shield(connecting)
        finally:
            if self._connecting is connecting and connecting.done():
                self._connecting = None

        if self.session is None:
            session.row_factory = dict_factory
            self.session = session
            logger.info("Connected to Cassandra", extra={
                "extra_data": {
                    "contact_points": self.settings.contact_points,
                    "port": self.settings.port,
                }
            })

    async def execute(self, query: QueryContext) -> ExecutionResult:
        """
        Execute a rendered statement with its bound parameters.

        Args:
            query: Statement, parameters and execution options.

        Returns:
            ExecutionResult: All rows, or the first page when auto paging is off.

        Raises:
            Any driver error, unchanged.
        """
        await self.connect()
        statement, parameters = await self._statement(query)
        response = self.session.execute_async(statement, parameters)
        rows = await _collect_rows(response, query.options.auto_page)
        return ExecutionResult(rows=rows)

    async def _statement(self, query: QueryContext) -> tuple[Any, Optional[tuple[Any, ...]]]:
        options = query.options
        if not options.prepare:
            return SimpleStatement(query.statement, fetch_size=options.fetch_size), query.parameters

        prepared = self._prepared.get(query.statement)
        if prepared is None:
            loop = asyncio.get_running_loop()
            prepared = await loop.run_in_executor(None, self.session.prepare, query.statement)
            # Preparing twice is harmless, last writer wins
            self._prepared[query.statement] = prepared

        bound = prepared.bind(query.parameters)
        bound.fetch_size = options.fetch_size
        return bound, None

    def add_log_listener(self, listener: LogListener) -> None:
        """Forward the driver's log records to ``listener``."""
        handler = _ListenerHandler(listener)
        logging.getLogger(DRIVER_LOGGER_NAME).addHandler(handler)
        self._handlers.append(handler)

    def remove_log_listener(self, listener: LogListener) -> None:
        """Stop forwarding driver log records to ``listener``."""
        driver_logger = logging.getLogger(DRIVER_LOGGER_NAME)
        for handler in [h for h in self._handlers if h.listener == listener]:
            driver_logger.removeHandler(handler)
            self._handlers.remove(handler)

    async def shutdown(self) -> None:
        """Close all connections and detach log listeners."""
        self._closed = True
        driver_logger = logging.getLogger(DRIVER_LOGGER_NAME)
        for handler in self._handlers:
            driver_logger.removeHandler(handler)
        self._handlers.clear()

        self.session = None
        self._prepared.clear()
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self.cluster.shutdown)


def build_cluster(settings: StoreSettings) -> Cluster:
    """Create a driver ``Cluster`` from store settings."""
    auth_provider = None
    if settings.username:
        auth_provider = PlainTextAuthProvider(
            username=settings.username,
            password=settings.password,
        )
    return Cluster(
        contact_points=settings.contact_points,
        port=settings.port,
        auth_provider=auth_provider,
        connect_timeout=settings.connect_timeout_ms / 1000,
    )


async def _collect_rows(response: ResponseFuture, auto_page: bool) -> list[dict[str, Any]]:
    """
    Await a ``ResponseFuture``, following result pages when ``auto_page`` is on.

    Driver callbacks run on the driver's event thread, so results are
    handed back to the loop with ``call_soon_threadsafe``.
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future = loop.create_future()
    rows: list[dict[str, Any]] = []

    def resolve(value: Any) -> None:
        if not future.done():
            future.set_result(value)

    def reject(exc: BaseException) -> None:
        if not future.done():
            future.set_exception(exc)

    def on_page(page: Any) -> None:
        if page:
            rows.extend(page)
        if auto_page and response.has_more_pages:
            # Callbacks fire again for the next page
            response.start_fetching_next_page()
        else:
            loop.call_soon_threadsafe(resolve, rows)

    def on_error(exc: BaseException) -> None:
        loop.call_soon_threadsafe(reject, exc)

    response.add_callbacks(callback=on_page, errback=on_error)
    return await future
