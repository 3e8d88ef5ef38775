"""
CQL statement templates for the session table.

The table holds one row per session::

    sid     text PRIMARY KEY   -- session id
    sobject text               -- JSON-encoded session

Expiry uses Cassandra's per-row TTL (``USING TTL``), not a column.

Only the table name is rendered into the statement text, and it is
validated as a CQL identifier by the store settings. The session id, the
TTL and the payload are always bound parameters.
"""

from dataclasses import dataclass
from typing import Any

from config.settings import QueryOptions


@dataclass(frozen=True)
class QueryTemplate:
    """A statement shape parameterized by table name, with ``?`` bind markers."""
    name: str
    cql: str
    
    def render(self, table: str, prepared: bool = True) -> str:
        """
        Render the statement for ``table``.
        
        Prepared statements keep ``?`` markers; simple statements use the
        driver's ``%s`` markers.
        """
        statement = self.cql.format(table=table)
        if not prepared:
            statement = statement.replace("?", "%s")
        return statement


SELECT = QueryTemplate("select", "SELECT sobject FROM {table} WHERE sid = ?")
UPDATE = QueryTemplate("update", "UPDATE {table} USING TTL ? SET sobject = ? WHERE sid = ?")
DELETE = QueryTemplate("delete", "DELETE FROM {table} WHERE sid = ?")

SCHEMA = QueryTemplate(
    "schema",
    "CREATE TABLE IF NOT EXISTS {table} (sid text PRIMARY KEY, sobject text)",
)


@dataclass(frozen=True)
class QueryContext:
    """A rendered statement, its bound values and the shared execution options."""
    template: QueryTemplate
    statement: str
    parameters: tuple[Any, ...]
    options: QueryOptions


def resolve_table_name(keyspace: str, table: str) -> str:
    """
    Qualify ``table`` with ``keyspace`` when one is given.
    
    >>> resolve_table_name("ks", "sessions")
    'ks.sessions'
    >>> resolve_table_name("", "sessions")
    'sessions'
    """
    if keyspace:
        return f"{keyspace}.{table}"
    return table


def build_query(
    template: QueryTemplate,
    table: str,
    parameters: tuple[Any, ...],
    options: QueryOptions
) -> QueryContext:
    """Render ``template`` for ``table`` and pair it with its bound values."""
    return QueryContext(
        template=template,
        statement=template.render(table, prepared=options.prepare),
        parameters=parameters,
        options=options,
    )


def select_query(table: str, session_id: str, options: QueryOptions) -> QueryContext:
    return build_query(SELECT, table, (session_id,), options)


def update_query(
    table: str,
    session_id: str,
    ttl: int,
    payload: str,
    options: QueryOptions
) -> QueryContext:
    return build_query(UPDATE, table, (ttl, payload, session_id), options)


def delete_query(table: str, session_id: str, options: QueryOptions) -> QueryContext:
    return build_query(DELETE, table, (session_id,), options)
