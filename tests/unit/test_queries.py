"""
Unit tests for the CQL statement templates.

Tests cover:
- Table name resolution with and without a keyspace
- Statement shapes and bind marker styles
- Session ids and payloads never appearing in statement text
"""

import pytest

from config.settings import QueryOptions
from session.queries import (
    DELETE,
    SCHEMA,
    SELECT,
    UPDATE,
    delete_query,
    resolve_table_name,
    select_query,
    update_query,
)


class TestResolveTableName:
    """Tests for resolve_table_name."""
    
    def test_keyspace_with_default_table(self):
        assert resolve_table_name("ks", "sessions") == "ks.sessions"
    
    def test_keyspace_with_table_override(self):
        assert resolve_table_name("ks", "custom") == "ks.custom"
    
    def test_without_keyspace(self):
        assert resolve_table_name("", "sessions") == "sessions"


class TestTemplates:
    """Tests for QueryTemplate rendering."""
    
    def test_select_shape(self):
        assert SELECT.render("ks.sessions") == "SELECT sobject FROM ks.sessions WHERE sid = ?"
    
    def test_update_shape(self):
        assert UPDATE.render("ks.sessions") == (
            "UPDATE ks.sessions USING TTL ? SET sobject = ? WHERE sid = ?"
        )
    
    def test_delete_shape(self):
        assert DELETE.render("ks.sessions") == "DELETE FROM ks.sessions WHERE sid = ?"
    
    def test_schema_shape(self):
        assert SCHEMA.render("ks.sessions") == (
            "CREATE TABLE IF NOT EXISTS ks.sessions (sid text PRIMARY KEY, sobject text)"
        )
    
    def test_simple_statements_use_driver_markers(self):
        assert UPDATE.render("t", prepared=False) == (
            "UPDATE t USING TTL %s SET sobject = %s WHERE sid = %s"
        )


class TestQueryContexts:
    """Tests for the per-operation query builders."""
    
    @pytest.fixture
    def options(self):
        return QueryOptions()
    
    def test_select_binds_session_id(self, options):
        query = select_query("ks.sessions", "abc", options)
        
        assert query.template is SELECT
        assert query.parameters == ("abc",)
        assert query.options is options
    
    def test_update_binds_ttl_payload_and_id(self, options):
        query = update_query("ks.sessions", "abc", 10, '{"a":1}', options)
        
        assert query.template is UPDATE
        assert query.parameters == (10, '{"a":1}', "abc")
    
    def test_delete_binds_session_id(self, options):
        query = delete_query("ks.sessions", "abc", options)
        
        assert query.template is DELETE
        assert query.parameters == ("abc",)
    
    def test_hostile_session_id_stays_out_of_statement(self, options):
        sid = "x'; DROP TABLE ks.sessions; --"
        payload = '{"name":"\'; DELETE FROM ks.sessions; --"}'
        
        query = update_query("ks.sessions", sid, 10, payload, options)
        
        assert sid not in query.statement
        assert "DROP" not in query.statement
        assert "DELETE" not in query.statement
        assert query.parameters[1:] == (payload, sid)
    
    def test_unprepared_options_render_simple_markers(self):
        query = select_query("t", "abc", QueryOptions(prepare=False))
        
        assert query.statement == "SELECT sobject FROM t WHERE sid = %s"
