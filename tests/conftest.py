"""
Shared pytest fixtures and configuration for all tests.
"""
import os
from typing import Any, Optional

import pytest

# Hypothesis configuration for property-based testing
from hypothesis import HealthCheck, settings, Verbosity, Phase

from config.settings import StoreSettings, clear_settings_cache
from session.client import ExecutionResult
from session.queries import QueryContext

# Default profile: balanced for local development
settings.register_profile(
    "default",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None,
    # The autouse environment fixture is function scoped but idempotent
    suppress_health_check=[HealthCheck.function_scoped_fixture],
    print_blob=True,
)

# CI profile: more thorough testing for continuous integration
settings.register_profile(
    "ci",
    max_examples=200,
    verbosity=Verbosity.verbose,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
    print_blob=True,
    derandomize=True,
)

# Debug profile: minimal examples for quick debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
    print_blob=True,
    phases=[Phase.explicit, Phase.reuse, Phase.generate],
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep store settings independent of the developer's environment."""
    for key in list(os.environ):
        if key.upper().startswith("SESSION_STORE_") or key.upper() == "ENVIRONMENT":
            monkeypatch.delenv(key, raising=False)
    # .env files are looked up relative to the working directory
    monkeypatch.chdir(tmp_path)
    clear_settings_cache()
    yield
    clear_settings_cache()


class FakeColumnStoreClient:
    """
    In-memory stand-in for a Cassandra client.

    Interprets the three session statements against a dict keyed by
    session id and records every executed query.
    """

    def __init__(self) -> None:
        self.rows: dict[str, dict[str, Any]] = {}
        self.ttls: dict[str, int] = {}
        self.executed: list[QueryContext] = []
        self.listeners: list[Any] = []
        self.connect_calls = 0
        self.connect_error: Optional[BaseException] = None
        self.execute_error: Optional[BaseException] = None
        self.shutdown_calls = 0

    async def connect(self) -> None:
        self.connect_calls += 1
        if self.connect_error is not None:
            raise self.connect_error

    async def execute(self, query: QueryContext) -> ExecutionResult:
        self.executed.append(query)
        if self.execute_error is not None:
            raise self.execute_error

        name = query.template.name
        if name == "select":
            (sid,) = query.parameters
            row = self.rows.get(sid)
            return ExecutionResult(rows=[dict(row)] if row else [])
        if name == "update":
            ttl, payload, sid = query.parameters
            self.rows[sid] = {"sid": sid, "sobject": payload}
            self.ttls[sid] = ttl
            return ExecutionResult()
        if name == "delete":
            (sid,) = query.parameters
            self.rows.pop(sid, None)
            self.ttls.pop(sid, None)
            return ExecutionResult()
        return ExecutionResult()

    def add_log_listener(self, listener: Any) -> None:
        self.listeners.append(listener)

    def remove_log_listener(self, listener: Any) -> None:
        self.listeners.remove(listener)

    async def shutdown(self) -> None:
        self.shutdown_calls += 1


@pytest.fixture
def fake_client() -> FakeColumnStoreClient:
    """Create an in-memory column store client for unit tests."""
    return FakeColumnStoreClient()


@pytest.fixture
def store_settings() -> StoreSettings:
    """Production settings with the default keyspace and table."""
    return StoreSettings(keyspace="ks")


@pytest.fixture
def sample_session() -> dict:
    """Sample session as written by a session middleware."""
    return {
        "cookie": {
            "originalMaxAge": 10000,
            "maxAge": 10000,
            "path": "/",
            "secure": False,
            "httpOnly": False,
            "sameSite": "none",
        },
        "user_id": "user-42",
        "cart": ["sku-1", "sku-2"],
        "flash": {"notice": "Welcome back"},
    }
