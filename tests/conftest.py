"""
Pytest configuration for tigen.

Provides fixtures for:
- An in-memory fake database standing in for the connection provider
- Settings and connection parameters for integration tests
"""

from __future__ import annotations

import os

import pymysql
import pytest

from tests.fakes import FakeDatabase
from tigen.config import Settings
from tigen.infrastructure.db_factory import ConnectionParams


@pytest.fixture()
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("TIGEN_DB_HOST", "127.0.0.1"),
        db_port=int(os.getenv("TIGEN_DB_PORT", "4000")),
        db_user=os.getenv("TIGEN_DB_USER", "root"),
        db_password=os.getenv("TIGEN_DB_PASSWORD", ""),
        db_name=os.getenv("TIGEN_DB_NAME", "tigen_test"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_params(test_settings: Settings) -> ConnectionParams:
    return ConnectionParams.from_settings(test_settings)


@pytest.fixture(scope="session")
def db_connection_available(test_params: ConnectionParams) -> bool:
    """
    Check if the server is reachable.

    Used to conditionally skip integration tests when it is not.
    """
    try:
        conn = pymysql.connect(**test_params.connect_kwargs(with_database=False))
    except pymysql.MySQLError:
        return False
    conn.close()
    return True


@pytest.fixture()
def db_connection(test_params: ConnectionParams, db_connection_available: bool):
    """
    Provide a connection to the test schema for assertions.

    Skips tests if the server is not available.
    """
    if not db_connection_available:
        pytest.skip("MySQL/TiDB not available for integration tests")

    conn = pymysql.connect(**test_params.connect_kwargs(with_database=False))
    try:
        with conn.cursor() as cur:
            cur.execute(f"create database if not exists `{test_params.database}`")
        conn.select_db(test_params.database)
        yield conn
    finally:
        conn.close()
