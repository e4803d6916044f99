"""Helpful fixtures for running snippets against a live PostgreSQL server."""

import os
import uuid

import pytest


@pytest.fixture()
def rand_db_name() -> str:
    """Generate a random database name."""
    return f"test_{str(uuid.uuid4()).replace('-', '')}"


@pytest.fixture()
def psql_settings() -> dict:
    """Provide the connection settings of the test postgres instance, from $PGSNIP_TEST_PSQL_* variables."""
    return {
        "dbname": os.environ.get("PGSNIP_TEST_PSQL_DB", "postgres"),
        "host": os.environ.get("PGSNIP_TEST_PSQL_HOST", "localhost"),
        "user": os.environ.get("PGSNIP_TEST_PSQL_USER", "psql_test_user"),
        "password": os.environ.get("PGSNIP_TEST_PSQL_PASS", "psql_test_pass"),
        "port": int(os.getenv("PGSNIP_TEST_PSQL_PORT", 15432)),
    }


@pytest.fixture()
def tmp_psql_db(psql_settings: dict, rand_db_name: str) -> dict:
    """Create a throw away database on the test postgres instance, skip the test when there is no instance."""
    import psycopg2
    from tests.backend import postgres_test_sql as test_sql

    try:
        cnx = psycopg2.connect(connect_timeout=3, **psql_settings)
    except psycopg2.OperationalError as x:
        pytest.skip(f"No test postgres instance: {x}")
    cnx.autocommit = True
    cursor = cnx.cursor()
    cursor.execute(f"CREATE DATABASE {rand_db_name}")
    yield dict(psql_settings, dbname=rand_db_name)
    cursor.execute(test_sql.TERMINATE_DB_CONNS, (rand_db_name,))
    cursor.execute(f"DROP DATABASE {rand_db_name}")
    cursor.close()
    cnx.close()


def _db_url(engine: str, settings: dict) -> str:
    return (
        f"postgresql+{engine}://{settings['user']}:{settings['password']}"
        f"@{settings['host']}:{settings['port']}/{settings['dbname']}"
    )


@pytest.fixture()
def tmp_psql_db_url(tmp_psql_db: dict) -> str:
    """Provide a psycopg2 DB Connection Pool URL for a throw away database."""
    return _db_url("psycopg2", tmp_psql_db)


@pytest.fixture()
def tmp_psycopg3_db_url(tmp_psql_db: dict) -> str:
    """Provide a psycopg (v3) DB Connection Pool URL for a throw away database."""
    return _db_url("psycopg", tmp_psql_db)
