"""Connection pools for the servers snippets run on."""

from urllib.parse import urlparse

from pgsnip.backend.base import Connection, ConnectionPool, ResultSet
from pgsnip.backend.errors import ConfigurationError, UnsupportedBackendError
from pgsnip.backend.postgres import ConnectionPoolPSQLPsycopg2, ConnectionPoolPSQLPsycopg3

SCHEMES = ("postgresql", "postgres")
DEFAULT_ENGINE = "psycopg2"
POOL_CLASSES = {"psycopg2": ConnectionPoolPSQLPsycopg2, "psycopg": ConnectionPoolPSQLPsycopg3}


def create_connection_pool(db_url: str) -> ConnectionPool:
    """Create a connection pool for a connection URL.

    The URL looks like ``postgresql+{driver}://{username}:{password}@{hostname}:{port}/{db_name}?{args}``
    where the driver is ``psycopg2`` (the default when ``+{driver}`` is left out) or ``psycopg`` (v3).

    :param db_url: the connection URL
    :returns: an open connection pool
    :raises: ConfigurationError, UnsupportedBackendError, BackendNotInstalledError
    """
    scheme = urlparse(db_url).scheme
    if not scheme:
        raise ConfigurationError("No database backend specified")
    backend, _, engine = scheme.partition("+")
    pool_class = POOL_CLASSES.get(engine or DEFAULT_ENGINE) if backend in SCHEMES else None
    if pool_class is None:
        raise UnsupportedBackendError(f"The backend+engine '{scheme}' is not supported")
    return pool_class(db_url)


__all__ = ["Connection", "ConnectionPool", "ResultSet", "create_connection_pool", "errors"]
