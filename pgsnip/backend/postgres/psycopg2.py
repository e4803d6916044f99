"""PostgreSQL pools on psycopg2, the default driver."""

from pgsnip.backend.errors import BackendNotInstalledError
from pgsnip.backend.postgres.base import ConnectionPoolPSQL


class ConnectionPoolPSQLPsycopg2(ConnectionPoolPSQL):
    """A psycopg2 ``SimpleConnectionPool``, or a ``ThreadedConnectionPool`` with ``pool_threaded=true``.

    ``pool_threaded`` is the one query argument psycopg2 adds to the common PostgreSQL ones, it defaults to
    false since a single command line invocation uses a single thread.
    """

    DRIVER_NAME = "psycopg2"

    def _take_driver_args(self):
        self._pool_threaded = self._args.pop("pool_threaded", bool, False)

    def _open_pool(self):
        try:
            import psycopg2.pool  # pylint: disable=import-outside-toplevel
        except ModuleNotFoundError:  # pragma: no cover
            raise BackendNotInstalledError("Module psycopg2 not installed, cannot create connection pool")
        pool_class = psycopg2.pool.ThreadedConnectionPool if self._pool_threaded else psycopg2.pool.SimpleConnectionPool
        return pool_class(minconn=self._pool_min_conn, maxconn=self._pool_max_conn, **self._cnx_kwargs)

    def _close_pool(self):
        self._pool.closeall()
