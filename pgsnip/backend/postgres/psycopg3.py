"""PostgreSQL pools on psycopg (v3) and psycopg-pool, installed with the ``psycopg`` extra."""

from pgsnip.backend.errors import BackendNotInstalledError
from pgsnip.backend.postgres.base import ConnectionPoolPSQL


class ConnectionPoolPSQLPsycopg3(ConnectionPoolPSQL):
    """A ``psycopg_pool.ConnectionPool``, selected with a ``postgresql+psycopg://`` URL."""

    DRIVER_NAME = "psycopg"

    def _open_pool(self):
        try:
            import psycopg_pool  # pylint: disable=import-outside-toplevel
        except ModuleNotFoundError:  # pragma: no cover
            raise BackendNotInstalledError("Module psycopg-pool not installed, install pgsnip[psycopg]")
        return psycopg_pool.ConnectionPool(
            min_size=self._pool_min_conn,
            max_size=self._pool_max_conn,
            kwargs=self._cnx_kwargs,
            open=True,
        )

    def _close_pool(self):
        self._pool.close()
