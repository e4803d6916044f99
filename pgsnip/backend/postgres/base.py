"""What psycopg2 and psycopg (v3) pools have in common: URL arguments, leasing and autocommit."""

from abc import abstractmethod
from typing import Dict, Tuple

from pgsnip.backend.base import Connection, ConnectionPool
from pgsnip.backend.errors import ConfigurationError

DEFAULT_APPLICATION_NAME = "pgsnip"


class ConnectionPSQL(Connection):
    """A psycopg2 or psycopg (v3) connection, both follow DB API 2.0 closely enough to share this."""

    def _execute(self, cursor, sql: str, params: tuple = None):
        cursor.execute(sql, params)

    def _apply_autocommit(self, value: bool):
        # Both drivers refuse the switch while a transaction is open
        self._cnx.autocommit = value


class ConnectionPoolPSQL(ConnectionPool):
    """Turns a ``postgresql`` URL into driver connection arguments and a pool of connections.

    Query arguments understood by every driver:

        * schema, repeatable, the search path of the connections, defaults to "public"
        * pool_min_conn, connections opened up front, defaults to 1
        * pool_max_conn, the most connections ever opened, defaults to pool_min_conn
        * sslmode, "prefer", "verify-full" ..., defaults to the driver's own default
        * sslrootcert, the CA file used to verify the server certificate
        * application_name, reported in pg_stat_activity, defaults to "pgsnip"
        * connect_timeout, seconds to wait for the server, defaults to waiting forever

    Drivers take what they add on top (``pool_threaded`` ...) before anything left over is rejected.
    """

    DRIVER_NAME = None

    def __init__(self, db_url: str):
        """Parse the URL and open the pool.

        :param db_url: ``postgresql+{driver}://{username}:{password}@{hostname}:{port}/{db_name}?{args}``
        :raises: ConfigurationError, BackendNotInstalledError
        """
        super().__init__(db_url)
        self._cnx_kwargs = self._connect_kwargs()
        self._pool_min_conn, self._pool_max_conn = self._pool_size()
        self._take_driver_args()
        self._args.raise_for_leftovers()
        self.logger.debug(f"Opening {self.DRIVER_NAME} pool for {self.safe_url}")
        self._pool = self._open_pool()

    def _connect_kwargs(self) -> Dict:
        url = self._db_url
        dbname = url.path.strip("/")
        if not dbname:
            raise ConfigurationError("Database name is required but missing")
        search_path = ",".join(self._args.pop("schema", list, ["public"]))
        kwargs = {
            "dbname": dbname,
            "user": url.username,
            "password": url.password,
            "host": url.hostname,
            "port": url.port,
            "options": f"-c search_path={search_path}",
            "application_name": self._args.pop("application_name", str, DEFAULT_APPLICATION_NAME),
        }
        for name in ("sslmode", "sslrootcert"):
            value = self._args.pop(name, str)
            if value:
                kwargs[name] = value
        timeout = self._args.pop("connect_timeout", int)
        if timeout is not None:
            if timeout < 0:
                raise ConfigurationError("The argument connect_timeout must not be negative")
            kwargs["connect_timeout"] = timeout
        return kwargs

    def _pool_size(self) -> Tuple[int, int]:
        min_conn = self._args.pop("pool_min_conn", int, 1)
        max_conn = self._args.pop("pool_max_conn", int, min_conn)
        if min_conn <= 0 or max_conn <= 0:
            raise ConfigurationError("The pool_max_conn and pool_min_conn must be greater than 0")
        if max_conn < min_conn:
            raise ConfigurationError("The argument pool_max_conn must be greater or equal to pool_min_conn")
        return min_conn, max_conn

    def _take_driver_args(self):
        """Take the query arguments only this driver understands."""
        pass

    @abstractmethod
    def _open_pool(self):
        pass  # pragma: no cover

    @abstractmethod
    def _close_pool(self):
        pass  # pragma: no cover

    def lease(self) -> Connection:  # noqa: D102
        return ConnectionPSQL(self._pool.getconn())

    def release(self, cnx: Connection):  # noqa: D102
        self._pool.putconn(cnx._cnx)

    def dispose(self):  # noqa: D102
        if not self._pool.closed:
            self._close_pool()
