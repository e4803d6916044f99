"""The small slice of DB API 2.0 the runner needs: pooled connections, statements and their results."""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
from urllib.parse import parse_qs, urlparse

from pgsnip.backend.errors import ConfigurationError


@dataclass
class ColumnDescriptor:
    """One entry of a cursor description: a result column name and what the driver knows about its type."""

    name: str
    type_code: int
    display_size: int = None
    internal_size: int = None
    precision: int = None
    scale: int = None
    null_ok: bool = None


class ResultSet:
    """What the last statement of a snippet produced.

    Catalog queries produce rows. Commands (``DO``, ``GRANT``, ``REINDEX`` ...) only produce a command tag
    and a row count, fetching from them yields nothing rather than a driver error.
    """

    def __init__(self, cursor):
        """Wrap a cursor that has executed a statement.

        :param cursor: the DB API 2.0 cursor
        """
        self._cursor = cursor
        self._columns = None

    @property
    def returns_rows(self) -> bool:
        """Whether the statement produced a row set."""
        return self._cursor.description is not None

    def fetchone(self) -> Optional[Tuple]:
        """Return the next row, None when exhausted or when the statement has no rows."""
        return self._cursor.fetchone() if self.returns_rows else None

    def fetchall(self) -> List[Tuple]:
        """Return every remaining row, an empty list when the statement has no rows."""
        return self._cursor.fetchall() if self.returns_rows else []

    @property
    def description(self) -> Tuple[ColumnDescriptor, ...]:
        """Return the result columns, an empty tuple for commands."""
        if self._columns is None:
            # psycopg returns Column objects, psycopg2 named tuples, both unpack to the seven DB API fields
            self._columns = tuple(ColumnDescriptor(*tuple(d)[:7]) for d in self._cursor.description or ())
        return self._columns

    @property
    def rowcount(self) -> int:
        """Return the rows returned or affected, -1 when the driver cannot tell."""
        return self._cursor.rowcount

    @property
    def statusmessage(self) -> Optional[str]:
        """Return the command tag the server sent back (``SELECT 3``, ``DO`` ...), if the driver exposes it."""
        return getattr(self._cursor, "statusmessage", None)


class Connection(ABC):
    """A leased driver connection."""

    def __init__(self, cnx, auto_commit: bool = False):
        """Wrap a driver connection.

        :param cnx: the DB API 2.0 connection
        :param auto_commit: commit after every statement, defaults to False
        """
        self.logger = logging.getLogger(__name__)
        self._cnx = cnx
        self._auto_commit = auto_commit

    @property
    def autocommit(self) -> bool:
        """Whether statements run outside of an explicit transaction, as they do in ``psql``."""
        return self._auto_commit

    @autocommit.setter
    def autocommit(self, value: bool):
        self._auto_commit = value
        self._apply_autocommit(value)

    def _apply_autocommit(self, value: bool):
        """Switch the driver connection itself, backends without such a switch leave this alone."""
        pass

    def commit(self):
        """Commit the current transaction."""
        self._cnx.commit()

    def rollback(self):
        """Roll back the current transaction."""
        self._cnx.rollback()

    @abstractmethod
    def _execute(self, cursor, sql: str, params: tuple = None):
        pass  # pragma: no cover

    @contextmanager
    def query(self, sql: str, params: tuple = None) -> ResultSet:
        """Run SQL and provide what its last statement produced as context, closing the cursor afterwards.

        :param sql: one or more statements
        :param params: values to bind, None sends the text exactly as given
        :returns: the result set of the last statement
        """
        cursor = self._cnx.cursor()
        try:
            self._execute(cursor, sql, params)
            yield ResultSet(cursor)
        finally:
            cursor.close()

    def execute(self, sql: str, params: tuple = None, commit: bool = None) -> int:
        """Run SQL for its effect.

        :param sql: one or more statements
        :param params: values to bind, None sends the text exactly as given
        :param commit: commit afterwards, defaults to the autocommit setting
        :returns: the affected row count of the last statement
        """
        with self.query(sql, params) as results:
            affected = results.rowcount
        commit = self._auto_commit if commit is None else commit
        if commit:
            self.commit()
        return affected


class UrlArguments:
    """The query string of a connection URL, consumed one typed argument at a time."""

    def __init__(self, query: str):
        """Parse a query string.

        :param query: the query part of the URL, without the ``?``
        """
        self.logger = logging.getLogger(__name__)
        self._values: Dict[str, List[str]] = parse_qs(query, keep_blank_values=True)

    @staticmethod
    def _to_bool(value: str) -> bool:
        if value.lower() not in ("true", "false"):
            raise ValueError(f"'{value}' is neither true nor false")
        return value.lower() == "true"

    def pop(self, name: str, kind: type, default=None):
        """Take an argument out of the query string.

        :param name: the argument name
        :param kind: ``str``, ``int``, ``bool`` or ``list`` (every value given for a repeated argument)
        :param default: returned when the argument is absent
        :returns: the converted value
        :raises ConfigurationError: if the value does not convert, or a single valued argument is repeated
        """
        if name not in self._values:
            self.logger.debug(f"No '{name}' given, using {default}")
            return default
        values = self._values.pop(name)
        if kind is list:
            return values
        if len(values) != 1:
            raise ConfigurationError(f"Invalid argument '{name}': only a single value must be specified")
        try:
            return self._to_bool(values[0]) if kind is bool else kind(values[0])
        except ValueError as x:
            raise ConfigurationError(f"Invalid argument '{name}': must be {kind.__name__}") from x

    def raise_for_leftovers(self):
        """Raise if arguments remain that no one took.

        :raises ConfigurationError: naming the unexpected arguments
        """
        if self._values:
            raise ConfigurationError(f"Unexpected argument(s): {','.join(self._values)}")


class ConnectionPool(ABC):
    """Hands out connections to the server named by a connection URL."""

    def __init__(self, db_url: str):
        """Parse the connection URL.

        The URL looks like ``{backend}+{driver}://{username}:{password}@{hostname}:{port}/{db_name}?{args}``.

        :param db_url: the connection URL
        """
        self.logger = logging.getLogger(__name__)
        self._raw_db_url = db_url
        self._db_url = urlparse(db_url)
        self._args = UrlArguments(self._db_url.query)

    @property
    def safe_url(self) -> str:
        """Return the connection URL with its password masked, for logs and error messages."""
        if self._db_url.password is None:
            return self._raw_db_url
        netloc = self._db_url.netloc.replace(f":{self._db_url.password}@", ":***@", 1)
        return self._db_url._replace(netloc=netloc).geturl()

    @abstractmethod
    def lease(self) -> Connection:
        """Take a connection out of the pool."""
        pass  # pragma: no cover

    @abstractmethod
    def release(self, cnx: Connection):
        """Give a leased connection back."""
        pass  # pragma: no cover

    @abstractmethod
    def dispose(self):
        """Close every connection of the pool, doing nothing when it is already closed."""
        pass  # pragma: no cover
