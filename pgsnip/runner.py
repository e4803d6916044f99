"""Runs rendered snippets against a PostgreSQL server."""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, List, Tuple

from pgsnip.backend.base import ColumnDescriptor, Connection, ConnectionPool
from pgsnip.catalog import Snippet
from pgsnip.errors import NotRunnableError, UnsupportedServerVersionError
from pgsnip.rendering import SQLQuoter

SERVER_VERSION_SQL = "SHOW server_version_num"


@dataclass
class SnippetResult:
    """What running a snippet produced: the rows of its last statement, or its command tag."""

    snippet: Snippet
    sql: str
    columns: Tuple[ColumnDescriptor, ...] = ()
    rows: List[Tuple] = field(default_factory=list)
    rowcount: int = -1
    status: str = None

    @property
    def column_names(self) -> List[str]:
        """Return the names of the result columns."""
        return [c.name for c in self.columns]

    def as_dicts(self) -> List[dict]:
        """Return the rows as dictionaries keyed by column name."""
        return [{d.name: row[col] for col, d in enumerate(self.columns)} for row in self.rows]


def parse_server_version(version_num: int) -> Tuple[int, int]:
    """Turn ``server_version_num`` into ``(major, minor)``.

    Before PostgreSQL 10 the major version had two parts (90605 is 9.6), from 10 onward it has one
    (120003 is 12).

    :param version_num: the integer value of the ``server_version_num`` setting
    :returns: the major and minor version as they are written in snippet requirements
    """
    if version_num >= 100000:
        return version_num // 10000, 0
    return version_num // 10000, (version_num // 100) % 100


def render_sql(snippet: Snippet, values: dict = None) -> str:
    """Render a snippet as it would be sent to the server.

    :param snippet: the snippet to render
    :param values: placeholder values keyed by upper-case name
    :returns: the SQL text
    :raises NotRunnableError, MissingPlaceholderError, UnknownPlaceholderError
    """
    if not snippet.is_runnable:
        raise NotRunnableError(f"'{snippet.title}' is a {snippet.language} command, run it from a shell")
    return snippet.render(values, SQLQuoter())


class SnippetRunner:
    """Executes snippets over connections leased from a pool.

    Snippet text is sent as written, with placeholders replaced by quoted values and no bind parameters,
    exactly as an operator pasting it into ``psql`` would. By default each statement is committed as it
    runs; with ``autocommit=False`` everything run inside one :meth:`connection` context is one transaction.
    """

    def __init__(self, pool: ConnectionPool, autocommit: bool = True):
        """Construct a snippet runner.

        :param pool: the pool connections are leased from
        :param autocommit: commit every statement as it runs, defaults to True
        """
        self.logger = logging.getLogger(__name__)
        self._pool = pool
        self._autocommit = autocommit
        self._context_store = threading.local()
        self._server_version = None

    @property
    def pool(self) -> ConnectionPool:
        """Get the connection pool used by this runner."""
        return self._pool

    @contextmanager
    def connection(self) -> Iterator[Connection]:
        """Context manager for the connection snippets run on.

        An active connection will be kept and yielded, provided to all contexts within the context that initially
        asked for it.

        Any exception caught during the context of a connection will trigger a rollback of the transaction. The
        transaction is committed when execution is yielded back.
        """
        active_cnx = getattr(self._context_store, "active_cnx", None)
        if active_cnx:
            yield active_cnx
            return
        cnx = self._pool.lease()
        self._context_store.active_cnx = cnx
        try:
            cnx.autocommit = self._autocommit
            yield cnx
            cnx.commit()
        except BaseException:
            cnx.rollback()
            raise
        finally:
            self._context_store.active_cnx = None
            if self._autocommit:
                cnx.autocommit = False
            self._pool.release(cnx)

    def server_version(self) -> Tuple[int, int]:
        """Return the ``(major, minor)`` version of the server, asking it once."""
        if self._server_version is None:
            with self.connection() as cnx:
                with cnx.query(SERVER_VERSION_SQL) as results:
                    row = results.fetchone()
            self._server_version = parse_server_version(int(row[0]))
            self.logger.debug(f"Server version is {self._server_version}")
        return self._server_version

    def check_version(self, snippet: Snippet):
        """Raise if the server is too old for the snippet.

        :param snippet: the snippet about to run
        :raises UnsupportedServerVersionError
        """
        if not snippet.min_version:
            return
        version = self.server_version()
        if version < tuple(snippet.min_version):
            found = ".".join(map(str, version))
            error = f"'{snippet.title}' needs PostgreSQL {snippet.version_label}, the server runs {found}"
            raise UnsupportedServerVersionError(error)

    def run(self, snippet: Snippet, values: dict = None, check_version: bool = True) -> SnippetResult:
        """Render and execute a snippet.

        :param snippet: the snippet to run
        :param values: placeholder values keyed by upper-case name
        :param check_version: refuse to run on servers older than the snippet supports, defaults to True
        :returns: the result of the last statement of the snippet
        :raises NotRunnableError, UnsupportedServerVersionError, RenderingError
        """
        sql = render_sql(snippet, values)
        with self.connection() as cnx:
            if check_version:
                self.check_version(snippet)
            self.logger.info(f"Running '{snippet.title}'")
            self.logger.debug(f"SQL:\n{sql}")
            with cnx.query(sql) as results:
                result = SnippetResult(
                    snippet=snippet,
                    sql=sql,
                    columns=results.description,
                    rows=results.fetchall(),
                    rowcount=results.rowcount,
                    status=results.statusmessage,
                )
        self.logger.debug(f"'{snippet.title}' returned {len(result.rows)} row(s), status {result.status}")
        return result
