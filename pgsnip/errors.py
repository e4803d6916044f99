"""Defines common errors raised when running snippets against a server."""


class RunnerError(Exception):
    """Base exception for errors when running a snippet."""

    pass


class NotRunnableError(RunnerError):
    """Raised when a snippet is not SQL, e.g. a ``pg_dump`` command line."""

    pass


class UnsupportedServerVersionError(RunnerError):
    """Raised when the server is older than the oldest version a snippet supports."""

    pass
