"""Errors raised while configuring or opening a connection to a PostgreSQL server."""


class BackendError(Exception):
    """Base exception for connection pool and driver problems."""

    pass


class UnsupportedBackendError(BackendError):
    """Raised when the connection URL names a database or driver other than PostgreSQL via psycopg."""

    pass


class ConfigurationError(BackendError):
    """Raised when the connection URL or one of its query arguments is invalid."""

    pass


class BackendNotInstalledError(BackendError):
    """Raised when the driver named in the connection URL cannot be imported."""

    pass
