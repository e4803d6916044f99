"""Implementation of PostgreSQL backends."""

from pgsnip.backend.postgres.base import ConnectionPSQL, ConnectionPoolPSQL
from pgsnip.backend.postgres.psycopg2 import ConnectionPoolPSQLPsycopg2
from pgsnip.backend.postgres.psycopg3 import ConnectionPoolPSQLPsycopg3

__all__ = [
    "ConnectionPSQL",
    "ConnectionPoolPSQL",
    "ConnectionPoolPSQLPsycopg2",
    "ConnectionPoolPSQLPsycopg3",
]
