"""Error taxonomy for the data-access layer.

Adapters translate client-library exceptions into these types (chained with
``from``) so callers never need to import PyMySQL, psycopg2, or PyMongo to
handle failures.
"""
from __future__ import annotations


class DriverError(Exception):
    """Base class for every error raised by a driver."""


class DriverConnectionError(DriverError):
    """Bad URL, unreachable host, or failed authentication. Never retried."""


class QueryError(DriverError):
    """Malformed predicate, missing table/column, or any failed data fetch."""


class StructureError(DriverError):
    """Metadata lookup failed. Callers degrade to 'no structure'."""


class UnsupportedOperationError(DriverError):
    """The backend has no equivalent for the requested operation."""


class NotConnectedError(DriverError, RuntimeError):
    """A driver was used before connect() or after close()."""
