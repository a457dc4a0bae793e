"""Driver construction by database kind.

Client libraries are imported lazily so a SQLite-only install never needs the
server drivers' wheels to import this package.
"""
from __future__ import annotations
from typing import Optional, Union

from .base_driver import Driver
from .config import DriverConfig
from .logging_util import debug
from .types import DriverKind


def new_driver(kind: Union[DriverKind, str], config: Optional[DriverConfig] = None) -> Driver:
    """Fresh, unconnected driver for ``kind``; raises ValueError for unknown kinds."""
    if not isinstance(kind, DriverKind):
        kind = DriverKind.parse(kind)
    debug("new_driver", kind=kind.value)
    if kind is DriverKind.SQLITE:
        from .sqlite_driver import SQLiteDriver
        return SQLiteDriver(config)
    if kind is DriverKind.MYSQL:
        from .mysql_driver import MySQLDriver
        return MySQLDriver(config)
    if kind is DriverKind.POSTGRES:
        from .postgres_driver import PostgresDriver
        return PostgresDriver(config)
    if kind is DriverKind.MONGODB:
        from .mongodb_driver import MongoDBDriver
        return MongoDBDriver(config)
    raise ValueError(f"unsupported database type: {kind!r}")
