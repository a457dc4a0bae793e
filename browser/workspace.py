"""Entry points consumed by the terminal UI.

The Workspace owns one connected driver per open connection and hands out
QuerySessions for table views. It never persists connections itself; saving
goes through a caller-supplied ConnectionStore after a successful probe.
"""
from __future__ import annotations
from typing import Dict, List, Optional, Protocol, Union

from drivers.base_driver import Driver
from drivers.config import DriverConfig
from drivers.errors import DriverError, NotConnectedError
from drivers.logging_util import info, warn
from drivers.registry import new_driver
from drivers.types import Connection, DriverKind, Matrix, SORT_ASC, TableStructure
from drivers.urls import database_name

from .navigator import goto_foreign_key
from .session import QuerySession


class ConnectionStore(Protocol):
    def save(self, connection: Connection) -> Connection:
        """Persist and return the record, typically with its id filled in."""
        ...


class Workspace:
    def __init__(self, config: Optional[DriverConfig] = None):
        self.config = config or DriverConfig.from_env()
        self._drivers: Dict[Union[int, str], Driver] = {}
        # database argument sessions pass, per connection
        self._databases: Dict[Union[int, str], str] = {}
        self._tabs: List[QuerySession] = []

    @staticmethod
    def _key(connection: Connection) -> Union[int, str]:
        return connection.id if connection.id is not None else connection.name

    # --- Connections ----------------------------------------------------------------
    def test_connection(self, kind: Union[DriverKind, str], url: str) -> None:
        new_driver(kind, self.config).test_connection(url)

    def create_connection(self, store: ConnectionStore, name: str,
                          kind: Union[DriverKind, str], url: str) -> Connection:
        """Probe first; the store only sees connections that answered."""
        if not isinstance(kind, DriverKind):
            kind = DriverKind.parse(kind)
        self.test_connection(kind, url)
        saved = store.save(Connection(name=name, kind=kind, url=url))
        info("connection_saved", name=name, kind=kind.value)
        return saved

    def connect(self, connection: Connection) -> Dict[str, List[str]]:
        """Open (or reopen) the connection's driver and list its tables."""
        self.disconnect(connection)
        driver = new_driver(connection.kind, self.config)
        driver.connect(connection.url)
        key = self._key(connection)
        self._drivers[key] = driver
        database = database_name(connection.kind, connection.url)
        tables = driver.get_tables(database)
        if connection.kind is DriverKind.MONGODB and tables:
            # the listing may have fallen back to another database
            database = next(iter(tables))
        self._databases[key] = database
        return tables

    def driver_for(self, connection: Connection) -> Driver:
        try:
            return self._drivers[self._key(connection)]
        except KeyError:
            raise NotConnectedError(f"connection {connection.name!r} is not open") from None

    def disconnect(self, connection: Connection) -> None:
        self._databases.pop(self._key(connection), None)
        driver = self._drivers.pop(self._key(connection), None)
        if driver is None:
            return
        for tab in [t for t in self._tabs if t.driver is driver]:
            self.close_tab(tab)
        driver.close()

    # --- Tabs -----------------------------------------------------------------------
    def open_table(self, connection: Connection, table: str) -> QuerySession:
        driver = self.driver_for(connection)
        database = self._databases.get(self._key(connection))
        if database is None:
            database = database_name(connection.kind, connection.url)
        tab = QuerySession(driver, database, table,
                           config=self.config)
        tab.load()
        self._tabs.append(tab)
        return tab

    def apply_filter(self, tab: QuerySession, text: str) -> bool:
        return tab.apply_filter(text)

    def clear_filters(self, tab: QuerySession) -> bool:
        return tab.clear_filters()

    def next_page(self, tab: QuerySession) -> bool:
        return tab.next_page()

    def prev_page(self, tab: QuerySession) -> bool:
        return tab.prev_page()

    def set_sort(self, tab: QuerySession, column: Optional[str], order: str = SORT_ASC) -> bool:
        return tab.set_sort(column, order)

    def goto_foreign_key(self, tab: QuerySession, row: int, col: int) -> QuerySession:
        target = goto_foreign_key(tab, row, col)
        self._tabs.append(target)
        return target

    def load_structure(self, tab: QuerySession) -> Optional[TableStructure]:
        return tab.load_structure()

    def execute_raw_query(self, connection: Connection, sql: str) -> Matrix:
        return self.driver_for(connection).execute_query(sql)

    def close_tab(self, tab: QuerySession) -> None:
        tab.close()
        if tab in self._tabs:
            self._tabs.remove(tab)

    @property
    def tabs(self) -> List[QuerySession]:
        return list(self._tabs)

    def close(self) -> None:
        for tab in list(self._tabs):
            self.close_tab(tab)
        for key, driver in list(self._drivers.items()):
            try:
                driver.close()
            except DriverError as e:
                warn("driver_close_failed", connection=str(key), error=str(e))
        self._drivers.clear()
        self._databases.clear()
