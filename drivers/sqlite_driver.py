"""SQLite driver.

    - URL forms sqlite://<path> and file:<path>; a leading // is stripped
    - Friendly errors for missing files and directory paths before SQLite's cryptic ones
    - foreign_keys=ON on every handle, otherwise foreign_key_list comes back empty
    - Trigger lookup failures degrade to an empty list inside get_table_structure
"""
from __future__ import annotations
import sqlite3, os
from typing import Dict, List, Optional

from .config import DriverConfig
from .errors import DriverConnectionError, QueryError
from .logging_util import info, warn
from .sql_driver import SQLDriver, trigger_from_ddl
from .types import (
    ColumnDescriptor, ColumnInfo, DriverKind, IndexInfo, RelationInfo, TriggerInfo,
)
from .urls import sqlite_path

BUSY_TIMEOUT_MS = 30000


class SQLiteDriver(SQLDriver):
    kind = DriverKind.SQLITE
    param = "?"
    library_errors = (sqlite3.Error,)

    def __init__(self, config: Optional[DriverConfig] = None):
        super().__init__(config)
        self.path: Optional[str] = None

    # --- Lifecycle ------------------------------------------------------------------
    @staticmethod
    def _open(url: str) -> sqlite3.Connection:
        path = sqlite_path(url)
        if os.path.isdir(path):  # directory misuse
            raise DriverConnectionError(f"Path points to a directory, expected file: {path}")
        if not os.path.exists(path):
            # Friendly pre-check; sqlite3.connect would silently create the file
            raise DriverConnectionError(f"SQLite database not found: {path}")
        try:
            conn = sqlite3.connect(path, check_same_thread=False, isolation_level=None)
        except sqlite3.Error as e:
            raise DriverConnectionError(f"cannot open SQLite database {path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA foreign_keys = ON")
            conn.execute(f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS}")
            # ping: fails here for files that are not SQLite databases
            conn.execute("SELECT count(*) FROM sqlite_master").fetchone()
        except sqlite3.Error as e:
            conn.close()
            raise DriverConnectionError(f"not a usable SQLite database {path}: {e}") from e
        return conn

    def connect(self, url: str) -> None:
        self.close()
        self.connection = self._open(url)
        self.path = sqlite_path(url)
        info("connected", driver=self.kind.value, path=self.path)

    def test_connection(self, url: str) -> None:
        self._open(url).close()

    # --- Dialect --------------------------------------------------------------------
    def quote_identifier(self, name: str) -> str:
        return '"' + name.replace('"', '""') + '"'

    def table_ref(self, database: str, table: str) -> str:
        # one file, one schema: the database argument is only a display key
        return self.quote_identifier(table)

    # --- Enumeration ----------------------------------------------------------------
    def get_tables(self, database: str) -> Dict[str, List[str]]:
        rows = self._rows(
            "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
        )
        return {database: [r["name"] for r in rows]}

    def _table_info(self, table: str):
        return self._rows(f"PRAGMA table_info({self.quote_identifier(table)})")

    def get_table_columns(self, database: str, table: str) -> List[ColumnDescriptor]:
        return [
            ColumnDescriptor(
                name=r["name"],
                data_type=r["type"] or "",
                nullable=r["notnull"] == 0,
                key="PRI" if r["pk"] else "",
                default=r["dflt_value"] if r["dflt_value"] is not None else "",
            )
            for r in self._table_info(table)
        ]

    # --- Structure ------------------------------------------------------------------
    def get_column_info(self, database: str, table: str) -> List[ColumnInfo]:
        return [
            ColumnInfo(
                name=r["name"],
                data_type=r["type"] or "",
                nullable=r["notnull"] == 0,
                is_primary_key=bool(r["pk"]),
                default_value=r["dflt_value"] if r["dflt_value"] is not None else "",
            )
            for r in self._table_info(table)
        ]

    def get_index_info(self, database: str, table: str) -> List[IndexInfo]:
        indexes = []
        for r in self._rows(f"PRAGMA index_list({self.quote_identifier(table)})"):
            name = r["name"]
            try:
                cols = [c["name"] for c in self._rows(f"PRAGMA index_info({self.quote_identifier(name)})")]
            except QueryError as e:
                warn("index_columns_failed", table=table, index=name, error=str(e))
                cols = []
            indexes.append(IndexInfo(
                name=name,
                columns=cols,
                is_unique=bool(r["unique"]),
                is_primary=r["origin"] == "pk",
                type="BTREE",
            ))
        return indexes

    def get_relation_info(self, database: str, table: str) -> List[RelationInfo]:
        relations = []
        for r in self._rows(f"PRAGMA foreign_key_list({self.quote_identifier(table)})"):
            relations.append(RelationInfo(
                name=f"fk_{table}_{r['from']}",
                column=r["from"],
                referenced_table=r["table"],
                # NULL "to" means the parent's primary key
                referenced_column=r["to"] or self._primary_key(r["table"]),
                on_update=r["on_update"],
                on_delete=r["on_delete"],
            ))
        return relations

    def _primary_key(self, table: str) -> str:
        for r in self._table_info(table):
            if r["pk"]:
                return r["name"]
        return "rowid"

    def get_trigger_info(self, database: str, table: str) -> List[TriggerInfo]:
        rows = self._rows(
            "SELECT name, tbl_name, sql FROM sqlite_master WHERE type='trigger' AND tbl_name = ? ORDER BY name",
            (table,),
        )
        return [trigger_from_ddl(r["name"], r["tbl_name"], r["sql"]) for r in rows]
