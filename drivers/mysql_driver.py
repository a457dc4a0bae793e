"""MySQL driver backed by PyMySQL.

Tables are addressed as `database`.`table`; all catalog lookups go through
information_schema with bound parameters.
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional

import pymysql

from .config import DriverConfig
from .errors import DriverConnectionError
from .logging_util import info
from .sql_driver import SQLDriver, group_index_rows
from .types import (
    ColumnDescriptor, ColumnInfo, DriverKind, IndexInfo, RelationInfo, TriggerInfo,
)
from .urls import mysql_params


class MySQLDriver(SQLDriver):
    kind = DriverKind.MYSQL
    library_errors = (pymysql.MySQLError,)

    def __init__(self, config: Optional[DriverConfig] = None):
        super().__init__(config)
        self.database: str = ""

    # --- Lifecycle ------------------------------------------------------------------
    @staticmethod
    def _open(url: str):
        params = mysql_params(url)
        try:
            conn = pymysql.connect(autocommit=True, charset=params.pop("charset", "utf8mb4"), **params)
            conn.ping(reconnect=False)
        except pymysql.MySQLError as e:
            raise DriverConnectionError(f"cannot connect to MySQL: {e}") from e
        return conn, params.get("database") or ""

    def connect(self, url: str) -> None:
        self.close()
        self.connection, self.database = self._open(url)
        info("connected", driver=self.kind.value, database=self.database)

    def test_connection(self, url: str) -> None:
        conn, _ = self._open(url)
        conn.close()

    # --- Dialect --------------------------------------------------------------------
    def quote_identifier(self, name: str) -> str:
        return "`" + name.replace("`", "``") + "`"

    def _db(self, database: str) -> str:
        return database or self.database

    def table_ref(self, database: str, table: str) -> str:
        db = self._db(database)
        if not db:
            return self.quote_identifier(table)
        return f"{self.quote_identifier(db)}.{self.quote_identifier(table)}"

    # --- Enumeration ----------------------------------------------------------------
    def get_tables(self, database: str) -> Dict[str, List[str]]:
        db = self._db(database)
        rows = self._rows(
            "SELECT TABLE_NAME FROM information_schema.TABLES WHERE TABLE_SCHEMA = %s ORDER BY TABLE_NAME",
            (db,),
        )
        return {db: [r[0] for r in rows]}

    def get_table_columns(self, database: str, table: str) -> List[ColumnDescriptor]:
        rows = self._rows(
            "SELECT COLUMN_NAME, DATA_TYPE, IS_NULLABLE, COLUMN_KEY, COLUMN_DEFAULT, EXTRA "
            "FROM information_schema.COLUMNS WHERE TABLE_SCHEMA = %s AND TABLE_NAME = %s "
            "ORDER BY ORDINAL_POSITION",
            (self._db(database), table),
        )
        return [
            ColumnDescriptor(name=r[0], data_type=r[1], nullable=r[2] == "YES", key=r[3] or "",
                             default=_text(r[4]), extra=_text(r[5]))
            for r in rows
        ]

    # --- Structure ------------------------------------------------------------------
    def get_column_info(self, database: str, table: str) -> List[ColumnInfo]:
        rows = self._rows(
            "SELECT COLUMN_NAME, COLUMN_TYPE, IS_NULLABLE, COLUMN_KEY, COLUMN_DEFAULT, EXTRA, COLUMN_COMMENT "
            "FROM information_schema.COLUMNS WHERE TABLE_SCHEMA = %s AND TABLE_NAME = %s "
            "ORDER BY ORDINAL_POSITION",
            (self._db(database), table),
        )
        return [
            ColumnInfo(name=r[0], data_type=r[1], nullable=r[2] == "YES", is_primary_key=r[3] == "PRI",
                       default_value=_text(r[4]), extra=_text(r[5]), comment=_text(r[6]))
            for r in rows
        ]

    def get_index_info(self, database: str, table: str) -> List[IndexInfo]:
        rows = self._rows(
            "SELECT INDEX_NAME, COLUMN_NAME, NON_UNIQUE, INDEX_TYPE "
            "FROM information_schema.STATISTICS WHERE TABLE_SCHEMA = %s AND TABLE_NAME = %s "
            "ORDER BY INDEX_NAME, SEQ_IN_INDEX",
            (self._db(database), table),
        )
        grouped = group_index_rows([
            {"name": r[0], "column": r[1], "non_unique": r[2], "type": r[3]} for r in rows
        ])
        return [
            IndexInfo(name=g["name"], columns=g["columns"], is_unique=not int(g["non_unique"]),
                      is_primary=g["name"] == "PRIMARY", type=g["type"] or "BTREE")
            for g in grouped
        ]

    def get_relation_info(self, database: str, table: str) -> List[RelationInfo]:
        rows = self._rows(
            "SELECT k.CONSTRAINT_NAME, k.COLUMN_NAME, k.REFERENCED_TABLE_NAME, k.REFERENCED_COLUMN_NAME, "
            "r.UPDATE_RULE, r.DELETE_RULE "
            "FROM information_schema.KEY_COLUMN_USAGE k "
            "JOIN information_schema.REFERENTIAL_CONSTRAINTS r "
            "ON r.CONSTRAINT_SCHEMA = k.CONSTRAINT_SCHEMA AND r.CONSTRAINT_NAME = k.CONSTRAINT_NAME "
            "WHERE k.TABLE_SCHEMA = %s AND k.TABLE_NAME = %s AND k.REFERENCED_TABLE_NAME IS NOT NULL "
            "ORDER BY k.CONSTRAINT_NAME, k.ORDINAL_POSITION",
            (self._db(database), table),
        )
        return [
            RelationInfo(name=r[0], column=r[1], referenced_table=r[2], referenced_column=r[3],
                         on_update=_text(r[4]), on_delete=_text(r[5]))
            for r in rows
        ]

    def get_trigger_info(self, database: str, table: str) -> List[TriggerInfo]:
        rows = self._rows(
            "SELECT TRIGGER_NAME, EVENT_MANIPULATION, ACTION_TIMING, ACTION_STATEMENT, EVENT_OBJECT_TABLE "
            "FROM information_schema.TRIGGERS WHERE EVENT_OBJECT_SCHEMA = %s AND EVENT_OBJECT_TABLE = %s "
            "ORDER BY TRIGGER_NAME",
            (self._db(database), table),
        )
        return [
            TriggerInfo(name=r[0], event=r[1], timing=r[2], statement=_text(r[3]), table=r[4])
            for r in rows
        ]


def _text(val: Any) -> str:
    if val is None:
        return ""
    if isinstance(val, (bytes, bytearray)):
        return bytes(val).decode("utf-8", errors="replace")
    return str(val)
