"""PostgreSQL driver backed by psycopg2.

A connection works inside exactly one resolved schema at a time. Resolution
runs at connect time and again whenever get_tables runs:

    1. a schema literally named "public", if present
    2. else the alphabetically-first schema outside SYSTEM_SCHEMAS
    3. else "public" anyway (later calls surface "relation does not exist")

get_tables still enumerates every non-system schema for display; data,
column, and structure calls address only the resolved schema.
"""
from __future__ import annotations
import re
from typing import Dict, Iterable, List, Optional

import psycopg2

from .config import DriverConfig
from .errors import DriverConnectionError
from .logging_util import debug, info
from .sql_driver import SQLDriver
from .types import (
    ColumnDescriptor, ColumnInfo, DriverKind, IndexInfo, RelationInfo, TriggerInfo,
)

DEFAULT_SCHEMA = "public"
SYSTEM_SCHEMAS = ("pg_catalog", "information_schema", "pg_toast", "pg_temp_1")

_SYSTEM_LIST = ", ".join(f"'{s}'" for s in SYSTEM_SCHEMAS)


def resolve_schema(schemas: Iterable[str]) -> str:
    names = set(schemas)
    if DEFAULT_SCHEMA in names:
        return DEFAULT_SCHEMA
    candidates = sorted(n for n in names if n not in SYSTEM_SCHEMAS)
    return candidates[0] if candidates else DEFAULT_SCHEMA


class PostgresDriver(SQLDriver):
    kind = DriverKind.POSTGRES
    library_errors = (psycopg2.Error,)

    def __init__(self, config: Optional[DriverConfig] = None):
        super().__init__(config)
        self.schema: str = DEFAULT_SCHEMA

    # --- Lifecycle ------------------------------------------------------------------
    @staticmethod
    def _open(url: str):
        try:
            conn = psycopg2.connect(url)
        except psycopg2.Error as e:
            raise DriverConnectionError(f"cannot connect to PostgreSQL: {e}") from e
        conn.autocommit = True
        try:
            with conn.cursor() as cur:
                cur.execute("SELECT 1")
        except psycopg2.Error as e:
            conn.close()
            raise DriverConnectionError(f"PostgreSQL ping failed: {e}") from e
        return conn

    def connect(self, url: str) -> None:
        self.close()
        self.connection = self._open(url)
        self.detect_schema()
        info("connected", driver=self.kind.value, schema=self.schema)

    def test_connection(self, url: str) -> None:
        self._open(url).close()

    def detect_schema(self) -> str:
        rows = self._rows("SELECT schema_name FROM information_schema.schemata")
        self.schema = resolve_schema(r[0] for r in rows)
        debug("using_schema", schema=self.schema)
        return self.schema

    # --- Dialect --------------------------------------------------------------------
    def quote_identifier(self, name: str) -> str:
        return '"' + name.replace('"', '""') + '"'

    def table_ref(self, database: str, table: str) -> str:
        return f"{self.quote_identifier(self.schema)}.{self.quote_identifier(table)}"

    # --- Enumeration ----------------------------------------------------------------
    def get_tables(self, database: str) -> Dict[str, List[str]]:
        database = database or self._require().info.dbname
        rows = self._rows(
            "SELECT table_schema, table_name FROM information_schema.tables "
            "WHERE table_catalog = %s AND table_type = 'BASE TABLE' "
            f"AND table_schema NOT IN ({_SYSTEM_LIST}) "
            "ORDER BY table_schema, table_name",
            (database,),
        )
        tables: Dict[str, List[str]] = {}
        for schema, name in rows:
            tables.setdefault(schema, []).append(name)
        self.detect_schema()
        return tables

    def _primary_keys(self, table: str) -> List[str]:
        rows = self._rows(
            "SELECT kcu.column_name FROM information_schema.table_constraints tc "
            "JOIN information_schema.key_column_usage kcu "
            "ON kcu.constraint_name = tc.constraint_name AND kcu.table_schema = tc.table_schema "
            "WHERE tc.constraint_type = 'PRIMARY KEY' AND tc.table_schema = %s AND tc.table_name = %s "
            "ORDER BY kcu.ordinal_position",
            (self.schema, table),
        )
        return [r[0] for r in rows]

    def _columns(self, table: str):
        return self._rows(
            "SELECT c.column_name, c.data_type, c.is_nullable, c.column_default, "
            "col_description(format('%%I.%%I', c.table_schema, c.table_name)::regclass, c.ordinal_position) "
            "FROM information_schema.columns c "
            "WHERE c.table_schema = %s AND c.table_name = %s ORDER BY c.ordinal_position",
            (self.schema, table),
        )

    def get_table_columns(self, database: str, table: str) -> List[ColumnDescriptor]:
        pks = set(self._primary_keys(table))
        return [
            ColumnDescriptor(name=r[0], data_type=r[1], nullable=r[2] == "YES",
                             key="PRI" if r[0] in pks else "", default=r[3] or "")
            for r in self._columns(table)
        ]

    # --- Structure ------------------------------------------------------------------
    def get_column_info(self, database: str, table: str) -> List[ColumnInfo]:
        pks = set(self._primary_keys(table))
        return [
            ColumnInfo(name=r[0], data_type=r[1], nullable=r[2] == "YES", is_primary_key=r[0] in pks,
                       default_value=r[3] or "", comment=r[4] or "")
            for r in self._columns(table)
        ]

    def get_index_info(self, database: str, table: str) -> List[IndexInfo]:
        rows = self._rows(
            "SELECT i.indexname, i.indexdef, ix.indisunique, ix.indisprimary "
            "FROM pg_indexes i "
            "JOIN pg_class c ON c.relname = i.indexname "
            "JOIN pg_namespace n ON n.oid = c.relnamespace AND n.nspname = i.schemaname "
            "JOIN pg_index ix ON ix.indexrelid = c.oid "
            "WHERE i.schemaname = %s AND i.tablename = %s ORDER BY i.indexname",
            (self.schema, table),
        )
        return [
            IndexInfo(name=r[0], columns=index_columns(r[1]), is_unique=bool(r[2]),
                      is_primary=bool(r[3]), type=index_method(r[1]))
            for r in rows
        ]

    def get_relation_info(self, database: str, table: str) -> List[RelationInfo]:
        rows = self._rows(
            "SELECT tc.constraint_name, kcu.column_name, ccu.table_name, ccu.column_name, "
            "rc.update_rule, rc.delete_rule "
            "FROM information_schema.table_constraints tc "
            "JOIN information_schema.key_column_usage kcu "
            "ON tc.constraint_name = kcu.constraint_name AND tc.table_schema = kcu.table_schema "
            "JOIN information_schema.constraint_column_usage ccu "
            "ON ccu.constraint_name = tc.constraint_name AND ccu.table_schema = tc.table_schema "
            "JOIN information_schema.referential_constraints rc "
            "ON rc.constraint_name = tc.constraint_name AND rc.constraint_schema = tc.table_schema "
            "WHERE tc.constraint_type = 'FOREIGN KEY' AND tc.table_schema = %s AND tc.table_name = %s "
            "ORDER BY tc.constraint_name, kcu.column_name",
            (self.schema, table),
        )
        return [
            RelationInfo(name=r[0], column=r[1], referenced_table=r[2], referenced_column=r[3],
                         on_update=r[4] or "", on_delete=r[5] or "")
            for r in rows
        ]

    def get_trigger_info(self, database: str, table: str) -> List[TriggerInfo]:
        rows = self._rows(
            "SELECT trigger_name, event_manipulation, action_timing, action_statement, event_object_table "
            "FROM information_schema.triggers "
            "WHERE trigger_schema = %s AND event_object_table = %s ORDER BY trigger_name",
            (self.schema, table),
        )
        return [
            TriggerInfo(name=r[0], event=r[1], timing=r[2], statement=r[3] or "", table=r[4])
            for r in rows
        ]


_INDEX_METHOD_RE = re.compile(r"\bUSING\s+(\w+)", re.IGNORECASE)


def index_columns(indexdef: str) -> List[str]:
    """Column list of a pg_indexes.indexdef, e.g. 'CREATE INDEX i ON t USING btree (a, b)'."""
    text = indexdef or ""
    start = text.find("(")
    if start < 0:
        return []
    cols, depth, cur = [], 0, ""
    for ch in text[start + 1:]:
        if ch == "(":
            depth += 1
        elif ch == ")":
            if depth == 0:
                break
            depth -= 1
        if ch == "," and depth == 0:
            cols.append(cur.strip())
            cur = ""
            continue
        cur += ch
    if cur.strip():
        cols.append(cur.strip())
    return [c[1:-1].replace('""', '"') if c.startswith('"') and c.endswith('"') else c for c in cols]


def index_method(indexdef: str) -> str:
    m = _INDEX_METHOD_RE.search(indexdef or "")
    return m.group(1).upper() if m else "BTREE"
