"""Shared relational implementation for the MySQL, PostgreSQL, and SQLite drivers.

Subclasses supply the connection handle, identifier quoting, the table
reference, catalog queries, and the client library's exception base. Data
retrieval, pagination, filtering, and raw execution live here.

Filter predicates are raw dialect SQL appended verbatim after WHERE; they are
never parameterized. This is the literal WHERE-clause box of the browser and
the caller owns that trust boundary. Catalog lookups, which take names rather
than predicates, always bind their arguments.
"""
from __future__ import annotations
import re
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from .config import DriverConfig
from .errors import NotConnectedError, QueryError
from .logging_util import debug, info, warn
from .structure import build_structure
from .types import (
    DriverKind, Matrix, PaginatedResult, Pagination, TableStructure, TriggerInfo,
)
from .values import format_value

ROWS_AFFECTED = "rows_affected"


class SQLDriver:
    kind: DriverKind
    # DB-API paramstyle marker used by catalog queries
    param = "%s"
    # client-library exception base(s) translated into QueryError
    library_errors: Tuple[type, ...] = ()

    def __init__(self, config: Optional[DriverConfig] = None):
        self.config = config or DriverConfig.from_env()
        self.connection: Any = None

    # --- Dialect hooks --------------------------------------------------------------
    def quote_identifier(self, name: str) -> str:
        raise NotImplementedError

    def table_ref(self, database: str, table: str) -> str:
        raise NotImplementedError

    # --- Lifecycle ------------------------------------------------------------------
    def close(self) -> None:
        if self.connection is None:
            return
        try:
            self.connection.close()
        except self.library_errors as e:
            warn("close_failed", driver=self.kind.value, error=str(e))
        self.connection = None
        info("disconnected", driver=self.kind.value)

    def _require(self):
        if self.connection is None:
            raise NotConnectedError(f"{self.kind.value} driver is not connected")
        return self.connection

    @contextmanager
    def _translate(self, what: str) -> Iterator[None]:
        try:
            yield
        except self.library_errors as e:
            raise QueryError(f"{what} failed: {e}") from e

    # --- Execution ------------------------------------------------------------------
    def _run(self, query: str, params: Optional[Sequence[Any]] = None) -> Tuple[List[str], List[Any], int]:
        """Execute one statement; return (header, raw rows, rowcount)."""
        conn = self._require()
        debug("executing_query", driver=self.kind.value, query=query, params=list(params or []))
        with self._translate("query"):
            cur = conn.cursor()
            try:
                if params:
                    cur.execute(query, params)
                else:
                    cur.execute(query)
                if cur.description is None:
                    return [], [], cur.rowcount
                header = [d[0] for d in cur.description]
                return header, list(cur.fetchall()), cur.rowcount
            finally:
                cur.close()

    def _rows(self, query: str, params: Optional[Sequence[Any]] = None) -> List[Any]:
        return self._run(query, params)[1]

    def _matrix(self, query: str, params: Optional[Sequence[Any]] = None) -> Matrix:
        header, rows, _ = self._run(query, params)
        return _to_matrix(header, rows)

    def _scalar(self, query: str, params: Optional[Sequence[Any]] = None) -> Any:
        rows = self._rows(query, params)
        return rows[0][0] if rows else None

    # --- Query building -------------------------------------------------------------
    def _from(self, database: str, table: str, predicate: str = "") -> str:
        clause = f" FROM {self.table_ref(database, table)}"
        if predicate and predicate.strip():
            clause += " WHERE " + predicate
        return clause

    def _order_by(self, pagination: Pagination) -> str:
        if not pagination.sort_column:
            return ""
        return f" ORDER BY {self.quote_identifier(pagination.sort_column)} {pagination.order}"

    def _window(self, pagination: Pagination) -> Tuple[int, int, int]:
        """(page, limit, offset); page_size <= 0 degrades to one capped page."""
        if pagination.page_size <= 0:
            return 1, self.config.row_limit, 0
        return max(pagination.page, 1), pagination.page_size, pagination.offset()

    # --- Data -----------------------------------------------------------------------
    def get_table_data(self, database: str, table: str) -> Matrix:
        return self.get_table_data_with_filter(database, table, "")

    def get_table_data_with_filter(self, database: str, table: str, predicate: str) -> Matrix:
        query = "SELECT *" + self._from(database, table, predicate) + f" LIMIT {self.config.row_limit}"
        return self._matrix(query)

    def get_table_data_paginated(self, database: str, table: str,
                                 pagination: Pagination) -> PaginatedResult:
        return self.get_table_data_with_filter_paginated(database, table, "", pagination)

    def get_table_data_with_filter_paginated(self, database: str, table: str, predicate: str,
                                             pagination: Pagination) -> PaginatedResult:
        source = self._from(database, table, predicate)
        total_rows = int(self._scalar("SELECT COUNT(*)" + source) or 0)
        page, limit, offset = self._window(pagination)
        query = "SELECT *" + source + self._order_by(pagination) + f" LIMIT {limit} OFFSET {offset}"
        debug("paginated_query", driver=self.kind.value, table=table, page=page,
              page_size=limit, offset=offset, filtered=bool(predicate))
        data = self._matrix(query)
        return PaginatedResult.build(data, total_rows, page, limit)

    # --- Structure ------------------------------------------------------------------
    def get_table_structure(self, database: str, table: str) -> TableStructure:
        return build_structure(self, database, table)

    # --- Raw queries ----------------------------------------------------------------
    def execute_query(self, query: str) -> Matrix:
        header, rows, rowcount = self._run(query)
        if not header:
            return [[ROWS_AFFECTED], [str(max(rowcount, 0))]]
        return _to_matrix(header, rows)


def _to_matrix(header: List[str], rows: Sequence[Any]) -> Matrix:
    data: Matrix = [header]
    for row in rows:
        data.append([format_value(v) for v in row])
    return data


def trigger_from_ddl(name: str, table: str, sql: Optional[str]) -> TriggerInfo:
    """Timing and event parsed from a CREATE TRIGGER statement's header."""
    statement = sql or ""
    trig = TriggerInfo(name=name, table=table, statement=statement)
    head = re.split(r"\bBEGIN\b", statement, maxsplit=1, flags=re.IGNORECASE)[0].upper()
    m = re.search(r"\b(BEFORE|AFTER|INSTEAD\s+OF)\s+(INSERT|UPDATE|DELETE)\b", head)
    if m:
        trig.timing = " ".join(m.group(1).split())
        trig.event = m.group(2)
        return trig
    m = re.search(r"\b(INSERT|UPDATE|DELETE)\b", head)
    if m:
        # no explicit timing means BEFORE in SQLite
        trig.timing = "BEFORE"
        trig.event = m.group(1)
    return trig


def group_index_rows(rows: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Collapse one-row-per-column catalog output into one entry per index."""
    grouped: Dict[str, Dict[str, Any]] = {}
    for row in rows:
        entry = grouped.setdefault(row["name"], {**row, "columns": []})
        if row.get("column"):
            entry["columns"].append(row["column"])
    return list(grouped.values())
