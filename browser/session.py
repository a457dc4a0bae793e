"""QuerySession: one open table view.

Lifecycle:
    LOADING -> READY <-> FILTERING / PAGINATING -> CLOSED

Every fetch is read-then-swap: the driver call completes before any of the
session's rows, filters, or page counters change, so a failed fetch leaves
the view exactly as it was. Sessions share nothing with each other; two views
of the same table each issue their own reads.
"""
from __future__ import annotations
from enum import Enum
from typing import List, Optional

from drivers.base_driver import Driver
from drivers.config import DriverConfig
from drivers.errors import DriverError, QueryError
from drivers.logging_util import debug, info, warn
from drivers.structure import primary_key_from_columns
from drivers.types import (
    ColumnDescriptor, Matrix, PaginatedResult, Pagination, SORT_ASC, SORT_DESC, TableStructure,
)

from .errors import SessionClosedError, SessionStateError
from .predicate import combine_filters


class SessionState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    FILTERING = "filtering"
    PAGINATING = "paginating"
    CLOSED = "closed"


class QuerySession:
    def __init__(self, driver: Driver, database: str, table: str,
                 config: Optional[DriverConfig] = None, page_size: Optional[int] = None):
        self.driver = driver
        self.database = database
        self.table = table
        self.config = config or getattr(driver, "config", None) or DriverConfig.from_env()
        self.page_size = page_size if page_size is not None else self.config.page_size
        self.state = SessionState.LOADING
        self.columns: List[ColumnDescriptor] = []
        self.structure: Optional[TableStructure] = None
        self.active_filters: List[str] = []
        self.data: Matrix = []
        self.baseline: Matrix = []
        self.page = 1
        self.total_rows = 0
        self.total_pages = 1
        self.sort_column: Optional[str] = None
        self.sort_order = SORT_ASC
        self.last_error: Optional[str] = None

    def __repr__(self) -> str:
        return (f"QuerySession(table={self.table!r}, state={self.state.value}, page={self.page}/"
                f"{self.total_pages}, filters={len(self.active_filters)})")

    # --- Views ----------------------------------------------------------------------
    @property
    def header(self) -> List[str]:
        return self.data[0] if self.data else []

    @property
    def rows(self) -> Matrix:
        return self.data[1:]

    @property
    def baseline_rows(self) -> Matrix:
        return self.baseline[1:]

    @property
    def predicate(self) -> str:
        return combine_filters(self.active_filters)

    @property
    def primary_key(self) -> str:
        return primary_key_from_columns(self.columns)

    # --- Guards ---------------------------------------------------------------------
    def _check_open(self) -> None:
        if self.state is SessionState.CLOSED:
            raise SessionClosedError(f"session on {self.table} is closed")

    def require_ready(self) -> None:
        self._check_open()
        if self.state is not SessionState.READY:
            raise SessionStateError(f"session on {self.table} is {self.state.value}, expected ready")

    # --- Fetching -------------------------------------------------------------------
    def _pagination(self, page: int, sort_column: Optional[str], sort_order: str) -> Pagination:
        return Pagination(page=page, page_size=self.page_size,
                          sort_column=sort_column, sort_order=sort_order)

    def _fetch(self, predicate: str, page: int, sort_column: Optional[str] = None,
               sort_order: Optional[str] = None) -> PaginatedResult:
        pagination = self._pagination(
            page,
            self.sort_column if sort_column is None else sort_column,
            sort_order or self.sort_order,
        )
        if predicate:
            return self.driver.get_table_data_with_filter_paginated(
                self.database, self.table, predicate, pagination)
        return self.driver.get_table_data_paginated(self.database, self.table, pagination)

    def _swap(self, result: PaginatedResult) -> None:
        self.data = result.data
        self.page = result.page
        self.page_size = result.page_size if result.page_size > 0 else self.page_size
        self.total_rows = result.total_rows
        self.total_pages = result.total_pages

    def _attempt(self, next_state: SessionState, action: str, fetch):
        """Run fetch() in next_state; READY again afterwards whatever happens."""
        self.state = next_state
        try:
            result = fetch()
        except QueryError as e:
            self.last_error = str(e)
            warn("session_fetch_failed", table=self.table, action=action, error=str(e))
            raise
        finally:
            self.state = SessionState.READY
        self.last_error = None
        return result

    # --- Operations -----------------------------------------------------------------
    def load(self, filters: Optional[List[str]] = None) -> "QuerySession":
        """Columns, soft structure, then page 1; optional filters pre-seed the view."""
        self._check_open()
        seed = [f for f in (filters or []) if f and f.strip()]
        self.state = SessionState.LOADING
        try:
            columns = self.driver.get_table_columns(self.database, self.table)
            self.columns = list(columns)
            if self.sort_column is None and self.primary_key:
                self.sort_column = self.primary_key
            result = self._fetch(combine_filters(seed), 1)
        except QueryError as e:
            self.last_error = str(e)
            warn("session_load_failed", table=self.table, error=str(e))
            raise
        self.load_structure()
        self._swap(result)
        if not seed:
            self.baseline = result.data
        self.active_filters = seed
        self.last_error = None
        self.state = SessionState.READY
        info("session_ready", table=self.table, rows=len(self.rows), total_rows=self.total_rows,
             filters=len(seed))
        return self

    def seed(self, columns: List[ColumnDescriptor], data: Matrix, filters: List[str],
             structure: Optional[TableStructure] = None) -> "QuerySession":
        """Enter READY from rows already fetched elsewhere (foreign-key jumps)."""
        self._check_open()
        self.columns = list(columns)
        if self.sort_column is None and self.primary_key:
            self.sort_column = self.primary_key
        self.structure = structure
        self.data = data
        self.active_filters = list(filters)
        self.page = 1
        self.total_rows = max(len(data) - 1, 0)
        # unpaginated, row-capped fetch: everything sits on page 1
        self.total_pages = 1
        self.last_error = None
        self.state = SessionState.READY
        return self

    def apply_filter(self, text: str) -> bool:
        """Add one AND-term. Returns False for blank text; raises QueryError on failure."""
        self.require_ready()
        term = (text or "").strip()
        if not term:
            return False
        filters = self.active_filters + [term]
        result = self._attempt(SessionState.FILTERING, "apply_filter",
                               lambda: self._fetch(combine_filters(filters), 1))
        self._swap(result)
        self.active_filters = filters
        debug("filter_applied", table=self.table, filters=len(filters), total_rows=self.total_rows)
        return True

    def clear_filters(self) -> bool:
        self.require_ready()
        result = self._attempt(SessionState.FILTERING, "clear_filters", lambda: self._fetch("", 1))
        self._swap(result)
        self.active_filters = []
        self.baseline = result.data
        return True

    def _turn_to(self, page: int) -> bool:
        predicate = self.predicate
        result = self._attempt(SessionState.PAGINATING, "paginate",
                               lambda: self._fetch(predicate, page))
        self._swap(result)
        return True

    def next_page(self) -> bool:
        self.require_ready()
        if self.page >= self.total_pages:
            return False
        return self._turn_to(self.page + 1)

    def prev_page(self) -> bool:
        self.require_ready()
        if self.page <= 1:
            return False
        return self._turn_to(self.page - 1)

    def set_sort(self, column: Optional[str], order: str = SORT_ASC) -> bool:
        """Re-read page 1 ordered by column; None returns to the primary-key order."""
        self.require_ready()
        column = column or self.primary_key or None
        order = SORT_DESC if (order or "").upper() == SORT_DESC else SORT_ASC
        predicate = self.predicate
        result = self._attempt(SessionState.PAGINATING, "set_sort",
                               lambda: self._fetch(predicate, 1, column or "", order))
        self._swap(result)
        self.sort_column, self.sort_order = column, order
        return True

    def load_structure(self) -> Optional[TableStructure]:
        """Structure for FK decoration. Failures are logged and yield None."""
        self._check_open()
        try:
            self.structure = self.driver.get_table_structure(self.database, self.table)
        except DriverError as e:
            warn("structure_unavailable", table=self.table, error=str(e))
            self.structure = None
        return self.structure

    def close(self) -> None:
        if self.state is SessionState.CLOSED:
            return
        self.data, self.baseline, self.columns = [], [], []
        self.active_filters = []
        self.structure = None
        self.state = SessionState.CLOSED
        debug("session_closed", table=self.table)
