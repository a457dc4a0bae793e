"""Driver abstraction layer.

Defines the one contract the browser layer consumes so MySQL, PostgreSQL,
SQLite, and MongoDB can be swapped behind it. Implementations own exactly one
backend handle between connect() and close().

KISS: only the operations a table browser needs are abstracted.
"""
from __future__ import annotations
from typing import Protocol, Dict, List, Any, Optional, Sequence

from .types import (
    ColumnDescriptor, ColumnInfo, IndexInfo, Matrix, PaginatedResult, Pagination,
    RelationInfo, TableStructure, TriggerInfo,
)

class CursorLike(Protocol):  # pragma: no cover - structural typing helper
    description: Optional[Sequence[Sequence[Any]]]
    rowcount: int
    def execute(self, *args, **kwargs): ...
    def fetchall(self) -> List[Any]: ...
    def fetchone(self) -> Any: ...
    def close(self): ...

class ConnectionLike(Protocol):  # pragma: no cover - structural typing helper
    def cursor(self, *args, **kwargs) -> CursorLike: ...
    def close(self): ...

class Driver(Protocol):
    kind: Any

    def connect(self, url: str) -> None:
        """Open and ping the backend handle. Raises DriverConnectionError."""
        ...

    def test_connection(self, url: str) -> None:
        """Probe url with a throwaway handle; leaves no state behind."""
        ...

    def close(self) -> None: ...

    def get_tables(self, database: str) -> Dict[str, List[str]]: ...

    def get_table_columns(self, database: str, table: str) -> List[ColumnDescriptor]: ...

    def get_table_data(self, database: str, table: str) -> Matrix: ...

    def get_table_data_with_filter(self, database: str, table: str, predicate: str) -> Matrix: ...

    def get_table_data_paginated(self, database: str, table: str,
                                 pagination: Pagination) -> PaginatedResult: ...

    def get_table_data_with_filter_paginated(self, database: str, table: str, predicate: str,
                                             pagination: Pagination) -> PaginatedResult: ...

    def get_table_structure(self, database: str, table: str) -> TableStructure: ...

    def get_column_info(self, database: str, table: str) -> List[ColumnInfo]: ...

    def get_index_info(self, database: str, table: str) -> List[IndexInfo]: ...

    def get_relation_info(self, database: str, table: str) -> List[RelationInfo]: ...

    def get_trigger_info(self, database: str, table: str) -> List[TriggerInfo]: ...

    def execute_query(self, query: str) -> Matrix:
        """Run a raw statement. Backends without a query language raise
        UnsupportedOperationError."""
        ...
