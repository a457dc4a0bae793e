"""Value objects shared by every driver and the browser layer.

Plain dataclasses only; nothing here talks to a database.
"""
from __future__ import annotations
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

Matrix = List[List[str]]


class DriverKind(str, Enum):
    MYSQL = "mysql"
    POSTGRES = "postgres"
    SQLITE = "sqlite"
    MONGODB = "mongodb"

    @classmethod
    def parse(cls, raw: str) -> "DriverKind":
        """Accept the canonical names plus the aliases seen in saved connections."""
        key = (raw or "").strip().lower()
        aliases = {
            "postgresql": cls.POSTGRES,
            "pg": cls.POSTGRES,
            "sqlite3": cls.SQLITE,
            "mongo": cls.MONGODB,
            "mongodb+srv": cls.MONGODB,
            "mongodb-atlas": cls.MONGODB,
        }
        if key in aliases:
            return aliases[key]
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"unsupported database type: {raw!r}") from None


@dataclass
class Connection:
    name: str
    kind: DriverKind
    url: str
    id: Optional[int] = None


SORT_ASC = "ASC"
SORT_DESC = "DESC"


@dataclass
class Pagination:
    page: int = 1
    page_size: int = 100
    sort_column: Optional[str] = None
    sort_order: str = SORT_ASC

    @property
    def order(self) -> str:
        return SORT_DESC if (self.sort_order or "").upper() == SORT_DESC else SORT_ASC

    def offset(self) -> int:
        if self.page_size <= 0:
            return 0
        return max((self.page - 1) * self.page_size, 0)


def total_pages(total_rows: int, page_size: int) -> int:
    if page_size <= 0:
        return 1
    return max(1, math.ceil(total_rows / page_size))


@dataclass
class PaginatedResult:
    data: Matrix
    total_rows: int
    page: int
    page_size: int
    total_pages: int

    @classmethod
    def build(cls, data: Matrix, total_rows: int, page: int, page_size: int) -> "PaginatedResult":
        return cls(data=data, total_rows=total_rows, page=page, page_size=page_size,
                   total_pages=total_pages(total_rows, page_size))

    @property
    def header(self) -> List[str]:
        return self.data[0] if self.data else []

    @property
    def rows(self) -> Matrix:
        return self.data[1:]


@dataclass
class ColumnDescriptor:
    """Lightweight column preview, distinct from the full ColumnInfo."""
    name: str
    data_type: str
    nullable: bool = True
    key: str = ""
    default: str = ""
    extra: str = ""

    @property
    def is_primary_key(self) -> bool:
        return self.key == "PRI"


@dataclass
class ColumnInfo:
    name: str
    data_type: str
    nullable: bool = True
    is_primary_key: bool = False
    default_value: str = ""
    extra: str = ""
    comment: str = ""


@dataclass
class IndexInfo:
    name: str
    columns: List[str] = field(default_factory=list)
    is_unique: bool = False
    is_primary: bool = False
    type: str = "BTREE"


@dataclass
class RelationInfo:
    name: str
    column: str
    referenced_table: str
    referenced_column: str
    on_update: str = ""
    on_delete: str = ""


@dataclass
class TriggerInfo:
    name: str
    event: str = "UNKNOWN"
    timing: str = "UNKNOWN"
    statement: str = ""
    table: str = ""


@dataclass
class TableStructure:
    columns: List[ColumnInfo] = field(default_factory=list)
    indexes: List[IndexInfo] = field(default_factory=list)
    relations: List[RelationInfo] = field(default_factory=list)
    triggers: List[TriggerInfo] = field(default_factory=list)

    def relation_for(self, column: str) -> Optional[RelationInfo]:
        for rel in self.relations:
            if rel.column == column:
                return rel
        return None

    def primary_key(self) -> Optional[str]:
        for col in self.columns:
            if col.is_primary_key:
                return col.name
        return None
