"""Structure introspection normalizer.

Every adapter answers the four typed accessors in its own catalog dialect;
this module composes them into one TableStructure. Columns are mandatory.
Indexes, relations, and triggers are best-effort: a failure in one of them is
logged and leaves that list empty without aborting the others.
"""
from __future__ import annotations
from typing import Callable, List, TypeVar

from .errors import DriverError, StructureError
from .logging_util import warn
from .types import TableStructure

T = TypeVar("T")


def _optional_part(part: str, table: str, fetch: Callable[[], List[T]]) -> List[T]:
    try:
        return list(fetch() or [])
    except DriverError as e:
        warn("structure_part_failed", part=part, table=table, error=str(e))
        return []


def build_structure(driver, database: str, table: str) -> TableStructure:
    try:
        columns = driver.get_column_info(database, table)
    except DriverError as e:
        raise StructureError(f"cannot read columns of {table}: {e}") from e
    return TableStructure(
        columns=list(columns or []),
        indexes=_optional_part("indexes", table, lambda: driver.get_index_info(database, table)),
        relations=_optional_part("relations", table, lambda: driver.get_relation_info(database, table)),
        triggers=_optional_part("triggers", table, lambda: driver.get_trigger_info(database, table)),
    )


def primary_key_from_columns(columns) -> str:
    """First primary-key column name from ColumnDescriptor/ColumnInfo lists, or ''."""
    for col in columns or []:
        if getattr(col, "is_primary_key", False):
            return col.name
    return ""
