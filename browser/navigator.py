"""Foreign-key navigation.

Single hop, single column: the focused cell's relation is resolved from the
owning table's structure and the referenced rows open in a new session
filtered by ``<referenced_column> = '<value>'``.
"""
from __future__ import annotations

from drivers.errors import DriverError
from drivers.logging_util import info, warn
from drivers.values import NULL

from .errors import NavigationError, NotAForeignKeyError
from .predicate import fk_predicate
from .session import QuerySession


def goto_foreign_key(session: QuerySession, row: int, col: int) -> QuerySession:
    """New READY session on the table referenced by the cell at (row, col).

    ``row`` indexes ``session.rows`` and ``col`` indexes ``session.header``;
    out-of-range positions raise IndexError.
    """
    session.require_ready()
    if row < 0 or col < 0:
        raise IndexError(f"cell ({row}, {col}) out of range")
    value = session.rows[row][col]
    column = session.header[col]
    if value == NULL:
        raise NavigationError(f"{session.table}.{column} is NULL in row {row}")

    structure = session.structure
    if structure is None:
        try:
            structure = session.driver.get_table_structure(session.database, session.table)
        except DriverError as e:
            raise NavigationError(f"cannot read relations of {session.table}: {e}") from e
        session.structure = structure

    relation = structure.relation_for(column)
    if relation is None:
        raise NotAForeignKeyError(f"{session.table}.{column} is not a foreign key")

    predicate = fk_predicate(relation.referenced_column, value)
    target = QuerySession(session.driver, session.database, relation.referenced_table,
                          config=session.config, page_size=session.page_size)
    try:
        target_structure = session.driver.get_table_structure(session.database, relation.referenced_table)
    except DriverError as e:
        warn("structure_unavailable", table=relation.referenced_table, error=str(e))
        target_structure = None
    try:
        columns = session.driver.get_table_columns(session.database, relation.referenced_table)
        data = session.driver.get_table_data_with_filter(
            session.database, relation.referenced_table, predicate)
    except DriverError as e:
        raise NavigationError(f"cannot open {relation.referenced_table}: {e}") from e

    info("foreign_key_followed", source=session.table, column=column,
         target=relation.referenced_table, predicate=predicate)
    return target.seed(columns, data, [predicate], structure=target_structure)
