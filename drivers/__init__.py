"""Data-access layer package.

Single source of truth for the package version plus the public surface
(types, errors, registry) so the browser layer, tests, and scripts can import
without reaching into individual adapter modules.
"""

PACKAGE_VERSION = "0.4.0"  # Keep in sync with pyproject version.

from .types import (  # noqa: E402
    DriverKind, Connection, Pagination, PaginatedResult, ColumnDescriptor,
    ColumnInfo, IndexInfo, RelationInfo, TriggerInfo, TableStructure,
)
from .errors import (  # noqa: E402
    DriverError, DriverConnectionError, QueryError, StructureError,
    UnsupportedOperationError, NotConnectedError,
)
from .registry import new_driver  # noqa: E402

__all__ = [
    "PACKAGE_VERSION",
    "DriverKind", "Connection", "Pagination", "PaginatedResult", "ColumnDescriptor",
    "ColumnInfo", "IndexInfo", "RelationInfo", "TriggerInfo", "TableStructure",
    "DriverError", "DriverConnectionError", "QueryError", "StructureError",
    "UnsupportedOperationError", "NotConnectedError",
    "new_driver",
]
