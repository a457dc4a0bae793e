"""MongoDB driver backed by PyMongo.

"Tables" are collection names. There is no catalog to read, so the schema is
inferred by sampling the first mongo_sample_size documents of a collection;
fields that only appear later are not listed. Relations and triggers do not
exist and come back empty; raw SQL is unsupported.

Unfiltered page counts use the collection's estimated document count, which
may drift under concurrent writes. Filtered counts are exact.
"""
from __future__ import annotations
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import pymongo
from bson.errors import BSONError
from pymongo.errors import PyMongoError

from .config import DriverConfig
from .errors import (
    DriverConnectionError, NotConnectedError, QueryError, UnsupportedOperationError,
)
from .logging_util import debug, info, warn
from .mongo_filter import parse_filter
from .structure import build_structure
from .types import (
    ColumnDescriptor, ColumnInfo, DriverKind, IndexInfo, Matrix, PaginatedResult, Pagination,
    RelationInfo, TableStructure, TriggerInfo,
)
from .urls import mongo_database
from .values import format_document_value, NULL

ADMIN_DATABASE = "admin"


def guess_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return "unknown"


def union_fields(documents) -> List[str]:
    """Field names across documents, in first-seen order."""
    seen: Dict[str, None] = {}
    for doc in documents:
        for key in doc:
            seen.setdefault(key, None)
    return list(seen)


class MongoDBDriver:
    kind = DriverKind.MONGODB

    def __init__(self, config: Optional[DriverConfig] = None):
        self.config = config or DriverConfig.from_env()
        self.client: Any = None
        self.database: str = ""
        # database the last get_tables call answered for
        self.listed_database: str = ""

    # --- Lifecycle ------------------------------------------------------------------
    def _client(self, url: str, timeout_ms: int):
        try:
            return pymongo.MongoClient(url, serverSelectionTimeoutMS=timeout_ms,
                                       connectTimeoutMS=timeout_ms)
        except (PyMongoError, ValueError) as e:
            raise DriverConnectionError(f"invalid MongoDB URL: {e}") from e

    def connect(self, url: str) -> None:
        self.close()
        client = self._client(url, self.config.mongo_connect_timeout_ms)
        try:
            client.admin.command("ping")
        except PyMongoError as e:
            client.close()
            raise DriverConnectionError(f"cannot reach MongoDB: {e}") from e
        self.client = client
        self.database = mongo_database(url)
        info("connected", driver=self.kind.value, database=self.database)

    def test_connection(self, url: str) -> None:
        client = self._client(url, self.config.mongo_probe_timeout_ms)
        try:
            client.admin.command("ping")
        except PyMongoError as e:
            raise DriverConnectionError(f"cannot reach MongoDB: {e}") from e
        finally:
            client.close()

    def close(self) -> None:
        if self.client is None:
            return
        try:
            self.client.close()
        except PyMongoError as e:
            warn("close_failed", driver=self.kind.value, error=str(e))
        self.client = None
        info("disconnected", driver=self.kind.value)

    # --- Helpers --------------------------------------------------------------------
    def _require(self):
        if self.client is None:
            raise NotConnectedError("mongodb driver is not connected")
        return self.client

    def _db_name(self, database: str) -> str:
        return database or self.database or self.listed_database or ADMIN_DATABASE

    def _collection(self, database: str, table: str):
        return self._require()[self._db_name(database)][table]

    @contextmanager
    def _op(self, what: str, timeout_attr: str) -> Iterator[None]:
        try:
            with pymongo.timeout(self.config.seconds(timeout_attr)):
                yield
        except (PyMongoError, BSONError, TypeError) as e:
            raise QueryError(f"{what} failed: {e}") from e

    # --- Enumeration ----------------------------------------------------------------
    def get_tables(self, database: str) -> Dict[str, List[str]]:
        client = self._require()
        name = database or self.database or ADMIN_DATABASE
        try:
            with pymongo.timeout(self.config.seconds("mongo_connect_timeout_ms")):
                names = sorted(client[name].list_collection_names())
            self.listed_database = name
            return {name: names}
        except PyMongoError as e:
            debug("list_collections_failed", database=name, error=str(e))
            first_error = e
        try:
            with pymongo.timeout(self.config.seconds("mongo_connect_timeout_ms")):
                admin = sorted(client[ADMIN_DATABASE].list_collection_names())
        except PyMongoError:
            admin = []
        if admin:
            self.listed_database = ADMIN_DATABASE
            return {ADMIN_DATABASE: admin}
        raise QueryError(f"failed to list collections: {first_error}") from first_error

    def _sample(self, database: str, table: str) -> List[Dict[str, Any]]:
        coll = self._collection(database, table)
        with self._op("sample", "mongo_connect_timeout_ms"):
            return list(coll.find({}).limit(self.config.mongo_sample_size))

    def get_column_info(self, database: str, table: str) -> List[ColumnInfo]:
        field_types: Dict[str, str] = {}
        for doc in self._sample(database, table):
            for key, value in doc.items():
                field_types.setdefault(key, guess_type(value))
        return [
            ColumnInfo(name=name, data_type=kind, nullable=True, is_primary_key=name == "_id")
            for name, kind in field_types.items()
        ]

    def get_table_columns(self, database: str, table: str) -> List[ColumnDescriptor]:
        return [
            ColumnDescriptor(name=c.name, data_type=c.data_type, nullable=True,
                             key="PRI" if c.is_primary_key else "")
            for c in self.get_column_info(database, table)
        ]

    # --- Data -----------------------------------------------------------------------
    def _documents_matrix(self, documents: List[Dict[str, Any]]) -> Matrix:
        fields = union_fields(documents)
        data: Matrix = [fields]
        for doc in documents:
            data.append([format_document_value(doc[f]) if f in doc else NULL for f in fields])
        return data

    def get_table_data(self, database: str, table: str) -> Matrix:
        return self.get_table_data_with_filter(database, table, "")

    def get_table_data_with_filter(self, database: str, table: str, predicate: str) -> Matrix:
        page = Pagination(page=1, page_size=self.config.row_limit)
        return self.get_table_data_with_filter_paginated(database, table, predicate, page).data

    def get_table_data_paginated(self, database: str, table: str,
                                 pagination: Pagination) -> PaginatedResult:
        return self.get_table_data_with_filter_paginated(database, table, "", pagination)

    def get_table_data_with_filter_paginated(self, database: str, table: str, predicate: str,
                                             pagination: Pagination) -> PaginatedResult:
        coll = self._collection(database, table)
        if pagination.page_size <= 0:
            page, limit, offset = 1, self.config.row_limit, 0
        else:
            page, limit, offset = max(pagination.page, 1), pagination.page_size, pagination.offset()
        with self._op("find", "mongo_query_timeout_ms"):
            query = parse_filter(predicate)
            if query:
                total_rows = coll.count_documents(query)
            else:
                total_rows = coll.estimated_document_count()
            cursor = coll.find(query).skip(offset).limit(limit)
            if pagination.sort_column:
                direction = pymongo.DESCENDING if pagination.order == "DESC" else pymongo.ASCENDING
                cursor = cursor.sort(pagination.sort_column, direction)
            documents = list(cursor)
        debug("paginated_find", driver=self.kind.value, collection=table, page=page,
              page_size=limit, offset=offset, filter=str(query))
        return PaginatedResult.build(self._documents_matrix(documents), int(total_rows), page, limit)

    # --- Structure ------------------------------------------------------------------
    def get_table_structure(self, database: str, table: str) -> TableStructure:
        return build_structure(self, database, table)

    def get_index_info(self, database: str, table: str) -> List[IndexInfo]:
        coll = self._collection(database, table)
        with self._op("index listing", "mongo_connect_timeout_ms"):
            info_map = coll.index_information()
        indexes = []
        for name, spec in info_map.items():
            indexes.append(IndexInfo(
                name=name,
                columns=[key for key, _ in spec.get("key", [])],
                is_unique=bool(spec.get("unique", False)),
                is_primary=name == "_id_",
                type="index",
            ))
        return indexes

    def get_relation_info(self, database: str, table: str) -> List[RelationInfo]:
        return []

    def get_trigger_info(self, database: str, table: str) -> List[TriggerInfo]:
        return []

    def execute_query(self, query: str) -> Matrix:
        debug("execute_query_unsupported", driver=self.kind.value, query=query)
        raise UnsupportedOperationError(
            "MongoDB does not support SQL queries. Use the collection/document interface instead"
        )
