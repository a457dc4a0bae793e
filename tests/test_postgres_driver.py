import psycopg2
import pytest

from conftest import FakeConnection
from drivers.config import DriverConfig
from drivers.errors import DriverConnectionError, QueryError
from drivers.postgres_driver import PostgresDriver, index_columns, index_method, resolve_schema
from drivers.types import DriverKind, Pagination
from drivers.urls import database_name

SCHEMATA = 'information_schema.schemata'


def make_driver(rules, schema='public'):
    driver = PostgresDriver(DriverConfig())
    driver.connection = FakeConnection(rules)
    driver.schema = schema
    return driver


def test_resolve_prefers_public():
    assert resolve_schema(['pg_catalog', 'information_schema', 'public', 'sales']) == 'public'


def test_resolve_first_user_schema_without_public():
    assert resolve_schema(['pg_catalog', 'information_schema', 'sales', 'archive']) == 'archive'
    assert resolve_schema(['pg_catalog', 'information_schema', 'sales']) == 'sales'


def test_resolve_falls_back_to_public():
    assert resolve_schema(['pg_catalog', 'information_schema', 'pg_toast', 'pg_temp_1']) == 'public'
    assert resolve_schema([]) == 'public'


def test_detect_schema_sets_table_ref():
    driver = make_driver([
        (SCHEMATA, ['schema_name'], [('pg_catalog',), ('information_schema',), ('sales',)]),
    ])
    assert driver.detect_schema() == 'sales'
    assert driver.table_ref('shop', 'orders') == '"sales"."orders"'


def test_get_tables_spans_schemas_and_reaffirms_schema():
    driver = make_driver([
        ('information_schema.tables', ['s', 't'], [('public', 'a'), ('sales', 'b'), ('sales', 'c')]),
        (SCHEMATA, ['schema_name'], [('public',), ('sales',)]),
    ], schema='stale')
    assert driver.get_tables('') == {'public': ['a'], 'sales': ['b', 'c']}
    assert driver.connection.executed[0][1] == ('shop',)
    assert driver.schema == 'public'


def test_paginated_sql_quotes_schema_and_table():
    driver = make_driver([
        ('SELECT COUNT(*)', ['count'], [(3,)]),
        ('SELECT *', ['id', 'user'], [(1, 'a'), (2, True), (3, None)]),
    ], schema='sales')
    res = driver.get_table_data_paginated('shop', 'user', Pagination(page=1, page_size=2, sort_column='order'))
    assert driver.connection.queries()[-1] == \
        'SELECT * FROM "sales"."user" ORDER BY "order" ASC LIMIT 2 OFFSET 0'
    assert res.total_pages == 2
    assert res.rows == [['1', 'a'], ['2', 'true'], ['3', 'NULL']]


def test_columns_flag_primary_keys():
    driver = make_driver([
        ("constraint_type = 'PRIMARY KEY'", ['column_name'], [('id',)]),
        ('col_description', ['n', 't', 'nl', 'd', 'c'], [
            ('id', 'integer', 'NO', "nextval('orders_id_seq'::regclass)", None),
            ('note', 'text', 'YES', None, 'free text'),
        ]),
    ])
    cols = driver.get_table_columns('shop', 'orders')
    assert [c.key for c in cols] == ['PRI', '']
    info = driver.get_column_info('shop', 'orders')
    assert info[0].is_primary_key and not info[1].is_primary_key
    assert info[1].comment == 'free text'
    assert ('public', 'orders') in [p for _, p in driver.connection.executed]


def test_index_info():
    driver = make_driver([
        ('pg_indexes', ['n', 'd', 'u', 'p'], [
            ('orders_pkey', 'CREATE UNIQUE INDEX orders_pkey ON public.orders USING btree (id)', True, True),
            ('orders_tags', 'CREATE INDEX orders_tags ON public.orders USING gin (tags)', False, False),
        ]),
    ])
    indexes = driver.get_index_info('shop', 'orders')
    assert [(i.name, i.columns, i.is_unique, i.is_primary, i.type) for i in indexes] == [
        ('orders_pkey', ['id'], True, True, 'BTREE'),
        ('orders_tags', ['tags'], False, False, 'GIN'),
    ]


def test_index_columns_parsing():
    assert index_columns('CREATE INDEX i ON public.t USING btree (a, b)') == ['a', 'b']
    assert index_columns(
        'CREATE INDEX i ON public.t USING btree (lower((email)::text), "Group") WHERE (x > 1)'
    ) == ['lower((email)::text)', 'Group']
    assert index_columns('') == []
    assert index_method('CREATE INDEX i ON t (a)') == 'BTREE'


def test_relations():
    driver = make_driver([
        ("constraint_type = 'FOREIGN KEY'", ['n', 'c', 'rt', 'rc', 'u', 'd'], [
            ('orders_customer_id_fkey', 'customer_id', 'customers', 'id', 'NO ACTION', 'CASCADE'),
        ]),
    ])
    rel = driver.get_relation_info('shop', 'orders')[0]
    assert (rel.column, rel.referenced_table, rel.referenced_column) == ('customer_id', 'customers', 'id')


def test_library_errors_become_query_errors():
    driver = make_driver([
        ('SELECT COUNT(*)', None, psycopg2.ProgrammingError('relation "ghost" does not exist')),
    ])
    with pytest.raises(QueryError) as exc:
        driver.get_table_data_paginated('shop', 'ghost', Pagination())
    assert 'does not exist' in str(exc.value)


def test_connect_failure(monkeypatch):
    def refuse(dsn):
        raise psycopg2.OperationalError('could not connect to server')
    monkeypatch.setattr(psycopg2, 'connect', refuse)
    with pytest.raises(DriverConnectionError):
        PostgresDriver(DriverConfig()).test_connection('postgres://u:p@127.0.0.1:1/shop?sslmode=disable')


def test_database_name_from_url():
    url = 'postgres://user:password@db:5432/shop?sslmode=disable'
    assert database_name(DriverKind.POSTGRES, url) == 'shop'
