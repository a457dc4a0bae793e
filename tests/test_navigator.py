import sqlite3

import pytest

from browser.errors import NavigationError, NotAForeignKeyError
from browser.navigator import goto_foreign_key
from browser.session import QuerySession, SessionState
from drivers.errors import QueryError


@pytest.fixture()
def orders(sqlite_driver):
    return QuerySession(sqlite_driver, 'shop.db', 'orders').load()


def test_follow_customer_reference(orders):
    # order 41 belongs to customer 42
    assert orders.rows[40][:2] == ['41', '42']
    target = goto_foreign_key(orders, 40, 1)
    assert target.table == 'customers'
    assert target.state is SessionState.READY
    assert target.active_filters == ["id = '42'"]
    assert target.header == ['id', 'name', 'email']
    assert target.rows == [['42', 'customer 42', 'NULL']]
    assert target.total_pages == 1
    # source view is untouched
    assert orders.active_filters == [] and len(orders.rows) == 100


def test_seeded_session_is_fully_usable(orders):
    target = goto_foreign_key(orders, 0, 1)
    target.apply_filter("name LIKE 'customer%'")
    assert target.predicate == "(id = '2') AND (name LIKE 'customer%')"
    assert target.total_rows == 1
    target.clear_filters()
    assert target.total_rows == 42
    assert target.active_filters == []


def test_not_a_foreign_key(orders):
    with pytest.raises(NotAForeignKeyError):
        goto_foreign_key(orders, 0, 2)


def test_out_of_range_cell(orders):
    with pytest.raises(IndexError):
        goto_foreign_key(orders, 500, 1)
    with pytest.raises(IndexError):
        goto_foreign_key(orders, 0, 9)


def test_structure_failure(orders, monkeypatch):
    orders.structure = None

    def broken(database, table):
        raise QueryError('catalog gone')
    monkeypatch.setattr(orders.driver, 'get_table_structure', broken)
    with pytest.raises(NavigationError):
        goto_foreign_key(orders, 0, 1)


def test_null_reference_cell(shop_db, sqlite_driver):
    conn = sqlite3.connect(shop_db)
    conn.execute("UPDATE orders SET customer_id = NULL WHERE id = 1")
    conn.commit()
    conn.close()
    orders = QuerySession(sqlite_driver, 'shop.db', 'orders').load()
    assert orders.rows[0][:2] == ['1', 'NULL']
    with pytest.raises(NavigationError):
        goto_foreign_key(orders, 0, 1)
