import sqlite3, pytest
from pathlib import Path

from drivers.config import DriverConfig
from drivers.sqlite_driver import SQLiteDriver

SHOP_SCHEMA = """
CREATE TABLE customers (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    email TEXT
);
CREATE TABLE orders (
    id INTEGER PRIMARY KEY,
    customer_id INTEGER REFERENCES customers(id) ON DELETE CASCADE,
    status TEXT NOT NULL DEFAULT 'new',
    total REAL
);
CREATE INDEX idx_orders_status ON orders(status);
CREATE TABLE audit (id INTEGER PRIMARY KEY, note TEXT);
CREATE TRIGGER orders_audit AFTER INSERT ON orders
BEGIN
    INSERT INTO audit(note) VALUES ('order ' || NEW.id);
END;
"""


@pytest.fixture()
def shop_db(tmp_path):
    """customers(42 rows) and orders(250 rows: every 5th is 'active')."""
    db_path = tmp_path / 'shop.db'
    conn = sqlite3.connect(db_path)
    try:
        conn.executescript(SHOP_SCHEMA)
        conn.executemany("INSERT INTO customers(id, name, email) VALUES (?,?,?)",
                         [(i, f'customer {i}', None if i % 7 == 0 else f'c{i}@example.com')
                          for i in range(1, 43)])
        conn.executemany("INSERT INTO orders(id, customer_id, status, total) VALUES (?,?,?,?)",
                         [(i, (i % 42) + 1, 'active' if i % 5 == 0 else 'closed', i * 1.5)
                          for i in range(1, 251)])
        conn.commit()
    finally:
        conn.close()
    return db_path


@pytest.fixture()
def config():
    return DriverConfig()


@pytest.fixture()
def sqlite_driver(shop_db, config):
    driver = SQLiteDriver(config)
    driver.connect(f"sqlite://{shop_db}")
    yield driver
    driver.close()


class FakeCursor:
    """DB-API cursor answering from a list of (substring, header, rows) rules."""

    def __init__(self, conn):
        self.conn = conn
        self.description = None
        self.rowcount = -1
        self._rows = []

    def execute(self, query, params=None):
        self.conn.executed.append((query, tuple(params or ())))
        for needle, header, rows in self.conn.rules:
            if needle in query:
                if isinstance(rows, Exception):
                    raise rows
                self.description = [(h,) for h in header] if header is not None else None
                self._rows = list(rows)
                self.rowcount = len(self._rows)
                return
        self.description = None
        self._rows = []
        self.rowcount = 0

    def fetchall(self):
        return list(self._rows)

    def fetchone(self):
        return self._rows[0] if self._rows else None

    def close(self):
        pass


class FakeInfo:
    dbname = 'shop'


class FakeConnection:
    def __init__(self, rules=None):
        self.rules = list(rules or [])
        self.executed = []
        self.closed = False
        self.info = FakeInfo()

    def cursor(self):
        return FakeCursor(self)

    def close(self):
        self.closed = True

    def queries(self):
        return [q for q, _ in self.executed]


@pytest.fixture()
def fake_connection():
    return FakeConnection()
