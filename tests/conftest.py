"""Shared fixtures: small SQLite files built on disk for each test."""

import sqlite3

import pytest


def build_database(path, script):
    conn = sqlite3.connect(path)
    try:
        conn.executescript(script)
        conn.commit()
    finally:
        conn.close()
    return str(path)


@pytest.fixture
def make_db(tmp_path):
    """Build a database file in tmp_path from a SQL script."""
    def make(name, script):
        return build_database(tmp_path / name, script)
    return make


@pytest.fixture
def simple_db(tmp_path):
    """t(id, name) with an index on name and five rows."""
    return build_database(tmp_path / "simple.db", """
        CREATE TABLE t (id INTEGER PRIMARY KEY, name TEXT);
        CREATE INDEX idx_t_name ON t (name);
        INSERT INTO t (name) VALUES ('alpha'), ('bravo'), ('charlie'), ('delta'), ('echo');
    """)


@pytest.fixture
def shop_db(tmp_path):
    """customers/orders/items with a composite foreign key and mixed indexes."""
    return build_database(tmp_path / "shop.db", """
        CREATE TABLE customers (
            id INTEGER NOT NULL,
            region TEXT NOT NULL,
            name TEXT,
            email TEXT UNIQUE,
            PRIMARY KEY (region, id)
        );
        CREATE TABLE orders (
            order_id INTEGER PRIMARY KEY,
            customer_id INTEGER,
            region TEXT,
            total REAL,
            FOREIGN KEY (customer_id, region) REFERENCES customers (id, region)
        );
        CREATE TABLE items (
            item_id INTEGER PRIMARY KEY,
            order_id INTEGER REFERENCES orders (order_id),
            sku TEXT NOT NULL,
            photo BLOB
        );
        CREATE UNIQUE INDEX idx_items_sku ON items (sku);
        CREATE INDEX idx_orders_region_total ON orders (region, total);

        INSERT INTO customers VALUES (1, 'eu', 'Ada', 'ada@example.com');
        INSERT INTO customers VALUES (2, 'us', 'Grace', 'grace@example.com');
        INSERT INTO orders VALUES (10, 1, 'eu', 12.5);
        INSERT INTO orders VALUES (11, 1, 'eu', 3.0);
        INSERT INTO orders VALUES (12, 2, 'us', 99.99);
        INSERT INTO items VALUES (100, 10, 'SKU-A', X'DEADBEEF');
        INSERT INTO items VALUES (101, 12, 'SKU-B', NULL);
    """)


@pytest.fixture
def empty_db(tmp_path):
    path = tmp_path / "empty.db"
    path.write_bytes(b"")
    return str(path)


@pytest.fixture
def not_a_db(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("these are not the pages you are looking for\n" * 200)
    return str(path)
