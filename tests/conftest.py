"""Shared fixtures.

The application talks to MySQL through pymysql in production. Tests swap in a
file-backed SQLite database behind the same ``Database`` interface; the only
translation needed is the placeholder style (``%s`` -> ``?``).
"""

import sqlite3
from decimal import Decimal
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from broadcast_hub import BroadcastHub
from db import Database, init_schema
from main import create_app

sqlite3.register_adapter(Decimal, str)

SQLITE_PRODUCTS_DDL = """
    CREATE TABLE IF NOT EXISTS products (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        price NUMERIC NOT NULL,
        status TEXT NOT NULL DEFAULT 'new',
        description TEXT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
"""


class SQLiteCursor:
    def __init__(self, cursor: sqlite3.Cursor):
        self._cursor = cursor

    def execute(self, sql, params=()):
        return self._cursor.execute(sql.replace("%s", "?"), params)

    def __getattr__(self, name):
        return getattr(self._cursor, name)


class SQLiteConnection:
    def __init__(self, path: str):
        self._conn = sqlite3.connect(path)
        self._conn.row_factory = sqlite3.Row

    def cursor(self) -> SQLiteCursor:
        return SQLiteCursor(self._conn.cursor())

    def __getattr__(self, name):
        return getattr(self._conn, name)


@pytest.fixture
def database(tmp_path) -> Database:
    path = str(tmp_path / "inventory.db")
    db = Database(connect=lambda: SQLiteConnection(path))
    init_schema(db, ddl=SQLITE_PRODUCTS_DDL)
    return db


@pytest.fixture
def hub() -> BroadcastHub:
    return BroadcastHub()


@pytest.fixture
def client(database, hub) -> Generator[TestClient, None, None]:
    # Entering the client runs the lifespan and shares one event loop with websockets.
    with TestClient(create_app(database=database, hub=hub)) as test_client:
        yield test_client


@pytest.fixture
def broken_client(hub) -> Generator[TestClient, None, None]:
    def _refuse():
        raise sqlite3.OperationalError("unable to open database file")

    with TestClient(create_app(database=Database(connect=_refuse), hub=hub)) as test_client:
        yield test_client


@pytest.fixture
def widget() -> dict:
    return {"name": "Widget", "price": 9.99, "status": "new", "description": "Blue widget"}
