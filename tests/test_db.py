import sqlite3

from db import Database, ping


def test_ping_succeeds_against_reachable_store(database):
    assert ping(database) is True


def test_ping_reports_unreachable_store():
    def _refuse():
        raise sqlite3.OperationalError("unable to open database file")

    assert ping(Database(connect=_refuse)) is False


def test_execute_returns_rowcount_and_lastrowid(database):
    result = database.execute(
        "INSERT INTO products (name, price, status) VALUES (%s, %s, %s)", ("Widget", "9.99", "new"))

    assert result.rowcount == 1
    assert result.lastrowid == 1
    assert database.fetch_one("SELECT name FROM products WHERE id = %s", (1,)) == {"name": "Widget"}
