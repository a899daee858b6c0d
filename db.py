# db.py
import os
from contextlib import closing
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

import pymysql
from dotenv import load_dotenv

load_dotenv()

DB_USER = os.getenv("DATABASE_USER", "root")
DB_PASSWORD = os.getenv("DATABASE_PASSWORD", "")
DB_HOST = os.getenv("DATABASE_HOST", "localhost")
DB_NAME = os.getenv("DATABASE_NAME", "inventory")
DB_PORT = int(os.getenv("DATABASE_PORT", "3306"))

PRODUCTS_DDL = """
    CREATE TABLE IF NOT EXISTS products (
        id INT AUTO_INCREMENT PRIMARY KEY,
        name VARCHAR(255) NOT NULL,
        price DECIMAL(10, 2) NOT NULL,
        status ENUM('new', 'sold', 'shipped', 'delivered', 'cancelled') NOT NULL DEFAULT 'new',
        description TEXT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
"""


def get_connection():
    return pymysql.connect(
        host=DB_HOST,
        user=DB_USER,
        password=DB_PASSWORD,
        database=DB_NAME,
        port=DB_PORT,
        charset="utf8mb4",
        cursorclass=pymysql.cursors.DictCursor
    )


@dataclass
class StatementResult:
    """Outcome of a write statement."""
    rowcount: int
    lastrowid: Optional[int] = None


class Database:
    """
    Thin wrapper executing parameterized statements against the store.

    Every call opens its own connection and closes it afterwards. Parameters
    are always passed positionally to the driver (``%s`` placeholders), never
    interpolated into the SQL text. Driver errors propagate unchanged.
    """

    def __init__(self, connect: Callable[[], Any] = get_connection):
        self._connect = connect

    def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        with closing(self._connect()) as conn, closing(conn.cursor()) as cur:
            cur.execute(sql, tuple(params))
            return [dict(row) for row in cur.fetchall()]

    def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
        with closing(self._connect()) as conn, closing(conn.cursor()) as cur:
            cur.execute(sql, tuple(params))
            row = cur.fetchone()
            return dict(row) if row is not None else None

    def execute(self, sql: str, params: Sequence[Any] = ()) -> StatementResult:
        with closing(self._connect()) as conn, closing(conn.cursor()) as cur:
            cur.execute(sql, tuple(params))
            conn.commit()
            return StatementResult(rowcount=cur.rowcount, lastrowid=cur.lastrowid)


def init_schema(database: Database, ddl: str = PRODUCTS_DDL) -> None:
    """Create the products table if it does not exist yet."""
    database.execute(ddl)


def ping(database: Database) -> bool:
    try:
        return database.fetch_one("SELECT 1 AS ok") is not None
    except Exception:
        return False


if __name__ == "__main__":
    from loguru import logger

    if not ping(Database()):
        logger.error("Connection to {}:{}/{} failed", DB_HOST, DB_PORT, DB_NAME)
        raise SystemExit(1)
    logger.info("Connection to {}:{}/{} successful", DB_HOST, DB_PORT, DB_NAME)
