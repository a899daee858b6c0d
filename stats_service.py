from decimal import Decimal

from starlette.concurrency import run_in_threadpool

from db import Database
from models.product import ProductStatus
from models.stats import StatisticsSnapshot, StatisticsTotals, StatusStatistics

CENTS = Decimal("0.01")

_STATUS_ORDER = {status.value: index for index, status in enumerate(ProductStatus)}


def _money(value) -> Decimal:
    # SUM over an empty set is NULL; drivers may also hand back floats.
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENTS)


class StatisticsService:
    """Aggregates over the products table. Nothing is cached."""

    def __init__(self, database: Database):
        self._db = database

    def _compute(self) -> StatisticsSnapshot:
        groups = self._db.fetch_all("""
            SELECT
                status,
                COUNT(*) AS count,
                SUM(price) AS total_value
            FROM products
            GROUP BY status
        """)
        totals = self._db.fetch_one("""
            SELECT
                COUNT(*) AS total_products,
                SUM(price) AS total_value
            FROM products
        """)

        groups.sort(key=lambda row: _STATUS_ORDER.get(row["status"], len(_STATUS_ORDER)))
        return StatisticsSnapshot(
            by_status=[
                StatusStatistics(
                    status=row["status"],
                    count=int(row["count"]),
                    total_value=_money(row["total_value"]),
                )
                for row in groups
            ],
            totals=StatisticsTotals(
                total_products=int(totals["total_products"]) if totals else 0,
                total_value=_money(totals["total_value"] if totals else None),
            ),
        )

    async def get_statistics(self) -> StatisticsSnapshot:
        return await run_in_threadpool(self._compute)
