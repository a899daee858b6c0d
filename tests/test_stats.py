from decimal import Decimal

import pytest

from stats_service import StatisticsService


def _add(client, name, price, status):
    response = client.post("/api/products", json={"name": name, "price": price, "status": status})
    assert response.status_code == 201


def test_empty_store_has_zero_totals(client):
    response = client.get("/api/stats")

    assert response.status_code == 200
    assert response.json() == {"by_status": [], "totals": {"total_products": 0, "total_value": 0.0}}


def test_stats_group_by_status_and_total(client):
    _add(client, "a", 10, "new")
    _add(client, "b", 2.5, "new")
    _add(client, "c", 100, "sold")
    _add(client, "d", 0.01, "cancelled")

    stats = client.get("/api/stats").json()

    assert stats["totals"] == {"total_products": 4, "total_value": 112.51}
    assert stats["by_status"] == [
        {"status": "new", "count": 2, "total_value": 12.5},
        {"status": "sold", "count": 1, "total_value": 100.0},
        {"status": "cancelled", "count": 1, "total_value": 0.01},
    ]


def test_stats_follow_status_changes_and_deletes(client):
    _add(client, "a", 5, "new")
    _add(client, "b", 7, "new")
    client.patch("/api/products/1/status", json={"status": "delivered"})
    client.delete("/api/products/2")

    stats = client.get("/api/stats").json()

    assert stats["totals"] == {"total_products": 1, "total_value": 5.0}
    assert stats["by_status"] == [{"status": "delivered", "count": 1, "total_value": 5.0}]


@pytest.mark.asyncio
async def test_service_totals_match_rows(database):
    prices = ["1.10", "2.20", "3.30"]
    for price in prices:
        database.execute(
            "INSERT INTO products (name, price, status) VALUES (%s, %s, %s)",
            ("item", Decimal(price), "shipped"),
        )

    snapshot = await StatisticsService(database).get_statistics()

    assert snapshot.totals.total_products == 3
    assert snapshot.totals.total_value == Decimal("6.60")
    assert snapshot.count_for("shipped") == 3
    assert snapshot.count_for("new") == 0
    assert sum(entry.total_value for entry in snapshot.by_status) == snapshot.totals.total_value
