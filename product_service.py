"""Product reads and mutations, each followed by a real-time broadcast."""

from typing import List, Optional

from loguru import logger
from starlette.concurrency import run_in_threadpool

from broadcast_hub import BroadcastHub
from db import Database
from models.events import (
    DeletedProduct,
    ProductCreated,
    ProductDeleted,
    ProductStatusUpdated,
    ProductUpdated,
)
from models.product import (
    ProductCreate,
    ProductRead,
    ProductReplace,
    ProductStatus,
)

SELECT_PRODUCT = "SELECT * FROM products WHERE id = %s"


class ProductNotFoundError(Exception):
    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


def row_to_product_read(row: dict) -> Optional[ProductRead]:
    """
    Convert a SQL row from the `products` table into ProductRead.
    """
    if not row:
        return None

    return ProductRead(
        id=row["id"],
        name=row["name"],
        price=row["price"],
        status=row["status"],
        description=row.get("description"),
        created_at=row["created_at"],
    )


class ProductService:
    """
    Create/update/status-update/delete over the products table.

    Store calls run in the threadpool so a slow query only suspends its own
    request. Every successful mutation publishes one event to the hub after
    the statement has committed; publication is not transactional with the
    write.
    """

    def __init__(self, database: Database, hub: BroadcastHub):
        self._db = database
        self._hub = hub

    async def _read(self, product_id: int) -> Optional[ProductRead]:
        row = await run_in_threadpool(self._db.fetch_one, SELECT_PRODUCT, (product_id,))
        return row_to_product_read(row)

    async def list_products(self) -> List[ProductRead]:
        rows = await run_in_threadpool(
            self._db.fetch_all,
            "SELECT * FROM products ORDER BY created_at DESC, id DESC",
        )
        return [row_to_product_read(row) for row in rows]

    async def get_product(self, product_id: int) -> ProductRead:
        product = await self._read(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    async def create_product(self, payload: ProductCreate) -> ProductRead:
        result = await run_in_threadpool(
            self._db.execute,
            "INSERT INTO products (name, price, status, description) VALUES (%s, %s, %s, %s)",
            (payload.name, payload.price, payload.status.value, payload.description),
        )

        product = await self._read(result.lastrowid)
        if product is None:
            raise RuntimeError(f"Failed to retrieve created product {result.lastrowid}")

        recipients = await self._hub.publish(ProductCreated(data=product))
        logger.info("Product {} created, broadcast to {} clients", product.id, recipients)
        return product

    async def update_product(self, product_id: int, payload: ProductReplace) -> ProductRead:
        # Unconditional overwrite; existence is decided by the read that follows.
        await run_in_threadpool(
            self._db.execute,
            "UPDATE products SET name = %s, price = %s, status = %s, description = %s WHERE id = %s",
            (payload.name, payload.price, payload.status.value, payload.description, product_id),
        )

        product = await self._read(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)

        recipients = await self._hub.publish(ProductUpdated(data=product))
        logger.info("Product {} updated, broadcast to {} clients", product.id, recipients)
        return product

    async def update_status(self, product_id: int, status: ProductStatus) -> ProductRead:
        await run_in_threadpool(
            self._db.execute,
            "UPDATE products SET status = %s WHERE id = %s",
            (status.value, product_id),
        )

        product = await self._read(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)

        recipients = await self._hub.publish(ProductStatusUpdated(data=product))
        logger.info("Product {} status set to {}, broadcast to {} clients", product.id, status.value, recipients)
        return product

    async def delete_product(self, product_id: int) -> DeletedProduct:
        """
        Remove a product. Succeeds and broadcasts even when no row matched,
        so repeating a delete is harmless for the caller.
        """
        result = await run_in_threadpool(
            self._db.execute,
            "DELETE FROM products WHERE id = %s",
            (product_id,),
        )
        if result.rowcount == 0:
            logger.debug("Delete of product {} matched no row", product_id)

        deleted = DeletedProduct(id=product_id)
        recipients = await self._hub.publish(ProductDeleted(data=deleted))
        logger.info("Product {} deleted, broadcast to {} clients", product_id, recipients)
        return deleted
