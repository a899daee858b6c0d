import os
import socket
import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional

from fastapi import (
    APIRouter,
    Depends,
    FastAPI,
    HTTPException,
    Path,
    Request,
    WebSocket,
    status,
)
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.concurrency import run_in_threadpool

from broadcast_hub import BroadcastHub
from db import Database, init_schema, ping
from logging_setup import configure_logging
from models.health import Health
from models.product import (
    DeleteResponse,
    ProductCreate,
    ProductRead,
    ProductReplace,
    ProductStatusUpdate,
)
from models.stats import StatisticsSnapshot
from product_service import ProductNotFoundError, ProductService
from stats_service import StatisticsService

port = int(os.environ.get("FASTAPIPORT", 5000))

allowed_origins = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "*").split(",") if o.strip()]

configure_logging(level=os.getenv("LOG_LEVEL", "INFO").upper())

router = APIRouter(prefix="/api", tags=["products"])


def _host_ip() -> str:
    try:
        return socket.gethostbyname(socket.gethostname())
    except OSError:
        return "127.0.0.1"


# -----------------------------------------------------------------------------
# Dependencies
# -----------------------------------------------------------------------------


def get_product_service(request: Request) -> ProductService:
    return request.app.state.product_service


def get_statistics_service(request: Request) -> StatisticsService:
    return request.app.state.statistics_service


# -----------------------------------------------------------------------------
# Product endpoints
# -----------------------------------------------------------------------------


@router.get("/products", response_model=List[ProductRead])
async def list_products(service: ProductService = Depends(get_product_service)):
    """List all products, newest first."""
    try:
        return await service.list_products()
    except Exception:
        logger.exception("Error fetching products")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch products")


@router.get("/products/{product_id}", response_model=ProductRead)
async def get_product(
    product_id: int = Path(..., description="Product ID"),
    service: ProductService = Depends(get_product_service),
):
    """Get a specific product by ID."""
    try:
        return await service.get_product(product_id)
    except ProductNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    except Exception:
        logger.exception("Error fetching product {}", product_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch product")


@router.post("/products", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
async def create_product(
    product: ProductCreate,
    service: ProductService = Depends(get_product_service),
):
    """Create a new product and notify every connected dashboard."""
    try:
        return await service.create_product(product)
    except Exception:
        logger.exception("Error creating product")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create product")


@router.put("/products/{product_id}", response_model=ProductRead)
async def replace_product(
    product_replace: ProductReplace,
    product_id: int = Path(..., description="Product ID"),
    service: ProductService = Depends(get_product_service),
):
    """Overwrite all mutable fields of a product."""
    try:
        return await service.update_product(product_id, product_replace)
    except ProductNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    except Exception:
        logger.exception("Error updating product {}", product_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update product")


@router.patch("/products/{product_id}/status", response_model=ProductRead)
async def update_product_status(
    status_update: ProductStatusUpdate,
    product_id: int = Path(..., description="Product ID"),
    service: ProductService = Depends(get_product_service),
):
    """Quick status change for a product."""
    try:
        return await service.update_status(product_id, status_update.status)
    except ProductNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    except Exception:
        logger.exception("Error updating status of product {}", product_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update product status")


@router.delete("/products/{product_id}", response_model=DeleteResponse)
async def delete_product(
    product_id: int = Path(..., description="Product ID"),
    service: ProductService = Depends(get_product_service),
):
    """Delete a product. Responds 200 whether or not the product existed."""
    try:
        await service.delete_product(product_id)
    except Exception:
        logger.exception("Error deleting product {}", product_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete product")
    return DeleteResponse()


# -----------------------------------------------------------------------------
# Statistics endpoints
# -----------------------------------------------------------------------------


@router.get("/stats", response_model=StatisticsSnapshot)
async def get_stats(service: StatisticsService = Depends(get_statistics_service)):
    """Per-status counts and value sums, plus global totals."""
    try:
        return await service.get_statistics()
    except Exception:
        logger.exception("Error fetching stats")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch statistics")


# -----------------------------------------------------------------------------
# Application factory
# -----------------------------------------------------------------------------


def create_app(database: Optional[Database] = None, hub: Optional[BroadcastHub] = None) -> FastAPI:
    database = database or Database()
    hub = hub or BroadcastHub()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if os.getenv("INIT_SCHEMA", "false").lower() == "true":
            await run_in_threadpool(init_schema, database)
            logger.info("Products table ready")
        logger.info("Inventory dashboard API up, real-time channel at /ws")
        yield
        logger.info("Shutting down with {} clients attached", hub.client_count)

    app = FastAPI(
        title="Real-time Inventory Dashboard API",
        description="Product CRUD with live change notifications for connected dashboards",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.database = database
    app.state.hub = hub
    app.state.product_service = ProductService(database, hub)
    app.state.statistics_service = StatisticsService(database)

    # ============================================================================
    # CORS Middleware Configuration
    # ============================================================================
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["*"],
    )

    # ============================================================================
    # Health endpoints
    # ============================================================================

    @app.get("/health", response_model=Health)
    async def get_health():
        store_ok = await run_in_threadpool(ping, database)
        return Health(
            status=200,
            status_message="OK",
            timestamp=datetime.utcnow().isoformat() + "Z",
            ip_address=_host_ip(),
            database="ok" if store_ok else "error",
            connected_clients=hub.client_count,
        )

    # ============================================================================
    # Real-time channel
    # ============================================================================

    @app.websocket("/ws")
    async def realtime(websocket: WebSocket):
        await websocket.accept()
        await hub.connect(websocket)
        session_id = uuid.uuid4().hex[:12]
        logger.info("New client connected: {}", session_id)
        try:
            # Clients have nothing to say; keep reading until they leave.
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
        finally:
            await hub.disconnect(websocket)
            logger.info("Client disconnected: {}", session_id)

    app.include_router(router)
    return app


app = create_app()


# -----------------------------------------------------------------------------
# Run the app
# -----------------------------------------------------------------------------
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=port)
