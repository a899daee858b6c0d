"""Client-side mirror of the product collection and its statistics.

The dashboard seeds itself with a full fetch, then applies each broadcast
event locally and re-fetches statistics. Between the local apply and the
statistics response the two views can briefly disagree.
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Callable, List, Optional, Union

import httpx
import websockets
from loguru import logger
from pydantic import TypeAdapter, ValidationError
from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from models.events import (
    DeletedProduct,
    ProductCreated,
    ProductDeleted,
    ProductStatusUpdated,
    ProductUpdated,
    decode_event,
)
from models.product import (
    ProductCreate,
    ProductRead,
    ProductReplace,
    ProductStatus,
)
from models.stats import StatisticsSnapshot

STATUS_COLORS = {
    ProductStatus.NEW: "#3b82f6",
    ProductStatus.SOLD: "#f59e0b",
    ProductStatus.SHIPPED: "#8b5cf6",
    ProductStatus.DELIVERED: "#10b981",
    ProductStatus.CANCELLED: "#ef4444",
}

_product_list = TypeAdapter(List[ProductRead])


def status_label(status: Union[ProductStatus, str]) -> str:
    return status.value if isinstance(status, ProductStatus) else status


@dataclass(frozen=True)
class DashboardState:
    products: List[ProductRead] = field(default_factory=list)
    stats: Optional[StatisticsSnapshot] = None
    notification: str = ""


def _replace_by_id(products: List[ProductRead], product: ProductRead) -> List[ProductRead]:
    return [product if p.id == product.id else p for p in products]


def apply_event(state: DashboardState, event) -> DashboardState:
    """Return the state after applying one broadcast event; statistics are left untouched."""
    if isinstance(event, ProductCreated):
        product = event.data
        return replace(state, products=[product] + state.products,
                       notification=f"New product added: {product.name}")
    if isinstance(event, ProductUpdated):
        product = event.data
        return replace(state, products=_replace_by_id(state.products, product),
                       notification=f"Product updated: {product.name}")
    if isinstance(event, ProductStatusUpdated):
        product = event.data
        return replace(state, products=_replace_by_id(state.products, product),
                       notification=f"Status changed: {product.name} → {status_label(product.status)}")
    if isinstance(event, ProductDeleted):
        return replace(state, products=[p for p in state.products if p.id != event.data.id],
                       notification="Product deleted")
    raise TypeError(f"Unsupported event type: {type(event).__name__}")


class DashboardClient:
    """
    Talks to the inventory API over HTTP and the real-time channel over a WebSocket.

    Args:
        base_url: Server root, e.g. ``http://localhost:5000``
        http: Optional pre-built ``httpx.AsyncClient`` (its base URL must point at ``/api``)
    """

    def __init__(self, base_url: str = "http://localhost:5000", http: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip("/")
        self._http = http or httpx.AsyncClient(base_url=f"{self.base_url}/api")
        self.state = DashboardState()

    @property
    def ws_url(self) -> str:
        if self.base_url.startswith("https://"):
            return "wss://" + self.base_url[len("https://"):] + "/ws"
        return "ws://" + self.base_url.removeprefix("http://") + "/ws"

    async def __aenter__(self) -> "DashboardClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def fetch_products(self) -> List[ProductRead]:
        response = await self._http.get("/products")
        response.raise_for_status()
        return _product_list.validate_python(response.json())

    async def fetch_product(self, product_id: int) -> ProductRead:
        response = await self._http.get(f"/products/{product_id}")
        response.raise_for_status()
        return ProductRead.model_validate(response.json())

    async def fetch_stats(self) -> StatisticsSnapshot:
        response = await self._http.get("/stats")
        response.raise_for_status()
        return StatisticsSnapshot.model_validate(response.json())

    async def load(self) -> DashboardState:
        """Initial full fetch of products and statistics."""
        products = await self.fetch_products()
        stats = await self.fetch_stats()
        self.state = DashboardState(products=products, stats=stats)
        return self.state

    async def refresh_stats(self) -> DashboardState:
        try:
            stats = await self.fetch_stats()
        except httpx.HTTPError as e:
            logger.error("Error fetching stats: {}", e)
            return self.state
        self.state = replace(self.state, stats=stats)
        return self.state

    # ------------------------------------------------------------------
    # Real-time
    # ------------------------------------------------------------------

    async def handle_message(self, raw: Union[str, bytes, dict]) -> DashboardState:
        event = decode_event(raw)
        self.state = apply_event(self.state, event)
        return await self.refresh_stats()

    async def listen(self, on_change: Optional[Callable[[DashboardState], None]] = None) -> None:
        """Apply events from the real-time channel until the server closes it."""
        async with websockets.connect(self.ws_url) as ws:
            logger.info("Listening for product events on {}", self.ws_url)
            async for message in ws:
                try:
                    state = await self.handle_message(message)
                except ValidationError as e:
                    logger.warning("Ignoring malformed event: {}", e)
                    continue
                if on_change is not None:
                    on_change(state)

    # ------------------------------------------------------------------
    # Form operations
    # ------------------------------------------------------------------

    async def create_product(self, payload: ProductCreate) -> ProductRead:
        response = await self._http.post("/products", json=payload.model_dump(mode="json"))
        response.raise_for_status()
        return ProductRead.model_validate(response.json())

    async def update_product(self, product_id: int, payload: ProductReplace) -> ProductRead:
        response = await self._http.put(f"/products/{product_id}", json=payload.model_dump(mode="json"))
        response.raise_for_status()
        return ProductRead.model_validate(response.json())

    async def update_status(self, product_id: int, status: ProductStatus) -> ProductRead:
        response = await self._http.patch(f"/products/{product_id}/status", json={"status": status.value})
        response.raise_for_status()
        return ProductRead.model_validate(response.json())

    async def delete_product(self, product_id: int) -> DeletedProduct:
        response = await self._http.delete(f"/products/{product_id}")
        response.raise_for_status()
        return DeletedProduct(id=product_id)


# ----------------------------------------------------------------------
# Views
# ----------------------------------------------------------------------


def _money(value: Decimal) -> str:
    return f"${value:,.2f}"


def render_product_table(products: List[ProductRead]) -> Table:
    table = Table(title="Products", expand=True)
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Name", style="bold")
    table.add_column("Price", justify="right")
    table.add_column("Status")
    table.add_column("Description", overflow="fold")
    table.add_column("Created", style="dim")

    for product in products:
        table.add_row(
            str(product.id),
            product.name,
            _money(product.price),
            Text(status_label(product.status), style=STATUS_COLORS.get(product.status, "white")),
            product.description or "",
            product.created_at.strftime("%Y-%m-%d %H:%M"),
        )
    if not products:
        table.caption = "No products yet"
    return table


def render_status_chart(stats: Optional[StatisticsSnapshot], width: int = 40) -> Panel:
    """Horizontal bar chart of product counts over all five statuses."""
    counts = {status: stats.count_for(status) if stats else 0 for status in ProductStatus}
    peak = max(counts.values()) or 1

    lines = []
    for status, count in counts.items():
        bar = "█" * round(width * count / peak)
        line = Text(f"{status.value.capitalize():<10} ")
        line.append(bar, style=STATUS_COLORS[status])
        line.append(f" {count}")
        lines.append(line)
    return Panel(Group(*lines), title="Products by Status (Real-time)")


def render_totals(stats: Optional[StatisticsSnapshot]) -> Panel:
    if stats is None:
        return Panel("Loading statistics...", title="Totals")
    text = Text()
    text.append("Total products: ", style="bold")
    text.append(str(stats.totals.total_products))
    text.append("    Total value: ", style="bold")
    text.append(_money(stats.totals.total_value))
    return Panel(text, title="Totals")


def render_dashboard(state: DashboardState) -> Group:
    parts = []
    if state.notification:
        parts.append(Text(state.notification, style="bold green"))
    parts.append(render_totals(state.stats))
    parts.append(render_status_chart(state.stats))
    parts.append(render_product_table(state.products))
    return Group(*parts)
