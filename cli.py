"""Command-line entry point: run the server or drive a terminal dashboard."""

import asyncio
from decimal import Decimal
from typing import Optional, Union

import httpx
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.live import Live
from rich.prompt import Confirm, Prompt
from websockets.exceptions import WebSocketException

from dashboard import (
    DashboardClient,
    render_dashboard,
    render_product_table,
    render_status_chart,
    render_totals,
    status_label,
)
from models.product import ProductCreate, ProductReplace, ProductStatus

console = Console()

app = typer.Typer(
    help="Real-time inventory dashboard",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

ServerOption = typer.Option("http://localhost:5000", "--server", "-s", help="Server base URL")
STATUS_CHOICES = [s.value for s in ProductStatus]


def _run(coro):
    try:
        return asyncio.run(coro)
    except httpx.HTTPStatusError as e:
        if e.response.status_code == 404:
            console.print("[red]❌ Product not found[/red]")
        else:
            console.print(f"[red]❌ Server responded {e.response.status_code}: {e.response.text}[/red]")
        raise typer.Exit(code=1) from e
    except httpx.HTTPError as e:
        console.print(f"[red]❌ Failed to reach the server: {e}[/red]")
        raise typer.Exit(code=1) from e
    except (OSError, WebSocketException) as e:
        console.print(f"[red]❌ Lost connection to the real-time channel: {e}[/red]")
        raise typer.Exit(code=1) from e


def _prompt_form(
    name: Optional[str] = None,
    price: Optional[Decimal] = None,
    status: Union[ProductStatus, str] = ProductStatus.NEW,
    description: Optional[str] = None,
) -> dict:
    """Ask for every product field, offering current values as defaults."""
    fields = {
        "name": Prompt.ask("Name", default=name),
        "price": Prompt.ask("Price", default=str(price) if price is not None else None),
        "status": Prompt.ask("Status", choices=STATUS_CHOICES, default=status_label(status)),
        "description": Prompt.ask("Description", default=description or ""),
    }
    fields["description"] = fields["description"] or None
    return fields


def _build(model, fields: dict):
    try:
        return model(**fields)
    except ValidationError as e:
        for error in e.errors():
            console.print(f"[red]❌ {error['loc'][0]}: {error['msg']}[/red]")
        raise typer.Exit(code=1) from e


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", help="Interface to bind"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port (defaults to FASTAPIPORT)"),
) -> None:
    """Run the API and real-time server."""
    import uvicorn

    import main

    uvicorn.run(main.app, host=host, port=port or main.port, log_config=None)


@app.command("init-db")
def init_db() -> None:
    """Create the products table if it is missing."""
    from db import Database, init_schema

    try:
        init_schema(Database())
    except Exception as e:
        console.print(f"[red]❌ Failed to initialise schema: {e}[/red]")
        raise typer.Exit(code=1) from e
    console.print("[green]✅ Products table ready[/green]")


@app.command()
def watch(server: str = ServerOption) -> None:
    """Live dashboard kept current by server events."""

    async def _watch():
        async with DashboardClient(server) as client:
            state = await client.load()
            with Live(render_dashboard(state), console=console, refresh_per_second=4) as live:
                await client.listen(on_change=lambda s: live.update(render_dashboard(s)))

    try:
        _run(_watch())
    except KeyboardInterrupt:
        console.print("[yellow]Stopped[/yellow]")


@app.command("list")
def list_products(server: str = ServerOption) -> None:
    """Print all products, newest first."""

    async def _list():
        async with DashboardClient(server) as client:
            return await client.fetch_products()

    console.print(render_product_table(_run(_list())))


@app.command()
def stats(server: str = ServerOption) -> None:
    """Print per-status statistics and totals."""

    async def _stats():
        async with DashboardClient(server) as client:
            return await client.fetch_stats()

    snapshot = _run(_stats())
    console.print(render_totals(snapshot))
    console.print(render_status_chart(snapshot))


@app.command()
def add(server: str = ServerOption) -> None:
    """Create a product from an interactive form."""
    payload = _build(ProductCreate, _prompt_form())

    async def _add():
        async with DashboardClient(server) as client:
            return await client.create_product(payload)

    product = _run(_add())
    console.print(f"[green]✅ Created product {product.id}: {product.name}[/green]")


@app.command()
def edit(
    product_id: int = typer.Argument(..., help="Product ID"),
    server: str = ServerOption,
) -> None:
    """Edit every field of a product; current values are offered as defaults."""

    async def _fetch():
        async with DashboardClient(server) as client:
            return await client.fetch_product(product_id)

    current = _run(_fetch())
    payload = _build(ProductReplace, _prompt_form(current.name, current.price, current.status, current.description))

    async def _save():
        async with DashboardClient(server) as client:
            return await client.update_product(product_id, payload)

    product = _run(_save())
    console.print(f"[green]✅ Updated product {product.id}: {product.name}[/green]")


@app.command()
def status(
    product_id: int = typer.Argument(..., help="Product ID"),
    new_status: ProductStatus = typer.Argument(..., help="New status"),
    server: str = ServerOption,
) -> None:
    """Change only the status of a product."""

    async def _status():
        async with DashboardClient(server) as client:
            return await client.update_status(product_id, new_status)

    product = _run(_status())
    console.print(f"[green]✅ {product.name} → {status_label(product.status)}[/green]")


@app.command()
def delete(
    product_id: int = typer.Argument(..., help="Product ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
    server: str = ServerOption,
) -> None:
    """Delete a product."""
    if not yes and not Confirm.ask(f"Are you sure you want to delete product {product_id}?"):
        console.print("[yellow]Deletion cancelled[/yellow]")
        return

    async def _delete():
        async with DashboardClient(server) as client:
            return await client.delete_product(product_id)

    _run(_delete())
    console.print(f"[green]✅ Product {product_id} deleted[/green]")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
