# pricewise/cli/runner.py

"""Command-line runners: each drives one handler or store call."""

import json
import logging
import sys
from typing import Any

from rich.console import Console
from rich.table import Table

from pricewise.api.handlers import HandlerResponse, RequestHandlers
from pricewise.errors import PersistenceFailure
from pricewise.models.price_record import format_price

logger = logging.getLogger("pricewise.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


def _dump_json(body: Any) -> None:
    json.dump(body, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")


def _report_error(response: HandlerResponse) -> int:
    """Print a handler error body and return the exit code."""
    _err.print(f"[red]{response.body.get('error', 'Error')}[/red]")
    details = response.body.get("details")
    if details:
        _err.print(f"[dim]{details}[/dim]")
    return 1


def _new_table(title: str) -> Table:
    return Table(title=title, show_lines=True, title_style="bold cyan")


# ── Tracking ─────────────────────────────────────────────


def run_track(
    handlers: RequestHandlers, url: str, user_id: str, output_format: str,
) -> int:
    """Track a product URL for a user and show its current price."""
    _err.print(f"[bold]Tracking:[/bold] {url}")
    response = handlers.scrape({"url": url, "userId": user_id})
    if not response.ok:
        return _report_error(response)

    body = response.body
    if output_format == "json":
        _dump_json(body)
        return 0

    product = body["product"]
    if body["degraded"]:
        _err.print("[yellow]No price found on the page; nothing recorded.[/yellow]")
    else:
        _err.print(
            f"[green]✓ {product['product_name']} at "
            f"{format_price(body['currentPrice'], body['currency'])}[/green]"
        )
    _err.print(f"[dim]Product id: {product['id']}[/dim]")
    _err.print(
        "[dim]Cross-platform search runs in the background.[/dim]"
    )
    return 0


def run_list(
    handlers: RequestHandlers, user_id: str, output_format: str,
) -> int:
    """List a user's tracked products with their current price."""
    products = handlers.store.list_products(user_id)
    rows: list[dict[str, Any]] = []
    for product in products:
        stats = handlers.store.get_statistics(product.id, user_id)
        row = product.to_dict()
        row["stats"] = stats.to_dict() if stats else None
        rows.append(row)

    if output_format == "json":
        _dump_json(rows)
        return 0
    if not rows:
        _err.print("[yellow]No tracked products.[/yellow]")
        return 0

    table = _new_table("Tracked Products")
    table.add_column("ID", style="dim", overflow="fold")
    table.add_column("Product", max_width=50)
    table.add_column("Brand", style="magenta")
    table.add_column("Current", justify="right", style="green")
    table.add_column("Lowest", justify="right")
    table.add_column("Records", justify="right")
    for row in rows:
        stats = row["stats"]
        table.add_row(
            row["id"],
            row["product_name"][:50],
            row["brand"] or "—",
            format_price(stats["current"]) if stats else "N/A",
            format_price(stats["min"]) if stats else "N/A",
            str(stats["count"]) if stats else "0",
        )
    Console().print(table)
    return 0


def run_history(
    handlers: RequestHandlers,
    product_id: str,
    user_id: str,
    output_format: str,
) -> int:
    """Show a product's price history, most recent first."""
    product = handlers.store.get_product(product_id, user_id)
    if product is None:
        _err.print(f"[red]Product {product_id} not found.[/red]")
        return 1
    records = handlers.store.get_price_history(product_id, user_id)
    stats = handlers.store.get_statistics(product_id, user_id)

    if output_format == "json":
        _dump_json(
            {
                "product": product.to_dict(),
                "priceHistory": [r.to_dict() for r in records],
                "priceStats": stats.to_dict() if stats else None,
            }
        )
        return 0

    table = _new_table(f"Price History: {product.name[:60]}")
    table.add_column("Captured", style="dim")
    table.add_column("Platform", style="magenta")
    table.add_column("Price", justify="right", style="green")
    table.add_column("Stock", justify="center")
    table.add_column("URL", overflow="fold", style="dim")
    for record in records:
        table.add_row(
            record.captured_at.strftime("%Y-%m-%d %H:%M"),
            record.platform,
            format_price(record.price, record.currency),
            "✓" if record.in_stock else "✗",
            record.platform_url,
        )
    Console().print(table)
    if stats:
        _err.print(
            f"[bold]Current[/bold] {format_price(stats.current)}  "
            f"[bold]Min[/bold] {format_price(stats.min)}  "
            f"[bold]Max[/bold] {format_price(stats.max)}  "
            f"[bold]Avg[/bold] {format_price(stats.avg)}"
        )
    return 0


def run_recommend(
    handlers: RequestHandlers,
    product_id: str,
    user_id: str,
    output_format: str,
) -> int:
    """Ask for a buy/wait recommendation on a tracked product."""
    product = handlers.store.get_product(product_id, user_id)
    if product is None:
        _err.print(f"[red]Product {product_id} not found.[/red]")
        return 1
    records = handlers.store.get_price_history(product_id, user_id)
    stats = handlers.store.get_statistics(product_id, user_id)
    response = handlers.recommend(
        {
            "product": product.to_dict(),
            "priceHistory": [r.to_dict() for r in records],
            "priceStats": stats.to_dict() if stats else None,
        }
    )
    if not response.ok:
        return _report_error(response)

    recommendation = response.body["recommendation"]
    if output_format == "json":
        _dump_json(response.body)
        return 0

    verdict = (
        "[green]BUY NOW[/green]"
        if recommendation["shouldBuy"]
        else "[yellow]WAIT[/yellow]"
    )
    Console().print(
        f"{verdict}  {recommendation['pricePoint']} "
        f"[dim](confidence {recommendation['confidence']}%)[/dim]\n"
        f"{recommendation['reason']}"
    )
    return 0


def run_search(
    handlers: RequestHandlers,
    name: str,
    brand: str | None,
    product_id: str | None,
    output_format: str,
) -> int:
    """Search the alternate vendors for a product name."""
    _err.print(f"[bold]Searching platforms:[/bold] {name}")
    response = handlers.search_platforms(
        {"productName": name, "brand": brand, "productId": product_id}
    )
    if not response.ok:
        return _report_error(response)

    body = response.body
    if output_format == "json":
        _dump_json(body)
        return 0

    _err.print(f"[green]{body['message']}[/green]")
    if not body["results"]:
        return 0
    table = _new_table("Alternate Listings")
    table.add_column("#", style="dim", width=4)
    table.add_column("Platform", style="magenta")
    table.add_column("Name", max_width=60)
    table.add_column("Price", justify="right", style="green")
    table.add_column("Match", justify="right")
    table.add_column("URL", overflow="fold", style="dim")
    for idx, listing in enumerate(body["results"], 1):
        table.add_row(
            str(idx),
            listing["platform"],
            listing["name"][:60],
            listing["displayPrice"],
            f"{listing['similarity']:.0%}",
            listing["url"],
        )
    Console().print(table)
    return 0


def run_delete(
    handlers: RequestHandlers, product_id: str, user_id: str,
) -> int:
    """Stop tracking a product and drop its history."""
    if not handlers.store.delete_product(product_id, user_id):
        _err.print(f"[red]Product {product_id} not found.[/red]")
        return 1
    _err.print(f"[green]✓ Deleted {product_id}[/green]")
    return 0


def run_alert(
    handlers: RequestHandlers,
    product_id: str,
    target_price: float,
    user_id: str,
) -> int:
    """Store a target-price alert on a tracked product."""
    try:
        alert = handlers.store.add_alert(user_id, product_id, target_price)
    except PersistenceFailure as exc:
        logger.error("Alert not saved: %s", exc)
        _err.print(f"[red]Alert not saved: {exc}[/red]")
        return 1
    _err.print(
        f"[green]✓ Alert {alert.id} at "
        f"{format_price(alert.target_price)}[/green]"
    )
    return 0


def run_daily(handlers: RequestHandlers, output_format: str) -> int:
    """Refresh every tracked product once."""
    _err.print("[bold]Running daily price refresh...[/bold]")
    response = handlers.daily_scrape()
    if not response.ok:
        return _report_error(response)
    if output_format == "json":
        _dump_json(response.body)
    else:
        _err.print(f"[green]{response.body['message']}[/green]")
    return 1 if response.body["errorCount"] else 0
