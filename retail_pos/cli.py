"""Command-line interface for setup and offline checks."""

import sys
from datetime import date, timedelta
from typing import Optional, Tuple

import click

from .database import get_engine, init_db, wait_for_database
from .middleware.session_validator import ShopIdentityValidator
from .models.cart import CartLine, DiscountSpec
from .services.inventory_service import InventoryService
from .services.pricing import calculate_cart
from .services.report_service import ReportService
from .services.shop_service import ShopService
from .utils.config import get_config
from .utils.exceptions import BaseAppException, ConfigurationError


def _parse_item(raw: str) -> CartLine:
    """Read ``QTY:PRICE[:FLOOR]``."""
    parts = raw.split(":")
    if len(parts) not in (2, 3):
        raise click.BadParameter(f"expected QTY:PRICE[:FLOOR], got {raw!r}", param_hint="--item")

    try:
        quantity = int(parts[0])
        sell_price = float(parts[1])
        floor_price = float(parts[2]) if len(parts) == 3 else 0.0
        return CartLine(quantity=quantity, sell_price=sell_price, floor_price=floor_price)
    except ValueError as e:
        raise click.BadParameter(f"{raw!r}: {e}", param_hint="--item")


@click.group()
@click.version_option(version="1.0.0")
def cli():
    """
    Retail POS CLI.

    Set up the database and shops, and check carts and stock.
    """
    pass


@cli.command("init-db")
def init_db_command():
    """Create all database tables."""
    try:
        engine = get_engine()
        wait_for_database(engine)
        init_db(engine)
        click.echo(click.style("✓ Database initialized", fg="green", bold=True))
    except Exception as e:
        click.echo(click.style(f"✗ Error initializing database: {str(e)}", fg="red"), err=True)
        sys.exit(1)


@cli.command("create-shop")
@click.argument("name")
def create_shop(name: str):
    """
    Create a shop and print its identity headers.

    NAME: Shop name
    """
    try:
        init_db(get_engine())
        shop = ShopService().create_shop(name)
        signature = ShopIdentityValidator().sign(shop["id"])

        click.echo(click.style(f"✓ Shop {shop['id']} created: {shop['name']}", fg="green", bold=True))
        click.echo()
        click.echo(f"X-Shop-Id:        {shop['id']}")
        click.echo(f"X-Shop-Signature: {signature}")

    except BaseAppException as e:
        click.echo(click.style(f"✗ {e.message}", fg="red"), err=True)
        sys.exit(1)


@cli.command()
@click.option(
    "--item", "items",
    multiple=True,
    required=True,
    help="Cart line as QTY:PRICE[:FLOOR]; repeat for more lines"
)
@click.option("--discount", default="0", help="Discount value as typed")
@click.option(
    "--type", "discount_type",
    type=click.Choice(["PERCENT", "FIXED"], case_sensitive=False),
    default="FIXED",
    help="How the discount value is read"
)
@click.option(
    "--auto-clamp",
    is_flag=True,
    help="Clamp an oversized discount to the maximum instead of rejecting it"
)
def quote(items: Tuple[str, ...], discount: str, discount_type: str, auto_clamp: bool):
    """Price a cart offline with the same rules the server uses."""
    lines = [_parse_item(raw) for raw in items]

    try:
        totals = calculate_cart(
            lines,
            DiscountSpec(value=discount, type=discount_type),
            auto_clamp_on_overflow=auto_clamp,
            epsilon=get_config().pricing.discount_epsilon
        )
    except BaseAppException as e:
        click.echo(click.style(f"✗ {e.message}", fg="red"), err=True)
        sys.exit(1)

    click.echo(f"Subtotal:        {totals.subtotal:.2f}")
    click.echo(f"Max discount:    {totals.allowed_discount:.2f}")
    click.echo(f"Discount:        {totals.effective_discount}")
    click.echo(click.style(f"Grand total:     {totals.grand_total}", bold=True))

    if totals.auto_clamped:
        click.echo(click.style("⚠ Discount clamped to the maximum", fg="yellow"))


@cli.command("low-stock")
@click.option("--shop-id", type=int, default=None, help="Only this shop")
def low_stock(shop_id: Optional[int]):
    """List products at or below their stock threshold."""
    try:
        products = InventoryService().low_stock_products(shop_id)
    except BaseAppException as e:
        click.echo(click.style(f"✗ {e.message}", fg="red"), err=True)
        sys.exit(1)

    if not products:
        click.echo(click.style("✓ No products below threshold", fg="green"))
        return

    click.echo(click.style(f"{len(products)} product(s) low on stock:", fg="yellow", bold=True))
    for product in products:
        click.echo(
            f"  [shop {product['shopId']}] {product['name']}: "
            f"{product['currentStock']} left (threshold {product['stockThreshold']})"
        )


@cli.command("sales-report")
@click.option("--shop-id", type=int, required=True)
@click.option("--days", type=int, default=30, show_default=True, help="Days back from today")
def sales_report(shop_id: int, days: int):
    """Print a sales summary for the last DAYS days."""
    end_date = date.today()
    start_date = end_date - timedelta(days=max(0, days - 1))

    try:
        report = ReportService().sales_report(shop_id, start_date, end_date)
    except BaseAppException as e:
        click.echo(click.style(f"✗ {e.message}", fg="red"), err=True)
        sys.exit(1)

    click.echo(report.get_summary())


@cli.command()
def config_info():
    """Display current configuration settings."""
    try:
        config = get_config()

        click.echo("Configuration Settings:")
        click.echo("=" * 60)
        click.echo()

        click.echo("Environment:")
        click.echo(f"  Environment:     {config.env.environment}")
        click.echo(f"  Log level:       {config.logging.level}")
        click.echo(f"  Database:        {config.env.database_url}")
        click.echo(f"  Session secret:  {'*' * len(config.env.session_secret)}")
        click.echo()

        click.echo("Pricing:")
        click.echo(f"  Epsilon:         {config.pricing.discount_epsilon}")
        click.echo(f"  Floor margin:    {config.pricing.floor_margin_rate:.0%} (min {config.pricing.floor_margin_minimum})")
        click.echo(f"  Stock threshold: {config.pricing.default_stock_threshold}")
        click.echo()

        click.echo("Purchase orders:")
        click.echo(f"  Delete window:   {config.purchase_orders.deletion_window_hours} hours")
        click.echo()

        click.echo("Scheduler:")
        click.echo(f"  Low-stock scan:  every {config.scheduler.low_stock_scan_minutes} minutes")
        click.echo(f"  Timezone:        {config.scheduler.timezone}")
        click.echo()

    except ConfigurationError as e:
        click.echo(click.style(f"✗ Configuration error: {e.message}", fg="red"), err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(click.style(f"✗ Error loading config: {str(e)}", fg="red"), err=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
