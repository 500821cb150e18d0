# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/pos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--no-demo]
#   Create tables and seed any missing store keys (demo catalog, admin/cashier).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system wipe --yes
#   Clear sales, expenses and the cart; keeps products, users and settings.
#
# Inspection:
# - python -m flask users list
# - python -m flask reports summary [--date 2024-05-01]
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions --days 30

import click
from flask import current_app
from flask.cli import with_appcontext

from .context import get_store, get_zone
from .extensions import db
from .services import reporting_service, session_service
from .services.store_service import CART_KEY, EXPENSES_KEY, SALES_KEY
from .validation import ValidationError, parse_date_param


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--no-demo', is_flag=True, help='Seed empty products and users instead of the demo data')
@with_appcontext
def init_system(no_demo):
    """
    Initialize the POS store.

    Idempotent: keys that already hold data are left untouched.
    Demo accounts: admin/password and cashier/password.
    """
    click.echo("START Initializing POS store...")
    db.create_all()
    click.echo("PASS Tables ready")

    seeded = get_store().initialize(seed_demo=not no_demo)
    current_app.extensions["pos_initialized"] = get_store().is_initialized()
    if seeded:
        for key in seeded:
            click.echo(f"PASS Seeded {key}")
    else:
        click.echo("PASS Store already initialized")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@system_group.command('wipe')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def wipe_data(yes):
    """
    Clear transactional data: sales, expenses and the active cart.

    Products (with their stock) and users are kept.
    """
    if not yes:
        click.confirm("WARN This will DELETE all sales and expenses. Are you sure?", abort=True)

    store = get_store()
    store.save_sales([])
    store.save_expenses([])
    store.clear([CART_KEY])
    click.echo(f"PASS Cleared {SALES_KEY}, {EXPENSES_KEY} and {CART_KEY}")


@click.group('users')
def users_group():
    """User inspection commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = get_store().users()
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*50)
    click.echo(f"{'ID':<5} {'Username':<30} {'Role'}")
    click.echo("="*50)
    for user in users:
        click.echo(f"{user.id:<5} {user.username:<30} {user.role.value}")
    click.echo("="*50 + "\n")


@click.group('reports')
def reports_group():
    """Reporting commands."""


@reports_group.command('summary')
@click.option('--date', 'as_of', default=None, help='Calendar day (YYYY-MM-DD), defaults to today')
@with_appcontext
def report_summary(as_of):
    """Print the dashboard figures and the inventory valuation."""
    try:
        day = parse_date_param(as_of, "date")
    except ValidationError as exc:
        raise click.BadParameter(str(exc))

    store = get_store()
    settings = store.settings()
    dashboard = reporting_service.dashboard_report(
        sales=store.sales(),
        products=store.products(),
        zone=get_zone(),
        as_of=day,
    )
    inventory = reporting_service.inventory_valuation(store.products(), settings.low_stock_threshold)
    currency = settings.currency

    click.echo(f"Summary for {dashboard['date']}")
    click.echo(f"  Daily revenue:    {currency}{dashboard['daily_revenue']:.2f}")
    click.echo(f"  Daily profit:     {currency}{dashboard['daily_profit']:.2f}")
    click.echo(f"  Monthly revenue:  {currency}{dashboard['monthly_revenue']:.2f}")
    click.echo(f"  Monthly profit:   {currency}{dashboard['monthly_profit']:.2f}")
    for label, key in (("today", "top_product_today"), ("this month", "top_product_month")):
        top = dashboard[key]
        if top:
            click.echo(f"  Top product {label}: {top['name']} ({top['quantity']})")
        else:
            click.echo(f"  Top product {label}: none")
    click.echo(f"  Stock retail value: {currency}{inventory['total_retail_value']:.2f}")
    click.echo(f"  Stock cost value:   {currency}{inventory['total_cost_value']:.2f}")
    click.echo(f"  Low stock products: {inventory['low_stock_count']}")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@click.option('--days', default=30, show_default=True, type=int, help='Keep sessions newer than this')
@with_appcontext
def cleanup_sessions(days):
    """Delete expired or revoked session tokens."""
    deleted = session_service.cleanup_expired_sessions(days=days)
    click.echo(f"PASS Deleted {deleted} session(s)")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(reports_group)
    app.cli.add_command(maintenance_group)
