# Overview: Flask CLI command groups for bootstrap, numbering and stock maintenance.

# backend/mizan/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to mizan (PowerShell: $env:FLASK_APP="mizan").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: tables, one counter row per prefix, the cash box row and default lookups.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Numbering:
# - python -m flask numbers list
#   Show every counter with its last issued value.
# - python -m flask numbers next quotation
# - python -m flask numbers next product --prefix M
#   Issue (and burn) the next number.
#
# Stock:
# - python -m flask stock reconcile
#   Replay warehouse history and compare with the maintained balances. Exits 1 on divergence.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Country, CustomerType, ProductCategory, UnitOfMeasure, WarehouseType
from .services import numbering_service, warehouse_service
from .services.concurrency import ResourceBusyError
from .services.treasury_service import ensure_cash_box


DEFAULT_UNITS = ("Piece", "Box", "Carton", "Kilogram", "Liter", "Meter")
DEFAULT_CUSTOMER_TYPES = ("Retail", "Wholesale", "Distributor")
DEFAULT_CATEGORIES = ("General",)
DEFAULT_WAREHOUSE_TYPES = (
    ("Main", "رئيسي"),
    ("Finished goods", "منتجات تامة"),
    ("Raw materials", "خامات"),
)


def _ensure_named(model, names) -> int:
    existing = {name for (name,) in db.session.query(model.name).all()}
    created = 0
    for name in names:
        if name not in existing:
            db.session.add(model(name=name))
            created += 1
    return created


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--country', 'country_name', default=None, help='Seed a default country')
@with_appcontext
def init_system(country_name):
    """
    Initialize the database: create tables, seed counters, cash box and lookups.

    Safe to run repeatedly; existing rows are left untouched.
    """
    click.echo("START Initializing Mizan...")

    db.create_all()
    click.echo("PASS Tables ready")

    created = numbering_service.seed_counters()
    click.echo(f"PASS Counters: {created} created")

    ensure_cash_box()
    click.echo("PASS Cash box ready")

    lookups = 0
    lookups += _ensure_named(UnitOfMeasure, DEFAULT_UNITS)
    lookups += _ensure_named(CustomerType, DEFAULT_CUSTOMER_TYPES)
    lookups += _ensure_named(ProductCategory, DEFAULT_CATEGORIES)
    existing_types = {name for (name,) in db.session.query(WarehouseType.name).all()}
    for name, name_ar in DEFAULT_WAREHOUSE_TYPES:
        if name not in existing_types:
            db.session.add(WarehouseType(name=name, name_ar=name_ar))
            lookups += 1
    if country_name:
        lookups += _ensure_named(Country, (country_name,))
    db.session.commit()
    click.echo(f"PASS Lookups: {lookups} created")

    click.echo("DONE Mizan initialized")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA, counters included.
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('numbers')
def numbers_group():
    """Document counter inspection."""


@numbers_group.command('list')
@with_appcontext
def list_numbers():
    counters = numbering_service.list_counters()
    if not counters:
        click.echo("No counters yet. Run 'python -m flask system init'.")
        return
    for counter in counters:
        click.echo(f"{counter.document_type:<24} {counter.prefix:<8} {counter.current_code}")


@numbers_group.command('next')
@click.argument('document_type')
@click.option('--prefix', default=None, help='Prefix for multi-prefix types (product: P, M, R, F, S)')
@with_appcontext
def next_number(document_type, prefix):
    """Issue the next number for DOCUMENT_TYPE (the number is consumed)."""
    try:
        number = numbering_service.next_number(document_type, prefix)
    except numbering_service.NumberingError as e:
        raise click.ClickException(str(e))
    except ResourceBusyError as e:
        raise click.ClickException(f"{e} (retryable)")
    click.echo(number)


@click.group('stock')
def stock_group():
    """Warehouse stock maintenance."""


@stock_group.command('reconcile')
@with_appcontext
def reconcile_stock():
    """Compare maintained stock with the replayed transaction history."""
    divergences = warehouse_service.reconcile_stock()
    if not divergences:
        click.echo("PASS Stock balances match the transaction history")
        return

    click.echo(f"FAIL {len(divergences)} diverging (warehouse, product) pairs:")
    for row in divergences:
        click.echo(
            f"  warehouse={row['warehouse_id']} product={row['product_id']} "
            f"maintained={row['maintained']} replayed={row['replayed']} diff={row['difference']}"
        )
    raise SystemExit(1)


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(numbers_group)
    app.cli.add_command(stock_group)
