# Overview: Flask CLI command groups for bootstrap and ledger inspection.

# backend/stockmate/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py.
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed-demo
#   Create a demo warehouse, customer, fabric, color and one stocked product.
#
# Ledger inspection:
# - python -m flask ledger show [--product-id 1] [--warehouse-id 1]
#   Print product/warehouse quantity rows.

import click
from flask.cli import with_appcontext

from .extensions import db
from .services import directory_service, ledger_service, product_service
from .validation import ConflictError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


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

    click.echo("PASS Database reset complete. Run 'python -m flask system seed-demo' for demo data.")


@system_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """
    Create demo directory rows and one product stocked with 100 meters.

    Safe to re-run: aborts without changes when the demo customer exists.
    """
    try:
        warehouse = directory_service.create_warehouse(name="Main Warehouse", address="1 Mill Road", city="Lahore", country="PK")
        customer = directory_service.create_customer(name="Demo Tailors", email="orders@demo-tailors.test")
        fabric = directory_service.create_fabric(name="Cotton", description="Plain weave cotton")
        color = directory_service.create_color(name="Red", hex_code="#FF0000")
        db.session.commit()
    except ConflictError as e:
        db.session.rollback()
        click.echo(f"SKIP  Demo data already present ({e})")
        return

    product = product_service.create_product(
        name="Cotton Red",
        fabric_id=fabric.id,
        color_id=color.id,
        price="12.50",
        warehouse_quantities=[{"warehouse_id": warehouse.id, "quantity": 100, "unit": "meter"}],
    )

    click.echo(f"PASS Warehouse {warehouse.id}: {warehouse.name}")
    click.echo(f"PASS Customer {customer.id}: {customer.name}")
    click.echo(f"PASS Product {product.id}: {product.name}")
    for entry in ledger_service.list_entries(product_id=product.id):
        click.echo(f"     stocked {entry.quantity} {entry.unit} in warehouse {entry.warehouse_id}")


@click.group('ledger')
def ledger_group():
    """Quantity ledger inspection."""


@ledger_group.command('show')
@click.option('--product-id', type=int, help='Filter by product ID')
@click.option('--warehouse-id', type=int, help='Filter by warehouse ID')
@with_appcontext
def show_ledger(product_id, warehouse_id):
    """
    List product/warehouse quantity rows.

    Example:
        flask ledger show
        flask ledger show --product-id 1
    """
    entries = ledger_service.list_entries(product_id=product_id, warehouse_id=warehouse_id)

    if not entries:
        click.echo("No ledger entries found.")
        return

    click.echo("\n" + "="*60)
    click.echo(f"{'Product':<10} {'Warehouse':<12} {'Quantity':>14} {'Unit':<8} {'Version'}")
    click.echo("="*60)

    for entry in entries:
        click.echo(
            f"{entry.product_id:<10} {entry.warehouse_id:<12} {str(entry.quantity):>14} "
            f"{entry.unit:<8} {entry.version_id}"
        )

    click.echo("="*60)
    click.echo(f"Total: {len(entries)} entries\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(ledger_group)
