# Overview: Flask CLI command groups for bootstrap, seeding, and maintenance.

# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (idempotent). Use `flask db upgrade` for migrations.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Seeding:
# - python -m flask businesses create --phone "+919800000001" --name "Acme Traders"
#   Register a business without OTP verification.
# - python -m flask businesses list
# - python -m flask inventory add --business-id <id> --name "Rice 25kg" --qty 40 --gen-price-cents 150000
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions --older-than-days 30
#   Delete expired or revoked session tokens.

import click
from flask.cli import with_appcontext

from .errors import CommerceError
from .extensions import db
from .models import Business
from .services import auth_service, inventory_service, session_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables ensured.")


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

    click.echo("PASS Database reset complete.")


@click.group('businesses')
def businesses_group():
    """Business (tenant) management."""


@businesses_group.command('create')
@click.option('--phone', required=True, help='Verified contact phone (unique)')
@click.option('--name', required=True, help='Business name')
@click.option('--owner', default=None, help='Owner name (defaults to business name)')
@click.option('--gstin', default='', help='GST identification number')
@click.option('--location', default='', help='City / address')
@click.option('--business-type', default=None)
@with_appcontext
def create_business_cli(phone, name, owner, gstin, location, business_type):
    """Register a business directly (skips OTP verification)."""
    try:
        business = auth_service.create_business(
            contact=phone,
            business_name=name,
            owner_name=owner or name,
            gstin=gstin,
            location=location,
            business_type=business_type,
        )
    except CommerceError as e:
        click.echo(f"FAIL {e.message}")
        return

    click.echo(f"PASS Created business: {business.business_name} (ID: {business.id})")


@businesses_group.command('list')
@with_appcontext
def list_businesses_cli():
    """List all businesses."""
    businesses = db.session.query(Business).order_by(Business.business_name).all()
    if not businesses:
        click.echo("No businesses found.")
        return
    for business in businesses:
        click.echo(f"{business.id}  {business.business_name}  {business.contact}")


@click.group('inventory')
def inventory_group():
    """Inventory seeding."""


@inventory_group.command('add')
@click.option('--business-id', required=True)
@click.option('--name', required=True)
@click.option('--qty', type=click.IntRange(min=0), default=0, show_default=True)
@click.option('--gen-price-cents', type=click.IntRange(min=0), default=None)
@click.option('--price-cents', type=click.IntRange(min=0), default=None)
@click.option('--unit', default=None)
@with_appcontext
def add_inventory_cli(business_id, name, qty, gen_price_cents, price_cents, unit):
    """Add a product to a business's inventory."""
    business = db.session.get(Business, business_id)
    if not business:
        click.echo(f"FAIL Business ID {business_id} not found")
        return

    item = inventory_service.add_item(
        business_id, name, qty=qty, gen_price_cents=gen_price_cents, price_cents=price_cents, unit=unit,
    )
    click.echo(f"PASS Added {item.name} (ID: {item.id}) to {business.business_name}")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@click.option('--older-than-days', type=int, default=30, show_default=True)
@with_appcontext
def cleanup_sessions_cli(older_than_days):
    """Delete expired or revoked session tokens."""
    deleted = session_service.cleanup_expired_sessions(older_than_days=older_than_days)
    click.echo(f"Deleted {deleted} expired or revoked sessions older than {older_than_days} days.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(businesses_group)
    app.cli.add_command(inventory_group)
    app.cli.add_command(maintenance_group)
