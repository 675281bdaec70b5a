# Overview: Flask CLI command groups for bootstrap, weekly pricing and receipt maintenance.

# backend/backoffice/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables, seeds outlets and products if empty.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Weekly prices:
# - python -m flask prices clone-last-week [--date 2026-03-10]
#   Copy last week's weekly price rows into the current week.
#
# Receipts:
# - python -m flask receipts backfill-outlets [--dry-run]
#   Link name-only receipts to their outlet when the name is unambiguous.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Customer, Product
from .models.customers import DEFAULT_OUTLET_GROUP
from .services import pricing_service
from .services.concurrency import transaction
from .services.outlet_service import backfill_receipt_outlets
from .validation import ValidationError, parse_date
from .time_utils import today


SEED_OUTLETS = (
    "Autoliv", "NKC", "Teradyne", "Lear 5", "MITSUMI", "Global", "GMC", "JP Morgan",
    "Knowles", "Lexmark", "Mai", "M-land", "M-Polo", "Montage", "MPT", "Muramuto",
    "P-mactan", "QBE", "Radisson", "SCI", "Taiyo", "W-lahug", "Cebu Kitchen", "Feeder",
    "PHOKIM",
)

SEED_PRODUCTS = tuple(dict.fromkeys((
    "Atsuete", "Alugbati", "Amahong", "Ampalaya", "American Lemon", "Banana Leaves",
    "Baguio Beans", "Basil Leaves", "Black Pepper", "Bombay", "Broccoli", "Cabbage",
    "Carrots", "Camote Kay", "Cauliflower", "Celery", "Chinese Kangkong", "Chinese Petchay",
    "Gabi", "Green Peas", "Kalamansi", "Kamatis", "Kamote", "Kangkong", "Labanos", "Langka",
    "Lemon", "Luya", "Mais", "Monggo", "Mustasa", "Okra", "Onion", "Pandan", "Patola",
    "Pechay", "Radish", "Sibuyas", "Sili", "Sitaw", "Talong", "Tanglad", "Togue", "Upo",
)))


def seed_reference_data(session) -> tuple[int, int]:
    """Insert seed outlets and products into empty tables. Returns (outlets, products) created."""
    outlets_created = 0
    products_created = 0

    if session.query(Customer).count() == 0:
        for name in SEED_OUTLETS:
            session.add(Customer(name=name, is_active=True, group_name=DEFAULT_OUTLET_GROUP))
            outlets_created += 1

    if session.query(Product).count() == 0:
        for name in SEED_PRODUCTS:
            session.add(Product(name=name, unit="pcs/kg", category="General", is_active=True))
            products_created += 1

    session.flush()
    return outlets_created, products_created


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the back office database.

    Creates:
    - All tables (if missing)
    - Seed outlets in the default matrix group (only when there are none)
    - Seed products (only when there are none)
    """
    click.echo("START Initializing back office...")
    db.create_all()

    with transaction(db.session) as session:
        outlets, products = seed_reference_data(session)

    click.echo(f"PASS Outlets created: {outlets}")
    click.echo(f"PASS Products created: {products}")
    click.echo("DONE System initialized")


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

    click.echo("DONE Database reset complete")


@click.group('prices')
def prices_group():
    """Weekly price maintenance."""


@prices_group.command('clone-last-week')
@click.option('--date', 'date_str', default=None, help='Any date in the target week (YYYY-MM-DD)')
@with_appcontext
def clone_last_week_command(date_str):
    """Copy last week's weekly prices into the target week."""
    try:
        on_date = parse_date(date_str, "date", default=today())
    except ValidationError as e:
        raise click.BadParameter(str(e), param_hint="--date")

    with transaction(db.session) as session:
        created = pricing_service.clone_last_week(session, on_date)
        count = len(created)

    click.echo(f"PASS Cloned {count} weekly price(s) into the week of {on_date.isoformat()}")


@click.group('receipts')
def receipts_group():
    """Receipt maintenance."""


@receipts_group.command('backfill-outlets')
@click.option('--dry-run', is_flag=True, help='Report what would be linked without writing')
@with_appcontext
def backfill_outlets_command(dry_run):
    """Link legacy name-only receipts to outlets with a unique matching name."""
    with transaction(db.session) as session:
        report = backfill_receipt_outlets(session, dry_run=dry_run)

    prefix = "DRY RUN " if dry_run else ""
    click.echo(f"{prefix}Scanned {report['scanned']} receipt(s) without outlet id")
    click.echo(f"{prefix}Linked {report['linked']} receipt(s)")
    for name in report["ambiguous"]:
        click.echo(f"WARN Ambiguous outlet name, skipped: {name}")
    for name in report["unmatched"]:
        click.echo(f"WARN No outlet named: {name}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(prices_group)
    app.cli.add_command(receipts_group)
