# Overview: Flask CLI command groups for bootstrap, backup and inspection.

# backend/bizbooks/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to bizbooks (PowerShell: $env:FLASK_APP="bizbooks").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables and seeds default settings (bankBalance = 0).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Backup and migration:
# - python -m flask data import-json ./backup-2024-01-15.json
#   Load a JSON backup (also accepts the browser-storage export format).
# - python -m flask data export-json [./backup.json]
#   Write a JSON backup (stdout when no path is given).
# - python -m flask data export-csv sales [./sales.csv]
# - python -m flask data import-csv inventory ./inventory.csv
#
# Reports:
# - python -m flask reports dashboard --year 2024 --month 3
#   Print monthly sales, expenses, net profit and bank balance.
# - python -m flask reports low-stock
#   List items at or below their reorder threshold.

import json

import click
from flask.cli import with_appcontext

from .errors import BookkeepingError
from .extensions import db
from .money_utils import format_cents
from .services import backup_service, inventory_service, reporting_service
from .services.settings_service import ensure_default_settings
from .time_utils import utcnow


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the bookkeeping database.

    Creates:
    - Tables for sales, expenses, inventory items and settings (if missing)
    - Default settings: bankBalance = "0"
    """
    click.echo("START Initializing database...")
    db.create_all()
    click.echo("PASS Tables ready")

    added = ensure_default_settings()
    if added:
        click.echo(f"PASS Seeded {added} default setting(s)")
    else:
        click.echo("PASS Default settings already present")

    click.echo("DONE Database initialization completed successfully!")


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
    ensure_default_settings()

    click.echo("PASS Database reset complete.")


@click.group('data')
def data_group():
    """Backup, restore and CSV transfer commands."""


@data_group.command('import-json')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@with_appcontext
def import_json_cli(path):
    """Load records from a JSON backup file."""
    click.echo(f"Reading data from: {path}")
    with open(path, encoding="utf-8") as fh:
        try:
            payload = json.load(fh)
        except json.JSONDecodeError as exc:
            raise click.ClickException(f"Error reading JSON file: {exc}")

    try:
        counts = backup_service.import_json(payload)
    except BookkeepingError as exc:
        raise click.ClickException(exc.message)

    click.echo(f"- Sales: {counts['sales']} records")
    click.echo(f"- Expenses: {counts['expenses']} records")
    click.echo(f"- Inventory: {counts['inventory']} records")
    if counts["bank_balance_updated"]:
        click.echo("- Bank balance updated")
    click.echo("PASS Migration completed successfully!")


@data_group.command('export-json')
@click.argument('path', required=False, type=click.Path(dir_okay=False, writable=True))
@with_appcontext
def export_json_cli(path):
    """Write a JSON backup to PATH (stdout when omitted)."""
    text = json.dumps(backup_service.export_json(), indent=2)
    if path is None:
        click.echo(text)
        return
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(text)
    click.echo(f"PASS Exported all data to {path}")


@data_group.command('export-csv')
@click.argument('kind', type=click.Choice(backup_service.CSV_KINDS))
@click.argument('path', required=False, type=click.Path(dir_okay=False, writable=True))
@with_appcontext
def export_csv_cli(kind, path):
    """Write one collection as CSV to PATH (stdout when omitted)."""
    text = backup_service.export_csv(kind)
    if path is None:
        click.echo(text, nl=False)
        return
    with open(path, "w", encoding="utf-8", newline="") as fh:
        fh.write(text)
    click.echo(f"PASS Exported {kind} to {path}")


@data_group.command('import-csv')
@click.argument('kind', type=click.Choice(backup_service.CSV_KINDS))
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@with_appcontext
def import_csv_cli(kind, path):
    """Import one collection from a CSV file."""
    with open(path, encoding="utf-8", newline="") as fh:
        text = fh.read()
    try:
        count = backup_service.import_csv(kind, text)
    except BookkeepingError as exc:
        raise click.ClickException(exc.message)
    click.echo(f"PASS Imported {count} {kind} record(s)")


@click.group('reports')
def reports_group():
    """Read-only reports."""


@reports_group.command('dashboard')
@click.option('--year', type=int, help='Year (defaults to the current year)')
@click.option('--month', type=int, help='Month 1-12 (defaults to the current month)')
@with_appcontext
def dashboard_cli(year, month):
    """Print the monthly dashboard figures."""
    now = utcnow()
    try:
        totals = reporting_service.monthly_totals(
            now.year if year is None else year,
            now.month if month is None else month,
        )
    except BookkeepingError as exc:
        raise click.ClickException(exc.message)

    click.echo(f"Dashboard {totals['year']:04d}-{totals['month']:02d}")
    click.echo(f"  Sales:        {format_cents(totals['sales_cents'])}")
    click.echo(f"  Expenses:     {format_cents(totals['expenses_cents'])}")
    click.echo(f"  Net profit:   {format_cents(totals['net_profit_cents'])}")
    click.echo(f"  Bank balance: {format_cents(totals['bank_balance_cents'])}")


@reports_group.command('low-stock')
@with_appcontext
def low_stock_cli():
    """List items at or below their reorder threshold, and items out of stock."""
    items = inventory_service.list_inventory_items()
    flagged = [i for i in items if i.current_stock <= i.min_stock]

    if not flagged:
        click.echo("No items at or below their reorder threshold.")
        return

    click.echo("\n" + "="*72)
    click.echo(f"{'ID':<5} {'Name':<30} {'Category':<15} {'Stock':>8} {'Min':>8}")
    click.echo("="*72)
    for item in flagged:
        click.echo(f"{item.id:<5} {item.name:<30} {item.category:<15} {item.current_stock:>8} {item.min_stock:>8}")
    click.echo("="*72 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(data_group)
    app.cli.add_command(reports_group)
