# Overview: Flask CLI command groups for bootstrap, the reservation sweep and reports.

# backend/jaguar/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables (development shortcut; production uses `flask db upgrade`).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed-demo
#   Load the demo suppliers, orders, bundles and a published list.
#
# Reservations (schedule the sweep from cron / a systemd timer):
# - python -m flask reservations sweep [--now 2024-01-31T00:00:00Z]
#   Expire every RESERVA quotation past fecha_expiracion and release its bundles.
# - python -m flask reservations expiring [--hours 24]
#   List reservations that expire soon.
#
# Reconciliation:
# - python -m flask debt report
#   Supplier debt per open purchase orders, with level.

from datetime import timedelta

import click
from flask import current_app
from flask.cli import with_appcontext

from .errors import ValidationError
from .extensions import db
from .repositories import get_repositories
from .services import debt_service, quotation_service
from .services.seed_service import seed_demo
from .validation import parse_optional_datetime


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Tables created.")


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
def seed_demo_command():
    """Load demo data (skipped when suppliers already exist)."""
    counts = seed_demo(get_repositories())
    if not any(counts.values()):
        click.echo("SKIP Data already present; nothing seeded.")
        return
    click.echo(
        f"PASS Seeded {counts['proveedores']} suppliers, {counts['pedidos']} orders, "
        f"{counts['sacos']} bundles, {counts['listas']} list."
    )


@click.group('reservations')
def reservations_group():
    """Reservation window maintenance."""


@reservations_group.command('sweep')
@click.option('--now', 'now_text', default=None, help='Evaluate expiry as of this ISO-8601 time (default: now)')
@with_appcontext
def sweep_command(now_text):
    """Expire reservations past their window and release their bundles."""
    try:
        now = parse_optional_datetime(now_text, "--now")
    except ValidationError as e:
        raise click.BadParameter(e.message, param_hint="--now")

    expired = quotation_service.sweep_expired_reservations(get_repositories(), now=now)
    if not expired:
        click.echo("PASS No reservations to expire.")
        return
    click.echo(f"PASS Expired {len(expired)} reservation(s): {', '.join(str(i) for i in expired)}")


@reservations_group.command('expiring')
@click.option('--hours', type=int, default=None, help='Window in hours (default: EXPIRING_SOON_HOURS)')
@with_appcontext
def expiring_command(hours):
    """List reservations expiring within the window."""
    hours = hours if hours is not None else current_app.config["EXPIRING_SOON_HOURS"]
    quotations = quotation_service.reservations_expiring_within(get_repositories(), timedelta(hours=hours))
    if not quotations:
        click.echo(f"No reservations expire in the next {hours}h.")
        return
    for q in quotations:
        click.echo(f"{q.id:>6}  {q.tracking_code}  {q.customer_name:<30}  {q.expires_at.isoformat()}Z  {q.final_total}")


@click.group('debt')
def debt_group():
    """Supplier debt reconciliation."""


@debt_group.command('report')
@with_appcontext
def debt_report_command():
    """Print debt per supplier with open purchase orders."""
    rows = debt_service.compute_supplier_debt(get_repositories())
    if not rows:
        click.echo("No suppliers with open purchase orders.")
        return
    for row in rows:
        click.echo(
            f"{row.supplier_id:>4}  {row.supplier_name:<30}  pedidos={row.pending_orders:<3}  "
            f"deuda={row.total_debt:>12}  {row.level.value}"
        )
    summary = debt_service.summarize_debt_levels(rows)
    click.echo(f"TOTAL {summary['total_deuda']:.2f}  niveles={summary['niveles']}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(reservations_group)
    app.cli.add_command(debt_group)
