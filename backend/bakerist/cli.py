# Overview: Flask CLI commands for store bootstrap, staff accounts and CSV exports.

# backend/bakerist/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <command> [options]
#
# - python -m flask init-store --admin-email admin@bakerist.local --admin-password "admin123" [--with-menu]
#   Idempotent bootstrap: settings row, default delivery zones, first admin, optional sample menu.
# - python -m flask create-staff --name "Ana Reyes" --email ana@bakerist.local --password "secret1" [--role admin]
#   Create a staff (or admin) account.
# - python -m flask export-orders --output orders.csv
# - python -m flask export-products --output products.csv
#   Write CSV exports (stdout when --output is omitted).

import click
from flask.cli import with_appcontext

from .models import User
from .repositories import UserRepository
from .seed import seed_delivery_zones, seed_sample_menu
from .services import auth_service, export_service, settings_service
from .services.auth_service import DuplicateEmailError
from .validation import ValidationError


@click.command('init-store')
@click.option('--admin-name', default='Store Admin', show_default=True)
@click.option('--admin-email', default='admin@bakerist.local', show_default=True)
@click.option('--admin-password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--with-menu', is_flag=True, help='Also add the sample bakery menu')
@with_appcontext
def init_store(admin_name, admin_email, admin_password, with_menu):
    """
    Initialize the store: settings, delivery zones, first admin account.

    Safe to run repeatedly; existing rows are kept.
    """
    click.echo("START Initializing BAKERIST store...")

    settings = settings_service.seed_defaults()
    click.echo(f"PASS Store settings: {settings.store_name} (next order #{settings.next_order_number})")

    added = seed_delivery_zones()
    click.echo(f"PASS Delivery zones: {added} added")

    try:
        admin, created = auth_service.ensure_admin(admin_name, admin_email, admin_password)
    except ValidationError as e:
        raise click.ClickException(str(e))
    if created:
        click.echo(f"PASS Created admin: {admin.email}")
    else:
        click.echo(f"PASS Using existing account: {admin.email} ({admin.role})")

    if with_menu:
        added = seed_sample_menu()
        click.echo(f"PASS Sample menu: {added} products added")

    click.echo("DONE")


@click.command('create-staff')
@click.option('--name', prompt=True)
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--role', type=click.Choice(['staff', 'admin']), default='staff', show_default=True)
@click.option('--department', default='Operations', show_default=True)
@click.option('--created-by', 'created_by_email', default=None, help='Email of the admin creating the account')
@with_appcontext
def create_staff(name, email, password, role, department, created_by_email):
    """Create a staff or admin account."""
    users = UserRepository()

    creator = None
    if created_by_email:
        creator = users.get_by_email(created_by_email)
        if creator is None:
            raise click.ClickException(f"No account with email {created_by_email}")
    else:
        admins = users.list(roles=("admin",))
        creator = admins[0] if admins else None
    if creator is None:
        raise click.ClickException("No admin account exists yet; run `flask init-store` first")

    try:
        staff: User = auth_service.create_staff_account(
            {
                "name": name,
                "email": email,
                "password": password,
                "role": role,
                "department": department,
            },
            created_by=creator,
        )
    except (ValidationError, DuplicateEmailError) as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Created {staff.role} account {staff.email} (ID: {staff.id})")


def _write_csv(content: str, output: str | None) -> None:
    if output is None:
        click.echo(content)
        return
    with open(output, "w", encoding="utf-8", newline="") as fh:
        fh.write(content)
    click.echo(f"PASS Wrote {output}")


@click.command('export-orders')
@click.option('--output', '-o', type=click.Path(dir_okay=False, writable=True), default=None)
@with_appcontext
def export_orders(output):
    """Export every order as CSV."""
    _write_csv(export_service.export_orders_csv(), output)


@click.command('export-products')
@click.option('--output', '-o', type=click.Path(dir_okay=False, writable=True), default=None)
@with_appcontext
def export_products(output):
    """Export every product (hidden ones included) as CSV."""
    _write_csv(export_service.export_products_csv(), output)


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(init_store)
    app.cli.add_command(create_staff)
    app.cli.add_command(export_orders)
    app.cli.add_command(export_products)
