# Overview: Flask CLI command groups for bootstrap, account tokens, and invoice maintenance.

# backend/billdesk/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables (use `flask db upgrade` for migration-managed databases).
#
# Accounts (tenants):
# - python -m flask accounts list
# - python -m flask accounts create --name "Acme Traders" --email owner@acme.test
# - python -m flask accounts issue-token --account-id 1 --label "front desk" --days 30
#   Prints the bearer token once; only its hash is stored.
#
# Invoices:
# - python -m flask invoices void --account-id 1 --invoice INV-20261019-001
#   Restore stock and delete the invoice.

import click
from datetime import timedelta
from flask.cli import with_appcontext

from .errors import BillingError
from .extensions import db
from .models import Account
from .services import session_service, void_service


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables for the configured database."""
    db.create_all()
    click.echo("PASS Database tables created")


@click.group('accounts')
def accounts_group():
    """Owner account and API token management."""


@accounts_group.command('list')
@with_appcontext
def list_accounts():
    """List all accounts."""
    accounts = db.session.query(Account).order_by(Account.id.asc()).all()
    if not accounts:
        click.echo("No accounts found")
        return
    for account in accounts:
        status = "active" if account.is_active else "inactive"
        click.echo(f"{account.id:>5}  {account.name}  <{account.email or '-'}>  [{status}]")


@accounts_group.command('create')
@click.option('--name', required=True, help='Account (business) name')
@click.option('--email', default=None, help='Contact email, unique across accounts')
@with_appcontext
def create_account(name, email):
    """Create a new owner account."""
    if email and db.session.query(Account).filter_by(email=email).first():
        raise click.ClickException(f"Account with email {email} already exists")

    account = Account(name=name, email=email)
    db.session.add(account)
    db.session.commit()
    click.echo(f"PASS Created account: {account.name} (ID: {account.id})")


@accounts_group.command('issue-token')
@click.option('--account-id', type=int, required=True, help='Account ID')
@click.option('--label', default=None, help='Free-form label for the token')
@click.option('--days', type=int, default=None, help='Expire after N days (default: never)')
@with_appcontext
def issue_token(account_id, label, days):
    """Issue a bearer token for an account."""
    expires_in = timedelta(days=days) if days else None
    try:
        record, plaintext = session_service.issue_token(account_id, label=label, expires_in=expires_in)
    except ValueError as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Token {record.id} issued for account {account_id}")
    click.echo(plaintext)


@click.group('invoices')
def invoices_group():
    """Invoice maintenance commands."""


@invoices_group.command('void')
@click.option('--account-id', type=int, required=True, help='Owning account ID')
@click.option('--invoice', 'invoice_key', required=True, help='Invoice id or invoice number')
@with_appcontext
def void_invoice(account_id, invoice_key):
    """Void an invoice: restore its stock and delete it."""
    try:
        result = void_service.void_invoice(account_id, invoice_key)
    except BillingError as e:
        raise click.ClickException(f"{e.code}: {e}")

    click.echo(f"PASS Voided {result.invoice_number}")
    for line in result.restored:
        click.echo(f"  product {line.product_id}: +{line.quantity} (stock now {line.stock})")
    for product_id in result.skipped_product_ids:
        click.echo(f"WARN  product {product_id} no longer exists, stock not restored")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(accounts_group)
    app.cli.add_command(invoices_group)
