# Overview: Flask CLI command groups for bootstrap, inspection, credits and maintenance.

# backend/authentiks/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--email superadmin@authentiks.in] [--password "..."]
#   Idempotent bootstrap: tables, superadmin login, billing settings, default price plans.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list [--role admin]
#   List users with role and active status.
# - python -m flask users create --email ops@authentiks.in --password "..." --role admin
#   Create a staff login (prompts if options are omitted).
#
# Credits:
# - python -m flask credits grant --company-id 3 --amount 500 [--note "..."]
#   Grant QR credits outside the payment flow (writes a ledger row).
# - python -m flask credits verify --company-id 3
#   Check that the ledger running sum matches the company balance.
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions
#   Delete expired or revoked sessions and used or expired OTP challenges.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .permissions import VALID_ROLES, ROLE_SUPERADMIN
from .services import credit_service, pricing_service, session_service, user_service


DEFAULT_SUPERADMIN_EMAIL = "superadmin@authentiks.in"
DEFAULT_PASSWORD = "Password123!"


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--email', default=DEFAULT_SUPERADMIN_EMAIL, help='Superadmin email')
@click.option('--password', default=DEFAULT_PASSWORD, help='Superadmin password')
@with_appcontext
def init_system(email, password):
    """
    Initialize Authentiks: superadmin login, billing settings and default plans.

    SECURITY: Change the superadmin password immediately in production!
    """
    click.echo("START Initializing Authentiks...")

    db.create_all()
    click.echo("PASS Tables ready")

    existing = db.session.query(User).filter_by(role=ROLE_SUPERADMIN).first()
    if existing:
        click.echo(f"PASS Using existing superadmin: {existing.email}")
    else:
        try:
            user = user_service.create_user(email=email, password=password, role=ROLE_SUPERADMIN, name="Super Admin")
            db.session.commit()
            click.echo(f"PASS Created superadmin: {user.email}")
        except ValueError as e:
            db.session.rollback()
            click.echo(f"FAIL Failed to create superadmin: {str(e)}")

    settings = pricing_service.get_settings()
    click.echo(f"PASS Billing settings ready (GST {settings.gst_rate_bps / 100:g}%)")

    added = pricing_service.seed_default_plans()
    click.echo(f"PASS Price plans: {added} added")

    click.echo("\n" + "="*60)
    click.echo("DONE Authentiks Initialized Successfully!")
    click.echo("="*60)
    if not existing:
        click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
        click.echo(f"   superadmin -> {email}")
    click.echo("")


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


# =============================================================================
# USERS
# =============================================================================

@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(VALID_ROLES), default='admin', help='Role')
@click.option('--name', default=None, help='Display name')
@with_appcontext
def create_user_cli(email, password, role, name):
    """Create a password login."""
    try:
        user = user_service.create_user(email=email, password=password, role=role, name=name)
        db.session.commit()
        click.echo(f"PASS Created user: {user.email} with role '{role}' (ID: {user.id})")
        click.echo("SECURITY Password securely hashed with bcrypt")
    except ValueError as e:
        db.session.rollback()
        click.echo(f"FAIL Failed to create user: {str(e)}")


@users_group.command('list')
@click.option('--role', type=click.Choice(VALID_ROLES), default=None, help='Filter by role')
@with_appcontext
def list_users(role):
    """List all users with their roles."""
    query = db.session.query(User)
    if role:
        query = query.filter_by(role=role)

    users = query.order_by(User.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Role':<12} {'Email / Mobile':<34} {'Brand':<8} {'Active':<8}")
    click.echo("="*90)

    for user in users:
        login = user.email or user.mobile or "-"
        brand = str(user.brand_id) if user.brand_id else "-"
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.role:<12} {login:<34} {brand:<8} {active_str:<8}")

    click.echo("="*90 + "\n")


# =============================================================================
# CREDITS
# =============================================================================

@click.group('credits')
def credits_group():
    """QR credit ledger commands."""


@credits_group.command('grant')
@click.option('--company-id', type=int, required=True, help='Company ID')
@click.option('--amount', type=int, required=True, help='Credits to add')
@click.option('--note', default=None, help='Ledger note')
@with_appcontext
def grant_credits_cli(company_id, amount, note):
    """Grant QR credits to a company."""
    try:
        txn = credit_service.grant_credits(company_id, amount, None, note or "Granted from CLI")
        click.echo(f"PASS Granted {txn.amount} credits to company {company_id}. Balance: {txn.balance_after}")
    except ValueError as e:
        db.session.rollback()
        click.echo(f"FAIL Failed to grant credits: {str(e)}")


@credits_group.command('verify')
@click.option('--company-id', type=int, required=True, help='Company ID')
@with_appcontext
def verify_ledger_cli(company_id):
    """Check the ledger of a company against its balance."""
    try:
        ok = credit_service.verify_ledger(company_id)
    except ValueError as e:
        click.echo(f"FAIL {str(e)}")
        return
    if ok:
        click.echo(f"PASS Ledger consistent for company {company_id}")
    else:
        click.echo(f"FAIL Ledger mismatch for company {company_id}")


# =============================================================================
# MAINTENANCE
# =============================================================================

@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions_cli():
    """Delete expired or revoked sessions and spent OTP challenges."""
    sessions_deleted, challenges_deleted = session_service.cleanup_expired()
    click.echo(f"PASS Deleted {sessions_deleted} session(s) and {challenges_deleted} OTP challenge(s)")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(credits_group)
    app.cli.add_command(maintenance_group)
