# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/stocknexus/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create all tables (idempotent). Use 'flask db upgrade' for migrated deployments.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users create-admin --email admin@lab.local --name "Lab Admin" --department IT
#   Create the first administrator (prompts for the password).
# - python -m flask users list [--department Physics]
#   List all users with role, department and active status.
#
# Alerts:
# - python -m flask alerts reconcile
#   Re-run stock alert reconciliation for every (name, department) group.
#
# Maintenance:
# - python -m flask maintenance cleanup-security-events --retention-days 90
#   Delete security events older than the retention window.
# - python -m flask maintenance cleanup-sessions
#   Delete expired or revoked sessions past their retention window.

import click
from flask.cli import with_appcontext

from .constants import Department
from .extensions import db
from .models import User
from .services.auth_service import create_admin, PasswordValidationError
from .services import alert_service
from .services import maintenance_service
from .validation import ConflictError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create every table that does not exist yet.

    Safe to run repeatedly. Does not create users; follow up with
    'python -m flask users create-admin'.
    """
    click.echo("START Initializing StockNexus schema...")
    db.create_all()

    user_count = db.session.query(User).count()
    click.echo("PASS Schema ready.")
    if user_count == 0:
        click.echo("WARN No users yet. Run 'python -m flask users create-admin'.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask users create-admin' next.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create-admin')
@click.option('--email', prompt=True, help='Email address')
@click.option('--name', 'full_name', prompt=True, help='Full name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--department', type=click.Choice(list(Department.ALL)), default=Department.IT, show_default=True)
@with_appcontext
def create_admin_cli(email, full_name, password, department):
    """
    Create an administrator account.

    Registration requests are approved by admins, so the first admin
    has to come from here.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = create_admin(email, full_name, password, department=department)
        click.echo(f"PASS Created admin: {user.full_name} ({user.email}) in {department}")
        click.echo("SECURITY Password securely hashed with bcrypt")

    except PasswordValidationError as e:
        db.session.rollback()
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit, special char")
    except (ConflictError, ValidationError) as e:
        db.session.rollback()
        click.echo(f"FAIL Failed to create admin: {str(e)}")


@users_group.command('list')
@click.option('--department', type=click.Choice(list(Department.ALL)), help='Filter by department')
@with_appcontext
def list_users(department):
    """List all users with their role and department."""
    users = [u.to_dict() for u in db.session.query(User).order_by(User.email).all()]

    if department:
        users = [u for u in users if u["department"] == department]

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<5} {'Email':<32} {'Name':<24} {'Role':<7} {'Department':<12} {'Active'}")
    click.echo("="*100)

    for user in users:
        active_str = "Yes" if user["is_active"] else "No"
        click.echo(
            f"{user['id']:<5} {user['email']:<32} {user['full_name']:<24} "
            f"{user['role'] or 'none':<7} {user['department'] or '-':<12} {active_str}"
        )

    click.echo("="*100 + "\n")


@click.group('alerts')
def alerts_group():
    """Stock alert commands."""


@alerts_group.command('reconcile')
@with_appcontext
def reconcile_alerts_cli():
    """
    Reconcile stock alerts for every group.

    Normally reconciliation runs inside each inventory write; this is the
    repair path after manual database edits.
    """
    results = alert_service.reconcile_all()

    created = sum(1 for r in results if r.action == alert_service.ACTION_CREATED)
    resolved = sum(1 for r in results if r.action == alert_service.ACTION_RESOLVED)

    click.echo(f"PASS Reconciled {len(results)} groups: {created} alerts created, {resolved} groups resolved.")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-security-events')
@click.option('--retention-days', type=int, default=90, show_default=True)
@with_appcontext
def cleanup_security_events_cli(retention_days):
    """
    Cleanup old security events.

    Default retention: 90 days.
    """
    deleted = maintenance_service.cleanup_security_events(retention_days=retention_days)
    click.echo(f"Deleted {deleted} security events older than {retention_days} days.")


@maintenance_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions_cli():
    """Delete expired and revoked sessions past retention."""
    deleted = maintenance_service.cleanup_sessions()
    click.echo(f"Deleted {deleted} expired or revoked sessions.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(alerts_group)
    app.cli.add_command(maintenance_group)
