# Overview: Flask CLI command groups for bootstrap, user inspection, and session maintenance.

# backend/pos_system/cli.py
# Commands Legend (run from the backend directory, FLASK_APP=wsgi.py):
#
# System bootstrap:
# - flask system init
#   Upgrade the schema and reconcile the configured admin account. Idempotent.
#
# Users:
# - flask users list
#   List all users with role and active status.
# - flask users create --username jane --password "Password123!" --role cashier
#   Create a user (prompts if options are omitted).
#
# Maintenance:
# - flask sessions cleanup
#   Delete expired session rows.

import click
from flask.cli import with_appcontext

from .errors import PosError
from .extensions import db
from .models import User, ROLES, ROLE_CASHIER
from .services import bootstrap_service, session_service, user_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--skip-migrations', is_flag=True, help='Only reconcile the admin account')
@with_appcontext
def init_system(skip_migrations):
    """
    Initialize the POS database.

    - Applies pending Alembic revisions
    - Creates or repairs the admin account from ADMIN_USER / ADMIN_PASSWORD
      (or the options file)
    """
    click.echo("START Initializing POS system...")

    if not skip_migrations:
        bootstrap_service.run_migrations()
        click.echo("PASS Schema is at the latest revision")

    username, _ = bootstrap_service.admin_credentials()
    outcome = bootstrap_service.ensure_admin_user()
    click.echo(f"PASS Admin user '{username}': {outcome}")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--display-name', default=None, help='Name shown on receipts and sales lists')
@click.option('--role', type=click.Choice(sorted(ROLES)), default=ROLE_CASHIER, show_default=True)
@with_appcontext
def create_user_cli(username, password, display_name, role):
    """
    Create a new user.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = user_service.create_user(username, password, display_name=display_name, role=role)
    except PosError as e:
        raise click.ClickException(e.message)

    click.echo(f"PASS Created user: {user.username} (ID: {user.id}) with role '{user.role}'")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Username':<20} {'Display name':<25} {'Role':<10} {'Active'}")
    click.echo("="*80)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(
            f"{user.id:<5} {user.username:<20} {(user.display_name or ''):<25} {user.role:<10} {active_str}"
        )

    click.echo("="*80 + "\n")


@click.group('sessions')
def sessions_group():
    """Session maintenance commands."""


@sessions_group.command('cleanup')
@with_appcontext
def cleanup_sessions_cli():
    """Delete sessions whose expires_at has passed."""
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"Deleted {deleted} expired sessions.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(sessions_group)
