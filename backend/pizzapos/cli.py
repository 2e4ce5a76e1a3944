# Overview: Flask CLI command groups for bootstrap and staff accounts.

# backend/pizzapos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables, the cash register row and the default config.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with role and active status.
# - python -m flask users create --username admin --name Admin --password "Password123" --role SYSADMIN
#   Create a user (prompts if options are omitted).

import click
from flask.cli import with_appcontext

from .errors import InvalidInputError
from .extensions import db
from .models import User
from .models.auth import ROLES
from .services import user_service
from .services.cash_register_service import ensure_cash_register
from .services.settings_service import get_config


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create tables, the cash register row and the default configuration."""
    click.echo("START Initializing PizzaPOS...")

    db.create_all()
    click.echo("PASS Tables created")

    register = ensure_cash_register()
    state = "open" if register.is_open else "closed"
    click.echo(f"PASS Cash register: {register.id} ({state}, balance {register.current_balance})")

    config = get_config()
    click.echo(f"PASS System config: {config.restaurant_name}")

    if not db.session.query(User).filter_by(role="SYSADMIN").first():
        click.echo("\nWARN  No SYSADMIN account exists yet. Create one with:")
        click.echo("   python -m flask users create --role SYSADMIN")
    click.echo("")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm dropping every table')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes (this deletes all data)")
        return

    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


# =============================================================================
# USER MANAGEMENT COMMANDS
# =============================================================================

@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--name', prompt=True, help='First name')
@click.option('--last-name', default='', help='Last name')
@click.option('--email', default=None, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(ROLES, case_sensitive=False), prompt=True, help='Role')
@with_appcontext
def create_user_cli(username, name, last_name, email, password, role):
    """
    Create a staff account.

    The password is stored as a bcrypt hash (minimum 8 characters).
    """
    try:
        user = user_service.create_user(
            username=username,
            password=password,
            name=name,
            last_name=last_name,
            email=email,
            role=role,
        )
    except InvalidInputError as e:
        click.echo(f"FAIL {e}")
        return

    click.echo(f"PASS Created user: {user.username} with role '{user.role}'")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users."""
    users = db.session.query(User).order_by(User.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*70)
    click.echo(f"{'ID':<5} {'Username':<20} {'Name':<25} {'Role':<10} {'Active'}")
    click.echo("="*70)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.username:<20} {user.full_name:<25} {user.role:<10} {active_str}")

    click.echo("="*70 + "\n")


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
