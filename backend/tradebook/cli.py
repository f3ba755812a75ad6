# Overview: Flask CLI command groups for bootstrap and user management.

# backend/tradebook/cli.py
# Run from backend/ with FLASK_APP=wsgi.py:
#
#   flask system init-db          create missing tables (migrated deployments use `flask db upgrade`)
#   flask system reset-db --yes   drop and recreate every table; local development only
#   flask users create            add a login; prompts for anything not passed as an option
#   flask users list              print every user with role and active flag

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User, ROLES, ROLE_EMPLOYEE
from .services.auth_service import create_user, PasswordValidationError, MIN_PASSWORD_LENGTH


@click.group('system')
def system_group():
    """Schema bootstrap."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database schema created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Do not ask for confirmation')
@with_appcontext
def reset_db(yes):
    """Drop every table and create the schema again. All invoices, orders and stock are lost."""
    if not yes:
        click.confirm("WARN Every invoice, purchase order and product will be deleted. Continue?", abort=True)

    db.drop_all()
    click.echo("DELETE  Tables dropped.")
    db.create_all()
    click.echo("PASS Schema recreated. Add an admin with 'flask users create --role ADMIN'.")


@click.group('users')
def users_group():
    """Login accounts."""


@users_group.command('create')
@click.option('--name', prompt=True, help='Display name printed on documents')
@click.option('--email', prompt=True, help='Login email')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option(
    '--role',
    type=click.Choice(list(ROLES), case_sensitive=False),
    default=ROLE_EMPLOYEE,
    show_default=True,
    help='ADMIN sees every document and the statistics reports',
)
@with_appcontext
def create_user_cli(name, email, password, role):
    """Create a login account."""
    try:
        user = create_user(name=name, email=email, password=password, role=role)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {e}")
        click.echo(
            f"Passwords need {MIN_PASSWORD_LENGTH}+ characters with upper and lower case, "
            "a digit and a special character."
        )
        raise SystemExit(1)
    except ValueError as e:
        click.echo(f"FAIL Failed to create user: {e}")
        raise SystemExit(1)

    click.echo(f"PASS Created user #{user.id}: {user.name} <{user.email}> ({user.role})")


@users_group.command('list')
@with_appcontext
def list_users():
    """Print all users, oldest first."""
    users = db.session.query(User).order_by(User.id.asc()).all()
    if not users:
        click.echo("No users yet.")
        return

    rule = "-" * 84
    click.echo(rule)
    click.echo(f"{'ID':<5} {'Name':<24} {'Email':<34} {'Role':<10} Active")
    click.echo(rule)
    for u in users:
        click.echo(f"{u.id:<5} {u.name:<24} {u.email:<34} {u.role:<10} {'yes' if u.is_active else 'no'}")
    click.echo(rule)


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
