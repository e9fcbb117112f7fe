"""
utils/cli.py
-----------------
Maintenance commands available through `flask --app app <command>`.
"""

import click
from flask.cli import with_appcontext

from models.users import User
from utils.db import ensure_indexes


@click.command("init-db")
@with_appcontext
def init_db_command():
    """Create the MongoDB indexes."""
    ensure_indexes()
    click.echo("Indexes created.")


@click.command("debug-users")
@with_appcontext
def debug_users_command():
    """Print every user and the role / status distribution."""
    users = list(User.collection().find({}, {"password": 0}).sort("createdAt", 1))
    click.echo(f"Total users in database: {len(users)}\n")

    for index, user in enumerate(users, start=1):
        click.echo(f"User {index}:")
        click.echo(f"  ID: {user['_id']}")
        click.echo(f"  Name: {user.get('firstName')} {user.get('lastName')}")
        click.echo(f"  Email: {user.get('email')}")
        click.echo(f"  Role: {user.get('role')}")
        click.echo(f"  Status: {user.get('status')}")
        click.echo(f"  Created: {user.get('createdAt')}")
        click.echo("")

    count = User.collection().count_documents
    click.echo("=== Role Distribution ===")
    click.echo(f"Admins: {count({'role': 'admin'})}")
    click.echo(f"Users: {count({'role': 'user'})}")
    click.echo(f"No role field: {count({'role': {'$exists': False}})}")

    click.echo("\n=== Status Distribution ===")
    click.echo(f"Active: {count({'status': 'active'})}")
    click.echo(f"Inactive: {count({'status': 'inactive'})}")
    click.echo(f"Suspended: {count({'status': 'suspended'})}")


def register_commands(app):
    app.cli.add_command(init_db_command)
    app.cli.add_command(debug_users_command)
