"""Flask CLI commands."""

from __future__ import annotations

import click
from flask import Flask
from flask.cli import with_appcontext
from sqlalchemy import select

from ponto.extensions import db
from ponto.models import User, UserRole


@click.command("init-db")
@with_appcontext
def init_db_command() -> None:
    """Create all tables for local development."""
    db.create_all()
    click.echo("Database tables created.")


@click.command("create-user")
@click.option("--email", required=True)
@click.option("--name", default="")
@click.option("--role", type=click.Choice([role.value for role in UserRole], case_sensitive=False), default="EMPLOYEE")
@click.password_option()
@with_appcontext
def create_user_command(email: str, name: str, role: str, password: str) -> None:
    email = email.strip().lower()
    if len(password) < 8:
        raise click.BadParameter("Password must have at least 8 characters.", param_hint="--password")
    if db.session.execute(select(User.id).where(User.email == email)).first() is not None:
        raise click.ClickException(f"User {email} already exists.")

    user = User(email=email, name=name.strip() or None, role=UserRole(role.upper()), is_active=True)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    click.echo(f"Created {user.role.value} user {email}.")


def register_commands(app: Flask) -> None:
    app.cli.add_command(init_db_command)
    app.cli.add_command(create_user_command)
