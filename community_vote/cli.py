import click
from sqlalchemy.exc import IntegrityError

from .extensions import db
from .models.user import User


def register_cli(app):
    @app.cli.command("create-admin")
    @click.argument("email")
    @click.password_option()
    def create_admin(email, password):
        """Create a community administrator account."""
        if len(password) < 8:
            raise click.BadParameter("Password must be at least 8 characters", param_hint="password")

        user = User(email=email.lower().strip(), role=User.ROLE_ADMIN)
        user.set_password(password)
        db.session.add(user)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise click.ClickException(f"An account for {user.email} already exists")
        click.echo(f"Created admin {user.email}")
