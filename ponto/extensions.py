"""Flask extension instances and session listeners."""

from __future__ import annotations

import uuid

from flask import current_app, redirect, request, url_for
from flask_login import LoginManager, user_logged_in, user_logged_out
from flask_sqlalchemy import SQLAlchemy
from flask_wtf import CSRFProtect


db = SQLAlchemy()
login_manager = LoginManager()
csrf = CSRFProtect()

login_manager.login_view = "auth.login"
login_manager.login_message = "Faça login para continuar."
login_manager.login_message_category = "warning"

_session_listeners_registered = False


@login_manager.unauthorized_handler
def handle_unauthorized() -> str:
    return redirect(url_for("auth.login", next=request.path))


@login_manager.user_loader
def load_user(user_id: str):
    from ponto.models import User

    try:
        parsed = uuid.UUID(user_id)
    except ValueError:
        return None
    user = db.session.get(User, parsed)
    if user is None or not user.is_active:
        return None
    return user


def _log_sign_in(sender, user, **_extra) -> None:
    current_app.logger.info("User %s signed in with role %s.", user.email, user.role.value)


def _log_sign_out(sender, user, **_extra) -> None:
    current_app.logger.info("User %s signed out.", getattr(user, "email", "anonymous"))


def init_session_listeners() -> None:
    """Subscribe to Flask-Login session changes once per process."""
    global _session_listeners_registered
    if _session_listeners_registered:
        return

    user_logged_in.connect(_log_sign_in)
    user_logged_out.connect(_log_sign_out)
    _session_listeners_registered = True


def remove_session_listeners() -> None:
    global _session_listeners_registered
    user_logged_in.disconnect(_log_sign_in)
    user_logged_out.disconnect(_log_sign_out)
    _session_listeners_registered = False
