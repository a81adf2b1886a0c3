"""Authentication routes."""

from __future__ import annotations

from urllib.parse import urlparse

from flask import Blueprint, flash, redirect, render_template, request, url_for
from flask_login import current_user, login_required, login_user, logout_user
from sqlalchemy import select

from ponto.authorization import landing_endpoint_for
from ponto.extensions import db
from ponto.forms import LoginForm
from ponto.models import User


bp = Blueprint("auth", __name__)


def _is_safe_next(target: str | None) -> bool:
    if not target:
        return False
    parsed = urlparse(target)
    return parsed.scheme == "" and parsed.netloc == "" and target.startswith("/")


@bp.route("/login", methods=["GET", "POST"])
def login():
    if current_user.is_authenticated:
        return redirect(url_for(landing_endpoint_for(current_user)))

    form = LoginForm()
    if form.validate_on_submit():
        stmt = select(User).where(User.email == form.email.data.strip().lower())
        user = db.session.execute(stmt).scalar_one_or_none()
        if user is None or not user.check_password(form.password.data):
            flash("Credenciais inválidas.", "danger")
            return render_template("auth/login.html", form=form), 401

        if not user.is_active:
            flash("Usuário inativo.", "warning")
            return render_template("auth/login.html", form=form), 403

        login_user(user, remember=form.remember.data)

        next_url = request.args.get("next")
        if _is_safe_next(next_url):
            return redirect(next_url)
        return redirect(url_for(landing_endpoint_for(user)))

    return render_template("auth/login.html", form=form)


@bp.post("/logout")
@login_required
def logout():
    logout_user()
    flash("Sessão encerrada.", "info")
    return redirect(url_for("auth.login"))
