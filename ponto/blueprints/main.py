"""Landing redirect and health check."""

from __future__ import annotations

from flask import Blueprint, current_app, redirect, url_for
from flask_login import current_user
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ponto.authorization import landing_endpoint_for
from ponto.extensions import db


bp = Blueprint("main", __name__)


@bp.get("/")
def index():
    return redirect(url_for(landing_endpoint_for(current_user)))


@bp.get("/health")
def health():
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Health check could not reach the database.")
        return {"status": "error", "database": "unavailable"}, 503
    return {"status": "ok", "database": "ok"}, 200
