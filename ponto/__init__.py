"""Flask application factory."""

from __future__ import annotations

from flask import Flask
from flask_login import current_user

from ponto.blueprints.admin import bp as admin_bp
from ponto.blueprints.auth import bp as auth_bp
from ponto.blueprints.employee import bp as employee_bp
from ponto.blueprints.main import bp as main_bp
from ponto.commands import register_commands
from ponto.config import Config
from ponto.extensions import csrf, db, init_session_listeners, login_manager
from ponto.report_rules import format_minutes, format_signed_minutes, status_label


def create_app(config_object: type[Config] = Config) -> Flask:
    app = Flask(__name__, instance_relative_config=False)
    app.config.from_object(config_object)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    db.init_app(app)
    login_manager.init_app(app)
    csrf.init_app(app)
    init_session_listeners()

    # Ensure model metadata is loaded for migrations and tests.
    from ponto import models as _models  # noqa: F401

    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(employee_bp)
    app.register_blueprint(admin_bp)
    register_commands(app)

    app.add_template_filter(format_minutes, "minutes")
    app.add_template_filter(format_signed_minutes, "signed_minutes")
    app.add_template_filter(status_label, "status_label")

    @app.context_processor
    def inject_nav_profile() -> dict[str, str]:
        if not current_user.is_authenticated:
            return {}

        profile_name = current_user.display_name
        name_parts = [chunk for chunk in profile_name.split() if chunk]
        if len(name_parts) >= 2:
            profile_initials = (name_parts[0][0] + name_parts[1][0]).upper()
        else:
            profile_initials = profile_name[:2].upper()

        return {
            "nav_profile_name": profile_name,
            "nav_profile_role": "Administrador" if current_user.is_admin else "Funcionário",
            "nav_profile_initials": profile_initials or "U",
        }

    return app
