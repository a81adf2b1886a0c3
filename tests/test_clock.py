from __future__ import annotations

import logging
from zoneinfo import ZoneInfo

from ponto.clock import app_timezone, local_now, local_today


def test_configured_timezone_is_used(app):
    assert app_timezone() == ZoneInfo("America/Sao_Paulo")
    assert local_now().tzinfo == ZoneInfo("America/Sao_Paulo")
    assert local_today() == local_now().date()


def test_unknown_timezone_falls_back_to_utc(app, caplog):
    caplog.set_level(logging.WARNING, logger="ponto")
    app.config["APP_TIMEZONE"] = "Nowhere/Invalid"

    assert app_timezone() == ZoneInfo("UTC")
    assert "Unknown APP_TIMEZONE 'Nowhere/Invalid', falling back to UTC." in [
        record.getMessage() for record in caplog.records
    ]
