"""Local time in the configured application timezone."""

from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from flask import current_app


def app_timezone() -> ZoneInfo:
    tz_name = current_app.config.get("APP_TIMEZONE", "America/Sao_Paulo")
    try:
        return ZoneInfo(tz_name)
    except ZoneInfoNotFoundError:
        current_app.logger.warning("Unknown APP_TIMEZONE %r, falling back to UTC.", tz_name)
        return ZoneInfo("UTC")


def local_now() -> datetime:
    return datetime.now(app_timezone())


def local_today() -> date:
    return local_now().date()
