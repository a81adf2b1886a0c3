"""Role checks and permission decorators."""

from __future__ import annotations

import functools
from typing import Callable

from flask import abort
from flask_login import current_user

from ponto.models import User, UserRole


def can_manage_records(user: User) -> bool:
    return user.role == UserRole.ADMIN


def can_export_reports(user: User) -> bool:
    return user.role == UserRole.ADMIN


def can_record_punches(user: User) -> bool:
    return user.role == UserRole.EMPLOYEE


def landing_endpoint_for(user: User | None) -> str:
    if user is None or not user.is_authenticated:
        return "auth.login"
    if user.role == UserRole.ADMIN:
        return "admin.records"
    return "employee.me_today"


def permission_required(permission_name: str, check: Callable[[User], bool]):
    def decorator(view: Callable):
        @functools.wraps(view)
        def wrapped(*args, **kwargs):
            if not current_user.is_authenticated or not check(current_user):
                abort(403, description=f"Insufficient permissions: {permission_name}.")
            return view(*args, **kwargs)

        return wrapped

    return decorator


manage_records_required = permission_required("manage_records", can_manage_records)
export_reports_required = permission_required("export_reports", can_export_reports)
record_punches_required = permission_required("record_punches", can_record_punches)
