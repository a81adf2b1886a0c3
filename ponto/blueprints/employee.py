"""Employee self-service routes."""

from __future__ import annotations

from datetime import date

from flask import Blueprint, abort, current_app, flash, redirect, render_template, request, url_for
from flask_login import current_user, login_required
from sqlalchemy.exc import SQLAlchemyError

from ponto.audit import log_punch
from ponto.authorization import record_punches_required
from ponto.clock import local_now, local_today
from ponto.extensions import db
from ponto.models import PunchRecord
from ponto.punches import (
    PUNCH_STAGES,
    PunchError,
    PunchStage,
    available_months,
    next_stage,
    record_for_user_day,
    record_punch,
    stage_value,
    user_records_for_month,
)
from ponto.report_rules import (
    DAILY_TARGET_MINUTES,
    InvalidMonth,
    calculate_worked_minutes,
    format_duration,
    format_signed_minutes,
    minutes_between,
    month_key,
    month_label,
    parse_month,
    weekday_title,
)


bp = Blueprint("employee", __name__)


def _short_time(value: str | None) -> str:
    return value[:5] if value else "-"


def _stage_cards(record: PunchRecord | None) -> list[dict[str, str]]:
    current = next_stage(record)
    current_index = PUNCH_STAGES.index(current) if current is not None else len(PUNCH_STAGES)
    cards = []
    for index, stage in enumerate(PUNCH_STAGES):
        value = stage_value(record, stage)
        if value:
            state, text = "done", _short_time(value)
        elif index == current_index:
            state, text = "active", "Aguardando marcação"
        else:
            state, text = "locked", "-"
        cards.append({"slug": stage.value, "label": stage.label, "state": state, "time": text})
    return cards


def _confirmation_message(stage: PunchStage, record: PunchRecord | None, now_value: str) -> str:
    if stage == PunchStage.ENTRY:
        return "Registrar entrada agora?"

    if stage == PunchStage.LUNCH_OUT:
        worked = minutes_between(stage_value(record, PunchStage.ENTRY), now_value)
        if worked is None:
            return "Registrar saída almoço agora?"
        return f"Registrar saída almoço agora? Jornada até almoço: {format_duration(worked)}."

    if stage == PunchStage.LUNCH_IN:
        break_minutes = minutes_between(stage_value(record, PunchStage.LUNCH_OUT), now_value)
        if break_minutes is None:
            return "Registrar volta almoço agora?"
        return f"Registrar volta almoço agora? Intervalo: {format_duration(break_minutes)}."

    morning = minutes_between(stage_value(record, PunchStage.ENTRY), stage_value(record, PunchStage.LUNCH_OUT))
    afternoon = minutes_between(stage_value(record, PunchStage.LUNCH_IN), now_value)
    if morning is None or afternoon is None:
        return "Registrar saída final agora?"
    return f"Registrar saída final agora? Jornada do dia: {format_duration(morning + afternoon)}."


def _progress_message(stage: PunchStage, record: PunchRecord) -> str:
    recorded_at = _short_time(stage_value(record, stage))

    if stage == PunchStage.ENTRY:
        return f"Entrada registrada às {recorded_at}."

    if stage == PunchStage.LUNCH_OUT:
        worked = minutes_between(record.entry, record.lunch_out)
        if worked is None:
            return f"Saída almoço registrada às {recorded_at}."
        return f"Saída almoço às {recorded_at}. Jornada até almoço: {format_duration(worked)}."

    if stage == PunchStage.LUNCH_IN:
        break_minutes = minutes_between(record.lunch_out, record.lunch_in)
        if break_minutes is None:
            return f"Volta almoço registrada às {recorded_at}."
        return f"Volta almoço às {recorded_at}. Intervalo: {format_duration(break_minutes)}."

    worked_day = calculate_worked_minutes(record)
    if worked_day is None:
        return f"Saída final registrada às {recorded_at}."
    return f"Saída final às {recorded_at}. Jornada do dia: {format_duration(worked_day)}."


def _history_rows(records: list[PunchRecord], today: date) -> list[dict[str, str]]:
    rows = []
    for record in records:
        if record.day >= today:
            continue
        worked = calculate_worked_minutes(record)
        rows.append(
            {
                "date": record.day.strftime("%d/%m/%Y"),
                "entry": _short_time(record.entry),
                "lunch_out": _short_time(record.lunch_out),
                "lunch_in": _short_time(record.lunch_in),
                "final_exit": _short_time(record.final_exit),
                "note": record.note or "-",
                "balance": "-" if worked is None else format_signed_minutes(worked - DAILY_TARGET_MINUTES),
            }
        )
    return rows


@bp.get("/me/today")
@login_required
@record_punches_required
def me_today():
    now = local_now()
    record = record_for_user_day(current_user.id, now.date())
    stage = next_stage(record)
    return render_template(
        "employee/today.html",
        today_title=weekday_title(now.date()),
        today_display=now.strftime("%d/%m/%Y"),
        stage_cards=_stage_cards(record),
        current_stage=stage,
        confirmation_message=_confirmation_message(stage, record, now.strftime("%H:%M")) if stage else "",
    )


@bp.post("/me/punch/<string:stage>")
@login_required
@record_punches_required
def punch(stage: str):
    try:
        requested = PunchStage(stage)
    except ValueError:
        abort(404)

    try:
        record = record_punch(current_user, requested, local_now())
        log_punch(record, requested.value)
        db.session.commit()
    except PunchError as exc:
        db.session.rollback()
        flash(str(exc), "warning")
        return redirect(url_for("employee.me_today"))
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Punch %s failed for user %s.", requested.value, current_user.id)
        flash(f"Falha ao registrar ponto: {exc.__class__.__name__}.", "danger")
        return redirect(url_for("employee.me_today"))

    current_app.logger.info("Punch %s recorded for user %s on %s.", requested.value, current_user.id, record.day)
    flash(_progress_message(requested, record), "success")
    return redirect(url_for("employee.me_today"))


@bp.get("/me/history")
@login_required
@record_punches_required
def me_history():
    today = local_today()
    month = (request.args.get("month") or month_key(today)).strip()
    try:
        parse_month(month)
    except InvalidMonth:
        abort(400, description="Mes invalido.")

    months = available_months(current_user.id) or [month_key(today)]
    if month not in months:
        months = sorted(set(months) | {month})

    records = user_records_for_month(current_user.id, month)
    return render_template(
        "employee/history.html",
        month=month,
        month_title=month_label(month),
        months=[(value, month_label(value)) for value in months],
        rows=_history_rows(records, today),
    )
