"""Admin routes: punch record management and monthly reports."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from flask import Blueprint, abort, current_app, flash, make_response, redirect, render_template, request, url_for
from flask_login import login_required
from sqlalchemy.exc import SQLAlchemyError

from ponto.audit import log_record_change, record_snapshot
from ponto.authorization import export_reports_required, manage_records_required
from ponto.clock import local_now, local_today
from ponto.extensions import db
from ponto.forms import PunchRecordEditForm
from ponto.models import PunchRecord
from ponto.punches import (
    PunchError,
    available_months,
    delete_record,
    employee_choices,
    format_person_name,
    normalize_employee_key,
    records_for_month,
    update_record,
)
from ponto.report_export import (
    REPORT_HEADERS,
    ReportBlocked,
    monthly_report_rows,
    render_monthly_csv,
    render_monthly_pdf,
    report_filename,
    summary_lines,
)
from ponto.report_rules import (
    DAY_MARK_LABELS,
    InvalidMonth,
    MonthlyReport,
    build_monthly_report_validation,
    calculate_worked_minutes,
    format_minutes,
    is_weekend,
    month_days,
    month_key,
    month_label,
    parse_month,
    resolve_day_mark,
    weekend_day_label,
)


bp = Blueprint("admin", __name__)

RECENT_DAYS_FILTER = "recent"
ALL_DAYS_FILTER = "all"


def _selected_month(months: list[str]) -> str:
    month = (request.args.get("month") or "").strip()
    if not month:
        return months[-1] if months else month_key(local_today())
    try:
        parse_month(month)
    except InvalidMonth:
        abort(400, description="Mes invalido.")
    return month


def _month_options(months: list[str], selected: str) -> list[tuple[str, str]]:
    values = sorted(set(months) | {selected})
    return [(value, month_label(value)) for value in values]


def _grid_row(record: PunchRecord) -> dict[str, object]:
    worked = calculate_worked_minutes(record)
    mark = resolve_day_mark(record)
    return {
        "id": record.id,
        "date": record.day.isoformat(),
        "employee": format_person_name(record.employee_name),
        "entry": record.entry or "",
        "lunch_out": record.lunch_out or "",
        "lunch_in": record.lunch_in or "",
        "final_exit": record.final_exit or "",
        "note": record.note or "",
        "mark": DAY_MARK_LABELS[mark] if mark is not None else "",
        "worked": "-" if worked is None else format_minutes(worked),
        "virtual": False,
    }


def _virtual_weekend_rows(month: str, employee_label: str, taken: set[str], today: date) -> list[dict[str, object]]:
    rows = []
    for current_day in month_days(month):
        day_key = current_day.isoformat()
        if not is_weekend(current_day) or current_day > today or day_key in taken:
            continue
        rows.append(
            {
                "id": None,
                "date": day_key,
                "employee": employee_label,
                "entry": "",
                "lunch_out": "",
                "lunch_in": "",
                "final_exit": "",
                "note": weekend_day_label(current_day),
                "mark": "",
                "worked": "-",
                "virtual": True,
            }
        )
    return rows


def _filter_rows(rows: list[dict[str, object]], day_filter: str, month: str, today: date) -> list[dict[str, object]]:
    if month == month_key(today):
        rows = [row for row in rows if str(row["date"]) <= today.isoformat()]

    if day_filter == RECENT_DAYS_FILTER:
        visible_days = [value.isoformat() for value in month_days(month) if value <= today]
        if visible_days:
            window = max(1, int(current_app.config.get("ADMIN_RECENT_DAYS", 5)))
            start = visible_days[max(0, len(visible_days) - window)]
            rows = [row for row in rows if str(row["date"]) >= start]
        return rows

    if day_filter and day_filter != ALL_DAYS_FILTER:
        return [row for row in rows if row["date"] == day_filter]
    return rows


def _record_or_404(record_id: UUID) -> PunchRecord:
    record = db.session.get(PunchRecord, record_id)
    if record is None:
        abort(404)
    return record


@dataclass(frozen=True)
class ReportSelection:
    months: list[str]
    month: str
    employee_key: str
    employee_label: str
    choices: list[tuple[str, str]]
    report: MonthlyReport | None


def _report_for_request() -> ReportSelection:
    months = available_months()
    month = _selected_month(months)
    month_rows = records_for_month(month)
    choices = employee_choices(month_rows)
    labels = dict(choices)

    employee_key = normalize_employee_key(request.args.get("employee"))
    if not employee_key and len(choices) == 1:
        employee_key = choices[0][0]
    if not employee_key:
        return ReportSelection(months, month, "", "", choices, None)

    employee_rows = [row for row in month_rows if normalize_employee_key(row.employee_name) == employee_key]
    report = build_monthly_report_validation(employee_rows, month)
    label = labels.get(employee_key, format_person_name(employee_key))
    return ReportSelection(months, month, employee_key, label, choices, report)


def _blocked_redirect(month: str, employee_key: str, exc: ReportBlocked):
    current_app.logger.info(
        "Report export blocked for %s in %s: %d pending day(s).", employee_key, month, len(exc.pending_dates)
    )
    flash(
        "Relatório bloqueado. Existem dias úteis sem jornada completa e sem validação do admin: "
        + ", ".join(exc.pending_dates),
        "danger",
    )
    return redirect(url_for("admin.report", month=month, employee=employee_key))


@bp.get("/admin/records")
@login_required
@manage_records_required
def records():
    today = local_today()
    months = available_months()
    month = _selected_month(months)
    employee_key = normalize_employee_key(request.args.get("employee"))
    day_filter = (request.args.get("day") or RECENT_DAYS_FILTER).strip()

    month_rows = records_for_month(month)
    choices = employee_choices(month_rows)
    if not employee_key and len(choices) == 1:
        employee_key = choices[0][0]

    if employee_key:
        selected = [row for row in month_rows if normalize_employee_key(row.employee_name) == employee_key]
        label = dict(choices).get(employee_key, format_person_name(employee_key))
        rows = [_grid_row(row) for row in selected]
        rows += _virtual_weekend_rows(month, label, {row.day.isoformat() for row in selected}, today)
    else:
        rows = [_grid_row(row) for row in month_rows]
    rows.sort(key=lambda row: str(row["date"]), reverse=True)

    day_options = [value.isoformat() for value in reversed(month_days(month)) if value <= today]
    return render_template(
        "admin/records.html",
        month=month,
        months=_month_options(months, month),
        employee_key=employee_key,
        employees=choices,
        day_filter=day_filter,
        recent_days=current_app.config.get("ADMIN_RECENT_DAYS", 5),
        day_options=day_options,
        rows=_filter_rows(rows, day_filter, month, today),
    )


@bp.route("/admin/records/<uuid:record_id>/edit", methods=["GET", "POST"])
@login_required
@manage_records_required
def record_edit(record_id: UUID):
    record = _record_or_404(record_id)
    form = PunchRecordEditForm()
    if request.method == "GET":
        form.entry.data = record.entry
        form.lunch_out.data = record.lunch_out
        form.lunch_in.data = record.lunch_in
        form.final_exit.data = record.final_exit
        form.day_mark.data = record.day_mark.value if record.day_mark is not None else ""
        form.note.data = record.note

    back_url = url_for("admin.records", month=month_key(record.day), employee=normalize_employee_key(record.employee_name))
    if form.validate_on_submit():
        values = {
            "entry": form.entry.data,
            "lunch_out": form.lunch_out.data,
            "lunch_in": form.lunch_in.data,
            "final_exit": form.final_exit.data,
            "day_mark": form.day_mark.data,
            "note": form.note.data,
        }
        before = record_snapshot(record)
        try:
            update_record(record, values)
            log_record_change("PUNCH_RECORD_UPDATED", record.id, before=before, after=record_snapshot(record))
            db.session.commit()
        except PunchError as exc:
            db.session.rollback()
            flash(str(exc), "danger")
            return render_template("admin/record_edit.html", form=form, record=record, back_url=back_url), 400
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception("Failed to update punch record %s.", record_id)
            flash("Falha ao salvar o registro.", "danger")
            return render_template("admin/record_edit.html", form=form, record=record, back_url=back_url), 500

        current_app.logger.info("Punch record %s updated.", record_id)
        flash(f"Linha {record.day.isoformat()} - {format_person_name(record.employee_name)} salva com sucesso.", "success")
        return redirect(back_url)

    status = 400 if request.method == "POST" else 200
    return render_template("admin/record_edit.html", form=form, record=record, back_url=back_url), status


@bp.post("/admin/records/<uuid:record_id>/delete")
@login_required
@manage_records_required
def record_delete(record_id: UUID):
    record = _record_or_404(record_id)
    back_url = url_for("admin.records", month=month_key(record.day), employee=normalize_employee_key(record.employee_name))
    before = record_snapshot(record)
    try:
        delete_record(record)
        log_record_change("PUNCH_RECORD_DELETED", record_id, before=before)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to delete punch record %s.", record_id)
        flash("Falha ao apagar o registro.", "danger")
        return redirect(back_url)

    current_app.logger.info("Punch record %s deleted.", record_id)
    flash("Registro apagado.", "success")
    return redirect(back_url)


@bp.get("/admin/report")
@login_required
@export_reports_required
def report():
    selection = _report_for_request()
    monthly_report = selection.report
    if monthly_report is None and request.args.get("employee") is not None:
        flash("Selecione uma empregada para gerar o relatório.", "warning")

    counts, durations = summary_lines(monthly_report) if monthly_report is not None else ([], [])
    return render_template(
        "admin/report.html",
        month=selection.month,
        month_title=month_label(selection.month),
        months=_month_options(selection.months, selection.month),
        employee_key=selection.employee_key,
        employee_label=selection.employee_label,
        employees=selection.choices,
        report=monthly_report,
        headers=REPORT_HEADERS,
        rows=monthly_report_rows(monthly_report) if monthly_report is not None else [],
        summary_counts=counts,
        summary_durations=durations,
    )


@bp.get("/admin/report/data")
@login_required
@export_reports_required
def report_data():
    selection = _report_for_request()
    if selection.report is None:
        abort(400, description="Selecione uma empregada.")
    payload = selection.report.as_dict()
    payload["employee"] = {"key": selection.employee_key, "name": selection.employee_label}
    return payload


@bp.get("/admin/report/pdf")
@login_required
@export_reports_required
def report_pdf():
    selection = _report_for_request()
    if selection.report is None:
        flash("Selecione uma empregada para gerar o relatório.", "warning")
        return redirect(url_for("admin.report", month=selection.month))

    try:
        content = render_monthly_pdf(selection.report, selection.employee_label, local_now())
    except ReportBlocked as exc:
        return _blocked_redirect(selection.month, selection.employee_key, exc)

    current_app.logger.info("Monthly PDF report generated for %s in %s.", selection.employee_key, selection.month)
    response = make_response(content)
    response.headers["Content-Type"] = "application/pdf"
    filename = report_filename(selection.employee_label, selection.month, "pdf")
    response.headers["Content-Disposition"] = f"attachment; filename={filename}"
    return response


@bp.get("/admin/report/csv")
@login_required
@export_reports_required
def report_csv():
    selection = _report_for_request()
    if selection.report is None:
        flash("Selecione uma empregada para gerar o relatório.", "warning")
        return redirect(url_for("admin.report", month=selection.month))

    try:
        content = render_monthly_csv(selection.report)
    except ReportBlocked as exc:
        return _blocked_redirect(selection.month, selection.employee_key, exc)

    current_app.logger.info("Monthly CSV report generated for %s in %s.", selection.employee_key, selection.month)
    response = make_response(content)
    response.headers["Content-Type"] = "text/csv; charset=utf-8"
    filename = report_filename(selection.employee_label, selection.month, "csv")
    response.headers["Content-Disposition"] = f"attachment; filename={filename}"
    return response
