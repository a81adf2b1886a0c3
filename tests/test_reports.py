from __future__ import annotations

import csv
import io
from datetime import datetime

import pytest

from ponto.extensions import db
from ponto.models import PunchRecord
from ponto.report_export import (
    REPORT_HEADERS,
    ReportBlocked,
    _pdf_escape,
    _truncate,
    monthly_report_rows,
    render_monthly_csv,
    render_monthly_pdf,
    report_filename,
    summary_lines,
)
from ponto.report_rules import PunchRow, build_monthly_report_validation, month_days


def _seed_month(app, month: str = "2024-02", skip: tuple[str, ...] = (), notes: dict[str, str] | None = None) -> None:
    notes = notes or {}
    with app.app_context():
        for value in month_days(month):
            key = value.isoformat()
            if value.weekday() >= 5 or key in skip:
                continue
            if key in notes:
                db.session.add(PunchRecord(day=value, employee_name="maria da silva", note=notes[key]))
                continue
            db.session.add(
                PunchRecord(
                    day=value,
                    employee_name="maria da silva",
                    entry="08:00:00",
                    lunch_out="12:00:00",
                    lunch_in="13:00:00",
                    final_exit="17:00:00",
                )
            )
        db.session.commit()


def _complete_report(month: str = "2024-02"):
    rows = [
        PunchRow(day=value.isoformat(), entry="08:00", lunch_out="12:00", lunch_in="13:00", final_exit="17:00")
        for value in month_days(month)
        if value.weekday() < 5
    ]
    return build_monthly_report_validation(rows, month)


def test_blocked_report_preview_lists_pending_days(admin_client, app):
    _seed_month(app, skip=("2024-02-14", "2024-02-15"))

    response = admin_client.get("/admin/report?month=2024-02&employee=maria+da+silva")

    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert "Relatório bloqueado." in body
    assert "Pendências de validação: 2" in body
    assert "2024-02-14 - pendente de preenchimento/validação" in body
    assert "2024-02-15 - pendente de preenchimento/validação" in body
    assert "Baixar PDF" not in body


def test_blocked_pdf_download_redirects_with_pending_dates(admin_client, app):
    _seed_month(app, skip=("2024-02-14",))

    response = admin_client.get("/admin/report/pdf?month=2024-02&employee=maria+da+silva", follow_redirects=False)

    assert response.status_code == 302
    assert "/admin/report" in response.headers["Location"]

    page = admin_client.get(response.headers["Location"]).get_data(as_text=True)
    assert "sem validação do admin: 2024-02-14" in page


def test_blocked_csv_download_redirects(admin_client, app):
    _seed_month(app, skip=("2024-02-29",))

    response = admin_client.get("/admin/report/csv?month=2024-02&employee=maria+da+silva", follow_redirects=False)

    assert response.status_code == 302


def test_exportable_report_downloads_pdf_and_csv(admin_client, app):
    _seed_month(app, notes={"2024-02-12": "Feriado", "2024-02-13": "Falta"})

    preview = admin_client.get("/admin/report?month=2024-02&employee=maria+da+silva").get_data(as_text=True)
    assert "Baixar PDF" in preview
    assert "Balanço final: -08:00" in preview

    pdf_response = admin_client.get("/admin/report/pdf?month=2024-02&employee=maria+da+silva")
    assert pdf_response.status_code == 200
    assert pdf_response.headers["Content-Type"] == "application/pdf"
    assert "relatorio-ponto-maria-da-silva-2024-02.pdf" in pdf_response.headers["Content-Disposition"]
    assert pdf_response.data.startswith(b"%PDF-")

    csv_response = admin_client.get("/admin/report/csv?month=2024-02&employee=maria+da+silva")
    assert csv_response.status_code == 200
    assert ".csv" in csv_response.headers["Content-Disposition"]
    rows = list(csv.reader(io.StringIO(csv_response.get_data(as_text=True))))
    assert rows[0] == REPORT_HEADERS
    assert len(rows) == 1 + 29
    assert rows[1][:2] == ["01/02", "qui."]
    assert rows[3][6] == "Sábado"
    assert rows[12][6] == "Feriado"
    assert rows[13][8] == "-08:00"


def test_single_employee_is_selected_automatically(admin_client, app):
    _seed_month(app)

    response = admin_client.get("/admin/report/data?month=2024-02")

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["employee"] == {"key": "maria da silva", "name": "Maria Da Silva"}
    assert payload["exportable"] is True
    assert payload["pending_dates"] == []
    assert len(payload["days"]) == 29
    assert payload["summary"]["worked_days"] == 21


def test_report_data_requires_an_employee_when_ambiguous(admin_client, app):
    with app.app_context():
        db.session.add_all(
            [
                PunchRecord(day=datetime(2024, 2, 1).date(), employee_name="ana souza"),
                PunchRecord(day=datetime(2024, 2, 1).date(), employee_name="bia lima"),
            ]
        )
        db.session.commit()

    assert admin_client.get("/admin/report/data?month=2024-02").status_code == 400
    assert admin_client.get("/admin/report/data?month=2024-02&employee=Bia++LIMA").status_code == 200


def test_report_preview_offers_every_recorded_month(admin_client, app):
    with app.app_context():
        db.session.add_all(
            [
                PunchRecord(day=datetime(2024, 1, 15).date(), employee_name="maria da silva", entry="08:00:00"),
                PunchRecord(day=datetime(2024, 2, 1).date(), employee_name="maria da silva", entry="08:00:00"),
            ]
        )
        db.session.commit()

    body = admin_client.get("/admin/report").get_data(as_text=True)

    assert '<option value="2024-01" >Janeiro/2024</option>' in body
    assert '<option value="2024-02" selected>Fevereiro/2024</option>' in body
    assert "Maria Da Silva" in body


def test_report_routes_require_admin(employee_client):
    assert employee_client.get("/admin/report").status_code == 403
    assert employee_client.get("/admin/report/pdf?month=2024-02").status_code == 403


def test_renderers_refuse_reports_with_pending_days():
    report = build_monthly_report_validation([], "2024-02")

    with pytest.raises(ReportBlocked) as excinfo:
        render_monthly_pdf(report, "Maria", datetime(2024, 3, 1, 9, 0))
    assert excinfo.value.pending_dates == report.pending_dates

    with pytest.raises(ReportBlocked):
        render_monthly_csv(report)


def test_pdf_contains_title_summary_and_signature():
    content = render_monthly_pdf(_complete_report(), "Maria Da Silva", datetime(2024, 3, 1, 9, 30))

    assert content.startswith(b"%PDF-1.4")
    assert content.rstrip().endswith(b"%%EOF")
    assert "Relatório Mensal de Ponto".encode("cp1252") in content
    assert b"Resumo mensal" in content
    assert b"Assinatura da empregada" in content
    assert "Balanço final: 00:00".encode("cp1252") in content


def test_pdf_cross_reference_points_at_each_object():
    content = render_monthly_pdf(_complete_report(), "Maria (plantão) \\ Silva", datetime(2024, 3, 1, 9, 30))

    assert "Empregada: Maria \\(plantão\\) \\\\ Silva".encode("cp1252") in content
    xref_start = int(content.rsplit(b"startxref\n", 1)[1].split(b"\n", 1)[0])
    assert content[xref_start:].startswith(b"xref\n0 ")
    entries = content[xref_start:].split(b"trailer", 1)[0].splitlines()[3:]
    for number, entry in enumerate(entries, start=1):
        offset = int(entry.split()[0])
        assert content[offset:].startswith(b"%d 0 obj\n" % number)


def test_pdf_text_helpers():
    assert _pdf_escape("a(b)c\\d\ne") == "a\\(b\\)c\\\\d\\ne"
    assert _truncate("Consulta", 8) == "Consulta"
    assert _truncate("Consulta médica marcada", 10) == "Consulta…"
    assert _truncate("Consulta médica marcada", 12) == "Consulta mé…"


def test_report_rows_and_summary_lines():
    report = _complete_report()
    rows = monthly_report_rows(report)
    counts, durations = summary_lines(report)

    assert rows[0] == ["01/02", "qui.", "08:00", "12:00", "13:00", "17:00", "-", "08:00", "00:00"]
    assert rows[3][6] == "Domingo"
    assert rows[3][7] == "-"
    assert counts[0] == "Dias trabalhados: 21"
    assert durations == ["Horas extras: 00:00", "Horas negativas: 00:00", "Balanço final: 00:00"]


def test_report_filename_is_ascii_slug():
    assert report_filename("Conceição  Araújo", "2024-02", "pdf") == "relatorio-ponto-conceicao-araujo-2024-02.pdf"
    assert report_filename("", "2024-02", "csv") == "relatorio-ponto-empregada-2024-02.csv"
