from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import select

from ponto.extensions import db
from ponto.models import AuditLog, PunchRecord
from ponto.report_rules import DayMark


def _seed_record(app, **fields) -> str:
    with app.app_context():
        record = PunchRecord(day=date(2024, 2, 1), employee_name="maria da silva", **fields)
        db.session.add(record)
        db.session.commit()
        return str(record.id)


def test_records_grid_lists_rows_and_weekend_placeholders(admin_client, app):
    _seed_record(app, entry="08:00:00", lunch_out="12:00:00", lunch_in="13:00:00", final_exit="17:00:00")

    response = admin_client.get("/admin/records?month=2024-02&employee=maria+da+silva&day=all")

    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert "2024-02-01" in body
    assert "Maria Da Silva" in body
    assert "08:00" in body
    assert "2024-02-03" in body
    assert "Sábado" in body
    assert "Editar" in body


def test_records_grid_filters_a_single_day(admin_client, app):
    record_id = _seed_record(app, entry="08:00:00")

    body = admin_client.get("/admin/records?month=2024-02&day=2024-02-03").get_data(as_text=True)

    assert "Sábado" in body
    assert f"/admin/records/{record_id}/edit" not in body


def test_records_grid_rejects_invalid_month(admin_client):
    response = admin_client.get("/admin/records?month=2024-2")
    assert response.status_code == 400


def test_admin_edit_saves_values_and_audits(admin_client, app):
    record_id = _seed_record(app, entry="08:00:00")

    response = admin_client.post(
        f"/admin/records/{record_id}/edit",
        data={
            "entry": "08:00",
            "lunch_out": "",
            "lunch_in": "",
            "final_exit": "",
            "day_mark": "JUSTIFIED_LEAVE",
            "note": "Consulta médica",
        },
        follow_redirects=False,
    )

    assert response.status_code == 302
    assert "/admin/records" in response.headers["Location"]
    with app.app_context():
        record = db.session.get(PunchRecord, uuid.UUID(record_id))
        assert record.entry == "08:00"
        assert record.day_mark == DayMark.JUSTIFIED_LEAVE
        assert record.note == "Consulta médica"
        audit = db.session.execute(select(AuditLog).where(AuditLog.action == "PUNCH_RECORD_UPDATED")).scalar_one()
        assert audit.entity_id == record.id
        assert audit.actor_user_id is not None
        assert audit.payload_json["before"]["day_mark"] is None
        assert audit.payload_json["after"]["day_mark"] == "JUSTIFIED_LEAVE"
        assert audit.payload_json["after"]["note"] == "Consulta médica"


def test_admin_edit_rejects_stage_gaps(admin_client, app):
    record_id = _seed_record(app, entry="08:00:00")

    response = admin_client.post(
        f"/admin/records/{record_id}/edit",
        data={"entry": "08:00", "lunch_out": "", "lunch_in": "13:00", "final_exit": "", "day_mark": "", "note": ""},
        follow_redirects=False,
    )

    assert response.status_code == 400
    assert "Volta Almoço não pode ser registrada antes de Saída Almoço." in response.get_data(as_text=True)


def test_admin_edit_rejects_malformed_times(admin_client, app):
    record_id = _seed_record(app)

    response = admin_client.post(
        f"/admin/records/{record_id}/edit",
        data={"entry": "25:00", "lunch_out": "", "lunch_in": "", "final_exit": "", "day_mark": "", "note": ""},
        follow_redirects=False,
    )

    assert response.status_code == 400
    assert "Use o formato HH:MM." in response.get_data(as_text=True)


def test_admin_delete_removes_row_and_audits(admin_client, app):
    record_id = _seed_record(app, note="Falta")

    response = admin_client.post(f"/admin/records/{record_id}/delete", follow_redirects=False)

    assert response.status_code == 302
    with app.app_context():
        assert db.session.execute(select(PunchRecord)).scalars().all() == []
        audit = db.session.execute(select(AuditLog).where(AuditLog.action == "PUNCH_RECORD_DELETED")).scalar_one()
        assert audit.payload_json["before"]["day"] == "2024-02-01"
        assert audit.payload_json["before"]["note"] == "Falta"
        assert "after" not in audit.payload_json


def test_missing_record_returns_404(admin_client):
    response = admin_client.get("/admin/records/00000000-0000-0000-0000-000000000000/edit")
    assert response.status_code == 404


def test_employee_cannot_manage_records(employee_client, app):
    record_id = _seed_record(app)

    assert employee_client.get("/admin/records").status_code == 403
    assert employee_client.post(f"/admin/records/{record_id}/delete").status_code == 403
