from __future__ import annotations

from datetime import date

from sqlalchemy import select

from ponto.extensions import db
from ponto.models import AuditLog, PunchRecord, User


def _maria_records() -> list[PunchRecord]:
    maria_id = db.session.execute(select(User.id).where(User.email == "maria@example.com")).scalar_one()
    return list(db.session.execute(select(PunchRecord).where(PunchRecord.user_id == maria_id)).scalars().all())


def test_today_page_offers_the_entry_stage_first(employee_client):
    response = employee_client.get("/me/today")

    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert "Registrar entrada" in body
    assert "Aguardando marcação" in body
    assert "/me/punch/entry" in body


def test_entry_punch_creates_the_day_row_and_audit_entry(employee_client, app):
    response = employee_client.post("/me/punch/entry", follow_redirects=True)

    assert response.status_code == 200
    assert "Entrada registrada às" in response.get_data(as_text=True)

    with app.app_context():
        records = _maria_records()
        assert len(records) == 1
        assert records[0].entry is not None
        assert records[0].entry.endswith(":00")
        assert records[0].lunch_out is None
        assert records[0].employee_name == "maria da silva"

        audit = db.session.execute(select(AuditLog).where(AuditLog.action == "PUNCH_ENTRY")).scalar_one()
        assert audit.entity_id == records[0].id


def test_out_of_order_punch_is_rejected_with_a_warning(employee_client, app):
    response = employee_client.post("/me/punch/final_exit", follow_redirects=True)

    assert response.status_code == 200
    assert "Saída Final não pode ser registrada antes de Entrada." in response.get_data(as_text=True)
    with app.app_context():
        assert _maria_records() == []


def test_full_day_closes_the_punch_flow(employee_client, app):
    for stage in ("entry", "lunch_out", "lunch_in", "final_exit"):
        response = employee_client.post(f"/me/punch/{stage}", follow_redirects=False)
        assert response.status_code == 302

    page = employee_client.get("/me/today").get_data(as_text=True)
    assert "Jornada encerrada hoje" in page

    response = employee_client.post("/me/punch/final_exit", follow_redirects=True)
    assert "Jornada de hoje encerrada." in response.get_data(as_text=True)
    with app.app_context():
        records = _maria_records()
        assert len(records) == 1
        assert records[0].final_exit is not None


def test_unknown_stage_returns_404(employee_client):
    response = employee_client.post("/me/punch/coffee_break", follow_redirects=False)
    assert response.status_code == 404


def test_history_lists_previous_days_of_the_month(employee_client, app):
    with app.app_context():
        maria = db.session.execute(select(User).where(User.email == "maria@example.com")).scalar_one()
        db.session.add(
            PunchRecord(
                day=date(2024, 2, 1),
                employee_name="maria da silva",
                user_id=maria.id,
                entry="08:00:00",
                lunch_out="12:00:00",
                lunch_in="13:00:00",
                final_exit="18:00:00",
            )
        )
        db.session.commit()

    response = employee_client.get("/me/history?month=2024-02")

    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert "01/02/2024" in body
    assert "+01:00" in body
    assert "Fevereiro/2024" in body


def test_history_rejects_invalid_month(employee_client):
    response = employee_client.get("/me/history?month=2024-13")
    assert response.status_code == 400


def test_admin_cannot_record_punches(admin_client):
    response = admin_client.post("/me/punch/entry", follow_redirects=False)
    assert response.status_code == 403
