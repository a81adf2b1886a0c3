"""Punch record storage and the four-stage daily progression.

Stages are recorded in order: entry, lunch out, lunch in, final exit. A stage
can only be written once the previous one has a value for the same day, and
the employee flow writes one stage field per request.
"""

from __future__ import annotations

import enum
import uuid
from datetime import date, datetime
from typing import Any, Mapping

from sqlalchemy import select

from ponto.extensions import db
from ponto.models import PunchRecord, User
from ponto.report_rules import DayMark, month_bounds, month_key


class PunchStage(str, enum.Enum):
    ENTRY = "entry"
    LUNCH_OUT = "lunch_out"
    LUNCH_IN = "lunch_in"
    FINAL_EXIT = "final_exit"

    @property
    def label(self) -> str:
        return STAGE_LABELS[self]

    @property
    def action_label(self) -> str:
        return STAGE_ACTION_LABELS[self]


PUNCH_STAGES = tuple(PunchStage)

STAGE_LABELS = {
    PunchStage.ENTRY: "Entrada",
    PunchStage.LUNCH_OUT: "Saída Almoço",
    PunchStage.LUNCH_IN: "Volta Almoço",
    PunchStage.FINAL_EXIT: "Saída Final",
}
STAGE_ACTION_LABELS = {
    PunchStage.ENTRY: "Registrar entrada",
    PunchStage.LUNCH_OUT: "Registrar saída almoço",
    PunchStage.LUNCH_IN: "Registrar volta almoço",
    PunchStage.FINAL_EXIT: "Registrar saída final",
}


class PunchError(Exception):
    """Base error for rejected punch writes."""


class StageOutOfOrder(PunchError):
    def __init__(self, requested: PunchStage, expected: PunchStage | None):
        self.requested = requested
        self.expected = expected
        if expected is None:
            message = f"{requested.label} não pode ser registrada: jornada de hoje encerrada."
        else:
            message = f"{requested.label} não pode ser registrada antes de {expected.label}."
        super().__init__(message)


class DayClosed(PunchError):
    def __init__(self, day: date):
        self.day = day
        super().__init__("Jornada de hoje encerrada.")


def normalize_employee_key(value: str | None) -> str:
    if not value:
        return ""
    return " ".join(value.split()).lower()


def format_person_name(value: str | None) -> str:
    return " ".join(part[:1].upper() + part[1:].lower() for part in (value or "").split())


def stage_value(record: Any | None, stage: PunchStage) -> str | None:
    if record is None:
        return None
    return getattr(record, stage.value) or None


def next_stage(record: Any | None) -> PunchStage | None:
    for stage in PUNCH_STAGES:
        if not stage_value(record, stage):
            return stage
    return None


def validate_stage_prefix(values: Mapping[str, str | None]) -> None:
    """Filled stages must be a prefix of the stage order."""
    gap: PunchStage | None = None
    for stage in PUNCH_STAGES:
        if not values.get(stage.value):
            gap = gap or stage
            continue
        if gap is not None:
            raise StageOutOfOrder(stage, gap)


def record_for_user_day(user_id: uuid.UUID, day: date) -> PunchRecord | None:
    stmt = select(PunchRecord).where(PunchRecord.user_id == user_id, PunchRecord.day == day)
    return db.session.execute(stmt).scalar_one_or_none()


def record_punch(user: User, stage: PunchStage, now: datetime) -> PunchRecord:
    """Write one stage for ``now``'s date, inserting the day row when absent."""
    day = now.date()
    record = record_for_user_day(user.id, day)

    expected = next_stage(record)
    if expected is None:
        raise DayClosed(day)
    if stage != expected:
        raise StageOutOfOrder(stage, expected)

    value = now.strftime("%H:%M:00")
    if record is None:
        record = PunchRecord(
            day=day,
            employee_name=normalize_employee_key(user.display_name),
            user_id=user.id,
        )
        db.session.add(record)
    setattr(record, stage.value, value)
    db.session.flush()
    return record


def update_record(record: PunchRecord, values: Mapping[str, Any]) -> PunchRecord:
    cleaned: dict[str, Any] = {}
    for stage in PUNCH_STAGES:
        raw = values.get(stage.value)
        cleaned[stage.value] = raw.strip() if isinstance(raw, str) and raw.strip() else None
    validate_stage_prefix(cleaned)

    note = values.get("note")
    cleaned["note"] = note.strip() if isinstance(note, str) and note.strip() else None
    mark = values.get("day_mark")
    cleaned["day_mark"] = DayMark(mark) if mark else None

    for field, value in cleaned.items():
        setattr(record, field, value)
    db.session.flush()
    return record


def delete_record(record: PunchRecord) -> None:
    db.session.delete(record)
    db.session.flush()


def user_records_for_month(user_id: uuid.UUID, month: str) -> list[PunchRecord]:
    start, end = month_bounds(month)
    stmt = (
        select(PunchRecord)
        .where(PunchRecord.user_id == user_id, PunchRecord.day >= start, PunchRecord.day <= end)
        .order_by(PunchRecord.day.desc())
    )
    return list(db.session.execute(stmt).scalars().all())


def records_for_month(month: str, employee_key: str = "") -> list[PunchRecord]:
    start, end = month_bounds(month)
    stmt = (
        select(PunchRecord)
        .where(PunchRecord.day >= start, PunchRecord.day <= end)
        .order_by(PunchRecord.day.asc(), PunchRecord.employee_name.asc())
    )
    rows = list(db.session.execute(stmt).scalars().all())
    if not employee_key:
        return rows
    return [row for row in rows if normalize_employee_key(row.employee_name) == employee_key]


def employee_choices(rows: list[PunchRecord]) -> list[tuple[str, str]]:
    by_key: dict[str, str] = {}
    for row in rows:
        key = normalize_employee_key(row.employee_name)
        if key:
            by_key.setdefault(key, format_person_name(row.employee_name))
    return sorted(by_key.items(), key=lambda item: item[1])


def available_months(user_id: uuid.UUID | None = None) -> list[str]:
    stmt = select(PunchRecord.day).order_by(PunchRecord.day.asc())
    if user_id is not None:
        stmt = stmt.where(PunchRecord.user_id == user_id)
    months = {month_key(day) for day in db.session.execute(stmt).scalars().all()}
    return sorted(months)
