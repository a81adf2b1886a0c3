"""Monthly report classification, balance and validation rules.

Every calendar day of the month gets exactly one status. Business days that
have neither a complete, chronological set of punches nor a recognized
holiday/leave/absence mark end up in ``pending_dates``, and a report with
pending dates must not be exported.
"""

from __future__ import annotations

import calendar
import enum
import re
import unicodedata
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable


DAILY_TARGET_MINUTES = 8 * 60

MONTH_KEY_RE = re.compile(r"^(\d{4})-(\d{2})$", re.ASCII)
TIME_PART_RE = re.compile(r"\d+", re.ASCII)


class InvalidMonth(ValueError):
    """Raised when a month key is not a valid ``YYYY-MM`` value."""

    def __init__(self, month: object):
        super().__init__(f"Mes invalido: {month!r}.")
        self.month = month


class DayStatus(str, enum.Enum):
    WEEKEND = "weekend"
    PENDING = "pending"
    WORKED = "worked"
    HOLIDAY = "holiday"
    JUSTIFIED_LEAVE = "justified_leave"
    ABSENCE = "absence"


class DayMark(str, enum.Enum):
    HOLIDAY = "HOLIDAY"
    JUSTIFIED_LEAVE = "JUSTIFIED_LEAVE"
    ABSENCE = "ABSENCE"


STATUS_LABELS = {
    DayStatus.WEEKEND: "Fim de Semana",
    DayStatus.PENDING: "Pendente",
    DayStatus.WORKED: "Jornada",
    DayStatus.HOLIDAY: "Feriado",
    DayStatus.JUSTIFIED_LEAVE: "Dispensa Justificada",
    DayStatus.ABSENCE: "Falta",
}

DAY_MARK_LABELS = {
    DayMark.HOLIDAY: "Feriado",
    DayMark.JUSTIFIED_LEAVE: "Dispensa Justificada",
    DayMark.ABSENCE: "Falta",
}

MARK_STATUS = {
    DayMark.HOLIDAY: DayStatus.HOLIDAY,
    DayMark.JUSTIFIED_LEAVE: DayStatus.JUSTIFIED_LEAVE,
    DayMark.ABSENCE: DayStatus.ABSENCE,
}

# Legacy free-text notes, compared after normalize_note().
NOTE_MARKS = {
    "feriado": DayMark.HOLIDAY,
    "dispensa justificada": DayMark.JUSTIFIED_LEAVE,
    "falta": DayMark.ABSENCE,
}

WEEKDAY_SHORT_LABELS = ("seg.", "ter.", "qua.", "qui.", "sex.", "sáb.", "dom.")
WEEKDAY_LONG_LABELS = (
    "Segunda-feira",
    "Terça-feira",
    "Quarta-feira",
    "Quinta-feira",
    "Sexta-feira",
    "Sábado",
    "Domingo",
)
MONTH_NAMES = (
    "Janeiro",
    "Fevereiro",
    "Março",
    "Abril",
    "Maio",
    "Junho",
    "Julho",
    "Agosto",
    "Setembro",
    "Outubro",
    "Novembro",
    "Dezembro",
)


@dataclass(frozen=True)
class PunchRow:
    day: date | str
    entry: str | None = None
    lunch_out: str | None = None
    lunch_in: str | None = None
    final_exit: str | None = None
    note: str | None = None
    day_mark: DayMark | None = None
    employee_name: str = ""


@dataclass(frozen=True)
class DayReport:
    day: str
    weekday: str
    status: DayStatus
    entry: str | None
    lunch_out: str | None
    lunch_in: str | None
    final_exit: str | None
    observation: str | None
    worked_minutes: int | None
    balance_minutes: int

    def as_dict(self) -> dict[str, Any]:
        return {
            "date": self.day,
            "weekday": self.weekday,
            "status": self.status.value,
            "status_label": status_label(self.status),
            "entry": self.entry,
            "lunch_out": self.lunch_out,
            "lunch_in": self.lunch_in,
            "final_exit": self.final_exit,
            "observation": self.observation,
            "worked_minutes": self.worked_minutes,
            "balance_minutes": self.balance_minutes,
        }


@dataclass(frozen=True)
class ReportSummary:
    worked_days: int = 0
    absences: int = 0
    holidays: int = 0
    justified_leaves: int = 0
    overtime_minutes: int = 0
    deficit_minutes: int = 0
    net_balance_minutes: int = 0


@dataclass(frozen=True)
class MonthlyReport:
    month: str
    days: tuple[DayReport, ...]
    pending_dates: tuple[str, ...]
    summary: ReportSummary

    @property
    def is_exportable(self) -> bool:
        return not self.pending_dates

    def as_dict(self) -> dict[str, Any]:
        return {
            "month": self.month,
            "exportable": self.is_exportable,
            "pending_dates": list(self.pending_dates),
            "days": [day.as_dict() for day in self.days],
            "summary": {
                "worked_days": self.summary.worked_days,
                "absences": self.summary.absences,
                "holidays": self.summary.holidays,
                "justified_leaves": self.summary.justified_leaves,
                "overtime_minutes": self.summary.overtime_minutes,
                "deficit_minutes": self.summary.deficit_minutes,
                "net_balance_minutes": self.summary.net_balance_minutes,
            },
        }


def build_monthly_report_validation(rows: Iterable[Any], month: str) -> MonthlyReport:
    days = month_days(month)
    row_by_date = {_date_key(row.day): row for row in rows}
    result_days: list[DayReport] = []
    pending_dates: list[str] = []

    for current_day in days:
        day_key = current_day.isoformat()
        row = row_by_date.get(day_key)

        if is_weekend(current_day):
            observation = row.note if row is not None else weekend_day_label(current_day)
            result_days.append(_day_report(current_day, DayStatus.WEEKEND, row, observation=observation))
            continue

        if row is None:
            result_days.append(_day_report(current_day, DayStatus.PENDING, None))
            pending_dates.append(day_key)
            continue

        worked = calculate_worked_minutes(row)
        if worked is not None:
            result_days.append(
                _day_report(
                    current_day,
                    DayStatus.WORKED,
                    row,
                    worked_minutes=worked,
                    balance_minutes=worked - DAILY_TARGET_MINUTES,
                )
            )
            continue

        mark = resolve_day_mark(row)
        if mark is None:
            result_days.append(_day_report(current_day, DayStatus.PENDING, row))
            pending_dates.append(day_key)
            continue

        status = MARK_STATUS[mark]
        balance = -DAILY_TARGET_MINUTES if status == DayStatus.ABSENCE else 0
        result_days.append(_day_report(current_day, status, row, balance_minutes=balance))

    return MonthlyReport(
        month=month,
        days=tuple(result_days),
        pending_dates=tuple(pending_dates),
        summary=build_summary(result_days),
    )


def build_summary(days: Iterable[DayReport]) -> ReportSummary:
    worked_days = 0
    absences = 0
    holidays = 0
    justified_leaves = 0
    overtime = 0
    deficit = 0
    net_balance = 0

    for day in days:
        if day.status == DayStatus.WORKED:
            worked_days += 1
        elif day.status == DayStatus.ABSENCE:
            absences += 1
        elif day.status == DayStatus.HOLIDAY:
            holidays += 1
        elif day.status == DayStatus.JUSTIFIED_LEAVE:
            justified_leaves += 1

        if day.balance_minutes > 0:
            overtime += day.balance_minutes
        elif day.balance_minutes < 0:
            deficit += -day.balance_minutes
        net_balance += day.balance_minutes

    return ReportSummary(
        worked_days=worked_days,
        absences=absences,
        holidays=holidays,
        justified_leaves=justified_leaves,
        overtime_minutes=overtime,
        deficit_minutes=deficit,
        net_balance_minutes=net_balance,
    )


def _day_report(
    current_day: date,
    status: DayStatus,
    row: Any | None,
    *,
    observation: str | None = None,
    worked_minutes: int | None = None,
    balance_minutes: int = 0,
) -> DayReport:
    if row is not None and observation is None:
        observation = row.note
    return DayReport(
        day=current_day.isoformat(),
        weekday=weekday_label(current_day),
        status=status,
        entry=row.entry if row is not None else None,
        lunch_out=row.lunch_out if row is not None else None,
        lunch_in=row.lunch_in if row is not None else None,
        final_exit=row.final_exit if row is not None else None,
        observation=observation,
        worked_minutes=worked_minutes,
        balance_minutes=balance_minutes,
    )


def calculate_worked_minutes(row: Any) -> int | None:
    """Worked minutes for a complete, chronological day, lunch excluded."""
    entry = parse_time_minutes(row.entry)
    lunch_out = parse_time_minutes(row.lunch_out)
    lunch_in = parse_time_minutes(row.lunch_in)
    final_exit = parse_time_minutes(row.final_exit)

    if entry is None or lunch_out is None or lunch_in is None or final_exit is None:
        return None
    if lunch_out < entry or lunch_in < lunch_out or final_exit < lunch_in:
        return None
    return (lunch_out - entry) + (final_exit - lunch_in)


def minutes_between(start: str | None, end: str | None) -> int | None:
    start_minutes = parse_time_minutes(start)
    end_minutes = parse_time_minutes(end)
    if start_minutes is None or end_minutes is None or end_minutes < start_minutes:
        return None
    return end_minutes - start_minutes


def parse_time_minutes(value: str | None) -> int | None:
    if not value:
        return None
    parts = value.strip().split(":")
    if len(parts) < 2:
        return None
    hour, minute = parts[0], parts[1]
    if not (TIME_PART_RE.fullmatch(hour) and TIME_PART_RE.fullmatch(minute)):
        return None
    return int(hour) * 60 + int(minute)


def normalize_note(note: str | None) -> str:
    if not note:
        return ""
    decomposed = unicodedata.normalize("NFD", note.strip().lower())
    stripped = "".join(char for char in decomposed if not unicodedata.combining(char))
    return " ".join(stripped.split())


def resolve_day_mark(row: Any) -> DayMark | None:
    explicit = getattr(row, "day_mark", None)
    if explicit is not None:
        return DayMark(explicit)
    return NOTE_MARKS.get(normalize_note(row.note))


def parse_month(month: str) -> tuple[int, int]:
    match = MONTH_KEY_RE.fullmatch(month) if isinstance(month, str) else None
    if match is None:
        raise InvalidMonth(month)
    year, month_number = int(match.group(1)), int(match.group(2))
    if year < 1 or not 1 <= month_number <= 12:
        raise InvalidMonth(month)
    return year, month_number


def month_key(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def month_bounds(month: str) -> tuple[date, date]:
    year, month_number = parse_month(month)
    return date(year, month_number, 1), date(year, month_number, calendar.monthrange(year, month_number)[1])


def month_days(month: str) -> list[date]:
    year, month_number = parse_month(month)
    total_days = calendar.monthrange(year, month_number)[1]
    return [date(year, month_number, day_number) for day_number in range(1, total_days + 1)]


def month_label(month: str) -> str:
    year, month_number = parse_month(month)
    return f"{MONTH_NAMES[month_number - 1]}/{year}"


def is_weekend(value: date) -> bool:
    return value.weekday() >= 5


def weekday_label(value: date) -> str:
    return WEEKDAY_SHORT_LABELS[value.weekday()]


def weekday_title(value: date) -> str:
    return WEEKDAY_LONG_LABELS[value.weekday()]


def weekend_day_label(value: date | str) -> str:
    current_day = value if isinstance(value, date) else date.fromisoformat(value)
    return "Domingo" if current_day.weekday() == 6 else "Sábado"


def status_label(status: DayStatus) -> str:
    return STATUS_LABELS[DayStatus(status)]


def format_minutes(minutes: int, *, signed: bool = False) -> str:
    total = abs(minutes)
    sign = ""
    if signed and minutes < 0:
        sign = "-"
    elif signed and minutes > 0:
        sign = "+"
    return f"{sign}{total // 60:02d}:{total % 60:02d}"


def format_signed_minutes(minutes: int) -> str:
    return format_minutes(minutes, signed=True)


def format_duration(minutes: int) -> str:
    hours, rest = divmod(max(0, minutes), 60)
    hour_label = "hora" if hours == 1 else "horas"
    minute_label = "minuto" if rest == 1 else "minutos"
    return f"{hours} {hour_label} {rest} {minute_label}"


def _date_key(value: date | str) -> str:
    if isinstance(value, date):
        return value.isoformat()
    return str(value)
