"""Monthly report exports (PDF, CSV) without third-party deps."""

from __future__ import annotations

import csv
import io
import re
import unicodedata
from datetime import datetime
from typing import Any

from ponto.report_rules import (
    DayStatus,
    MonthlyReport,
    format_minutes,
    format_signed_minutes,
    month_label,
    status_label,
    weekend_day_label,
)


REPORT_HEADERS = [
    "Data",
    "Dia",
    "Entrada",
    "Saída Almoço",
    "Volta Almoço",
    "Saída",
    "Observação",
    "Horas",
    "Saldo",
]

PAGE_WIDTH = 595
PAGE_HEIGHT = 842
MARGIN_LEFT = 40
MARGIN_TOP = 800
MARGIN_BOTTOM = 50
ROW_HEIGHT = 11
TABLE_FONT_SIZE = 7.5
# Courier glyphs are 0.6 em wide.
TABLE_CHAR_WIDTH = TABLE_FONT_SIZE * 0.6
PDF_TABLE_HEADERS = ["Data", "Dia", "Entrada", "S.Almoço", "V.Almoço", "Saída", "Observação", "Horas", "Saldo"]
TABLE_COLUMN_CHARS = [6, 5, 8, 8, 8, 8, 26, 7, 7]
PDF_HEADER = b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n"
PDF_STRING_ESCAPES = str.maketrans({"\\": "\\\\", "(": "\\(", ")": "\\)", "\r": "\\r", "\n": "\\n"})


class ReportBlocked(ValueError):
    """Raised when a report with pending days is handed to a renderer."""

    def __init__(self, pending_dates: tuple[str, ...] | list[str]):
        self.pending_dates = tuple(pending_dates)
        super().__init__(f"Relatório bloqueado: {len(self.pending_dates)} dia(s) pendente(s).")


def ensure_exportable(report: MonthlyReport) -> None:
    if not report.is_exportable:
        raise ReportBlocked(report.pending_dates)


def monthly_report_rows(report: MonthlyReport) -> list[list[str]]:
    rows: list[list[str]] = []
    for day in report.days:
        if day.status == DayStatus.WEEKEND:
            observation = day.observation or weekend_day_label(day.day)
        elif day.status in (DayStatus.HOLIDAY, DayStatus.JUSTIFIED_LEAVE, DayStatus.ABSENCE):
            observation = day.observation or status_label(day.status)
        else:
            observation = day.observation or "-"
        rows.append(
            [
                _short_date(day.day),
                day.weekday,
                _short_time(day.entry),
                _short_time(day.lunch_out),
                _short_time(day.lunch_in),
                _short_time(day.final_exit),
                observation,
                "-" if day.worked_minutes is None else format_minutes(day.worked_minutes),
                format_signed_minutes(day.balance_minutes),
            ]
        )
    return rows


def summary_lines(report: MonthlyReport) -> tuple[list[str], list[str]]:
    summary = report.summary
    counts = [
        f"Dias trabalhados: {summary.worked_days}",
        f"Faltas: {summary.absences}",
        f"Feriados: {summary.holidays}",
        f"Dispensas justificadas: {summary.justified_leaves}",
    ]
    durations = [
        f"Horas extras: {format_minutes(summary.overtime_minutes)}",
        f"Horas negativas: {format_minutes(summary.deficit_minutes)}",
        f"Balanço final: {format_signed_minutes(summary.net_balance_minutes)}",
    ]
    return counts, durations


def to_csv_bytes(headers: list[str], rows: list[list[Any]]) -> bytes:
    out = io.StringIO()
    writer = csv.writer(out)
    writer.writerow(headers)
    for row in rows:
        writer.writerow(["" if value is None else str(value) for value in row])
    return out.getvalue().encode("utf-8")


def render_monthly_csv(report: MonthlyReport) -> bytes:
    ensure_exportable(report)
    return to_csv_bytes(REPORT_HEADERS, monthly_report_rows(report))


def render_monthly_pdf(report: MonthlyReport, employee_name: str, generated_at: datetime) -> bytes:
    ensure_exportable(report)

    pages: list[list[bytes]] = [[]]
    y = MARGIN_TOP

    def ops() -> list[bytes]:
        return pages[-1]

    def ensure_room(height: float) -> None:
        nonlocal y
        if y - height < MARGIN_BOTTOM:
            pages.append([])
            y = MARGIN_TOP

    _text(ops(), "F2", 13, MARGIN_LEFT, y, "Relatório Mensal de Ponto")
    y -= 18
    for line in (
        f"Empregada: {employee_name}",
        f"Período: {month_label(report.month)}",
        f"Gerado em: {generated_at.strftime('%d/%m/%Y %H:%M:%S')}",
    ):
        _text(ops(), "F1", 8, MARGIN_LEFT, y, line)
        y -= 11
    y -= 6

    table_width = sum(TABLE_COLUMN_CHARS) * TABLE_CHAR_WIDTH + (len(TABLE_COLUMN_CHARS) - 1) * TABLE_CHAR_WIDTH

    def table_header() -> None:
        nonlocal y
        _text(ops(), "F4", TABLE_FONT_SIZE, MARGIN_LEFT, y, _table_line(PDF_TABLE_HEADERS))
        _rule(ops(), MARGIN_LEFT, y - 3, MARGIN_LEFT + table_width)
        y -= ROW_HEIGHT + 1

    table_header()
    for row in monthly_report_rows(report):
        if y - ROW_HEIGHT < MARGIN_BOTTOM:
            pages.append([])
            y = MARGIN_TOP
            table_header()
        _text(ops(), "F3", TABLE_FONT_SIZE, MARGIN_LEFT, y, _table_line(row))
        y -= ROW_HEIGHT
    _rule(ops(), MARGIN_LEFT, y + ROW_HEIGHT - 3, MARGIN_LEFT + table_width)

    y -= 14
    ensure_room(110)
    _text(ops(), "F2", 10, MARGIN_LEFT, y, "Resumo mensal")
    y -= 14
    counts, durations = summary_lines(report)
    right_column_x = MARGIN_LEFT + table_width / 2
    for index in range(max(len(counts), len(durations))):
        if index < len(counts):
            _text(ops(), "F1", 8, MARGIN_LEFT, y, counts[index])
        if index < len(durations):
            _text(ops(), "F1", 8, right_column_x, y, durations[index])
        y -= 11

    y -= 34
    line_width = 140
    gap = 30
    left_start = MARGIN_LEFT + (table_width - (2 * line_width + gap)) / 2
    right_start = left_start + line_width + gap
    _rule(ops(), left_start, y, left_start + line_width)
    _rule(ops(), right_start, y, right_start + line_width)
    _text(ops(), "F1", 8, left_start + line_width / 2 - 8, y - 11, "Data")
    _text(ops(), "F1", 8, right_start + 28, y - 11, "Assinatura da empregada")

    return _build_pdf(pages)


def report_filename(employee_name: str, month: str, extension: str) -> str:
    return f"relatorio-ponto-{slugify(employee_name) or 'empregada'}-{month}.{extension}"


def slugify(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value or "")
    ascii_text = "".join(char for char in decomposed if not unicodedata.combining(char)).lower()
    return re.sub(r"[^a-z0-9]+", "-", ascii_text).strip("-")


def _table_line(values: list[str]) -> str:
    cells = []
    for value, width in zip(values, TABLE_COLUMN_CHARS):
        text = _truncate(str(value), width)
        cells.append(text.ljust(width))
    return " ".join(cells).rstrip()


def _text(ops: list[bytes], font: str, size: float, x: float, y: float, text: str) -> None:
    escaped = _pdf_escape(text).encode("cp1252", "replace")
    ops.append(f"BT /{font} {size:g} Tf {x:.2f} {y:.2f} Td (".encode("latin-1") + escaped + b") Tj ET")


def _rule(ops: list[bytes], x1: float, y: float, x2: float) -> None:
    ops.append(f"0.5 w {x1:.2f} {y:.2f} m {x2:.2f} {y:.2f} l S".encode("latin-1"))


def _build_pdf(pages: list[list[bytes]]) -> bytes:
    objects: list[bytes] = []

    def add_object(content: bytes) -> int:
        objects.append(content)
        return len(objects)

    catalog_id = add_object(b"")
    pages_id = add_object(b"")
    font_ids = {
        "F1": add_object(b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica /Encoding /WinAnsiEncoding >>"),
        "F2": add_object(b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica-Bold /Encoding /WinAnsiEncoding >>"),
        "F3": add_object(b"<< /Type /Font /Subtype /Type1 /BaseFont /Courier /Encoding /WinAnsiEncoding >>"),
        "F4": add_object(b"<< /Type /Font /Subtype /Type1 /BaseFont /Courier-Bold /Encoding /WinAnsiEncoding >>"),
    }
    font_refs = " ".join(f"/{name} {object_id} 0 R" for name, object_id in font_ids.items())

    page_ids: list[int] = []
    for page_ops in pages:
        stream = b"\n".join(page_ops)
        contents_id = add_object(
            f"<< /Length {len(stream)} >>\nstream\n".encode("latin-1") + stream + b"\nendstream"
        )
        page_id = add_object(
            (
                f"<< /Type /Page /Parent {pages_id} 0 R /MediaBox [0 0 {PAGE_WIDTH} {PAGE_HEIGHT}] "
                f"/Contents {contents_id} 0 R /Resources << /Font << {font_refs} >> >> >>"
            ).encode("latin-1")
        )
        page_ids.append(page_id)

    kids_refs = " ".join(f"{page_id} 0 R" for page_id in page_ids)
    objects[pages_id - 1] = f"<< /Type /Pages /Kids [{kids_refs}] /Count {len(page_ids)} >>".encode("latin-1")
    objects[catalog_id - 1] = f"<< /Type /Catalog /Pages {pages_id} 0 R >>".encode("latin-1")

    return _serialize(objects, root_id=catalog_id)


def _serialize(objects: list[bytes], root_id: int) -> bytes:
    """Write numbered objects, the cross-reference table and the trailer."""
    out = bytearray(PDF_HEADER)
    offsets: list[int] = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n%s\nendobj\n" % (number, body)

    size = len(objects) + 1
    xref_start = len(out)
    xref = [b"xref", b"0 %d" % size, b"0000000000 65535 f "]
    xref.extend(b"%010d 00000 n " % offset for offset in offsets)
    out += b"\n".join(xref) + b"\n"
    out += b"trailer\n<< /Size %d /Root %d 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (size, root_id, xref_start)
    return bytes(out)


def _short_date(day_key: str) -> str:
    _, month, day = day_key.split("-")
    return f"{day}/{month}"


def _short_time(value: str | None) -> str:
    return value[:5] if value else "-"


def _truncate(value: str, max_len: int) -> str:
    # U+2026 is a single glyph in WinAnsi.
    if len(value) <= max_len:
        return value
    return value[: max_len - 1].rstrip() + "…"


def _pdf_escape(text: str) -> str:
    return text.translate(PDF_STRING_ESCAPES)
