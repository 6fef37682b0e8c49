"""Display tables and their CSV / XLSX encodings.

Exports carry exactly what the console shows: the display column order and the
formatted strings (``₹1,20,000``, ``15/03/2024``), not raw numbers. Build a
:class:`DisplayTable` with one of the ``*_display_rows`` helpers, then encode
it with :func:`rows_to_csv` or :func:`rows_to_xlsx`.
"""

from __future__ import annotations

import csv
import io
import os
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from .classify import deletion_action
from .coercion import format_currency_inr, format_display_date
from .models import MONTH_NAMES, ApprovalState, NormalizedRecord, YearMonthMatrix
from .records import clean_purchased_by, sub_category


@dataclass(frozen=True, slots=True)
class DisplayTable:
    columns: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]


# ---------------------------------------------------------------------------
# Display rows
# ---------------------------------------------------------------------------


def _quantity_text(q: float | None) -> str:
    if q is None:
        return "-"
    return str(int(q)) if float(q).is_integer() else str(q)


_STATUS_LABELS = {
    ApprovalState.APPROVED: "Approved",
    ApprovalState.REJECTED: "Rejected",
    ApprovalState.PENDING: "Pending",
}


def asset_display_rows(records: Iterable[NormalizedRecord]) -> DisplayTable:
    columns = ("S.No", "Date", "Sub Category", "Description", "Qty", "Price", "Total", "Purchased by")
    rows = tuple(
        (
            str(i),
            format_display_date(r.date_parsed, r.date_raw),
            sub_category(r),
            r.description or "-",
            _quantity_text(r.quantity),
            format_currency_inr(r.price_num),
            format_currency_inr(r.amount_num),
            clean_purchased_by(r.raw),
        )
        for i, r in enumerate(records, start=1)
    )
    return DisplayTable(columns=columns, rows=rows)


def petty_cash_display_rows(records: Iterable[NormalizedRecord]) -> DisplayTable:
    columns = ("S.No", "Date", "Category", "Description", "Amount", "Status", "Purchased by")
    rows = tuple(
        (
            str(i),
            format_display_date(r.date_parsed, r.date_raw),
            r.category.value,
            r.description or "-",
            format_currency_inr(r.amount_num),
            _STATUS_LABELS[r.approval],
            clean_purchased_by(r.raw),
        )
        for i, r in enumerate(records, start=1)
    )
    return DisplayTable(columns=columns, rows=rows)


def deleted_display_rows(records: Iterable[NormalizedRecord]) -> DisplayTable:
    columns = ("S.No", "Date", "Category", "Description", "Total", "Action", "Reason", "Action by", "Path")
    rows: list[tuple[str, ...]] = []
    for i, r in enumerate(records, start=1):
        raw_info = r.raw.get("deleteInfo")
        info = raw_info if isinstance(raw_info, Mapping) else {}
        rows.append(
            (
                str(i),
                format_display_date(r.date_parsed, r.date_raw),
                r.category_normalized,
                r.description or "-",
                format_currency_inr(r.amount_num),
                deletion_action(r),
                str(info.get("reason") or "-"),
                str(info.get("movedBy") or "-"),
                r.id,
            )
        )
    return DisplayTable(columns=columns, rows=tuple(rows))


def matrix_display_rows(matrix: YearMonthMatrix) -> DisplayTable:
    """One line per category plus a ``Grand Total`` line."""

    columns = ("Category", *MONTH_NAMES, "Total")
    body = [
        (row.category, *(format_currency_inr(v) for v in row.months), format_currency_inr(row.grand))
        for row in matrix.rows
    ]
    body.append(
        (
            "Grand Total",
            *(format_currency_inr(v) for v in matrix.month_totals),
            format_currency_inr(matrix.year_total),
        )
    )
    return DisplayTable(columns=columns, rows=tuple(body))


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------


def rows_to_csv(table: DisplayTable) -> str:
    """RFC 4180 text: fields with commas, quotes or newlines are quoted and
    inner quotes doubled; lines end with CRLF."""

    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_MINIMAL)
    writer.writerow(table.columns)
    writer.writerows(table.rows)
    return buf.getvalue()


# ---------------------------------------------------------------------------
# XLSX
# ---------------------------------------------------------------------------

_HEADER_FONT = Font(name="Calibri", size=11, bold=True, color="FFFFFF")
_HEADER_FILL = PatternFill(start_color="1B5E20", end_color="1B5E20", fill_type="solid")
_CENTER = Alignment(horizontal="center", vertical="center")
_SHEET_TITLE_BAD_CHARS = re.compile(r"[\[\]:*?/\\]")
_MAX_SHEET_TITLE = 31


def _sheet_title(title: str) -> str:
    cleaned = _SHEET_TITLE_BAD_CHARS.sub("-", title).strip() or "Sheet"
    return cleaned[:_MAX_SHEET_TITLE]


def _auto_width(ws: Worksheet, columns: Sequence[str], rows: Sequence[Sequence[str]]) -> None:
    for idx, name in enumerate(columns, start=1):
        longest = max([len(name), *(len(r[idx - 1]) for r in rows if len(r) >= idx)])
        ws.column_dimensions[get_column_letter(idx)].width = min(max(10, longest + 2), 60)


def build_workbook(table: DisplayTable, *, title: str = "Export") -> Workbook:
    """Single-sheet workbook with a styled header row and text cells."""

    wb = Workbook()
    ws = wb.active
    ws.title = _sheet_title(title)
    ws.append(list(table.columns))
    for col in range(1, len(table.columns) + 1):
        cell = ws.cell(row=1, column=col)
        cell.font = _HEADER_FONT
        cell.fill = _HEADER_FILL
        cell.alignment = _CENTER
    for row in table.rows:
        ws.append(list(row))
    ws.freeze_panes = "A2"
    _auto_width(ws, table.columns, table.rows)
    return wb


def rows_to_xlsx(table: DisplayTable, *, title: str = "Export") -> bytes:
    buf = io.BytesIO()
    build_workbook(table, title=title).save(buf)
    return buf.getvalue()


def write_xlsx(table: DisplayTable, path: str | os.PathLike[str], *, title: str = "Export") -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    build_workbook(table, title=title).save(p)
    return p


__all__ = [
    "DisplayTable",
    "asset_display_rows",
    "build_workbook",
    "deleted_display_rows",
    "matrix_display_rows",
    "petty_cash_display_rows",
    "rows_to_csv",
    "rows_to_xlsx",
    "write_xlsx",
]
