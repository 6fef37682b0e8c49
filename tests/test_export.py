from __future__ import annotations

import io

from openpyxl import load_workbook

from admin_records.aggregate import build_year_month_matrix
from admin_records.export import (
    DisplayTable,
    asset_display_rows,
    build_workbook,
    deleted_display_rows,
    matrix_display_rows,
    petty_cash_display_rows,
    rows_to_csv,
    rows_to_xlsx,
    write_xlsx,
)
from admin_records.models import CANONICAL_CATEGORIES
from admin_records.records import extract_fields


def _asset():
    return extract_fields(
        {
            "id": "a1",
            "purchaseDate": "2024-02-01",
            "category": "IT Assets",
            "subCategory": "Laptops",
            "description": "Dell laptop",
            "price": 55000,
            "quantity": 2,
            "purchasedBy": "Ravi Kumar",
        }
    )


def test_asset_rows_use_display_formatting():
    table = asset_display_rows([_asset()])
    assert table.columns == ("S.No", "Date", "Sub Category", "Description", "Qty", "Price", "Total", "Purchased by")
    assert table.rows == (("1", "01/02/2024", "Laptops", "Dell laptop", "2", "₹55,000", "₹1,10,000", "Ravi Kumar"),)


def test_petty_cash_rows_show_status_and_fallbacks():
    rec = extract_fields({"id": "p", "date": "later", "amount": 40, "category": "Travel", "status": "Rejected"})
    table = petty_cash_display_rows([rec])
    assert table.rows == (("1", "later", "Transport & Travel", "-", "₹40", "Rejected", "-"),)


def test_display_rows_survive_runaway_amounts():
    rec = extract_fields(
        {"id": "j", "date": "2024-01-02", "amount": "Rs 1200 ref 123456789012345678901234567890", "category": "Food"}
    )
    table = petty_cash_display_rows([rec])
    assert table.rows[0][4].startswith("₹1,20,01,23,45")


def test_deleted_rows_show_action_reason_and_path():
    rec = extract_fields(
        {
            "id": "PettyCashDeleteReport/2024/d1",
            "date": "2024-03-10",
            "mainCategory": "Assets",
            "description": "Broken chair",
            "total": 1200,
            "deleteInfo": {"actionType": "Delete", "reason": "Duplicate", "movedBy": "Asha"},
        }
    )
    bare = extract_fields({"id": "PettyCashDeleteReport/r1", "approval": "Rejected", "total": 80})
    table = deleted_display_rows([rec, bare])
    assert table.columns[-4:] == ("Action", "Reason", "Action by", "Path")
    assert table.rows[0] == (
        "1",
        "10/03/2024",
        "Assets",
        "Broken chair",
        "₹1,200",
        "Delete",
        "Duplicate",
        "Asha",
        "PettyCashDeleteReport/2024/d1",
    )
    assert table.rows[1][5:] == ("Rejected", "-", "-", "PettyCashDeleteReport/r1")


def test_matrix_rows_end_with_grand_total():
    recs = [extract_fields({"id": "1", "date": "2024-01-10", "amount": 1500, "category": "Food"})]
    table = matrix_display_rows(build_year_month_matrix(recs, CANONICAL_CATEGORIES, 2024))
    assert table.columns[0] == "Category"
    assert table.columns[-1] == "Total"
    assert len(table.columns) == 14
    assert table.rows[0][:2] == ("Food", "₹1,500")
    assert table.rows[-1][0] == "Grand Total"
    assert table.rows[-1][-1] == "₹1,500"
    assert len(table.rows) == len(CANONICAL_CATEGORIES) + 1


def test_csv_quotes_fields_and_uses_crlf():
    table = DisplayTable(columns=("Name", "Note"), rows=(("Asha", 'said "hi", left'), ("Ravi", "line1\nline2")))
    text = rows_to_csv(table)
    assert text.startswith("Name,Note\r\n")
    assert 'Asha,"said ""hi"", left"\r\n' in text
    assert '"line1\nline2"' in text


def test_xlsx_round_trip_keeps_display_strings(tmp_path):
    table = asset_display_rows([_asset()])
    wb = load_workbook(io.BytesIO(rows_to_xlsx(table, title="Assets")))
    ws = wb["Assets"]
    assert [c.value for c in ws[1]] == list(table.columns)
    assert ws["G2"].value == "₹1,10,000"
    assert ws.freeze_panes == "A2"
    assert ws["A1"].font.bold

    out = write_xlsx(table, tmp_path / "out" / "assets.xlsx", title="Assets")
    assert out.exists()


def test_sheet_titles_are_sanitized():
    wb = build_workbook(DisplayTable(columns=("a",), rows=()), title="2024/25: [Petty] Cash report for the year")
    title = wb.active.title
    assert len(title) <= 31
    assert not any(ch in title for ch in "[]:*?/\\")
