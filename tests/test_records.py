from __future__ import annotations

from datetime import date

from admin_records.models import ApprovalState, Category
from admin_records.records import clean_purchased_by, extract_fields, sub_category


def test_food_entry_normalizes_date_amount_and_category():
    rec = extract_fields({"date": "15/03/2024", "amount": "₹1,200", "category": "Food"})
    assert rec.date_parsed == date(2024, 3, 15)
    assert rec.date_raw == "15/03/2024"
    assert rec.amount_num == 1200
    assert rec.category_normalized == "Food"
    assert rec.category is Category.FOOD


def test_amount_falls_back_to_price_times_quantity_then_price():
    assert extract_fields({"id": "a", "price": "250", "qty": 4}).amount_num == 1000
    assert extract_fields({"id": "b", "price": 250}).amount_num == 250
    assert extract_fields({"id": "c", "total": 90, "price": 30, "qty": 2}).amount_num == 90


def test_quantity_is_none_when_absent():
    assert extract_fields({"id": "a", "amount": 1}).quantity is None
    assert extract_fields({"id": "a", "amount": 1, "quantity": "3"}).quantity == 3


def test_aliases_resolve_first_present_value():
    rec = extract_fields(
        {
            "_id": "x7",
            "purchaseDate": "2024-02-10",
            "pettyFor": "Printer ink",
            "supplier": "Stationers Ltd",
            "cName": "Acme",
            "receptNo": "R-22",
            "model": "HP-1",
        }
    )
    assert rec.id == "x7"
    assert rec.date_parsed == date(2024, 2, 10)
    assert rec.description == "Printer ink"
    assert rec.vendor == "Stationers Ltd"
    assert rec.client_name == "Acme"
    assert rec.receipt == "R-22"
    assert rec.model == "HP-1"


def test_missing_fields_get_safe_defaults():
    rec = extract_fields({})
    assert rec.id and len(rec.id) == 7
    assert rec.date_parsed is None
    assert rec.amount_num == 0
    assert rec.category_normalized == "Others"
    assert rec.category is Category.OTHERS
    assert rec.approval is ApprovalState.PENDING
    assert rec.description == ""


def test_blank_category_is_others_and_ids_are_strings():
    rec = extract_fields({"id": 12, "category": "   "})
    assert rec.id == "12"
    assert rec.category_normalized == "Others"


def test_origin_defaults_to_record_tag():
    assert extract_fields({"id": "a", "__origin": "Assets"}).origin == "Assets"
    assert extract_fields({"id": "a", "__origin": "Assets"}, origin="PettyCash").origin == "PettyCash"


def test_clean_purchased_by_strips_noise():
    assert clean_purchased_by({"purchasedBy": "Petty Cash / Ravi Kumar <b>"}) == "Ravi Kumar"
    assert clean_purchased_by({"employeeName": "  "}) == "-"
    assert clean_purchased_by({}) == "-"


def test_sub_category_prefers_explicit_sub_field():
    rec = extract_fields({"id": "a", "category": "IT", "mainCategory": "Assets", "subCategory": "Laptops"})
    assert sub_category(rec) == "Laptops"
    rec = extract_fields({"id": "b", "category": "Furniture", "mainCategory": "Assets"})
    assert sub_category(rec) == "Furniture"
    rec = extract_fields({"id": "c", "category": "Assets"})
    assert sub_category(rec) == "Assets"
