from __future__ import annotations

from admin_records.dedupe import dedupe_by, merge_and_dedupe, petty_signature, signature
from admin_records.records import extract_fields


def _rec(**fields):
    return extract_fields(fields)


def test_same_id_keeps_first_seen():
    merged = merge_and_dedupe([[_rec(id="a", amount=100)], [_rec(id="a", amount=999)]])
    assert len(merged) == 1
    assert merged[0].id == "a"
    assert merged[0].amount_num == 100


def test_different_ids_with_identical_signature_collapse():
    common = {"receiptNo": "R1", "amount": 500, "date": "2024-03-01", "description": "Toner"}
    merged = merge_and_dedupe([[_rec(id="a", **common)], [_rec(id="b", **common)]])
    assert [r.id for r in merged] == ["a"]


def test_records_differing_only_in_description_are_kept():
    base = {"receiptNo": "R1", "amount": 500, "date": "2024-03-01"}
    merged = merge_and_dedupe(
        [[_rec(id="a", description="Toner", **base)], [_rec(id="b", description="Paper", **base)]]
    )
    assert [r.id for r in merged] == ["a", "b"]


def test_bare_amounts_with_distinct_ids_are_not_merged():
    merged = merge_and_dedupe([[_rec(id="a", amount=100), _rec(id="b", amount=100)]])
    assert [r.id for r in merged] == ["a", "b"]


def test_signature_rounds_amount_and_prefers_iso_date():
    rec = _rec(id="a", receiptNo="R9", amount="1,199.5", date="15/03/2024", description="Chairs")
    assert signature(rec) == "R9|1200|2024-03-15|Chairs"
    undated = _rec(id="b", amount=10, date="someday")
    assert signature(undated) == "|10|someday|"


def test_merge_preserves_list_order_precedence():
    first = [_rec(id="x", amount=1), _rec(id="y", amount=2)]
    second = [_rec(id="z", amount=3), _rec(id="x", amount=4)]
    merged = merge_and_dedupe([first, second])
    assert [(r.id, r.amount_num) for r in merged] == [("x", 1), ("y", 2), ("z", 3)]


def test_petty_signature_dedupe():
    a = _rec(id="1", date="2024-01-05", amount=250, category="Food", description="Snacks")
    b = _rec(id="2", date="05/01/2024", amount="250", category="food", description="SNACKS")
    c = _rec(id="3", date="2024-01-05", amount=250.5, category="Food", description="Snacks")
    assert petty_signature(a) == "2024-01-05|250|Food|snacks"
    assert petty_signature(a) == petty_signature(b)
    assert [r.id for r in dedupe_by([a, b, c], petty_signature)] == ["1", "3"]
