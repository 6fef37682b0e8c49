from __future__ import annotations

from admin_records.shapes import (
    expand_children,
    flatten_hinted_records,
    looks_like_single_record,
    normalize_node_to_array,
)


def test_keyed_payments_are_tagged_by_key():
    tree = {
        "payments": {
            "x1": {"amount": 50, "date": "2024-01-01"},
            "x2": {"amount": 75, "date": "2024-01-02"},
        }
    }
    out = normalize_node_to_array(tree)
    assert [c["id"] for c in out] == ["x1", "x2"]
    assert out[1]["amount"] == 75


def test_falsy_and_scalar_nodes_yield_nothing():
    assert normalize_node_to_array(None) == []
    assert normalize_node_to_array({}) == []
    assert normalize_node_to_array([]) == []
    assert normalize_node_to_array(42) == []
    assert normalize_node_to_array("text") == []


def test_sequence_elements_are_tagged_by_index_unless_they_have_an_id():
    out = normalize_node_to_array([{"amount": 1}, {"id": "own", "amount": 2}, "loose"])
    assert [c["id"] for c in out] == [0, "own", 2]
    assert out[2] == {"id": 2}


def test_list_key_wins_over_single_record_detection():
    node = {"date": "2024-01-01", "amount": 10, "items": [{"amount": 4}, {"amount": 6}]}
    out = normalize_node_to_array(node)
    assert [c["amount"] for c in out] == [4, 6]


def test_single_record_is_returned_whole():
    node = {"amount": 120, "date": "2024-02-01", "description": "Tea"}
    out = normalize_node_to_array(node)
    assert out == [{**node, "id": "single"}]

    with_id = {"id": "r9", "amount": 120, "date": "2024-02-01"}
    assert normalize_node_to_array(with_id)[0]["id"] == "r9"


def test_keyed_collection_yields_one_candidate_per_key():
    node = {"k1": {"amount": 5}, "k2": {"amount": 6}}
    out = normalize_node_to_array(node)
    assert [(c["id"], c["amount"]) for c in out] == [("k1", 5), ("k2", 6)]


def test_single_record_majority_vote():
    assert looks_like_single_record({"amount": 1, "date": "x"})
    assert looks_like_single_record({"amount": 1, "a": 1, "b": 2})
    assert not looks_like_single_record({"amount": 1, "b": 2})
    assert not looks_like_single_record({"a": 1, "b": 2, "c": 3})


def test_expand_children_merges_parent_fields_into_each_line():
    parent = {
        "id": "v1",
        "date": "2024-03-01",
        "approval": "Approved",
        "items": [
            {"description": "Office chair", "amount": 3000},
            {"description": "Desk", "amount": 7000, "approval": "Pending"},
        ],
    }
    out = expand_children(parent)
    assert [c["id"] for c in out] == ["v1/0", "v1/1"]
    assert out[0]["date"] == "2024-03-01"
    assert out[0]["approval"] == "Approved"
    # Child fields win over parent fields
    assert out[1]["approval"] == "Pending"


def test_expand_children_keeps_plain_records_intact():
    single = {"id": "p1", "amount": 100, "date": "2024-01-01", "description": "Laptop"}
    assert expand_children(single) == [single]

    scalar_fields = {"id": "p2", "note": "no structure"}
    assert expand_children(scalar_fields) == [scalar_fields]


def test_flatten_hinted_records_walks_any_depth():
    tree = {
        "2024": {
            "March": {
                "d1": {"date": "2024-03-10", "description": "Broken chair", "items": [{"price": 1}]},
                "note": "not a record",
            }
        },
        "legacy": [{"comments": "old entry"}, 7],
        "empty": {},
    }
    out = flatten_hinted_records(tree)
    assert [path for path, _ in out] == ["2024/March/d1", "legacy/0"]
    # Records are not descended into
    assert out[0][1]["items"] == [{"price": 1}]


def test_flatten_hinted_records_on_a_bare_record_and_scalars():
    assert flatten_hinted_records({"approval": "Rejected"}) == [("", {"approval": "Rejected"})]
    assert flatten_hinted_records(None) == []
    assert flatten_hinted_records("text") == []
