from __future__ import annotations

import json

import pytest

from admin_records.errors import PathError, StoreReadError, StoreWriteError
from admin_records.store import InMemoryStore, split_path, tree_get, tree_set

from tests.helpers.stores import FailingStore


@pytest.mark.parametrize("bad", ["", "/", "a.b", "a#b", "x/$y", "list[0]", None])
def test_split_path_rejects_invalid_paths(bad):
    with pytest.raises(PathError):
        split_path(bad)


def test_split_path_ignores_redundant_slashes():
    assert split_path("/PettyCash//admin/") == ("PettyCash", "admin")


def test_tree_helpers_set_get_and_prune():
    tree = tree_set(None, ("a", "b", "c"), 1)
    assert tree == {"a": {"b": {"c": 1}}}
    assert tree_get(tree, ("a", "b", "c")) == 1
    assert tree_get(tree, ("a", "x")) is None
    assert tree_set(tree, ("a", "b", "c"), None) is None
    assert tree_get(["x", "y"], ("1",)) == "y"


def test_read_write_update_roundtrip():
    store = InMemoryStore({"PettyCash": {"admin": {"e1": {"amount": 10}}}})
    assert store.read_once("PettyCash/admin/e1/amount") == 10
    store.update("PettyCash/admin/e1", {"approval": "Approved", "approvalBy": "Manager"})
    assert store.read_once("PettyCash/admin/e1") == {"amount": 10, "approval": "Approved", "approvalBy": "Manager"}
    store.write("PettyCash/admin/e1", None)
    assert store.read_once("PettyCash") is None
    assert store.read_once("Nowhere") is None


def test_reads_return_copies():
    store = InMemoryStore({"A": {"x": 1}})
    got = store.read_once("A")
    got["x"] = 99
    assert store.read_once("A/x") == 1


def test_subscribe_delivers_immediately_and_on_related_writes():
    store = InMemoryStore({"Assets": {"a1": {"amount": 5}}})
    seen: list[object] = []
    sub = store.subscribe("PettyCash/admin", seen.append)
    assert seen == [None]

    store.write("PettyCash/admin/e1", {"amount": 20})  # descendant
    store.write("PettyCash", {"admin": {"e2": {"amount": 30}}})  # ancestor
    store.write("Assets/a1/amount", 6)  # unrelated
    assert seen == [None, {"e1": {"amount": 20}}, {"e2": {"amount": 30}}]

    store.unsubscribe(sub)
    store.unsubscribe(sub)
    store.write("PettyCash/admin/e3", {"amount": 1})
    assert len(seen) == 3
    assert store.listener_count == 0


def test_read_errors_go_to_on_error():
    store = FailingStore({"HospitalData": {"h": {"name": "x"}}}, fail_reads={"HospitalData"})
    changes: list[object] = []
    errors: list[Exception] = []
    store.subscribe("HospitalData", changes.append, errors.append)
    assert changes == []
    assert len(errors) == 1
    assert isinstance(errors[0], StoreReadError)
    assert errors[0].path == "HospitalData"

    with pytest.raises(StoreReadError):
        store.read_once("HospitalData")


def test_write_failures_propagate_and_leave_tree_unchanged():
    store = FailingStore({"PettyCash": {"admin": {"e1": {"amount": 1}}}}, fail_writes=True)
    with pytest.raises(StoreWriteError):
        store.update("PettyCash/admin/e1", {"approval": "Approved"})
    assert store.read_once("PettyCash/admin/e1") == {"amount": 1}


def test_from_json_file(tmp_path):
    dump = tmp_path / "dump.json"
    dump.write_text(json.dumps({"Employees": {"e1": {"name": "Asha"}}}), encoding="utf-8")
    store = InMemoryStore.from_json_file(dump)
    assert store.read_once("Employees/e1/name") == "Asha"

    bad = tmp_path / "bad.json"
    bad.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(StoreReadError):
        InMemoryStore.from_json_file(bad)
    with pytest.raises(StoreReadError):
        InMemoryStore.from_json_file(tmp_path / "missing.json")
