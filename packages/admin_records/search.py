"""Free-text search over arbitrary store trees.

A node is *record-like* when it is a mapping with at least one primitive
(string, number or boolean) value. :func:`collect_records` walks a tree and
gathers record-like nodes at any depth up to ``max_depth``; beyond that bound,
leftover primitives and lists are kept as ``{"id": key, "value": ...}`` rather
than dropped.

Matching checks a fixed allowlist of human-facing fields first and falls back
to a case-insensitive substring test over the whole record serialized as JSON.

:func:`search_paths` reads several store paths concurrently; a path whose read
fails is logged and contributes no results.
"""

from __future__ import annotations

import json
import time
import uuid
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any

from .config import DEFAULT_SEARCH_MAX_DEPTH, DEFAULT_SEARCH_WORKERS
from .logging_setup import get_logger
from .shapes import is_sequence
from .store import DocumentStore, split_path

_logger = get_logger("admin_records.search")

# Checked before the JSON fallback, in this order.
SEARCHABLE_FIELDS: tuple[str, ...] = (
    "name",
    "investor",
    "clientName",
    "employeeName",
    "patientName",
    "purpose",
    "invest_purpose",
    "description",
    "details",
    "subCategory",
    "phone",
    "mobileNo",
    "mobileNo1",
    "email",
    "address",
    "reference",
    "notes",
    "invest_to",
    "invest_amount",
    "amount",
    "date",
    "invest_date",
)

# Top-level nodes searched by the console's global search box.
DEFAULT_SEARCH_PATHS: tuple[str, ...] = (
    "Investments",
    "PettyCash",
    "PettyCash/admin",
    "ClientData",
    "ClientInfo",
    "WorkerCallData",
    "WorkerCallsData",
    "DeletedWorkersData",
    "Expenses",
    "Enquiry",
    "HospitalData",
    "HospitalList",
    "Employees",
)


# ---------------------------------------------------------------------------
# Record discovery
# ---------------------------------------------------------------------------


def _is_primitive(value: Any) -> bool:
    return isinstance(value, (str, int, float, bool))


def looks_like_record(node: Any) -> bool:
    """True for a mapping holding at least one non-null primitive value."""

    if not isinstance(node, Mapping):
        return False
    return any(_is_primitive(v) for v in node.values())


def _tag(node: Mapping[str, Any], fallback_id: Any) -> dict[str, Any]:
    out = dict(node)
    if out.get("id") is None:
        out["id"] = fallback_id
    return out


def _children(node: Any) -> Iterable[tuple[Any, Any]]:
    if isinstance(node, Mapping):
        return node.items()
    if is_sequence(node):
        return enumerate(node)
    return ()


def collect_records(
    node: Any,
    *,
    key: str | None = None,
    depth: int = 1,
    max_depth: int = DEFAULT_SEARCH_MAX_DEPTH,
    parent_path: str = "",
) -> list[dict[str, Any]]:
    """Gather record-like nodes from ``node``.

    When ``node`` itself is record-like it is the only result, tagged with
    ``key`` (or ``parent_path``). Otherwise children are scanned: record-like
    children are results, other containers are recursed into while
    ``depth < max_depth``, and primitives (or lists past the bound) become
    degenerate ``{"id": key, "value": ...}`` records.
    """

    if not node:
        return []
    if looks_like_record(node):
        return [_tag(node, key or parent_path or str(int(time.time() * 1000)))]

    rows: list[dict[str, Any]] = []
    for child_key, child in _children(node):
        if child is None:
            continue
        if looks_like_record(child):
            rows.append(_tag(child, child_key))
        elif _is_primitive(child):
            rows.append({"id": child_key, "value": child})
        elif depth < max_depth:
            sub = collect_records(
                child,
                key=str(child_key),
                depth=depth + 1,
                max_depth=max_depth,
                parent_path=f"{parent_path}/{child_key}",
            )
            for s in sub:
                if not s.get("id"):
                    s["id"] = f"{child_key}-{_dump(s)[:8]}"
            rows.extend(sub)
        elif is_sequence(child):
            rows.append({"id": child_key, "value": child})
    return rows


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------


def _dump(value: Any) -> str:
    return json.dumps(value, default=str, ensure_ascii=False)


def matches_query(record: Mapping[str, Any], query: str) -> bool:
    """Case-insensitive substring test: allowlisted fields, then full JSON."""

    q = query.strip().lower()
    if not q:
        return False
    for field in SEARCHABLE_FIELDS:
        value = record.get(field)
        if value is not None and q in str(value).lower():
            return True
    return q in _dump(record).lower()


def find_records_matching(
    tree: Any,
    query: str,
    max_depth: int = DEFAULT_SEARCH_MAX_DEPTH,
    *,
    key: str | None = None,
) -> list[dict[str, Any]]:
    """Record-like nodes of ``tree`` that match ``query``.

    A blank query matches nothing. Every result carries a non-empty ``id``.
    """

    if not query or not query.strip():
        return []
    out: list[dict[str, Any]] = []
    for record in collect_records(tree, key=key, max_depth=max_depth):
        if not matches_query(record, query):
            continue
        if not record.get("id"):
            record["id"] = record.get("key") or f"{key or 'record'}-{uuid.uuid4().hex[:7]}"
        out.append(record)
    return out


# ---------------------------------------------------------------------------
# Multi-path search
# ---------------------------------------------------------------------------


def _search_one(store: DocumentStore, path: str, query: str, max_depth: int) -> list[dict[str, Any]]:
    tree = store.read_once(path)
    if tree is None:
        return []
    return find_records_matching(tree, query, max_depth, key=split_path(path)[-1])


def _dedupe_within_path(records: list[dict[str, Any]]) -> list[dict[str, Any]]:
    seen: set[str] = set()
    out: list[dict[str, Any]] = []
    for r in records:
        k = str(r["id"]) if r.get("id") is not None else _dump(r)
        if k in seen:
            continue
        seen.add(k)
        out.append(r)
    return out


def search_paths(
    store: DocumentStore,
    paths: Iterable[str],
    query: str,
    *,
    max_depth: int = DEFAULT_SEARCH_MAX_DEPTH,
    max_workers: int = DEFAULT_SEARCH_WORKERS,
) -> dict[str, list[dict[str, Any]]]:
    """Search each of ``paths`` once and return ``{path: matches}``.

    Paths are read concurrently; duplicate path names are searched once and
    paths without matches are omitted. Result order follows ``paths``.
    """

    if not query or not query.strip():
        return {}
    unique = list(dict.fromkeys(paths))
    if not unique:
        return {}

    per_path: dict[str, list[dict[str, Any]]] = {}
    workers = max(1, min(max_workers, len(unique)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ar-search") as ex:
        fut_to_path = {ex.submit(_search_one, store, p, query, max_depth): p for p in unique}
        for fut in as_completed(fut_to_path):
            path = fut_to_path[fut]
            try:
                per_path[path] = fut.result()
            except Exception as exc:  # noqa: BLE001
                _logger.warning("search:path_failed path=%s error=%s", path, exc)
                per_path[path] = []

    results: dict[str, list[dict[str, Any]]] = {}
    for path in unique:
        matched = _dedupe_within_path(per_path.get(path, []))
        if matched:
            results[path] = matched
    _logger.info(
        "search:done query=%r paths=%d hits=%d",
        query,
        len(unique),
        sum(len(v) for v in results.values()),
    )
    return results


__all__ = [
    "DEFAULT_SEARCH_PATHS",
    "SEARCHABLE_FIELDS",
    "collect_records",
    "find_records_matching",
    "looks_like_record",
    "matches_query",
    "search_paths",
]
