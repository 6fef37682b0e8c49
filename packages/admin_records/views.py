"""Combined record views over several store paths.

Each view is split into two halves:

- a pure ``recompute_*`` function that turns a ``{path: tree}`` mapping into a
  sorted list of :class:`~admin_records.models.NormalizedRecord`, and
- :class:`LiveView`, which owns the private ``{path: tree}`` state, keeps one
  store subscription per watched path and reruns the pure function on every
  notification.

A path that fails to load contributes no records; the other paths still
render. Views never write to the store; :func:`set_approval` is the one write
callers make from these screens, and its failures propagate.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, date, datetime
from functools import partial
from typing import Any

from .classify import DELETION_ACTIONS, approval_state, deletion_action, is_asset_like
from .dedupe import dedupe_by, merge_and_dedupe, petty_signature
from .logging_setup import get_logger
from .models import NormalizedRecord
from .records import extract_fields
from .shapes import expand_children, flatten_hinted_records, is_sequence, normalize_node_to_array
from .store import DocumentStore, Subscription

_logger = get_logger("admin_records.views")

type PathData = Mapping[str, Any]
type Recompute = Callable[[PathData], list[NormalizedRecord]]

PETTY_ADMIN_PATH = "PettyCash/admin"
DELETE_REPORT_PATH = "PettyCashDeleteReport"


# ---------------------------------------------------------------------------
# Watched paths
# ---------------------------------------------------------------------------


def asset_paths(assets_collection: str = "Assets") -> tuple[str, ...]:
    """Asset collection paths, most specific first, without duplicates."""

    return tuple(dict.fromkeys((f"{assets_collection}/admin", assets_collection, "Assets/admin", "Assets")))


def petty_cash_paths(petty_root: str = "PettyCash") -> tuple[str, ...]:
    return tuple(dict.fromkeys((petty_root, f"{petty_root}/admin", f"{petty_root}/Admin", "Expenses/PettyCash")))


def _by_date_desc(records: Iterable[NormalizedRecord]) -> list[NormalizedRecord]:
    # Undated records sort last; ties keep input order.
    return sorted(
        records,
        key=lambda r: (r.date_parsed is not None, r.date_parsed or date.min),
        reverse=True,
    )


# ---------------------------------------------------------------------------
# Pure recompute
# ---------------------------------------------------------------------------


def recompute_assets(
    path_data: PathData,
    *,
    assets_collection: str = "Assets",
    petty_path: str = PETTY_ADMIN_PATH,
) -> list[NormalizedRecord]:
    """Assets from the asset collections plus approved asset-like petty cash.

    Asset collection records take precedence over petty cash derived ones
    when both describe the same entry.
    """

    collection: list[NormalizedRecord] = []
    for path in asset_paths(assets_collection):
        raw = path_data.get(path)
        if not raw:
            continue
        collection.extend(extract_fields(c, origin=path) for c in normalize_node_to_array(raw))

    from_petty: list[NormalizedRecord] = []
    for parent in normalize_node_to_array(path_data.get(petty_path)):
        for merged in expand_children(parent):
            if approval_state(merged).is_approved and is_asset_like(merged):
                from_petty.append(extract_fields(merged, origin=petty_path))

    combined = [
        r
        for r in (*collection, *from_petty)
        if is_asset_like(r) or "asset" in r.category_normalized.lower()
    ]
    return _by_date_desc(merge_and_dedupe([combined]))


def _entries(node: Any) -> list[dict[str, Any]]:
    """Child mappings of ``node`` with the key (or index) as fallback ``id``."""

    if isinstance(node, Mapping):
        pairs: Iterable[tuple[Any, Any]] = node.items()
    elif is_sequence(node):
        pairs = enumerate(node)
    else:
        return []
    out: list[dict[str, Any]] = []
    for key, child in pairs:
        if isinstance(child, Mapping):
            row = dict(child)
            if row.get("id") is None:
                row["id"] = str(key)
            out.append(row)
    return out


_PETTY_LINE_KEYS = ("rows", "items", "payments", "list")


def recompute_petty_cash(
    path_data: PathData,
    *,
    petty_root: str = "PettyCash",
) -> list[NormalizedRecord]:
    """Petty cash entries flattened from every petty cash path.

    Vouchers holding ``rows``/``items``/``payments``/``list`` are replaced by
    their line items; entries with a non-positive amount are dropped and the
    rest are deduplicated on date, amount, category and description.
    """

    normalized: list[NormalizedRecord] = []
    for path in petty_cash_paths(petty_root):
        for entry in _entries(path_data.get(path)):
            if any(entry.get(k) for k in _PETTY_LINE_KEYS):
                lines = [line for k in _PETTY_LINE_KEYS for line in _entries(entry.get(k))]
            else:
                lines = [entry]
            normalized.extend(extract_fields(line, origin=path) for line in lines)

    positive = [r for r in normalized if r.amount_num > 0]
    return _by_date_desc(dedupe_by(positive, petty_signature))


def _join_path(*parts: str) -> str:
    return "/".join(seg for part in parts for seg in str(part).split("/") if seg)


def recompute_deleted(
    path_data: PathData,
    *,
    root: str = DELETE_REPORT_PATH,
    action: str | None = None,
) -> list[NormalizedRecord]:
    """Deleted and rejected petty cash entries parked under ``root``.

    Records are found at any depth; each record's id is its full store path,
    which is also the dedupe key. Only entries whose :func:`deletion_action`
    is ``delete`` or ``rejected`` are kept (or just ``action`` when given),
    newest first.
    """

    wanted = {action.strip().lower()} if action else DELETION_ACTIONS
    records = [
        extract_fields({**candidate, "id": _join_path(root, rel_path)}, origin=root)
        for rel_path, candidate in flatten_hinted_records(path_data.get(root))
    ]
    kept = [r for r in records if deletion_action(r).lower() in wanted]
    return _by_date_desc(dedupe_by(kept, lambda r: r.id))


# ---------------------------------------------------------------------------
# Store plumbing
# ---------------------------------------------------------------------------


def read_path_data(store: DocumentStore, paths: Iterable[str]) -> dict[str, Any]:
    """One-shot read of each path; failed paths map to ``None``."""

    data: dict[str, Any] = {}
    for path in dict.fromkeys(paths):
        try:
            data[path] = store.read_once(path)
        except Exception as exc:  # noqa: BLE001
            _logger.warning("view:path_failed path=%s error=%s", path, exc)
            data[path] = None
    return data


class LiveView:
    """Keeps a recomputed record list in sync with a set of store paths.

    ``on_update`` (when given) receives each new record list. Call
    :meth:`close` (or use the view as a context manager) to detach every
    subscription; after that, late notifications are ignored.
    """

    def __init__(
        self,
        store: DocumentStore,
        paths: Iterable[str],
        recompute: Recompute,
        *,
        on_update: Callable[[list[NormalizedRecord]], None] | None = None,
        name: str = "view",
    ) -> None:
        self._store = store
        self._paths = tuple(dict.fromkeys(paths))
        self._recompute = recompute
        self._on_update = on_update
        self._name = name
        self._lock = threading.RLock()
        self._path_data: dict[str, Any] = {}
        self._records: list[NormalizedRecord] = []
        self._subscriptions: list[Subscription] = []
        self._opened = False
        self._closed = False

    # -- lifecycle ------------------------------------------------------------

    def open(self) -> LiveView:
        with self._lock:
            if self._opened or self._closed:
                return self
            self._opened = True
            for path in self._paths:
                try:
                    sub = self._store.subscribe(
                        path,
                        partial(self._handle_change, path),
                        partial(self._handle_error, path),
                    )
                except Exception as exc:  # noqa: BLE001
                    _logger.warning("view:attach_failed view=%s path=%s error=%s", self._name, path, exc)
                    continue
                self._subscriptions.append(sub)
        _logger.debug("view:open view=%s paths=%d", self._name, len(self._paths))
        return self

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            subs, self._subscriptions = self._subscriptions, []
        for sub in subs:
            self._store.unsubscribe(sub)
        _logger.debug("view:close view=%s detached=%d", self._name, len(subs))

    def __enter__(self) -> LiveView:
        return self.open()

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- state ----------------------------------------------------------------

    @property
    def records(self) -> list[NormalizedRecord]:
        with self._lock:
            return list(self._records)

    @property
    def path_data(self) -> dict[str, Any]:
        with self._lock:
            return dict(self._path_data)

    @property
    def closed(self) -> bool:
        return self._closed

    # -- callbacks ------------------------------------------------------------

    def _handle_change(self, path: str, value: Any) -> None:
        with self._lock:
            if self._closed:
                return
            self._path_data[path] = value
            self._rebuild()

    def _handle_error(self, path: str, exc: Exception) -> None:
        _logger.warning("view:path_failed view=%s path=%s error=%s", self._name, path, exc)
        with self._lock:
            if self._closed:
                return
            self._path_data[path] = None
            self._rebuild()

    def _rebuild(self) -> None:
        try:
            records = self._recompute(dict(self._path_data))
        except Exception:
            _logger.exception("view:recompute_failed view=%s", self._name)
            return
        self._records = records
        if self._on_update is not None:
            self._on_update(list(records))


def asset_view(
    store: DocumentStore,
    *,
    assets_collection: str = "Assets",
    on_update: Callable[[list[NormalizedRecord]], None] | None = None,
) -> LiveView:
    """Open a live asset view (asset collections plus petty cash)."""

    paths = (PETTY_ADMIN_PATH, *asset_paths(assets_collection))
    return LiveView(
        store,
        paths,
        partial(recompute_assets, assets_collection=assets_collection),
        on_update=on_update,
        name="assets",
    ).open()


def petty_cash_view(
    store: DocumentStore,
    *,
    petty_root: str = "PettyCash",
    on_update: Callable[[list[NormalizedRecord]], None] | None = None,
) -> LiveView:
    """Open a live petty cash view."""

    return LiveView(
        store,
        petty_cash_paths(petty_root),
        partial(recompute_petty_cash, petty_root=petty_root),
        on_update=on_update,
        name="petty-cash",
    ).open()


def deleted_view(
    store: DocumentStore,
    *,
    root: str = DELETE_REPORT_PATH,
    action: str | None = None,
    on_update: Callable[[list[NormalizedRecord]], None] | None = None,
) -> LiveView:
    """Open a live view of the deleted/rejected petty cash report."""

    return LiveView(
        store,
        (root,),
        partial(recompute_deleted, root=root, action=action),
        on_update=on_update,
        name="deleted",
    ).open()


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def set_approval(
    store: DocumentStore,
    record_id: str,
    value: str,
    *,
    by: str = "Manager",
    now: datetime | None = None,
    root: str = PETTY_ADMIN_PATH,
) -> dict[str, str]:
    """Record an approval decision on a petty cash entry.

    Writes ``approval``, ``approvalBy`` and ``approvalAt`` under
    ``<root>/<record_id>`` and returns the written fields. Store failures
    propagate unchanged; nothing is applied locally.
    """

    if not record_id or not str(record_id).strip():
        raise ValueError("record_id must not be empty")
    stamp = (now or datetime.now(UTC)).isoformat()
    payload = {"approval": value, "approvalBy": by, "approvalAt": stamp}
    store.update(f"{root}/{str(record_id).strip()}", payload)
    _logger.info("approval:set id=%s value=%s by=%s", record_id, value, by)
    return payload


__all__ = [
    "DELETE_REPORT_PATH",
    "PETTY_ADMIN_PATH",
    "LiveView",
    "asset_paths",
    "asset_view",
    "deleted_view",
    "petty_cash_paths",
    "petty_cash_view",
    "read_path_data",
    "recompute_assets",
    "recompute_deleted",
    "recompute_petty_cash",
    "set_approval",
]
