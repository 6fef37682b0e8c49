"""Document store interface and an in-memory implementation.

The engine consumes its realtime store through a narrow protocol:

- ``subscribe(path, on_change, on_error=None)`` delivers the current tree at
  ``path`` immediately and again after every write that touches ``path``, an
  ancestor or a descendant;
- ``unsubscribe(subscription)`` detaches it (idempotent);
- ``read_once(path)`` returns the current tree (``None`` when absent);
- ``write(path, value)`` replaces the subtree (``None`` deletes it);
- ``update(path, partial)`` writes each ``partial`` key below ``path``.

Paths are ``/``-separated; empty paths and the characters ``. # $ [ ]`` are
rejected with :class:`~admin_records.errors.PathError`. Writes are last-write-
wins; there is no conflict resolution.
"""

from __future__ import annotations

import copy
import json
import os
import threading
import uuid
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from .errors import PathError, StoreReadError
from .logging_setup import get_logger
from .shapes import is_sequence

_logger = get_logger("admin_records.store")

_FORBIDDEN_PATH_CHARS = frozenset(".#$[]")

type OnChange = Callable[[Any], None]
type OnError = Callable[[Exception], None]


# ---------------------------------------------------------------------------
# Paths and trees
# ---------------------------------------------------------------------------


def split_path(path: str) -> tuple[str, ...]:
    """``"PettyCash/admin"`` → ``("PettyCash", "admin")``."""

    if not isinstance(path, str):
        raise PathError(f"path must be a string, got {type(path).__name__}", path=str(path))
    segments = tuple(s for s in path.strip().split("/") if s)
    if not segments:
        raise PathError("path must not be empty", path=path)
    for s in segments:
        if _FORBIDDEN_PATH_CHARS & set(s):
            raise PathError(f"invalid character in path segment {s!r}", path=path)
    return segments


def tree_get(tree: Any, segments: Sequence[str]) -> Any:
    node = tree
    for s in segments:
        if isinstance(node, Mapping):
            node = node.get(s)
        elif is_sequence(node) and s.isdigit() and int(s) < len(node):
            node = node[int(s)]
        else:
            return None
        if node is None:
            return None
    return node


def tree_set(tree: Any, segments: Sequence[str], value: Any) -> Any:
    """Return a copy of ``tree`` with ``value`` at ``segments``.

    ``None`` (or an empty mapping) deletes the key, and parents left empty
    are pruned.
    """

    if not segments:
        return value
    head, rest = segments[0], segments[1:]
    if isinstance(tree, Mapping):
        base = dict(tree)
    elif is_sequence(tree):
        base = {str(i): v for i, v in enumerate(tree) if v is not None}
    else:
        base = {}
    child = tree_set(base.get(head), rest, value)
    if child is None or (isinstance(child, Mapping) and not child):
        base.pop(head, None)
    else:
        base[head] = child
    return base or None


def _related(a: Sequence[str], b: Sequence[str]) -> bool:
    # Equal, ancestor or descendant.
    n = min(len(a), len(b))
    return tuple(a[:n]) == tuple(b[:n])


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class Subscription:
    """Handle returned by ``subscribe``; pass it back to ``unsubscribe``."""

    path: str
    on_change: OnChange
    on_error: OnError | None = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    active: bool = True


class DocumentStore(Protocol):
    def subscribe(self, path: str, on_change: OnChange, on_error: OnError | None = None) -> Subscription: ...

    def unsubscribe(self, subscription: Subscription) -> None: ...

    def read_once(self, path: str) -> Any: ...

    def write(self, path: str, value: Any) -> None: ...

    def update(self, path: str, partial: Mapping[str, Any]) -> None: ...


# ---------------------------------------------------------------------------
# Shared listener plumbing
# ---------------------------------------------------------------------------


class BaseDocumentStore:
    """Listener bookkeeping and write fan-out shared by concrete stores.

    Subclasses implement :meth:`_read` and :meth:`_write_many`; notifications
    are delivered synchronously on the writing thread, outside the listener
    lock.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, Subscription] = {}
        self._listeners_lock = threading.RLock()

    # -- hooks --------------------------------------------------------------

    def _read(self, segments: tuple[str, ...]) -> Any:  # pragma: no cover - abstract
        raise NotImplementedError

    def _write_many(self, writes: list[tuple[tuple[str, ...], Any]]) -> None:  # pragma: no cover - abstract
        raise NotImplementedError

    # -- protocol -----------------------------------------------------------

    def read_once(self, path: str) -> Any:
        return self._read(split_path(path))

    def write(self, path: str, value: Any) -> None:
        segments = split_path(path)
        self._write_many([(segments, copy.deepcopy(value))])
        self._notify([segments])

    def update(self, path: str, partial: Mapping[str, Any]) -> None:
        base = split_path(path)
        writes = [(base + split_path(str(k)), copy.deepcopy(v)) for k, v in partial.items()]
        if not writes:
            return
        self._write_many(writes)
        self._notify([w[0] for w in writes])

    def subscribe(self, path: str, on_change: OnChange, on_error: OnError | None = None) -> Subscription:
        split_path(path)
        sub = Subscription(path=path, on_change=on_change, on_error=on_error)
        with self._listeners_lock:
            self._listeners[sub.id] = sub
        _logger.debug("store:subscribe path=%s id=%s", path, sub.id)
        self._deliver(sub)
        return sub

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._listeners_lock:
            removed = self._listeners.pop(subscription.id, None)
            subscription.active = False
        if removed is not None:
            _logger.debug("store:unsubscribe path=%s id=%s", subscription.path, subscription.id)

    @property
    def listener_count(self) -> int:
        with self._listeners_lock:
            return len(self._listeners)

    # -- fan-out ------------------------------------------------------------

    def _deliver(self, sub: Subscription) -> None:
        try:
            value = self._read(split_path(sub.path))
        except Exception as exc:  # noqa: BLE001
            if sub.on_error is not None:
                sub.on_error(exc)
            else:
                _logger.warning("store:deliver_failed path=%s error=%s", sub.path, exc)
            return
        if sub.active:
            sub.on_change(value)

    def _notify(self, changed: list[tuple[str, ...]]) -> None:
        with self._listeners_lock:
            targets = [
                s
                for s in self._listeners.values()
                if any(_related(split_path(s.path), c) for c in changed)
            ]
        for sub in targets:
            self._deliver(sub)


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------


class InMemoryStore(BaseDocumentStore):
    """Whole tree held in memory; reads and writes deep-copy values."""

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        super().__init__()
        self._lock = threading.RLock()
        self._root: Any = copy.deepcopy(dict(initial)) if initial else None

    @classmethod
    def from_json_file(cls, path: str | os.PathLike[str]) -> InMemoryStore:
        """Load a JSON export of the whole database."""

        p = Path(path)
        try:
            with p.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreReadError(f"cannot load store dump {p}: {exc}", path=str(p)) from exc
        if data is not None and not isinstance(data, Mapping):
            raise StoreReadError(f"store dump {p} must hold a JSON object", path=str(p))
        return cls(data)

    def snapshot(self) -> Any:
        with self._lock:
            return copy.deepcopy(self._root)

    def _read(self, segments: tuple[str, ...]) -> Any:
        with self._lock:
            return copy.deepcopy(tree_get(self._root, segments))

    def _write_many(self, writes: list[tuple[tuple[str, ...], Any]]) -> None:
        with self._lock:
            root = self._root
            for segments, value in writes:
                root = tree_set(root, segments, value)
            self._root = root


__all__ = [
    "BaseDocumentStore",
    "DocumentStore",
    "InMemoryStore",
    "OnChange",
    "OnError",
    "Subscription",
    "split_path",
    "tree_get",
    "tree_set",
]
