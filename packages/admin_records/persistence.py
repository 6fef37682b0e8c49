# ruff: noqa: I001
"""SQL-backed document store.

The document tree is persisted in the ``document_nodes`` table owned by
``libs/db``: one row per top-level path segment, with the whole subtree below
it stored as JSON. Reads and writes on deeper paths load the row and walk or
rewrite its JSON value. Sessions come from ``db.client``.

SQLAlchemy failures surface as :class:`~admin_records.errors.StoreReadError`
or :class:`~admin_records.errors.StoreWriteError`; nothing is retried.
"""

from __future__ import annotations

import copy
import threading
from collections import defaultdict
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from db import Base
from db.client import get_engine, session_scope
from db.models.documents import DocumentNode
from .errors import StoreReadError, StoreWriteError
from .logging_setup import get_logger
from .store import BaseDocumentStore, tree_get, tree_set

_logger = get_logger("admin_records.persistence")


def create_schema(*, database_url: str | None = None) -> None:
    """Create the document table if missing (dev and test databases).

    Production schemas are managed by the Alembic migrations under
    ``libs/db/alembic``.
    """

    Base.metadata.create_all(bind=get_engine(database_url=database_url), tables=[DocumentNode.__table__])


class SqlDocumentStore(BaseDocumentStore):
    """:class:`~admin_records.store.DocumentStore` over ``document_nodes``."""

    def __init__(self, database_url: str | None = None) -> None:
        super().__init__()
        self._database_url = database_url
        # Serializes read-modify-write of a row within this process.
        self._write_lock = threading.Lock()

    def _read(self, segments: tuple[str, ...]) -> Any:
        top, rest = segments[0], segments[1:]
        try:
            with session_scope(database_url=self._database_url) as session:
                row = session.get(DocumentNode, top)
                value = copy.deepcopy(row.value) if row is not None else None
        except SQLAlchemyError as exc:
            _logger.warning("store:read_failed path=%s error=%s", "/".join(segments), exc)
            raise StoreReadError(f"read failed for {'/'.join(segments)}: {exc}", path="/".join(segments)) from exc
        return tree_get(value, rest)

    def _write_many(self, writes: list[tuple[tuple[str, ...], Any]]) -> None:
        by_top: dict[str, list[tuple[tuple[str, ...], Any]]] = defaultdict(list)
        for segments, value in writes:
            by_top[segments[0]].append((segments[1:], value))

        label = ",".join(by_top)
        try:
            with self._write_lock, session_scope(database_url=self._database_url) as session:
                for top, items in by_top.items():
                    row = session.get(DocumentNode, top)
                    tree = copy.deepcopy(row.value) if row is not None else None
                    for rest, value in items:
                        tree = tree_set(tree, rest, value)
                    if tree is None or tree == {}:
                        if row is not None:
                            session.delete(row)
                    elif row is None:
                        session.add(DocumentNode(path=top, value=tree))
                    else:
                        row.value = tree
        except SQLAlchemyError as exc:
            _logger.warning("store:write_failed paths=%s error=%s", label, exc)
            raise StoreWriteError(f"write failed for {label}: {exc}", path=label) from exc
        _logger.debug("store:write paths=%s count=%d", label, len(writes))


__all__ = ["SqlDocumentStore", "create_schema"]
