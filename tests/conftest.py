"""Pytest configuration for test isolation.

The engine reads its settings from the process environment (and a local
``.env``), configures the ``admin_records`` logger once per process, and the
``db`` library caches a single engine bound to the first URL it sees. Any of
these leaking from one test into the next makes assertions order-dependent, so
an autouse fixture clears the relevant environment variables and resets the
logging and engine singletons around every test.
"""

# ruff: noqa: E402
from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

# Make the workspace packages importable without an install
_ROOT = Path(__file__).resolve().parents[1]
sys.path[:0] = [
    p for p in (str(_ROOT / "packages"), str(_ROOT / "libs" / "db" / "src"), str(_ROOT)) if p not in sys.path
]

from admin_records.logging_setup import reset_logging
from db.client import dispose_engine

_ENV_VARS = (
    "DATABASE_URL",
    "ADMIN_RECORDS_LOG_LEVEL",
    "ADMIN_RECORDS_SEARCH_MAX_DEPTH",
    "ADMIN_RECORDS_SEARCH_WORKERS",
    "ADMIN_RECORDS_ASSETS_COLLECTION",
    "ADMIN_RECORDS_PETTY_ROOT",
)


@pytest.fixture(autouse=True)
def _isolate_process_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Hermetic environment, logging and engine state for each test.

    The working directory moves to the test's temp dir so a developer's
    ``.env`` in the repo root is never picked up.
    """

    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    reset_logging()
    dispose_engine()
    yield
    reset_logging()
    dispose_engine()
