"""Runtime settings resolved from the environment.

Values come from process environment variables, optionally seeded from a local
``.env`` via ``python-dotenv`` (existing variables are never overridden).
Malformed integers fall back to their defaults rather than failing startup.

Variables
---------
- ``DATABASE_URL``: SQLAlchemy URL for the SQL-backed document store.
- ``ADMIN_RECORDS_LOG_LEVEL``: level name or number for ``configure_logging``.
- ``ADMIN_RECORDS_SEARCH_MAX_DEPTH``: recursion bound for tree search (4).
- ``ADMIN_RECORDS_SEARCH_WORKERS``: concurrent path reads during search (8,
  capped at 32).
- ``ADMIN_RECORDS_ASSETS_COLLECTION``: asset collection root (``Assets``).
- ``ADMIN_RECORDS_PETTY_ROOT``: petty cash root (``PettyCash``).
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

DEFAULT_SEARCH_MAX_DEPTH = 4
DEFAULT_SEARCH_WORKERS = 8
_MAX_SEARCH_WORKERS = 32


class Settings(BaseModel):
    """Resolved settings for one process."""

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    database_url: str | None = None
    log_level: str | None = None
    search_max_depth: int = DEFAULT_SEARCH_MAX_DEPTH
    search_workers: int = DEFAULT_SEARCH_WORKERS
    assets_collection: str = "Assets"
    petty_root: str = "PettyCash"


def _int_or_default(raw: str | None, default: int, *, minimum: int = 1) -> int:
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        return default
    return value if value >= minimum else default


def _non_empty(raw: str | None) -> str | None:
    if raw is None:
        return None
    s = raw.strip()
    return s or None


def load_settings(
    env: Mapping[str, str] | None = None,
    *,
    dotenv_path: str | os.PathLike[str] | None = None,
) -> Settings:
    """Build :class:`Settings` from ``env`` (defaults to ``os.environ``).

    When ``env`` is omitted a ``.env`` in the working directory (or
    ``dotenv_path``) is loaded first with ``override=False``.
    """

    if env is None:
        load_dotenv(dotenv_path=dotenv_path or Path.cwd() / ".env", override=False)
        env = os.environ

    workers = _int_or_default(env.get("ADMIN_RECORDS_SEARCH_WORKERS"), DEFAULT_SEARCH_WORKERS)
    return Settings(
        database_url=_non_empty(env.get("DATABASE_URL")),
        log_level=_non_empty(env.get("ADMIN_RECORDS_LOG_LEVEL")),
        search_max_depth=_int_or_default(
            env.get("ADMIN_RECORDS_SEARCH_MAX_DEPTH"), DEFAULT_SEARCH_MAX_DEPTH
        ),
        search_workers=min(workers, _MAX_SEARCH_WORKERS),
        assets_collection=_non_empty(env.get("ADMIN_RECORDS_ASSETS_COLLECTION")) or "Assets",
        petty_root=_non_empty(env.get("ADMIN_RECORDS_PETTY_ROOT")) or "PettyCash",
    )


__all__ = [
    "DEFAULT_SEARCH_MAX_DEPTH",
    "DEFAULT_SEARCH_WORKERS",
    "Settings",
    "load_settings",
]
