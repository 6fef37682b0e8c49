"""Shared SQLAlchemy models registry for the workspace database.

Currently holds the document tree table used by ``admin_records``.
"""

from .documents import Base, DocumentNode

__all__ = [
    "Base",
    "DocumentNode",
]
