from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# ---------------------------
# Store: document_nodes
# ---------------------------


class DocumentNode(Base):
    """One top-level subtree of the admin console's document store.

    ``path`` is the first path segment (``"PettyCash"``, ``"Assets"`` ...);
    ``value`` holds the whole JSON tree below it. Deeper paths are resolved
    in the service layer by walking ``value``.
    """

    __tablename__ = "document_nodes"

    path: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
