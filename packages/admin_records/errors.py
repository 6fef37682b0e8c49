"""Exception types raised at the store boundary.

Normalization and aggregation never raise for malformed input; only the I/O
side (reading, writing, subscribing to store paths) uses exceptions.
"""

from __future__ import annotations


class StoreError(Exception):
    """Base class for document store failures."""

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class StoreReadError(StoreError):
    """A read (one-shot or subscription) against a path failed."""


class StoreWriteError(StoreError):
    """A write or partial update was rejected by the store."""


class PathError(ValueError):
    """A store path is empty or contains characters the store forbids."""

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


__all__ = ["StoreError", "StoreReadError", "StoreWriteError", "PathError"]
