"""Deduplicating merge of normalized record lists.

Merging prefers under-deduplication to over-merging. Two records are the same
entry when they share an ``id``, or when their full signature (receipt,
rounded amount, date, description) matches exactly. Records that differ in any
one signature component are always kept.

Within one merge call the first occurrence wins, so callers set precedence by
the order of the lists they pass.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable
from itertools import chain
from typing import TypeVar

from .coercion import js_round
from .models import NormalizedRecord

T = TypeVar("T")


def _date_part(record: NormalizedRecord) -> str:
    if record.date_parsed is not None:
        return record.date_parsed.isoformat()
    return "" if record.date_raw is None else str(record.date_raw)


def signature(record: NormalizedRecord) -> str:
    """``receipt|rounded amount|ISO date or raw date|description``."""

    return "|".join(
        (record.receipt, str(js_round(record.amount_num)), _date_part(record), record.description)
    )


def _has_identifying_detail(record: NormalizedRecord) -> bool:
    # A bare amount is not enough to call two differently-identified records equal.
    return bool(record.receipt or record.description or _date_part(record))


def dedupe_key(record: NormalizedRecord) -> str:
    """Primary key: ``id:<id>`` when the record has an id, else ``sig:<signature>``."""

    if record.id:
        return f"id:{record.id}"
    return f"sig:{signature(record)}"


def merge_and_dedupe(lists: Iterable[Iterable[NormalizedRecord]]) -> list[NormalizedRecord]:
    """Concatenate ``lists`` in order and drop repeated entries.

    A record is dropped when its ``id`` was already seen, or when its full
    signature was already seen and it carries at least one of receipt,
    description or date.
    """

    seen_ids: set[str] = set()
    seen_sigs: set[str] = set()
    out: list[NormalizedRecord] = []
    for record in chain.from_iterable(lists):
        sig = signature(record)
        if record.id and record.id in seen_ids:
            continue
        if sig in seen_sigs and (not record.id or _has_identifying_detail(record)):
            continue
        if record.id:
            seen_ids.add(record.id)
        seen_sigs.add(sig)
        out.append(record)
    return out


def dedupe_by(records: Iterable[T], key: Callable[[T], Hashable]) -> list[T]:
    """Keep the first record for each ``key(record)``."""

    seen: set[Hashable] = set()
    out: list[T] = []
    for record in records:
        k = key(record)
        if k in seen:
            continue
        seen.add(k)
        out.append(record)
    return out


def _amount_text(n: float) -> str:
    return str(int(n)) if float(n).is_integer() else repr(float(n))


def petty_signature(record: NormalizedRecord) -> str:
    """Petty cash identity: ``ISO date|amount|category|lowercased description``."""

    day = record.date_parsed.isoformat() if record.date_parsed is not None else "x"
    return "|".join((day, _amount_text(record.amount_num), record.category.value, record.description.lower()))


__all__ = [
    "dedupe_by",
    "dedupe_key",
    "merge_and_dedupe",
    "petty_signature",
    "signature",
]
