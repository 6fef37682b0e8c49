"""Heuristic classifiers for approval status, asset-ness and categories.

Producers write what is conceptually an enum as free text in whichever field
they like ("Approved", "acknowledged", ``status: 1``, ``approvedBy: "HR"``).
The predicates here match those variants case-insensitively and return closed
results (``bool``, :class:`~admin_records.models.Category`,
:class:`~admin_records.models.ApprovalState`) so downstream code never
inspects raw status strings.

All functions accept either a raw mapping or a
:class:`~admin_records.models.NormalizedRecord` (whose ``raw`` is inspected)
and never raise.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Mapping
from typing import Any

from .models import ApprovalState, Category, NormalizedRecord

_APPROVAL_TEXT_FIELDS = (
    "approval",
    "approvalStatus",
    "approval_state",
    "approvalState",
    "status",
    "state",
    "paymentStatus",
    "action",
    "statusText",
    "status_name",
    "statusValue",
)
_APPROVAL_NUMERIC_FIELDS = ("approval", "approvalStatus", "status", "state", "statusCode", "code")
_APPROVAL_RE = re.compile(r"(approved|approve|acknowledge|acknowledged|confirmed|paid)")

_ASSET_WORDS_RE = re.compile(
    r"\b(asset|furniture|electronics|it equipment|computer|laptop|printer|vehicle|motorbike"
    r"|car|utensil|kitchen|appliance|chair|table|bed|sofa|tv|ac)\b"
)

# Ordered keyword rules; the first matching rule decides.
_CATEGORY_RULES: tuple[tuple[Category, tuple[str, ...]], ...] = (
    (Category.FOOD, ("food",)),
    (Category.TRANSPORT_TRAVEL, ("transport", "travel", "fuel", "petrol")),
    (Category.MARKETING, ("market", "promo", "print")),
    (Category.STATIONERY, ("station",)),
    (Category.MEDICAL, ("medic", "tablet", "clinic")),
    (Category.ASSETS, ("asset", "device", "laptop", "software")),
    (Category.OFFICE_MAINTENANCE, ("repair", "maint", "rent", "bill")),
    (Category.WELFARE, ("welfare", "gift", "festival")),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _raw(record: Any) -> Mapping[str, Any] | None:
    if isinstance(record, NormalizedRecord):
        return record.raw
    if isinstance(record, Mapping):
        return record
    return None


def _lower_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, default=str, ensure_ascii=False).lower()
    return str(value).lower()


def _first_truthy(rec: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = rec.get(key)
        if value:
            return value
    return None


def _status_text(rec: Mapping[str, Any]) -> str:
    return _lower_text(_first_truthy(rec, ("approval", "approvalStatus", "status"))).strip()


def _is_one(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return value == 1
    return value is not None and str(value) == "1"


# ---------------------------------------------------------------------------
# Approval
# ---------------------------------------------------------------------------


def is_approval_like(record: Any) -> bool:
    """True when any status-ish field reads as approved, acknowledged or paid.

    Falls back to treating a ``1`` (number or string) in a status/code field
    as approved.
    """

    rec = _raw(record)
    if not rec:
        return False
    joint = " ".join(t for t in (_lower_text(rec.get(k)) for k in _APPROVAL_TEXT_FIELDS) if t)
    if _APPROVAL_RE.search(joint):
        return True
    # TODO: confirm with product whether statusCode/code == "1" really means
    # approved; legacy data suggests it may not.
    return any(_is_one(rec.get(k)) for k in _APPROVAL_NUMERIC_FIELDS)


def is_rejected(record: Any) -> bool:
    rec = _raw(record)
    if not rec:
        return False
    return "reject" in _status_text(rec)


def approval_state(record: Any) -> ApprovalState:
    """Collapse the approval heuristics into one closed value.

    Rejection is checked first and wins over any approval signal.
    """

    rec = _raw(record)
    if not rec:
        return ApprovalState.PENDING
    if is_rejected(rec):
        return ApprovalState.REJECTED
    if (
        is_approval_like(rec)
        or rec.get("approved") is True
        or rec.get("isApproved") is True
        or bool(rec.get("approvedBy"))
        or _status_text(rec) == "true"
    ):
        return ApprovalState.APPROVED
    return ApprovalState.PENDING


DELETION_ACTIONS: frozenset[str] = frozenset({"delete", "rejected"})


def deletion_action(record: Any) -> str:
    """Action that moved a record into the deleted-records report.

    ``deleteInfo.actionType`` wins, then ``approval``; ``"Unknown"`` when
    neither is set. The text is returned as written.
    """

    rec = _raw(record)
    if not rec:
        return "Unknown"
    info = rec.get("deleteInfo")
    action = info.get("actionType") if isinstance(info, Mapping) else None
    for value in (action, rec.get("approval")):
        if value is not None and str(value).strip():
            return str(value).strip()
    return "Unknown"


# ---------------------------------------------------------------------------
# Assets
# ---------------------------------------------------------------------------


def is_asset_like(record: Any) -> bool:
    """True when category, sub-category, description or tags mark an asset."""

    rec = _raw(record)
    if not rec:
        return False
    main = _lower_text(_first_truthy(rec, ("category", "mainCategory", "maincategory", "type", "assetCategory")))
    desc = _lower_text(_first_truthy(rec, ("description", "desc", "for", "pettyFor", "item", "name", "title")))
    sub = _lower_text(_first_truthy(rec, ("subCategory", "subcategory", "sub")))

    if "asset" in main or "asset" in sub:
        return True
    if _ASSET_WORDS_RE.search(desc):
        return True
    if rec.get("assetTag") or rec.get("asset_id") or rec.get("assetId"):
        return True
    return "capex" in main or "capital" in main


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


def detect_category(record: Any) -> Category:
    """Map free-text heads and purposes onto a canonical :class:`Category`."""

    rec = _raw(record)
    if not rec:
        return Category.OTHERS
    text = _lower_text(_first_truthy(rec, ("mainCategory", "category", "head", "type", "purpose"))).strip()
    for category, keywords in _CATEGORY_RULES:
        if any(k in text for k in keywords):
            return category
    return Category.OTHERS


def classify_category(record: Any, known: Iterable[str]) -> str:
    """First entry of ``known`` that is a case-insensitive substring of the
    record's category, else ``"Others"``."""

    if isinstance(record, NormalizedRecord):
        text = record.category_normalized
    else:
        rec = _raw(record) or {}
        text = _first_truthy(rec, ("category", "mainCategory", "type", "assetCategory", "maincategory"))
    haystack = _lower_text(text)
    for name in known:
        if name and name.lower() in haystack:
            return name
    return Category.OTHERS.value


__all__ = [
    "DELETION_ACTIONS",
    "approval_state",
    "classify_category",
    "deletion_action",
    "detect_category",
    "is_approval_like",
    "is_asset_like",
    "is_rejected",
]
