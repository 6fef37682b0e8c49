"""Field extraction: candidate dict → :class:`NormalizedRecord`.

Producers disagree on field names for the same concept, so each derived field
is read from an ordered list of aliases and the first one that is present
(not ``None``) wins. Extraction never raises and never drops a record.
"""

from __future__ import annotations

import re
import uuid
from collections.abc import Mapping
from typing import Any

from .classify import approval_state, detect_category
from .coercion import coerce_number, parse_date_flexible
from .models import NormalizedRecord

DATE_ALIASES = ("purchaseDate", "date", "acquiredAt", "createdAt", "pettyDate", "paymentDate", "forDate")
PRICE_ALIASES = ("price", "unitPrice", "unit_price", "rate")
TOTAL_ALIASES = ("total", "amount", "value", "cost", "totalAmount", "amountPaid", "pettyAmount")
QUANTITY_ALIASES = ("quantity", "qty", "count", "quantityPurchased")
CATEGORY_ALIASES = ("category", "mainCategory", "type", "assetCategory", "maincategory")
ID_ALIASES = ("id", "_id", "uid")
DESCRIPTION_ALIASES = ("description", "name", "title", "pettyFor", "for", "desc", "remark", "purpose", "note")
VENDOR_ALIASES = ("vendor", "supplier", "vendorName", "employeeName")
CLIENT_ALIASES = ("clientName", "cName", "client_name")
RECEIPT_ALIASES = ("receiptNo", "receptNo", "receipt", "ref")
PURCHASED_BY_ALIASES = (
    "purchasedByName",
    "purchasedBy",
    "employeeName",
    "requestedBy",
    "vendorName",
    "vendor",
    "payeeName",
    "createdByName",
    "createdBy",
)


def first_present(rec: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    """Value of the first key in ``keys`` whose value is not ``None``."""

    for key in keys:
        value = rec.get(key)
        if value is not None:
            return value
    return None


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _synthetic_id() -> str:
    return uuid.uuid4().hex[:7]


def extract_fields(rec: Mapping[str, Any], *, origin: str | None = None) -> NormalizedRecord:
    """Project a candidate record onto the canonical model.

    ``amount_num`` is the line total: the first total-like field, else
    price × quantity, else the unit price. ``quantity`` is ``None`` when no
    quantity field is present. ``origin`` defaults to the record's own
    ``__origin`` tag.
    """

    price_num = coerce_number(first_present(rec, PRICE_ALIASES))
    total_num = coerce_number(first_present(rec, TOTAL_ALIASES))
    qty_raw = first_present(rec, QUANTITY_ALIASES)
    quantity = None if qty_raw is None or qty_raw == "" else coerce_number(qty_raw)

    if not total_num and price_num and quantity:
        total_num = price_num * quantity
    if not total_num and price_num:
        total_num = price_num

    category_raw = first_present(rec, CATEGORY_ALIASES)
    if isinstance(category_raw, str) and category_raw.strip():
        category_normalized = category_raw.strip()
    else:
        category_normalized = "Others"

    rec_id = first_present(rec, ID_ALIASES)
    date_raw = first_present(rec, DATE_ALIASES)

    return NormalizedRecord(
        id=_text(rec_id) if rec_id is not None else _synthetic_id(),
        date_raw=date_raw,
        date_parsed=parse_date_flexible(date_raw),
        amount_num=total_num,
        price_num=price_num,
        quantity=quantity,
        category_normalized=category_normalized,
        category=detect_category(rec),
        approval=approval_state(rec),
        description=_text(first_present(rec, DESCRIPTION_ALIASES)),
        vendor=_text(first_present(rec, VENDOR_ALIASES)),
        client_name=_text(first_present(rec, CLIENT_ALIASES)),
        receipt=_text(first_present(rec, RECEIPT_ALIASES)),
        model=_text(rec.get("model")),
        raw=rec,
        origin=origin if origin is not None else _text(rec.get("__origin")),
    )


# ---------------------------------------------------------------------------
# Display helpers over normalized records
# ---------------------------------------------------------------------------

_PETTY_CASH_RE = re.compile(r"petty\s*cash", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]*>")
_SLASH_RE = re.compile(r"[/\\]")
_NOT_NAME_RE = re.compile(r"[^a-zA-Z .,'-]")
_SPACES_RE = re.compile(r"\s{2,}")


def clean_purchased_by(rec: Mapping[str, Any]) -> str:
    """Human name of whoever made the purchase, ``"-"`` when unknown.

    Drops "petty cash" noise, path separators and markup, then keeps only
    name-like characters.
    """

    candidate = next(
        (rec.get(k) for k in PURCHASED_BY_ALIASES if rec.get(k) is not None and str(rec.get(k)).strip()),
        None,
    )
    if candidate is None:
        return "-"
    name = _PETTY_CASH_RE.sub("", str(candidate))
    name = _TAG_RE.sub(" ", _SLASH_RE.sub(" ", name))
    name = _SPACES_RE.sub(" ", name).strip()
    pretty = _SPACES_RE.sub(" ", _NOT_NAME_RE.sub("", name)).strip()
    return pretty or "-"


def sub_category(record: NormalizedRecord) -> str:
    """Most specific category label available for an asset row."""

    raw = record.raw
    sub = first_present(raw, ("subCategory", "subcategory", "sub"))
    if sub is not None and str(sub).strip():
        return str(sub)
    cat = first_present(raw, ("category", "assetCategory", "type"))
    main = first_present(raw, ("mainCategory", "maincategory"))
    if cat and main and str(cat) != str(main):
        return str(cat)
    return record.category_normalized or "Assets"


__all__ = [
    "CATEGORY_ALIASES",
    "DATE_ALIASES",
    "DESCRIPTION_ALIASES",
    "TOTAL_ALIASES",
    "clean_purchased_by",
    "extract_fields",
    "first_present",
    "sub_category",
]
