"""Staff payment and work rows: append-only editing and validation.

A row starts as a :class:`Draft`. Once it holds any non-empty value and the
staff record is saved, it becomes :class:`Committed` and can no longer be
edited or removed; corrections are made by appending a new row. The
transition is one-directional and only happens through :func:`commit` /
:func:`lock_if_filled`.

Validation never raises: :func:`validate_payment_row` and
:func:`validate_work_row` return a ``{field: message}`` map (empty when the
row is valid or blank). The checks are expressed as pydantic models so that
every failing field is reported in one pass.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, ValidationError, ValidationInfo, field_validator

from .coercion import parse_date_flexible

type RowKind = Literal["payment", "work"]

PAYMENT_FIELDS: tuple[str, ...] = (
    "date",
    "clientName",
    "days",
    "amount",
    "balanceAmount",
    "typeOfPayment",
    "bookNo",
    "status",
    "receiptNo",
    "remarks",
)
WORK_FIELDS: tuple[str, ...] = (
    "clientId",
    "clientName",
    "location",
    "days",
    "fromDate",
    "toDate",
    "serviceType",
    "remarks",
)
LOCK_FLAG = "__locked"
AMOUNT_MAX_DIGITS = 5

_NON_DIGIT_RE = re.compile(r"\D")
_DIGITS_RE = re.compile(r"[0-9]+")


# ---------------------------------------------------------------------------
# Row variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Draft:
    """Editable row."""

    kind: RowKind
    values: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Committed:
    """Saved row with data; read-only from here on."""

    kind: RowKind
    values: dict[str, str] = field(default_factory=dict)


type Row = Draft | Committed


def _fields(kind: RowKind) -> tuple[str, ...]:
    return PAYMENT_FIELDS if kind == "payment" else WORK_FIELDS


def has_any_value(values: Mapping[str, Any]) -> bool:
    """True when any field other than the lock flag is non-blank."""

    return any(
        k != LOCK_FLAG and v is not None and str(v).strip() != ""
        for k, v in values.items()
    )


def blank_row(kind: RowKind) -> Draft:
    return Draft(kind=kind, values=dict.fromkeys(_fields(kind), ""))


def blank_payment() -> Draft:
    return blank_row("payment")


def blank_work() -> Draft:
    return blank_row("work")


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


def commit(row: Row) -> Row:
    """Draft with data → Committed; anything else is returned unchanged."""

    if isinstance(row, Draft) and has_any_value(row.values):
        return Committed(kind=row.kind, values=dict(row.values))
    return row


def lock_if_filled(rows: Sequence[Row]) -> list[Row]:
    """Commit every row that holds data (used when a record is saved)."""

    return [commit(r) for r in rows]


def from_stored(kind: RowKind, stored: Any) -> list[Row]:
    """Rows for an edit session from the stored list.

    Missing or empty lists yield a single blank draft; stored rows with data
    come back committed.
    """

    if not isinstance(stored, Sequence) or isinstance(stored, str) or not stored:
        return [blank_row(kind)]
    rows: list[Row] = []
    for item in stored:
        values = dict.fromkeys(_fields(kind), "")
        if isinstance(item, Mapping):
            values.update({k: "" if v is None else str(v) for k, v in item.items() if k != LOCK_FLAG})
        rows.append(Draft(kind=kind, values=values))
    return lock_if_filled(rows)


def _sanitize(kind: RowKind, name: str, value: Any) -> str:
    text = "" if value is None else str(value)
    if kind == "payment" and name == "amount":
        return _NON_DIGIT_RE.sub("", text)[:AMOUNT_MAX_DIGITS]
    if kind == "payment" and name == "balanceAmount":
        return _NON_DIGIT_RE.sub("", text)
    return text


def edit_row(rows: Sequence[Row], index: int, name: str, value: Any) -> list[Row]:
    """Set one field on a draft row.

    Committed rows and out-of-range indexes leave ``rows`` unchanged. Payment
    amounts keep digits only (at most five); balances keep digits only.
    """

    out = list(rows)
    if not 0 <= index < len(out):
        return out
    row = out[index]
    if isinstance(row, Committed):
        return out
    values = dict(row.values)
    values[name] = _sanitize(row.kind, name, value)
    out[index] = Draft(kind=row.kind, values=values)
    return out


def append_row(rows: Sequence[Row], kind: RowKind) -> list[Row]:
    return [*rows, blank_row(kind)]


def remove_row(rows: Sequence[Row], index: int) -> list[Row]:
    """Remove a draft row; the list never becomes empty.

    Committed rows cannot be removed. Removing the last remaining row leaves
    one blank draft of the same kind.
    """

    out = list(rows)
    if not 0 <= index < len(out) or isinstance(out[index], Committed):
        return out
    removed = out.pop(index)
    return out or [blank_row(removed.kind)]


def to_payload(rows: Sequence[Row]) -> list[dict[str, Any]]:
    """Store representation: the values plus the ``__locked`` flag."""

    return [{**r.values, LOCK_FLAG: isinstance(r, Committed)} for r in rows]


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _required(value: str, message: str) -> str:
    if not value:
        raise ValueError(message)
    return value


def _one_year_before(d: date) -> date:
    try:
        return d.replace(year=d.year - 1)
    except ValueError:
        # 29 Feb → 1 Mar of the previous year
        return date(d.year - 1, 3, 1)


def _positive_days(value: str) -> str:
    _required(value, "Days is required")
    try:
        n = float(value)
    except ValueError:
        n = math.nan
    if math.isnan(n) or n <= 0:
        raise ValueError("Days must be a positive number")
    return value


class _RowModel(BaseModel):
    model_config = ConfigDict(extra="ignore", validate_default=True)

    @field_validator("*", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return "" if v is None else str(v)


class PaymentRow(_RowModel):
    """Validation rules for one staff payment row."""

    date: str = ""
    clientName: str = ""
    days: str = ""
    amount: str = ""
    balanceAmount: str = ""
    typeOfPayment: str = ""
    status: str = ""

    @field_validator("date")
    @classmethod
    def check_date(cls, v: str, info: ValidationInfo) -> str:
        _required(v, "Date is required")
        today = (info.context or {}).get("today") or date.today()
        d = parse_date_flexible(v, month_year_fallback=False)
        if d is None or d < _one_year_before(today) or d > today:
            raise ValueError("Payment date must be within the last 1 year")
        return v

    @field_validator("clientName")
    @classmethod
    def check_client_name(cls, v: str) -> str:
        return _required(v, "Client name is required")

    @field_validator("days")
    @classmethod
    def check_days(cls, v: str) -> str:
        return _positive_days(v)

    @field_validator("amount")
    @classmethod
    def check_amount(cls, v: str) -> str:
        digits = _NON_DIGIT_RE.sub("", v)
        if not digits:
            raise ValueError("Amount is required")
        if len(digits) > AMOUNT_MAX_DIGITS or int(digits) <= 0:
            raise ValueError("Amount must be a positive number up to 5 digits")
        return v

    @field_validator("balanceAmount")
    @classmethod
    def check_balance(cls, v: str) -> str:
        if v and not _DIGITS_RE.fullmatch(v):
            raise ValueError("Enter a valid balance amount")
        return v

    @field_validator("typeOfPayment")
    @classmethod
    def check_payment_type(cls, v: str) -> str:
        return _required(v, "Type of payment is required")

    @field_validator("status")
    @classmethod
    def check_status(cls, v: str) -> str:
        return _required(v, "Status is required")


class WorkRow(_RowModel):
    """Validation rules for one staff work-assignment row."""

    clientId: str = ""
    clientName: str = ""
    days: str = ""
    fromDate: str = ""
    toDate: str = ""
    serviceType: str = ""

    @field_validator("clientId")
    @classmethod
    def check_client_id(cls, v: str) -> str:
        return _required(v, "Client ID is required")

    @field_validator("clientName")
    @classmethod
    def check_client_name(cls, v: str) -> str:
        return _required(v, "Client name is required")

    @field_validator("days")
    @classmethod
    def check_days(cls, v: str) -> str:
        return _positive_days(v)

    @field_validator("fromDate")
    @classmethod
    def check_from_date(cls, v: str) -> str:
        return _required(v, "From date is required")

    @field_validator("toDate")
    @classmethod
    def check_to_date(cls, v: str, info: ValidationInfo) -> str:
        _required(v, "To date is required")
        start = parse_date_flexible(info.data.get("fromDate"), month_year_fallback=False)
        end = parse_date_flexible(v, month_year_fallback=False)
        if start is not None and end is not None and start > end:
            raise ValueError("To date must be after From date")
        return v

    @field_validator("serviceType")
    @classmethod
    def check_service_type(cls, v: str) -> str:
        return _required(v, "Service type is required")


def _message(err: Mapping[str, Any]) -> str:
    # Rule messages travel as the ValueError raised by the validator
    cause = (err.get("ctx") or {}).get("error")
    return str(cause) if isinstance(cause, ValueError) else err["msg"]


def _errors(model: type[_RowModel], values: Mapping[str, Any], today: date | None) -> dict[str, str]:
    if not has_any_value(values):
        return {}
    try:
        model.model_validate(dict(values), context={"today": today or date.today()})
    except ValidationError as exc:
        out: dict[str, str] = {}
        for err in exc.errors():
            if err["loc"]:
                out.setdefault(str(err["loc"][0]), _message(err))
        return out
    return {}


def validate_payment_row(values: Mapping[str, Any], *, today: date | None = None) -> dict[str, str]:
    return _errors(PaymentRow, values, today)


def validate_work_row(values: Mapping[str, Any], *, today: date | None = None) -> dict[str, str]:
    return _errors(WorkRow, values, today)


def validate_rows(rows: Sequence[Row], *, today: date | None = None) -> list[dict[str, str]]:
    """Per-row error maps, aligned with ``rows``."""

    return [
        validate_payment_row(r.values, today=today) if r.kind == "payment" else validate_work_row(r.values, today=today)
        for r in rows
    ]


__all__ = [
    "AMOUNT_MAX_DIGITS",
    "LOCK_FLAG",
    "PAYMENT_FIELDS",
    "WORK_FIELDS",
    "Committed",
    "Draft",
    "PaymentRow",
    "Row",
    "RowKind",
    "WorkRow",
    "append_row",
    "blank_payment",
    "blank_row",
    "blank_work",
    "commit",
    "edit_row",
    "from_stored",
    "has_any_value",
    "lock_if_filled",
    "remove_row",
    "to_payload",
    "validate_payment_row",
    "validate_rows",
    "validate_work_row",
]
