"""Data models and type aliases for ``admin_records``.

Raw input is an arbitrarily nested tree of mappings and scalars as delivered by
the document store; no field names are guaranteed. Everything downstream of
extraction works on :class:`NormalizedRecord` and the closed enums below rather
than on raw strings.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from enum import Enum, StrEnum
from typing import Any

# ---------------------------------------------------------------------------
# Raw shapes
# ---------------------------------------------------------------------------

# A node of the store tree: a mapping, a list, a scalar or ``None``.
type RawNode = Any

# A flattened candidate record: the original fields plus a resolved ``id``.
type Candidate = dict[str, Any]

# Month bucket key: 0-11 (January = 0) or the literal ``"Unknown"``.
type MonthKey = int | str

UNKNOWN = "Unknown"
MONTH_NAMES: tuple[str, ...] = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


# ---------------------------------------------------------------------------
# Closed classification results
# ---------------------------------------------------------------------------


class Category(StrEnum):
    """Canonical business categories; ``OTHERS`` is the catch-all."""

    FOOD = "Food"
    TRANSPORT_TRAVEL = "Transport & Travel"
    MARKETING = "Marketing"
    STATIONERY = "Stationery"
    MEDICAL = "Medical"
    ASSETS = "Assets"
    OFFICE_MAINTENANCE = "Office Maintenance"
    WELFARE = "Welfare"
    OTHERS = "Others"


# Report row order. ``Others`` is always last.
CANONICAL_CATEGORIES: tuple[str, ...] = tuple(c.value for c in Category)


class ApprovalState(Enum):
    """Approval outcome after the fuzzy status heuristics have run.

    ``PENDING`` and ``REJECTED`` are both "not approved"; rejection wins when
    a record carries both signals.
    """

    APPROVED = "approved"
    REJECTED = "rejected"
    PENDING = "pending"

    @property
    def is_approved(self) -> bool:
        return self is ApprovalState.APPROVED


# ---------------------------------------------------------------------------
# Normalized records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NormalizedRecord:
    """Canonical projection of one raw record.

    Every derived field can be regenerated from ``raw``; instances are rebuilt
    on each store notification and never mutated.
    """

    id: str
    date_raw: Any
    date_parsed: date | None
    amount_num: float
    price_num: float = 0
    quantity: float | None = None
    category_normalized: str = "Others"
    category: Category = Category.OTHERS
    approval: ApprovalState = ApprovalState.PENDING
    description: str = ""
    vendor: str = ""
    client_name: str = ""
    receipt: str = ""
    model: str = ""
    raw: Mapping[str, Any] = field(default_factory=dict)
    origin: str = ""

    @property
    def total_num(self) -> float:
        """Alias used by asset views, where the amount is the line total."""

        return self.amount_num


# ---------------------------------------------------------------------------
# Aggregation results
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class MonthBucket:
    entries: list[NormalizedRecord] = field(default_factory=list)
    count: int = 0
    sum: float = 0
    categories: dict[str, float] = field(default_factory=dict)


@dataclass(slots=True)
class YearBucket:
    months: dict[MonthKey, MonthBucket] = field(default_factory=dict)
    count: int = 0
    sum: float = 0


@dataclass(frozen=True, slots=True)
class YearMonthGrouping:
    """Records bucketed by year then month, with display ordering resolved."""

    by_year: dict[str, YearBucket]
    years: tuple[str, ...]
    months_sorted: dict[str, tuple[MonthKey, ...]]


@dataclass(frozen=True, slots=True)
class MatrixRow:
    category: str
    months: tuple[float, ...]
    grand: float


@dataclass(frozen=True, slots=True)
class YearMonthMatrix:
    """Fixed category × 12-month grid for one year."""

    year: str
    rows: tuple[MatrixRow, ...]
    year_total: float
    year_count: int
    month_totals: tuple[float, ...]


@dataclass(frozen=True, slots=True)
class Summary:
    """Dashboard card figures for a record list."""

    total: float
    count: int
    average: float
    top_month: str
    month_series: tuple[float, ...]
    year_series: tuple[tuple[str, float], ...]
    category_segments: tuple[tuple[str, float], ...]


__all__ = [
    "CANONICAL_CATEGORIES",
    "MONTH_NAMES",
    "UNKNOWN",
    "ApprovalState",
    "Candidate",
    "Category",
    "MatrixRow",
    "MonthBucket",
    "MonthKey",
    "NormalizedRecord",
    "RawNode",
    "Summary",
    "YearBucket",
    "YearMonthGrouping",
    "YearMonthMatrix",
]
