"""Time-bucketed aggregation: year → month → category sums and counts.

Records without a parsed date land in the ``"Unknown"`` year and month
buckets. Year keys are strings (``"2024"``) so that ``"Unknown"`` can sit in
the same mapping; month keys are ``0``-``11`` (January = 0) or ``"Unknown"``.

The report matrix always carries one row per canonical category plus a
synthetic ``"Others"`` row so that sparse years render as a stable grid.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence

from .classify import classify_category
from .models import (
    CANONICAL_CATEGORIES,
    MONTH_NAMES,
    UNKNOWN,
    Category,
    MatrixRow,
    MonthBucket,
    MonthKey,
    NormalizedRecord,
    Summary,
    YearBucket,
    YearMonthGrouping,
    YearMonthMatrix,
)

ALL = "ALL"


# ---------------------------------------------------------------------------
# Keys and ordering
# ---------------------------------------------------------------------------


def year_month_key(record: NormalizedRecord) -> tuple[str, MonthKey]:
    d = record.date_parsed
    if d is None:
        return UNKNOWN, UNKNOWN
    return str(d.year), d.month - 1


def sort_year_keys(keys: Iterable[str]) -> list[str]:
    """Numeric years descending, ``"Unknown"`` last."""

    keys = list(keys)
    known = sorted((k for k in keys if k != UNKNOWN), key=int, reverse=True)
    return known + ([UNKNOWN] if UNKNOWN in keys else [])


def sort_month_keys(keys: Iterable[MonthKey]) -> list[MonthKey]:
    """Months ascending 0-11, ``"Unknown"`` last."""

    keys = list(keys)
    known = sorted(k for k in keys if k != UNKNOWN)
    return known + ([UNKNOWN] if UNKNOWN in keys else [])


def matrix_category(record: NormalizedRecord, categories: Sequence[str]) -> str:
    """Row label for ``record`` within ``categories``.

    The record's free-text category is matched first; when that yields
    ``"Others"`` the keyword-detected category is used if it is a row.
    """

    name = classify_category(record, categories)
    if name == Category.OTHERS.value and record.category.value in categories:
        return record.category.value
    return name


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------


def group_by_year_month(
    records: Iterable[NormalizedRecord],
    *,
    categories: Sequence[str] = CANONICAL_CATEGORIES,
    amount: Callable[[NormalizedRecord], float] | None = None,
) -> YearMonthGrouping:
    """Bucket ``records`` by year and month, accumulating counts and sums.

    ``amount`` picks the value to sum (``amount_num`` by default). Each month
    bucket also keeps per-category sums keyed by :func:`matrix_category`.
    """

    value_of = amount or (lambda r: r.amount_num)
    by_year: dict[str, YearBucket] = {}
    for record in records:
        y, m = year_month_key(record)
        value = value_of(record)
        year_bucket = by_year.setdefault(y, YearBucket())
        month_bucket = year_bucket.months.setdefault(m, MonthBucket())
        month_bucket.entries.append(record)
        month_bucket.count += 1
        month_bucket.sum += value
        cat = matrix_category(record, categories)
        month_bucket.categories[cat] = month_bucket.categories.get(cat, 0) + value
        year_bucket.count += 1
        year_bucket.sum += value

    years = tuple(sort_year_keys(by_year.keys()))
    months_sorted = {y: tuple(sort_month_keys(by_year[y].months.keys())) for y in years}
    return YearMonthGrouping(by_year=by_year, years=years, months_sorted=months_sorted)


def filter_rows(
    grouping: YearMonthGrouping,
    year: str | int = ALL,
    month: MonthKey = ALL,
) -> list[NormalizedRecord]:
    """Entries for the ``ALL`` / year / year+month drill-down."""

    if year == ALL:
        years: Sequence[str] = grouping.years
    else:
        years = (str(year),)
    out: list[NormalizedRecord] = []
    for y in years:
        block = grouping.by_year.get(y)
        if block is None:
            continue
        for m in grouping.months_sorted.get(y, ()):
            if month != ALL and m != month:
                continue
            out.extend(block.months[m].entries)
    return out


# ---------------------------------------------------------------------------
# Matrix
# ---------------------------------------------------------------------------


def build_year_month_matrix(
    records: Iterable[NormalizedRecord],
    categories: Sequence[str] = CANONICAL_CATEGORIES,
    year: str | int | None = None,
) -> YearMonthMatrix:
    """Category × month grid for ``year``.

    Emits one row per entry of ``categories`` in order, plus ``"Others"`` when
    it is not already listed, each with a 12-element month array and a grand
    total. ``year`` defaults to the most recent year present (or ``"Unknown"``
    when nothing is dated).
    """

    row_names = list(dict.fromkeys(categories))
    if Category.OTHERS.value not in row_names:
        row_names.append(Category.OTHERS.value)

    grouping = group_by_year_month(records, categories=row_names)
    if year is None:
        year_key = grouping.years[0] if grouping.years else UNKNOWN
    else:
        year_key = str(year)
    block = grouping.by_year.get(year_key, YearBucket())

    rows: list[MatrixRow] = []
    for name in row_names:
        months = tuple(
            block.months[m].categories.get(name, 0) if m in block.months else 0
            for m in range(12)
        )
        rows.append(MatrixRow(category=name, months=months, grand=sum(months)))

    month_totals = tuple(sum(r.months[i] for r in rows) for i in range(12))
    year_count = sum(block.months[m].count for m in range(12) if m in block.months)
    return YearMonthMatrix(
        year=year_key,
        rows=tuple(rows),
        year_total=sum(r.grand for r in rows),
        year_count=year_count,
        month_totals=month_totals,
    )


# ---------------------------------------------------------------------------
# Dashboard summaries
# ---------------------------------------------------------------------------


def summarize(
    records: Iterable[NormalizedRecord],
    *,
    year: int,
    approved_only: bool = True,
) -> Summary:
    """Card figures, month/year series and category split.

    Totals, counts and categories cover every (approved) record; the month
    series and top month are for ``year`` only; the top month is the first
    month holding the maximum.
    """

    pool = [r for r in records if r.approval.is_approved] if approved_only else list(records)
    total = sum(r.amount_num for r in pool)
    count = len(pool)

    by_month = [0.0] * 12
    by_year: dict[int, float] = {}
    by_category: dict[str, float] = {}
    for r in pool:
        by_category[r.category.value] = by_category.get(r.category.value, 0) + r.amount_num
        if r.date_parsed is None:
            continue
        by_year[r.date_parsed.year] = by_year.get(r.date_parsed.year, 0) + r.amount_num
        if r.date_parsed.year == year:
            by_month[r.date_parsed.month - 1] += r.amount_num

    top = max(range(12), key=lambda i: (by_month[i], -i))
    segments = sorted(by_category.items(), key=lambda kv: kv[1], reverse=True)
    return Summary(
        total=total,
        count=count,
        average=total / count if count else 0,
        top_month=MONTH_NAMES[top],
        month_series=tuple(by_month),
        year_series=tuple((str(y), v) for y, v in sorted(by_year.items())),
        category_segments=tuple(segments),
    )


__all__ = [
    "ALL",
    "build_year_month_matrix",
    "filter_rows",
    "group_by_year_month",
    "matrix_category",
    "sort_month_keys",
    "sort_year_keys",
    "summarize",
    "year_month_key",
]
