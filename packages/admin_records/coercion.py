"""Scalar coercion helpers: numbers, calendar dates and rupee strings.

Upstream producers write the same concept in many shapes (``"₹1,200"``,
``"1200.00"``, ``1200``; ``"15/03/2024"``, ``"2024-03-15"``, ``1710460800``).
Every helper here is total: unusable input resolves to a safe default
(``0`` or ``None``) instead of raising, and nothing is logged.
"""

from __future__ import annotations

import math
import re
from datetime import UTC, date, datetime
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any

# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------

_NON_NUMERIC_RE = re.compile(r"[^0-9.\-]")


def coerce_number(v: Any) -> float:
    """Return ``v`` as a finite number, ``0`` when it cannot be read as one.

    ``None`` and ``""`` map to ``0``; ints and finite floats pass through
    unchanged; booleans count as non-numeric. Anything else is stringified,
    stripped of every character other than digits, ``.`` and ``-``, and
    parsed as a float.

    Re-coercing ``str(result)`` gives the same value whenever ``str()`` writes
    the number in positional notation. Floats that ``str()`` renders with an
    exponent (``1e21``, ``1e-05``) do not survive the trip: the ``e`` and
    ``+`` are stripped like any other junk.
    """

    if v is None or v == "" or isinstance(v, bool):
        return 0
    if isinstance(v, int):
        return v
    if isinstance(v, float):
        return v if math.isfinite(v) else 0
    cleaned = _NON_NUMERIC_RE.sub("", str(v))
    try:
        n = float(cleaned)
    except ValueError:
        return 0
    return n if math.isfinite(n) else 0


def js_round(x: float) -> int:
    """Round half toward positive infinity (``Math.round`` semantics)."""

    return math.floor(x + 0.5)


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

_EPOCH_DIGITS_RE = re.compile(r"^\d{10,13}$")
_DAY_FIRST_RE = re.compile(r"^(\d{1,2})[/\-\s](\d{1,2})[/\-\s](\d{4}|\d{2})$")
_MONTH_YEAR_RE = re.compile(r"([A-Za-z]+),?\s*(\d{4})")
_MONTH_PREFIXES = ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec")

# Textual layouts accepted after ISO-8601 fails.
_TEXT_FORMATS = (
    "%Y/%m/%d",
    "%d %b %Y",
    "%d %B %Y",
    "%b %d %Y",
    "%B %d %Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%d-%b-%Y",
    "%d-%B-%Y",
    "%a %b %d %Y",
    "%a, %d %b %Y %H:%M:%S GMT",
)

# Milliseconds threshold for bare epoch numbers.
_MS_THRESHOLD = 1e12


def _from_epoch(n: float) -> date | None:
    seconds = n / 1000 if abs(n) >= _MS_THRESHOLD else n
    try:
        return datetime.fromtimestamp(seconds, tz=UTC).date()
    except (OverflowError, OSError, ValueError):
        return None


def _parse_iso(s: str) -> date | None:
    try:
        return date.fromisoformat(s)
    except ValueError:
        pass
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(UTC)
    return dt.date()


def _parse_text(s: str) -> date | None:
    for fmt in _TEXT_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None


def _parse_day_first(s: str) -> date | None:
    m = _DAY_FIRST_RE.match(s)
    if not m:
        return None
    dd, mm, yy = int(m.group(1)), int(m.group(2)), int(m.group(3))
    if len(m.group(3)) == 2:
        yy += 2000
    try:
        return date(yy, mm, dd)
    except ValueError:
        return None


def _parse_month_year(s: str) -> date | None:
    m = _MONTH_YEAR_RE.search(s)
    if not m:
        return None
    prefix = m.group(1)[:3].lower()
    if prefix not in _MONTH_PREFIXES:
        return None
    try:
        return date(int(m.group(2)), _MONTH_PREFIXES.index(prefix) + 1, 1)
    except ValueError:
        return None


def parse_date_flexible(v: Any, *, month_year_fallback: bool = True) -> date | None:
    """Best-effort conversion of ``v`` to a calendar date.

    Order of attempts:

    1. falsy input other than ``0`` → ``None``; ``date``/``datetime`` pass
       through; other numbers are Unix timestamps.
    2. 10-13 digit strings are Unix timestamps: seconds below ``10**12``,
       milliseconds otherwise (UTC calendar day).
    3. ISO-8601 dates/datetimes, then a few textual layouts
       (``"15 Mar 2024"``, ``"March 15, 2024"``, ``"2024/03/15"``).
    4. Day-first ``D/M/YYYY``, ``D-M-YYYY`` or ``D M YY``.
    5. When ``month_year_fallback`` is set, a loose ``"Month YYYY"`` match
       anywhere in the text, pinned to day 1.

    Unmatched or impossible dates (``31/02/2024``) yield ``None``.
    """

    if isinstance(v, bool):
        return None
    if v is None or v == "":
        return None
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, date):
        return v
    if isinstance(v, (int, float)):
        if not math.isfinite(v):
            return None
        return _from_epoch(v)

    s = str(v).strip()
    if not s:
        return None
    if _EPOCH_DIGITS_RE.match(s):
        return _from_epoch(int(s))

    parsed = _parse_iso(s) or _parse_text(s) or _parse_day_first(s)
    if parsed is not None:
        return parsed
    if month_year_fallback:
        return _parse_month_year(s)
    return None


def format_display_date(d: date | None, raw: Any = None, *, missing: str = "-") -> str:
    """``dd/mm/yyyy`` for parsed dates, else the raw value, else ``missing``."""

    if d is not None:
        return f"{d.day:02d}/{d.month:02d}/{d.year}"
    if raw is None or raw == "":
        return missing
    return str(raw)


# ---------------------------------------------------------------------------
# Currency
# ---------------------------------------------------------------------------


_ROUNDING_PRECISION = 400


def _group_indian(digits: str) -> str:
    # Last three digits, then groups of two: 1,20,00,000
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups: list[str] = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups) + "," + tail


def format_currency_inr(n: Any) -> str:
    """Format ``n`` as Indian Rupees with no fractional digits (``₹1,20,000``)."""

    value = coerce_number(n)
    if isinstance(value, int):
        whole = value
    else:
        with localcontext() as ctx:
            # Enough digits to quantize any finite float
            ctx.prec = _ROUNDING_PRECISION
            whole = int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    grouped = _group_indian(str(abs(whole)))
    return f"-₹{grouped}" if whole < 0 else f"₹{grouped}"


__all__ = [
    "coerce_number",
    "format_currency_inr",
    "format_display_date",
    "js_round",
    "parse_date_flexible",
]
