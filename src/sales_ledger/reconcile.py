"""Replace-by-month reconciliation of vendor ledgers.

A new batch replaces every stored row that falls in one of the calendar months
the batch covers, whether or not the batch mentions the same customers or
products. Rows with an empty date never belong to a month and therefore are
never removed here.
"""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import Dict, Iterable, Sequence

from sales_ledger.model import ReconcileResult, SalesRow

logger = logging.getLogger(__name__)

_YMD = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def month_key(day: str) -> str:
    """Return ``YYYY-MM`` for a ``YYYY-MM-DD`` string, or "" if malformed."""
    match = _YMD.match(day or "")
    if match is None or not 1 <= int(match.group(2)) <= 12:
        return ""
    return f"{match.group(1)}-{match.group(2)}"


def format_month_key(year: int, month: int) -> str:
    if not 1 <= month <= 12:
        raise ValueError(f"month must be between 1 and 12, got {month}")
    return f"{year:04d}-{month:02d}"


def months_in_batch(rows: Iterable[SalesRow]) -> frozenset[str]:
    return frozenset(key for key in (month_key(row.date) for row in rows) if key)


def reconcile_ledger(
    existing: Sequence[SalesRow], batch: Sequence[SalesRow]
) -> ReconcileResult:
    """Merge ``batch`` into ``existing``, replacing the months it covers.

    An empty batch leaves the ledger untouched.
    """
    if not batch:
        return ReconcileResult(
            ledger=tuple(existing), months=frozenset(), removed=0, added=0
        )

    months = months_in_batch(batch)
    logger.info("Detected months in upload: %s", ", ".join(sorted(months)) or "none")

    retained = [row for row in existing if month_key(row.date) not in months]
    removed = len(existing) - len(retained)
    logger.info(
        "Removed %d existing rows for months: %s", removed, ", ".join(sorted(months))
    )

    return ReconcileResult(
        ledger=tuple(retained) + tuple(batch),
        months=months,
        removed=removed,
        added=len(batch),
    )


def remove_month(existing: Sequence[SalesRow], year: int, month: int) -> ReconcileResult:
    """Drop exactly one calendar month from ``existing``; nothing is added."""
    target = format_month_key(year, month)
    retained = tuple(row for row in existing if month_key(row.date) != target)
    return ReconcileResult(
        ledger=retained,
        months=frozenset({target}),
        removed=len(existing) - len(retained),
        added=0,
    )


def retain_recent(
    rows: Sequence[SalesRow], years: int, today: date | None = None
) -> tuple[SalesRow, ...]:
    """Keep rows dated within the last ``years`` years plus undated rows."""
    today = today or date.today()
    try:
        cutoff = today.replace(year=today.year - years)
    except ValueError:  # Feb 29 in a non-leap target year
        cutoff = today.replace(year=today.year - years, day=28)
    cutoff_text = cutoff.isoformat()
    return tuple(
        row for row in rows if not month_key(row.date) or row.date >= cutoff_text
    )


def ledger_month_counts(rows: Iterable[SalesRow]) -> Dict[str, int]:
    """Number of rows per month key, in calendar order."""
    counts: Dict[str, int] = {}
    for row in rows:
        key = month_key(row.date)
        if key:
            counts[key] = counts.get(key, 0) + 1
    return dict(sorted(counts.items()))


__all__ = [
    "format_month_key",
    "ledger_month_counts",
    "month_key",
    "months_in_batch",
    "reconcile_ledger",
    "remove_month",
    "retain_recent",
]
