from __future__ import annotations

import re
from typing import Callable, Dict, Iterable, List, Sequence, Tuple

from sales_ledger.model import DeltaReport, DeltaRow, GroupBy, SalesRow
from sales_ledger.reconcile import month_key

MonthRange = Tuple[str, str]

_MONTH = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")
TOTAL_KEY = "TOTAL"


def normalize_range(month_range: Sequence[str]) -> MonthRange:
    """Validate a ``(start, end)`` pair of ``YYYY-MM`` keys and order it."""
    if len(month_range) != 2:
        raise ValueError(f"A month range needs exactly two endpoints: {month_range!r}")
    start, end = (str(value).strip() for value in month_range)
    for value in (start, end):
        if not _MONTH.match(value):
            raise ValueError(f"Month must look like YYYY-MM, got {value!r}")
    return (start, end) if start <= end else (end, start)


def available_periods(rows: Iterable[SalesRow]) -> List[str]:
    return sorted({key for key in (month_key(row.date) for row in rows) if key})


def default_ranges(periods: Sequence[str]) -> Tuple[MonthRange, MonthRange]:
    """Range A is the last two periods, range B the two before them."""
    if not periods:
        raise ValueError("No periods available")
    ordered = sorted(periods)
    last = ordered[-1]
    prev = ordered[-2] if len(ordered) > 1 else last
    prev2 = ordered[-3] if len(ordered) > 2 else prev
    prev3 = ordered[-4] if len(ordered) > 3 else prev2
    return (prev, last), (prev3, prev2)


def _key_function(group_by: GroupBy) -> Callable[[SalesRow], str]:
    if group_by == "customer":
        return lambda row: row.customer
    if group_by == "product":
        return lambda row: row.product
    raise ValueError(f"group_by must be 'customer' or 'product', got {group_by!r}")


def _snapshot(
    rows: Iterable[SalesRow], key_of: Callable[[SalesRow], str], month_range: MonthRange
) -> Dict[str, Tuple[float, float]]:
    """Sum (revenue, quantity) per key for rows inside ``month_range``."""
    start, end = month_range
    sums: Dict[str, Tuple[float, float]] = {}
    for row in rows:
        period = month_key(row.date)
        key = key_of(row)
        if not period or not key or not start <= period <= end:
            continue
        revenue, quantity = sums.get(key, (0.0, 0.0))
        sums[key] = (revenue + row.revenue, quantity + row.quantity)
    return sums


def compare_ranges(
    rows: Iterable[SalesRow],
    group_by: GroupBy,
    range_a: Sequence[str],
    range_b: Sequence[str],
) -> DeltaReport:
    """Compare two inclusive month ranges, grouped by customer or product.

    Keys seen in either range are reported; a key missing from one range counts
    as zero there. Rows are ordered by the largest absolute revenue change.
    """
    range_a, range_b = normalize_range(range_a), normalize_range(range_b)
    key_of = _key_function(group_by)
    rows = list(rows)

    a_sums = _snapshot(rows, key_of, range_a)
    b_sums = _snapshot(rows, key_of, range_b)

    deltas: List[DeltaRow] = []
    for key in a_sums.keys() | b_sums.keys():
        a_revenue, a_quantity = a_sums.get(key, (0.0, 0.0))
        b_revenue, b_quantity = b_sums.get(key, (0.0, 0.0))
        deltas.append(
            DeltaRow(
                key=key,
                a_revenue=a_revenue,
                b_revenue=b_revenue,
                a_quantity=a_quantity,
                b_quantity=b_quantity,
            )
        )
    deltas.sort(
        key=lambda row: (-abs(row.revenue_delta), -abs(row.quantity_delta), row.key)
    )

    total = DeltaRow(
        key=TOTAL_KEY,
        a_revenue=sum(row.a_revenue for row in deltas),
        b_revenue=sum(row.b_revenue for row in deltas),
        a_quantity=sum(row.a_quantity for row in deltas),
        b_quantity=sum(row.b_quantity for row in deltas),
    )
    return DeltaReport(
        group_by=group_by,
        range_a=range_a,
        range_b=range_b,
        rows=tuple(deltas),
        total=total,
    )


def drill_down(
    rows: Iterable[SalesRow],
    customer: str,
    range_a: Sequence[str],
    range_b: Sequence[str],
) -> DeltaReport:
    """Product-level comparison for one customer over the same two ranges."""
    own_rows = [row for row in rows if row.customer == customer]
    return compare_ranges(own_rows, "product", range_a, range_b)


__all__ = [
    "MonthRange",
    "TOTAL_KEY",
    "available_periods",
    "compare_ranges",
    "default_ranges",
    "drill_down",
    "normalize_range",
]
