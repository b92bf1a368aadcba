"""Aggregation of a vendor ledger into monthly views.

Everything here is recomputed from scratch on each call. Rows missing a date,
customer or product are left out of every view.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Set, Tuple

from sales_ledger.model import MONTHS_PER_YEAR, MonthGrid, MonthlyAggregate, SalesRow
from sales_ledger.reconcile import month_key


def _add(grid: List[float], month: int, quantity: float) -> None:
    grid[month - 1] += quantity


def aggregate(ledger: Iterable[SalesRow]) -> MonthlyAggregate:
    """Compute totals, cohorts, quantity grids and new/lost customers."""
    monthly_totals: Dict[str, float] = {}
    cohorts: Dict[str, Set[str]] = {}
    product_grids: Dict[Tuple[int, str, str, str], List[float]] = {}
    customer_grids: Dict[Tuple[int, str], List[float]] = {}
    years: Set[int] = set()

    for row in ledger:
        key = month_key(row.date)
        if not key or not row.customer or not row.product:
            continue
        year, month = int(key[:4]), int(key[5:])
        years.add(year)

        monthly_totals[key] = monthly_totals.get(key, 0.0) + row.quantity
        cohorts.setdefault(key, set()).add(row.customer)

        product_key = (year, row.customer, row.product, row.vendor_product_code)
        _add(product_grids.setdefault(product_key, [0.0] * MONTHS_PER_YEAR), month, row.quantity)
        _add(customer_grids.setdefault((year, row.customer), [0.0] * MONTHS_PER_YEAR), month, row.quantity)

    latest_year = max(years) if years else None
    new_customers, lost_customers = _cohort_changes(cohorts, latest_year)

    return MonthlyAggregate(
        latest_year=latest_year,
        monthly_totals=dict(sorted(monthly_totals.items())),
        customers_by_month={k: frozenset(v) for k, v in sorted(cohorts.items())},
        product_totals={k: _freeze(v) for k, v in sorted(product_grids.items())},
        customer_totals={k: _freeze(v) for k, v in sorted(customer_grids.items())},
        new_customers=new_customers,
        lost_customers=lost_customers,
    )


def _freeze(grid: List[float]) -> MonthGrid:
    return tuple(grid)


def _cohort_changes(
    cohorts: Dict[str, Set[str]], year: int | None
) -> Tuple[Tuple[Tuple[str, ...], ...], Tuple[Tuple[str, ...], ...]]:
    """New and lost customer names for each month of ``year``.

    A month only reports new customers when some earlier month of the year has
    data, and only reports lost customers when some later month has data.
    Cohorts are never compared across a year boundary.
    """
    empty = tuple(() for _ in range(MONTHS_PER_YEAR))
    if year is None:
        return empty, empty

    by_month = [cohorts.get(f"{year}-{m:02d}", set()) for m in range(1, MONTHS_PER_YEAR + 1)]
    new: List[Tuple[str, ...]] = []
    lost: List[Tuple[str, ...]] = []

    for index, current in enumerate(by_month):
        earlier = by_month[:index]
        later = by_month[index + 1 :]

        if any(earlier):
            seen = set().union(*earlier)
            new.append(tuple(sorted(current - seen)))
        else:
            new.append(())

        if index > 0 and any(later):
            lost.append(tuple(sorted(by_month[index - 1] - current)))
        else:
            lost.append(())

    return tuple(new), tuple(lost)


__all__ = ["aggregate"]
