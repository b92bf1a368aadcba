"""Status classifiers for comparing a current period against a previous one.

Thresholds are fixed constants. Attrition alerts are revenue based; invoice
comparisons are quantity based.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Set, Tuple

from sales_ledger.model import (
    AttritionAlert,
    AttritionStatus,
    InvoiceComparison,
    PeriodTrend,
    QuantityStatus,
    SalesRow,
    TrendStatus,
    percent_change,
)
from sales_ledger.reconcile import month_key

DECLINING_PERCENT = -30.0  # Strictly below this is "declining"
LOW_ACTIVITY_RATIO = 0.5  # Current below half of previous is "low-activity"
STABLE_PERCENT = 5.0  # Absolute change below this is "stable"


def classify_attrition(
    previous_revenue: float, current_revenue: float
) -> AttritionStatus | None:
    """Return the alert status for one customer, or ``None`` for no alert.

    Customers without previous revenue are never alerted.
    """
    if previous_revenue == 0:
        return None
    if current_revenue == 0:
        return "stopped"
    change = (current_revenue - previous_revenue) * 100 / previous_revenue
    if change < DECLINING_PERCENT:
        return "declining"
    if current_revenue < previous_revenue * LOW_ACTIVITY_RATIO:
        return "low-activity"
    return None


def classify_quantity_change(
    previous_quantity: float, current_quantity: float
) -> QuantityStatus:
    if previous_quantity == 0 and current_quantity > 0:
        return "new"
    if current_quantity == 0 and previous_quantity > 0:
        return "discontinued"
    if current_quantity == previous_quantity:
        return "no-change"
    return "increased" if current_quantity > previous_quantity else "decreased"


def classify_trend(first_revenue: float, second_revenue: float) -> TrendStatus:
    if first_revenue == 0 and second_revenue > 0:
        return "new"
    if first_revenue > 0 and second_revenue == 0:
        return "lost"
    if abs(percent_change(first_revenue, second_revenue)) < STABLE_PERCENT:
        return "stable"
    return "increasing" if second_revenue > first_revenue else "decreasing"


def _sum_by(rows: Iterable[SalesRow], key) -> Dict:
    sums: Dict = {}
    for row in rows:
        revenue, quantity = sums.get(key(row), (0.0, 0.0))
        sums[key(row)] = (revenue + row.revenue, quantity + row.quantity)
    return sums


def _customer_product(row: SalesRow) -> Tuple[str, str]:
    return row.customer, row.product


def attrition_alerts(
    previous_rows: Iterable[SalesRow], current_rows: Iterable[SalesRow]
) -> List[AttritionAlert]:
    """Alert on customers who stopped, declined or went quiet.

    Sorted by the size of the percent change, largest first.
    """
    current_rows = list(current_rows)
    previous = _sum_by(previous_rows, lambda row: row.customer)
    current = _sum_by(current_rows, lambda row: row.customer)

    products: Dict[str, Set[str]] = {}
    last_seen: Dict[str, str] = {}
    for row in current_rows:
        products.setdefault(row.customer, set()).add(row.product)
        if row.date > last_seen.get(row.customer, ""):
            last_seen[row.customer] = row.date

    alerts: List[AttritionAlert] = []
    for customer in sorted(previous.keys() | current.keys()):
        previous_revenue = previous.get(customer, (0.0, 0.0))[0]
        current_revenue = current.get(customer, (0.0, 0.0))[0]
        status = classify_attrition(previous_revenue, current_revenue)
        if status is None:
            continue
        change = current_revenue - previous_revenue
        alerts.append(
            AttritionAlert(
                customer=customer,
                previous_revenue=previous_revenue,
                current_revenue=current_revenue,
                change_amount=change,
                change_percent=change * 100 / previous_revenue,
                status=status,
                last_activity=last_seen.get(customer, ""),
                products_purchased=tuple(sorted(products.get(customer, ()))),
            )
        )
    alerts.sort(key=lambda alert: -abs(alert.change_percent))
    return alerts


def compare_invoices(
    previous_rows: Iterable[SalesRow], current_rows: Iterable[SalesRow]
) -> List[InvoiceComparison]:
    """Compare every (customer, product) pair seen in either period."""
    previous = _sum_by(previous_rows, _customer_product)
    current = _sum_by(current_rows, _customer_product)

    results: List[InvoiceComparison] = []
    for customer, product in sorted(previous.keys() | current.keys()):
        previous_revenue, previous_quantity = previous.get((customer, product), (0.0, 0.0))
        current_revenue, current_quantity = current.get((customer, product), (0.0, 0.0))
        results.append(
            InvoiceComparison(
                customer=customer,
                product=product,
                previous_quantity=previous_quantity,
                current_quantity=current_quantity,
                previous_revenue=previous_revenue,
                current_revenue=current_revenue,
                status=classify_quantity_change(previous_quantity, current_quantity),
            )
        )
    return results


def period_trends(
    rows: Iterable[SalesRow], first_period: str, second_period: str
) -> List[PeriodTrend]:
    """Trend per customer between two single months (``YYYY-MM``)."""
    first: Dict[str, Tuple[float, float]] = {}
    second: Dict[str, Tuple[float, float]] = {}
    for row in rows:
        period = month_key(row.date)
        if not row.customer:
            continue
        if period == first_period:
            target = first
        elif period == second_period:
            target = second
        else:
            continue
        revenue, quantity = target.get(row.customer, (0.0, 0.0))
        target[row.customer] = (revenue + row.revenue, quantity + row.quantity)

    trends: List[PeriodTrend] = []
    for customer in sorted(first.keys() | second.keys()):
        first_revenue, first_quantity = first.get(customer, (0.0, 0.0))
        second_revenue, second_quantity = second.get(customer, (0.0, 0.0))
        trends.append(
            PeriodTrend(
                customer=customer,
                first_revenue=first_revenue,
                second_revenue=second_revenue,
                first_quantity=first_quantity,
                second_quantity=second_quantity,
                trend=classify_trend(first_revenue, second_revenue),
            )
        )
    return trends


__all__ = [
    "DECLINING_PERCENT",
    "LOW_ACTIVITY_RATIO",
    "STABLE_PERCENT",
    "attrition_alerts",
    "classify_attrition",
    "classify_quantity_change",
    "classify_trend",
    "compare_invoices",
    "period_trends",
]
