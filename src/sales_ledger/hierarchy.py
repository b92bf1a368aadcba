"""Two-level customer grouping derived from customer names.

Distributors report sub-accounts as ``"Main - Sub"`` or ``"Main: Sub"``. The
grouping is recomputed from names on every call; nothing about it is stored.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from sales_ledger.model import (
    MONTHS_PER_YEAR,
    HierarchyNode,
    ProductLine,
    SalesRow,
)
from sales_ledger.reconcile import month_key

SEPARATORS = (" - ", ": ")  # Checked in this order


def split_customer_name(name: str) -> Tuple[str, str | None]:
    """Return ``(main_account, sub_account)``; sub is ``None`` without a separator."""
    for separator in SEPARATORS:
        if separator in name:
            main, sub = name.split(separator, 1)
            main, sub = main.strip(), sub.strip()
            if not main:
                break
            return main, sub or None
    return name.strip(), None


class _ProductAccumulator:
    def __init__(self) -> None:
        self.lines: Dict[Tuple[str, str], List[float]] = {}
        self.item_codes: Dict[Tuple[str, str], str] = {}

    def add(self, row: SalesRow, month: int) -> None:
        key = (row.product, row.vendor_product_code)
        grid = self.lines.setdefault(key, [0.0] * MONTHS_PER_YEAR)
        grid[month - 1] += row.quantity
        if row.our_item_code:
            self.item_codes[key] = row.our_item_code

    def freeze(self) -> Tuple[ProductLine, ...]:
        return tuple(
            ProductLine(
                product=product,
                vendor_product_code=code,
                our_item_code=self.item_codes.get((product, code), ""),
                quantities=tuple(grid),
            )
            for (product, code), grid in sorted(self.lines.items())
        )


def build_customer_hierarchy(
    rows: Iterable[SalesRow], year: int
) -> Dict[str, HierarchyNode]:
    """Group ``year``'s rows into main accounts, sorted by account name."""
    totals: Dict[str, List[float]] = {}
    direct: Dict[str, _ProductAccumulator] = {}
    subs: Dict[str, Dict[str, _ProductAccumulator]] = {}

    for row in rows:
        key = month_key(row.date)
        if not key or int(key[:4]) != year or not row.customer or not row.product:
            continue
        month = int(key[5:])
        main, sub = split_customer_name(row.customer)

        totals.setdefault(main, [0.0] * MONTHS_PER_YEAR)[month - 1] += row.quantity
        if sub is None:
            direct.setdefault(main, _ProductAccumulator()).add(row, month)
        else:
            subs.setdefault(main, {}).setdefault(sub, _ProductAccumulator()).add(row, month)

    hierarchy: Dict[str, HierarchyNode] = {}
    for main in sorted(totals):
        hierarchy[main] = HierarchyNode(
            main_account=main,
            sub_accounts={
                sub: acc.freeze() for sub, acc in sorted(subs.get(main, {}).items())
            },
            direct_products=direct[main].freeze() if main in direct else (),
            total_quantity=tuple(totals[main]),
        )
    return hierarchy


__all__ = ["SEPARATORS", "build_customer_hierarchy", "split_customer_name"]
