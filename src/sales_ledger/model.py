"""Domain models for vendor sales reconciliation.

These dataclasses represent the entities shared throughout the engine: the
canonical sales row, the result of a replace-by-month reconciliation, the
derived monthly aggregates, comparison reports and the upload summary handed
back to callers.
"""

from __future__ import annotations  # Postponed evaluation of annotations (PEP 563)

from dataclasses import dataclass, field  # Dataclass utilities
from typing import Any, Dict, Literal, Mapping, Tuple  # Constrained types for clarity

VendorKey = Literal[
    "alpine", "petes", "kehe", "vistar", "tonys", "troia", "mhd"
]  # Known distributors
GroupBy = Literal["customer", "product"]  # Comparator grouping key
SchemaName = Literal["new", "legacy", "compact"]  # Detected raw row layout
AttritionStatus = Literal["stopped", "declining", "low-activity"]
QuantityStatus = Literal["increased", "decreased", "no-change", "new", "discontinued"]
TrendStatus = Literal["increasing", "decreasing", "stable", "new", "lost"]
VendorStatus = Literal["ok", "truncated", "error"]  # Outcome of one vendor's batch
UploadStatus = Literal["success", "partial", "error", "rejected"]

MONTHS_PER_YEAR = 12
MonthGrid = Tuple[float, ...]  # 12 slots indexed by month-of-year (0-11)


@dataclass(frozen=True, slots=True)
class SalesRow:
    """One normalized line of a distributor sales report."""

    date: str  # YYYY-MM-DD, or "" when the source date was unusable
    customer: str
    product: str
    vendor_product_code: str  # Distributor's own item code
    our_item_code: str  # Internal item number ("" for legacy uploads)
    quantity: float  # Cases; never negative-by-parse-error, bad input is 0
    invoice_id: str
    source: str  # Free text naming the upload origin, used for vendor routing
    uploaded_at: str  # ISO timestamp of the upload batch
    revenue: float = 0.0  # Carried when the raw schema has a revenue slot

    def as_tuple(self) -> tuple:
        """Return the canonical 9-field tuple."""
        return (
            self.date,
            self.customer,
            self.product,
            self.vendor_product_code,
            self.our_item_code,
            self.quantity,
            self.invoice_id,
            self.source,
            self.uploaded_at,
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "customer": self.customer,
            "product": self.product,
            "vendor_product_code": self.vendor_product_code,
            "our_item_code": self.our_item_code,
            "quantity": self.quantity,
            "invoice_id": self.invoice_id,
            "source": self.source,
            "uploaded_at": self.uploaded_at,
            "revenue": self.revenue,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "SalesRow":
        """Rebuild a row from a stored mapping, tolerating missing keys."""

        def _text(name: str) -> str:
            value = record.get(name)
            return "" if value is None else str(value)

        def _number(name: str) -> float:
            try:
                return float(record.get(name) or 0)
            except (TypeError, ValueError):
                return 0.0

        return cls(
            date=_text("date"),
            customer=_text("customer"),
            product=_text("product"),
            vendor_product_code=_text("vendor_product_code"),
            our_item_code=_text("our_item_code"),
            quantity=_number("quantity"),
            invoice_id=_text("invoice_id"),
            source=_text("source"),
            uploaded_at=_text("uploaded_at"),
            revenue=_number("revenue"),
        )


@dataclass(frozen=True, slots=True)
class ReconcileResult:
    """Outcome of merging a batch into (or removing a month from) a ledger."""

    ledger: Tuple[SalesRow, ...]  # Updated full row-set for the vendor
    months: frozenset[str]  # Month keys replaced (or cleared)
    removed: int  # Prior rows dropped because their month was replaced
    added: int  # Rows appended from the new batch


@dataclass(frozen=True, slots=True)
class MonthlyAggregate:
    """Derived views recomputed from one vendor ledger snapshot."""

    latest_year: int | None  # None when the ledger has no usable rows
    monthly_totals: Dict[str, float]  # YYYY-MM -> quantity (every year present)
    customers_by_month: Dict[str, frozenset[str]]  # YYYY-MM -> customer cohort
    product_totals: Dict[Tuple[int, str, str, str], MonthGrid]  # (year, customer, product, code)
    customer_totals: Dict[Tuple[int, str], MonthGrid]  # (year, customer)
    new_customers: Tuple[Tuple[str, ...], ...]  # Names per month of latest_year
    lost_customers: Tuple[Tuple[str, ...], ...]

    @property
    def new_customer_counts(self) -> list[int]:
        return [len(names) for names in self.new_customers]

    @property
    def lost_customer_counts(self) -> list[int]:
        return [len(names) for names in self.lost_customers]

    def year_totals(self, year: int | None = None) -> list[float]:
        """Monthly totals for ``year`` (defaults to the latest year) as 12 slots."""
        year = self.latest_year if year is None else year
        totals = [0.0] * MONTHS_PER_YEAR
        if year is None:
            return totals
        for month in range(1, MONTHS_PER_YEAR + 1):
            totals[month - 1] = self.monthly_totals.get(f"{year}-{month:02d}", 0.0)
        return totals


@dataclass(frozen=True, slots=True)
class ProductLine:
    """Quantities for one (product, vendor code) under a hierarchy node."""

    product: str
    vendor_product_code: str
    our_item_code: str
    quantities: MonthGrid

    @property
    def total(self) -> float:
        return sum(self.quantities)


@dataclass(frozen=True, slots=True)
class HierarchyNode:
    """Main account with its sub-accounts, derived from customer names."""

    main_account: str
    sub_accounts: Dict[str, Tuple[ProductLine, ...]]
    direct_products: Tuple[ProductLine, ...]
    total_quantity: MonthGrid


@dataclass(frozen=True, slots=True)
class DeltaRow:
    """Per-key values for range A and range B of a comparison."""

    key: str
    a_revenue: float = 0.0
    b_revenue: float = 0.0
    a_quantity: float = 0.0
    b_quantity: float = 0.0

    @property
    def revenue_delta(self) -> float:
        return self.b_revenue - self.a_revenue

    @property
    def quantity_delta(self) -> float:
        return self.b_quantity - self.a_quantity

    @property
    def revenue_delta_percent(self) -> float:
        return percent_change(self.a_revenue, self.b_revenue)

    @property
    def quantity_delta_percent(self) -> float:
        return percent_change(self.a_quantity, self.b_quantity)


@dataclass(frozen=True, slots=True)
class DeltaReport:
    """Comparison of two month ranges grouped by customer or product."""

    group_by: GroupBy
    range_a: Tuple[str, str]
    range_b: Tuple[str, str]
    rows: Tuple[DeltaRow, ...]  # Sorted by descending absolute revenue delta
    total: DeltaRow


@dataclass(frozen=True, slots=True)
class AttritionAlert:
    customer: str
    previous_revenue: float
    current_revenue: float
    change_amount: float
    change_percent: float
    status: AttritionStatus
    last_activity: str  # Latest current-period date, "" when none
    products_purchased: Tuple[str, ...]


@dataclass(frozen=True, slots=True)
class InvoiceComparison:
    customer: str
    product: str
    previous_quantity: float
    current_quantity: float
    previous_revenue: float
    current_revenue: float
    status: QuantityStatus

    @property
    def quantity_change(self) -> float:
        return self.current_quantity - self.previous_quantity

    @property
    def revenue_change(self) -> float:
        return self.current_revenue - self.previous_revenue

    @property
    def change_percent(self) -> float:
        return percent_change(self.previous_revenue, self.current_revenue)


@dataclass(frozen=True, slots=True)
class PeriodTrend:
    customer: str
    first_revenue: float
    second_revenue: float
    first_quantity: float
    second_quantity: float
    trend: TrendStatus


@dataclass(slots=True)
class VendorResult:
    """Per-vendor outcome of an upload or administrative operation."""

    vendor: VendorKey
    status: VendorStatus = "ok"
    received: int = 0  # Rows routed to this vendor in the upload
    added: int = 0
    removed: int = 0
    stored: int = 0  # Ledger size after persisting
    months: list[str] = field(default_factory=list)
    error: str | None = None
    aggregate: MonthlyAggregate | None = None


@dataclass(slots=True)
class UploadSummary:
    """Batch-level report of one upload request."""

    status: UploadStatus
    total_rows: int = 0
    unclassified: int = 0  # Rows no vendor keyword matched
    vendors: list[VendorResult] = field(default_factory=list)
    note: str | None = None

    @property
    def added(self) -> int:
        return sum(result.added for result in self.vendors)

    @property
    def skipped(self) -> int:
        return self.total_rows - self.added


def percent_change(before: float, after: float) -> float:
    """Percent change from ``before`` to ``after``; 100 when starting from zero."""
    if before > 0:
        return (after - before) * 100 / before
    return 100.0 if after > 0 else 0.0


__all__ = [
    "AttritionAlert",
    "AttritionStatus",
    "DeltaReport",
    "DeltaRow",
    "GroupBy",
    "HierarchyNode",
    "InvoiceComparison",
    "MONTHS_PER_YEAR",
    "MonthGrid",
    "MonthlyAggregate",
    "PeriodTrend",
    "ProductLine",
    "QuantityStatus",
    "ReconcileResult",
    "SalesRow",
    "SchemaName",
    "TrendStatus",
    "UploadStatus",
    "UploadSummary",
    "VendorKey",
    "VendorResult",
    "VendorStatus",
    "percent_change",
]
