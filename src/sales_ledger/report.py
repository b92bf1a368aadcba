from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Mapping

from sales_ledger.model import (
    DeltaReport,
    DeltaRow,
    HierarchyNode,
    MonthlyAggregate,
    ProductLine,
    UploadSummary,
    VendorResult,
)
from sales_ledger.vendors import DISPLAY_NAMES, VENDOR_KEYS


def iso_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def serialise_aggregate(result: MonthlyAggregate) -> Dict[str, Any]:
    return {
        "latest_year": result.latest_year,
        "monthly_totals": dict(result.monthly_totals),
        "latest_year_totals": result.year_totals(),
        "customers_by_month": {
            month: sorted(customers)
            for month, customers in result.customers_by_month.items()
        },
        "customer_totals": [
            {"year": year, "customer": customer, "quantities": list(grid)}
            for (year, customer), grid in result.customer_totals.items()
        ],
        "product_totals": [
            {
                "year": year,
                "customer": customer,
                "product": product,
                "vendor_product_code": code,
                "quantities": list(grid),
            }
            for (year, customer, product, code), grid in result.product_totals.items()
        ],
        "new_customers": [list(names) for names in result.new_customers],
        "lost_customers": [list(names) for names in result.lost_customers],
    }


def _serialise_vendor(result: VendorResult) -> Dict[str, Any]:
    return {
        "vendor": result.vendor,
        "name": DISPLAY_NAMES[result.vendor],
        "status": result.status,
        "received": result.received,
        "added": result.added,
        "removed": result.removed,
        "stored": result.stored,
        "months": list(result.months),
        "error": result.error,
    }


def build_report_payload(summary: UploadSummary) -> Dict[str, Any]:
    """Build the JSON payload for one upload."""
    return {
        "status": summary.status,
        "timestamp": iso_timestamp(),
        "total_rows": summary.total_rows,
        "added": summary.added,
        "skipped": summary.skipped,
        "unclassified": summary.unclassified,
        "vendors": [_serialise_vendor(r) for r in summary.vendors],
        "summary": summary_text(summary),
        "note": summary.note,
    }


def summary_text(summary: UploadSummary) -> str:
    """One-line operator summary, e.g. ``OK: Alpine +12, ... , skipped 3``."""
    if summary.status == "rejected":
        return f"Rejected: {summary.note}"

    by_vendor = {r.vendor: r for r in summary.vendors}
    parts = []
    for vendor in VENDOR_KEYS:
        result = by_vendor.get(vendor)
        if result is not None and result.status == "error":
            parts.append(f"{DISPLAY_NAMES[vendor]} failed")
        else:
            parts.append(f"{DISPLAY_NAMES[vendor]} +{result.added if result else 0}")
    prefix = "OK" if summary.status == "success" else summary.status.capitalize()
    return f"{prefix}: {', '.join(parts)}, skipped {summary.skipped}"


def _serialise_delta(row: DeltaRow) -> Dict[str, Any]:
    return {
        "key": row.key,
        "a_revenue": row.a_revenue,
        "b_revenue": row.b_revenue,
        "revenue_delta": row.revenue_delta,
        "revenue_delta_percent": row.revenue_delta_percent,
        "a_quantity": row.a_quantity,
        "b_quantity": row.b_quantity,
        "quantity_delta": row.quantity_delta,
        "quantity_delta_percent": row.quantity_delta_percent,
    }


def serialise_delta_report(report: DeltaReport) -> Dict[str, Any]:
    return {
        "group_by": report.group_by,
        "range_a": list(report.range_a),
        "range_b": list(report.range_b),
        "rows": [_serialise_delta(row) for row in report.rows],
        "total": _serialise_delta(report.total),
    }


def _serialise_product(line: ProductLine) -> Dict[str, Any]:
    return {
        "product": line.product,
        "vendor_product_code": line.vendor_product_code,
        "our_item_code": line.our_item_code,
        "quantities": list(line.quantities),
        "total": line.total,
    }


def serialise_hierarchy(hierarchy: Mapping[str, HierarchyNode]) -> Dict[str, Any]:
    return {
        main: {
            "total_quantity": list(node.total_quantity),
            "direct_products": [_serialise_product(p) for p in node.direct_products],
            "sub_accounts": {
                sub: [_serialise_product(p) for p in products]
                for sub, products in node.sub_accounts.items()
            },
        }
        for main, node in hierarchy.items()
    }


def write_report_to_json(payload: Mapping[str, Any], output_path: Path) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)

    return output_path


__all__ = [
    "build_report_payload",
    "iso_timestamp",
    "serialise_aggregate",
    "serialise_delta_report",
    "serialise_hierarchy",
    "summary_text",
    "write_report_to_json",
]
