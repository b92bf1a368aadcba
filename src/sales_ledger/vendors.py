"""Vendor routing by the free-text ``source`` field of a sales row."""

from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from sales_ledger.model import SalesRow, VendorKey

# Priority order: the first entry whose keyword occurs in the source wins.
VENDOR_TABLE: Tuple[Tuple[VendorKey, str, Tuple[str, ...]], ...] = (
    ("alpine", "Alpine", ("alpine",)),
    ("petes", "Pete's Coffee", ("pete",)),
    ("kehe", "KeHe", ("kehe",)),
    ("vistar", "Vistar", ("vistar",)),
    ("tonys", "Tony's Fine Foods", ("tony",)),
    ("troia", "Troia Foods", ("troia",)),
    ("mhd", "Mike Hudson", ("mhd", "mike hudson")),
)

VENDOR_KEYS: Tuple[VendorKey, ...] = tuple(key for key, _, _ in VENDOR_TABLE)
DISPLAY_NAMES: Dict[VendorKey, str] = {key: name for key, name, _ in VENDOR_TABLE}


def classify_source(source: str) -> VendorKey | None:
    """Return the vendor whose keywords appear in ``source``, or ``None``."""
    text = (source or "").lower()
    for key, _, keywords in VENDOR_TABLE:
        if any(keyword in text for keyword in keywords):
            return key
    return None


def bucket_by_vendor(
    rows: Iterable[SalesRow],
) -> Tuple[Dict[VendorKey, List[SalesRow]], List[SalesRow]]:
    """Split rows into per-vendor buckets plus the rows no vendor claimed."""
    buckets: Dict[VendorKey, List[SalesRow]] = {key: [] for key in VENDOR_KEYS}
    unclassified: List[SalesRow] = []
    for row in rows:
        vendor = classify_source(row.source)
        if vendor is None:
            unclassified.append(row)
        else:
            buckets[vendor].append(row)
    return buckets, unclassified


def resolve_vendor(name: str) -> VendorKey:
    """Map a vendor key or display name (any case) to its key."""
    wanted = (name or "").strip().lower()
    for key, display, _ in VENDOR_TABLE:
        if wanted in (key, display.lower()):
            return key
    raise ValueError(f"Unknown vendor: {name!r}")


__all__ = [
    "DISPLAY_NAMES",
    "VENDOR_KEYS",
    "VENDOR_TABLE",
    "bucket_by_vendor",
    "classify_source",
    "resolve_vendor",
]
