from __future__ import annotations

import logging
import time
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Sequence, TypeVar

from sales_ledger.aggregate import aggregate
from sales_ledger.model import (
    SalesRow,
    UploadSummary,
    VendorKey,
    VendorResult,
)
from sales_ledger.normalize import normalize_rows
from sales_ledger.reconcile import reconcile_ledger, remove_month, retain_recent
from sales_ledger.settings import EngineSettings
from sales_ledger.store import (
    LedgerPersistError,
    PayloadTooLargeError,
    RecordStore,
    StoreError,
    TransientStoreError,
)
from sales_ledger.vendors import VENDOR_KEYS, bucket_by_vendor, resolve_vendor

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _with_retries(
    settings: EngineSettings, description: str, action: Callable[..., T], *args: Any
) -> T:
    """Call ``action`` and retry transient store errors with exponential backoff."""
    attempts = max(1, settings.retry_attempts)
    delay = settings.retry_backoff
    for attempt in range(1, attempts + 1):
        try:
            return action(*args)
        except TransientStoreError as exc:
            if attempt == attempts:
                raise
            logger.warning(
                "%s failed (attempt %d/%d): %s; retrying in %.1fs",
                description,
                attempt,
                attempts,
                exc,
                delay,
            )
            time.sleep(delay)
            delay *= 2
    raise AssertionError("unreachable")  # pragma: no cover


def load_ledger(
    store: RecordStore, vendor: VendorKey, settings: EngineSettings | None = None
) -> List[SalesRow]:
    settings = settings or EngineSettings()
    return _with_retries(settings, f"Reading {vendor} ledger", store.get_ledger, vendor)


def persist_ledger(
    store: RecordStore,
    vendor: VendorKey,
    rows: Sequence[SalesRow],
    settings: EngineSettings | None = None,
    *,
    today: date | None = None,
) -> tuple[tuple[SalesRow, ...], bool]:
    """Replace the vendor's stored ledger with ``rows``.

    Returns the rows actually stored and whether the retention fallback was
    applied. Raises :class:`LedgerPersistError` when nothing could be stored.
    """
    settings = settings or EngineSettings()
    rows = tuple(rows)
    description = f"Storing {vendor} ledger"
    try:
        _with_retries(settings, description, store.put_ledger, vendor, rows)
        logger.info("Stored %d rows for %s", len(rows), vendor)
        return rows, False
    except PayloadTooLargeError as exc:
        recent = retain_recent(rows, settings.retention_years, today)
        logger.warning(
            "Ledger for %s too large to store (%s); retention fallback keeps the last "
            "%d years: %d of %d rows",
            vendor,
            exc,
            settings.retention_years,
            len(recent),
            len(rows),
        )
        try:
            _with_retries(settings, description, store.put_ledger, vendor, recent)
        except StoreError as retry_exc:
            raise LedgerPersistError(
                f"Failed to store even recent data for {vendor}: {retry_exc}"
            ) from retry_exc
        logger.info("Stored %d recent rows for %s (retention fallback)", len(recent), vendor)
        return recent, True
    except StoreError as exc:
        raise LedgerPersistError(f"Failed to store {vendor} ledger: {exc}") from exc


def _failed(result: VendorResult, exc: StoreError) -> VendorResult:
    logger.error("Could not persist %s ledger: %s", result.vendor, exc)
    result.status = "error"
    result.error = str(exc)
    return result


def reconcile_vendor(
    store: RecordStore,
    vendor: VendorKey,
    batch: Sequence[SalesRow],
    settings: EngineSettings | None = None,
    *,
    today: date | None = None,
) -> VendorResult:
    """Read, merge, store and re-aggregate one vendor's ledger.

    Store failures are reported on the result; the previously stored ledger is
    left as it was.
    """
    settings = settings or EngineSettings()
    result = VendorResult(vendor=vendor, received=len(batch))
    if not batch:
        return result

    try:
        existing = load_ledger(store, vendor, settings)
        merged = reconcile_ledger(existing, batch)
        stored, truncated = persist_ledger(store, vendor, merged.ledger, settings, today=today)
    except StoreError as exc:
        return _failed(result, exc)

    result.status = "truncated" if truncated else "ok"
    if truncated:
        # Batch rows outside the retention window were not stored either
        result.added = len(retain_recent(batch, settings.retention_years, today))
    else:
        result.added = merged.added
    result.removed = merged.removed
    result.stored = len(stored)
    result.months = sorted(merged.months)
    result.aggregate = aggregate(stored)
    return result


def _rejected(note: str) -> UploadSummary:
    logger.warning("Upload rejected: %s", note)
    return UploadSummary(status="rejected", note=note)


def process_upload(
    store: RecordStore,
    raw_rows: Sequence[Sequence[Any]],
    *,
    uploaded_at: str | None = None,
    token: str | None = None,
    settings: EngineSettings | None = None,
    today: date | None = None,
) -> UploadSummary:
    """Normalize, route and reconcile one upload batch.

    A failure for one vendor does not stop the others; it shows up as an
    ``error`` entry in the summary.
    """
    settings = settings or EngineSettings()

    # 1. Input contract checks, before anything touches the store
    if settings.upload_token is not None and token != settings.upload_token:
        return _rejected("Unauthorized")
    if not raw_rows:
        return _rejected("No rows")

    # 2. Normalize and route rows to vendors
    stamp = uploaded_at or datetime.now(timezone.utc).isoformat()
    rows = normalize_rows(raw_rows, uploaded_at=stamp)
    buckets, unclassified = bucket_by_vendor(rows)
    if unclassified:
        logger.warning("%d rows matched no known vendor and were skipped", len(unclassified))

    # 3. Reconcile each vendor independently
    results: List[VendorResult] = [
        reconcile_vendor(store, vendor, buckets[vendor], settings, today=today)
        for vendor in VENDOR_KEYS
        if buckets[vendor]
    ]

    failures = [r for r in results if r.status == "error"]
    if not failures:
        status = "success"
    elif len(failures) == len(results):
        status = "error"
    else:
        status = "partial"

    note = None
    if not results:
        note = "No rows matched a known vendor"
    elif failures:
        note = "; ".join(f"{r.vendor}: {r.error}" for r in failures)

    return UploadSummary(
        status=status,
        total_rows=len(rows),
        unclassified=len(unclassified),
        vendors=results,
        note=note,
    )


def clear_month(
    store: RecordStore,
    vendor: str,
    year: int,
    month: int,
    settings: EngineSettings | None = None,
    *,
    today: date | None = None,
) -> VendorResult:
    """Remove one calendar month from a vendor ledger and re-aggregate."""
    settings = settings or EngineSettings()
    key = resolve_vendor(vendor)
    result = VendorResult(vendor=key)
    try:
        existing = load_ledger(store, key, settings)
        cleared = remove_month(existing, year, month)
        if cleared.removed:
            stored, truncated = persist_ledger(
                store, key, cleared.ledger, settings, today=today
            )
        else:
            stored, truncated = cleared.ledger, False  # Nothing to rewrite
    except StoreError as exc:
        return _failed(result, exc)

    logger.info("Cleared %d rows for %s %s", cleared.removed, key, ", ".join(cleared.months))
    result.status = "truncated" if truncated else "ok"
    result.removed = cleared.removed
    result.stored = len(stored)
    result.months = sorted(cleared.months)
    result.aggregate = aggregate(stored)
    return result


def clear_vendor(
    store: RecordStore, vendor: str, settings: EngineSettings | None = None
) -> VendorResult:
    """Empty a vendor ledger; the recomputed aggregate is empty too."""
    settings = settings or EngineSettings()
    key = resolve_vendor(vendor)
    result = VendorResult(vendor=key)
    try:
        existing = load_ledger(store, key, settings)
        _with_retries(settings, f"Deleting {key} ledger", store.delete_ledger, key)
    except StoreError as exc:
        return _failed(result, exc)

    logger.info("Cleared all %d rows for %s", len(existing), key)
    result.removed = len(existing)
    result.aggregate = aggregate([])
    return result


def clear_all(
    store: RecordStore, settings: EngineSettings | None = None
) -> List[VendorResult]:
    results = [clear_vendor(store, vendor, settings) for vendor in VENDOR_KEYS]
    logger.info(
        "Cleared all data: %d total rows across all vendors",
        sum(r.removed for r in results),
    )
    return results


def load_aggregates(
    store: RecordStore, settings: EngineSettings | None = None
) -> Dict[VendorKey, VendorResult]:
    """Aggregate every vendor ledger as currently stored.

    A vendor whose ledger cannot be read gets an ``error`` result; the others
    are still aggregated.
    """
    settings = settings or EngineSettings()
    results: Dict[VendorKey, VendorResult] = {}
    for vendor in VENDOR_KEYS:
        result = VendorResult(vendor=vendor)
        try:
            ledger = load_ledger(store, vendor, settings)
        except StoreError as exc:
            logger.error("Could not read %s ledger: %s", vendor, exc)
            result.status = "error"
            result.error = str(exc)
        else:
            result.stored = len(ledger)
            result.aggregate = aggregate(ledger)
        results[vendor] = result
    return results


__all__ = [
    "clear_all",
    "clear_month",
    "clear_vendor",
    "load_aggregates",
    "load_ledger",
    "persist_ledger",
    "process_upload",
    "reconcile_vendor",
]
