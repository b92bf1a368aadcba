"""Record store interface and the document-style implementations.

The engine needs three operations per vendor: fetch the whole ledger, replace
the whole ledger, and delete it. Stores signal retryable trouble with
:class:`TransientStoreError` and oversized writes with
:class:`PayloadTooLargeError`; anything else is a plain :class:`StoreError`.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Protocol, Sequence

from sales_ledger.model import SalesRow

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Base class for record store failures."""


class TransientStoreError(StoreError):
    """A failure worth retrying (I/O hiccup, busy backend)."""


class PayloadTooLargeError(StoreError):
    """The ledger does not fit in the store's size limit."""


class LedgerPersistError(StoreError):
    """A ledger could not be written even after retries and truncation."""


class RecordStore(Protocol):
    def get_ledger(self, vendor: str) -> List[SalesRow]:
        ...

    def put_ledger(self, vendor: str, rows: Sequence[SalesRow]) -> None:
        ...

    def delete_ledger(self, vendor: str) -> None:
        ...


class InMemoryStore:
    """Dictionary-backed store, optionally capped at ``max_rows`` per ledger."""

    def __init__(self, max_rows: int | None = None) -> None:
        self.max_rows = max_rows
        self._ledgers: Dict[str, tuple[SalesRow, ...]] = {}

    def get_ledger(self, vendor: str) -> List[SalesRow]:
        return list(self._ledgers.get(vendor, ()))

    def put_ledger(self, vendor: str, rows: Sequence[SalesRow]) -> None:
        if self.max_rows is not None and len(rows) > self.max_rows:
            raise PayloadTooLargeError(
                f"{len(rows)} rows exceed the {self.max_rows}-row limit for {vendor}"
            )
        self._ledgers[vendor] = tuple(rows)

    def delete_ledger(self, vendor: str) -> None:
        self._ledgers.pop(vendor, None)


class JsonDocumentStore:
    """One JSON document per vendor inside ``directory``.

    ``max_bytes`` mimics the per-document size limit of hosted document
    databases.
    """

    def __init__(self, directory: Path | str, max_bytes: int | None = None) -> None:
        self.directory = Path(directory)
        self.max_bytes = max_bytes

    def _path(self, vendor: str) -> Path:
        return self.directory / f"{vendor}.json"

    def get_ledger(self, vendor: str) -> List[SalesRow]:
        path = self._path(vendor)
        if not path.exists():
            return []
        try:
            with path.open("r", encoding="utf-8") as f:
                payload = json.load(f)
        except OSError as exc:
            raise TransientStoreError(f"Could not read {path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise StoreError(f"Ledger document {path} is not valid JSON") from exc
        return [SalesRow.from_record(record) for record in payload.get("rows", [])]

    def put_ledger(self, vendor: str, rows: Sequence[SalesRow]) -> None:
        document = json.dumps(
            {"vendor": vendor, "rows": [row.to_record() for row in rows]}, indent=2
        )
        size = len(document.encode("utf-8"))
        if self.max_bytes is not None and size > self.max_bytes:
            raise PayloadTooLargeError(
                f"{vendor} ledger is {size} bytes, limit is {self.max_bytes}"
            )

        path = self._path(vendor)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as f:
                f.write(document)
            tmp_path.replace(path)
        except OSError as exc:
            raise TransientStoreError(f"Could not write {path}: {exc}") from exc
        logger.debug("Wrote %d rows to %s", len(rows), path)

    def delete_ledger(self, vendor: str) -> None:
        try:
            self._path(vendor).unlink(missing_ok=True)
        except OSError as exc:
            raise TransientStoreError(f"Could not delete {vendor} ledger: {exc}") from exc


__all__ = [
    "InMemoryStore",
    "JsonDocumentStore",
    "LedgerPersistError",
    "PayloadTooLargeError",
    "RecordStore",
    "StoreError",
    "TransientStoreError",
]
