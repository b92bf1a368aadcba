"""Workbook-backed record store.

Each vendor ledger is a table in its own worksheet of one ``.xlsx`` file: a
header row naming the columns, then one row per sales line. Reads go through
``openpyxl`` in read-only mode; writes rebuild the vendor's sheet in full.
"""

from __future__ import annotations

import logging
from pathlib import Path  # Filesystem path management
from typing import List, Sequence

from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from sales_ledger.model import SalesRow
from sales_ledger.store import PayloadTooLargeError, StoreError, TransientStoreError

logger = logging.getLogger(__name__)

COLUMNS = (
    "date",
    "customer",
    "product",
    "vendor_product_code",
    "our_item_code",
    "quantity",
    "invoice_id",
    "source",
    "uploaded_at",
    "revenue",
)
EXCEL_MAX_ROWS = 1_048_576  # Worksheet limit, header row included


class WorkbookStore:
    def __init__(self, workbook_path: Path | str, max_rows: int | None = None) -> None:
        self.workbook_path = Path(workbook_path)
        self.max_rows = max_rows if max_rows is not None else EXCEL_MAX_ROWS - 1

    def _open(self, read_only: bool):
        try:
            return load_workbook(
                filename=self.workbook_path, read_only=read_only, data_only=True
            )
        except OSError as exc:
            raise TransientStoreError(f"Could not open {self.workbook_path}: {exc}") from exc
        except InvalidFileException as exc:
            raise StoreError(f"{self.workbook_path} is not a workbook") from exc

    def _save(self, workbook) -> None:
        try:
            self.workbook_path.parent.mkdir(parents=True, exist_ok=True)
            workbook.save(self.workbook_path)
        except OSError as exc:
            raise TransientStoreError(f"Could not save {self.workbook_path}: {exc}") from exc

    def get_ledger(self, vendor: str) -> List[SalesRow]:
        if not self.workbook_path.exists():
            return []

        workbook = self._open(read_only=True)
        try:
            if vendor not in workbook.sheetnames:
                return []
            rows = workbook[vendor].iter_rows(values_only=True)
            headers_row = next(rows, None)  # First row holds the column names
            if headers_row is None:
                return []

            headers = [str(h).strip() if h is not None else "" for h in headers_row]
            header_index = {header: idx for idx, header in enumerate(headers)}

            ledger: List[SalesRow] = []
            for row in rows:
                if all(value is None for value in row):
                    continue  # Skip blank rows left by manual edits
                record = {
                    name: row[idx]
                    for name, idx in header_index.items()
                    if name in COLUMNS and idx < len(row)
                }
                ledger.append(SalesRow.from_record(record))
            return ledger
        finally:
            workbook.close()  # Always close the workbook handle

    def put_ledger(self, vendor: str, rows: Sequence[SalesRow]) -> None:
        if len(rows) > self.max_rows:
            raise PayloadTooLargeError(
                f"{len(rows)} rows exceed the {self.max_rows}-row sheet limit for {vendor}"
            )

        if self.workbook_path.exists():
            workbook = self._open(read_only=False)
        else:
            workbook = Workbook()
            workbook.remove(workbook.active)

        # Build the replacement before dropping the old sheet so the workbook
        # never ends up without worksheets.
        sheet = workbook.create_sheet(f"{vendor}.new")
        sheet.append(list(COLUMNS))
        for row in rows:
            record = row.to_record()
            sheet.append([record[name] for name in COLUMNS])
        if vendor in workbook.sheetnames:
            workbook.remove(workbook[vendor])
        sheet.title = vendor

        self._save(workbook)
        logger.debug("Wrote %d rows to sheet %s of %s", len(rows), vendor, self.workbook_path)

    def delete_ledger(self, vendor: str) -> None:
        if not self.workbook_path.exists():
            return
        workbook = self._open(read_only=False)
        if vendor not in workbook.sheetnames:
            return
        if len(workbook.sheetnames) == 1:
            try:
                self.workbook_path.unlink()
            except OSError as exc:
                raise TransientStoreError(
                    f"Could not delete {self.workbook_path}: {exc}"
                ) from exc
            return
        workbook.remove(workbook[vendor])
        self._save(workbook)


__all__ = ["COLUMNS", "EXCEL_MAX_ROWS", "WorkbookStore"]
