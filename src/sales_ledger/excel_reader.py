"""Raw upload rows from spreadsheet and CSV exports.

Parsers for each distributor's report format produce a flat table in one of the
layouts :mod:`sales_ledger.normalize` understands. This module reads such a
table from an ``.xlsx`` workbook (via ``openpyxl``) or a ``.csv`` file and
returns the rows as lists of raw cell values, ready for normalization.
"""

from __future__ import annotations

import csv
from pathlib import Path  # Filesystem path management
from typing import Any, Iterable, List, Sequence

from openpyxl import load_workbook  # Excel file loader

DEFAULT_SHEET = "uploads"


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _looks_like_header(row: Sequence[Any]) -> bool:
    """A header row starts with a "date" label or holds only digit-free text.

    Data rows always carry a quantity, so a bad date alone never makes one.
    """
    cells = [value for value in row if not _is_blank(value)]
    if not cells:
        return False
    if str(row[0]).strip().lower() == "date":
        return True
    return all(
        isinstance(value, str) and not any(ch.isdigit() for ch in value)
        for value in cells
    )


def _width(row: Sequence[Any]) -> int:
    width = len(row)
    while width and _is_blank(row[width - 1]):
        width -= 1
    return width


def _collect(rows: Iterable[Sequence[Any]]) -> List[List[Any]]:
    """Cut every row to the table width so schema detection sees real columns."""
    materialized = [list(row) for row in rows]
    if not materialized:
        return []

    if _looks_like_header(materialized[0]):
        width = _width(materialized[0])
        data = materialized[1:]
    else:
        width = max(_width(row) for row in materialized)
        data = materialized

    table: List[List[Any]] = []
    for row in data:
        if all(_is_blank(value) for value in row):
            continue  # Skip spacer rows
        cells = row[:width]
        cells.extend([None] * (width - len(cells)))
        table.append(cells)
    return table


def read_upload_rows(path: Path | str, sheet_name: str | None = None) -> List[List[Any]]:
    """Return raw upload rows from ``path`` (``.xlsx`` or ``.csv``).

    Raises :class:`FileNotFoundError` when the file is missing and
    :class:`ValueError` when a requested worksheet does not exist.
    """
    path = Path(path)  # Ensure we have a Path instance
    if not path.exists():
        raise FileNotFoundError(f"Upload file not found: {path}")

    if path.suffix.lower() == ".csv":
        with path.open("r", encoding="utf-8-sig", newline="") as f:
            return _collect(csv.reader(f))

    workbook = load_workbook(filename=path, read_only=True, data_only=True)
    try:
        if sheet_name is not None:
            try:
                sheet = workbook[sheet_name]
            except KeyError as exc:
                raise ValueError(f"Worksheet '{sheet_name}' not found in workbook") from exc
        elif DEFAULT_SHEET in workbook.sheetnames:
            sheet = workbook[DEFAULT_SHEET]
        else:
            sheet = workbook.worksheets[0]
        return _collect(sheet.iter_rows(values_only=True))
    finally:
        workbook.close()  # Always close the workbook handle


__all__ = ["DEFAULT_SHEET", "read_upload_rows"]
