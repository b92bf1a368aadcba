"""Tests for reading raw upload rows from workbooks and CSV files."""

from datetime import datetime
from pathlib import Path

import pytest
from openpyxl import Workbook

from sales_ledger.excel_reader import read_upload_rows
from sales_ledger.normalize import normalize_rows

HEADER = ["Date", "Customer", "Product", "Code", "Qty", "Invoice", "Source", "Uploaded"]


def test_read_workbook_with_header(tmp_path):
    """The header row is dropped and rows are cut to the header width."""
    workbook_path = tmp_path / "upload.xlsx"
    wb = Workbook()
    ws = wb.active
    ws.title = "Sheet1"
    ws.append(HEADER)
    ws.append([datetime(2025, 1, 5), "Acme", "Widget", "W1", 5, 1001, "Alpine", None])
    ws.append([None] * 8)
    ws.append([datetime(2025, 2, 6), "Beta", "Gadget", "G1", 2, 1002, "KeHe", None])
    wb.save(workbook_path)

    rows = read_upload_rows(workbook_path)

    assert len(rows) == 2
    assert all(len(row) == 8 for row in rows)
    normalized = normalize_rows(rows, uploaded_at="2025-06-01T00:00:00+00:00")
    assert normalized[0].date == "2025-01-05"
    assert normalized[0].invoice_id == "1001"
    assert normalized[1].source == "KeHe"


def test_read_csv_without_header(tmp_path):
    csv_path = tmp_path / "upload.csv"
    csv_path.write_text(
        "2025-01-05,Acme,Widget,W1,5,INV1,Alpine,\n"
        "2025-01-06,Beta,Widget,W1,3,INV2,Vistar,\n",
        encoding="utf-8",
    )

    rows = read_upload_rows(csv_path)

    assert [row[1] for row in rows] == ["Acme", "Beta"]
    assert all(len(row) == 7 for row in rows)


def test_first_row_with_bad_date_is_kept_as_data(tmp_path):
    """A leading data row with an unusable date is not mistaken for a header."""
    csv_path = tmp_path / "upload.csv"
    csv_path.write_text(
        "N/A,Acme,Widget,W1,5,INV1,Alpine,\n"
        "2025-01-06,Beta,Widget,W1,3,INV2,Alpine,\n",
        encoding="utf-8",
    )

    rows = read_upload_rows(csv_path)

    assert len(rows) == 2
    normalized = normalize_rows(rows, uploaded_at="2025-06-01T00:00:00+00:00")
    assert normalized[0].date == ""
    assert normalized[0].customer == "Acme"
    assert normalized[0].quantity == 5.0


def test_uploads_sheet_is_preferred(tmp_path):
    workbook_path = tmp_path / "upload.xlsx"
    wb = Workbook()
    wb.active.title = "notes"
    wb.active.append(["Prepared by", "ops"])
    uploads = wb.create_sheet("uploads")
    uploads.append(HEADER)
    uploads.append(["2025-03-01", "Acme", "Widget", "W1", 1, "INV1", "Troia", None])
    wb.save(workbook_path)

    rows = read_upload_rows(workbook_path)

    assert rows[0][:2] == ["2025-03-01", "Acme"]


def test_read_upload_rows_missing_file():
    """Expect FileNotFoundError for invalid path."""
    with pytest.raises(FileNotFoundError):
        read_upload_rows(Path("nonexistent.xlsx"))


def test_read_upload_rows_missing_sheet(tmp_path):
    """Expect ValueError when the requested worksheet is not found."""
    workbook_path = tmp_path / "bad.xlsx"
    wb = Workbook()
    wb.create_sheet("wrong_sheet")
    wb.save(workbook_path)

    with pytest.raises(ValueError):
        read_upload_rows(workbook_path, sheet_name="uploads")
