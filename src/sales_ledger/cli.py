"""Command-line interface for the vendor sales ledger."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

from sales_ledger.compare import compare_ranges, drill_down
from sales_ledger.excel_reader import read_upload_rows
from sales_ledger.hierarchy import build_customer_hierarchy
from sales_ledger.reconcile import ledger_month_counts
from sales_ledger.report import (
    build_report_payload,
    serialise_delta_report,
    serialise_hierarchy,
    summary_text,
    write_report_to_json,
)
from sales_ledger.runner import (
    clear_all,
    clear_month,
    clear_vendor,
    load_ledger,
    process_upload,
)
from sales_ledger.settings import EngineSettings
from sales_ledger.store import StoreError
from sales_ledger.vendors import DISPLAY_NAMES, VENDOR_KEYS, resolve_vendor

DEFAULT_REPORT_NAME = "upload_report.json"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Reconcile distributor sales reports into per-vendor ledgers"
    )
    parser.add_argument("--store", help="Store directory or workbook path")
    parser.add_argument("--store-kind", choices=["json", "workbook"])
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    upload = commands.add_parser("upload", help="Reconcile an upload file")
    upload.add_argument("file", help="Upload rows as .xlsx or .csv")
    upload.add_argument("--sheet", help="Worksheet holding the rows")
    upload.add_argument("--token", help="Shared upload token")
    upload.add_argument("--output", help="Optional JSON report path")

    month = commands.add_parser("clear-month", help="Remove one month for a vendor")
    month.add_argument("vendor")
    month.add_argument("year", type=int)
    month.add_argument("month", type=int)

    vendor = commands.add_parser("clear-vendor", help="Remove all rows for a vendor")
    vendor.add_argument("vendor")

    commands.add_parser("clear-all", help="Remove all rows for every vendor")

    summary = commands.add_parser("summary", help="Rows per month for each vendor")
    summary.add_argument("vendor", nargs="?")

    compare = commands.add_parser("compare", help="Compare two month ranges")
    compare.add_argument("vendor")
    compare.add_argument("--by", choices=["customer", "product"], default="customer")
    compare.add_argument("--a", nargs=2, metavar=("START", "END"), required=True)
    compare.add_argument("--b", nargs=2, metavar=("START", "END"), required=True)
    compare.add_argument("--customer", help="Drill into one customer's products")
    compare.add_argument("--output", help="Optional JSON output path")

    tree = commands.add_parser("hierarchy", help="Customer accounts for one year")
    tree.add_argument("vendor")
    tree.add_argument("year", type=int)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = EngineSettings.from_env()
    if args.store:
        settings = replace(settings, store_path=args.store)
    if args.store_kind:
        settings = replace(settings, store_kind=args.store_kind)
    store = settings.open_store()

    if args.command == "upload":
        raw_rows = read_upload_rows(Path(args.file), sheet_name=args.sheet)
        summary = process_upload(store, raw_rows, token=args.token, settings=settings)
        path = write_report_to_json(
            build_report_payload(summary), Path(args.output or DEFAULT_REPORT_NAME)
        )
        print(summary_text(summary))
        print(f"Report written to {path}")
        return 0 if summary.status in ("success", "partial") else 1

    if args.command == "clear-month":
        result = clear_month(store, args.vendor, args.year, args.month, settings)
        print(f"{DISPLAY_NAMES[result.vendor]}: removed {result.removed} rows")
        return 0 if result.status != "error" else 1

    if args.command == "clear-vendor":
        result = clear_vendor(store, args.vendor, settings)
        print(f"{DISPLAY_NAMES[result.vendor]}: removed {result.removed} rows")
        return 0 if result.status != "error" else 1

    if args.command == "clear-all":
        results = clear_all(store, settings)
        print(f"Cleared {sum(r.removed for r in results)} rows across all vendors")
        return 0 if all(r.status != "error" for r in results) else 1

    if args.command == "summary":
        vendors = [resolve_vendor(args.vendor)] if args.vendor else list(VENDOR_KEYS)
        exit_code = 0
        for vendor in vendors:
            try:
                ledger = load_ledger(store, vendor, settings)
            except StoreError as exc:
                print(f"{DISPLAY_NAMES[vendor]}: could not read ledger ({exc})")
                exit_code = 1
                continue
            if not ledger:
                print(f"{DISPLAY_NAMES[vendor]}: No data uploaded")
                continue
            print(f"{DISPLAY_NAMES[vendor]}: {len(ledger)} total rows")
            for month, count in ledger_month_counts(ledger).items():
                print(f"  {month}: {count} rows")
        return exit_code

    vendor = resolve_vendor(args.vendor)
    try:
        ledger = load_ledger(store, vendor, settings)
    except StoreError as exc:
        print(f"{DISPLAY_NAMES[vendor]}: could not read ledger ({exc})")
        return 1
    if args.command == "compare":
        if args.customer:
            report = drill_down(ledger, args.customer, args.a, args.b)
        else:
            report = compare_ranges(ledger, args.by, args.a, args.b)
        payload = serialise_delta_report(report)
    else:
        payload = serialise_hierarchy(build_customer_hierarchy(ledger, args.year))

    if getattr(args, "output", None):
        print(f"Report written to {write_report_to_json(payload, Path(args.output))}")
    else:
        print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":  # pragma: no cover - manual invocation
    sys.exit(main())
