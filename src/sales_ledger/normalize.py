"""Row normalizer for raw upload rows.

Upload adapters hand over each sales line as an ordered list of cell values.
Three layouts are in circulation and are told apart by length:

``new`` (10+ fields)
    date, customer, product, vendor code, our item code, quantity, revenue,
    invoice id, source, uploaded at
``legacy`` (9 fields)
    date, customer, product, vendor code, quantity, revenue, invoice id,
    source, uploaded at
``compact`` (fewer than 9 fields)
    date, customer, product, vendor code, quantity, invoice id, source,
    uploaded at

Normalization never raises: unusable dates become ``""`` and unusable numbers
become ``0``.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timezone
from typing import Any, Iterable, List, Sequence

from dateutil import parser as date_parser
from openpyxl.utils.datetime import from_excel

from sales_ledger.model import SalesRow, SchemaName

_NUMBER_NOISE = re.compile(r"[$€£¥,\s]")
_MISSING_FIELDS = datetime(2000, 1, 1)  # Month and day left out of a date string become 1


def detect_schema(raw: Sequence[Any]) -> SchemaName:
    if len(raw) >= 10:
        return "new"
    if len(raw) == 9:
        return "legacy"
    return "compact"


def to_ymd(value: Any) -> str:
    """Return ``value`` as a ``YYYY-MM-DD`` calendar day, or "" if unusable.

    Datetimes keep their own calendar fields; no timezone conversion happens,
    so ``2025-06-01T00:00:00Z`` stays on June 1st. Numbers are spreadsheet
    serial days.
    """
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (int, float)):
        if not value > 0 or math.isinf(value):
            return ""
        try:
            converted = from_excel(value)
        except (ValueError, OverflowError, TypeError):
            return ""
        return converted.date().isoformat() if isinstance(converted, datetime) else ""

    text = str(value).strip()
    if not text or not any(ch.isdigit() for ch in text):
        return ""
    try:
        parsed = date_parser.parse(text, default=_MISSING_FIELDS)
    except (ValueError, OverflowError):
        return ""
    return parsed.date().isoformat()


def to_number(value: Any) -> float:
    """Parse a quantity or amount, stripping currency symbols and commas."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = _NUMBER_NOISE.sub("", str(value))
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))  # Spreadsheet ids arrive as 1001.0
    return str(value).strip()


def _field(raw: Sequence[Any], index: int) -> Any:
    return raw[index] if index < len(raw) else None


def normalize_row(raw: Sequence[Any], *, uploaded_at: str | None = None) -> SalesRow:
    """Coerce one raw upload row into a :class:`SalesRow`.

    ``uploaded_at`` is the batch timestamp used when the row carries none.
    """
    schema = detect_schema(raw)
    if schema == "new":
        our_item_code = to_text(_field(raw, 4))
        quantity, revenue = _field(raw, 5), _field(raw, 6)
        invoice_id, source, stamp = _field(raw, 7), _field(raw, 8), _field(raw, 9)
    elif schema == "legacy":
        our_item_code = ""
        quantity, revenue = _field(raw, 4), _field(raw, 5)
        invoice_id, source, stamp = _field(raw, 6), _field(raw, 7), _field(raw, 8)
    else:
        our_item_code = ""
        quantity, revenue = _field(raw, 4), None
        invoice_id, source, stamp = _field(raw, 5), _field(raw, 6), _field(raw, 7)

    stamp_text = to_text(stamp)
    if not stamp_text:
        stamp_text = uploaded_at or datetime.now(timezone.utc).isoformat()

    return SalesRow(
        date=to_ymd(_field(raw, 0)),
        customer=to_text(_field(raw, 1)),
        product=to_text(_field(raw, 2)),
        vendor_product_code=to_text(_field(raw, 3)),
        our_item_code=our_item_code,
        quantity=max(to_number(quantity), 0.0),
        invoice_id=to_text(invoice_id),
        source=to_text(source),
        uploaded_at=stamp_text,
        revenue=to_number(revenue),
    )


def normalize_rows(
    raw_rows: Iterable[Sequence[Any]], *, uploaded_at: str | None = None
) -> List[SalesRow]:
    return [normalize_row(raw, uploaded_at=uploaded_at) for raw in raw_rows]


__all__ = [
    "detect_schema",
    "normalize_row",
    "normalize_rows",
    "to_number",
    "to_text",
    "to_ymd",
]
