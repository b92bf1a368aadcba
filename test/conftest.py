"""Shared fixtures for the sales ledger tests."""

import pytest

from sales_ledger.model import SalesRow


@pytest.fixture
def make_row():
    """Factory for SalesRow objects with sensible defaults."""

    def _make_row(
        date="2025-01-15",
        customer="Acme",
        product="Widget",
        quantity=1.0,
        revenue=0.0,
        code="W1",
        source="alpine",
        invoice_id="INV1",
        our_item_code="",
        uploaded_at="2025-06-01T00:00:00+00:00",
    ):
        return SalesRow(
            date=date,
            customer=customer,
            product=product,
            vendor_product_code=code,
            our_item_code=our_item_code,
            quantity=float(quantity),
            invoice_id=invoice_id,
            source=source,
            uploaded_at=uploaded_at,
            revenue=float(revenue),
        )

    return _make_row
