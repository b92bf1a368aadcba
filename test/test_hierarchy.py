import pytest

from sales_ledger.hierarchy import build_customer_hierarchy, split_customer_name


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Acme - Store 1", ("Acme", "Store 1")),
        ("Acme: Store 2", ("Acme", "Store 2")),
        ("Acme: East - Dock 4", ("Acme: East", "Dock 4")),
        ("Plain Customer", ("Plain Customer", None)),
        ("Hyphen-Name", ("Hyphen-Name", None)),
        ("Acme - ", ("Acme", None)),
    ],
)
def test_split_customer_name(name, expected):
    assert split_customer_name(name) == expected


def test_hierarchy_groups_sub_accounts_under_main(make_row):
    rows = [
        make_row(date="2025-01-05", customer="Acme - Store 1", product="Widget", code="W1", quantity=2),
        make_row(date="2025-02-05", customer="Acme - Store 1", product="Widget", code="W1", quantity=3),
        make_row(date="2025-01-07", customer="Acme: Store 2", product="Gadget", code="G1", quantity=1),
        make_row(date="2025-03-01", customer="Acme", product="Apple", code="A1", quantity=4,
                 our_item_code="OUR-1"),
        make_row(date="2025-01-09", customer="Beta", product="Widget", code="W1", quantity=7),
        make_row(date="2024-12-31", customer="Acme - Store 1", product="Widget", code="W1", quantity=99),
    ]

    tree = build_customer_hierarchy(rows, 2025)

    assert list(tree) == ["Acme", "Beta"]
    acme = tree["Acme"]
    assert acme.total_quantity[:3] == (3.0, 3.0, 4.0)
    assert list(acme.sub_accounts) == ["Store 1", "Store 2"]
    store_one = acme.sub_accounts["Store 1"][0]
    assert store_one.quantities[:2] == (2.0, 3.0)
    assert store_one.total == 5.0
    assert [p.product for p in acme.direct_products] == ["Apple"]
    assert acme.direct_products[0].our_item_code == "OUR-1"
    assert tree["Beta"].sub_accounts == {}


def test_same_product_with_different_codes_is_not_collapsed(make_row):
    rows = [
        make_row(customer="Beta", product="Widget", code="W2", quantity=1),
        make_row(customer="Beta", product="Widget", code="W1", quantity=2),
        make_row(customer="Beta", product="Apple", code="Z9", quantity=3),
    ]

    products = build_customer_hierarchy(rows, 2025)["Beta"].direct_products

    assert [(p.product, p.vendor_product_code) for p in products] == [
        ("Apple", "Z9"),
        ("Widget", "W1"),
        ("Widget", "W2"),
    ]


def test_year_without_rows_gives_empty_hierarchy(make_row):
    assert build_customer_hierarchy([make_row(date="2024-05-01")], 2025) == {}
