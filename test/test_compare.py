"""Tests for the cross-period comparator."""

import pytest

from sales_ledger.compare import (
    TOTAL_KEY,
    available_periods,
    compare_ranges,
    default_ranges,
    drill_down,
    normalize_range,
)


@pytest.fixture
def rows(make_row):
    return [
        make_row(date="2025-01-10", customer="X", product="Widget", revenue=100, quantity=10),
        make_row(date="2025-02-10", customer="X", product="Widget", revenue=120, quantity=12),
        make_row(date="2025-02-12", customer="X", product="Gadget", revenue=30, quantity=3),
        make_row(date="2025-01-15", customer="Y", product="Widget", revenue=80, quantity=8),
        make_row(date="2025-02-20", customer="Z", product="Gadget", revenue=40, quantity=4),
        make_row(date="", customer="X", product="Widget", revenue=999, quantity=99),
    ]


def test_single_customer_delta_and_percent(rows):
    report = compare_ranges(rows, "customer", ["2025-01", "2025-01"], ["2025-02", "2025-02"])

    x = next(row for row in report.rows if row.key == "X")
    assert x.a_revenue == 100
    assert x.b_revenue == 150
    assert x.revenue_delta == 50
    assert x.revenue_delta_percent == 50.0


def test_keys_from_either_range_are_reported(rows):
    report = compare_ranges(rows, "customer", ("2025-01", "2025-01"), ("2025-02", "2025-02"))

    by_key = {row.key: row for row in report.rows}
    assert set(by_key) == {"X", "Y", "Z"}
    assert by_key["Y"].b_revenue == 0
    assert by_key["Y"].revenue_delta_percent == -100.0
    assert by_key["Z"].a_revenue == 0
    assert by_key["Z"].revenue_delta_percent == 100.0


def test_rows_sorted_by_absolute_revenue_delta(rows):
    report = compare_ranges(rows, "customer", ("2025-01", "2025-01"), ("2025-02", "2025-02"))

    # Y: -80, X: +50, Z: +40
    assert [row.key for row in report.rows] == ["Y", "X", "Z"]


def test_total_row_sums_all_keys(rows):
    report = compare_ranges(rows, "product", ("2025-01", "2025-01"), ("2025-02", "2025-02"))

    assert report.total.key == TOTAL_KEY
    assert report.total.a_revenue == 180
    assert report.total.b_revenue == 190
    assert report.total.a_quantity == 18
    assert report.total.b_quantity == 19


def test_range_endpoints_are_ordered(rows):
    forward = compare_ranges(rows, "customer", ("2025-01", "2025-02"), ("2025-02", "2025-02"))
    backward = compare_ranges(rows, "customer", ("2025-02", "2025-01"), ("2025-02", "2025-02"))

    assert forward == backward
    assert backward.range_a == ("2025-01", "2025-02")


def test_overlapping_ranges_count_rows_in_both(rows):
    report = compare_ranges(rows, "customer", ("2025-01", "2025-02"), ("2025-02", "2025-02"))

    x = next(row for row in report.rows if row.key == "X")
    assert x.a_revenue == 250
    assert x.b_revenue == 150


def test_drill_down_compares_one_customers_products(rows):
    report = drill_down(rows, "X", ("2025-01", "2025-01"), ("2025-02", "2025-02"))

    assert report.group_by == "product"
    assert [(row.key, row.revenue_delta) for row in report.rows] == [
        ("Gadget", 30),
        ("Widget", 20),
    ]


def test_invalid_inputs_raise_value_error(rows):
    with pytest.raises(ValueError):
        normalize_range(("2025-1", "2025-02"))
    with pytest.raises(ValueError):
        normalize_range(("2025-01",))
    with pytest.raises(ValueError):
        compare_ranges(rows, "region", ("2025-01", "2025-01"), ("2025-02", "2025-02"))


def test_available_periods_and_default_ranges(rows):
    assert available_periods(rows) == ["2025-01", "2025-02"]
    assert default_ranges(["2025-01", "2025-02", "2025-03", "2025-04"]) == (
        ("2025-03", "2025-04"),
        ("2025-01", "2025-02"),
    )
    assert default_ranges(["2025-05"]) == (("2025-05", "2025-05"), ("2025-05", "2025-05"))
    with pytest.raises(ValueError):
        default_ranges([])
