"""Tests for price/date parsing and product normalization."""
import math
from datetime import datetime, timedelta, timezone

import pytest

from purchase_importer.parse.models import RawOrderRecord
from purchase_importer.parse.normalize import (
    build_external_id,
    format_date,
    normalize_orders,
    parse_price,
)


def _parse_iso(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@pytest.mark.parametrize(
    "text,expected",
    [
        ("$19.99", 19.99),
        ("19.99", 19.99),
        ("$1,299.00", 1299.0),
        ("Total: $5", 5.0),
        ("", 0.0),
        ("$-,.", 0.0),
        ("bad", 0.0),
        ("-$4.50", 4.5),
    ],
)
def test_parse_price(text, expected):
    """Test price text parsing."""
    assert parse_price(text) == pytest.approx(expected)


def test_parse_price_is_never_negative_or_infinite():
    """Test that any input yields a finite non-negative number."""
    for text in ["-1", "9" * 400, "1e999", "..", "Free", None, float("nan"), -3]:
        value = parse_price(text)
        assert math.isfinite(value)
        assert value >= 0


def test_format_date_us_format():
    """Test MM/DD/YYYY parsing."""
    assert format_date("01/15/2024").startswith("2024-01-15T")


def test_format_date_long_month_with_label():
    """Test 'Order placed Jan 15, 2024' style text."""
    assert format_date("Order placed Jan 15, 2024").startswith("2024-01-15T")
    assert format_date("Delivered on January 5, 2024").startswith("2024-01-05T")


def test_format_date_iso_passthrough():
    """Test that an ISO timestamp keeps its instant."""
    assert format_date("2024-03-01T12:30:00Z") == "2024-03-01T12:30:00.000Z"


@pytest.mark.parametrize("value", ["", "not a date", None, "   ", 42])
def test_format_date_falls_back_to_now(value):
    """Test that invalid input returns the current instant, never raising."""
    result = format_date(value)
    parsed = _parse_iso(result)
    assert abs(datetime.now(timezone.utc) - parsed) < timedelta(seconds=5)


def test_format_date_uses_given_now():
    """Test fallback with an explicit clock."""
    now = datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc)
    assert format_date("garbage", now=now) == "2024-06-01T08:00:00.000Z"


def test_external_ids_unique_for_shared_order_id():
    """Test that records sharing an order id get distinct ids."""
    ids = {build_external_id("walmart", "200012345", i) for i in range(25)}
    assert len(ids) == 25


def test_external_ids_unique_without_order_id():
    """Test that records with no order id get distinct ids."""
    ids = {build_external_id("walmart", "", i, seed="same") for i in range(25)}
    assert len(ids) == 25
    assert all(i.startswith("walmart_order_") for i in ids)


def test_external_id_strips_order_label():
    """Test that order id labels and punctuation are dropped."""
    assert build_external_id("walmart", "Order # 2000-123", 3) == "walmart_2000-123_3"


def test_normalize_orders_end_to_end():
    """Test the full normalization of a good and a broken record."""
    now = datetime(2024, 6, 1, tzinfo=timezone.utc)
    records = [
        RawOrderRecord(product_name="Widget A", price="$19.99", order_date="01/15/2024", order_id=""),
        RawOrderRecord(product_name="Unknown Product", price="bad", order_date="", order_id=""),
    ]

    products = normalize_orders(records, "walmart", category="General", now=now)

    assert [p.name for p in products] == ["Widget A", "Unknown Product"]
    assert products[0].price == pytest.approx(19.99)
    assert products[0].purchase_date.startswith("2024-01-15T")
    assert products[1].price == 0
    assert products[1].purchase_date == "2024-06-01T00:00:00.000Z"
    assert products[0].external_id != products[1].external_id
    assert all(p.retailer == "walmart" for p in products)
    assert all(p.category == "General" for p in products)


def test_normalize_orders_preserves_order_and_duplicates():
    """Test that normalization neither sorts nor deduplicates."""
    records = [
        RawOrderRecord(product_name=name, price="$1", order_date="01/01/2024")
        for name in ["B", "A", "B"]
    ]
    products = normalize_orders(records, "walmart")
    assert [p.name for p in products] == ["B", "A", "B"]
    assert len({p.external_id for p in products}) == 3
