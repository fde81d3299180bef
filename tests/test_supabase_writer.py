"""Tests for Supabase persistence with an in-memory client."""
import pytest

from conftest import FakeSupabaseClient
from purchase_importer.parse.models import ScrapedProduct
from purchase_importer.store.supabase_writer import (
    CONNECTED,
    ERROR,
    SupabaseStore,
    purchase_date_key,
)


def _product(name: str, date: str = "2024-01-15T00:00:00.000Z", index: int = 0) -> ScrapedProduct:
    return ScrapedProduct(
        external_id=f"walmart_order_{index}",
        name=name,
        price=9.99,
        purchase_date=date,
        retailer="walmart",
        category="General",
    )


def test_purchase_date_key_equates_formats():
    """Test that stored and scraped timestamps of the same instant compare equal."""
    assert purchase_date_key("2024-01-15T00:00:00.000Z") == purchase_date_key("2024-01-15T00:00:00+00:00")
    assert purchase_date_key("") == ""
    assert purchase_date_key("garbage") == "garbage"


@pytest.mark.asyncio
async def test_insert_skips_stored_duplicates():
    """Test dedupe on (name, purchase_date) against rows already stored for the user."""
    client = FakeSupabaseClient(rows={
        "products": [{"name": "Widget A", "purchase_date": "2024-01-15T00:00:00+00:00"}],
    })
    store = SupabaseStore(client)

    inserted, skipped = await store.insert_products("user-1", [
        _product("Widget A", index=0),
        _product("Widget B", index=1),
        _product("Widget A", date="2024-02-01T00:00:00.000Z", index=2),
    ])

    assert skipped == 1
    assert [row["name"] for row in inserted] == ["Widget B", "Widget A"]
    assert set(inserted[0]) == {"id", "name", "retailer"}
    assert all(row["user_id"] == "user-1" for row in client.inserted)
    assert all(row["created_at"] == row["updated_at"] for row in client.inserted)


@pytest.mark.asyncio
async def test_identical_products_in_one_batch_are_all_inserted():
    """Test that two units bought together on the same day are both kept."""
    client = FakeSupabaseClient()

    inserted, skipped = await SupabaseStore(client).insert_products("user-1", [
        _product("Widget A", index=0),
        _product("Widget A", index=1),
    ])

    assert skipped == 0
    assert len(inserted) == 2
    assert [row["external_id"] for row in client.inserted] == ["walmart_order_0", "walmart_order_1"]


@pytest.mark.asyncio
async def test_stored_row_from_other_retailer_is_a_duplicate():
    """Test that the duplicate check is per user, not per retailer."""
    client = FakeSupabaseClient(rows={
        "products": [
            {"name": "Widget A", "purchase_date": "2024-01-15T00:00:00+00:00", "retailer": "target"},
        ],
    })

    inserted, skipped = await SupabaseStore(client).insert_products("user-1", [_product("Widget A")])

    assert inserted == []
    assert skipped == 1


@pytest.mark.asyncio
async def test_insert_nothing():
    """Test that an empty batch makes no calls."""
    client = FakeSupabaseClient()
    assert await SupabaseStore(client).insert_products("user-1", []) == ([], 0)
    assert client.inserted == []


@pytest.mark.asyncio
async def test_insert_error_propagates():
    """Test that an insert failure reaches the caller."""
    client = FakeSupabaseClient(insert_error=RuntimeError("insert failed"))
    with pytest.raises(RuntimeError):
        await SupabaseStore(client).insert_products("user-1", [_product("Widget A")])


@pytest.mark.asyncio
async def test_mark_connection_connected_sets_last_synced(supabase_client):
    """Test the connected upsert row."""
    ok = await SupabaseStore(supabase_client).mark_connection("user-1", "Walmart", CONNECTED)

    assert ok
    row = supabase_client.upserts[0]
    assert row["retailer"] == "walmart"
    assert row["status"] == "connected"
    assert "last_synced_at" in row
    assert supabase_client.on_conflict == "user_id,retailer"


@pytest.mark.asyncio
async def test_mark_connection_error_keeps_last_synced(supabase_client):
    """Test that an error status does not touch last_synced_at."""
    await SupabaseStore(supabase_client).mark_connection("user-1", "walmart", ERROR)

    row = supabase_client.upserts[0]
    assert row["status"] == "error"
    assert "last_synced_at" not in row


@pytest.mark.asyncio
async def test_get_user_id(supabase_client):
    """Test access token resolution."""
    store = SupabaseStore(supabase_client)
    assert await store.get_user_id("good-token") == "user-1"
    assert await store.get_user_id("bad-token") is None
    assert await store.get_user_id("") is None
