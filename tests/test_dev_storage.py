"""Tests for DEV mode local storage."""
import json

from purchase_importer.parse.models import ImportResult, ScrapedProduct
from purchase_importer.store.dev_storage import DevStorage


def test_save_import_writes_summary_and_products(tmp_path):
    """Test that a run directory with both files is written."""
    result = ImportResult(
        retailer="walmart",
        products=[
            ScrapedProduct(
                external_id="walmart_200012345_0",
                name="Widget A",
                price=19.99,
                purchase_date="2024-01-15T00:00:00.000Z",
                retailer="walmart",
                category="General",
            )
        ],
        pages_loaded=1,
        metrics={"pages": 1, "orders": 1},
    )

    run_dir = DevStorage(tmp_path).save_import(result)

    assert run_dir.parent == tmp_path / "walmart"
    summary = json.loads((run_dir / "summary.json").read_text())
    assert summary["product_count"] == 1
    assert summary["pages_loaded"] == 1
    products = json.loads((run_dir / "products.json").read_text())
    assert products[0]["external_id"] == "walmart_200012345_0"
    assert products[0]["price"] == 19.99
