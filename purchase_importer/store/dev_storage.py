"""DEV mode storage: save import output to data/dev/ for inspection."""
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
import orjson

from purchase_importer.config import DATA_DIR
from purchase_importer.parse.models import ImportResult
from purchase_importer.parse.redact import redact_json

logger = logging.getLogger(__name__)

DEV_DIR = DATA_DIR / "dev"


class DevStorage:
    """Stores import results locally in DEV/dry-run mode."""

    def __init__(self, dev_dir: Optional[Path] = None):
        self.dev_dir = dev_dir or DEV_DIR
        self.dev_dir.mkdir(parents=True, exist_ok=True)

    def save_import(self, result: ImportResult) -> Path:
        """Save summary.json and products.json for one import run."""
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        run_dir = self.dev_dir / result.retailer / stamp
        run_dir.mkdir(parents=True, exist_ok=True)

        # Save summary.json (redacted)
        summary = redact_json(
            {
                "retailer": result.retailer,
                "product_count": len(result.products),
                "pages_loaded": result.pages_loaded,
                "metrics": result.metrics,
            }
        )
        summary_path = run_dir / "summary.json"
        with open(summary_path, "w", encoding="utf-8") as f:
            json.dump(summary, f, indent=2, ensure_ascii=False)
        logger.info(f"Saved summary to {summary_path}")

        # Save products.json (what would go to Supabase, redacted)
        products = redact_json([product.model_dump() for product in result.products])
        products_path = run_dir / "products.json"
        with open(products_path, "wb") as f:
            f.write(orjson.dumps(products, option=orjson.OPT_INDENT_2))
        logger.info(f"Saved {len(result.products)} products to {products_path}")

        return run_dir
