"""Metrics tracking for a single import."""
import time
import logging
from collections import defaultdict
from typing import Dict

logger = logging.getLogger(__name__)


class ImportMetrics:
    """Track pages, orders and field fallbacks for one import run."""

    def __init__(self, retailer: str):
        self.retailer = retailer
        self.start_time = time.monotonic()
        self.counters: Dict[str, int] = defaultdict(int)
        self.missing_fields: Dict[str, int] = {}

    def increment(self, key: str, amount: int = 1) -> None:
        """Increment a counter."""
        self.counters[key] += amount

    def elapsed(self) -> float:
        return time.monotonic() - self.start_time

    def report(self) -> None:
        """Log the import summary. Never includes credentials."""
        fallbacks = ", ".join(f"{k}={v}" for k, v in sorted(self.missing_fields.items())) or "none"
        logger.info(
            f"Import {self.retailer}: "
            f"pages={self.counters.get('pages', 0)} | "
            f"orders={self.counters.get('orders', 0)} | "
            f"products={self.counters.get('products', 0)} | "
            f"field fallbacks: {fallbacks} | "
            f"elapsed={self.elapsed():.1f}s"
        )

    def get_summary(self) -> Dict:
        """Get summary statistics."""
        return {
            "retailer": self.retailer,
            "pages": self.counters.get("pages", 0),
            "orders": self.counters.get("orders", 0),
            "products": self.counters.get("products", 0),
            "missing_fields": dict(self.missing_fields),
            "elapsed_seconds": round(self.elapsed(), 3),
        }
