"""Import runner orchestrating session, login, extraction and normalization."""
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from purchase_importer.auth.session import RetailerLogin
from purchase_importer.errors import ImporterError, ScrapeFailed
from purchase_importer.fetch.client import BrowserSession
from purchase_importer.jobs.metrics import ImportMetrics
from purchase_importer.jobs.orders import extract_orders
from purchase_importer.jobs.run_control import ImportControl
from purchase_importer.parse.models import ImportCredentials, ImportResult, ScrapedProduct
from purchase_importer.parse.normalize import normalize_orders
from purchase_importer.retailers import get_profile
from purchase_importer.store.supabase_writer import CONNECTED, SupabaseStore

logger = logging.getLogger(__name__)


async def run_import(
    credentials: ImportCredentials,
    session_factory: Callable[[], BrowserSession] = BrowserSession,
    control: Optional[ImportControl] = None,
    login_settle_seconds: Optional[float] = None,
    load_more_settle_seconds: Optional[float] = None,
) -> ImportResult:
    """
    Import a retailer's purchase history with the given credentials.

    The credentials are cleared as soon as the login step completes. Every
    failure leaves as an ImporterError subclass; the browser is always closed.
    """
    profile = get_profile(credentials.retailer)
    control = control or ImportControl()
    metrics = ImportMetrics(profile.name)

    logger.info(f"Starting {profile.display_name} import")
    try:
        async with session_factory() as page:
            login = RetailerLogin(page, profile, control, settle_seconds=login_settle_seconds)
            try:
                await login.login(credentials)
            finally:
                credentials.clear()
            await login.open_order_history()
            raw_orders = await extract_orders(
                page, profile, control, metrics, settle_seconds=load_more_settle_seconds
            )
    except ImporterError as e:
        logger.error(f"{profile.display_name} import failed: {type(e).__name__}: {e}")
        raise
    except Exception as e:
        logger.error(f"{profile.display_name} scraper error: {e}", exc_info=True)
        raise ScrapeFailed(f"Unexpected error during {profile.display_name} import") from e

    products = normalize_orders(raw_orders, profile.name, category=profile.default_category)
    metrics.increment("products", len(products))
    metrics.report()
    logger.info(f"Successfully scraped {len(products)} products from {profile.display_name}")

    return ImportResult(
        retailer=profile.name,
        products=products,
        pages_loaded=metrics.counters.get("pages", 0),
        metrics=metrics.get_summary(),
    )


@dataclass
class PersistResult:
    """What the caller stored for one import."""

    inserted: list[dict] = field(default_factory=list)
    skipped_duplicates: int = 0
    connection_updated: bool = False


async def persist_products(
    store: SupabaseStore,
    user_id: str,
    retailer: str,
    products: list[ScrapedProduct],
) -> PersistResult:
    """
    Insert new products and mark the retailer connection as connected.
    Insert failures propagate; a failed connection update is only logged.
    """
    inserted, skipped = await store.insert_products(user_id, products)
    connection_updated = await store.mark_connection(user_id, retailer, CONNECTED)
    return PersistResult(
        inserted=inserted,
        skipped_duplicates=skipped,
        connection_updated=connection_updated,
    )
