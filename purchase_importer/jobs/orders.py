"""Order extraction with bounded "load more" pagination."""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from purchase_importer.config import config
from purchase_importer.errors import BrowserError
from purchase_importer.fetch.driver import PageDriver, first_present, first_present_now
from purchase_importer.jobs.metrics import ImportMetrics
from purchase_importer.jobs.run_control import ImportControl
from purchase_importer.parse.html_parser import parse_order_cards
from purchase_importer.parse.models import RawOrderRecord
from purchase_importer.retailers import RetailerProfile

logger = logging.getLogger(__name__)


def _card_key(record: RawOrderRecord) -> tuple:
    return (
        record.product_name,
        record.price,
        record.order_date,
        record.image_url,
        record.order_id,
    )


def new_cards(previous: list[RawOrderRecord], cards: list[RawOrderRecord]) -> list[RawOrderRecord]:
    """
    Cards a "load more" click contributed.
    If the page still starts with the previous page's cards, the list was
    appended to and only the tail is new; otherwise it was replaced.
    """
    if previous and cards[:len(previous)] == previous:
        return cards[len(previous):]
    return cards


async def extract_orders(
    page: PageDriver,
    profile: RetailerProfile,
    control: Optional[ImportControl] = None,
    metrics: Optional[ImportMetrics] = None,
    settle_seconds: Optional[float] = None,
) -> list[RawOrderRecord]:
    """
    Scrape all order cards from the order-history page.

    "No orders" is not an error: if no order list appears in time the result
    is empty. Pagination clicks "load more" until it disappears, stops
    producing unseen cards, fails, or the page cap is reached. Whatever was
    collected so far is always returned. No deduplication happens here.
    """
    control = control or ImportControl()
    metrics = metrics or ImportMetrics(profile.name)
    settle = config.LOAD_MORE_SETTLE_SECONDS if settle_seconds is None else settle_seconds
    # One clock per extraction so re-parsed cards compare equal
    now = datetime.now(timezone.utc)

    logger.info("Scraping order data...")
    try:
        container = await first_present(page, profile.order_lists, config.ORDERS_TIMEOUT_MS)
    except BrowserError as e:
        logger.error(f"Error waiting for {profile.display_name} orders: {e}")
        container = None
    if container is None:
        logger.info(f"No order list found on {profile.display_name} order history")
        return []

    records: list[RawOrderRecord] = []
    previous: list[RawOrderRecord] = []
    seen: set[tuple] = set()
    pages_loaded = 0

    while True:
        control.checkpoint("reading orders")
        try:
            html_content = await page.content()
        except BrowserError as e:
            logger.error(f"Error scraping {profile.display_name} orders: {e}")
            break

        cards = parse_order_cards(
            html_content, profile, base_url=page.url, now=now, missing=metrics.missing_fields
        )
        fresh = new_cards(previous, cards)
        unseen = [card for card in cards if _card_key(card) not in seen]
        seen.update(_card_key(card) for card in cards)
        previous = cards

        pages_loaded += 1
        metrics.increment("pages")
        metrics.increment("orders", len(fresh))
        records.extend(fresh)
        logger.debug(f"Page {pages_loaded}: {len(fresh)} new orders")

        if pages_loaded > 1 and not unseen:
            logger.info("Load more produced no new orders, stopping")
            break
        if control.page_limit_reached(pages_loaded):
            logger.warning(f"Reached max_pages={control.max_pages}, stopping pagination")
            break

        try:
            load_more = await first_present_now(page, profile.load_more)
            if load_more is None:
                break
            await page.click(load_more)
        except BrowserError as e:
            logger.info(f"Could not load more orders: {e}")
            break
        await asyncio.sleep(settle)

    logger.info(f"Scraped {len(records)} orders from {profile.display_name}")
    return records
