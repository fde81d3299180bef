"""Parse order-history HTML into raw order records."""
import logging
from datetime import datetime, timezone
from typing import Optional, Sequence
from urllib.parse import urljoin

from selectolax.parser import HTMLParser, Node

from purchase_importer.parse.models import RawOrderRecord
from purchase_importer.retailers import FieldSelectors, RetailerProfile

logger = logging.getLogger(__name__)

UNKNOWN_PRODUCT = "Unknown Product"
DEFAULT_PRICE = "$0.00"


def _clean_text(node: Node) -> str:
    return " ".join(node.text(deep=True, separator=" ", strip=True).split())


def first_text(node: Node, selectors: Sequence[str]) -> Optional[str]:
    """Text of the first selector in priority order that matches with non-empty text."""
    for selector in selectors:
        match = node.css_first(selector)
        if match is None:
            continue
        text = _clean_text(match)
        if text:
            return text
    return None


def first_image(node: Node, selectors: Sequence[str], base_url: str = "") -> Optional[str]:
    """Image URL from src, falling back to lazy-load data-src."""
    for selector in selectors:
        match = node.css_first(selector)
        if match is None:
            continue
        src = match.attributes.get("src") or match.attributes.get("data-src")
        if src:
            return urljoin(base_url, src.strip()) if base_url else src.strip()
    return None


def select_all(parser: HTMLParser, selectors: Sequence[str]) -> list[Node]:
    """Nodes matching any selector, once each, in document order."""
    matched = {node.mem_id for selector in selectors for node in parser.css(selector)}
    if not matched or parser.root is None:
        return []
    return [node for node in parser.root.traverse() if node.mem_id in matched]


def parse_order_card(
    node: Node,
    fields: FieldSelectors,
    base_url: str = "",
    now: Optional[datetime] = None,
    missing: Optional[dict[str, int]] = None,
) -> RawOrderRecord:
    """
    Extract one order card. A field whose selectors all miss gets a sentinel
    default so the record is never dropped.
    """
    values = {
        "name": first_text(node, fields.name),
        "price": first_text(node, fields.price),
        "date": first_text(node, fields.date),
        "order_id": first_text(node, fields.order_id),
    }
    if missing is not None:
        for key, value in values.items():
            if value is None:
                missing[key] = missing.get(key, 0) + 1

    return RawOrderRecord(
        product_name=values["name"] or UNKNOWN_PRODUCT,
        price=values["price"] or DEFAULT_PRICE,
        order_date=values["date"] or (now or datetime.now(timezone.utc)).isoformat(),
        image_url=first_image(node, fields.image, base_url),
        order_id=values["order_id"] or "",
    )


def parse_order_cards(
    html_content: str | None,
    profile: RetailerProfile,
    base_url: str = "",
    now: Optional[datetime] = None,
    missing: Optional[dict[str, int]] = None,
) -> list[RawOrderRecord]:
    """Parse every order card on the page, in document order."""
    if not html_content:
        return []

    parser = HTMLParser(html_content)
    cards = select_all(parser, profile.order_cards)
    logger.debug(f"Found {len(cards)} order cards")
    return [
        parse_order_card(card, profile.fields, base_url=base_url, now=now, missing=missing)
        for card in cards
    ]

