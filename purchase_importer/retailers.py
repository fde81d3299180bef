"""Retailer profiles: login/order URLs and selector chains.

Each selector tuple is an ordered list of candidates, most specific first.
Supporting a new markup variant means adding a selector here, not code.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

from purchase_importer.errors import RetailerNotImplemented, UnsupportedRetailer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldSelectors:
    """Per-field selector chains applied inside one order card."""

    name: tuple[str, ...]
    price: tuple[str, ...]
    date: tuple[str, ...]
    order_id: tuple[str, ...]
    image: tuple[str, ...] = ("img",)


@dataclass(frozen=True)
class RetailerProfile:
    """Everything the login driver and extractor need to know about a retailer."""

    name: str
    display_name: str
    login_url: str
    orders_url: str
    login_path_markers: tuple[str, ...]
    username_fields: tuple[str, ...]
    password_fields: tuple[str, ...]
    submit_buttons: tuple[str, ...]
    error_messages: tuple[str, ...]
    order_lists: tuple[str, ...]
    order_cards: tuple[str, ...]
    fields: FieldSelectors
    load_more: tuple[str, ...]
    default_category: Optional[str] = None
    challenge_markers: tuple[str, ...] = field(
        default=("verification code", "two-factor", "captcha", "security check")
    )


WALMART = RetailerProfile(
    name="walmart",
    display_name="Walmart",
    login_url="https://www.walmart.com/account/login",
    orders_url="https://www.walmart.com/orders",
    login_path_markers=("/account/login", "/signin"),
    username_fields=('input[name="email"]', 'input[type="email"]', "#email"),
    password_fields=('input[name="password"]', 'input[type="password"]', "#password"),
    submit_buttons=(
        'button[type="submit"]',
        'button[data-automation-id="signin-submit-btn"]',
        ".login-submit-btn",
    ),
    error_messages=(
        ".error-message",
        ".field-error",
        '[data-automation-id="generic-error"]',
        ".notification-error",
    ),
    order_lists=('[data-testid="orders-list"]', ".orders-container", ".order-card"),
    order_cards=(".order-card", '[data-testid="order-card"]', ".order-item", ".purchase-history-item"),
    fields=FieldSelectors(
        name=(".product-name", '[data-testid="product-name"]', ".item-name", "h3", "h4"),
        price=(".price", '[data-testid="price"]', ".cost", ".amount", ".total"),
        date=(".order-date", '[data-testid="order-date"]', ".date", ".purchase-date"),
        order_id=(".order-id", '[data-testid="order-id"]', ".order-number"),
    ),
    load_more=(".load-more", '[data-testid="load-more"]', ".show-more"),
    # Walmart order cards carry no reliable category
    default_category="General",
)

# Retailers we accept; a None profile means the importer is not built yet
RETAILERS: dict[str, Optional[RetailerProfile]] = {
    "walmart": WALMART,
    "target": None,
    "bestbuy": None,
}


def supported_retailers() -> list[str]:
    return list(RETAILERS)


def get_profile(retailer: str) -> RetailerProfile:
    """
    Resolve a retailer name to its profile.
    Raises UnsupportedRetailer for unknown names and RetailerNotImplemented
    for known retailers without an importer.
    """
    key = (retailer or "").strip().lower()
    if key not in RETAILERS:
        raise UnsupportedRetailer(retailer, supported_retailers())
    profile = RETAILERS[key]
    if profile is None:
        logger.info(f"Retailer {key} requested but no importer is available")
        raise RetailerNotImplemented(key)
    return profile
