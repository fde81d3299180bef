"""Normalize raw order records into canonical products. Pure functions, no I/O."""
import hashlib
import logging
import math
import re
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from purchase_importer.parse.models import RawOrderRecord, ScrapedProduct

logger = logging.getLogger(__name__)

_NON_NUMERIC = re.compile(r"[^0-9.]")
_LEADING_DECIMAL = re.compile(r"\d+(?:\.\d*)?|\.\d+")

# Formats seen on US retailer order pages
DATE_FORMATS = [
    "%m/%d/%Y",
    "%m/%d/%y",
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m-%d-%Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%b %d %Y",
    "%B %d %Y",
    "%d %b %Y",
    "%d %B %Y",
    "%a, %b %d, %Y",
    "%A, %B %d, %Y",
]

_DATE_LABEL = re.compile(
    r"^(?:order(?:ed)?(?:\s+placed)?(?:\s+date)?(?:\s+on)?|placed\s+on|purchased\s+on"
    r"|delivered\s+on|purchase\s+date|date)\s*[:\-]?\s*",
    re.IGNORECASE,
)
_ABBREVIATION_DOT = re.compile(r"(?<=[A-Za-z])\.")

_ORDER_ID_LABEL = re.compile(r"^\s*order\s*(?:number|no\.?|#)?\s*[:#]?\s*", re.IGNORECASE)
_ORDER_ID_CHARS = re.compile(r"[^A-Za-z0-9-]")


def parse_price(value: Any) -> float:
    """
    Parse price text like "$1,299.99" into a float.
    Every character except digits and '.' is dropped and the leading decimal
    is read. Anything unparseable, negative or non-finite yields 0.
    """
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) and value >= 0 else 0.0
    if not isinstance(value, str) or not value:
        return 0.0

    cleaned = _NON_NUMERIC.sub("", value)
    match = _LEADING_DECIMAL.match(cleaned)
    if not match:
        return 0.0
    try:
        parsed = float(match.group())
    except ValueError:
        return 0.0
    return parsed if math.isfinite(parsed) else 0.0


def _to_iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    iso = dt.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return iso.replace("+00:00", "Z")


def _parse_iso(text: str) -> Optional[datetime]:
    candidate = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        return datetime.fromisoformat(candidate)
    except ValueError:
        return None


def _parse_formats(text: str) -> Optional[datetime]:
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def format_date(value: Any, now: Optional[datetime] = None) -> str:
    """
    Convert scraped date text to an ISO-8601 UTC timestamp.
    Falls back to the current instant for empty or unparseable input; never raises.
    """
    fallback = now or datetime.now(timezone.utc)
    if not isinstance(value, str) or not value.strip():
        return _to_iso(fallback)

    text = " ".join(value.split())
    text = _DATE_LABEL.sub("", text)
    text = _ABBREVIATION_DOT.sub("", text)

    parsed = _parse_iso(text) or _parse_formats(text)
    if parsed is None:
        logger.debug(f"Unparseable date {value!r}, using current time")
        return _to_iso(fallback)

    try:
        return _to_iso(parsed)
    except (ValueError, OverflowError):
        logger.debug(f"Out of range date {value!r}, using current time")
        return _to_iso(fallback)


def build_external_id(retailer: str, order_id: str | None, index: int, seed: str = "") -> str:
    """
    Compose a batch-unique id: retailer, order id and position in the batch.
    Cards without a usable order id get a fallback id hashed from `seed`.
    """
    clean_id = _ORDER_ID_CHARS.sub("", _ORDER_ID_LABEL.sub("", order_id or ""))
    if not clean_id:
        digest = hashlib.sha1(seed.encode("utf-8")).hexdigest()[:10]
        clean_id = f"order_{digest}"
    return f"{retailer}_{clean_id}_{index}"


def normalize_order(
    record: RawOrderRecord,
    retailer: str,
    index: int,
    category: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ScrapedProduct:
    seed = f"{record.product_name}|{record.price}|{record.order_date}"
    return ScrapedProduct(
        external_id=build_external_id(retailer, record.order_id, index, seed),
        name=record.product_name,
        price=parse_price(record.price),
        purchase_date=format_date(record.order_date, now=now),
        image_url=record.image_url or None,
        retailer=retailer,
        category=category,
    )


def normalize_orders(
    records: Sequence[RawOrderRecord],
    retailer: str,
    category: Optional[str] = None,
    now: Optional[datetime] = None,
) -> list[ScrapedProduct]:
    """Normalize a batch in scrape order. No sorting or deduplication."""
    return [
        normalize_order(record, retailer, index, category=category, now=now)
        for index, record in enumerate(records)
    ]
