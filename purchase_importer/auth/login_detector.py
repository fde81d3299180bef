"""Detect login pages, rejected credentials and interactive challenges."""
import logging
from typing import Iterable, Optional, Sequence

logger = logging.getLogger(__name__)

CREDENTIAL_ERROR_WORDS = ("password", "email")


def is_login_url(url: str | None, markers: Sequence[str]) -> bool:
    """True if the URL still points at one of the retailer's login/signin paths."""
    if not url:
        return False
    url_lower = url.lower()
    return any(marker.lower() in url_lower for marker in markers)


def is_credential_error(error_text: str | None) -> bool:
    """
    Detect a retailer message that rejects the email or password.
    Anything else on the login page is an unrecognized failure.
    """
    if not error_text:
        return False
    text_lower = error_text.lower()
    return any(word in text_lower for word in CREDENTIAL_ERROR_WORDS)


def find_challenge(page_text: str | None, markers: Iterable[str]) -> Optional[str]:
    """Return the first 2FA/CAPTCHA marker present in the page text, if any."""
    if not page_text:
        return None
    text_lower = page_text.lower()
    for marker in markers:
        if marker.lower() in text_lower:
            return marker
    return None
