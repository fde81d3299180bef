"""Retailer login and navigation driver."""
import asyncio
import logging
from typing import Optional

from purchase_importer.auth.login_detector import (
    find_challenge,
    is_credential_error,
    is_login_url,
)
from purchase_importer.config import config
from purchase_importer.errors import (
    ChallengeRequired,
    FieldNotFound,
    InvalidCredentials,
    LoginFailed,
    NavigationTimeout,
)
from purchase_importer.fetch.driver import PageDriver, first_present
from purchase_importer.jobs.run_control import ImportControl
from purchase_importer.parse.models import ImportCredentials
from purchase_importer.retailers import RetailerProfile

logger = logging.getLogger(__name__)


class RetailerLogin:
    """
    Drives a retailer's web login form and lands on order history.

    Each attempt is single-shot: it ends authenticated or raises
    InvalidCredentials, LoginFailed, ChallengeRequired or FieldNotFound.
    """

    def __init__(
        self,
        page: PageDriver,
        profile: RetailerProfile,
        control: Optional[ImportControl] = None,
        settle_seconds: Optional[float] = None,
    ):
        self.page = page
        self.profile = profile
        self.control = control or ImportControl()
        self.settle_seconds = (
            config.LOGIN_SETTLE_SECONDS if settle_seconds is None else settle_seconds
        )

    async def login(self, credentials: ImportCredentials) -> None:
        """Authenticate with the retailer or raise a classified error."""
        name = self.profile.display_name

        self.control.checkpoint("login page")
        logger.info(f"Navigating to {name} login page...")
        await self.page.goto(self.profile.login_url, timeout_ms=config.NAV_TIMEOUT_MS)

        self.control.checkpoint("filling credentials")
        logger.info("Filling in login credentials...")
        username_selector = await self._resolve("username", self.profile.username_fields)
        await self.page.fill(username_selector, credentials.username.get_secret_value())
        password_selector = await self._resolve("password", self.profile.password_fields)
        await self.page.fill(password_selector, credentials.password.get_secret_value())

        self.control.checkpoint("submitting login")
        logger.info("Submitting login form...")
        submit_selector = await self._resolve("submit button", self.profile.submit_buttons)
        try:
            await self.page.click_and_wait_for_navigation(
                submit_selector, timeout_ms=config.NAV_TIMEOUT_MS
            )
        except NavigationTimeout as e:
            raise LoginFailed(f"{name} login did not complete in time") from e

        await asyncio.sleep(self.settle_seconds)
        await self._verify()
        logger.info(f"Logged in to {name}")

    async def open_order_history(self) -> None:
        """Navigate to the order history page once authenticated."""
        self.control.checkpoint("order history")
        logger.info("Navigating to purchase history...")
        await self.page.goto(self.profile.orders_url, timeout_ms=config.NAV_TIMEOUT_MS)

    async def _resolve(self, field: str, candidates: tuple[str, ...]) -> str:
        selector = await first_present(self.page, candidates, config.FIELD_TIMEOUT_MS)
        if selector is None:
            logger.error(f"Could not find {field} field on {self.profile.display_name} login page")
            raise FieldNotFound(field)
        logger.debug(f"{field} resolved with selector: {selector}")
        return selector

    async def _verify(self) -> None:
        """Classify the page reached after submitting the form."""
        current_url = self.page.url
        logger.debug(f"Current URL after login: {current_url}")

        if is_login_url(current_url, self.profile.login_path_markers):
            for selector in self.profile.error_messages:
                error_text = await self.page.text_of(selector)
                if is_credential_error(error_text):
                    logger.warning(f"{self.profile.display_name} rejected the credentials")
                    raise InvalidCredentials("Invalid login credentials")
            self._raise_if_challenge(await self.page.body_text())
            logger.warning("Still on login page after submitting credentials")
            raise LoginFailed("Login failed - still on login page")

        self._raise_if_challenge(await self.page.body_text())

    def _raise_if_challenge(self, page_text: str) -> None:
        marker = find_challenge(page_text, self.profile.challenge_markers)
        if marker:
            logger.warning(f"Interactive challenge detected ({marker}), not supported")
            raise ChallengeRequired(
                "Two-factor authentication or CAPTCHA detected. This is not currently supported."
            )
