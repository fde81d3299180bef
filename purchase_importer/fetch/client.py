"""Headless browser session with guaranteed cleanup."""
import logging
from typing import Optional

from playwright.async_api import Browser, Playwright, Route, async_playwright

from purchase_importer.config import config
from purchase_importer.fetch.driver import PlaywrightPage

logger = logging.getLogger(__name__)

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--no-first-run",
    "--disable-extensions",
]


async def _block_images(route: Route) -> None:
    if route.request.resource_type == "image":
        await route.abort()
    else:
        await route.continue_()


class BrowserSession:
    """
    One isolated browser process and context per import.

    Use as ``async with BrowserSession() as page``. The page and the browser
    are closed on every exit path; close failures are logged, never raised.
    """

    def __init__(
        self,
        headless: Optional[bool] = None,
        user_agent: Optional[str] = None,
        viewport: Optional[dict] = None,
    ):
        self.headless = config.HEADLESS if headless is None else headless
        self.user_agent = user_agent or config.USER_AGENT
        self.viewport = viewport or {
            "width": config.VIEWPORT_WIDTH,
            "height": config.VIEWPORT_HEIGHT,
        }
        self._playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.page: Optional[PlaywrightPage] = None

    async def __aenter__(self) -> PlaywrightPage:
        try:
            await self._start()
        except BaseException:
            await self.close()
            raise
        return self.page

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _start(self) -> None:
        logger.debug("Launching headless browser")
        self._playwright = await async_playwright().start()
        self.browser = await self._playwright.chromium.launch(
            headless=self.headless,
            args=LAUNCH_ARGS,
        )
        context = await self.browser.new_context(
            user_agent=self.user_agent,
            viewport=self.viewport,
        )
        await context.route("**/*", _block_images)
        self.page = PlaywrightPage(await context.new_page())

    async def close(self) -> None:
        """Close page, browser and driver; never raises."""
        page, self.page = self.page, None
        browser, self.browser = self.browser, None
        playwright, self._playwright = self._playwright, None

        if page is not None:
            try:
                await page.close()
            except Exception as e:
                logger.error(f"Error closing page: {e}")

        if browser is not None:
            try:
                await browser.close()
            except Exception as e:
                logger.error(f"Error closing browser: {e}")

        if playwright is not None:
            try:
                await playwright.stop()
            except Exception as e:
                logger.error(f"Error stopping playwright: {e}")
