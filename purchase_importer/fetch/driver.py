"""Narrow page interface over the browser automation library."""
import logging
from typing import Optional, Protocol, Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from purchase_importer.errors import BrowserError, NavigationTimeout

logger = logging.getLogger(__name__)


class PageDriver(Protocol):
    """
    The capabilities the login driver and order extractor rely on.
    Anything implementing these methods can stand in for a real browser page.
    """

    @property
    def url(self) -> str: ...

    async def goto(self, url: str, timeout_ms: int) -> None: ...

    async def wait_for_selector(self, selector: str, timeout_ms: int) -> bool: ...

    async def has_selector(self, selector: str) -> bool: ...

    async def fill(self, selector: str, value: str) -> None: ...

    async def click(self, selector: str) -> None: ...

    async def click_and_wait_for_navigation(self, selector: str, timeout_ms: int) -> None: ...

    async def text_of(self, selector: str) -> Optional[str]: ...

    async def body_text(self) -> str: ...

    async def content(self) -> str: ...

    async def close(self) -> None: ...


async def first_present(
    page: PageDriver,
    candidates: Sequence[str],
    timeout_ms: int,
) -> Optional[str]:
    """
    Wait until any candidate selector appears, then return the highest
    priority candidate present on the page. None if nothing appears in time.
    """
    if not candidates:
        return None
    if not await page.wait_for_selector(", ".join(candidates), timeout_ms):
        return None
    return await first_present_now(page, candidates)


async def first_present_now(page: PageDriver, candidates: Sequence[str]) -> Optional[str]:
    """Return the first candidate currently on the page, without waiting."""
    for selector in candidates:
        if await page.has_selector(selector):
            return selector
    return None


class PlaywrightPage:
    """PageDriver backed by a Playwright page."""

    def __init__(self, page: Page):
        self._page = page

    @property
    def url(self) -> str:
        return self._page.url

    async def goto(self, url: str, timeout_ms: int) -> None:
        try:
            await self._page.goto(url, wait_until="networkidle", timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise NavigationTimeout(f"Timed out loading {url}") from e
        except PlaywrightError as e:
            raise BrowserError(f"Failed to load {url}: {e}") from e

    async def wait_for_selector(self, selector: str, timeout_ms: int) -> bool:
        try:
            await self._page.wait_for_selector(selector, timeout=timeout_ms)
            return True
        except PlaywrightTimeoutError:
            return False
        except PlaywrightError as e:
            raise BrowserError(f"Waiting for {selector} failed: {e}") from e

    async def has_selector(self, selector: str) -> bool:
        try:
            return await self._page.query_selector(selector) is not None
        except PlaywrightError as e:
            raise BrowserError(f"Query {selector} failed: {e}") from e

    async def fill(self, selector: str, value: str) -> None:
        try:
            await self._page.fill(selector, value)
        except PlaywrightError as e:
            # Never include the value, it is a credential
            raise BrowserError(f"Could not fill {selector}") from e

    async def click(self, selector: str) -> None:
        try:
            await self._page.click(selector)
        except PlaywrightError as e:
            raise BrowserError(f"Could not click {selector}: {e}") from e

    async def click_and_wait_for_navigation(self, selector: str, timeout_ms: int) -> None:
        try:
            async with self._page.expect_navigation(wait_until="networkidle", timeout=timeout_ms):
                await self._page.click(selector)
        except PlaywrightTimeoutError as e:
            raise NavigationTimeout(f"Timed out waiting for navigation after clicking {selector}") from e
        except PlaywrightError as e:
            raise BrowserError(f"Could not click {selector}: {e}") from e

    async def text_of(self, selector: str) -> Optional[str]:
        try:
            element = await self._page.query_selector(selector)
            if element is None:
                return None
            return await element.text_content()
        except PlaywrightError as e:
            raise BrowserError(f"Could not read {selector}: {e}") from e

    async def body_text(self) -> str:
        try:
            return await self._page.text_content("body") or ""
        except PlaywrightError as e:
            raise BrowserError(f"Could not read page body: {e}") from e

    async def content(self) -> str:
        try:
            return await self._page.content()
        except PlaywrightError as e:
            raise BrowserError(f"Could not read page content: {e}") from e

    async def close(self) -> None:
        await self._page.close()
