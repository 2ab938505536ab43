"""Browser session — the single Playwright page every capture runs through."""

from __future__ import annotations

import logging

from playwright.async_api import Browser, ElementHandle, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from pastshots.capture.target_resolver import CaptureTarget, ElementTarget
from pastshots.errors import SetupError
from pastshots.models.config import ViewportConfig

logger = logging.getLogger(__name__)

_ENGINES = {
    "chrome": "chromium",
    "chromium": "chromium",
    "firefox": "firefox",
    "webkit": "webkit",
}


class BrowserSession:
    """Owns one Playwright browser and page for the duration of a run.

    Use as an async context manager so the browser is always released::

        async with await BrowserSession.launch("firefox", viewport) as session:
            ...
    """

    def __init__(self, playwright: Playwright, browser: Browser, page: Page):
        self._playwright = playwright
        self._browser = browser
        self.page = page
        self._closed = False

    @classmethod
    async def launch(
        cls, browser: str, viewport: ViewportConfig, headless: bool = True,
    ) -> "BrowserSession":
        """Start Playwright, launch ``browser`` and open a page at ``viewport``."""
        engine = _ENGINES.get(browser.lower())
        playwright = await async_playwright().start()
        try:
            if engine is None:
                raise SetupError(f"Unknown browser type: {browser}")
            logger.debug("Launching %s (headless=%s)...", engine, headless)
            launched = await getattr(playwright, engine).launch(headless=headless)
            context = await launched.new_context(viewport=viewport.as_dict())
            page = await context.new_page()
        except PlaywrightError as e:
            await playwright.stop()
            raise SetupError(f"Cannot launch {browser}: {e}") from e
        except BaseException:
            await playwright.stop()
            raise
        logger.info("Browser ready: %s %dx%d", engine, viewport.width, viewport.height)
        return cls(playwright, launched, page)

    async def __aenter__(self) -> "BrowserSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def navigate(self, url: str) -> None:
        await self.page.goto(url, wait_until="load")

    async def query(self, selector: str) -> ElementHandle | None:
        """First element matching ``selector``, or None (also for invalid selectors)."""
        try:
            return await self.page.query_selector(selector)
        except PlaywrightError as e:
            logger.debug("Selector lookup for '%s' failed: %s", selector, e)
            return None

    async def screenshot(self, target: CaptureTarget) -> bytes:
        """PNG bytes of ``target``."""
        if isinstance(target, ElementTarget):
            return await target.element.screenshot(type="png")
        return await self.page.screenshot(type="png", full_page=False)

    async def settle(self, delay_ms: int) -> None:
        """Give pending animations/rendering ``delay_ms`` to finish."""
        if delay_ms > 0:
            await self.page.wait_for_timeout(delay_ms)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._browser.close()
        finally:
            await self._playwright.stop()
        logger.debug("Browser session closed")
