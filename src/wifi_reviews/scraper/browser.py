"""Playwright browser management."""

import random
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional
from playwright.async_api import Browser, BrowserContext, Page, async_playwright
from playwright_stealth.stealth import Stealth

from wifi_reviews.config import settings
from wifi_reviews.utils.logging import logger

USER_AGENTS = [
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36",
]

VIEWPORTS = [
    {"width": 1366, "height": 768},
    {"width": 1920, "height": 1080},
    {"width": 1440, "height": 900},
    {"width": 1536, "height": 864},
    {"width": 1280, "height": 720},
]

BROWSER_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--no-first-run",
    "--no-default-browser-check",
    "--disable-extensions",
    "--disable-sync",
    "--disable-translate",
    "--mute-audio",
    "--hide-scrollbars",
]

# Masks automation indicators that the stealth plugin leaves behind
INIT_SCRIPT = """
    Object.defineProperty(navigator, 'webdriver', {
        get: () => undefined
    });
    Object.defineProperty(navigator, 'languages', {
        get: () => ['en-US', 'en']
    });
    delete window.cdc_adoQpoasnfa76pfcZLmcfl_Array;
    delete window.cdc_adoQpoasnfa76pfcZLmcfl_Promise;
    delete window.cdc_adoQpoasnfa76pfcZLmcfl_Symbol;
"""


def random_fingerprint() -> Dict[str, object]:
    """Pick a user agent and viewport for one session."""
    return {
        "user_agent": random.choice(USER_AGENTS),
        "viewport": dict(random.choice(VIEWPORTS)),
    }


class BrowserManager:
    """Manages a Playwright browser; every crawl gets its own context."""

    def __init__(self, headless: bool = True):
        """Initialize browser manager.

        Args:
            headless: Run browser in headless mode
        """
        self.headless = headless
        self._browser: Optional[Browser] = None
        self._playwright = None

    async def start(self) -> None:
        """Start the browser."""
        if self._browser:
            return

        logger.info("Starting browser...")
        self._playwright = await async_playwright().start()

        self._browser = await self._playwright.chromium.launch(
            headless=self.headless,
            args=BROWSER_ARGS,
            ignore_default_args=["--enable-automation"],
            timeout=settings.browser_launch_timeout,
        )
        logger.info("Browser started")

    async def stop(self) -> None:
        """Stop the browser."""
        if self._browser:
            logger.info("Stopping browser...")
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

    @asynccontextmanager
    async def new_context(self) -> AsyncIterator[BrowserContext]:
        """Create a browser context with a randomized fingerprint.

        Yields:
            Browser context, closed on exit
        """
        if not self._browser:
            await self.start()

        fingerprint = random_fingerprint()
        logger.debug(
            f"New context: {fingerprint['viewport']['width']}x{fingerprint['viewport']['height']}, "
            f"UA={fingerprint['user_agent'][:40]}..."
        )

        context = await self._browser.new_context(
            user_agent=fingerprint["user_agent"],
            viewport=fingerprint["viewport"],
            locale="en-US",
            timezone_id="America/New_York",
            extra_http_headers={
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
                "Accept-Language": "en-US,en;q=0.9",
                "DNT": "1",
                "Upgrade-Insecure-Requests": "1",
            },
        )

        await context.add_init_script(INIT_SCRIPT)

        try:
            yield context
        finally:
            await context.close()

    @asynccontextmanager
    async def new_page(self) -> AsyncIterator[Page]:
        """Create a page in a fresh context with stealth mode enabled.

        Yields:
            Browser page; page and context are closed on every exit path
        """
        stealth = Stealth()

        async with self.new_context() as ctx:
            page = await ctx.new_page()
            await stealth.apply_stealth_async(page)
            try:
                yield page
            finally:
                await page.close()

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.stop()
