"""
Browser Driver

Capability interface the navigation layer needs from a browser, and the
Playwright implementation of it. The controller only talks to this
interface, so it can be exercised against a fake driver without a browser.
"""

import asyncio
import logging
import time
from typing import Any, List, Optional, Protocol, runtime_checkable

from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

logger = logging.getLogger(__name__)


@runtime_checkable
class BrowserDriver(Protocol):
    """What the navigation controller needs from a browser"""

    def current_url(self) -> str:
        """Location currently reported by the browser (may be empty or bogus)"""
        ...

    async def navigate(self, url: str, timeout_ms: int) -> Optional[int]:
        """Navigate to an absolute URL; return the HTTP status if known"""
        ...

    async def wait_for_network_idle(self, timeout_ms: int) -> None:
        ...

    async def wait_for_load(self, timeout_ms: int) -> None:
        ...

    async def element_snapshot(self, selector: str) -> Optional[Any]:
        """Comparable snapshot of an element's state, or None if it is not rendered"""
        ...


class PlaywrightDriver:
    """
    BrowserDriver backed by a Playwright async Page.

    Navigation returns as soon as the response is committed, so the load
    and network-idle waits run as separate, separately bounded stages.
    """

    # Selectors that indicate the page is still busy
    LOADING_INDICATORS = [
        '[aria-busy="true"]',
        '[class*="loading"]',
        '[class*="spinner"]',
        '[role="progressbar"]',
    ]

    DEFAULT_POLL_INTERVAL = 100  # ms
    SETTLE_DELAY = 500  # ms

    def __init__(
        self,
        page: Page,
        loading_indicators: Optional[List[str]] = None,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL
    ):
        """
        Initialize the driver.

        Args:
            page: Playwright page object
            loading_indicators: Selectors that mark a page as still loading
            poll_interval_ms: Poll interval for loading indicator checks
        """
        self.page = page
        self.loading_indicators = loading_indicators if loading_indicators is not None else list(self.LOADING_INDICATORS)
        self.poll_interval_ms = poll_interval_ms

    def current_url(self) -> str:
        return self.page.url

    async def navigate(self, url: str, timeout_ms: int) -> Optional[int]:
        response = await self.page.goto(url, wait_until="commit", timeout=timeout_ms)
        return response.status if response is not None else None

    async def wait_for_network_idle(self, timeout_ms: int) -> None:
        await self.page.wait_for_load_state("networkidle", timeout=timeout_ms)

    async def wait_for_load(self, timeout_ms: int) -> None:
        """
        Wait for the load event, then for loading indicators to disappear.

        Raises:
            TimeoutError: Indicators were still visible when the budget ran out
        """
        deadline = time.monotonic() + timeout_ms / 1000
        await self.page.wait_for_load_state("load", timeout=timeout_ms)

        while time.monotonic() < deadline:
            if not await self.is_page_loading():
                # double-check after a short settle delay
                await asyncio.sleep(self.SETTLE_DELAY / 1000)
                if not await self.is_page_loading():
                    return
            await asyncio.sleep(self.poll_interval_ms / 1000)

        raise TimeoutError(f"Page did not finish loading within {timeout_ms}ms")

    async def is_page_loading(self) -> bool:
        """True while any visible loading indicator is on the page"""
        for selector in self.loading_indicators:
            count = await self.page.locator(f"{selector} >> visible=true").count()
            if count > 0:
                return True
        return False

    async def element_snapshot(self, selector: str) -> Optional[Any]:
        """Bounding box plus text content of the first matching element"""
        locator = self.page.locator(selector).first
        try:
            box = await locator.bounding_box(timeout=self.poll_interval_ms)
            if box is None:
                return None
            text = await locator.text_content(timeout=self.poll_interval_ms)
        except PlaywrightTimeoutError:
            # not attached yet
            return None

        return (box["x"], box["y"], box["width"], box["height"], text)
