"""
Base Page

Shared page-object behaviour: resilient navigation through the
NavigationController and element interactions bounded by environment-aware
timeouts.
"""

import logging
from typing import Optional

from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..config.timeout_config import TimeoutOperation, TimeoutPolicy
from ..navigation.controller import NavigationController, NavigationResult
from ..navigation.driver import PlaywrightDriver
from ..navigation.errors import FormNotReady
from ..utils.retry import with_retry

logger = logging.getLogger(__name__)


class BasePage:
    """
    Base class for page objects.

    Features:
    - navigate_to with URL fallback, transient retries and readiness waits
    - Element waits bounded by ELEMENT_WAIT, form readiness by FORM_READY
    - Clicks and fills retried within FORM_INTERACTION
    """

    DEFAULT_ACTION_RETRIES = 2
    ACTION_RETRY_DELAY = 250  # ms

    def __init__(
        self,
        page: Page,
        controller: Optional[NavigationController] = None,
        timeout_policy: Optional[TimeoutPolicy] = None
    ):
        """
        Initialize the page object.

        Args:
            page: Playwright page object
            controller: Navigation controller (default: one over PlaywrightDriver)
            timeout_policy: Source of interaction timeouts
        """
        self.page = page
        self.timeout_policy = timeout_policy or TimeoutPolicy()
        self.controller = controller or NavigationController(
            PlaywrightDriver(page),
            timeout_policy=self.timeout_policy
        )

    # ==================== Navigation ====================

    async def navigate_to(
        self,
        path: str,
        retries: Optional[int] = None,
        timeout: Optional[int] = None,
        stable_selector: Optional[str] = None
    ) -> NavigationResult:
        """Navigate to a path and wait until the page is ready"""
        return await self.controller.navigate_to(
            path,
            retries=retries,
            timeout=timeout,
            stable_selector=stable_selector
        )

    # ==================== Elements ====================

    def get_locator(self, selector: str, has_text: Optional[str] = None) -> Locator:
        locator = self.page.locator(selector)
        return locator.filter(has_text=has_text) if has_text else locator

    async def wait_for_element(
        self,
        selector: str,
        state: str = "visible",
        timeout: Optional[int] = None
    ) -> Locator:
        """
        Wait for an element to reach a state.

        Args:
            selector: Element selector
            state: attached, detached, visible or hidden
            timeout: Override in ms (default ELEMENT_WAIT)

        Returns:
            Locator for the element
        """
        timeout = timeout or self.timeout_policy.calculate_timeout(TimeoutOperation.ELEMENT_WAIT)
        locator = self.page.locator(selector)

        try:
            await locator.wait_for(state=state, timeout=timeout)
        except Exception as e:
            logger.error(f"Element {selector} did not become {state} within {timeout}ms: {e}")
            logger.error(f"Current page URL: {self.page.url or '(empty)'}")
            raise

        return locator

    async def wait_for_form_ready(self, form_selector: str, timeout: Optional[int] = None) -> Locator:
        """
        Wait until a form and its first control are visible.

        Half of the budget goes to the form, half to its first input or button.

        Args:
            form_selector: Form selector
            timeout: Override in ms (default FORM_READY)

        Returns:
            Locator for the form

        Raises:
            FormNotReady: The form is not in the document or never became interactive
        """
        timeout = timeout or self.timeout_policy.calculate_timeout(TimeoutOperation.FORM_READY)
        form = self.page.locator(form_selector)

        if await form.count() == 0:
            logger.error(f"Form {form_selector} not found on {self.page.url or '(empty)'}")
            raise FormNotReady(f"Form {form_selector} not found", selector=form_selector)

        stage_timeout = max(1, timeout // 2)
        controls = self.page.locator(f"{form_selector} input, {form_selector} button").first
        try:
            await form.wait_for(state="visible", timeout=stage_timeout)
            await controls.wait_for(state="visible", timeout=stage_timeout)
        except PlaywrightTimeoutError as e:
            raise FormNotReady(
                f"Form {form_selector} not interactive within {timeout}ms",
                selector=form_selector,
                timeout_ms=timeout
            ) from e

        logger.debug(f"Form {form_selector} ready")
        return form

    async def click_element(
        self,
        selector: str,
        retries: int = DEFAULT_ACTION_RETRIES,
        timeout: Optional[int] = None
    ):
        """Click an element, retrying while it is still rendering"""
        timeout = timeout or self.timeout_policy.calculate_timeout(TimeoutOperation.FORM_INTERACTION)
        locator = self.page.locator(selector)

        await with_retry(
            lambda: locator.click(timeout=timeout),
            retries=retries,
            delay_ms=self.ACTION_RETRY_DELAY,
            description=f"click {selector}"
        )

    async def fill_field(
        self,
        selector: str,
        value: str,
        retries: int = DEFAULT_ACTION_RETRIES,
        timeout: Optional[int] = None
    ):
        """Fill a form field, retrying while it is still rendering"""
        timeout = timeout or self.timeout_policy.calculate_timeout(TimeoutOperation.FORM_INTERACTION)
        locator = self.page.locator(selector)

        await with_retry(
            lambda: locator.fill(value, timeout=timeout),
            retries=retries,
            delay_ms=self.ACTION_RETRY_DELAY,
            description=f"fill {selector}"
        )

    async def is_element_visible(self, selector: str, timeout: Optional[int] = None) -> bool:
        """True if the element becomes visible in time; never raises on timeout"""
        timeout = timeout or self.timeout_policy.calculate_timeout(TimeoutOperation.ELEMENT_STABILITY)
        try:
            await self.page.locator(selector).wait_for(state="visible", timeout=timeout)
            return True
        except PlaywrightTimeoutError as e:
            logger.warning(f"{selector} not visible: {e}")
            return False

