"""
Splash Page

Page object for the marketing splash page.
"""

import logging
from typing import Optional

from playwright.async_api import Locator

from ..navigation.controller import NavigationResult
from ..utils.test_logger import TestLogger
from .base_page import BasePage
from .cta_form import CtaForm

logger = logging.getLogger(__name__)


class SplashPage(BasePage):
    """Headline, CTA form and footer of the landing page"""

    PATH = "/"

    HEADLINE_SELECTOR = '[data-testid="hero-headline"]'
    CTA_SECTION_SELECTOR = '[data-testid="cta-form"]'
    FOOTER_SELECTOR = '[data-testid="footer"]'

    async def navigate(self, timeout: Optional[int] = None, retries: Optional[int] = None) -> NavigationResult:
        """
        Open the splash page and wait for the headline to settle.

        Args:
            timeout: Navigation/load timeout override in ms
            retries: Extra attempts for transient failures

        Returns:
            NavigationResult
        """
        test_logger = TestLogger("SplashPage Navigation")
        test_logger.start()

        test_logger.step("Navigating to homepage with environment-aware timeouts")
        try:
            result = await self.navigate_to(
                self.PATH,
                retries=retries,
                timeout=timeout,
                stable_selector=self.HEADLINE_SELECTOR
            )
        except Exception as e:
            test_logger.error("Navigation failed", e)
            test_logger.end("failed")
            raise

        test_logger.success(f"Navigation complete: {result.url}")
        test_logger.end("passed")
        return result

    async def get_headline(self) -> Locator:
        logger.debug(f"Waiting for headline element: {self.HEADLINE_SELECTOR}")
        return await self.wait_for_element(self.HEADLINE_SELECTOR)

    async def is_cta_section_visible(self) -> bool:
        return await self.is_element_visible(self.CTA_SECTION_SELECTOR)

    async def is_footer_visible(self) -> bool:
        return await self.is_element_visible(self.FOOTER_SELECTOR)

    def get_cta_form(self) -> CtaForm:
        """CTA form object sharing this page's controller and timeout policy"""
        return CtaForm(self.page, controller=self.controller, timeout_policy=self.timeout_policy)
