"""
CTA Form

Page object for the email capture form on the splash page: fill the email
once the form is interactive, submit, then wait for the outcome message the
application shows after its API call returns.
"""

import logging
from typing import Optional

from playwright.async_api import Locator
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..config.timeout_config import TimeoutOperation
from ..utils.test_logger import TestLogger
from .base_page import BasePage

logger = logging.getLogger(__name__)


class CtaForm(BasePage):
    """
    Email capture form.

    Features:
    - Fill and submit only after the form is ready (FORM_READY)
    - Field and button interactions retried within FORM_INTERACTION
    - Outcome messages awaited within API_CALL, by test id first, then by text
    """

    FORM_SELECTOR = "form"
    EMAIL_INPUT_SELECTOR = 'input[type="email"]'
    SUBMIT_BUTTON_SELECTOR = 'button[type="submit"]'
    SUCCESS_MESSAGE_SELECTOR = '[data-testid="cta-success-message"]'
    ERROR_MESSAGE_SELECTOR = '[data-testid="cta-error-message"]'

    SUCCESS_TEXT = "Thank you! Your email has been submitted successfully"
    ERROR_TEXT = "error submitting your email"

    async def fill_email(self, email: str, timeout: Optional[int] = None, retries: int = BasePage.DEFAULT_ACTION_RETRIES):
        """
        Fill the email input once the form is ready.

        Args:
            email: Address to enter
            timeout: Override in ms for the readiness wait and the fill
            retries: Extra fill attempts
        """
        test_logger = TestLogger("CtaForm.fill_email")
        test_logger.step(f'Filling email field with "{email}"')

        await self.wait_for_form_ready(self.FORM_SELECTOR, timeout=timeout)
        await self.fill_field(self.EMAIL_INPUT_SELECTOR, email, retries=retries, timeout=timeout)

        test_logger.success("Email field filled")

    async def submit(self, timeout: Optional[int] = None, retries: int = BasePage.DEFAULT_ACTION_RETRIES):
        """Click the submit button once the form is ready"""
        test_logger = TestLogger("CtaForm.submit")
        test_logger.start()

        test_logger.step("Preparing to submit form")
        await self.wait_for_form_ready(self.FORM_SELECTOR, timeout=timeout)

        button = await self.wait_for_element(self.SUBMIT_BUTTON_SELECTOR, timeout=timeout)
        button_text = await button.text_content()
        button_enabled = await button.is_enabled()
        test_logger.info(f'Submit button found - text: "{button_text}", enabled: {button_enabled}')

        email_value = await self.page.locator(self.EMAIL_INPUT_SELECTOR).input_value()
        test_logger.info(f'Email input value: "{email_value}"')

        test_logger.step("Clicking submit button")
        await self.click_element(self.SUBMIT_BUTTON_SELECTOR, retries=retries, timeout=timeout)

        test_logger.success("Form submitted")
        test_logger.end("passed")

    def get_success_message(self) -> Locator:
        return self.page.locator(self.SUCCESS_MESSAGE_SELECTOR)

    def get_error_message(self) -> Locator:
        return self.page.locator(self.ERROR_MESSAGE_SELECTOR)

    async def wait_for_success_message(self, timeout: Optional[int] = None) -> Locator:
        return await self._wait_for_message("Success", self.SUCCESS_MESSAGE_SELECTOR, self.SUCCESS_TEXT, timeout)

    async def wait_for_error_message(self, timeout: Optional[int] = None) -> Locator:
        return await self._wait_for_message("Error", self.ERROR_MESSAGE_SELECTOR, self.ERROR_TEXT, timeout)

    async def _wait_for_message(self, label: str, selector: str, text: str, timeout: Optional[int]) -> Locator:
        """
        Wait for an outcome message by test id, falling back to its text.

        The text fallback gets half of the budget.

        Raises:
            PlaywrightTimeoutError: Neither the test id nor the text appeared
        """
        timeout = timeout or self.timeout_policy.calculate_timeout(TimeoutOperation.API_CALL)
        test_logger = TestLogger(f"Wait for {label} Message")
        test_logger.start()
        test_logger.step(f"Waiting for {label.lower()} message (timeout: {timeout}ms)")

        try:
            message = await self.wait_for_element(selector, timeout=timeout)
            test_logger.success(f"{label} message found by test id")
            test_logger.end("passed")
            return message
        except PlaywrightTimeoutError as e:
            test_logger.warn(f"Test id selector failed: {e}")

        test_logger.info("Trying text-based selector")
        text_locator = self.page.get_by_text(text)
        try:
            await text_locator.wait_for(state="visible", timeout=max(1, timeout // 2))
        except PlaywrightTimeoutError as e:
            test_logger.error(f"{label} message not found by any method", e)
            test_logger.end("failed")
            raise

        test_logger.success(f"{label} message found by text")
        test_logger.end("passed")
        return text_locator
