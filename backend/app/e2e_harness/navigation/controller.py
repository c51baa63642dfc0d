"""
Navigation Controller

Takes a scenario from "go to this path" to "page is ready to assert on":

1. Resolve - build an absolute URL from the path, the browser's current
   location (only if it is a valid base) and the known base origin
2. Attempt - navigate, retrying transient failures with linear backoff
3. Network idle - wait for in-flight requests to settle
4. Load - wait for the load signal
5. Stability (optional) - wait for a target element to stop changing

Stages run strictly in sequence. Each one is bounded by a timeout from the
TimeoutPolicy; exceeding a bound fails that stage with a distinguished
error instead of a generic one.
"""

import asyncio
import logging
import math
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional

from ..config.settings import HarnessSettings, MAX_NAVIGATION_RETRIES
from ..config.timeout_config import MAX_TIMEOUT_MS, TimeoutConfig, TimeoutPolicy
from .driver import BrowserDriver
from .errors import (
    DriverFailure,
    FailureClass,
    InvalidNavigationTarget,
    NavigationError,
    NavigationExhausted,
    NavigationHttpError,
    NavigationTimeout,
    StabilityTimeout,
    TransientNavigationFailure,
    classify_driver_error,
    is_timeout_error,
)
from .url_resolver import resolve_navigation_url

logger = logging.getLogger(__name__)


class NavigationState(Enum):
    """States of a single navigate_to call"""
    IDLE = "idle"
    RESOLVING = "resolving"
    ATTEMPTING = "attempting"
    NETWORK_IDLE_WAIT = "network_idle_wait"
    LOAD_WAIT = "load_wait"
    STABILITY_WAIT = "stability_wait"
    DONE = "done"
    FAILED = "failed"


class AttemptOutcome(Enum):
    SUCCESS = "success"
    TRANSIENT_FAILURE = "transient_failure"
    FATAL_FAILURE = "fatal_failure"


@dataclass
class NavigationRequest:
    """Input to the controller"""
    path: str
    retries: Optional[int] = None
    timeout: Optional[int] = None
    stable_selector: Optional[str] = None


@dataclass
class NavigationAttempt:
    """One navigation attempt, kept only for the duration of the call"""
    index: int
    url: str
    started_at: float
    outcome: Optional[AttemptOutcome] = None
    duration_ms: int = 0
    error: Optional[str] = None


@dataclass
class NavigationResult:
    """Outcome of a successful navigate_to call"""
    url: str
    attempts: List[NavigationAttempt]
    elapsed_ms: int
    status: Optional[int] = None
    used_fallback: bool = False
    states: List[NavigationState] = field(default_factory=list)


class NavigationController:
    """
    Resilient navigation for E2E scenarios.

    Features:
    - URL resolution that never trusts an unvalidated current location
    - Bounded retries for transient failures only
    - Network-idle, load and element-stability waits with distinct errors
    - Explicit state machine with a bounded attempt counter
    """

    def __init__(
        self,
        driver: BrowserDriver,
        settings: Optional[HarnessSettings] = None,
        timeout_policy: Optional[TimeoutPolicy] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
        clock: Optional[Callable[[], float]] = None
    ):
        """
        Initialize the controller.

        Args:
            driver: Browser capability (see BrowserDriver)
            settings: Retry / stability tuning and base origin
            timeout_policy: Source of per-operation timeouts
            sleep: Coroutine used for backoff and polling delays (seconds)
            clock: Monotonic clock in seconds
        """
        self.driver = driver
        self.settings = settings or HarnessSettings.from_env()
        self.timeout_policy = timeout_policy or TimeoutPolicy()
        self._sleep = sleep or asyncio.sleep
        self._clock = clock or time.monotonic

        self.state = NavigationState.IDLE
        self.history: List[NavigationState] = []

    # ==================== Public API ====================

    async def navigate_to(
        self,
        path: str,
        retries: Optional[int] = None,
        timeout: Optional[int] = None,
        stable_selector: Optional[str] = None
    ) -> NavigationResult:
        """
        Navigate to a path and wait until the page is ready.

        Args:
            path: Absolute URL or path relative to the current page
            retries: Extra attempts for transient failures (default from settings)
            timeout: Per-call navigation/load timeout override in ms
            stable_selector: Element that must settle before returning

        Returns:
            NavigationResult

        Raises:
            InvalidNavigationTarget: Path cannot be resolved (never retried)
            NavigationExhausted: Every attempt failed transiently
            NavigationHttpError: Application answered with status >= 400
            NavigationTimeout: Network idle or load was not reached in time
            StabilityTimeout: stable_selector never settled
            DriverFailure: Browser crashed or failed in an unrecognized way
        """
        return await self.execute(NavigationRequest(
            path=path,
            retries=retries,
            timeout=timeout,
            stable_selector=stable_selector
        ))

    async def execute(self, request: NavigationRequest) -> NavigationResult:
        """Run one navigation request through the state machine"""
        self.history = []
        started = self._clock()

        self._enter(NavigationState.RESOLVING)
        try:
            target = resolve_navigation_url(request.path, self._current_url(), self.settings.base_origin)
        except InvalidNavigationTarget as e:
            logger.error(f"Invalid navigation target: {e}")
            self._enter(NavigationState.FAILED)
            raise

        if target.used_fallback:
            logger.info(f"Resolved {request.path!r} against fallback origin {target.base}")

        timeouts = self.timeout_policy.get_timeouts()
        navigation_timeout = self._navigation_timeout(request.timeout, timeouts)
        retries = self._retry_count(request.retries)

        try:
            attempts, status = await self._attempt_navigation(target.url, retries, navigation_timeout)

            self._enter(NavigationState.NETWORK_IDLE_WAIT)
            await self._wait_for_network_idle(target.url, timeouts.network_idle)

            self._enter(NavigationState.LOAD_WAIT)
            await self._bounded(self.driver.wait_for_load(navigation_timeout), navigation_timeout, "load", target.url)

            if request.stable_selector:
                self._enter(NavigationState.STABILITY_WAIT)
                await self._wait_for_stability(target.url, request.stable_selector, timeouts.element_stability)
        except NavigationError as e:
            logger.error(f"Navigation to {target.url} failed [{e.kind.value}]: {e}")
            logger.error(f"Current page URL: {self._current_url() or '(empty)'}")
            self._enter(NavigationState.FAILED)
            raise

        self._enter(NavigationState.DONE)
        elapsed_ms = int((self._clock() - started) * 1000)
        logger.info(f"Navigation to {target.url} complete ({len(attempts)} attempt(s), {elapsed_ms}ms)")

        return NavigationResult(
            url=target.url,
            attempts=attempts,
            elapsed_ms=elapsed_ms,
            status=status,
            used_fallback=target.used_fallback,
            states=list(self.history)
        )

    # ==================== Attempts ====================

    async def _attempt_navigation(self, url: str, retries: int, timeout_ms: int):
        """Navigate with up to `retries` extra attempts for transient failures"""
        attempts: List[NavigationAttempt] = []
        total = retries + 1
        last_error: Optional[BaseException] = None

        for index in range(1, total + 1):
            self._enter(NavigationState.ATTEMPTING)
            attempt = NavigationAttempt(index=index, url=url, started_at=self._clock())
            attempts.append(attempt)
            logger.info(f"Navigating to {url} (attempt {index}/{total}, timeout {timeout_ms}ms)")

            try:
                status = await asyncio.wait_for(self.driver.navigate(url, timeout_ms), timeout=timeout_ms / 1000)
            except Exception as e:
                attempt.duration_ms = self._elapsed_ms(attempt.started_at)
                attempt.error = str(e) or type(e).__name__

                if not self._is_transient(e):
                    attempt.outcome = AttemptOutcome.FATAL_FAILURE
                    if isinstance(e, NavigationError):
                        raise
                    raise DriverFailure(f"Navigation to {url} failed: {attempt.error}", url=url) from e

                attempt.outcome = AttemptOutcome.TRANSIENT_FAILURE
                last_error = TransientNavigationFailure(
                    f"Attempt {index}/{total} to {url} failed: {attempt.error}", url=url
                )
                last_error.__cause__ = e

                if index < total:
                    delay_ms = self._backoff_delay(index)
                    logger.warning(f"Transient navigation failure: {attempt.error}; retrying in {delay_ms}ms")
                    await self._sleep(delay_ms / 1000)
                continue

            attempt.duration_ms = self._elapsed_ms(attempt.started_at)

            if status is not None and status >= 400:
                attempt.outcome = AttemptOutcome.FATAL_FAILURE
                attempt.error = f"HTTP {status}"
                raise NavigationHttpError(f"{url} responded with HTTP {status}", url=url, status=status)

            attempt.outcome = AttemptOutcome.SUCCESS
            if index > 1:
                logger.info(f"Navigation to {url} succeeded after {index - 1} retries")
            return attempts, status

        logger.error(f"Navigation to {url} failed after {retries} retries")
        raise NavigationExhausted(
            f"Navigation to {url} failed after {total} attempt(s): {attempts[-1].error}",
            url=url,
            attempts=attempts
        ) from last_error

    def _is_transient(self, error: BaseException) -> bool:
        if isinstance(error, NavigationError):
            return error.retryable
        return classify_driver_error(error) == FailureClass.TRANSIENT

    def _backoff_delay(self, attempt_index: int) -> int:
        """Linear backoff, each delay capped"""
        return min(self.settings.retry_delay_ms * attempt_index, self.settings.max_retry_delay_ms)

    # ==================== Readiness ====================

    async def _wait_for_network_idle(self, url: str, timeout_ms: int) -> None:
        try:
            await self._bounded(self.driver.wait_for_network_idle(timeout_ms), timeout_ms, "network_idle", url)
        except NavigationTimeout as e:
            if self.settings.strict_network_idle:
                raise
            logger.warning(f"Network did not become idle within {timeout_ms}ms, continuing: {e}")

    async def _wait_for_stability(self, url: str, selector: str, timeout_ms: int) -> None:
        try:
            await asyncio.wait_for(self._poll_until_stable(url, selector, timeout_ms), timeout=timeout_ms / 1000)
        except asyncio.TimeoutError as e:
            raise StabilityTimeout(
                f"Element {selector!r} did not stabilize within {timeout_ms}ms",
                url=url, selector=selector, timeout_ms=timeout_ms
            ) from e

    async def _poll_until_stable(self, url: str, selector: str, timeout_ms: int) -> None:
        """Require N consecutive identical snapshots of the element"""
        deadline = self._clock() + timeout_ms / 1000
        needed = self.settings.stability_samples
        previous = None
        streak = 0

        while True:
            try:
                snapshot = await self.driver.element_snapshot(selector)
            except Exception as e:
                raise DriverFailure(f"Could not sample element {selector!r}: {e}", url=url) from e

            if snapshot is None:
                streak = 0
            elif streak and snapshot == previous:
                streak += 1
            else:
                streak = 1
            previous = snapshot

            if streak >= needed:
                logger.debug(f"Element {selector!r} stable after {needed} samples")
                return

            if self._clock() >= deadline:
                raise StabilityTimeout(
                    f"Element {selector!r} did not stabilize within {timeout_ms}ms",
                    url=url, selector=selector, timeout_ms=timeout_ms
                )

            await self._sleep(self.settings.stability_interval_ms / 1000)

    async def _bounded(self, awaitable: Awaitable, timeout_ms: int, stage: str, url: str):
        """Await a readiness stage, converting its failures to navigation errors"""
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout_ms / 1000)
        except NavigationError:
            raise
        except Exception as e:
            if is_timeout_error(e):
                raise NavigationTimeout(
                    f"Page at {url} did not reach {stage} within {timeout_ms}ms",
                    url=url, stage=stage, timeout_ms=timeout_ms
                ) from e
            raise DriverFailure(f"Driver failed during {stage} wait: {e}", url=url) from e

    # ==================== Helpers ====================

    def _enter(self, state: NavigationState) -> None:
        self.state = state
        self.history.append(state)
        logger.debug(f"Navigation state -> {state.value}")

    def _current_url(self) -> str:
        try:
            return self.driver.current_url() or ""
        except Exception as e:
            logger.warning(f"Driver could not report its location: {e}")
            return ""

    def _navigation_timeout(self, override: Optional[int], timeouts: TimeoutConfig) -> int:
        if override is None:
            return timeouts.navigation
        if (
            isinstance(override, bool)
            or not isinstance(override, (int, float))
            or not math.isfinite(override)
            or override < 1
        ):
            logger.warning(f"Ignoring invalid navigation timeout override {override!r}")
            return timeouts.navigation
        return min(round(override), MAX_TIMEOUT_MS)

    def _retry_count(self, retries: Optional[int]) -> int:
        if retries is None:
            return self.settings.navigation_retries
        try:
            count = None if isinstance(retries, bool) else int(retries)
        except (TypeError, ValueError, OverflowError):
            count = None
        if count is None:
            logger.warning(
                f"Ignoring invalid retry count {retries!r}, using {self.settings.navigation_retries}"
            )
            return self.settings.navigation_retries
        if count < 0:
            logger.warning(f"Negative retry count {count}, using 0")
            return 0
        if count > MAX_NAVIGATION_RETRIES:
            logger.warning(f"Retry count {count} capped at {MAX_NAVIGATION_RETRIES}")
            return MAX_NAVIGATION_RETRIES
        return count

    def _elapsed_ms(self, since: float) -> int:
        return int((self._clock() - since) * 1000)
