"""
Unit tests for NavigationController.

Tests URL fallback, the transient-only retry policy, readiness stages and
the navigation state machine against a fake driver and a fake clock.
"""

import itertools
import pytest
from pathlib import Path
from unittest.mock import AsyncMock, Mock
import sys

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "app"))

from e2e_harness.config.settings import HarnessSettings
from e2e_harness.config.timeout_config import TimeoutPolicy
from e2e_harness.navigation.controller import (
    AttemptOutcome,
    NavigationController,
    NavigationState,
)
from e2e_harness.navigation.errors import (
    DriverFailure,
    InvalidNavigationTarget,
    NavigationExhausted,
    NavigationHttpError,
    NavigationTimeout,
    StabilityTimeout,
    TransientNavigationFailure,
)


def make_controller(driver, clock, environ=None, **settings):
    return NavigationController(
        driver,
        settings=HarnessSettings(**settings),
        timeout_policy=TimeoutPolicy(environ if environ is not None else {}),
        sleep=clock.sleep,
        clock=clock
    )


class TestUrlFallback:
    """Test resolution of the navigation target."""

    @pytest.mark.asyncio
    async def test_blank_location_uses_base_origin(self, fake_driver, fake_clock):
        """about:blank is never used as a base."""
        controller = make_controller(fake_driver, fake_clock)

        result = await controller.navigate_to("/pricing")

        assert result.url == "http://localhost:3000/pricing"
        assert result.used_fallback is True
        assert fake_driver.navigated == ["http://localhost:3000/pricing"]

    @pytest.mark.asyncio
    async def test_empty_location_uses_base_origin(self, fake_driver, fake_clock):
        fake_driver.location = ""
        controller = make_controller(fake_driver, fake_clock)

        result = await controller.navigate_to("/pricing")

        assert result.url == "http://localhost:3000/pricing"

    @pytest.mark.asyncio
    async def test_error_page_location_uses_base_origin(self, fake_driver, fake_clock):
        fake_driver.location = "chrome-error://chromewebdata/"
        controller = make_controller(fake_driver, fake_clock, base_origin="http://app.test:8080")

        result = await controller.navigate_to("signup")

        assert result.url == "http://app.test:8080/signup"

    @pytest.mark.asyncio
    async def test_valid_location_is_used_as_base(self, fake_driver, fake_clock):
        fake_driver.location = "http://app.test/docs/intro"
        controller = make_controller(fake_driver, fake_clock)

        result = await controller.navigate_to("guide")

        assert result.url == "http://app.test/docs/guide"
        assert result.used_fallback is False

    @pytest.mark.asyncio
    async def test_unreportable_location_uses_base_origin(self, fake_driver, fake_clock):
        """A driver that cannot report its location still navigates."""
        fake_driver.current_url = Mock(side_effect=RuntimeError("no page"))
        controller = make_controller(fake_driver, fake_clock)

        result = await controller.navigate_to("/")

        assert result.url == "http://localhost:3000/"

    @pytest.mark.asyncio
    async def test_invalid_target_makes_no_attempt(self, fake_driver, fake_clock):
        """An unresolvable path fails before any navigation."""
        controller = make_controller(fake_driver, fake_clock)

        with pytest.raises(InvalidNavigationTarget):
            await controller.navigate_to("javascript:alert(1)")

        assert fake_driver.navigated == []
        assert controller.state == NavigationState.FAILED
        assert controller.history == [NavigationState.RESOLVING, NavigationState.FAILED]


class TestRetryPolicy:
    """Test retries of transient navigation failures."""

    @pytest.mark.asyncio
    async def test_exhausts_after_exact_retry_count(self, fake_driver, fake_clock):
        """retries=2 means three attempts, then NavigationExhausted."""
        fake_driver.outcomes = [TimeoutError("Timeout 30000ms exceeded")] * 3
        controller = make_controller(fake_driver, fake_clock)

        with pytest.raises(NavigationExhausted) as exc_info:
            await controller.navigate_to("/", retries=2)

        error = exc_info.value
        assert len(fake_driver.navigated) == 3
        assert len(error.attempts) == 3
        assert all(a.outcome == AttemptOutcome.TRANSIENT_FAILURE for a in error.attempts)
        assert isinstance(error.__cause__, TransientNavigationFailure)
        assert error.is_infrastructure is True
        assert controller.state == NavigationState.FAILED

    @pytest.mark.asyncio
    async def test_zero_retries_means_single_attempt(self, fake_driver, fake_clock):
        fake_driver.outcomes = [ConnectionError("connection refused")]
        controller = make_controller(fake_driver, fake_clock)

        with pytest.raises(NavigationExhausted):
            await controller.navigate_to("/", retries=0)

        assert len(fake_driver.navigated) == 1
        assert fake_clock.sleeps == []

    @pytest.mark.asyncio
    async def test_retry_count_is_capped(self, fake_driver, fake_clock):
        fake_driver.outcomes = [TimeoutError("slow")] * 10
        controller = make_controller(fake_driver, fake_clock)

        with pytest.raises(NavigationExhausted):
            await controller.navigate_to("/", retries=99)

        assert len(fake_driver.navigated) == 6

    @pytest.mark.asyncio
    async def test_numeric_string_retry_count(self, fake_driver, fake_clock):
        fake_driver.outcomes = [TimeoutError("slow")] * 10
        controller = make_controller(fake_driver, fake_clock)

        with pytest.raises(NavigationExhausted):
            await controller.navigate_to("/", retries="1")

        assert len(fake_driver.navigated) == 2

    @pytest.mark.asyncio
    async def test_unparseable_retry_count_uses_settings(self, fake_driver, fake_clock):
        fake_driver.outcomes = [TimeoutError("slow")] * 10
        controller = make_controller(fake_driver, fake_clock, navigation_retries=1)

        with pytest.raises(NavigationExhausted):
            await controller.navigate_to("/", retries="many")

        assert len(fake_driver.navigated) == 2

    @pytest.mark.asyncio
    async def test_default_retries_from_settings(self, fake_driver, fake_clock):
        fake_driver.outcomes = [TimeoutError("slow")] * 10
        controller = make_controller(fake_driver, fake_clock, navigation_retries=1)

        with pytest.raises(NavigationExhausted):
            await controller.navigate_to("/")

        assert len(fake_driver.navigated) == 2

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failure(self, fake_driver, fake_clock):
        fake_driver.outcomes = [Exception("net::ERR_CONNECTION_REFUSED at http://localhost:3000/"), 200]
        controller = make_controller(fake_driver, fake_clock)

        result = await controller.navigate_to("/")

        assert len(result.attempts) == 2
        assert result.attempts[0].outcome == AttemptOutcome.TRANSIENT_FAILURE
        assert result.attempts[1].outcome == AttemptOutcome.SUCCESS
        assert result.status == 200
        assert controller.state == NavigationState.DONE

    @pytest.mark.asyncio
    async def test_transient_harness_error_is_retried(self, fake_driver, fake_clock):
        fake_driver.outcomes = [TransientNavigationFailure("flaky"), 200]
        controller = make_controller(fake_driver, fake_clock)

        result = await controller.navigate_to("/")

        assert len(result.attempts) == 2

    @pytest.mark.asyncio
    async def test_linear_backoff(self, fake_driver, fake_clock):
        fake_driver.outcomes = [TimeoutError("slow")] * 3
        controller = make_controller(fake_driver, fake_clock, retry_delay_ms=500, max_retry_delay_ms=2000)

        with pytest.raises(NavigationExhausted):
            await controller.navigate_to("/", retries=2)

        assert fake_clock.sleeps == [0.5, 1.0]

    @pytest.mark.asyncio
    async def test_backoff_delay_is_capped(self, fake_driver, fake_clock):
        fake_driver.outcomes = [TimeoutError("slow")] * 4
        controller = make_controller(fake_driver, fake_clock, retry_delay_ms=1500, max_retry_delay_ms=2000)

        with pytest.raises(NavigationExhausted):
            await controller.navigate_to("/", retries=3)

        assert fake_clock.sleeps == [1.5, 2.0, 2.0]

    @pytest.mark.asyncio
    async def test_driver_crash_is_not_retried(self, fake_driver, fake_clock):
        fake_driver.outcomes = [Exception("Target page, context or browser has been closed")]
        controller = make_controller(fake_driver, fake_clock)

        with pytest.raises(DriverFailure) as exc_info:
            await controller.navigate_to("/", retries=3)

        assert len(fake_driver.navigated) == 1
        assert exc_info.value.is_infrastructure is True

    @pytest.mark.asyncio
    async def test_unknown_error_is_not_retried(self, fake_driver, fake_clock):
        original = ValueError("something unexpected")
        fake_driver.outcomes = [original]
        controller = make_controller(fake_driver, fake_clock)

        with pytest.raises(DriverFailure) as exc_info:
            await controller.navigate_to("/", retries=3)

        assert exc_info.value.__cause__ is original
        assert len(fake_driver.navigated) == 1

    @pytest.mark.asyncio
    async def test_http_error_is_not_retried(self, fake_driver, fake_clock):
        fake_driver.outcomes = [500]
        controller = make_controller(fake_driver, fake_clock)

        with pytest.raises(NavigationHttpError) as exc_info:
            await controller.navigate_to("/", retries=3)

        assert exc_info.value.status == 500
        assert exc_info.value.is_infrastructure is False
        assert len(fake_driver.navigated) == 1


class TestReadiness:
    """Test the post-navigation readiness stages."""

    @pytest.mark.asyncio
    async def test_stages_run_in_order(self, fake_driver, fake_clock):
        controller = make_controller(fake_driver, fake_clock)

        result = await controller.navigate_to("/")

        assert result.states == [
            NavigationState.RESOLVING,
            NavigationState.ATTEMPTING,
            NavigationState.NETWORK_IDLE_WAIT,
            NavigationState.LOAD_WAIT,
            NavigationState.DONE,
        ]
        fake_driver.wait_for_network_idle.assert_awaited_once_with(20000)
        fake_driver.wait_for_load.assert_awaited_once_with(30000)

    @pytest.mark.asyncio
    async def test_ci_timeouts_reach_the_driver(self, fake_driver, fake_clock):
        controller = make_controller(fake_driver, fake_clock, environ={"CI": "true", "TEST_MODE": "ci-lightweight"})

        await controller.navigate_to("/")

        fake_driver.wait_for_network_idle.assert_awaited_once_with(40000)
        fake_driver.wait_for_load.assert_awaited_once_with(60000)

    @pytest.mark.asyncio
    async def test_network_idle_timeout(self, fake_driver, fake_clock):
        fake_driver.wait_for_network_idle = AsyncMock(side_effect=TimeoutError("still busy"))
        controller = make_controller(fake_driver, fake_clock)

        with pytest.raises(NavigationTimeout) as exc_info:
            await controller.navigate_to("/")

        assert exc_info.value.stage == "network_idle"
        assert exc_info.value.timeout_ms == 20000
        fake_driver.wait_for_load.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_tolerant_network_idle_continues(self, fake_driver, fake_clock):
        fake_driver.wait_for_network_idle = AsyncMock(side_effect=TimeoutError("still busy"))
        controller = make_controller(fake_driver, fake_clock, strict_network_idle=False)

        result = await controller.navigate_to("/")

        assert controller.state == NavigationState.DONE
        assert result.url == "http://localhost:3000/"
        fake_driver.wait_for_load.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_load_timeout(self, fake_driver, fake_clock):
        fake_driver.wait_for_load = AsyncMock(side_effect=TimeoutError("spinner visible"))
        controller = make_controller(fake_driver, fake_clock)

        with pytest.raises(NavigationTimeout) as exc_info:
            await controller.navigate_to("/", timeout=5000)

        assert exc_info.value.stage == "load"
        assert exc_info.value.timeout_ms == 5000
        assert exc_info.value.is_infrastructure is False

    @pytest.mark.asyncio
    async def test_invalid_timeout_override_is_ignored(self, fake_driver, fake_clock):
        controller = make_controller(fake_driver, fake_clock)

        await controller.navigate_to("/", timeout=-1)

        fake_driver.wait_for_load.assert_awaited_once_with(30000)

    @pytest.mark.asyncio
    async def test_sub_millisecond_timeout_override_is_ignored(self, fake_driver, fake_clock):
        controller = make_controller(fake_driver, fake_clock)

        await controller.navigate_to("/", timeout=0.5)

        fake_driver.wait_for_load.assert_awaited_once_with(30000)

    @pytest.mark.asyncio
    async def test_fractional_timeout_override_is_rounded(self, fake_driver, fake_clock):
        controller = make_controller(fake_driver, fake_clock)

        await controller.navigate_to("/", timeout=4999.6)

        fake_driver.wait_for_load.assert_awaited_once_with(5000)

    @pytest.mark.asyncio
    async def test_load_driver_error(self, fake_driver, fake_clock):
        fake_driver.wait_for_load = AsyncMock(side_effect=RuntimeError("Target closed"))
        controller = make_controller(fake_driver, fake_clock)

        with pytest.raises(DriverFailure):
            await controller.navigate_to("/")

        assert controller.state == NavigationState.FAILED


class TestElementStability:
    """Test the optional element stability stage."""

    @pytest.mark.asyncio
    async def test_stable_element(self, fake_driver, fake_clock):
        controller = make_controller(fake_driver, fake_clock)

        result = await controller.navigate_to("/", stable_selector="#hero")

        assert NavigationState.STABILITY_WAIT in result.states
        assert controller.state == NavigationState.DONE

    @pytest.mark.asyncio
    async def test_requires_consecutive_identical_samples(self, fake_driver, fake_clock):
        fake_driver.snapshots = [("a",), ("b",), ("b",), ("b",)]
        controller = make_controller(fake_driver, fake_clock)

        await controller.navigate_to("/", stable_selector="#hero")

        # sampled four times, three polling delays
        assert fake_clock.sleeps == [0.1, 0.1, 0.1]

    @pytest.mark.asyncio
    async def test_element_that_keeps_changing(self, fake_driver, fake_clock):
        fake_driver.element_snapshot = AsyncMock(side_effect=itertools.count())
        controller = make_controller(fake_driver, fake_clock)

        with pytest.raises(StabilityTimeout) as exc_info:
            await controller.navigate_to("/", stable_selector="#ticker")

        assert exc_info.value.selector == "#ticker"
        assert exc_info.value.timeout_ms == 5000
        assert controller.state == NavigationState.FAILED

    @pytest.mark.asyncio
    async def test_element_never_rendered(self, fake_driver, fake_clock):
        fake_driver.element_snapshot = AsyncMock(return_value=None)
        controller = make_controller(fake_driver, fake_clock)

        with pytest.raises(StabilityTimeout):
            await controller.navigate_to("/", stable_selector="#missing")

    @pytest.mark.asyncio
    async def test_no_stability_stage_without_selector(self, fake_driver, fake_clock):
        fake_driver.element_snapshot = AsyncMock()
        controller = make_controller(fake_driver, fake_clock)

        result = await controller.navigate_to("/")

        assert NavigationState.STABILITY_WAIT not in result.states
        fake_driver.element_snapshot.assert_not_awaited()


class TestStateMachine:
    """Test state tracking across calls."""

    def test_initial_state(self, fake_driver, fake_clock):
        controller = make_controller(fake_driver, fake_clock)

        assert controller.state == NavigationState.IDLE
        assert controller.history == []

    @pytest.mark.asyncio
    async def test_one_attempting_state_per_attempt(self, fake_driver, fake_clock):
        fake_driver.outcomes = [TimeoutError("slow"), TimeoutError("slow"), 200]
        controller = make_controller(fake_driver, fake_clock)

        await controller.navigate_to("/", retries=2)

        assert controller.history.count(NavigationState.ATTEMPTING) == 3

    @pytest.mark.asyncio
    async def test_history_resets_per_call(self, fake_driver, fake_clock):
        controller = make_controller(fake_driver, fake_clock)

        await controller.navigate_to("/")
        await controller.navigate_to("/about")

        assert controller.history[0] == NavigationState.RESOLVING
        assert controller.history.count(NavigationState.DONE) == 1
