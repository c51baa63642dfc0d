"""
CI Configuration

Runner-level settings derived from the current test mode: workers and
retries, browsers to exercise, artifact capture, and the test / action /
navigation timeouts handed to Playwright.
"""

from typing import Dict, List, Mapping, Optional

from .test_modes import BrowserType, TestMode, TestTag, get_current_test_mode, is_in_ci_mode
from .timeout_config import TimeoutPolicy

# Artifact paths
ARTIFACTS_DIR = "test-results/e2e-artifacts"
SCREENSHOTS_DIR = f"{ARTIFACTS_DIR}/screenshots"
VIDEOS_DIR = f"{ARTIFACTS_DIR}/videos"
TRACES_DIR = f"{ARTIFACTS_DIR}/traces"

DEFAULT_RETRIES = 1
DEFAULT_WORKERS = 2
MAX_WORKERS = 4

# Categories skipped per mode
SKIPPED_CATEGORIES: Dict[TestMode, List[TestTag]] = {
    TestMode.CI_FUNCTIONAL: [TestTag.VISUAL],
    TestMode.CI_LIGHTWEIGHT: [TestTag.VISUAL, TestTag.PERFORMANCE, TestTag.FLAKY],
}


def get_default_browsers(environ: Optional[Mapping[str, str]] = None) -> List[BrowserType]:
    if get_current_test_mode(environ) == TestMode.CI_FULL:
        return [BrowserType.CHROMIUM, BrowserType.FIREFOX, BrowserType.WEBKIT]
    return [BrowserType.CHROMIUM]


def get_resource_allocation(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Optional[int]]:
    """Worker count and runner retries for the current mode"""
    mode = get_current_test_mode(environ)

    if mode == TestMode.CI_FULL:
        return {"workers": DEFAULT_WORKERS, "retries": 2}
    if mode == TestMode.CI_LIGHTWEIGHT:
        # more workers for faster feedback
        return {"workers": MAX_WORKERS, "retries": 1}
    if mode in (TestMode.CI_FUNCTIONAL, TestMode.CI_VISUAL):
        return {"workers": DEFAULT_WORKERS, "retries": DEFAULT_RETRIES}

    # None lets the runner size itself to the machine
    return {"workers": None, "retries": 0}


def should_skip_test_category(category, environ: Optional[Mapping[str, str]] = None) -> bool:
    """
    Decide whether a scenario category is skipped in the current mode.

    Args:
        category: TestTag or marker name ("visual", "performance", "flaky", ...)
        environ: Environment reader

    Returns:
        True if scenarios of this category should not run
    """
    try:
        tag = TestTag(category)
    except ValueError:
        return False

    return tag in SKIPPED_CATEGORIES.get(get_current_test_mode(environ), [])


def get_runner_timeouts(environ: Optional[Mapping[str, str]] = None) -> Dict[str, int]:
    """Test / action / navigation timeouts (ms) for the Playwright runner"""
    timeouts = TimeoutPolicy(environ).get_timeouts()
    mode = get_current_test_mode(environ)

    if mode == TestMode.CI_FULL:
        return {
            "test_timeout": timeouts.navigation * 2,
            "action_timeout": timeouts.element_wait,
            "navigation_timeout": timeouts.navigation,
        }
    if mode == TestMode.CI_LIGHTWEIGHT:
        return {
            "test_timeout": int(timeouts.navigation * 0.75),
            "action_timeout": int(timeouts.element_wait * 0.75),
            "navigation_timeout": int(timeouts.navigation * 0.75),
        }

    return {
        "test_timeout": timeouts.navigation,
        "action_timeout": timeouts.element_wait,
        "navigation_timeout": timeouts.navigation,
    }


def get_artifact_settings(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Screenshot / video / trace capture policy"""
    if not is_in_ci_mode(environ):
        return {"screenshot": "only-on-failure", "video": "off", "trace": "on-first-retry"}

    mode = get_current_test_mode(environ)
    if mode == TestMode.CI_FULL:
        return {"screenshot": "on", "video": "on", "trace": "on"}
    if mode == TestMode.CI_VISUAL:
        return {"screenshot": "on", "video": "on", "trace": "on-first-retry"}

    return {"screenshot": "only-on-failure", "video": "on-first-retry", "trace": "on-first-retry"}
