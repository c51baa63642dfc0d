"""
E2E Harness

Environment-aware timing and navigation resilience for Playwright
end-to-end scenarios:
- Per-operation timeouts scaled by CI sub-mode
- Navigation with validated URL fallback and transient-only retries
- Network-idle, load and element-stability readiness waits
- Test modes, CI runner settings and a pytest plugin for mode-based skipping
"""

from .config.timeout_config import (
    ExecutionEnvironment,
    TimeoutOperation,
    TimeoutConfig,
    TimeoutPolicy,
    calculate_timeout,
    get_environment_timeouts
)
from .config.test_modes import TestMode, get_current_test_mode
from .config.settings import HarnessSettings
from .navigation.controller import NavigationController, NavigationResult
from .navigation.driver import BrowserDriver, PlaywrightDriver
from .navigation.errors import (
    HarnessError,
    NavigationError,
    InvalidNavigationTarget,
    NavigationExhausted,
    NavigationTimeout,
    StabilityTimeout
)
from .pages.base_page import BasePage
from .pages.splash_page import SplashPage

__version__ = "0.1.0"

__all__ = [
    # Timeouts
    "ExecutionEnvironment",
    "TimeoutOperation",
    "TimeoutConfig",
    "TimeoutPolicy",
    "calculate_timeout",
    "get_environment_timeouts",
    # Modes
    "TestMode",
    "get_current_test_mode",
    "HarnessSettings",
    # Navigation
    "NavigationController",
    "NavigationResult",
    "BrowserDriver",
    "PlaywrightDriver",
    "HarnessError",
    "NavigationError",
    "InvalidNavigationTarget",
    "NavigationExhausted",
    "NavigationTimeout",
    "StabilityTimeout",
    # Pages
    "BasePage",
    "SplashPage",
]
