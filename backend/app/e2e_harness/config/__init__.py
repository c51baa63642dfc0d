"""
Config Module

Environment detection, timeout policy, test modes and harness settings.
"""

from .environment import CIProvider, detect_ci_provider, is_running_in_ci
from .test_modes import (
    TestMode,
    TestTag,
    TestModeConfig,
    get_current_test_mode,
    get_test_mode_config,
    get_test_mode_summary,
)
from .timeout_config import (
    ExecutionEnvironment,
    TimeoutOperation,
    TimeoutConfig,
    TimeoutPolicy,
    MAX_TIMEOUT_MS,
    calculate_timeout,
    derive_environment,
    get_environment_timeouts,
    get_timeout,
    log_timeout_configuration,
)
from .settings import HarnessSettings

__all__ = [
    'CIProvider',
    'detect_ci_provider',
    'is_running_in_ci',
    'TestMode',
    'TestTag',
    'TestModeConfig',
    'get_current_test_mode',
    'get_test_mode_config',
    'get_test_mode_summary',
    'ExecutionEnvironment',
    'TimeoutOperation',
    'TimeoutConfig',
    'TimeoutPolicy',
    'MAX_TIMEOUT_MS',
    'calculate_timeout',
    'derive_environment',
    'get_environment_timeouts',
    'get_timeout',
    'log_timeout_configuration',
    'HarnessSettings'
]
