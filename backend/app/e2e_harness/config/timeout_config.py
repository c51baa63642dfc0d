"""
Timeout Configuration

Environment-aware timeout management for E2E scenarios. Each timed
operation has a base budget measured on a developer machine; CI runs
scale every budget by a multiplier chosen from the CI sub-mode.

Nothing here raises. Ambiguous or malformed environment input degrades to
the least-amplified reading (local, or default CI) and every value is
capped so that no single wait can exceed two minutes.
"""

import logging
import math
from enum import Enum
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from .environment import get_test_mode_tag, is_running_in_ci
from .test_modes import TestMode

# Configure logging
logger = logging.getLogger(__name__)


class ExecutionEnvironment(Enum):
    """Where the scenarios are running"""
    LOCAL = "local"
    CI_DEFAULT = "ci"
    CI_FULL = "ci-full"
    CI_LIGHTWEIGHT = "ci-lightweight"


class TimeoutOperation(Enum):
    """Operations a scenario may put a time bound on"""
    ELEMENT_WAIT = "elementWait"
    FORM_READY = "formReady"
    FORM_INTERACTION = "formInteraction"
    NETWORK_IDLE = "networkIdle"
    NAVIGATION = "navigation"
    API_CALL = "apiCall"
    ELEMENT_STABILITY = "elementStability"


class TimeoutConfig(BaseModel):
    """Resolved timeouts (ms) for the current environment"""
    model_config = ConfigDict(frozen=True)

    element_wait: int = Field(gt=0, description="Elements to appear or become interactable")
    form_ready: int = Field(gt=0, description="Forms to become ready for interaction")
    network_idle: int = Field(gt=0, description="Network activity to settle")
    navigation: int = Field(gt=0, description="Page navigation to complete")
    api_call: int = Field(gt=0, description="API calls to complete")
    element_stability: int = Field(gt=0, description="Element visual stability")

    def is_consistent(self) -> bool:
        """Check the ordering every environment must respect"""
        return (
            self.element_stability < self.element_wait < self.form_ready
            and self.api_call < self.navigation
        )


# Base timeouts in milliseconds, measured for local development
BASE_TIMEOUTS: Dict[TimeoutOperation, int] = {
    TimeoutOperation.ELEMENT_STABILITY: 5000,
    TimeoutOperation.ELEMENT_WAIT: 10000,
    TimeoutOperation.FORM_READY: 15000,
    TimeoutOperation.FORM_INTERACTION: 15000,
    TimeoutOperation.NETWORK_IDLE: 20000,
    TimeoutOperation.API_CALL: 20000,
    TimeoutOperation.NAVIGATION: 30000,
}

TIMEOUT_MULTIPLIERS: Dict[ExecutionEnvironment, float] = {
    ExecutionEnvironment.LOCAL: 1.0,
    ExecutionEnvironment.CI_DEFAULT: 2.5,
    ExecutionEnvironment.CI_FULL: 3.0,
    ExecutionEnvironment.CI_LIGHTWEIGHT: 2.0,
}

# Upper bound for any single wait (2 minutes)
MAX_TIMEOUT_MS = 120000

# TimeoutConfig field -> operation
CONFIG_FIELDS: Dict[str, TimeoutOperation] = {
    "element_wait": TimeoutOperation.ELEMENT_WAIT,
    "form_ready": TimeoutOperation.FORM_READY,
    "network_idle": TimeoutOperation.NETWORK_IDLE,
    "navigation": TimeoutOperation.NAVIGATION,
    "api_call": TimeoutOperation.API_CALL,
    "element_stability": TimeoutOperation.ELEMENT_STABILITY,
}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp(value: int) -> int:
    return max(1, min(value, MAX_TIMEOUT_MS))


class TimeoutPolicy:
    """
    Derives operation timeouts from the execution environment.

    The environment is re-read on every call and never cached.

    Args:
        environ: Environment reader mapping; defaults to os.environ
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self.environ = environ

    def derive_environment(self) -> ExecutionEnvironment:
        """Classify the current run (local, or one of the CI sub-modes)"""
        if not is_running_in_ci(self.environ):
            return ExecutionEnvironment.LOCAL

        tag = get_test_mode_tag(self.environ)
        if tag == TestMode.CI_LIGHTWEIGHT.value:
            return ExecutionEnvironment.CI_LIGHTWEIGHT
        if tag == TestMode.CI_FULL.value:
            return ExecutionEnvironment.CI_FULL

        return ExecutionEnvironment.CI_DEFAULT

    def get_multiplier(self) -> float:
        """Multiplier for the current environment"""
        return TIMEOUT_MULTIPLIERS[self.derive_environment()]

    def calculate_timeout(self, operation, multiplier: Optional[float] = None) -> int:
        """
        Calculate the timeout for one operation.

        Args:
            operation: TimeoutOperation (or its string value)
            multiplier: Optional override replacing the environment multiplier

        Returns:
            Timeout in milliseconds, never above MAX_TIMEOUT_MS
        """
        base = BASE_TIMEOUTS[self._coerce_operation(operation)]
        factor = self._coerce_multiplier(multiplier)
        if factor is None:
            factor = self.get_multiplier()

        return _clamp(_round_half_up(base * factor))

    def get_timeouts(self) -> TimeoutConfig:
        """Full timeout configuration for the current environment"""
        multiplier = self.get_multiplier()
        return TimeoutConfig(**{
            name: self.calculate_timeout(operation, multiplier)
            for name, operation in CONFIG_FIELDS.items()
        })

    def _coerce_operation(self, operation) -> TimeoutOperation:
        if isinstance(operation, TimeoutOperation):
            return operation
        try:
            return TimeoutOperation(operation)
        except ValueError:
            logger.warning(f"Unknown timeout operation {operation!r}, using {TimeoutOperation.ELEMENT_WAIT.value}")
            return TimeoutOperation.ELEMENT_WAIT

    def _coerce_multiplier(self, multiplier) -> Optional[float]:
        if multiplier is None:
            return None
        if isinstance(multiplier, bool):
            logger.warning(f"Ignoring boolean timeout multiplier {multiplier!r}")
            return None
        try:
            factor = float(multiplier)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring non-numeric timeout multiplier {multiplier!r}")
            return None
        if not math.isfinite(factor) or factor <= 0:
            logger.warning(f"Ignoring out-of-range timeout multiplier {multiplier!r}")
            return None
        return factor


# ==================== Module-level Helpers ====================

def derive_environment(environ: Optional[Mapping[str, str]] = None) -> ExecutionEnvironment:
    return TimeoutPolicy(environ).derive_environment()


def get_environment_timeouts(environ: Optional[Mapping[str, str]] = None) -> TimeoutConfig:
    """Complete timeout configuration for the current environment"""
    return TimeoutPolicy(environ).get_timeouts()


def calculate_timeout(
    operation,
    multiplier: Optional[float] = None,
    environ: Optional[Mapping[str, str]] = None
) -> int:
    """Timeout for a single operation, optionally with a custom multiplier"""
    return TimeoutPolicy(environ).calculate_timeout(operation, multiplier)


def get_timeout(operation, environ: Optional[Mapping[str, str]] = None) -> int:
    return calculate_timeout(operation, environ=environ)


def should_use_extended_timeouts(environ: Optional[Mapping[str, str]] = None) -> bool:
    """True when CI timeouts apply"""
    return is_running_in_ci(environ)


def get_adjusted_timeout(
    base_timeout: int,
    ci_multiplier: Optional[float] = None,
    environ: Optional[Mapping[str, str]] = None
) -> int:
    """
    Scale an arbitrary base timeout for CI.

    Local runs get the base value back unchanged.

    Args:
        base_timeout: Base timeout in milliseconds
        ci_multiplier: Optional multiplier (defaults to the environment one)
        environ: Environment reader

    Returns:
        Adjusted timeout, capped at MAX_TIMEOUT_MS
    """
    if not is_running_in_ci(environ):
        return base_timeout

    policy = TimeoutPolicy(environ)
    factor = policy._coerce_multiplier(ci_multiplier)
    if factor is None:
        factor = policy.get_multiplier()

    return min(_round_half_up(base_timeout * factor), MAX_TIMEOUT_MS)


def create_custom_timeout_config(
    environ: Optional[Mapping[str, str]] = None,
    **overrides: int
) -> TimeoutConfig:
    """
    Environment timeouts with selected fields replaced.

    Unknown fields and non-positive or non-numeric values are dropped with a
    warning, values above MAX_TIMEOUT_MS are capped. Overrides that break
    the timeout ordering are discarded as a whole.
    """
    base = get_environment_timeouts(environ)

    accepted: Dict[str, int] = {}
    for name, value in overrides.items():
        if name not in CONFIG_FIELDS:
            logger.warning(f"Ignoring unknown timeout override {name!r}")
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value) or value < 1:
            logger.warning(f"Ignoring invalid timeout override {name}={value!r}")
            continue
        accepted[name] = min(_round_half_up(value), MAX_TIMEOUT_MS)

    config = TimeoutConfig.model_validate({**base.model_dump(), **accepted})
    if not config.is_consistent():
        logger.warning(f"Timeout overrides {accepted} break the timeout ordering, using environment defaults")
        return base
    return config


def log_timeout_configuration(environ: Optional[Mapping[str, str]] = None) -> None:
    """Log the current timeout configuration"""
    policy = TimeoutPolicy(environ)
    environment = policy.derive_environment()
    config = policy.get_timeouts()

    logger.info("=== Timeout Configuration ===")
    logger.info(f"Environment: {environment.value}")
    logger.info(f"Test Mode: {get_test_mode_tag(environ) or '(unset)'}")
    logger.info(f"Multiplier: {TIMEOUT_MULTIPLIERS[environment]}x")
    for name, operation in CONFIG_FIELDS.items():
        logger.info(f"  {name}: {getattr(config, name)}ms (base: {BASE_TIMEOUTS[operation]}ms)")
