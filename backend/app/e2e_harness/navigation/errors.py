"""
Navigation Errors

Error taxonomy for the navigation layer, plus classification of raw driver
errors into transient (safe to retry) and fatal failures.

Every navigation error carries a kind, so scenario reporting can tell an
infrastructure problem (origin down, browser gone) from an application
defect (HTTP 500, UI that never settles).
"""

import asyncio
from enum import Enum
from typing import List, Optional

from playwright.async_api import TimeoutError as PlaywrightTimeoutError


class NavigationErrorKind(Enum):
    """Distinguishing kind attached to every navigation error"""
    INVALID_TARGET = "invalid_target"
    TRANSIENT = "transient"
    EXHAUSTED = "exhausted"
    TIMEOUT = "timeout"
    STABILITY_TIMEOUT = "stability_timeout"
    HTTP_ERROR = "http_error"
    DRIVER_FAILURE = "driver_failure"
    ORIGIN_UNREACHABLE = "origin_unreachable"
    FORM_NOT_READY = "form_not_ready"


INFRASTRUCTURE_KINDS = {
    NavigationErrorKind.TRANSIENT,
    NavigationErrorKind.EXHAUSTED,
    NavigationErrorKind.DRIVER_FAILURE,
    NavigationErrorKind.ORIGIN_UNREACHABLE,
}


class FailureClass(Enum):
    """Retry classification of a raw driver error"""
    TRANSIENT = "transient"
    FATAL = "fatal"


class HarnessError(Exception):
    """Base error for the E2E harness"""
    kind: NavigationErrorKind = NavigationErrorKind.DRIVER_FAILURE
    retryable: bool = False

    @property
    def is_infrastructure(self) -> bool:
        """True for environment/infrastructure problems, False for app or test defects"""
        return self.kind in INFRASTRUCTURE_KINDS


class NavigationError(HarnessError):
    """Base error for navigation failures"""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class InvalidNavigationTarget(NavigationError):
    """Target cannot be resolved to a valid absolute URL, even against the fallback origin"""
    kind = NavigationErrorKind.INVALID_TARGET

    def __init__(self, message: str, path: str, base: Optional[str] = None):
        super().__init__(message)
        self.path = path
        self.base = base


class TransientNavigationFailure(NavigationError):
    """A single navigation attempt failed in a way worth retrying"""
    kind = NavigationErrorKind.TRANSIENT
    retryable = True


class NavigationExhausted(NavigationError):
    """All navigation attempts failed with transient errors"""
    kind = NavigationErrorKind.EXHAUSTED

    def __init__(self, message: str, url: str, attempts: List):
        super().__init__(message, url=url)
        self.attempts = attempts


class NavigationTimeout(NavigationError):
    """Page responded but never reached network idle or loaded"""
    kind = NavigationErrorKind.TIMEOUT

    def __init__(self, message: str, url: Optional[str] = None, stage: str = "load", timeout_ms: int = 0):
        super().__init__(message, url=url)
        self.stage = stage
        self.timeout_ms = timeout_ms


class StabilityTimeout(NavigationError):
    """Page loaded but the target element never settled"""
    kind = NavigationErrorKind.STABILITY_TIMEOUT

    def __init__(self, message: str, url: Optional[str] = None, selector: str = "", timeout_ms: int = 0):
        super().__init__(message, url=url)
        self.selector = selector
        self.timeout_ms = timeout_ms


class NavigationHttpError(NavigationError):
    """Application answered the navigation with an error status"""
    kind = NavigationErrorKind.HTTP_ERROR

    def __init__(self, message: str, url: str, status: int):
        super().__init__(message, url=url)
        self.status = status


class DriverFailure(NavigationError):
    """Browser driver crashed, closed, or failed in an unrecognized way"""
    kind = NavigationErrorKind.DRIVER_FAILURE


class OriginUnreachable(HarnessError):
    """Application origin did not answer before the preflight budget ran out"""
    kind = NavigationErrorKind.ORIGIN_UNREACHABLE

    def __init__(self, message: str, origin: str):
        super().__init__(message)
        self.origin = origin


class FormNotReady(HarnessError):
    """Form is missing or its controls never became interactive"""
    kind = NavigationErrorKind.FORM_NOT_READY

    def __init__(self, message: str, selector: str, timeout_ms: int = 0):
        super().__init__(message)
        self.selector = selector
        self.timeout_ms = timeout_ms


# ==================== Classification ====================

# Browser has gone away; retrying on the same driver cannot help
CRASH_MARKERS = [
    "target closed",
    "target page, context or browser has been closed",
    "browser has been closed",
    "browser has disconnected",
    "page crashed",
]

TRANSIENT_MARKERS = [
    "net::err_connection_refused",
    "net::err_connection_reset",
    "net::err_connection_closed",
    "net::err_empty_response",
    "net::err_timed_out",
    "net::err_network_changed",
    "net::err_aborted",
    "ns_error_connection_refused",
    "ns_error_net_reset",
    "ns_error_net_timeout",
    "ns_binding_aborted",
    "could not connect to the server",
    "connection refused",
    "interrupted by another navigation",
]


def classify_driver_error(error: BaseException) -> FailureClass:
    """
    Classify a raw driver error for the retry policy.

    Args:
        error: The exception raised by the driver

    Returns:
        FailureClass.TRANSIENT for timeouts, refused/reset connections and
        temporary aborts; FailureClass.FATAL for everything else
    """
    message = str(error).lower()

    if any(marker in message for marker in CRASH_MARKERS):
        return FailureClass.FATAL

    if isinstance(error, (PlaywrightTimeoutError, asyncio.TimeoutError, TimeoutError)):
        return FailureClass.TRANSIENT

    if isinstance(error, ConnectionError):
        return FailureClass.TRANSIENT

    if any(marker in message for marker in TRANSIENT_MARKERS):
        return FailureClass.TRANSIENT

    return FailureClass.FATAL


def is_timeout_error(error: BaseException) -> bool:
    return isinstance(error, (PlaywrightTimeoutError, asyncio.TimeoutError, TimeoutError))
