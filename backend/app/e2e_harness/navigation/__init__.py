"""
Navigation Module

URL resolution, retrying navigation and readiness waits.
"""

from .controller import (
    NavigationController,
    NavigationRequest,
    NavigationResult,
    NavigationAttempt,
    NavigationState,
    AttemptOutcome,
)
from .driver import BrowserDriver, PlaywrightDriver
from .errors import (
    HarnessError,
    NavigationError,
    NavigationErrorKind,
    InvalidNavigationTarget,
    TransientNavigationFailure,
    NavigationExhausted,
    NavigationTimeout,
    StabilityTimeout,
    NavigationHttpError,
    DriverFailure,
    OriginUnreachable,
    FormNotReady,
    FailureClass,
    classify_driver_error,
)
from .url_resolver import ResolvedTarget, resolve_navigation_url, is_absolute_http_url

__all__ = [
    'NavigationController',
    'NavigationRequest',
    'NavigationResult',
    'NavigationAttempt',
    'NavigationState',
    'AttemptOutcome',
    'BrowserDriver',
    'PlaywrightDriver',
    'HarnessError',
    'NavigationError',
    'NavigationErrorKind',
    'InvalidNavigationTarget',
    'TransientNavigationFailure',
    'NavigationExhausted',
    'NavigationTimeout',
    'StabilityTimeout',
    'NavigationHttpError',
    'DriverFailure',
    'OriginUnreachable',
    'FormNotReady',
    'FailureClass',
    'classify_driver_error',
    'ResolvedTarget',
    'resolve_navigation_url',
    'is_absolute_http_url'
]
