"""
Preflight

Checks that the application origin answers before a run starts, so an
unreachable server is reported once as an infrastructure problem instead
of as a wall of navigation failures.
"""

import logging
import time
from typing import Callable, Optional

import requests

from ..config.settings import HarnessSettings
from ..navigation.errors import OriginUnreachable

logger = logging.getLogger(__name__)

DEFAULT_PREFLIGHT_TIMEOUT = 30.0  # seconds
DEFAULT_PREFLIGHT_INTERVAL = 1.0  # seconds
REQUEST_TIMEOUT = 2.0  # seconds


def check_origin(base_origin: str, request_timeout: float = REQUEST_TIMEOUT) -> bool:
    """True if the origin answers with any status below 500"""
    try:
        response = requests.get(base_origin, timeout=request_timeout, allow_redirects=True)
    except requests.RequestException as e:
        logger.debug(f"Origin {base_origin} not reachable: {e}")
        return False

    if response.status_code >= 500:
        logger.debug(f"Origin {base_origin} answered HTTP {response.status_code}")
        return False
    return True


def wait_for_origin(
    base_origin: Optional[str] = None,
    timeout_s: float = DEFAULT_PREFLIGHT_TIMEOUT,
    interval_s: float = DEFAULT_PREFLIGHT_INTERVAL,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic
) -> str:
    """
    Poll the application origin until it answers.

    Args:
        base_origin: Origin to check (default from HarnessSettings)
        timeout_s: Total budget in seconds
        interval_s: Delay between checks
        sleep: Blocking sleep function
        clock: Monotonic clock in seconds

    Returns:
        The origin that answered

    Raises:
        OriginUnreachable: No acceptable answer before the budget ran out
    """
    origin = base_origin or HarnessSettings.from_env().base_origin
    deadline = clock() + timeout_s
    checks = 0

    logger.info(f"Waiting for {origin} (up to {timeout_s:.0f}s)")
    while True:
        checks += 1
        if check_origin(origin, request_timeout=min(REQUEST_TIMEOUT, max(timeout_s, 0.1))):
            logger.info(f"Origin {origin} is up after {checks} check(s)")
            return origin

        if clock() >= deadline:
            break
        sleep(interval_s)

    raise OriginUnreachable(f"{origin} did not respond within {timeout_s:.0f}s ({checks} checks)", origin=origin)
