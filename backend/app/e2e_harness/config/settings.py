"""
Harness Settings

Tuning knobs for navigation and readiness waits, read from environment
variables with safe defaults.
"""

import logging
from typing import Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from .environment import is_truthy, read_variable

logger = logging.getLogger(__name__)


def _is_valid_origin(origin: Optional[str]) -> bool:
    # navigation imports this module
    from ..navigation.url_resolver import is_absolute_http_url
    return is_absolute_http_url(origin)

# Known serving origin of the application under test
DEFAULT_BASE_ORIGIN = "http://localhost:3000"

DEFAULT_NAVIGATION_RETRIES = 2
MAX_NAVIGATION_RETRIES = 5


def _env_int(name: str, default: int, environ: Optional[Mapping[str, str]] = None) -> int:
    raw = read_variable(name, environ)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={raw!r}, using {default}")
        return default


class HarnessSettings(BaseModel):
    """Navigation and readiness tuning"""
    base_origin: str = DEFAULT_BASE_ORIGIN

    # Extra navigation attempts after the first one
    navigation_retries: int = Field(default=DEFAULT_NAVIGATION_RETRIES, ge=0, le=MAX_NAVIGATION_RETRIES)

    # Linear backoff: retry_delay_ms * attempt, each delay capped
    retry_delay_ms: int = Field(default=500, ge=0)
    max_retry_delay_ms: int = Field(default=2000, ge=0)

    # Element stability sampling
    stability_interval_ms: int = Field(default=100, gt=0)
    stability_samples: int = Field(default=3, ge=2)

    # False downgrades a network-idle timeout to a warning
    strict_network_idle: bool = True

    @field_validator("base_origin")
    @classmethod
    def check_base_origin(cls, value: str) -> str:
        if not _is_valid_origin(value):
            raise ValueError(f"base_origin must be an absolute http(s) URL, got {value!r}")
        return value.strip()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "HarnessSettings":
        """
        Build settings from environment variables.

        Variables:
            BASE_URL / PLAYWRIGHT_BASE_URL: base origin
            E2E_NAVIGATION_RETRIES: extra navigation attempts (clamped to 0..5)
            E2E_RETRY_DELAY_MS: backoff step
            E2E_STRICT_NETWORK_IDLE: "true"/"1" (default) or anything else
        """
        base_origin = (
            read_variable("BASE_URL", environ)
            or read_variable("PLAYWRIGHT_BASE_URL", environ)
            or DEFAULT_BASE_ORIGIN
        )
        if not _is_valid_origin(base_origin):
            logger.warning(f"Ignoring invalid base origin {base_origin!r}, using {DEFAULT_BASE_ORIGIN}")
            base_origin = DEFAULT_BASE_ORIGIN

        retries = _env_int("E2E_NAVIGATION_RETRIES", DEFAULT_NAVIGATION_RETRIES, environ)
        retries = max(0, min(retries, MAX_NAVIGATION_RETRIES))

        strict_raw = read_variable("E2E_STRICT_NETWORK_IDLE", environ)

        return cls(
            base_origin=base_origin,
            navigation_retries=retries,
            retry_delay_ms=max(0, _env_int("E2E_RETRY_DELAY_MS", 500, environ)),
            strict_network_idle=True if strict_raw is None else is_truthy(strict_raw),
        )
