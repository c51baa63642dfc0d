"""
URL Resolution

Turns a navigation path (absolute or relative) into an absolute URL.

The browser's reported location is only used as a base after it has been
validated: before the first navigation it is often empty or "about:blank",
and after a failed navigation it may be an error page such as
"chrome-error://chromewebdata/". Anything that is not an absolute http(s)
URL with a host is discarded in favour of the known base origin.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urljoin, urlsplit

from .errors import InvalidNavigationTarget

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("http", "https")


@dataclass
class ResolvedTarget:
    """Absolute navigation target and the base it was resolved against"""
    url: str
    base: Optional[str]
    used_fallback: bool


def is_absolute_http_url(url: Optional[str]) -> bool:
    """True for a parseable http(s) URL with a host and a valid port"""
    if not url or not isinstance(url, str):
        return False

    try:
        parts = urlsplit(url.strip())
        # .port raises ValueError for out-of-range or non-numeric ports
        parts.port
    except ValueError:
        return False

    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        return False
    if not parts.hostname:
        return False
    if any(ch.isspace() for ch in parts.netloc):
        return False

    return True


def resolve_navigation_url(path: str, current_url: Optional[str], fallback_origin: str) -> ResolvedTarget:
    """
    Resolve a navigation path against a validated base.

    Args:
        path: Absolute URL or path relative to the current page
        current_url: Location reported by the driver (may be empty or bogus)
        fallback_origin: Known serving origin of the application

    Returns:
        ResolvedTarget with the absolute URL

    Raises:
        InvalidNavigationTarget: The path cannot be resolved against any valid base
    """
    if not isinstance(path, str):
        raise InvalidNavigationTarget(f"Navigation path must be a string, got {type(path).__name__}", path=repr(path))

    target = path.strip()

    try:
        scheme = urlsplit(target).scheme.lower()
    except ValueError as e:
        raise InvalidNavigationTarget(f"Malformed navigation path {path!r}: {e}", path=path) from e

    if scheme:
        if scheme not in ALLOWED_SCHEMES:
            raise InvalidNavigationTarget(f"Unsupported scheme {scheme!r} in navigation path {path!r}", path=path)
        if not is_absolute_http_url(target):
            raise InvalidNavigationTarget(f"Malformed absolute URL {path!r}", path=path)
        return ResolvedTarget(url=target, base=None, used_fallback=False)

    candidates: List[str] = []
    current_valid = is_absolute_http_url(current_url)
    if current_valid:
        candidates.append(current_url.strip())
    else:
        logger.debug(f"Current location {current_url!r} is not a usable base, falling back to {fallback_origin}")

    if fallback_origin not in candidates:
        candidates.append(fallback_origin)

    for base in candidates:
        if not is_absolute_http_url(base):
            logger.warning(f"Fallback origin {base!r} is not a valid absolute URL")
            continue
        try:
            url = urljoin(base, target)
        except ValueError:
            continue
        if is_absolute_http_url(url):
            return ResolvedTarget(url=url, base=base, used_fallback=not (current_valid and base == candidates[0]))

    raise InvalidNavigationTarget(
        f"Cannot resolve navigation path {path!r} (current location {current_url!r}, fallback {fallback_origin!r})",
        path=path,
        base=fallback_origin,
    )
