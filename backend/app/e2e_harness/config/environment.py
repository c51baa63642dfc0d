"""
Environment Detection

Reads the process environment to decide whether the harness runs on a
developer machine or under continuous integration, and which CI provider
is hosting the run.

Every lookup goes through an environment reader (any mapping of variable
name to value). Callers that pass nothing get the live ``os.environ``,
read at call time, so tests that patch variables between cases see the
new values immediately.
"""

import os
from enum import Enum
from typing import Mapping, Optional


# Literal values accepted as "true" for boolean-like variables
TRUTHY_VALUES = ("true", "1")

CI_VARIABLE = "CI"
CI_PROVIDER_VARIABLE = "GITHUB_ACTIONS"
TEST_MODE_VARIABLE = "TEST_MODE"


class CIProvider(Enum):
    """CI provider hosting the current run"""
    LOCAL = "local"
    GITHUB_ACTIONS = "github-actions"
    CIRCLE_CI = "circle-ci"
    JENKINS = "jenkins"
    TRAVIS = "travis"
    AZURE_PIPELINES = "azure-pipelines"
    UNKNOWN = "unknown"


# Provider marker variables, checked in order
PROVIDER_MARKERS = [
    ("GITHUB_ACTIONS", CIProvider.GITHUB_ACTIONS),
    ("CIRCLECI", CIProvider.CIRCLE_CI),
    ("JENKINS_URL", CIProvider.JENKINS),
    ("TRAVIS", CIProvider.TRAVIS),
    ("SYSTEM_TEAMFOUNDATIONCOLLECTIONURI", CIProvider.AZURE_PIPELINES),
]


def resolve_environ(environ: Optional[Mapping[str, str]] = None) -> Mapping[str, str]:
    """Return the given environment reader, or the live process environment"""
    return os.environ if environ is None else environ


def read_variable(name: str, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """
    Read a variable as stripped text.

    Non-string values (a test passing ``{"CI": 1}``) are converted rather
    than rejected. Empty values read as None.
    """
    value = resolve_environ(environ).get(name)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def is_truthy(value: Optional[str]) -> bool:
    """Boolean-like parsing: only "true" and "1" count as true"""
    if value is None:
        return False
    return str(value).strip() in TRUTHY_VALUES


def is_running_in_ci(environ: Optional[Mapping[str, str]] = None) -> bool:
    """
    Detect a continuous-integration run.

    Args:
        environ: Environment reader (defaults to os.environ)

    Returns:
        True when CI or the provider marker carries a truthy value
    """
    return (
        is_truthy(read_variable(CI_VARIABLE, environ))
        or is_truthy(read_variable(CI_PROVIDER_VARIABLE, environ))
    )


def detect_ci_provider(environ: Optional[Mapping[str, str]] = None) -> CIProvider:
    """Identify the CI provider from its marker variables"""
    if not is_running_in_ci(environ):
        return CIProvider.LOCAL

    for variable, provider in PROVIDER_MARKERS:
        if read_variable(variable, environ):
            return provider

    return CIProvider.UNKNOWN


def get_test_mode_tag(environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Free-text test mode tag, or None when unset"""
    return read_variable(TEST_MODE_VARIABLE, environ)
