"""
Pytest Plugin

Registers scenario category markers and skips categories the current test
mode excludes (visual scenarios in ci-functional, visual / performance /
flaky scenarios in ci-lightweight).
"""

import logging

import pytest

from .config.ci_config import should_skip_test_category
from .config.test_modes import TestTag, get_current_test_mode

logger = logging.getLogger(__name__)

MARKER_DESCRIPTIONS = {
    TestTag.VISUAL: "visual regression scenario",
    TestTag.FUNCTIONAL: "functional behaviour scenario",
    TestTag.PERFORMANCE: "performance measurement scenario",
    TestTag.ACCESSIBILITY: "accessibility scenario",
    TestTag.FLAKY: "known-flaky scenario, skipped in lightweight runs",
}


def pytest_configure(config):
    """Register category markers"""
    for tag, description in MARKER_DESCRIPTIONS.items():
        config.addinivalue_line("markers", f"{tag.value}: {description}")


def skipped_categories_for(item, environ=None):
    """Category markers on a collected item that the current mode skips"""
    return [
        tag.value for tag in MARKER_DESCRIPTIONS
        if item.get_closest_marker(tag.value) is not None
        and should_skip_test_category(tag, environ)
    ]


def pytest_collection_modifyitems(config, items):
    mode = get_current_test_mode()
    skipped = 0

    for item in items:
        categories = skipped_categories_for(item)
        if categories:
            item.add_marker(pytest.mark.skip(
                reason=f"{', '.join(categories)} scenarios are skipped in {mode.value} mode"
            ))
            skipped += 1

    if skipped:
        logger.info(f"Skipping {skipped} scenario(s) in {mode.value} mode")
