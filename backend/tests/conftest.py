"""
Pytest configuration and shared fixtures for E2E harness tests.
"""

import pytest
import sys
from pathlib import Path
from unittest.mock import Mock, AsyncMock
from typing import Dict, List

# Add backend app to path
sys.path.insert(0, str(Path(__file__).parent.parent / "app"))


# ==================== Environment Fixtures ====================

@pytest.fixture
def local_env() -> Dict[str, str]:
    """Environment of a developer machine."""
    return {}


@pytest.fixture
def ci_env() -> Dict[str, str]:
    """Environment of a default CI run."""
    return {"CI": "true"}


@pytest.fixture
def clean_environ(monkeypatch):
    """Remove every variable the harness reads from os.environ."""
    for name in [
        "CI", "GITHUB_ACTIONS", "CIRCLECI", "JENKINS_URL", "TRAVIS",
        "SYSTEM_TEAMFOUNDATIONCOLLECTIONURI", "TEST_MODE", "BASE_URL",
        "PLAYWRIGHT_BASE_URL", "E2E_NAVIGATION_RETRIES", "E2E_RETRY_DELAY_MS",
        "E2E_STRICT_NETWORK_IDLE", "PLAYWRIGHT_TEST_GREP", "VISUAL_TESTS_ENABLED_IN_CI",
        "LIGHTWEIGHT_TESTS", "RUN_ALL_BROWSERS",
    ]:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


# ==================== Mock Page Fixture ====================

@pytest.fixture
def mock_page():
    """Create a mock Playwright page object."""
    page = AsyncMock()

    # Basic properties
    page.url = "about:blank"

    # Navigation
    response = Mock()
    response.status = 200
    page.goto = AsyncMock(return_value=response)

    # Locators
    mock_locator = AsyncMock()
    mock_locator.click = AsyncMock()
    mock_locator.fill = AsyncMock()
    mock_locator.wait_for = AsyncMock()
    mock_locator.count = AsyncMock(return_value=0)
    mock_locator.is_visible = AsyncMock(return_value=True)
    mock_locator.text_content = AsyncMock(return_value="Test Content")
    mock_locator.bounding_box = AsyncMock(return_value={"x": 0, "y": 0, "width": 100, "height": 20})
    mock_locator.filter = Mock(return_value=mock_locator)
    mock_locator.first = mock_locator

    page.locator = Mock(return_value=mock_locator)

    # Wait
    page.wait_for_load_state = AsyncMock()

    return page


# ==================== Fake Driver Fixture ====================

class FakeDriver:
    """In-memory BrowserDriver with scripted navigation outcomes."""

    def __init__(self, location: str = ""):
        self.location = location
        # Each entry is an exception to raise or a status to return
        self.outcomes: List = []
        self.navigated: List[str] = []
        self.snapshots: List = []

        self.wait_for_network_idle = AsyncMock()
        self.wait_for_load = AsyncMock()

    def current_url(self) -> str:
        return self.location

    async def navigate(self, url: str, timeout_ms: int):
        self.navigated.append(url)
        outcome = self.outcomes.pop(0) if self.outcomes else 200
        if isinstance(outcome, BaseException):
            raise outcome
        self.location = url
        return outcome

    async def element_snapshot(self, selector: str):
        if not self.snapshots:
            return ("stable", selector)
        if len(self.snapshots) == 1:
            return self.snapshots[0]
        return self.snapshots.pop(0)


@pytest.fixture
def fake_driver():
    """Create a fake browser driver positioned on about:blank."""
    return FakeDriver(location="about:blank")


# ==================== Fake Clock Fixture ====================

class FakeClock:
    """Monotonic clock advanced only by the fake sleep."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock():
    """Create a fake clock with an async sleep that advances it."""
    return FakeClock()
