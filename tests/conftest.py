"""Shared pytest fixtures for all tests."""
import pytest
import httpx
from unittest.mock import MagicMock, patch
from gridrunner.config import Settings, get_settings

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image-data"


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """
    Reset the cached settings before and after each test.

    Tests that read settings from the environment get a fresh instance.
    """
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings(tmp_path):
    """Provide settings that write every artifact under tmp_path."""
    return Settings(
        _env_file=None,
        GRID_URL="http://grid.local:4444/wd/hub",
        BROWSER="chrome",
        REPORT_SCREENSHOT_PATH=str(tmp_path / "screenshots"),
        REPORT_OUTPUT_PATH=str(tmp_path / "reports"),
        ELASTICSEARCH_ENABLED=False,
    )


@pytest.fixture
def es_settings(settings):
    """Provide settings with Elasticsearch reporting switched on."""
    return settings.model_copy(
        update={
            "ELASTICSEARCH_ENABLED": True,
            "ELASTICSEARCH_HOST": "es.local",
            "ELASTICSEARCH_PORT": 9200,
            "ELASTICSEARCH_INDEX": "test-results",
        }
    )


def make_driver():
    """Build a stand-in for a connected WebDriver."""
    driver = MagicMock(name="WebDriver")
    driver.get_screenshot_as_png.return_value = PNG_BYTES
    return driver


@pytest.fixture
def remote():
    """
    Patch webdriver.Remote so every connection returns a new fake driver.

    Yields the patched constructor; ``remote.drivers`` lists created drivers.
    """
    drivers = []

    def connect(*args, **kwargs):
        driver = make_driver()
        drivers.append(driver)
        return driver

    with patch("gridrunner.driver.session_manager.webdriver.Remote", side_effect=connect) as mock_remote:
        mock_remote.drivers = drivers
        yield mock_remote


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it handled."""

    def __init__(self, status_code: int = 201, error: Exception = None):
        self.requests = []
        self.status_code = status_code
        self.error = error
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json={"result": "created"})


@pytest.fixture
def transport():
    """Provide an Elasticsearch stand-in that accepts every document."""
    return RecordingTransport()
