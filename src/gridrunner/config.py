"""Configuration management for Gridrunner."""
from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Run settings loaded from environment variables.

    Every option has a default so a bare environment produces a local,
    reporting-disabled run. Settings are read-only for the lifetime of a run
    and are the only state shared between workers.
    """

    # Application
    APP_NAME: str = "Gridrunner"
    APP_VERSION: str = "0.1.0"

    # Selenium Grid
    GRID_URL: str = "http://localhost:4444/wd/hub"
    BROWSER: str = "chrome"
    HEADLESS: bool = False
    TIMEOUT: int = 30  # Explicit wait used by page objects
    IMPLICIT_WAIT: int = 10
    PAGE_LOAD_TIMEOUT: int = 60
    SCRIPT_TIMEOUT: int = 30
    PAGE_LOAD_STRATEGY: str = "normal"
    WINDOW_WIDTH: int = 1920
    WINDOW_HEIGHT: int = 1080
    MESSAGE_READ_TIMEOUT: int = 2  # Teardown lookups must not stall a worker

    # Systems under test
    WEB_URL: str = "https://practicetestautomation.com/practice-test-login/"
    API_URL: str = "https://jsonplaceholder.typicode.com"
    EXCEL_CONFIG_PATH: str = "testdata/config.xlsx"

    # Elasticsearch reporting
    ELASTICSEARCH_HOST: str = "localhost"
    ELASTICSEARCH_PORT: int = 9200
    ELASTICSEARCH_INDEX: str = "test-results"
    ELASTICSEARCH_ENABLED: bool = False
    ELASTICSEARCH_TIMEOUT: float = 10.0
    KIBANA_URL: str = "http://localhost:5933"

    # Reports
    REPORT_SCREENSHOT_PATH: str = "reports/screenshots/"
    REPORT_OUTPUT_PATH: str = "reports/"
    REPORT_FILE_NAME: str = "report.html"

    # Parallel execution
    THREAD_COUNT: int = 4
    SCENARIO_DEADLINE: Optional[float] = None  # Seconds; None disables the deadline

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def elasticsearch_url(self) -> str:
        """Base URL of the Elasticsearch HTTP API."""
        return f"http://{self.ELASTICSEARCH_HOST}:{self.ELASTICSEARCH_PORT}"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Singleton settings instance
    """
    return Settings()
