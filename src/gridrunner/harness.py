"""Composition root and the per-worker view step logic runs against."""
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from selenium.webdriver.remote.webdriver import WebDriver
from gridrunner.config import Settings, get_settings
from gridrunner.diagnostics.capture import DiagnosticCapture
from gridrunner.driver.session_manager import SessionManager
from gridrunner.hooks.context import ScenarioLocalContext
from gridrunner.hooks.orchestrator import ReaderFactory, ScenarioOrchestrator
from gridrunner.observability.metrics import write_metrics
from gridrunner.pages.login_page import LoginPage
from gridrunner.reporting.result_sink import ResultSink

METRICS_FILE_NAME = "metrics.prom"


def metrics_file_name(process_id: Optional[str] = None) -> str:
    """Get the metrics file name for a process, e.g. metrics-gw0.prom."""
    if not process_id:
        return METRICS_FILE_NAME
    return f"metrics-{process_id}.prom"


class Harness:
    """
    Owns every per-worker registry for one run.

    All worker state (sessions, sink clients, scenario messages) lives in
    the components built here and is keyed by worker id; settings are the
    only thing the workers share.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        sink: Optional[ResultSink] = None,
        reader_factory: Optional[ReaderFactory] = None,
    ):
        """
        Initialize harness.

        Args:
            settings: Run settings (defaults to cached settings)
            sink: Result sink (defaults to one built from settings)
            reader_factory: Teardown message reader factory
        """
        self.settings = settings or get_settings()
        self.sessions = SessionManager(self.settings)
        self.capture = DiagnosticCapture(self.sessions, self.settings)
        self.sink = sink or ResultSink(self.settings)
        self.context = ScenarioLocalContext()
        self.orchestrator = ScenarioOrchestrator(
            sessions=self.sessions,
            capture=self.capture,
            sink=self.sink,
            context=self.context,
            settings=self.settings,
            reader_factory=reader_factory,
        )

    def scope(self, worker_id: str) -> "WorkerScope":
        """
        Get the step-logic view for a worker's current scenario.

        The scope stops working once the scenario is torn down.
        """
        return WorkerScope(worker_id=worker_id, harness=self, lease=self.sessions.lease(worker_id))

    def shutdown(self, process_id: Optional[str] = None) -> None:
        """
        Release leftover sessions and sink clients and write metrics.

        Args:
            process_id: Identifies this process when several processes
                share the report directory (e.g. the pytest-xdist worker id)
        """
        self.sessions.release_all()
        self.sink.close_all()
        write_metrics(Path(self.settings.REPORT_OUTPUT_PATH) / metrics_file_name(process_id))


@dataclass(frozen=True)
class WorkerScope:
    """
    What step logic sees of the harness: everything bound to one worker
    for the duration of one scenario.

    Once the scenario is torn down every call raises SessionExpiredError,
    so step logic left running past a deadline cannot touch the next
    scenario's browser or message.

    Example:
        >>> page = scope.login_page()
        >>> page.open(scope.settings.WEB_URL)
        >>> page.login("student", "Password123")
        >>> scope.set_message(page.success_message())
    """

    worker_id: str
    harness: Harness
    lease: Optional[int] = None

    @property
    def settings(self) -> Settings:
        return self.harness.settings

    def driver(self) -> WebDriver:
        """
        Get the worker's browser, opening a grid session on first use.

        Raises:
            SessionInitError: If the grid cannot be reached
            SessionExpiredError: If the scenario was already torn down
        """
        return self.harness.sessions.acquire(self.worker_id, lease=self.lease)

    def login_page(self) -> LoginPage:
        return LoginPage(self.driver(), timeout=self.settings.TIMEOUT)

    def set_message(self, message: Optional[str]) -> None:
        """Store the page message to report with this scenario."""
        self.harness.sessions.check_lease(self.worker_id, self.lease)
        self.harness.context.set_message(self.worker_id, message)

    def screenshot(self, label: str) -> Optional[str]:
        """Capture a screenshot mid-scenario, best-effort."""
        self.harness.sessions.check_lease(self.worker_id, self.lease)
        return self.harness.capture.capture(self.worker_id, label)
